"""
Index File Codec

Converts the in-memory release list to and from its persisted form. The
schema is strict: unknown fields, wrong value types and unrecognised enum
names are all decode failures. Zero-valued optional fields are left out when
encoding, and missing fields decode to their zero value.

JSON is the on-disk format of ``index.json``; YAML is available for tooling
that prefers it and follows the same schema.
"""

import json
import os
from typing import Any, Callable, Dict, List, Optional

import yaml

from assetmirror.constants import INDEX_FILE_MODE
from assetmirror.exceptions import FileSystemError, IndexFormatError
from assetmirror.log_utils import logger

from .asset import Asset
from .enums import AssetArch, AssetOS, AssetType, TextEnum
from .files import Pathish, write_file
from .release import Release
from .version import Version, is_valid_build_id

_RELEASE_FIELDS = ("id", "tag", "name", "body", "version", "assets")
_VERSION_FIELDS = ("major", "minor", "patch", "prerelease", "buildID")
_ASSET_FIELDS = ("id", "url", "name", "base", "os", "arch", "type")

# Only ever appear inside JSON strings, so a plain substitution is safe
_JSON_LINE_SEPARATORS = (("\u2028", "\\u2028"), ("\u2029", "\\u2029"))


# =============================================================================
# Encoding
# =============================================================================


def version_to_dict(version: Version) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "major": version.major,
        "minor": version.minor,
        "patch": version.patch,
    }
    if version.prerelease:
        out["prerelease"] = version.prerelease
    if version.build_id:
        out["buildID"] = version.build_id
    return out


def asset_to_dict(asset: Asset) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if asset.id:
        out["id"] = asset.id
    out["url"] = asset.url
    out["name"] = asset.name
    if asset.base:
        out["base"] = asset.base
    out["os"] = asset.os.text
    out["arch"] = asset.arch.text
    out["type"] = asset.type.text
    return out


def release_to_dict(release: Release) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if release.id:
        out["id"] = release.id
    out["tag"] = release.tag
    if release.name:
        out["name"] = release.name
    if release.body:
        out["body"] = release.body
    out["version"] = version_to_dict(release.version)
    if release.assets:
        out["assets"] = [asset_to_dict(asset) for asset in release.assets]
    return out


def dump_index(releases: List[Release]) -> bytes:
    """
    Encode releases as the JSON index document.

    The output is UTF-8 with 2-space indentation, non-ASCII characters written
    as-is except the U+2028 / U+2029 line separators, which are escaped, and
    a trailing newline.
    """
    document = [release_to_dict(release) for release in releases]
    text = json.dumps(document, indent=2, ensure_ascii=False)
    for raw, escaped in _JSON_LINE_SEPARATORS:
        text = text.replace(raw, escaped)
    return (text + "\n").encode("utf-8")


def dump_index_yaml(releases: List[Release]) -> bytes:
    document = [release_to_dict(release) for release in releases]
    return yaml.safe_dump(
        document, indent=2, sort_keys=False, allow_unicode=True
    ).encode("utf-8")


# =============================================================================
# Decoding
# =============================================================================


def _check_fields(data: Any, allowed: tuple, where: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise IndexFormatError(
            f"expected an object for {where}, got {type(data).__name__}", field=where
        )
    unknown = [key for key in data if key not in allowed]
    if unknown:
        raise IndexFormatError(
            f"unknown field {unknown[0]!r} in {where}", field=unknown[0]
        )
    return data


def _get_int(data: Dict[str, Any], key: str, where: str, minimum: Optional[int] = None) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise IndexFormatError(
            f"field {key!r} in {where} must be an integer", field=key, value=repr(value)
        )
    if minimum is not None and value < minimum:
        raise IndexFormatError(
            f"field {key!r} in {where} must be >= {minimum}", field=key, value=str(value)
        )
    return value


def _get_str(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise IndexFormatError(
            f"field {key!r} in {where} must be a string", field=key, value=repr(value)
        )
    return value


def _get_enum(data: Dict[str, Any], key: str, where: str, enum_cls: type) -> TextEnum:
    raw = _get_str(data, key, where)
    try:
        return enum_cls.from_text(raw)
    except ValueError as e:
        raise IndexFormatError(str(e), field=key, value=raw) from e


def version_from_dict(data: Any, where: str = "version") -> Version:
    data = _check_fields(data, _VERSION_FIELDS, where)
    build_id = _get_str(data, "buildID", where)
    if build_id and not is_valid_build_id(build_id):
        raise IndexFormatError(
            f"field 'buildID' in {where} must be 40 lowercase hex characters",
            field="buildID",
            value=build_id,
        )
    return Version(
        major=_get_int(data, "major", where, minimum=0),
        minor=_get_int(data, "minor", where, minimum=0),
        patch=_get_int(data, "patch", where, minimum=0),
        prerelease=_get_str(data, "prerelease", where),
        build_id=build_id,
    )


def asset_from_dict(data: Any, where: str = "asset") -> Asset:
    data = _check_fields(data, _ASSET_FIELDS, where)
    return Asset(
        id=_get_int(data, "id", where),
        url=_get_str(data, "url", where),
        name=_get_str(data, "name", where),
        base=_get_str(data, "base", where),
        os=_get_enum(data, "os", where, AssetOS),
        arch=_get_enum(data, "arch", where, AssetArch),
        type=_get_enum(data, "type", where, AssetType),
    )


def release_from_dict(data: Any, where: str = "release") -> Release:
    data = _check_fields(data, _RELEASE_FIELDS, where)
    raw_version = data.get("version")
    version = (
        Version(0, 0, 0)
        if raw_version is None
        else version_from_dict(raw_version, f"{where}.version")
    )
    raw_assets = data.get("assets")
    if raw_assets is None:
        raw_assets = []
    if not isinstance(raw_assets, list):
        raise IndexFormatError(f"field 'assets' in {where} must be a list", field="assets")
    return Release(
        id=_get_int(data, "id", where),
        tag=_get_str(data, "tag", where),
        name=_get_str(data, "name", where),
        body=_get_str(data, "body", where),
        version=version,
        assets=[
            asset_from_dict(item, f"{where}.assets[{index}]")
            for index, item in enumerate(raw_assets)
        ],
    )


def _releases_from_document(document: Any) -> List[Release]:
    if document is None:
        return []
    if not isinstance(document, list):
        raise IndexFormatError(
            f"index must be a list of releases, got {type(document).__name__}"
        )
    return [
        release_from_dict(item, f"releases[{index}]")
        for index, item in enumerate(document)
    ]


def load_index(raw: bytes) -> List[Release]:
    """
    Decode a JSON index document.

    Raises:
        IndexFormatError: If the bytes are not valid UTF-8 JSON or do not match the schema.
    """
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise IndexFormatError("failed to decode index as JSON", details=str(e)) from e
    return _releases_from_document(document)


def load_index_yaml(raw: bytes) -> List[Release]:
    try:
        document = yaml.safe_load(raw.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        raise IndexFormatError("failed to decode index as YAML", details=str(e)) from e
    return _releases_from_document(document)


# =============================================================================
# Index files
# =============================================================================


def read_index_file(
    path: Pathish, loader: Callable[[bytes], List[Release]] = load_index
) -> List[Release]:
    """
    Read a previously persisted index.

    Parameters:
        path (Pathish): Index file path.
        loader: Decoder for the file contents (JSON by default).

    Returns:
        List[Release]: The decoded releases, or an empty list when the file does not exist.

    Raises:
        IndexFormatError: If the file contents do not decode.
        FileSystemError: If the file exists but cannot be read.
    """
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        logger.debug("No index found at %s; starting empty", path)
        return []
    except OSError as e:
        raise FileSystemError(
            "failed to read index file", path=os.fspath(path), details=str(e)
        ) from e
    releases = loader(raw)
    logger.debug("Loaded %d releases from %s", len(releases), os.fspath(path))
    return releases


def write_index_file(
    path: Pathish,
    releases: List[Release],
    dumper: Callable[[List[Release]], bytes] = dump_index,
) -> int:
    """Encode `releases` and durably write them to `path`; returns bytes written."""
    return write_file(path, dumper(releases), INDEX_FILE_MODE)
