"""
Release assets and their classification.

Asset names are classified by a fixed decision table: each AssetMatcher
recognises one asset category, and the matchers are tried in declaration
order. Names that no matcher recognises become ``unknown`` assets. The two
source bundles GitHub generates for every release are synthesised directly
and never go through the table.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from assetmirror.constants import (
    EXECUTABLE_FILE_MODE,
    REGULAR_FILE_MODE,
    SOURCE_TARBALL_NAME,
    SOURCE_ZIPBALL_NAME,
)

from .compare import CompareResult, compare_reduce, compare_values, sort_list
from .enums import AssetArch, AssetOS, AssetType

_BASE = r"([0-9A-Za-z]+(?:[_-][0-9A-Za-z]+)*)"
_PLATFORM = r"-(linux)-(amd64|arm64)"

OS_BY_NAME: Dict[str, AssetOS] = {
    "any": AssetOS.ANY,
    "linux": AssetOS.LINUX,
}

ARCH_BY_NAME: Dict[str, AssetArch] = {
    "any": AssetArch.ANY,
    "amd64": AssetArch.AMD64,
    "arm64": AssetArch.ARM64,
}


@dataclass
class Asset:
    """One downloadable file attached to a release."""

    url: str
    name: str
    id: int = 0
    base: str = ""
    os: AssetOS = AssetOS.UNKNOWN
    arch: AssetArch = AssetArch.UNKNOWN
    type: AssetType = AssetType.UNKNOWN

    @property
    def mode(self) -> int:
        """Permission bits the mirrored file is created with."""
        if self.type == AssetType.EXECUTABLE:
            return EXECUTABLE_FILE_MODE
        return REGULAR_FILE_MODE


@dataclass(frozen=True)
class AssetMatcher:
    """
    One row of the classification table.

    The pattern must capture (base, os, arch) as its three groups.
    """

    type: AssetType
    pattern: Pattern[str]

    def match(self, name: str) -> Optional[Tuple[str, AssetOS, AssetArch]]:
        m = self.pattern.match(name)
        if m is None:
            return None
        return m.group(1), OS_BY_NAME[m.group(2)], ARCH_BY_NAME[m.group(3)]


ASSET_MATCHERS: Tuple[AssetMatcher, ...] = (
    AssetMatcher(
        AssetType.EXECUTABLE,
        re.compile(rf"^{_BASE}{_PLATFORM}(?:\.exe)?\Z"),
    ),
    AssetMatcher(
        AssetType.PROVENANCE,
        re.compile(rf"^{_BASE}{_PLATFORM}\.intoto\.jsonl?\Z"),
    ),
)


def classify_asset(asset_id: int, url: str, name: str) -> Asset:
    """
    Build an Asset from a remote asset's id, download URL and file name.

    Parameters:
        asset_id (int): Remote-assigned asset id (0 when unknown).
        url (str): Download URL.
        name (str): File name, matched against ASSET_MATCHERS.

    Returns:
        Asset: The classified asset; ``unknown`` type/os/arch and an empty base
            when no matcher recognises the name.
    """
    for matcher in ASSET_MATCHERS:
        matched = matcher.match(name)
        if matched is not None:
            base, asset_os, asset_arch = matched
            return Asset(
                id=asset_id,
                url=url,
                name=name,
                base=base,
                os=asset_os,
                arch=asset_arch,
                type=matcher.type,
            )
    return Asset(id=asset_id, url=url, name=name)


def make_source_tarball_asset(url: str) -> Asset:
    return Asset(
        url=url,
        name=SOURCE_TARBALL_NAME,
        os=AssetOS.ANY,
        arch=AssetArch.ANY,
        type=AssetType.SOURCE_TAR,
    )


def make_source_zipball_asset(url: str) -> Asset:
    return Asset(
        url=url,
        name=SOURCE_ZIPBALL_NAME,
        os=AssetOS.ANY,
        arch=AssetArch.ANY,
        type=AssetType.SOURCE_ZIP,
    )


def compare_assets(a: Asset, b: Asset) -> CompareResult:
    """Order by (os, arch, type, name, id, url, base)."""
    return compare_reduce(
        compare_values(a.os, b.os),
        compare_values(a.arch, b.arch),
        compare_values(a.type, b.type),
        compare_values(a.name, b.name),
        compare_values(a.id, b.id),
        compare_values(a.url, b.url),
        compare_values(a.base, b.base),
    )


def sort_assets(assets: List[Asset]) -> List[Asset]:
    return sort_list(assets, compare_assets)
