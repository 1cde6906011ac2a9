"""
Enumerations stored in the index file.

Each enum is an IntEnum whose ordinal defines its sort order. In the index the
members are written by their canonical text name; reading accepts the
canonical name, any alias (both case-insensitive) or the member name itself.
"""

from enum import IntEnum
from typing import Dict, Tuple

# enum class -> {ordinal: (canonical name, aliases)}
_TEXT_NAMES: Dict[type, Dict[int, Tuple[str, Tuple[str, ...]]]] = {}


class TextEnum(IntEnum):
    """IntEnum with a canonical text form and case-insensitive aliases."""

    @property
    def text(self) -> str:
        return _TEXT_NAMES[type(self)][int(self)][0]

    def __str__(self) -> str:
        return self.text

    @classmethod
    def from_text(cls, raw: str):
        """
        Parse the text form of a member.

        Parameters:
            raw (str): Canonical name, alias or member name; surrounding whitespace is ignored.

        Returns:
            The matching enum member.

        Raises:
            ValueError: If `raw` names no member of this enum.
        """
        value = raw.strip()
        for member in cls:
            canonical, aliases = _TEXT_NAMES[cls][int(member)]
            if value == member.name or value.lower() == canonical.lower():
                return member
            if any(value.lower() == alias.lower() for alias in aliases):
                return member
        raise ValueError(f"failed to parse {raw!r} as {cls.__name__}")


def _register(cls, names: Dict[int, Tuple[str, Tuple[str, ...]]]) -> None:
    _TEXT_NAMES[cls] = names


class AssetOS(TextEnum):
    UNKNOWN = 0
    ANY = 1
    LINUX = 2


class AssetArch(TextEnum):
    UNKNOWN = 0
    ANY = 1
    AMD64 = 2
    ARM64 = 3


class AssetType(TextEnum):
    UNKNOWN = 0
    SOURCE_TAR = 1
    SOURCE_ZIP = 2
    EXECUTABLE = 3
    PROVENANCE = 4


class VersionElementType(TextEnum):
    """Category of a version token. The ordinal is the comparison rank."""

    UNKNOWN = 0
    SYMBOLS = 1
    DIGITS = 2
    LETTERS = 3


_register(
    AssetOS,
    {
        AssetOS.UNKNOWN: ("unknown", ("",)),
        AssetOS.ANY: ("any", ()),
        AssetOS.LINUX: ("linux", ()),
    },
)
_register(
    AssetArch,
    {
        AssetArch.UNKNOWN: ("unknown", ("",)),
        AssetArch.ANY: ("any", ()),
        AssetArch.AMD64: ("amd64", ("x86-64", "x64")),
        AssetArch.ARM64: ("arm64", ("aarch64",)),
    },
)
_register(
    AssetType,
    {
        AssetType.UNKNOWN: ("unknown", ("",)),
        AssetType.SOURCE_TAR: ("source-tar", ("sourcetar",)),
        AssetType.SOURCE_ZIP: ("source-zip", ("sourcezip",)),
        AssetType.EXECUTABLE: ("executable", ("binary",)),
        AssetType.PROVENANCE: ("provenance", ()),
    },
)
_register(
    VersionElementType,
    {
        VersionElementType.UNKNOWN: ("unknown", ("",)),
        VersionElementType.SYMBOLS: ("symbols", ()),
        VersionElementType.DIGITS: ("digits", ()),
        VersionElementType.LETTERS: ("letters", ()),
    },
)
