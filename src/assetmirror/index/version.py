"""
Version parsing and comparison for release tags.

Tags look like ``v1.2.3`` or ``v1.2.3-rc.1``. Prerelease text is split into
tokens (runs of digits, letters or other symbols) and compared token by token.
Tokenization results are memoized in a TokenCache owned by a VersionComparator,
so each distinct prerelease string is only tokenized once per comparator.

Note that this ordering is not semantic-versioning precedence: an empty
prerelease is the shortest token sequence and therefore sorts *before* any
prerelease of the same core version (``1.2.3 < 1.2.3-rc1``), and token
categories rank ``symbols < digits < letters``.
"""

import re
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from assetmirror.exceptions import InternalConsistencyError, InvalidFormatError

from .compare import CompareResult, compare_reduce, compare_values
from .enums import VersionElementType

_IDENTIFIER = r"(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*)"
TAG_RX = re.compile(
    r"^v(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)"
    rf"(?:-({_IDENTIFIER}(?:\.{_IDENTIFIER})*))?\Z"
)
BUILD_ID_RX = re.compile(r"^[0-9a-f]{40}\Z")


@dataclass
class Version:
    """A parsed release version plus the locally extracted build identifier."""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build_id: str = ""

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += f"-{self.prerelease}"
        if self.build_id:
            out += f"+{self.build_id}"
        return out


def parse_version(tag: str) -> Version:
    """
    Parse a release tag of the form ``v<major>.<minor>.<patch>[-<prerelease>]``.

    Parameters:
        tag (str): The release tag to parse.

    Returns:
        Version: The parsed version with an empty build ID.

    Raises:
        InvalidFormatError: If the tag does not match the expected shape.
    """
    match = TAG_RX.match(tag)
    if match is None:
        raise InvalidFormatError(
            f"failed to parse {tag!r} as semantic version", field="tag", value=tag
        )
    return Version(
        major=int(match.group(1)),
        minor=int(match.group(2)),
        patch=int(match.group(3)),
        prerelease=match.group(4) or "",
    )


def is_valid_build_id(value: str) -> bool:
    return bool(BUILD_ID_RX.match(value))


@dataclass(frozen=True)
class VersionElement:
    """One token of a tokenized version string."""

    type: VersionElementType
    int_value: Optional[int] = None
    str_value: str = ""

    @classmethod
    def digits(cls, value: int) -> "VersionElement":
        return cls(VersionElementType.DIGITS, int_value=value)

    @classmethod
    def letters(cls, value: str) -> "VersionElement":
        return cls(VersionElementType.LETTERS, str_value=value)

    @classmethod
    def symbols(cls, value: str) -> "VersionElement":
        return cls(VersionElementType.SYMBOLS, str_value=value)


TokenSequence = Tuple[VersionElement, ...]


def _classify_char(ch: str) -> VersionElementType:
    if ch.isdecimal():
        return VersionElementType.DIGITS
    if ch.isalpha():
        return VersionElementType.LETTERS
    return VersionElementType.SYMBOLS


def _make_element(kind: VersionElementType, run: str) -> VersionElement:
    if kind == VersionElementType.DIGITS:
        try:
            return VersionElement.digits(int(run, 10))
        except ValueError as exc:
            raise InternalConsistencyError(
                f"failed to parse digit run {run!r} as an integer", details=str(exc)
            ) from exc
    return VersionElement(kind, str_value=run)


def tokenize(text: str) -> TokenSequence:
    """
    Split `text` into maximal runs of digits, letters and other symbols.

    This is the uncached tokenizer; use VersionComparator.tokenize to benefit
    from memoization.

    Returns:
        TokenSequence: The tokens in order; empty for empty input.

    Raises:
        InternalConsistencyError: If a run of digits cannot be converted to an integer.
    """
    elements: List[VersionElement] = []
    run_start = 0
    run_kind: Optional[VersionElementType] = None
    for index, ch in enumerate(text):
        kind = _classify_char(ch)
        if kind != run_kind:
            if run_kind is not None:
                elements.append(_make_element(run_kind, text[run_start:index]))
            run_start = index
            run_kind = kind
    if run_kind is not None:
        elements.append(_make_element(run_kind, text[run_start:]))
    return tuple(elements)


def compare_elements(a: VersionElement, b: VersionElement) -> CompareResult:
    result = compare_values(a.type, b.type)
    if result != CompareResult.EQ:
        return result
    if a.type == VersionElementType.DIGITS:
        return compare_values(a.int_value, b.int_value)
    return compare_values(a.str_value, b.str_value)


def compare_token_sequences(a: TokenSequence, b: TokenSequence) -> CompareResult:
    """Compare element by element; on an equal common prefix the shorter sequence is LT."""
    for a_elem, b_elem in zip(a, b):
        result = compare_elements(a_elem, b_elem)
        if result != CompareResult.EQ:
            return result
    return compare_values(len(a), len(b))


class TokenCache:
    """
    Append-only memo of string -> token sequence.

    Lookups and inserts happen under a single lock; entries are never evicted.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, TokenSequence] = {}

    def get(self, text: str) -> TokenSequence:
        with self._lock:
            tokens = self._entries.get(text)
            if tokens is None:
                tokens = tokenize(text)
                self._entries[text] = tokens
            return tokens

    def get_many(self, texts: Iterable[str]) -> List[TokenSequence]:
        """Tokenize a batch of strings while holding the lock once."""
        out: List[TokenSequence] = []
        with self._lock:
            for text in texts:
                tokens = self._entries.get(text)
                if tokens is None:
                    tokens = tokenize(text)
                    self._entries[text] = tokens
                out.append(tokens)
        return out

    def __contains__(self, text: str) -> bool:
        with self._lock:
            return text in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class VersionComparator:
    """Orders Versions, tokenizing prerelease text through its own TokenCache."""

    def __init__(self, cache: Optional[TokenCache] = None) -> None:
        self.cache = cache if cache is not None else TokenCache()

    def tokenize(self, text: str) -> TokenSequence:
        return self.cache.get(text)

    def compare(self, a: Version, b: Version) -> CompareResult:
        return compare_versions(a, b, self.cache)


def compare_versions(
    a: Version, b: Version, cache: Optional[TokenCache] = None
) -> CompareResult:
    """
    Compare two versions.

    Orders by (major, minor, patch), then by tokenized prerelease, then by
    build ID as a plain string. Prereleases are only tokenized when the
    numeric triples are equal.

    Parameters:
        a (Version): Left-hand version.
        b (Version): Right-hand version.
        cache (Optional[TokenCache]): Memo for prerelease tokens; without one
            the prereleases are tokenized directly.
    """
    result = compare_reduce(
        compare_values(a.major, b.major),
        compare_values(a.minor, b.minor),
        compare_values(a.patch, b.patch),
    )
    if result == CompareResult.EQ:
        if cache is not None:
            a_tokens, b_tokens = cache.get_many([a.prerelease, b.prerelease])
        else:
            a_tokens, b_tokens = tokenize(a.prerelease), tokenize(b.prerelease)
        result = compare_token_sequences(a_tokens, b_tokens)
    if result == CompareResult.EQ:
        result = compare_values(a.build_id, b.build_id)
    return result
