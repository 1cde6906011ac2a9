from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .asset import Asset
from .compare import CompareResult, compare_values, sort_list
from .version import Version, VersionComparator


@dataclass
class Release:
    """A mirrored release. `tag` is the identity key within an index."""

    tag: str
    version: Version
    id: int = 0
    name: str = ""
    body: str = ""
    assets: List[Asset] = field(default_factory=list)

    def matching_assets(self, predicate: Callable[[Asset], bool]) -> List[Asset]:
        return [asset for asset in self.assets if predicate(asset)]


def compare_releases(
    a: Release, b: Release, comparator: VersionComparator
) -> CompareResult:
    """Order by (version, tag, id)."""
    result = comparator.compare(a.version, b.version)
    if result == CompareResult.EQ:
        result = compare_values(a.tag, b.tag)
    if result == CompareResult.EQ:
        result = compare_values(a.id, b.id)
    return result


def sort_releases(
    releases: List[Release], comparator: Optional[VersionComparator] = None
) -> List[Release]:
    """
    Sort releases in place by (version, tag, id).

    Parameters:
        releases (List[Release]): Releases to sort.
        comparator (Optional[VersionComparator]): Comparator whose token cache is
            reused across calls; a fresh one is created when omitted.

    Returns:
        List[Release]: The same list, sorted.
    """
    if comparator is None:
        comparator = VersionComparator()
    return sort_list(releases, lambda a, b: compare_releases(a, b, comparator))
