"""
asset-mirror Index Model

Data types, ordering rules and persistence for the release index.

Core Components:
- compare: three-way comparison helpers and the sortable-collection utility
- enums: asset OS / architecture / type and version token categories
- version: tag parsing, tokenization and the cached version comparator
- asset: asset records and the name classifier
- release: release records and release ordering
- files: the durable (fsync + rename) write protocol
- codec: strict JSON / YAML encoding of the index
"""

from .asset import (
    ASSET_MATCHERS,
    Asset,
    AssetMatcher,
    classify_asset,
    compare_assets,
    make_source_tarball_asset,
    make_source_zipball_asset,
    sort_assets,
)
from .codec import (
    dump_index,
    dump_index_yaml,
    load_index,
    load_index_yaml,
    read_index_file,
    write_index_file,
)
from .compare import CompareResult, compare_reduce, compare_values, sort_list
from .enums import AssetArch, AssetOS, AssetType, VersionElementType
from .files import file_exists, write_file
from .release import Release, compare_releases, sort_releases
from .version import (
    TokenCache,
    Version,
    VersionComparator,
    VersionElement,
    compare_token_sequences,
    compare_versions,
    parse_version,
    tokenize,
)

__all__ = [
    # Comparison
    "CompareResult",
    "compare_values",
    "compare_reduce",
    "sort_list",
    # Enums
    "AssetOS",
    "AssetArch",
    "AssetType",
    "VersionElementType",
    # Versions
    "Version",
    "VersionElement",
    "VersionComparator",
    "TokenCache",
    "parse_version",
    "tokenize",
    "compare_token_sequences",
    "compare_versions",
    # Assets and releases
    "Asset",
    "AssetMatcher",
    "ASSET_MATCHERS",
    "classify_asset",
    "make_source_tarball_asset",
    "make_source_zipball_asset",
    "compare_assets",
    "sort_assets",
    "Release",
    "compare_releases",
    "sort_releases",
    # Persistence
    "write_file",
    "file_exists",
    "dump_index",
    "load_index",
    "dump_index_yaml",
    "load_index_yaml",
    "read_index_file",
    "write_index_file",
]
