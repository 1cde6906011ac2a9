"""
Index Reconciliation

Merges a freshly fetched release listing into the previously persisted index.
Releases are keyed by tag: remote metadata always wins for id, name, body and
the asset list, while the locally extracted build ID survives across runs.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from assetmirror.exceptions import InvalidFormatError
from assetmirror.index import (
    Asset,
    AssetType,
    Release,
    VersionComparator,
    classify_asset,
    file_exists,
    make_source_tarball_asset,
    make_source_zipball_asset,
    parse_version,
    sort_assets,
    sort_releases,
)
from assetmirror.log_utils import logger

from .buildid import GoBuildIDExtractor
from .github_source import RemoteAsset, RemoteRelease

AssetLister = Callable[[int], Iterable[RemoteAsset]]


def _is_executable(asset: Asset) -> bool:
    return asset.type == AssetType.EXECUTABLE


@dataclass
class PendingDownload:
    """An asset whose file is not yet present in the mirror."""

    release: Release
    asset: Asset
    path: str


@dataclass
class ReconcileResult:
    releases: List[Release]
    pending: List[PendingDownload] = field(default_factory=list)


class IndexReconciler:
    """
    Updates the release index from remote listings.

    Parameters:
        output_dir (str): Mirror root; assets live at ``<output_dir>/<tag>/<name>``.
        extractor: Object with ``extract(release_dir, asset_name) -> Optional[str]``,
            used to backfill build IDs.
        comparator (Optional[VersionComparator]): Shared comparator, so the token
            cache is reused between sorts.
    """

    def __init__(
        self,
        output_dir: str,
        extractor: Optional[GoBuildIDExtractor] = None,
        comparator: Optional[VersionComparator] = None,
    ):
        self.output_dir = output_dir
        self.extractor = extractor if extractor is not None else GoBuildIDExtractor()
        self.comparator = comparator if comparator is not None else VersionComparator()

    def release_dir(self, release: Release) -> str:
        return os.path.join(self.output_dir, release.tag)

    def asset_path(self, release: Release, asset: Asset) -> str:
        return os.path.join(self.output_dir, release.tag, asset.name)

    def reconcile(
        self,
        prior: List[Release],
        remote_releases: Iterable[RemoteRelease],
        list_assets: AssetLister,
    ) -> ReconcileResult:
        """
        Merge `remote_releases` into `prior`.

        Drafts are skipped before their assets are listed. A release whose tag
        is new and does not parse as a version is logged and skipped; every
        other failure propagates.

        Parameters:
            prior (List[Release]): Previously persisted releases; not modified.
            remote_releases (Iterable[RemoteRelease]): Remote release summaries.
            list_assets (AssetLister): Returns the remote assets of a release id.

        Returns:
            ReconcileResult: All releases sorted (each asset list sorted too), and
                the assets whose local file does not exist yet, in that order.

        Raises:
            DurableWriteError: If an asset path cannot be examined.
        """
        releases = list(prior)
        position_by_tag: Dict[str, int] = {
            release.tag: index for index, release in enumerate(releases)
        }

        for remote in remote_releases:
            if remote.draft:
                logger.debug("Skipping draft release %s (id %d)", remote.tag, remote.id)
                continue

            position = position_by_tag.get(remote.tag)
            if position is not None:
                existing = releases[position]
                version = dataclasses.replace(existing.version)
            else:
                try:
                    version = parse_version(remote.tag)
                except InvalidFormatError as exc:
                    logger.error(
                        "Failed to parse GitHub release tag %r as a semantic version: %s",
                        remote.tag,
                        exc,
                    )
                    continue

            assets = [
                make_source_tarball_asset(remote.tarball_url),
                make_source_zipball_asset(remote.zipball_url),
            ]
            for remote_asset in list_assets(remote.id):
                assets.append(
                    classify_asset(remote_asset.id, remote_asset.url, remote_asset.name)
                )
            sort_assets(assets)

            release = Release(
                tag=remote.tag,
                version=version,
                id=remote.id,
                name=remote.name,
                body=remote.body,
                assets=assets,
            )

            if position is not None:
                releases[position] = release
                logger.debug("Updated release %s (%d assets)", release.tag, len(assets))
            else:
                position_by_tag[release.tag] = len(releases)
                releases.append(release)
                logger.info("Found new release %s (%d assets)", release.tag, len(assets))

        sort_releases(releases, self.comparator)
        for release in releases:
            sort_assets(release.assets)

        pending = []
        for release in releases:
            for asset in release.assets:
                path = self.asset_path(release, asset)
                if not file_exists(path):
                    pending.append(PendingDownload(release=release, asset=asset, path=path))

        return ReconcileResult(releases=releases, pending=pending)

    def backfill_build_ids(self, releases: List[Release]) -> int:
        """
        Record a build ID for every release that lacks one.

        Executable assets are tried in their sorted order; the first one the
        extractor reads a build ID from wins. The list is re-sorted afterwards,
        since the build ID is the last version ordering key.

        Returns:
            int: Number of releases that received a build ID.
        """
        updated = 0
        for release in releases:
            if release.version.build_id:
                continue
            release_dir = self.release_dir(release)
            for asset in release.matching_assets(_is_executable):
                build_id = self.extractor.extract(release_dir, asset.name)
                if build_id:
                    release.version.build_id = build_id
                    updated += 1
                    logger.info(
                        "Recorded build ID %s for release %s from %s",
                        build_id,
                        release.tag,
                        asset.name,
                    )
                    break
        if updated:
            sort_releases(releases, self.comparator)
        return updated
