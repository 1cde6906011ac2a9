"""
Mirror Run Orchestrator

Coordinates one mirror run: load the prior index, reconcile it against the
remote listing, download every missing asset, backfill build IDs, and write
the new index. The run is strictly sequential and any failure other than an
unparseable release tag aborts it before the index is rewritten.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from assetmirror.config import MirrorConfig
from assetmirror.index import (
    VersionComparator,
    read_index_file,
    write_file,
    write_index_file,
)
from assetmirror.log_utils import logger
from assetmirror.utils import download_asset

from .buildid import GoBuildIDExtractor
from .github_source import GithubReleaseSource
from .reconcile import IndexReconciler, PendingDownload


@dataclass
class MirrorSummary:
    releases: int = 0
    assets: int = 0
    downloaded: int = 0
    bytes_downloaded: int = 0
    build_ids_recorded: int = 0
    elapsed: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "releases": self.releases,
            "assets": self.assets,
            "downloaded": self.downloaded,
            "bytes_downloaded": self.bytes_downloaded,
            "build_ids_recorded": self.build_ids_recorded,
            "elapsed": self.elapsed,
        }


class MirrorOrchestrator:
    """
    Runs the mirror pipeline for one repository.

    The collaborators default to the real GitHub source and ``go`` extractor;
    tests pass their own.
    """

    def __init__(
        self,
        config: MirrorConfig,
        session: requests.Session,
        source: Optional[GithubReleaseSource] = None,
        extractor: Optional[GoBuildIDExtractor] = None,
    ):
        self.config = config
        self.session = session
        self.source = source or GithubReleaseSource(
            config.github_owner,
            config.github_repo,
            session,
            api_base=config.github_api_base,
        )
        self.comparator = VersionComparator()
        self.reconciler = IndexReconciler(
            config.output_dir,
            extractor=extractor,
            comparator=self.comparator,
        )

    def run(self) -> MirrorSummary:
        """
        Execute one full mirror run.

        Returns:
            MirrorSummary: Counts for the run.

        Raises:
            AssetMirrorError: Any subclass raised by a pipeline step.
        """
        start_time = time.time()
        index_path = self.config.index_path
        logger.info(
            "Mirroring %s/%s into %s",
            self.config.github_owner,
            self.config.github_repo,
            self.config.output_dir,
        )

        prior = read_index_file(index_path)
        result = self.reconciler.reconcile(
            prior, self.source.iter_releases(), self.source.iter_assets
        )

        summary = MirrorSummary(
            releases=len(result.releases),
            assets=sum(len(release.assets) for release in result.releases),
        )

        for pending in result.pending:
            summary.bytes_downloaded += self._download(pending)
            summary.downloaded += 1

        summary.build_ids_recorded = self.reconciler.backfill_build_ids(result.releases)

        write_index_file(index_path, result.releases)
        summary.elapsed = time.time() - start_time
        self._log_summary(summary)
        return summary

    def _download(self, pending: PendingDownload) -> int:
        release, asset = pending.release, pending.asset
        logger.info(
            "Downloading %s for release %s to %s", asset.name, release.tag, pending.path
        )
        data = download_asset(self.session, asset.url)
        return write_file(pending.path, data, asset.mode)

    def _log_summary(self, summary: MirrorSummary) -> None:
        logger.info("Mirror run completed")
        logger.info("Time taken: %.2f seconds", summary.elapsed)
        logger.info(
            "Releases: %d indexed, %d assets, %d downloaded (%d bytes), %d build IDs recorded",
            summary.releases,
            summary.assets,
            summary.downloaded,
            summary.bytes_downloaded,
            summary.build_ids_recorded,
        )
