"""
asset-mirror Pipeline

Fetches remote release metadata, reconciles it with the persisted index and
brings the local mirror up to date.

Core Components:
- github_source: paginated GitHub release and asset listings
- buildid: build-ID extraction from Go executables
- reconcile: merging remote listings into the index
- orchestrator: one complete mirror run
"""

from .buildid import GoBuildIDExtractor, parse_build_id
from .github_source import (
    GithubReleaseSource,
    RemoteAsset,
    RemoteRelease,
    create_remote_asset,
    create_remote_release,
)
from .orchestrator import MirrorOrchestrator, MirrorSummary
from .reconcile import IndexReconciler, PendingDownload, ReconcileResult

__all__ = [
    # Remote source
    "GithubReleaseSource",
    "RemoteRelease",
    "RemoteAsset",
    "create_remote_release",
    "create_remote_asset",
    # Build IDs
    "GoBuildIDExtractor",
    "parse_build_id",
    # Reconciliation
    "IndexReconciler",
    "PendingDownload",
    "ReconcileResult",
    # Orchestration
    "MirrorOrchestrator",
    "MirrorSummary",
]
