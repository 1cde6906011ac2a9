"""
GitHub Release Source

Lists a repository's releases and each release's assets through the GitHub
REST API, following the ``Link: rel="next"`` pagination header. Any failed
page request raises RemoteError; there is no partial listing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import requests

from assetmirror.constants import (
    ASSETS_PER_PAGE,
    GITHUB_API_BASE,
    GITHUB_RELEASE_ASSETS_PATH,
    GITHUB_RELEASES_PATH,
    RELEASES_PER_PAGE,
)
from assetmirror.exceptions import RemoteError
from assetmirror.log_utils import logger
from assetmirror.utils import make_github_api_request


@dataclass
class RemoteRelease:
    """Release summary as returned by the releases listing."""

    id: int
    tag: str
    name: str = ""
    body: str = ""
    draft: bool = False
    tarball_url: str = ""
    zipball_url: str = ""


@dataclass
class RemoteAsset:
    """Asset summary as returned by the release assets listing."""

    id: int
    name: str
    url: str


def create_remote_release(release_data: Dict[str, Any]) -> RemoteRelease:
    """
    Create a RemoteRelease from GitHub API release data.

    Raises:
        KeyError, TypeError, ValueError: If required fields are missing or malformed.
    """
    return RemoteRelease(
        id=int(release_data["id"]),
        tag=str(release_data["tag_name"]),
        name=release_data.get("name") or "",
        body=release_data.get("body") or "",
        draft=bool(release_data.get("draft", False)),
        tarball_url=release_data.get("tarball_url") or "",
        zipball_url=release_data.get("zipball_url") or "",
    )


def create_remote_asset(asset_data: Dict[str, Any]) -> RemoteAsset:
    return RemoteAsset(
        id=int(asset_data["id"]),
        name=str(asset_data["name"]),
        url=asset_data.get("browser_download_url") or "",
    )


class GithubReleaseSource:
    """
    Paginated access to one repository's releases.

    Usage:
        source = GithubReleaseSource("owner", "repo", session)
        for release in source.iter_releases():
            for asset in source.iter_assets(release.id):
                ...
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        session: requests.Session,
        api_base: str = GITHUB_API_BASE,
    ):
        """
        Parameters:
            owner (str): Repository owner (user or organisation).
            repo (str): Repository name.
            session (requests.Session): Authenticated session from build_session().
            api_base (str): API root URL, overridable for GitHub Enterprise.
        """
        self.owner = owner
        self.repo = repo
        self.session = session
        self.api_base = api_base.rstrip("/")

    @property
    def releases_url(self) -> str:
        return self.api_base + GITHUB_RELEASES_PATH.format(
            owner=self.owner, repo=self.repo
        )

    def assets_url(self, release_id: int) -> str:
        return self.api_base + GITHUB_RELEASE_ASSETS_PATH.format(
            owner=self.owner, repo=self.repo, release_id=release_id
        )

    def iter_releases(self) -> Iterator[RemoteRelease]:
        """Yield every release, drafts included, page by page."""
        for item in self._paginate(self.releases_url, RELEASES_PER_PAGE, "releases"):
            yield self._parse(item, create_remote_release, self.releases_url)

    def iter_assets(self, release_id: int) -> Iterator[RemoteAsset]:
        """Yield every asset of the release with the given id."""
        url = self.assets_url(release_id)
        for item in self._paginate(url, ASSETS_PER_PAGE, "release assets"):
            yield self._parse(item, create_remote_asset, url)

    @staticmethod
    def _parse(item: Any, parser, endpoint: str):
        try:
            return parser(item)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteError(
                "malformed entry in GitHub API response",
                endpoint=endpoint,
                details=str(exc),
            ) from exc

    def _paginate(
        self, url: str, per_page: int, what: str
    ) -> Iterator[Dict[str, Any]]:
        """
        Yield the items of every page of a GitHub list endpoint.

        Parameters:
            url (str): First-page URL.
            per_page (int): Page size requested from the API.
            what (str): Human-readable name of the listing, used in logs and errors.

        Raises:
            RemoteError: If any page request fails or returns something other than a JSON list.
        """
        next_url: Optional[str] = url
        params: Optional[Dict[str, Any]] = {"per_page": per_page, "page": 1}
        page = 1
        while next_url:
            try:
                response = make_github_api_request(self.session, next_url, params=params)
                items = response.json()
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                raise RemoteError(
                    f"failed to list GitHub {what}",
                    endpoint=next_url,
                    status_code=status,
                    page=page,
                    details=str(exc),
                ) from exc
            except (requests.RequestException, ValueError) as exc:
                raise RemoteError(
                    f"failed to list GitHub {what}",
                    endpoint=next_url,
                    page=page,
                    details=str(exc),
                ) from exc

            if not isinstance(items, list):
                raise RemoteError(
                    f"invalid {what} data received from GitHub API",
                    endpoint=next_url,
                    page=page,
                    details=f"expected a list, got {type(items).__name__}",
                )

            logger.debug("Fetched %d %s (page %d) from %s", len(items), what, page, url)
            yield from items

            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None
            page += 1
