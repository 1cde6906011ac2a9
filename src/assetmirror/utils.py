# src/assetmirror/utils.py
import importlib.metadata
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from assetmirror.constants import (
    API_CALL_DELAY,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_TIMEOUT,
    GITHUB_API_VERSION,
    USER_AGENT_FORMAT,
)
from assetmirror.exceptions import NetworkError, UnexpectedStatusError
from assetmirror.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `asset-mirror/{version} (+https://...)`, where `{version}` is the
        installed package version or `devel` if it cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("asset-mirror")
        except importlib.metadata.PackageNotFoundError:
            app_version = "devel"

        _USER_AGENT_CACHE = USER_AGENT_FORMAT.format(version=app_version)

    return _USER_AGENT_CACHE


def build_session(github_token: str) -> requests.Session:
    """
    Create the HTTP session shared by API calls and asset downloads.

    Every request carries the bearer token and User-Agent. Connection errors and
    transient status codes are retried by urllib3 with exponential backoff;
    the final response is returned as-is.

    Parameters:
        github_token (str): GitHub access token.

    Returns:
        requests.Session: A configured session; the caller is responsible for closing it.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": get_user_agent(),
            "Authorization": f"Bearer {github_token}",
        }
    )
    retry_strategy: Retry = Retry(
        total=DEFAULT_CONNECT_RETRIES,
        connect=DEFAULT_CONNECT_RETRIES,
        read=DEFAULT_CONNECT_RETRIES,
        status=DEFAULT_CONNECT_RETRIES,
        backoff_factor=DEFAULT_BACKOFF_FACTOR,
        status_forcelist=[408, 429, 500, 502, 503, 504],
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    """
    Parse an HTTP rate-limit header value into an integer remaining count.

    Returns:
        Optional[int]: The parsed integer value if successful, `None` otherwise.
    """
    try:
        if isinstance(header_value, str) and header_value.isdigit():
            return int(header_value)
        elif isinstance(header_value, (int, float)):
            return int(header_value)
    except (ValueError, TypeError):
        pass
    return None


def make_github_api_request(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[int] = None,
) -> requests.Response:
    """
    Perform a GitHub API GET request and log rate-limit information.

    Parameters:
        session (requests.Session): Session from build_session().
        url (str): GitHub API URL to request.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[int]): Request timeout in seconds; defaults to GITHUB_API_TIMEOUT.

    Returns:
        requests.Response: The successful HTTP response.

    Raises:
        requests.HTTPError: For HTTP error responses; a 403 caused by rate limiting
            carries a descriptive message.
        requests.RequestException: For lower-level network or request errors.
    """
    headers = {
        "Accept": GITHUB_ACCEPT_HEADER,
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }

    try:
        logger.debug("Making GitHub API request: %s params=%s", url, params)
        response = session.get(
            url,
            headers=headers,
            params=params,
            timeout=timeout or GITHUB_API_TIMEOUT,
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 403:
            remaining = _parse_rate_limit_header(
                e.response.headers.get("X-RateLimit-Remaining")
            )
            if remaining == 0:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                reset_time_str = (
                    datetime.fromtimestamp(int(reset_time), timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                    if reset_time
                    else "unknown"
                )
                error_msg = f"GitHub API rate limit exceeded. Resets at {reset_time_str}."
            else:
                error_msg = "GitHub API access forbidden"
            raise requests.HTTPError(error_msg, response=e.response) from None
        raise
    finally:
        # Small delay to be respectful to GitHub API, even on errors
        time.sleep(API_CALL_DELAY)

    remaining = _parse_rate_limit_header(response.headers.get("X-RateLimit-Remaining"))
    if remaining is not None:
        logger.debug("GitHub API rate-limit remaining: %d", remaining)
        if remaining <= 10:
            logger.warning(
                "GitHub API rate limit running low: %d requests remaining", remaining
            )

    return response


def download_asset(session: requests.Session, url: str) -> bytes:
    """
    Download the full body of `url`.

    Parameters:
        session (requests.Session): Session from build_session().
        url (str): Asset download URL.

    Returns:
        bytes: The response body.

    Raises:
        UnexpectedStatusError: If the final response status is not 200 OK.
        NetworkError: If the request or reading the body fails.
    """
    start_time = time.time()
    try:
        with session.get(url, stream=True, timeout=DEFAULT_REQUEST_TIMEOUT) as response:
            logger.debug(
                "Received HTTP response status code: %s for URL: %s",
                response.status_code,
                url,
            )
            if response.status_code != 200:
                raise UnexpectedStatusError(
                    f"unexpected HTTP status code {response.status_code}",
                    status_code=response.status_code,
                    url=url,
                )
            chunks = [
                chunk
                for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE)
                if chunk
            ]
    except requests.RequestException as e:
        raise NetworkError("HTTP request failed", url=url, details=str(e)) from e

    data = b"".join(chunks)
    logger.debug(
        "Downloaded %d bytes from %s in %.2fs", len(data), url, time.time() - start_time
    )
    return data
