"""
Constants and configuration values for asset-mirror.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com"
GITHUB_RELEASES_PATH = "/repos/{owner}/{repo}/releases"
GITHUB_RELEASE_ASSETS_PATH = "/repos/{owner}/{repo}/releases/{release_id}/assets"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT_HEADER = "application/vnd.github+json"

USER_AGENT_FORMAT = (
    "asset-mirror/{version} (+https://github.com/chronos-tachyon/github-asset-mirror)"
)

# Network timeouts and delays (in seconds)
GITHUB_API_TIMEOUT = 10
API_CALL_DELAY = 0.1  # Small delay to be respectful to GitHub API

# Pagination
RELEASES_PER_PAGE = 10
ASSETS_PER_PAGE = 10

# Download configuration defaults
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_BACKOFF_FACTOR = 0.3
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192

# File and directory names
INDEX_FILE_NAME = "index.json"
TEMP_FILE_PREFIX = ".tmp."
TEMP_FILE_SUFFIX = "~"
SOURCE_TARBALL_NAME = "source.tar.gz"
SOURCE_ZIPBALL_NAME = "source.zip"

# File modes
EXECUTABLE_FILE_MODE = 0o777
REGULAR_FILE_MODE = 0o666
INDEX_FILE_MODE = 0o666

# Build-ID extraction
GO_BINARY = "go"
BUILD_ID_LENGTH = 40
BUILD_ID_LINE_PATTERN = r"^\tbuild\tvcs\.revision=([0-9a-f]{40})\s*$"

# Configuration
CONFIG_APP_NAME = "assetmirror"
CONFIG_FILE_NAME = "assetmirror.yaml"

# Logging configuration
LOGGER_NAME = "assetmirror"
LOG_LEVEL_ENV_VAR = "ASSETMIRROR_LOG_LEVEL"
LOG_FILE_NAME = "assetmirror.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
