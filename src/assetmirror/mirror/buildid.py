import os
import re
import subprocess
from typing import List, Optional

from assetmirror.constants import BUILD_ID_LINE_PATTERN, GO_BINARY
from assetmirror.log_utils import logger

_BUILD_ID_LINE_RX = re.compile(BUILD_ID_LINE_PATTERN)


def parse_build_id(output: str) -> Optional[str]:
    """Return the VCS revision from `go version -m` output, if any line carries one."""
    for line in output.split("\n"):
        match = _BUILD_ID_LINE_RX.match(line)
        if match:
            return match.group(1)
    return None


class GoBuildIDExtractor:
    """
    Reads the embedded VCS revision of a Go executable with ``go version -m``.

    Any failure to run the tool, a non-zero exit, or output without a
    revision line counts as "not found".
    """

    def __init__(self, go_binary: str = GO_BINARY):
        self.go_binary = go_binary

    def command_for(self, asset_path: str) -> List[str]:
        return [self.go_binary, "version", "-m", asset_path]

    def extract(self, release_dir: str, asset_name: str) -> Optional[str]:
        asset_path = os.path.join(release_dir, asset_name)
        try:
            result = subprocess.run(
                self.command_for(asset_path),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            logger.debug("Could not run %s for %s: %s", self.go_binary, asset_path, exc)
            return None

        if result.returncode != 0:
            logger.debug(
                "%s version -m exited with %d for %s",
                self.go_binary,
                result.returncode,
                asset_path,
            )
            return None

        build_id = parse_build_id(result.stdout)
        if build_id is None:
            logger.debug("No build ID found in %s", asset_path)
        return build_id
