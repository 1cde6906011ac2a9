# src/assetmirror/cli.py

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional

from assetmirror.config import MirrorConfig, load_config_file, read_token
from assetmirror.exceptions import AssetMirrorError
from assetmirror.log_utils import add_file_logging, logger, set_log_level
from assetmirror.mirror import MirrorOrchestrator
from assetmirror.utils import build_session


def get_version() -> str:
    try:
        return version("asset-mirror")
    except PackageNotFoundError:
        return "devel"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-mirror",
        description="Mirror a GitHub repository's releases and assets to a local directory",
    )
    parser.add_argument(
        "-T",
        "--token-file",
        dest="token_file",
        metavar="PATH",
        help="path to file containing your GitHub token",
    )
    parser.add_argument(
        "-O",
        "--github-owner",
        dest="github_owner",
        metavar="OWNER",
        help="name of GitHub repository's owner user or owner organization",
    )
    parser.add_argument(
        "-R",
        "--github-repo",
        dest="github_repo",
        metavar="REPO",
        help="name of GitHub repository",
    )
    parser.add_argument(
        "-d",
        "--output-dir",
        dest="output_dir",
        metavar="DIR",
        help="path to the output directory",
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        metavar="PATH",
        help="YAML configuration file (defaults to the per-user config location, if present)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        metavar="LEVEL",
        help="console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--log-dir",
        dest="log_dir",
        metavar="DIR",
        help="also write a rotating log file into this directory",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_version()}",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> MirrorConfig:
    """
    Combine the config file with command-line flags; flags win.

    Raises:
        ConfigurationError: If the config file is unusable or a required value is missing.
    """
    config = load_config_file(args.config_file).merged(
        {
            "token_file": args.token_file,
            "github_owner": args.github_owner,
            "github_repo": args.github_repo,
            "output_dir": args.output_dir,
            "log_level": args.log_level,
            "log_dir": args.log_dir,
        }
    )
    if config.log_level:
        set_log_level(config.log_level)
    if config.log_dir:
        add_file_logging(config.log_dir, config.log_level or "INFO")
    config.validate()
    return config


def run(config: MirrorConfig) -> None:
    token = read_token(config.token_file)
    session = build_session(token)
    try:
        summary = MirrorOrchestrator(config, session).run()
    finally:
        session.close()
    logger.debug("Run summary: %s", summary.as_dict())


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the asset-mirror command-line interface.

    Any AssetMirrorError raised while configuring or running the mirror is
    logged and ends the process with exit status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
        run(config)
    except AssetMirrorError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
