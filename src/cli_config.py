"""CLI configuration: load settings and apply command-line overrides.

Precedence, lowest to highest: Constants defaults, YAML config file,
FEEDFETCH_* environment variables, CLI flags.
"""

from __future__ import annotations

import logging
import os

from constants import Constants, load_settings
from common.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def setup_logging(args) -> None:
    """Configure logging from CLI arguments (--loglevel, --logfile)."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ["FEEDFETCH_LOG_LEVEL"] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def apply_cli_overrides(args) -> None:
    """Load config/env settings, then apply CLI flags on top."""
    config_path = getattr(args, "CONFIG", None)
    if config_path and not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
    load_settings(config_path)

    if getattr(args, "SOURCE", None):
        Constants.DEFAULT_SOURCE = args.SOURCE
    if getattr(args, "STRICT_PRERELEASE", False):
        Constants.STRICT_PRERELEASE = True
    if getattr(args, "HONOR_RANGES", False):
        Constants.HONOR_DEPENDENCY_RANGES = True
