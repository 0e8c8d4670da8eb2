"""feedfetch - fetch NuGet packages and their dependency closure into a local directory.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import ExitCodes, Constants
from common.errors import FetchError, InvalidVersionError, RepositoryUnavailable
from common.logging_utils import extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_cli_overrides, setup_logging
from fetcher import LocalInstallTree, PackageFetcher
from registry import open_repository
from versioning.parser import parse_cli_token

logger = logging.getLogger(__name__)


def export_json(reports, path=None, quiet=False):
    """Writes the fetch reports as JSON to ``path`` or stdout.

    Args:
        reports (list): One entry per requested package.
        path (str, optional): File path to export the JSON.
        quiet (bool): Suppress console output when no path is given.
    """
    payload = json.dumps(reports, indent=2)
    if path:
        try:
            with open(path, "w", encoding="utf-8") as file:
                file.write(payload + "\n")
            logging.info("JSON report has been successfully exported at: %s", path)
        except OSError as e:
            logging.error("JSON report couldn't be written to disk: %s", e)
            return False
    elif not quiet:
        print(payload)
    return True


def fetch_all(fetcher, requests_):
    """Fetch each request; return (reports, exit_code)."""
    reports = []
    exit_code = ExitCodes.SUCCESS
    for req in requests_:
        report = fetcher.fetch(req.identifier, req.requested_version)
        if report is None:
            logging.error("No package found for %s", req.raw_token)
            reports.append({"request": req.raw_token, "found": False})
            exit_code = ExitCodes.NOT_FOUND
            continue
        entry = {"request": req.raw_token, "found": True}
        entry.update(report.to_dict())
        reports.append(entry)
    return reports, exit_code


def run(argv=None):
    """Parse arguments, fetch every requested package and return an exit code."""
    args = parse_args(argv)
    setup_logging(args)
    apply_cli_overrides(args)
    logging.info("Arguments parsed.")

    try:
        requests_ = [parse_cli_token(token) for token in args.PACKAGES]
    except InvalidVersionError as e:
        logging.error("Invalid package argument: %s", e)
        return ExitCodes.FILE_ERROR.value

    if is_debug_enabled(logger):
        logger.debug("Fetch configuration", extra=extra_context(
            event="config", component="cli", source=Constants.DEFAULT_SOURCE,
            target=args.OUTPUT_DIR, strict_prerelease=Constants.STRICT_PRERELEASE,
            honor_ranges=Constants.HONOR_DEPENDENCY_RANGES
        ))

    fetcher = PackageFetcher(open_repository(Constants.DEFAULT_SOURCE), LocalInstallTree(args.OUTPUT_DIR))
    try:
        reports, exit_code = fetch_all(fetcher, requests_)
    except RepositoryUnavailable as e:
        logging.error("Package source unavailable: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except FetchError as e:
        logging.error("Fetch failed: %s", e)
        return ExitCodes.PACKAGE_ERROR.value

    if not export_json(reports, args.REPORT, args.QUIET):
        return ExitCodes.FILE_ERROR.value
    return exit_code.value


def main():
    """Main function of the program."""
    sys.exit(run())


if __name__ == "__main__":
    main()
