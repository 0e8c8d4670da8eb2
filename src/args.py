"""Argument parsing functionality for feedfetch."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="feedfetch",
        description=(
            "feedfetch - fetch NuGet packages and their dependencies into a local directory"
        ),
        add_help=True,
    )

    parser.add_argument("-p", "--package",
                        dest="PACKAGES",
                        help="Package to fetch as Id or Id:Version (repeatable)",
                        action="append", type=str,
                        required=True)
    parser.add_argument("-s", "--source",
                        dest="SOURCE",
                        help="Package source: NuGet V3 service index URL or a directory of .nupkg files",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output-dir",
                        dest="OUTPUT_DIR",
                        help="Directory packages are installed into (default: ./packages)",
                        action="store",
                        type=str,
                        default="packages")
    parser.add_argument("--report",
                        dest="REPORT",
                        help="Write the JSON fetch report to this file instead of stdout",
                        action="store",
                        type=str)
    parser.add_argument("--strict-prerelease",
                        dest="STRICT_PRERELEASE",
                        help="Fail when a released package depends on a pre-release package",
                        action="store_true")
    parser.add_argument("--honor-ranges",
                        dest="HONOR_RANGES",
                        help="Select dependency versions inside declared version ranges",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not print the report to the console.",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
