"""Argument parsing functionality for the WebJar deployer."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="deploywebjar",
        description=(
            "Deploy an npm or Bower package as a WebJar"
        ),
        add_help=True,
    )

    parser.add_argument("webjar_type",
                        metavar="type",
                        help="WebJar type, i.e: npm, bower, bowergithub",
                        type=str.lower,
                        choices=Constants.SUPPORTED_TYPES)
    parser.add_argument("name_or_urlish",
                        metavar="name",
                        help="Package name, GitHub org/repo or GitHub URL",
                        type=str)
    parser.add_argument("upstream_version",
                        metavar="version",
                        help="Upstream version or git tag",
                        type=str)

    parser.add_argument("--deps",
                        dest="DEPLOY_DEPENDENCIES",
                        help="Deploy the transitive dependencies first",
                        action="store_true")
    parser.add_argument("--force",
                        dest="FORCE",
                        help="Deploy even if the version has already been released",
                        action="store_true")
    parser.add_argument("--release-version",
                        dest="RELEASE_VERSION",
                        help="Maven version to release under (default: the upstream version)",
                        action="store",
                        type=str)
    parser.add_argument("--source-uri",
                        dest="SOURCE_URI",
                        help="Source connection URI overriding the package metadata",
                        action="store",
                        type=str)
    parser.add_argument("--license",
                        dest="LICENSE",
                        help="Comma separated licenses overriding the package metadata",
                        action="store",
                        type=str)
    parser.add_argument("--create-only",
                        dest="CREATE_ONLY",
                        help="Only build the WebJar; nothing is checked or published",
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to write the jar to with --create-only (default: <artifact>.jar)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store",
                        type=str)
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

    return parser.parse_args(argv)
