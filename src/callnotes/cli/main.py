"""Main CLI entry point for callnotes.

Parses the command line, configures logging and runs the generation
pipeline. Usage errors exit with status 2 before anything is loaded; a
workspace that cannot be loaded exits with status 1 and writes nothing.
"""

import argparse
import logging
import os
import sys

from callnotes import __version__
from callnotes.application.config import DEFAULT_OUT_DIRNAME, GeneratorConfig
from callnotes.application.errors import UsageError, WorkspaceLoadError
from callnotes.application.pipeline import Pipeline
from callnotes.util.application.console import Console

LOG = logging.getLogger(__name__)


def _positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("invalid int value: %r" % value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1, got %d" % number)
    return number


def create_parser():
    """Create the argument parser for the callnotes command."""
    parser = argparse.ArgumentParser(
        prog="callnotes",
        description="Generate call-graph annotated Markdown notes for a code base",
    )

    parser.add_argument("project", help="Workspace directory or Python file to analyze")

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--per-file",
        action="store_true",
        help="Write one note per source file, with one section per method",
    )
    mode.add_argument(
        "--per-method",
        "--per-unit",
        dest="per_method",
        action="store_true",
        help="Write one note per method",
    )

    parser.add_argument(
        "--out",
        "-o",
        default="",
        help="Output directory (default: ./%s)" % DEFAULT_OUT_DIRNAME,
    )
    parser.add_argument(
        "--workers",
        "-j",
        type=_positive_int,
        default=1,
        help="Threads used to extract documents (default: 1)",
    )
    parser.add_argument(
        "--guess-receivers",
        action="store_true",
        help="Treat calls on receivers of unknown type as ambiguous calls "
        "to every project method with that name",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Print phase timings and memory usage"
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version="callnotes %s" % __version__)

    return parser


def configure_logging(verbose=False, debug=False):
    level = logging.WARNING
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def check_project(path):
    if not os.path.exists(path):
        raise UsageError("project path '%s' not found" % path)


def main(argv=None, out=None):
    """Run the callnotes command.

    Args:
        argv: Command-line arguments without the program name (default:
            ``sys.argv[1:]``).
        out: Stream for progress and summary lines (default: sys.stdout).

    Returns:
        int: Exit code (0 for success, 1 for a workspace load error).
        Usage errors exit with status 2 through argparse.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        check_project(args.project)
    except UsageError as exc:
        parser.error(str(exc))

    configure_logging(args.verbose, args.debug)

    config = GeneratorConfig.from_args(args)
    console = Console(out=out, verbose=config.verbose)
    console.output("Project: %s" % os.path.abspath(config.project_path))
    console.output("Output  : %s" % config.out_dir)
    console.output("Mode    : %s" % config.mode.value)

    try:
        summary = Pipeline(config, console=console).run()
    except WorkspaceLoadError as exc:
        LOG.debug("workspace load failed", exc_info=True)
        print("error: %s" % exc, file=sys.stderr)
        return 1

    console.output(summary.describe())
    return 0


if __name__ == "__main__":
    sys.exit(main())
