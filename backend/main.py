"""gedcom-matchapid - add Ancestry _APIDs to an original GEDCOM file.

Usage: gedcom-matchapid [OPTIONS] <original.ged >out.ged
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from gedcom_utils import (
    concatenate_continuations,
    export_gedcom_content,
    parse_gedcom_content,
    parse_gedcom_file,
)
from matchapid import ApidMerger, MatchApidResult
from matchapid.config import STDIO, MatchApidOptions, load_options

logger = logging.getLogger("matchapid")

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_USAGE = 2


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gedcom-matchapid",
        description="Add _APIDs from an Ancestry GEDCOM file to an original GEDCOM file.",
    )
    parser.add_argument("original", nargs="?", default=None,
                        help="Original GEDCOM file (default: stdin).")
    parser.add_argument("-g", "--gedcom", metavar="FILE",
                        help="Ancestry GEDCOM file to extract from.")
    parser.add_argument("-a", "--add-citations", action="store_true", default=None,
                        help="If original citation doesn't exist, add it.")
    parser.add_argument("-o", "--output", metavar="FILE", default=None,
                        help="Write the merged GEDCOM here (default: stdout).")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-v", "--verbose", action="store_true", help="Log every _APID added.")
    group.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")
    return parser


def read_original(options: MatchApidOptions):
    if options.original == STDIO:
        return parse_gedcom_content(sys.stdin.read())
    return parse_gedcom_file(options.original)


def write_output(options: MatchApidOptions, content: str) -> None:
    if options.output == STDIO:
        sys.stdout.write(content)
        sys.stdout.flush()
        return
    with open(options.output, "w", encoding="utf-8") as f:
        f.write(content)


def match_apid(options: MatchApidOptions) -> tuple[str, MatchApidResult]:
    """Run one full merge and return the merged GEDCOM text and the run summary."""
    original = read_original(options)

    logger.info(f"Reading Ancestry GEDCOM file: {options.gedcom}")
    ancestry = parse_gedcom_file(str(options.gedcom))
    folded = concatenate_continuations(ancestry)
    logger.debug(f"Concatenated {folded} continuation lines in Ancestry file")

    result = ApidMerger(original, ancestry, add_citations=options.add_citations).run()
    return export_gedcom_content(original), result


def cli(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        options = load_options(
            gedcom=args.gedcom,
            add_citations=args.add_citations,
            original=args.original,
            output=args.output,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            logger.error(f"Invalid option '{field}': {error['msg']}")
        if any(error["type"] == "missing" for error in e.errors()):
            logger.error("Missing required -g Ancestry GEDCOM file.")
        return EXIT_USAGE

    try:
        content, _ = match_apid(options)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read GEDCOM input: {e}")
        return EXIT_INPUT_ERROR

    write_output(options, content)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(cli())
