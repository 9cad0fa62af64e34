"""Stream lines of text through a seqpipe pipeline from the command line."""
from typing import Iterator, List, Optional
import logging
import argparse
import os
import re
import sys
from seqpipe.pipe.core import Pipeline, source
from seqpipe.util import config
from seqpipe.util.constants import SEQPIPE_ENCODING, DEFAULT_ENCODING

logger = logging.getLogger(__name__)


@source(encoding=DEFAULT_ENCODING)
def read_lines(paths: List[str], encoding: str) -> Iterator[str]:
    """Yield the lines of each file in turn, without line terminators.

    The path "-" stands for standard input.  Each file is opened only when
    the pipeline reaches it and is closed as soon as the pipeline stops.
    """
    for path in paths:
        if path == "-":
            for line in sys.stdin:
                yield line.rstrip("\r\n")
        else:
            logger.debug(f"Opening {path}")
            with open(path, encoding=encoding) as f:
                for line in f:
                    yield line.rstrip("\r\n")


def _matches(pattern: re.Pattern):
    return lambda line: pattern.search(line) is not None


STAGES = {
    "where": lambda pipe, pattern: pipe.where(_matches(pattern)),
    "exclude": lambda pipe, pattern: pipe.where(lambda line: pattern.search(line) is None),
    "skip": lambda pipe, n: pipe.skip(n),
    "take": lambda pipe, n: pipe.take(n),
    "skip_while": lambda pipe, pattern: pipe.skip_while(_matches(pattern)),
    "take_while": lambda pipe, pattern: pipe.take_while(_matches(pattern)),
    "upper": lambda pipe, _: pipe.select(str.upper),
    "lower": lambda pipe, _: pipe.select(str.lower),
    "strip": lambda pipe, _: pipe.select(str.strip),
}


class StageAction(argparse.Action):
    """Record a stage option together with its position on the command line."""

    def __call__(self, parser, namespace, values, option_string=None):
        stages = list(getattr(namespace, "stages", None) or [])
        stages.append((self.dest, values))
        namespace.stages = stages


def build_pipeline(pipeline: Pipeline, stages: List[tuple]) -> Pipeline:
    """Apply (name, argument) stage options to pipeline, in order."""
    for name, arg in stages:
        pipeline = STAGES[name](pipeline, arg)
    return pipeline


def _regex(text: str) -> re.Pattern:
    try:
        return re.compile(text)
    except re.error as e:
        raise argparse.ArgumentTypeError(f"invalid regular expression {text!r}: {e}")


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return value


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seqpipe",
        description="Stream lines from files (or stdin) through filters and print the result. "
                    "Stage options are applied in the order they are given.")
    parser.add_argument("files", nargs="*", default=["-"], help="Files to read. '-' or no files reads standard input.")
    parser.add_argument("--where", dest="where", action=StageAction, type=_regex, metavar="REGEX", help="Keep lines matching REGEX.")
    parser.add_argument("--exclude", dest="exclude", action=StageAction, type=_regex, metavar="REGEX", help="Drop lines matching REGEX.")
    parser.add_argument("--skip", dest="skip", action=StageAction, type=_non_negative, metavar="N", help="Drop the first N lines.")
    parser.add_argument("--take", dest="take", action=StageAction, type=_non_negative, metavar="N", help="Keep the first N lines and stop reading.")
    parser.add_argument("--skip_while", dest="skip_while", action=StageAction, type=_regex, metavar="REGEX", help="Drop lines while they match REGEX.")
    parser.add_argument("--take_while", dest="take_while", action=StageAction, type=_regex, metavar="REGEX", help="Keep lines while they match REGEX, then stop reading.")
    parser.add_argument("--upper", dest="upper", action=StageAction, nargs=0, help="Convert lines to upper case.")
    parser.add_argument("--lower", dest="lower", action=StageAction, nargs=0, help="Convert lines to lower case.")
    parser.add_argument("--strip", dest="strip", action=StageAction, nargs=0, help="Remove leading and trailing whitespace.")
    parser.add_argument("--count", action="store_true", help="Print the number of resulting lines instead of the lines.")
    parser.add_argument("--encoding", type=str, default=None, help="Text encoding of the input files.")
    parser.add_argument("--logger_levels", type=str, help="Logger levels in format 'logger:level,logger:level,...'")
    parser.add_argument("--logger_files", type=str, help="Logger files in format 'logger:file,logger:file,...'")
    parser.set_defaults(stages=None)
    return parser


def main(argv: Optional[List[str]] = None):
    """Run the seqpipe command.

    Command Line Arguments:
        files: Files to read, '-' for standard input (the default)
        --where/--exclude/--skip/--take/--skip_while/--take_while/--upper/--lower/--strip:
            Pipeline stages, applied in command line order
        --count: Print the number of resulting lines
        --encoding: Input encoding, defaulting to the "encoding" config key or utf-8
        --logger_levels: Logger levels in format 'logger:level,logger:level,...'
        --logger_files: Logger files in format 'logger:file,logger:file,...'

    Exits with status 1 if an input file cannot be read, or silently with
    status 1 if the reader of the output closes it early.
    """
    args = make_parser().parse_args(argv)

    config.configure_logger(args.logger_levels, logger_files=args.logger_files)
    encoding = args.encoding or config.get_config().get(SEQPIPE_ENCODING, DEFAULT_ENCODING)

    pipeline = build_pipeline(read_lines(args.files, encoding=encoding), args.stages or [])
    logger.debug(f"Running stages {[name for name, _ in args.stages or []]} over {args.files}")

    try:
        if args.count:
            print(pipeline.fold(lambda _, n: n + 1, 0))
        else:
            pipeline.for_each(print)
    except BrokenPipeError:
        # The reader of stdout went away.  Point stdout at devnull so the
        # interpreter does not report the closed pipe again on exit.
        logger.debug("Output closed by reader")
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        sys.exit(1)
    except OSError as e:
        print(f"seqpipe: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
