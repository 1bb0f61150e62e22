"""Command-line interface for vcfprep."""

import argparse
import datetime
import logging
import shlex
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_config
from .pipeline import run_pipeline
from .pipeline_core.error_handling import ConfigurationError, PipelineError
from .version import __version__

logger = logging.getLogger("vcfprep")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _HelpAndFailAction(argparse.Action):
    """Print the help text and exit with status 1."""

    def __init__(
        self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None
    ):
        super().__init__(
            option_strings=option_strings, dest=dest, default=default, nargs=0, help=help
        )

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        parser.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the vcfprep CLI."""
    parser = argparse.ArgumentParser(
        prog="vcfprep",
        description=(
            "vcfprep: Preprocess VCF files - merge additional inputs, keep PASS "
            "SNPs/indels, normalize and atomize, remove duplicates, sort and index."
        ),
        epilog="The final output will be <prefix>.vcf.gz and <prefix>.vcf.gz.tbi",
        add_help=False,
    )

    # Core Input/Output
    io_group = parser.add_argument_group("Core Input/Output")
    io_group.add_argument(
        "-i",
        "--input",
        dest="input_vcf",
        metavar="VCF",
        help="Input VCF (bgzipped) with .tbi index (required)",
    )
    io_group.add_argument(
        "-f",
        "--additional-vcf",
        dest="additional_vcfs",
        metavar="VCF",
        action="append",
        default=[],
        help=(
            "Additional input VCF to merge into the main input (bgzipped with .tbi "
            "index). Can be specified multiple times."
        ),
    )
    io_group.add_argument(
        "-r",
        "--reference",
        metavar="FASTA",
        help="Reference FASTA with .fai index (required)",
    )
    io_group.add_argument(
        "-o",
        "--output-prefix",
        metavar="PREFIX",
        default=None,
        help="Prefix for the output VCF (default: output)",
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "-h", "--help", action=_HelpAndFailAction, help="Show this help and exit"
    )
    general_group.add_argument(
        "--version",
        action="version",
        version=f"vcfprep {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=list(LOG_LEVEL_MAP),
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to a JSON configuration file merged over the packaged defaults",
        default=None,
    )

    return parser


def parse_args(args_list: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    args_list : list of str, optional
        Arguments to parse (default: sys.argv[1:])

    Returns
    -------
    argparse.Namespace
        Parsed arguments
    """
    parser = create_parser()
    return parser.parse_args(args_list)


def _configure_logging(args: argparse.Namespace) -> None:
    logger.setLevel(LOG_LEVEL_MAP[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(LOG_LEVEL_MAP[args.log_level])
        fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run main entry point for the vcfprep CLI.

    Steps:
        1. Parse arguments (-h and unknown flags print usage and exit nonzero).
        2. Configure logging and load config.
        3. Run the pipeline; validation happens before any file is written.
        4. Map errors to exit codes: 0 success, 1 failure, 128+N on signal N.
    """
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )

    parser = create_parser()
    args: argparse.Namespace = parser.parse_args(argv)
    _configure_logging(args)

    start_time = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    invocation = sys.argv[:1] + (argv if argv is not None else sys.argv[1:])
    logger.debug(f"Command line invocation: {shlex.join(invocation)}")
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg: Dict[str, Any] = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    logger.debug(f"Configuration loaded: {cfg}")

    try:
        run_pipeline(args, cfg)
    except ConfigurationError as e:
        sys.stderr.write(f"Error: {e}\n")
        parser.print_usage(sys.stderr)
        return 1
    except PipelineError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    except KeyboardInterrupt:
        sys.stderr.write("Error: interrupted\n")
        return 128 + signal.SIGINT
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    elapsed = datetime.datetime.now() - start_time
    logger.info(f"Run finished in {elapsed.total_seconds():.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
