"""
faims2mzml - FAIMS CV Splitter

Converts Thermo .raw files with FAIMS scans into a series of .mzML files,
creating one .mzML file for each FAIMS compensation voltage (CV) value.

Entry point for the command line tool.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_LOG_FILE, Config, load_config, validate_config
from .files import find_input_files
from .notifications import Notifier
from .processor import FaimsProcessor, FileResult, ProcessorError

__version__ = "1.0.0"

logger = logging.getLogger("faims2mzml")


def setup_logging(config: Config) -> None:
    """Configure logging based on config."""
    log_format = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True
    )


def build_parser(defaults: Config) -> argparse.ArgumentParser:
    """Command line parser; defaults come from the environment config."""
    parser = argparse.ArgumentParser(
        prog="faims2mzml",
        description=(
            "Convert a Thermo .raw file with FAIMS scans into a series of .mzML files, "
            "creating one .mzML file for each FAIMS compensation voltage (CV) value"
        ),
    )
    parser.add_argument(
        "input_path",
        help="The name (or path) of a Thermo .raw file to convert; can contain the wildcard character *"
    )
    parser.add_argument(
        "-o", "--output-dir", type=Path,
        help="Output directory; defaults to the directory of each input file"
    )
    parser.add_argument(
        "--timeout", type=float, default=defaults.timeout_minutes, dest="timeout_minutes",
        help="Maximum runtime (in minutes) for each call to msconvert; 0 for no limit (default: %(default)s)"
    )
    parser.add_argument(
        "-s", "--recurse", action="store_true",
        help="Process files in the input directory and in its subdirectories"
    )
    parser.add_argument(
        "-r", "--recurse-levels", type=int, default=1, dest="max_levels",
        help="Levels to recurse with --recurse; 0 to recurse infinitely, 1 to not recurse"
    )
    parser.add_argument(
        "--ignore-errors", action="store_true",
        help="Keep going after a file fails when processing several files"
    )
    parser.add_argument(
        "--log", action="store_true",
        help=f"Log messages to a file ({DEFAULT_LOG_FILE} unless --log-file is given)"
    )
    parser.add_argument("--log-file", default=defaults.log_file, help="File path for logging messages")
    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level (default: %(default)s)")
    parser.add_argument(
        "--preview", action="store_true",
        help="Preview the commands that would be run"
    )
    parser.add_argument(
        "--renumber-scans", action=argparse.BooleanOptionalAction, default=defaults.renumber_scans,
        help="Renumber the scans in each output file so they start at 1 and are contiguous (default: %(default)s)"
    )
    parser.add_argument("--scan-start", type=int, default=0, help="First scan number to convert")
    parser.add_argument("--scan-end", type=int, default=0, help="Last scan number to convert")
    parser.add_argument(
        "--msconvert", type=Path, default=defaults.msconvert_path, dest="msconvert_path",
        help="Path to msconvert (or the directory that contains it)"
    )
    parser.add_argument(
        "--msconvert-launcher", default=defaults.msconvert_launcher,
        help='Command used to launch msconvert, e.g. "wine"'
    )
    parser.add_argument("--webhook-url", default=defaults.webhook_url, help="Webhook to notify after each file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> Config:
    """Build the Config from environment defaults and command line options."""
    defaults = load_config()
    args = build_parser(defaults).parse_args(argv)

    log_file = args.log_file
    if args.log and not log_file:
        log_file = DEFAULT_LOG_FILE

    return replace(
        defaults,
        input_path=args.input_path,
        output_dir=args.output_dir,
        recurse=args.recurse,
        max_levels=args.max_levels,
        ignore_errors=args.ignore_errors,
        msconvert_path=args.msconvert_path,
        msconvert_launcher=args.msconvert_launcher,
        timeout_minutes=args.timeout_minutes,
        preview=args.preview,
        renumber_scans=args.renumber_scans,
        scan_start=args.scan_start,
        scan_end=args.scan_end,
        log_level=args.log_level.upper(),
        log_file=log_file,
        webhook_url=args.webhook_url,
    )


def run(config: Config, processor: FaimsProcessor, notifier: Optional[Notifier] = None) -> bool:
    """Process every input file. Returns True only if all files succeeded."""
    input_files = find_input_files(config.input_path, config.recurse, config.max_levels)

    if not input_files:
        logger.error(f"No files found matching {config.input_path}")
        return False

    success_overall = True
    for input_file in input_files:
        result: FileResult = processor.process_file(input_file)

        if notifier:
            if result.success:
                notifier.notify_file_converted(result.input_path, result.files_created)
            else:
                notifier.notify_file_failed(result.input_path, result.error or "One or more CV values failed")

        if result.success:
            continue

        success_overall = False
        if len(input_files) > 1 and config.ignore_errors:
            logger.warning(f"Error processing {input_file.name}; continuing with the next file")
            continue

        if len(input_files) > 1:
            logger.error(f"Error processing {input_file.name}; stopping (use --ignore-errors to continue)")
        break

    return success_overall


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    config = parse_args(argv)

    if not validate_config(config):
        return 1

    setup_logging(config)

    try:
        processor = FaimsProcessor(config)
    except ProcessorError as e:
        logger.error(str(e))
        return 1

    notifier = Notifier(config.webhook_url) if config.webhook_url else None

    try:
        success = run(config, processor, notifier)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
