#!/usr/bin/env python3

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import config
from .errors import UnpackError
from .manifest import load_pack
from .progress import NullProgress, ProgressSink, RichProgress
from .unpacker import Unpacker, UnpackReport


def setup_logging(log_file: Optional[str] = None, debug: bool = False) -> logging.Logger:
    logger = logging.getLogger("atlas_unpack")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.LOG_FORMAT)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO if debug else logging.ERROR)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    # File handler
    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="atlas-unpack",
        description="Unpack the textures of a sprite-sheet atlas into individual PNG files.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Required arguments
    parser.add_argument(
        "manifest",
        type=str,
        help="Path to the atlas manifest (.json).",
    )

    # Optional arguments
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output directory (default: a directory named after the manifest, beside it).",
    )
    parser.add_argument(
        "-w", "--workers",
        type=_positive_int,
        default=config.default_workers(),
        help="Number of concurrent workers.",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress bars.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write a debug log to this file.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with additional output.",
    )

    args = parser.parse_args(argv)

    if Path(args.manifest).suffix.lower() != config.MANIFEST_SUFFIX:
        parser.error("input file must be a .json file")

    return args


def print_summary(console: Console, report: UnpackReport, output_dir: Path):
    table = Table(title="Atlas Unpack Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Sheets", str(report.sheets))
    table.add_row("Textures", str(report.textures))
    table.add_row("Written", str(report.written))
    table.add_row("Failed", str(report.failed))
    table.add_row("Output directory", str(output_dir))

    console.print(table)


def main(argv: Optional[List[str]] = None) -> int:
    console = Console()
    args = parse_arguments(argv)
    logger = setup_logging(args.log_file, args.debug)

    try:
        pack = load_pack(args.manifest)
        output_dir = config.output_dir_for(args.manifest, args.output)

        progress: ProgressSink = NullProgress()
        if console.is_terminal and not args.no_progress:
            progress = RichProgress(console)

        unpacker = Unpacker(
            pack=pack,
            input_dir=config.input_dir_for(args.manifest),
            output_dir=output_dir,
            workers=args.workers,
            progress=progress,
        )
        report = unpacker.run()

    except UnpackError as e:
        console.print(f"[red]Error: {escape(str(e))}", soft_wrap=True)
        logger.debug("Unpack failed", exc_info=True)
        return 1

    print_summary(console, report, output_dir)
    if report.error is not None:
        console.print(f"[red]Error: {escape(str(report.error))}", soft_wrap=True)
        return 1

    console.print(f"[green]Extracted {report.written} textures from {report.sheets} sheets")
    return 0


if __name__ == "__main__":
    exit(main())
