from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from treesync.adapters.wire import encode_patch
from treesync.app import apply_patch_files
from treesync.config import ConfigurationError, configure_logging, get_log_level
from treesync.domain.model import MalformedPatchError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INVALID_INPUT = 2
EXIT_PARTIAL = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply patches to a live tree snapshot")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Apply a patch and report what was not applied")
    apply.add_argument(
        "--tree",
        type=Path,
        required=True,
        help="JSON snapshot of the live tree to apply the patch to",
    )
    apply.add_argument(
        "--patch",
        type=Path,
        required=True,
        help="JSON patch with removed, added and updated entries",
    )
    apply.add_argument(
        "--output",
        type=Path,
        help="Write the unapplied patch here instead of standard output",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point."""
    try:
        configure_logging(level=get_log_level())
    except ConfigurationError:
        configure_logging()
        log.exception("Invalid logging configuration")
        return EXIT_INVALID_INPUT

    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        outcome = apply_patch_files(parsed_args.tree, parsed_args.patch)
    except MalformedPatchError:
        log.exception("Patch is malformed")
        return EXIT_FATAL
    except (OSError, ValueError):
        log.exception("Could not read input")
        return EXIT_INVALID_INPUT

    rendered = json.dumps(encode_patch(outcome.unapplied), indent=2, sort_keys=True)
    if parsed_args.output is not None:
        parsed_args.output.write_text(rendered + "\n", encoding="utf-8")
    else:
        sys.stdout.write(rendered + "\n")

    if outcome.unapplied.is_empty():
        log.info("Patch applied cleanly")
        return EXIT_OK
    return EXIT_PARTIAL


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
