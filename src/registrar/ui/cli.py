from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from registrar.app import add_foundation, list_foundations, run_registration
from registrar.config import ConfigurationError, configure_logging
from registrar.domain.errors import RegistrarRunError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {parsed}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep registered projects in sync with foundation data files"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log reconciliation decisions at debug level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Reconcile every registered foundation once")
    run_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help="Foundations processed at the same time (defaults to config)",
    )
    run_parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=None,
        help="Seconds allowed per foundation before it is cancelled (defaults to config)",
    )

    foundation = subparsers.add_parser("foundation", help="Foundation management commands")
    foundation_sub = foundation.add_subparsers(dest="foundation_command", required=True)
    foundation_add = foundation_sub.add_parser("add", help="Register or update a foundation")
    foundation_add.add_argument(
        "--id",
        dest="foundation_id",
        type=str,
        required=True,
        help="Foundation identifier",
    )
    foundation_add.add_argument(
        "--url",
        dest="data_url",
        type=str,
        required=True,
        help="URL of the foundation's YAML data file",
    )
    foundation_add.add_argument(
        "--display-name",
        type=str,
        help="Optional human readable name",
    )
    foundation_sub.add_parser("list", help="List registered foundations")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "run":
            run_registration(
                concurrency=parsed_args.concurrency,
                foundation_timeout_seconds=parsed_args.timeout,
            )
        elif parsed_args.command == "foundation" and parsed_args.foundation_command == "add":
            foundation = add_foundation(
                parsed_args.foundation_id,
                parsed_args.data_url,
                display_name=parsed_args.display_name,
            )
            log.info("Saved foundation %s (%s)", foundation.foundation_id, foundation.data_url)
        elif parsed_args.command == "foundation" and parsed_args.foundation_command == "list":
            for foundation in list_foundations():
                log.info("%s\t%s", foundation.foundation_id, foundation.data_url)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except RegistrarRunError as exc:
        log.error(  # noqa: TRY400
            "Registration run failed for %s foundation(s):\n%s",
            len(exc.foundation_ids),
            exc,
        )
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during registration")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
