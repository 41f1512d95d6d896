"""
Command-line interface for the word classification experiment.

Provides commands for:
- Running a session in the terminal
- Fetching the word list
- Resubmitting saved results
- Exporting saved results
- Running the development stub of the backend services
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from config.settings import AppConfig, get_config

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lexrt",
        description="Word classification reaction-time experiment",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--base-url",
        help="Base URL of the word-list and results services"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default from LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run a session in the terminal")
    run_parser.add_argument(
        "--submit-practice",
        action="store_true",
        help="Submit practice records together with the scored ones"
    )

    # Words command
    words_parser = subparsers.add_parser("words", help="Fetch and save the word list")
    words_parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/words.json"),
        help="Output file"
    )

    # Resubmit command
    resubmit_parser = subparsers.add_parser("resubmit", help="Submit a saved results backup")
    resubmit_parser.add_argument("backup", type=Path, help="Backup JSON file")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export a saved results backup")
    export_parser.add_argument("backup", type=Path, help="Backup JSON file")
    export_parser.add_argument(
        "--format",
        choices=["csv", "json"],
        default="csv",
        help="Export format"
    )
    export_parser.add_argument(
        "--output",
        type=Path,
        help="Output file (default: next to the backup)"
    )

    # Stub command
    stub_parser = subparsers.add_parser("stub", help="Run the development stub services")
    stub_parser.add_argument("--host", help="Host address")
    stub_parser.add_argument("--port", type=int, help="Port number")
    stub_parser.add_argument("--words", type=Path, help="Word list JSON file to serve")
    stub_parser.add_argument(
        "--fail-words",
        type=int,
        default=0,
        help="Answer the first N word-list requests with 503"
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = get_config()
    setup_logging(args.log_level or cfg.log_level)

    if args.base_url:
        cfg.service.base_url = args.base_url

    if args.command is None:
        parser.print_help()
        return 0

    # Route to appropriate handler
    handlers = {
        "run": run_session,
        "words": run_words,
        "resubmit": run_resubmit,
        "export": run_export,
        "stub": run_stub,
    }
    return handlers[args.command](args, cfg)


def run_session(args, cfg: AppConfig) -> int:
    """Run one participant session in the terminal."""
    from .console import ConsoleSession
    from .experiment.phases import PhaseController
    from .services import ExperimentApiClient, ResultsSubmitter, SessionLoader

    client = ExperimentApiClient()
    controller = PhaseController(
        loader=SessionLoader(client),
        submitter=ResultsSubmitter.from_config(client),
        submit_practice_records=args.submit_practice or cfg.session.submit_practice_records,
    )
    logger.info(f"Starting session against {client.base_url}")

    try:
        completed = ConsoleSession(controller, keys=cfg.keys).run()
    except KeyboardInterrupt:
        controller.teardown()
        completed = False
    finally:
        client.close()

    if not completed:
        logger.warning(f"Session ended in phase {controller.phase.value} ({len(controller.recorder)} trials recorded)")
    return 0 if completed else 1


def run_words(args, cfg: AppConfig) -> int:
    """Fetch the word list with the usual retry policy and save it."""
    from .errors import LoadFailure
    from .services import SessionLoader
    from .utils.helpers import save_json

    loader = SessionLoader()
    try:
        stimulus_set = loader.load()
    except LoadFailure as e:
        logger.error(str(e))
        return 1

    save_json(stimulus_set.to_dict(), args.output)
    return 0


def run_resubmit(args, cfg: AppConfig) -> int:
    """Submit a results payload previously saved after a failed submission."""
    from .errors import SubmissionFailure
    from .services import ResultsSubmitter, payload_from_dict
    from .utils.helpers import load_json

    payload = payload_from_dict(load_json(args.backup))
    # Do not write a second backup of the same payload
    submitter = ResultsSubmitter(backup_dir=None)
    try:
        submitter.submit_payload(payload)
    except SubmissionFailure as e:
        logger.error(f"Resubmission failed: {e}")
        return 1

    logger.info(f"Resubmitted {args.backup}")
    return 0


def run_export(args, cfg: AppConfig) -> int:
    """Export a saved results payload."""
    from .export import export_records
    from .services import payload_from_dict
    from .utils.helpers import load_json

    payload = payload_from_dict(load_json(args.backup))
    output = args.output or args.backup.with_suffix(f".{args.format}")
    export_records(payload.records, output, format=args.format, participant_id=payload.participant_id)
    return 0


def run_stub(args, cfg: AppConfig) -> int:
    """Run the development stub server."""
    from .stub_server import create_app, load_words_file

    words_file = args.words or cfg.stub.words_file
    words = load_words_file(words_file) if words_file else None
    host = args.host or cfg.stub.host
    port = args.port or cfg.stub.port

    app = create_app(words=words, results_dir=cfg.stub.results_dir, words_failures=args.fail_words)
    logger.info(f"Starting stub services on {host}:{port}")
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
