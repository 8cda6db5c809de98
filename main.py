"""
Lead Inbox Command Line Entry Point

Runs pipeline operations from the command line and prints the JSON
result envelope. Exit code is 0 on success and 1 on failure.

Usage:
    python main.py sync
    python main.py classify <email_id>
    python main.py reply <email_id> --owner <owner_id>
    python main.py init-db
    python main.py serve --port 8000
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.config.settings import PipelineSettings, get_settings
from src.email_processing.results import OperationResult
from src.email_processing.service import EmailPipelineService
from src.utils.logging_utils import configure_safe_logging

logger = logging.getLogger("lead_inbox")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Lead inbox pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Sync all active mailbox accounts")

    classify_parser = subparsers.add_parser("classify", help="Classify one stored email")
    classify_parser.add_argument("email_id", help="Stored email id")

    reply_parser = subparsers.add_parser("reply", help="Generate a reply suggestion")
    reply_parser.add_argument("email_id", help="Stored email id")
    reply_parser.add_argument("--owner", required=True, help="Id of the requesting user")

    subparsers.add_parser("init-db", help="Create database tables")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    return parser.parse_args(argv)


async def run_command(args: argparse.Namespace, service: EmailPipelineService) -> OperationResult:
    """Dispatch a parsed pipeline command to the service."""
    if args.command == "sync":
        return await service.sync_all()
    if args.command == "classify":
        return await service.classify_email(args.email_id)
    if args.command == "reply":
        return await service.generate_reply(args.email_id, args.owner)
    raise ValueError(f"Unknown command: {args.command}")


def run_server(args: argparse.Namespace) -> int:
    import uvicorn

    logger.info(f"Starting API server on {args.host}:{args.port}")
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_arguments(argv)

    if args.command == "serve":
        configure_safe_logging(level="INFO")
        return run_server(args)

    try:
        settings: PipelineSettings = get_settings()
    except ValidationError as e:
        configure_safe_logging(level="INFO")
        logger.error(f"Invalid configuration: {e}")
        print(OperationResult.fail("CONFIGURATION_ERROR", "Invalid configuration").model_dump_json(indent=2))
        return 1

    configure_safe_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

    service: Optional[EmailPipelineService] = None
    try:
        service = EmailPipelineService.from_settings(settings)
        service.database.init_db()
        if args.command == "init-db":
            result = OperationResult.ok({"database_url": service.database.engine.url.render_as_string()})
        else:
            result = asyncio.run(run_command(args, service))
    except (ImportError, RuntimeError, SQLAlchemyError) as e:
        logger.error(f"Configuration error: {e}")
        result = OperationResult.fail("CONFIGURATION_ERROR", str(e))
    finally:
        if service is not None:
            service.database.dispose()

    print(result.model_dump_json(indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
