"""
Contest Console Main Entry Point

Operator CLI over the contest workflow orchestrator.

    python -m contest_console.main health
    python -m contest_console.main clients
    python -m contest_console.main projects <client>
    python -m contest_console.main status <client> <project>
    python -m contest_console.main winners <client> <project>
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from core.config import LoggingConfig

from .factory import close_factory, get_factory
from .protocols import ContestConsoleError

# Configure logging
_logging_config = LoggingConfig.from_env()
logging.basicConfig(
    level=getattr(logging, _logging_config.log_level.upper(), logging.INFO),
    format=_logging_config.log_format,
    filename=_logging_config.log_file or None,
)
if not _logging_config.log_http_requests:
    logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

SERVICE_NAME = _logging_config.service_name


def _print(data) -> None:
    print(json.dumps(data, indent=2, default=str))


async def cmd_health(args: argparse.Namespace) -> int:
    orchestrator = (await get_factory()).orchestrator
    healthy = await orchestrator.check_health()
    _print({"healthy": healthy, "details": orchestrator.health})
    return 0 if healthy else 1


async def cmd_clients(args: argparse.Namespace) -> int:
    orchestrator = (await get_factory()).orchestrator
    clients = await orchestrator.refresh_clients()
    error = orchestrator.operations.error("clients")
    if error:
        logger.error(f"Failed to list clients: {error}")
        return 1
    _print([c.model_dump(mode="json") for c in clients])
    return 0


async def cmd_projects(args: argparse.Namespace) -> int:
    orchestrator = (await get_factory()).orchestrator
    await orchestrator.select_client(args.client)
    error = orchestrator.operations.error("projects")
    if error:
        logger.error(f"Failed to list projects of {args.client}: {error}")
        return 1
    _print([p.model_dump(mode="json") for p in orchestrator.projects])
    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    orchestrator = (await get_factory()).orchestrator
    await orchestrator.select_client(args.client)
    await orchestrator.select_project(args.project)

    status = orchestrator.processing_status
    _print({
        "client": args.client,
        "project": args.project,
        "rules_mode": orchestrator.rules_mode.value,
        "rules_warning": orchestrator.rules.warning,
        "processing": status.model_dump(mode="json", by_alias=True) if status else None,
        "raw_entries": orchestrator.raw_entries_count,
        "validated_files": [f.key for f in orchestrator.validated_files],
        "winners": len(orchestrator.winners),
        "can_process_data": orchestrator.can_process_data,
        "can_select_winners": orchestrator.can_select_winners,
        "receipt_keyword": orchestrator.receipts.keyword,
        "errors": orchestrator.operations.errors(),
    })
    return 0


async def cmd_winners(args: argparse.Namespace) -> int:
    orchestrator = (await get_factory()).orchestrator
    await orchestrator.select_client(args.client)
    await orchestrator.select_project(args.project)
    _print([
        {"prize": w.prize_label, **w.model_dump(mode="json")}
        for w in orchestrator.winners
    ])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="contest-console", description="Contest console CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("health", help="Probe the backend gateway").set_defaults(func=cmd_health)
    sub.add_parser("clients", help="List client buckets").set_defaults(func=cmd_clients)

    projects = sub.add_parser("projects", help="List projects of a client")
    projects.add_argument("client")
    projects.set_defaults(func=cmd_projects)

    for name, func, help_text in (
        ("status", cmd_status, "Show rules and processing state of a project"),
        ("winners", cmd_winners, "List selected winners of a project"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("client")
        cmd.add_argument("project")
        cmd.set_defaults(func=func)

    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        return await args.func(args)
    except ContestConsoleError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        await close_factory()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI"""
    args = build_parser().parse_args(argv)
    logger.debug(f"Starting {SERVICE_NAME} command {args.command}")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
