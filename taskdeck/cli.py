"""
TaskDeck CLI — run and inspect the task manager.

Commands:
- taskdeck run     — Start the Reflex dev server
- taskdeck check   — Validate configuration and probe the backend
- taskdeck tasks   — Print the current task list as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from taskdeck.engine.errors import BackendRequestError, ConfigError

logger = logging.getLogger("taskdeck.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="taskdeck",
        description="TaskDeck — task manager on a managed backend",
    )
    parser.add_argument(
        "--config", default=None, help="Path to taskdeck.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # taskdeck run
    run_parser = subparsers.add_parser("run", help="Start the Reflex dev server")
    run_parser.add_argument("--host", default="0.0.0.0", help="Backend host to bind (default: 0.0.0.0)")
    run_parser.add_argument("--port", type=int, default=3000, help="Frontend port (default: 3000)")
    run_parser.add_argument("--backend-port", type=int, default=8000, help="Backend port (default: 8000)")
    run_parser.add_argument("--env", choices=["dev", "prod"], default="dev", help="Environment (default: dev)")

    # taskdeck check
    subparsers.add_parser("check", help="Validate config and probe the backend")

    # taskdeck tasks
    tasks_parser = subparsers.add_parser("tasks", help="Print the task list as JSON")
    tasks_parser.add_argument("--token", help="Access token (default: anonymous key)")

    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "tasks":
        return cmd_tasks(args)
    else:
        parser.print_help()
        return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Start the Reflex dev server."""
    import subprocess

    print("Starting TaskDeck (Reflex) server...")
    try:
        cmd = [
            "reflex", "run",
            "--backend-host", args.host,
            "--frontend-port", str(args.port),
            "--backend-port", str(args.backend_port),
            "--env", args.env,
        ]
        result = subprocess.run(cmd, check=True)
        return result.returncode
    except FileNotFoundError:
        print("[ERROR] 'reflex' command not found. Install: pip install reflex")
        return 1
    except subprocess.CalledProcessError as e:
        return e.returncode
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Validate config and issue one List request."""
    from taskdeck.backend import create_backend
    from taskdeck.engine.config import load_config

    try:
        config = load_config(args.config)
        config.backend.require_credentials()
    except ConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1
    print(f"[OK] config valid ({config.environment}, backend {config.backend.url})")

    async def probe() -> int:
        backend = create_backend(config)
        try:
            tasks = await backend.tasks.list_tasks()
        finally:
            await backend.aclose()
        return len(tasks)

    try:
        count = asyncio.run(probe())
    except BackendRequestError as e:
        print(f"[ERROR] backend unreachable: {e.message}")
        return 1
    print(f"[OK] backend reachable ({count} task(s) visible)")
    return 0


def cmd_tasks(args: argparse.Namespace) -> int:
    """Print all tasks the given token can see."""
    from taskdeck.backend import create_backend
    from taskdeck.engine.config import load_config

    try:
        config = load_config(args.config)
        backend = create_backend(config)
    except ConfigError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1

    async def fetch():
        scoped = backend.scoped(args.token)
        try:
            return await scoped.tasks.list_tasks()
        finally:
            await backend.aclose()

    try:
        tasks = asyncio.run(fetch())
    except BackendRequestError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1

    print(json.dumps([t.model_dump(mode="json") for t in tasks], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
