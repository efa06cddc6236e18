#!/usr/bin/env python3
"""
Command-line entry point for the FitTrack API client

Subcommands:

* ``fittrack login EMAIL``: authenticate and persist the token.
* ``fittrack logout``: drop stored credentials.
* ``fittrack whoami``: show the stored user and token lifetime.
* ``fittrack timers list|add|rename|delete``: manage rest timers.
* ``fittrack settings [--sound on|off ...]``: local rest-timer alert settings.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys

from .application_context import ApplicationContext
from .config import get_timer_settings, load_settings, update_timer_settings
from .errors.handling import log_error
from .errors.internal import InternalError, SessionExpiredError
from .logging_config import configure_logging
from .utils import format_duration

PASSWORD_ENV = "FITTRACK_PASSWORD"


def _on_off(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("on", "true", "1", "yes"):
        return True
    if lowered in ("off", "false", "0", "no"):
        return False
    raise argparse.ArgumentTypeError(f"expected on/off, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fittrack", description="FitTrack API client"
    )
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--api-url", help="Override the API base URL")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Authenticate with email and password")
    login.add_argument("email")
    sub.add_parser("logout", help="Drop stored credentials")
    sub.add_parser("whoami", help="Show the authenticated user")

    timers = sub.add_parser("timers", help="Manage rest timers")
    timers_sub = timers.add_subparsers(dest="timers_command", required=True)
    list_cmd = timers_sub.add_parser("list", help="List rest timers")
    list_cmd.add_argument("--refresh", action="store_true", help="Bypass the cache")
    add_cmd = timers_sub.add_parser("add", help="Create a rest timer")
    add_cmd.add_argument("name")
    add_cmd.add_argument("seconds", type=int)
    rename_cmd = timers_sub.add_parser("rename", help="Update a rest timer")
    rename_cmd.add_argument("timer_id")
    rename_cmd.add_argument("name")
    rename_cmd.add_argument("seconds", type=int)
    delete_cmd = timers_sub.add_parser("delete", help="Delete a rest timer")
    delete_cmd.add_argument("timer_id")

    settings = sub.add_parser("settings", help="Show or change rest-timer alerts")
    settings.add_argument("--notifications", type=_on_off)
    settings.add_argument("--vibration", type=_on_off)
    settings.add_argument("--sound", type=_on_off)
    return parser


async def _run_timers(ctx: ApplicationContext, args: argparse.Namespace) -> None:
    service = ctx.rest_timers
    if args.timers_command == "list":
        timers = await service.list_timers(force_refresh=args.refresh)
        if not timers:
            print("No rest timers")
        for timer in timers:
            marker = "*" if timer.is_default else " "
            print(f"{marker} {timer.id}  {timer.name:<20} {format_duration(timer.seconds)}")
    elif args.timers_command == "add":
        timer = await service.create_timer(args.name, args.seconds)
        print(f"Created {timer.id} ({timer.name}, {format_duration(timer.seconds)})")
    elif args.timers_command == "rename":
        timer = await service.update_timer(args.timer_id, args.name, args.seconds)
        print(f"Updated {timer.id} ({timer.name}, {format_duration(timer.seconds)})")
    elif args.timers_command == "delete":
        await service.delete_timer(args.timer_id)
        print(f"Deleted {args.timer_id}")


async def _run_command(ctx: ApplicationContext, args: argparse.Namespace) -> int:
    if args.command == "login":
        password = os.environ.get(PASSWORD_ENV) or getpass.getpass("Password: ")
        user = await ctx.login(args.email, password)
        print(f"Logged in as {user.email if user else args.email}")
    elif args.command == "logout":
        await ctx.logout()
        print("Logged out")
    elif args.command == "whoami":
        if ctx.token_store.access_token is None:
            print("Not logged in")
            return 1
        user = await ctx.validate_session()
        remaining = ctx.refresh_gate.remaining_seconds()
        print(f"{user.name or user.email} <{user.email}> token expires in {format_duration(remaining)}")
    elif args.command == "timers":
        await _run_timers(ctx, args)
    elif args.command == "settings":
        changes = {
            field: value
            for field, value in (
                ("notifications_enabled", args.notifications),
                ("vibration_enabled", args.vibration),
                ("sound_enabled", args.sound),
            )
            if value is not None
        }
        current = (
            update_timer_settings(ctx.storage, **changes)
            if changes
            else get_timer_settings(ctx.storage)
        )
        for field, value in current.model_dump().items():
            print(f"{field}: {'on' if value else 'off'}")
    return 0


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(debug=args.debug)
    try:
        settings = load_settings(args.config, {"api_base_url": args.api_url})
    except ValueError as e:
        logging.error(f"❌ {e}")
        return 2

    ctx = await ApplicationContext.create(settings)
    try:
        return await _run_command(ctx, args)
    except SessionExpiredError:
        print("Session expired, please log in again", file=sys.stderr)
        return 1
    except InternalError as e:
        log_error(f"Command '{args.command}' failed", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        await ctx.shutdown()


def run() -> None:
    """Synchronous entry point for the console script."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
