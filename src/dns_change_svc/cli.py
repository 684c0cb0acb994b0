#!/usr/bin/env python3
"""
CLI tool for interacting with the DNS change service.

Usage:
    python -m dns_change_svc.cli --user-id 4 myapply
    python -m dns_change_svc.cli --user-id 4 myapprove
    python -m dns_change_svc.cli --user-id 4 accept 7
    python -m dns_change_svc.cli --user-id 4 reject 7
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx
from colorama import Fore, Style, init as colorama_init

API_PREFIX = "/api/v1/domain/change"

STATUS_COLORS = {
    "pending": Fore.YELLOW,
    "approved": Fore.GREEN,
    "rejected": Fore.RED,
}


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def print_json(data: Any, indent: int = 2) -> None:
    print(json.dumps(data, indent=indent, default=str))


def format_change(change: dict) -> str:
    """One-line summary of a change request."""
    status = change.get("action_status", "")
    domain = (change.get("domain") or {}).get("name", change.get("domain_id"))
    user = (change.get("user") or {}).get("username", change.get("user_id"))
    try:
        record = json.loads(change.get("operation", "{}")).get("record", {})
        target = f"{record.get('type', '?')} {record.get('name', '?')} -> {record.get('value', '?')}"
    except (ValueError, AttributeError):
        target = colorize("(unreadable operation)", Style.DIM)
    return (
        f"#{change.get('id')} "
        f"{colorize(status.ljust(8), STATUS_COLORS.get(status, ''))} "
        f"{colorize(str(domain), Fore.CYAN)} {change.get('action_type', '')}: {target} "
        f"{colorize(f'(by {user})', Style.DIM)}"
    )


def _report_error(response: httpx.Response) -> int:
    print(colorize(f"Error: {response.status_code}", Fore.RED), file=sys.stderr)
    try:
        print(response.json().get("errors", response.text), file=sys.stderr)
    except ValueError:
        print(response.text, file=sys.stderr)
    return 1


async def cmd_list(args) -> int:
    """List own or approvable change requests."""
    url = f"{args.base_url}{API_PREFIX}/{args.command}"

    async with httpx.AsyncClient() as client:
        response = await client.get(url, headers=_get_headers(args))

    if response.status_code != 200:
        return _report_error(response)

    changes = response.json().get("data", [])
    if args.json:
        print_json(changes)
        return 0

    title = "My requests" if args.command == "myapply" else "Awaiting my decision"
    print(colorize(f"\n{title}:", Style.BRIGHT))
    for change in changes:
        print(f"  {format_change(change)}")
    if not changes:
        print(colorize("  (none)", Style.DIM))
    return 0


async def cmd_decide(args) -> int:
    """Accept or reject a change request."""
    url = f"{args.base_url}{API_PREFIX}/{args.change_id}"

    async with httpx.AsyncClient() as client:
        response = await client.put(url, params={"opt": args.command}, headers=_get_headers(args))

    if response.status_code != 200:
        return _report_error(response)

    change = response.json().get("data", {})
    if args.json:
        print_json(change)
    else:
        print(format_change(change))
    return 0


def _get_headers(args) -> dict:
    """Build request headers."""
    headers = {}
    if args.token:
        headers["Authorization"] = f"Bearer {args.token}"
    if args.user_id:
        headers["X-User-ID"] = str(args.user_id)
    return headers


def main():
    colorama_init()

    parser = argparse.ArgumentParser(
        description="CLI tool for the DNS change service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--base-url",
        default="http://localhost:8060",
        help="Base URL of the DNS change service",
    )
    parser.add_argument("--token", help="Bearer token carrying the caller's sub claim")
    parser.add_argument("--user-id", type=int, help="Caller user id (sent as X-User-ID)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("myapply", help="List change requests I submitted")
    subparsers.add_parser("myapprove", help="List change requests I can decide")

    accept_parser = subparsers.add_parser("accept", help="Approve a change request")
    accept_parser.add_argument("change_id", type=int, help="Change request id")

    reject_parser = subparsers.add_parser("reject", help="Reject a change request")
    reject_parser.add_argument("change_id", type=int, help="Change request id")

    args = parser.parse_args()

    if args.command in ("myapply", "myapprove"):
        return asyncio.run(cmd_list(args))
    elif args.command in ("accept", "reject"):
        return asyncio.run(cmd_decide(args))
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
