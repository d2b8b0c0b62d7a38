"""Administrative session commands.

Usage:
    sessiongate-admin revoke <credential>
    sessiongate-admin password-changed <subject_id> [--at 2026-01-01T00:00:00+00:00]
    sessiongate-admin sweep

Commands write to the shared revocation database configured by
DATABASE_URL; the effect is visible to every API process on its next
request.
"""

import argparse
import asyncio
import sys
from datetime import datetime

from sessiongate.core import async_session_maker, engine, settings, setup_logging
from sessiongate.core.clock import as_utc
from sessiongate.services.rejections import InvalidCredentialError
from sessiongate.services.runtime import SessionRuntime, build_sql_runtime


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sessiongate-admin", description="Revoke sessions and maintain the revocation ledger"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    revoke = sub.add_parser("revoke", help="Revoke one credential (admin action)")
    revoke.add_argument("credential", help="The bearer credential to revoke")

    changed = sub.add_parser(
        "password-changed", help="Void every credential of a subject issued before a time"
    )
    changed.add_argument("subject_id", help="Subject whose sessions are voided")
    changed.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="Cutoff time (ISO 8601, defaults to now; naive values are UTC)",
    )

    sub.add_parser("sweep", help="Delete revocation entries whose credentials have expired")
    return parser


async def run(args: argparse.Namespace, runtime: SessionRuntime) -> int:
    """Execute a parsed command. Returns the process exit code."""
    sessions = runtime.sessions

    if args.command == "revoke":
        try:
            revoked = await sessions.admin_revoke(args.credential)
        except InvalidCredentialError:
            print("ERROR: credential signature is invalid", file=sys.stderr)
            return 1
        print("Revoked" if revoked else "Nothing to revoke (already revoked or expired)")
        return 0

    if args.command == "password-changed":
        at = await sessions.password_changed(
            args.subject_id, as_utc(args.at) if args.at else None
        )
        print(f"Sessions for {args.subject_id} issued before {at.isoformat()} are void")
        return 0

    if args.command == "sweep":
        removed = await sessions.sweep_expired()
        print(f"Removed {removed} expired revocation entries")
        return 0

    return 2


async def _main(args: argparse.Namespace) -> int:
    setup_logging(level=settings.log_level, format_type="dev")
    try:
        return await run(args, build_sql_runtime(settings, async_session_maker))
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(_main(args)))


if __name__ == "__main__":
    main()
