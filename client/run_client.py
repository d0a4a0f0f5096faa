#!/usr/bin/env python3
"""
StudyCore terminal client.

Drives the auth state machine from the command line and shows where the
user ends up.

Usage:
    uv run python run_client.py status                     # Show auth state and route
    uv run python run_client.py sign-in ada@example.com    # Prompts for the password
    uv run python run_client.py sign-up ada@example.com --role tutor
    uv run python run_client.py sign-out
    uv run python run_client.py forgot-password ada@example.com
    uv run python run_client.py resend-verification ada@example.com
    uv run python run_client.py reset                      # Reset auth state now
    uv run python run_client.py reset --next-start         # Reset on next start-up
    uv run python run_client.py clear-data                 # Reset and purge local data

Configuration:
    Set SUPABASE_URL and SUPABASE_ANON_KEY in your .env file.
"""

import argparse
import asyncio
import getpass
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from app.dependencies import get_container
from modules.auth.models import AuthResult, SignInResult
from modules.auth.service import AuthService
from modules.profiles.models import SELF_SERVICE_ROLES, Profile
from shared.config import get_settings
from shared.models import Session
from shared.observability import setup_logging

console = Console()


def show_status(
    auth: AuthService,
    router_history: list[str],
    profile: Optional[Profile] = None,
) -> None:
    """Print the composite auth state, the displayed profile and the navigation trail."""
    state = auth.use_auth_state()
    session = auth.session

    table = Table(title="Auth State")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Signed in as", _signed_in_as(session))
    table.add_row("Authenticated", _yes_no(state.is_authenticated))
    table.add_row("Email verified", _yes_no(state.is_verified))
    table.add_row("Has profile", _yes_no(state.has_profile))
    table.add_row("Profile complete", _yes_no(state.is_profile_complete))
    if state.profile_unavailable:
        table.add_row("Profile", "[yellow]unavailable[/yellow]")
    if profile is not None:
        table.add_row("Role", profile.role.value)
        table.add_row("Name", profile.full_name or "[dim]not set[/dim]")
        if profile.awaiting_approval:
            table.add_row("Approval", "[yellow]pending[/yellow]")
    table.add_row("Route", " -> ".join(router_history) or "[dim]none[/dim]")

    console.print(table)


def _signed_in_as(session: Optional[Session]) -> str:
    if session is None:
        return "[dim]nobody[/dim]"
    return session.email or f"user {session.user_id}"


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


def report(result: AuthResult | SignInResult, action: str) -> bool:
    """Print an operation result. Returns whether it succeeded."""
    if result.success:
        console.print(f"[green]✓[/green] {action}")
        return True
    if result.error is not None:
        console.print(f"[red]✗[/red] {action} failed: {result.error.message}")
    elif isinstance(result, SignInResult):
        console.print(f"[yellow]![/yellow] {action}: {result.status.value}")
    return False


async def run(args: argparse.Namespace) -> int:
    container = get_container()
    try:
        auth = await container.auth()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    ok = True
    try:
        await auth.initialize()

        if args.command == "sign-in":
            password = args.password or getpass.getpass("Password: ")
            ok = report(await auth.sign_in(args.email, password), "Sign in")
        elif args.command == "sign-up":
            password = args.password or getpass.getpass("Password: ")
            ok = report(await auth.sign_up(args.email, password, args.role), "Sign up")
        elif args.command == "sign-out":
            ok = report(await auth.sign_out(), "Sign out")
        elif args.command == "forgot-password":
            ok = report(await auth.reset_password(args.email), "Password reset email")
        elif args.command == "resend-verification":
            ok = report(await auth.resend_verification(args.email), "Verification email")
        elif args.command == "reset":
            if args.next_start:
                auth.request_debug_reset()
                console.print("Auth state will be reset on next start-up.")
            else:
                ok = report(await auth.reset_auth_state(), "Auth reset")
        elif args.command == "clear-data":
            ok = report(await auth.clear_all_local_data(), "Local data cleared")

        # Let session-change notifications raised by the command settle
        await auth.arbitrator.drain()
        profile = None
        if auth.session is not None:
            profile = (await auth.get_display_profile()).profile
        show_status(auth, container.router.history, profile)
    finally:
        await auth.close()

    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="StudyCore terminal client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run python run_client.py status                  Show auth state
  uv run python run_client.py sign-in ada@example.com Sign in (prompts for password)
  uv run python run_client.py reset --next-start      Reset auth on next start-up
        """,
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show auth state and route")

    sign_in = commands.add_parser("sign-in", help="Sign in with email and password")
    sign_in.add_argument("email")
    sign_in.add_argument("--password", help="Password (prompted if omitted)")

    sign_up = commands.add_parser("sign-up", help="Create an account")
    sign_up.add_argument("email")
    sign_up.add_argument("--password", help="Password (prompted if omitted)")
    sign_up.add_argument(
        "--role",
        default="student",
        choices=sorted(role.value for role in SELF_SERVICE_ROLES),
        help="Account role",
    )

    commands.add_parser("sign-out", help="Sign out this device")

    forgot = commands.add_parser("forgot-password", help="Send a password reset email")
    forgot.add_argument("email")

    resend = commands.add_parser("resend-verification", help="Resend the verification email")
    resend.add_argument("email")

    reset = commands.add_parser("reset", help="Reset auth state (global sign-out)")
    reset.add_argument(
        "--next-start",
        action="store_true",
        help="Only request the reset; it runs on the next start-up",
    )

    commands.add_parser("clear-data", help="Reset auth state and purge local data")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    console.print(f"[bold]{get_settings().app_name}[/bold]")
    console.print()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
