"""
Interactive terminal console for BLACK CTRL.

Usage:
    blackctrl                                   # sign in, then generate interactively
    blackctrl --verify-url "https://.../auth/verify?token=..."
    blackctrl --api-url http://localhost:5000 --downloads-dir ~/Downloads

Flow:
  1. Reconcile with the server session (skips login when still signed in)
  2. Request a magic link and paste the token or the link
  3. Fill in the target form, generate, then save / export / copy
"""

import argparse
import asyncio
import logging
from collections.abc import Callable

from blackctrl.console import OutreachConsole
from blackctrl.core.config import settings
from blackctrl.core.result import Result
from blackctrl.core.tracing import setup_tracing
from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.outreach import OutreachFormData, OutreachResult

logger = logging.getLogger(__name__)

Ask = Callable[[str], str]

BANNER = f"""
  {settings.APP_NAME}
  Send less.
  Close more.
"""


def print_stage(name: str) -> None:
    print(f"\n{'═' * 58}")
    print(f"  ▶  {name}")
    print(f"{'═' * 58}")


def print_notice(result: Result) -> None:
    notice = result.notice
    if notice is not None:
        marker = "✗" if notice.variant == "destructive" else "✓"
        print(f"  {marker} {notice.title}: {notice.description}")


def print_section(title: str, items: tuple[str, ...]) -> None:
    print(f"\n  {title}")
    for item in items:
        print(f"    • {item}")


def print_result(result: OutreachResult) -> None:
    print_stage(f"OUTREACH  |  {result.target_name} @ {result.company}")
    for line in result.outreach_message.splitlines():
        print(f"  │  {line}")
    swot = result.swot
    print_section("Strengths", swot.strengths)
    print_section("Weaknesses", swot.weaknesses)
    print_section("Opportunities", swot.opportunities)
    print_section("Threats", swot.threats)
    notes = result.internal_notes
    print_section("Psychological & Positioning Angles", notes.angles)
    print_section("Hidden Value Props", notes.value_props)
    print_section("GOAT-Tier Notes", notes.goat_tier)


def prompt_form(ask: Ask = input) -> OutreachFormData:
    return OutreachFormData(
        target_name=ask("  Target Name *: "),
        company=ask("  Company *: "),
        landing_page_copy=ask("  Landing Page Copy *: "),
        key_insight=ask("  Key Insight or Pain Point *: "),
        additional_context=ask("  Additional Context: "),
    )


async def sign_in(console: OutreachConsole, ask: Ask = input) -> bool:
    """Magic link loop. Returns False when the user gives up."""
    print_stage("GET ACCESS  (founder-only, whitelist required)")
    while not console.auth.is_authenticated:
        email = ask("  Email (blank to quit): ").strip()
        if not email:
            return False
        result = await console.request_link(email)
        print_notice(result)
        if not result.ok:
            continue

        while True:
            entry = ask("  Paste token or magic link (blank to try again): ").strip()
            if not entry:
                console.try_again()
                break
            if "token=" in entry:
                result = await console.verify_link(entry)
            else:
                result = await console.verify(entry)
            print_notice(result)
            if result.ok:
                return True
    return True


async def result_menu(console: OutreachConsole, ask: Ask = input) -> None:
    while console.workflow.result is not None:
        choice = ask("  [s]ave  [p]df  [j]son  [c]opy  [e]dit  [n]ew > ").strip().lower()
        if choice == "s":
            print_notice(await console.save())
        elif choice == "p":
            result = await console.export_pdf()
            print_notice(result)
            if result.ok:
                print(f"    → {result.value.path}")
        elif choice == "j":
            result = console.export_json()
            print_notice(result)
            if result.ok:
                print(f"    → {result.value.path}")
        elif choice == "c":
            result = console.copy()
            if result.ok:
                print(result.value)
            print_notice(result)
        elif choice == "e":
            print_notice(console.edit())
        elif choice == "n":
            console.discard()
        if not console.auth.is_authenticated:
            return


async def show_history(console: OutreachConsole) -> None:
    print_stage("MESSAGE HISTORY")
    result = await console.history_entries()
    if not result.ok:
        print_notice(result)
        return
    if not result.value:
        print("  No saved messages yet")
        return
    for message in result.value:
        print(f"\n  {message.target_name}  ({message.company})  {message.created_at:%Y-%m-%d}")
        preview = message.outreach_message.splitlines()[:3]
        for line in preview:
            print(f"  │  {line}")


async def run_session(console: OutreachConsole, ask: Ask = input, verify_url: str | None = None) -> None:
    await console.start()
    if verify_url and not console.auth.is_authenticated:
        print_notice(await console.verify_link(verify_url))
    if not console.auth.is_authenticated and not await sign_in(console, ask):
        return

    while console.auth.is_authenticated:
        choice = ask("\n  [g]enerate  [h]istory  [l]ogout  [q]uit > ").strip().lower()
        if choice == "g":
            print_stage("TARGET INFORMATION")
            result = await console.generate(prompt_form(ask))
            print_notice(result)
            if result.ok:
                print_result(result.value)
                await result_menu(console, ask)
        elif choice == "h":
            await show_history(console)
        elif choice == "l":
            print_notice(await console.logout())
        elif choice == "q":
            return


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blackctrl", description="BLACK CTRL outreach console")
    parser.add_argument("--api-url", type=str, default=None, help="API root including prefix")
    parser.add_argument("--downloads-dir", type=str, default=None, help="Where exports are written")
    parser.add_argument("--verify-url", type=str, default=None, help="Magic link to verify on startup")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


async def _main(args: argparse.Namespace) -> None:
    async with OutreachConsole(
        api=OutreachApiClient(base_url=args.api_url),
        downloads_dir=args.downloads_dir,
    ) as console:
        await run_session(console, verify_url=args.verify_url)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    setup_tracing()
    print(BANNER)
    try:
        asyncio.run(_main(args))
    except (KeyboardInterrupt, EOFError):
        print()


if __name__ == "__main__":
    main()
