#!/usr/bin/env python3
"""
dde-session-helpers - provision new users and report system facts
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

import i18n
import server
import user_data
from system_info import new_system_info

# Deepin blue accents for headings and keys
_deepin_theme = Theme({
    "facts.title": "bold #0081ff",
    "facts.key":   "#0081ff",
    "facts.value": "",
})
console = Console(theme=_deepin_theme)

_GIB = 1024 ** 3


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=debug, show_path=debug)],
    )


def _format_bytes(n: int) -> str:
    return f"{n / _GIB:.1f} GiB ({n} B)"


def _format_system_type(system_type: int) -> str:
    return f"{system_type}-bit" if system_type else "unknown"


def _cmd_provision(args) -> int:
    target = args.user
    if target.isdigit():
        user_data.provision(int(target))
    else:
        user_data.provision_user_path(target)
    return 0


def _cmd_facts(args) -> int:
    info = new_system_info()
    if info is None:
        console.print("❌ Could not collect system information", style="bold red")
        return 1

    if args.json:
        console.print_json(info.to_json())
        return 0

    table = Table(title="System Information", title_style="facts.title", show_header=False)
    table.add_column(style="facts.key")
    table.add_column(style="facts.value")
    table.add_row("Version", info.Version)
    table.add_row("Processor", info.Processor)
    table.add_row("Memory", _format_bytes(info.MemoryCap))
    table.add_row("Type", _format_system_type(info.SystemType))
    table.add_row("Disk", _format_bytes(info.DiskCap))
    console.print(table)
    return 0


def _cmd_locale(args) -> int:
    console.print(i18n.default_locale_tag())
    return 0


def _cmd_serve(args) -> int:
    return server.serve()


def main():
    """Entry point"""
    parser = argparse.ArgumentParser(
        description="Deepin session helpers: user data provisioning and system facts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dde-session-helpers provision 1001                                # copy skeleton data for uid 1001
  dde-session-helpers provision /com/deepin/daemon/Accounts/User1001
  dde-session-helpers facts --json                                  # print the published facts
  dde-session-helpers serve                                         # publish them on the session bus
        """,
    )
    parser.add_argument(
        "--debug", action="store_true", help="Show debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_provision = subparsers.add_parser(
        "provision", help="Copy skeleton data into a user's home and repair ownership"
    )
    p_provision.add_argument("user", help="numeric uid or account object path")
    p_provision.set_defaults(func=_cmd_provision)

    p_facts = subparsers.add_parser("facts", help="Collect and print the system facts")
    p_facts.add_argument("--json", action="store_true", help="print as JSON")
    p_facts.set_defaults(func=_cmd_facts)

    p_serve = subparsers.add_parser("serve", help="Publish the system facts on the session bus")
    p_serve.set_defaults(func=_cmd_serve)

    p_locale = subparsers.add_parser("locale", help="Print the default locale tag used for skeletons")
    p_locale.set_defaults(func=_cmd_locale)

    args = parser.parse_args()
    _setup_logging(args.debug)

    try:
        sys.exit(args.func(args))
    except KeyboardInterrupt:
        console.print("\n👋 Interrupted", style="yellow")
        sys.exit(130)


if __name__ == "__main__":
    main()
