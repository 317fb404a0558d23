#!/usr/bin/env python3
"""
Argument parsers for the vmdeck CLI.
"""

import argparse
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from vmdeck import __version__
from vmdeck.cli.interactive import interactive_mode
from vmdeck.cli.utils import console, print_status
from vmdeck.cli.vm_commands import cmd_create, cmd_list, cmd_show, cmd_start
from vmdeck.dependencies import INSTALL_HINT, check_dependencies
from vmdeck.exceptions import VMDeckError
from vmdeck.logging import configure_logging
from vmdeck.models import DEFAULT_CPUS, DEFAULT_DISK_SIZE, DEFAULT_MEMORY_MB, DEFAULT_OS_TYPE, DEFAULT_SSH_PORT
from vmdeck.settings import LOG_LEVELS, Settings

# Commands that shell out to qemu or seed tooling.
COMMANDS_NEEDING_TOOLS = {None, "create", "start"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vmdeck", description="Define, persist and launch lightweight QEMU VMs"
    )
    parser.add_argument("--version", action="version", version=f"vmdeck {__version__}")
    parser.add_argument("--root", type=Path, default=None, help="VM store directory (default: ~/vms)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write JSON logs to this file")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Interactive mode (default)
    parser.set_defaults(func=interactive_mode)

    create_parser = subparsers.add_parser("create", help="Create a VM profile, disk and seed")
    create_parser.add_argument("name", help="VM name")
    create_parser.add_argument("--username", "-u", help="Guest user (prompted if omitted)")
    create_parser.add_argument("--password", "-p", help="Guest password (prompted if omitted)")
    create_parser.add_argument("--os-type", default=DEFAULT_OS_TYPE, help="OS tag")
    create_parser.add_argument("--hostname", help="Guest hostname (default: VM name)")
    create_parser.add_argument("--disk-size", default=DEFAULT_DISK_SIZE, help="Disk size, e.g. 20G")
    create_parser.add_argument("--memory", default=str(DEFAULT_MEMORY_MB), help="RAM in MB")
    create_parser.add_argument("--cpus", default=str(DEFAULT_CPUS), help="Number of vCPUs")
    create_parser.add_argument("--ssh-port", default=str(DEFAULT_SSH_PORT), help="Host port forwarded to guest SSH")
    create_parser.add_argument("--gui", action="store_true", help="Open a display window")
    create_parser.add_argument("--replace", action="store_true", help="Overwrite an existing VM")
    create_parser.set_defaults(func=cmd_create)

    start_parser = subparsers.add_parser("start", help="Start a VM")
    start_parser.add_argument("name", help="VM name")
    start_parser.add_argument(
        "-y", "--yes", action="store_true", help="Kill a stale hypervisor of this VM without asking"
    )
    start_parser.add_argument("-d", "--detach", action="store_true", help="Return once the hypervisor starts")
    start_parser.set_defaults(func=cmd_start)

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List VMs")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")
    list_parser.set_defaults(func=cmd_list)

    show_parser = subparsers.add_parser("show", help="Show a VM profile")
    show_parser.add_argument("name", help="VM name")
    show_parser.add_argument("--json", action="store_true", help="Output JSON")
    show_parser.set_defaults(func=cmd_show)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(root=args.root, log_level=args.log_level, log_file=args.log_file)
    except PydanticValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print_status("ERROR", f"Invalid setting {field}: {error['msg']}")
        return 2
    configure_logging(
        level=settings.log_level,
        json_output=args.json_logs or settings.json_logs,
        log_file=settings.log_file,
    )

    command = "list" if args.command == "ls" else args.command
    if command in COMMANDS_NEEDING_TOOLS:
        required = (
            (settings.qemu_binary,),
            (settings.qemu_img_binary,),
            ("cloud-localds", "genisoimage", "mkisofs"),
        )
        missing = check_dependencies(required)
        if missing:
            for tool in missing:
                print_status("ERROR", f"🛠️ Missing: {tool}")
            console.print(f"[dim]{INSTALL_HINT}[/]")
            return 1

    try:
        return args.func(args) or 0
    except VMDeckError as e:
        print_status("ERROR", str(e))
        return 2
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        return 1
