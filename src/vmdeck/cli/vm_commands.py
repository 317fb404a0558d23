#!/usr/bin/env python3
"""
VM lifecycle commands for the vmdeck CLI.
"""

import json

import questionary
from rich.markup import escape
from rich.table import Table

from vmdeck.cli.utils import console, custom_style, get_controller, kill_prompt, print_status
from vmdeck.exceptions import CorruptRecord
from vmdeck.models import VMDraft
from vmdeck.validation import validate


def _prompt_secret_fields(args) -> bool:
    if not args.username:
        args.username = questionary.text(
            "Username:",
            validate=lambda x: bool(x.strip()) or "Username cannot be empty",
            style=custom_style,
        ).ask()
    if not args.password:
        args.password = questionary.password(
            "Password:",
            validate=lambda x: bool(x) or "Password cannot be empty",
            style=custom_style,
        ).ask()
    return bool(args.username) and bool(args.password)


def cmd_create(args):
    """Create a VM profile, its disk and its cloud-init seed."""
    if not validate("name", args.name):
        print_status("ERROR", f"Invalid VM name: {args.name!r} (letters, digits, '_' and '-' only)")
        return 2
    if not _prompt_secret_fields(args):
        console.print("[yellow]Cancelled.[/]")
        return 1

    draft = VMDraft(
        name=args.name,
        username=args.username,
        password=args.password,
        os_type=args.os_type,
        hostname=args.hostname,
        disk_size=args.disk_size,
        memory=args.memory,
        cpus=args.cpus,
        ssh_port=args.ssh_port,
        gui_mode=args.gui,
    )

    controller = get_controller(args)
    print_status("INFO", f"🆕 Creating VM '{draft.name}' ({draft.disk_size} disk)...")
    config = controller.create_vm(draft, replace=args.replace)
    print_status("SUCCESS", f"🚀 VM '{config.name}' created")
    console.print(f"[dim]Disk: {escape(str(config.img_file_path))}[/]")
    console.print(f"[dim]Seed: {escape(str(config.seed_file_path))}[/]")
    return 0


def cmd_start(args):
    """Start a VM after checking its disk image is free."""
    controller = get_controller(args)
    print_status("INFO", f"🚀 Starting {args.name}...")
    handle = controller.start_vm(args.name, confirm=kill_prompt(args.name, args.yes))

    config = controller.describe_vm(args.name)
    print_status("SUCCESS", f"Hypervisor started (pid {handle.pid})")
    console.print(f"[dim]SSH: ssh -p {config.ssh_port} {escape(config.username)}@localhost[/]")

    if args.detach:
        return 0
    returncode = handle.wait()
    if returncode:
        print_status("WARN", f"Hypervisor exited with code {returncode}")
    return 0


def collect_vm_rows(controller):
    """Redacted profiles for every VM; corrupt records become error rows."""
    rows = []
    for name in controller.list_vms():
        try:
            rows.append(controller.describe_vm(name).redacted())
        except CorruptRecord as e:
            rows.append({"name": name, "error": e.reason})
    return rows


def print_vm_table(rows):
    if not rows:
        console.print("[dim]No VMs found[/]")
        return

    table = Table(title="Virtual Machines")
    table.add_column("Name", style="cyan")
    table.add_column("OS", style="green")
    table.add_column("Memory", style="blue")
    table.add_column("vCPUs", style="magenta")
    table.add_column("Disk", style="yellow")
    table.add_column("SSH port")

    for row in rows:
        if "error" in row:
            table.add_row(row["name"], "[red]corrupt record[/red]", "-", "-", "-", "-")
            continue
        table.add_row(
            row["name"],
            escape(row["os_type"]),
            f"{row['memory']} MB",
            row["cpus"],
            row["disk_size"],
            row["ssh_port"],
        )

    console.print(table)


def cmd_list(args):
    """List VM profiles."""
    rows = collect_vm_rows(get_controller(args))
    if args.json:
        console.print_json(json.dumps(rows))
    else:
        print_vm_table(rows)
    return 0


def cmd_show(args):
    """Show a single VM profile with the password masked."""
    controller = get_controller(args)
    record = controller.describe_vm(args.name).redacted()

    if args.json:
        console.print_json(json.dumps(record))
        return 0

    table = Table(title=f"VM: {args.name}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in record.items():
        table.add_row(key, escape(value))
    console.print(table)
    return 0
