#!/usr/bin/env python3
"""
Interactive mode for the vmdeck CLI.
"""

import questionary
from rich.markup import escape

from vmdeck.cli.utils import console, custom_style, get_controller, kill_prompt, print_banner, print_status
from vmdeck.cli.vm_commands import collect_vm_rows, print_vm_table
from vmdeck.exceptions import AlreadyExists, VMDeckError
from vmdeck.models import DEFAULT_CPUS, DEFAULT_DISK_SIZE, DEFAULT_MEMORY_MB, DEFAULT_SSH_PORT, VMDraft
from vmdeck.validation import validate


def interactive_mode(args):
    """Run the interactive menu until the operator exits."""
    controller = get_controller(args)
    print_banner()

    while True:
        vms = controller.list_vms()
        choices = [questionary.Choice("🆕 Create VM", value="create")]
        if vms:
            choices += [
                questionary.Choice("🚀 Start VM", value="start"),
                questionary.Choice("📋 List VMs", value="list"),
                questionary.Choice("🔍 Show VM", value="show"),
            ]
        choices.append(questionary.Choice("👋 Exit", value="exit"))

        if vms:
            console.print(f"[dim]VMs: {', '.join(vms)}[/]")
        choice = questionary.select(
            "What would you like to do?",
            choices=choices,
            style=custom_style,
        ).ask()

        if choice in (None, "exit"):
            console.print("[dim]Goodbye![/]")
            return 0

        try:
            handle_choice(controller, choice, vms)
        except VMDeckError as e:
            print_status("ERROR", str(e))


def handle_choice(controller, choice: str, vms):
    """Handle interactive menu choice."""
    if choice == "create":
        interactive_create_vm(controller)
    elif choice == "start":
        interactive_start_vm(controller, vms)
    elif choice == "list":
        print_vm_table(collect_vm_rows(controller))
    elif choice == "show":
        interactive_show_vm(controller, vms)


def _ask(message: str, default: str, kind: str, error: str):
    return questionary.text(
        message,
        default=default,
        validate=lambda x: validate(kind, x) or error,
        style=custom_style,
    ).ask()


def interactive_create_vm(controller):
    """Prompt for a new VM and create it."""
    print_status("INFO", "🆕 Setup new VM")

    name = _ask("VM name:", "", "name", "Letters, digits, '_' and '-' only")
    if not name:
        return
    username = questionary.text(
        "Username:",
        validate=lambda x: bool(x.strip()) or "Username cannot be empty",
        style=custom_style,
    ).ask()
    password = questionary.password(
        "Password:",
        validate=lambda x: bool(x) or "Password cannot be empty",
        style=custom_style,
    ).ask()
    if not username or not password:
        return

    disk_size = _ask("Disk size:", DEFAULT_DISK_SIZE, "size", "e.g. 20G or 512M")
    memory = _ask("RAM in MB:", str(DEFAULT_MEMORY_MB), "number", "Digits only")
    cpus = _ask("Number of vCPUs:", str(DEFAULT_CPUS), "number", "Digits only")
    ssh_port = _ask("SSH port:", str(DEFAULT_SSH_PORT), "port", "Port between 22 and 65535")
    gui_mode = questionary.confirm("Open a display window?", default=False, style=custom_style).ask()
    if None in (disk_size, memory, cpus, ssh_port, gui_mode):
        return

    draft = VMDraft(
        name=name,
        username=username,
        password=password,
        disk_size=disk_size,
        memory=memory,
        cpus=cpus,
        ssh_port=ssh_port,
        gui_mode=gui_mode,
    )

    print_status("INFO", "📥 Creating disk and seed...")
    try:
        config = controller.create_vm(draft)
    except AlreadyExists:
        if not questionary.confirm(
            f"VM '{name}' already exists. Replace it?",
            default=False,
            style=custom_style,
        ).ask():
            return
        config = controller.create_vm(draft, replace=True)
    print_status("SUCCESS", f"🚀 VM '{config.name}' created!")


def interactive_start_vm(controller, vms):
    """Pick a VM and start it in the foreground."""
    name = questionary.select("Select VM:", choices=vms, style=custom_style).ask()
    if not name:
        return
    print_status("INFO", f"🚀 Starting {name}...")
    handle = controller.start_vm(name, confirm=kill_prompt(name))
    print_status("SUCCESS", f"Hypervisor started (pid {handle.pid})")
    handle.wait()


def interactive_show_vm(controller, vms):
    """Pick a VM and print its profile."""
    name = questionary.select("Select VM:", choices=vms, style=custom_style).ask()
    if not name:
        return
    for key, value in controller.describe_vm(name).redacted().items():
        console.print(f"[cyan]{key}[/]: {escape(value)}")
