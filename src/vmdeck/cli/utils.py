#!/usr/bin/env python3
"""
Shared utilities for the vmdeck CLI.
"""

from pathlib import Path
from typing import Callable, Optional

import questionary
from questionary import Style
from rich.console import Console
from rich.markup import escape

from vmdeck import __version__
from vmdeck.lifecycle import VMLifecycleController, create_default_controller
from vmdeck.settings import Settings

custom_style = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "bold"),
        ("answer", "fg:green"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:green"),
        ("separator", "fg:gray"),
        ("instruction", "fg:gray italic"),
    ]
)

console = Console()

STATUS_STYLES = {
    "INFO": ("bold blue", "📋"),
    "WARN": ("bold yellow", "⚠️ "),
    "ERROR": ("bold red", "❌"),
    "SUCCESS": ("bold green", "✅"),
}


def print_banner():
    """Print the vmdeck banner."""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                                                               ║
║   v m d e c k                                                 ║
║                                                               ║
║  Lightweight QEMU VM profiles                                 ║
╚═══════════════════════════════════════════════════════════════╝
"""
    console.print(banner, style="cyan")
    console.print(f"  Version {__version__}\n", style="dim")


def print_status(kind: str, message: str) -> None:
    """Print a colour-coded status line."""
    style, icon = STATUS_STYLES.get(kind, ("bold", ""))
    label = escape(f"[{kind}]")
    console.print(f"[{style}]{icon} {label}[/{style}] {escape(message)}", highlight=False)


def get_controller(args) -> VMLifecycleController:
    """Build the production controller for the root given on the command line."""
    root: Optional[Path] = getattr(args, "root", None)
    settings = Settings.from_env(root=root)
    return create_default_controller(settings.root, settings=settings)


def kill_prompt(vm_name: str, assume_yes: bool = False) -> Callable[[], bool]:
    """Confirmation callback for killing a stale hypervisor of *vm_name*."""
    if assume_yes:
        return lambda: True

    def confirm() -> bool:
        answer = questionary.confirm(
            f"🔄 Image of '{vm_name}' is held by a previous run. Kill it and restart?",
            default=False,
            style=custom_style,
        ).ask()
        return answer is True

    return confirm
