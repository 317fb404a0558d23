#!/usr/bin/env python3
"""
vmdeck CLI package.
"""

from .parsers import build_parser, main
from .utils import console, custom_style, get_controller, kill_prompt, print_status

__all__ = [
    "main",
    "build_parser",
    "console",
    "custom_style",
    "get_controller",
    "kill_prompt",
    "print_status",
]
