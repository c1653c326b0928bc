# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Actionable error messages for workflow loading failures."""

import re
from typing import Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)

ERROR_PATTERNS = {
    "missing": {
        "pattern": r"(file not found|no such file)",
        "message": "Workflow file not found",
        "action": "Check the path, or pass a directory to validate every workflow in it",
    },
    "json": {
        "pattern": r"(json parse error|expecting value|expecting property name|unterminated string)",
        "message": "Workflow file is not valid JSON",
        "action": "Fix the JSON syntax; the parser position is shown below",
    },
    "yaml": {
        "pattern": r"yaml parse error",
        "message": "Workflow file is not valid YAML",
        "action": "Fix the YAML syntax; the parser position is shown below",
    },
    "size": {
        "pattern": r"(too large|too many steps|too many variables)",
        "message": "Workflow exceeds the configured size limits",
        "action": "Split the workflow, or raise SHAREDO_MAX_WORKFLOW_BYTES / SHAREDO_MAX_STEPS / "
        "SHAREDO_MAX_VARIABLES",
    },
    "system_name": {
        "pattern": r"system name",
        "message": "Workflow systemName is not acceptable",
        "action": "Use only letters, numbers, hyphens and underscores in systemName",
    },
    "permission": {
        "pattern": r"(permission denied|access denied)",
        "message": "Permission denied",
        "action": "Check file permissions or run with appropriate privileges",
    },
}


def detect_error_pattern(output: str) -> Optional[Tuple[str, str]]:
    output_lower = output.lower()
    for pattern_info in ERROR_PATTERNS.values():
        if re.search(pattern_info["pattern"], output_lower, re.IGNORECASE):
            return (pattern_info["message"], pattern_info["action"])
    return None


def show_error(title: str, output: str):
    """Display a formatted error with smart extraction."""
    console.print()
    detected = detect_error_pattern(output)
    if detected:
        message, action = detected
        error_text = Text()
        error_text.append(f"✗ {title}\n\n", style="bold red")
        error_text.append(f"{message}\n\n", style="red")
        error_text.append("→ Fix: ", style="bold yellow")
        error_text.append(f"{action}\n", style="yellow")
        console.print(Panel(error_text, border_style="red", expand=False))
    else:
        console.print(Panel(Text(f"✗ {title}", style="bold red"), border_style="red", expand=False))

    for line in output.strip().split("\n")[-10:]:
        console.print(f"  [dim]│[/dim] {escape(line)}", markup=True, highlight=False)
    console.print()


def show_success(message: str):
    console.print(f"[green]✓[/green] {message}", style="green")
