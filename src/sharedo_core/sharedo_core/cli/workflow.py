# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""CLI commands for ShareDo workflow operations."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sharedo_core.cli.config import SharedoConfig, load_and_validate_config
from sharedo_core.cli.errors import show_error, show_success
from sharedo_core.logconfig import WorkflowContext, configure_logging
from sharedo_core.workflow.comparator import (
    ComparisonOptions,
    ComparisonResult,
    DifferenceType,
    WorkflowComparator,
    unified_diff,
)
from sharedo_core.workflow.loader import (
    LoadedWorkflow,
    WorkflowLoadError,
    find_workflow_files,
    load_workflow,
)
from sharedo_core.workflow.security import sanitize_name, validate_file_path
from sharedo_core.workflow.validator import IssueSeverity, ValidationResult, WorkflowValidator

console = Console()
LOGGER = logging.getLogger(__name__)

SEVERITY_STYLES = {
    IssueSeverity.ERROR: "red",
    IssueSeverity.WARNING: "yellow",
    IssueSeverity.INFO: "blue",
}
DIFFERENCE_STYLES = {
    DifferenceType.ADDED: "green",
    DifferenceType.REMOVED: "red",
    DifferenceType.MODIFIED: "yellow",
}


def build_workflow_parser() -> argparse.ArgumentParser:
    """Build the argument parser for workflow commands."""
    parser = argparse.ArgumentParser(
        description="ShareDo workflow tools",
        prog="sharedo-workflow",
    )

    subparsers = parser.add_subparsers(
        dest="workflow_action",
        help="Workflow action to perform",
        required=True,
    )

    # validate subcommand
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate workflow definition files",
        description=(
            "Validate ShareDo workflow files for structural errors, dangling "
            "connections, cycles, unreachable steps and action configuration issues."
        ),
    )
    validate_parser.add_argument(
        "paths",
        nargs="+",
        help="Workflow files (.json, .yaml, .yml) or directories containing them",
    )
    validate_parser.add_argument(
        "--format",
        choices=["text", "table"],
        default="text",
        help="Output format (default: text)",
    )
    validate_parser.add_argument(
        "--warnings-as-errors",
        "-W",
        action="store_true",
        help="Treat warnings as errors (affects exit code)",
    )
    validate_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only output errors and summary",
    )
    validate_parser.add_argument(
        "--show-info",
        action="store_true",
        help="Also print informational notes",
    )

    # compare subcommand
    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare two workflow definition files",
        description="Report steps, actions and variables added, removed or modified.",
    )
    compare_parser.add_argument("left", help="Baseline workflow file")
    compare_parser.add_argument("right", help="Workflow file to compare against the baseline")
    compare_parser.add_argument("--left-title", default=None, help="Label for the left workflow")
    compare_parser.add_argument("--right-title", default=None, help="Label for the right workflow")
    compare_parser.add_argument(
        "--canonical",
        action="store_true",
        help="Ignore key order when comparing action config and connections",
    )
    compare_parser.add_argument(
        "--unified",
        action="store_true",
        help="Print a unified diff of both workflows instead of the structural report",
    )
    compare_parser.add_argument(
        "--format",
        choices=["text", "table"],
        default="text",
        help="Output format (default: text)",
    )

    subparsers.add_parser(
        "rules",
        help="List the validation rules",
        description="List the validation rules in the order they run.",
    )

    return parser


def _visible(severity: IssueSeverity, quiet: bool, show_info: bool) -> bool:
    if severity == IssueSeverity.INFO:
        return show_info and not quiet
    if severity == IssueSeverity.WARNING:
        return not quiet
    return True


def print_result_text(
    result: ValidationResult, quiet: bool = False, show_info: bool = False
):
    """Print validation result in text format."""
    for issue in result.issues:
        if not _visible(issue.severity, quiet, show_info):
            continue
        style = SEVERITY_STYLES[issue.severity]
        console.print(f"  [{style}]{escape(str(issue))}[/{style}]")


def print_result_table(
    source: str, result: ValidationResult, quiet: bool = False, show_info: bool = False
):
    """Print validation result in table format."""
    issues = [i for i in result.issues if _visible(i.severity, quiet, show_info)]
    if not issues:
        return

    table = Table(title=f"Validation Results: {escape(source)}")
    table.add_column("Rule", style="cyan")
    table.add_column("Severity", style="bold")
    table.add_column("Message")

    for issue in issues:
        style = SEVERITY_STYLES[issue.severity]
        table.add_row(
            escape(issue.rule),
            f"[{style}]{issue.severity.value}[/{style}]",
            escape(issue.message),
        )

    console.print(table)


def expand_paths(paths: List[str]) -> List[str]:
    """Replace every directory in *paths* with the workflow files it contains.

    Files that resolve outside their directory (symlinks) are skipped.
    """
    expanded: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            for found in find_workflow_files(path):
                if validate_file_path(found, path):
                    expanded.append(found)
                else:
                    LOGGER.warning("Skipping %s: resolves outside %s", found, path)
        else:
            expanded.append(path)
    return expanded


def _load(path: str, config: SharedoConfig) -> Optional[LoadedWorkflow]:
    try:
        return load_workflow(path, config)
    except WorkflowLoadError as exc:
        LOGGER.error("Failed to load %s: %s", path, exc)
        show_error(f"Could not load {path}", str(exc))
        return None


def cmd_validate(args: argparse.Namespace, config: SharedoConfig) -> int:
    """Execute the validate command."""
    files = expand_paths(args.paths)
    if not files:
        console.print("[red]Error: No workflow files found[/red]")
        return 1

    validator = WorkflowValidator()
    error_count = 0
    warning_count = 0
    load_failures = 0

    for path in files:
        loaded = _load(path, config)
        if loaded is None:
            load_failures += 1
            continue

        workflow = loaded.workflow
        WorkflowContext.set(workflow.system_name, loaded.path)
        try:
            result = validator.validate(workflow)
            LOGGER.info(
                "Validated %s: %d errors, %d warnings",
                workflow.system_name,
                len(result.errors),
                len(result.warnings),
            )
        finally:
            WorkflowContext.clear()

        error_count += len(result.errors)
        warning_count += len(result.warnings)

        if not args.quiet:
            label = escape(sanitize_name(workflow.name or workflow.system_name, config))
            status = "[green]valid[/green]" if result.valid else "[red]invalid[/red]"
            console.print(f"{escape(path)}: {label} ({status})")
            for advisory in loaded.advisories:
                console.print(f"  [magenta]{escape(advisory)}[/magenta]")

        if args.format == "table":
            print_result_table(path, result, args.quiet, args.show_info)
        else:
            print_result_text(result, args.quiet, args.show_info)

    if error_count == 0 and warning_count == 0 and load_failures == 0:
        if not args.quiet:
            show_success(
                f"All {len(files)} workflow{'s' if len(files) != 1 else ''} valid."
            )
        return 0

    summary_parts = []
    if load_failures > 0:
        summary_parts.append(
            f"[red]{load_failures} file{'s' if load_failures != 1 else ''} not loaded[/red]"
        )
    if error_count > 0:
        summary_parts.append(f"[red]{error_count} error{'s' if error_count != 1 else ''}[/red]")
    if warning_count > 0:
        summary_parts.append(
            f"[yellow]{warning_count} warning{'s' if warning_count != 1 else ''}[/yellow]"
        )

    console.print(f"\nValidation complete: {', '.join(summary_parts)}")

    if load_failures > 0 or error_count > 0:
        return 1
    if args.warnings_as_errors and warning_count > 0:
        return 1
    return 0


def print_comparison_text(result: ComparisonResult):
    for diff in result.differences:
        style = DIFFERENCE_STYLES[diff.type]
        console.print(
            f"  [{style}]{diff.type.value:<8}[/{style}] {escape(diff.path)}: "
            f"{escape(diff.description)}"
        )


def print_comparison_table(result: ComparisonResult):
    table = Table(title=f"{escape(result.left_title)} vs {escape(result.right_title)}")
    table.add_column("Change", style="bold")
    table.add_column("Path", style="cyan")
    table.add_column("Description")

    for diff in result.differences:
        style = DIFFERENCE_STYLES[diff.type]
        table.add_row(
            f"[{style}]{diff.type.value}[/{style}]",
            escape(diff.path),
            escape(diff.description),
        )

    console.print(table)


def print_comparison_summary(result: ComparisonResult):
    summary = result.summary
    rows = (
        ("Steps", summary.steps_added, summary.steps_removed, summary.steps_modified),
        ("Actions", summary.actions_added, summary.actions_removed, summary.actions_modified),
        (
            "Variables",
            summary.variables_added,
            summary.variables_removed,
            summary.variables_modified,
        ),
    )
    table = Table(title="Summary")
    table.add_column("")
    table.add_column("Added", style="green", justify="right")
    table.add_column("Removed", style="red", justify="right")
    table.add_column("Modified", style="yellow", justify="right")
    for label, added, removed, modified in rows:
        table.add_row(label, str(added), str(removed), str(modified))
    console.print(table)


def cmd_compare(args: argparse.Namespace, config: SharedoConfig) -> int:
    """Execute the compare command."""
    left = _load(args.left, config)
    right = _load(args.right, config)
    if left is None or right is None:
        return 1

    options = ComparisonOptions(
        left_title=args.left_title or left.workflow.name or args.left,
        right_title=args.right_title or right.workflow.name or args.right,
        canonical_json=args.canonical,
    )

    if args.unified:
        lines = unified_diff(left.workflow, right.workflow, options)
        for line in lines:
            console.print(line, markup=False, highlight=False)
        return 0 if not lines else 1

    result = WorkflowComparator().compare(left.workflow, right.workflow, options)
    LOGGER.info(
        "Compared %s with %s: %d differences",
        left.workflow.system_name,
        right.workflow.system_name,
        len(result.differences),
    )

    if result.identical:
        show_success(
            f"{escape(options.left_title)} and {escape(options.right_title)} are identical"
            + (" (same file content)" if left.checksum == right.checksum else "")
        )
        return 0

    if args.format == "table":
        print_comparison_table(result)
    else:
        console.print(
            f"Comparing [cyan]{escape(result.left_title)}[/cyan] with "
            f"[cyan]{escape(result.right_title)}[/cyan]"
        )
        print_comparison_text(result)
    print_comparison_summary(result)
    return 1


def cmd_rules(args: argparse.Namespace, config: SharedoConfig) -> int:
    """Execute the rules command."""
    for line in WorkflowValidator().rules_summary():
        console.print(escape(line))
    return 0


def dispatch(args: argparse.Namespace, config: SharedoConfig) -> int:
    """Dispatch to the appropriate workflow command handler."""
    if args.workflow_action == "validate":
        return cmd_validate(args, config)
    elif args.workflow_action == "compare":
        return cmd_compare(args, config)
    elif args.workflow_action == "rules":
        return cmd_rules(args, config)
    else:
        console.print(f"[red]Unknown workflow action: {args.workflow_action}[/red]")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for workflow commands."""
    parser = build_workflow_parser()
    args = parser.parse_args(argv)

    try:
        config = load_and_validate_config()
    except ValidationError as exc:
        show_error("Invalid configuration", str(exc))
        return 1
    configure_logging(config)
    return dispatch(args, config)


if __name__ == "__main__":
    sys.exit(main())
