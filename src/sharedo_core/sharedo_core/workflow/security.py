# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Input guards applied to workflow documents before they are modelled.

The validator and comparator assume their input already passed
:func:`guard`; they never re-check names or sizes.

:func:`validate_file_path` also confines directory scans in the CLI.
:func:`create_safe_file_name` is library API for callers that export a
workflow to disk under its system name.
"""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from sharedo_common.constants import (
    API_ACTION_TYPES,
    DATABASE_ACTION_TYPES,
    FILE_ACTION_TYPES,
    SCRIPT_ACTION_TYPES,
)
from sharedo_core.cli.config import SharedoConfig, get_config

_SYSTEM_NAME_RE = re.compile(r"^[a-zA-Z0-9\-_]+$")
_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_FILE_CHARS_RE = re.compile(r"[^a-zA-Z0-9\-_]")
_INVALID_NAME_CHARS = ("<", ">", ":", '"', "|", "?", "*", "\0")
_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
    "/": "&#x2F;",
}
_RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)
_BOM = "\ufeff"


class WorkflowSecurityError(ValueError):
    """Raised when a workflow document fails a guard check."""


@dataclass
class SecurityCheck:
    valid: bool
    error: Optional[str] = None


@dataclass
class JsonParseResult:
    success: bool
    data: Any = None
    error: Optional[str] = None


def validate_system_name(
    system_name: Any, config: Optional[SharedoConfig] = None
) -> SecurityCheck:
    cfg = config or get_config()
    if not isinstance(system_name, str) or not system_name.strip():
        return SecurityCheck(False, "System name cannot be empty")
    if len(system_name) > cfg.max_system_name_length:
        return SecurityCheck(
            False, f"System name too long (max {cfg.max_system_name_length} characters)"
        )
    if ".." in system_name or "/" in system_name or "\\" in system_name:
        return SecurityCheck(False, "System name contains invalid characters")
    for char in _INVALID_NAME_CHARS:
        if char in system_name:
            return SecurityCheck(False, f"System name contains invalid character: {char!r}")
    if system_name.upper() in _RESERVED_NAMES:
        return SecurityCheck(False, "System name is a reserved word")
    if not _SYSTEM_NAME_RE.match(system_name):
        return SecurityCheck(
            False,
            "System name must contain only letters, numbers, hyphens, and underscores",
        )
    return SecurityCheck(True)


def sanitize_name(name: str, config: Optional[SharedoConfig] = None) -> str:
    """Strip markup from a display name, HTML-escape it and bound its length."""
    limit = (config or get_config()).max_display_name_length
    sanitized = _TAG_RE.sub("", name)
    sanitized = "".join(_HTML_ESCAPES.get(c, c) for c in sanitized)
    if len(sanitized) > limit:
        sanitized = sanitized[: limit - 3] + "..."
    return sanitized


def validate_workflow_size(document: Any, config: Optional[SharedoConfig] = None) -> SecurityCheck:
    cfg = config or get_config()
    serialized = json.dumps(document, separators=(",", ":"), ensure_ascii=False, default=str)
    size = len(serialized.encode("utf-8"))
    if size > cfg.max_workflow_bytes:
        return SecurityCheck(
            False,
            f"Workflow too large ({size / 1024 / 1024:.2f}MB, "
            f"max {cfg.max_workflow_bytes / 1024 / 1024:.2f}MB)",
        )
    if isinstance(document, dict):
        steps = document.get("steps")
        if isinstance(steps, list) and len(steps) > cfg.max_steps:
            return SecurityCheck(False, f"Too many steps (max {cfg.max_steps})")
        variables = document.get("variables")
        if isinstance(variables, list) and len(variables) > cfg.max_variables:
            return SecurityCheck(False, f"Too many variables (max {cfg.max_variables})")
    return SecurityCheck(True)


def validate_file_path(file_path: str, allowed_directory: str) -> bool:
    """True when *file_path* resolves inside *allowed_directory*."""
    resolved = os.path.realpath(file_path)
    allowed = os.path.realpath(allowed_directory)
    return os.path.commonpath([resolved, allowed]) == allowed


def safe_json_parse(content: str, config: Optional[SharedoConfig] = None) -> JsonParseResult:
    cfg = config or get_config()
    if content.startswith(_BOM):
        content = content[1:]
    if len(content) > cfg.max_workflow_bytes:
        return JsonParseResult(False, error="JSON content too large")
    try:
        return JsonParseResult(True, data=json.loads(content))
    except ValueError as exc:
        return JsonParseResult(False, error=str(exc))


def create_safe_file_name(system_name: str) -> str:
    safe = _UNSAFE_FILE_CHARS_RE.sub("-", system_name)
    safe = re.sub(r"-+", "-", safe).strip("-")
    return (safe or "workflow")[:100]


def check_dangerous_actions(document: Any) -> List[str]:
    """Return advisories for actions that run scripts or reach outside ShareDo."""
    warnings: List[str] = []
    if not isinstance(document, dict) or not isinstance(document.get("steps"), list):
        return warnings

    for step in document["steps"]:
        if not isinstance(step, dict) or not isinstance(step.get("actions"), list):
            continue
        step_name = step.get("name") or step.get("systemName")
        for action in step["actions"]:
            if not isinstance(action, dict):
                continue
            kind = action.get("actionSystemName")
            if kind in SCRIPT_ACTION_TYPES:
                warnings.append(f'Step "{step_name}" contains script execution action')
            elif kind in API_ACTION_TYPES:
                warnings.append(f'Step "{step_name}" makes external API calls')
            elif kind in FILE_ACTION_TYPES:
                warnings.append(f'Step "{step_name}" performs file system operations')
            elif kind in DATABASE_ACTION_TYPES:
                warnings.append(f'Step "{step_name}" executes database queries')
    return warnings


def guard(document: Any, config: Optional[SharedoConfig] = None):
    """Check a raw workflow document's system name and size.

    Raises:
        WorkflowSecurityError: on the first failed check.
    """
    if not isinstance(document, dict):
        raise WorkflowSecurityError("Workflow document must be a JSON object")
    name_check = validate_system_name(document.get("systemName"), config)
    if not name_check.valid:
        raise WorkflowSecurityError(name_check.error)
    size_check = validate_workflow_size(document, config)
    if not size_check.valid:
        raise WorkflowSecurityError(size_check.error)
