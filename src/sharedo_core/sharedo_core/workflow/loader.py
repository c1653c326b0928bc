# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Load workflow definition files (JSON or YAML) into :class:`Workflow` objects."""

import hashlib
import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

import yaml

from sharedo_common.constants import WORKFLOW_FILE_SUFFIXES
from sharedo_core.cli.config import SharedoConfig, get_config

from .model import Workflow
from .security import WorkflowSecurityError, check_dangerous_actions, guard, safe_json_parse

LOGGER = logging.getLogger(__name__)


class WorkflowLoadError(ValueError):
    """Raised when a workflow file cannot be read, parsed or accepted."""


@dataclass
class LoadedWorkflow:
    path: str
    workflow: Workflow
    checksum: str
    advisories: List[str] = field(default_factory=list)


def content_checksum(content: str) -> str:
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def parse_document(content: str, source: str, config: Optional[SharedoConfig] = None) -> Any:
    """Parse *content* as YAML when *source* has a YAML suffix, else as JSON."""
    if source.lower().endswith((".yaml", ".yml")):
        limit = (config or get_config()).max_workflow_bytes
        if len(content.encode("utf-8")) > limit:
            raise WorkflowLoadError(f"YAML content too large in {source} (max {limit} bytes)")
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise WorkflowLoadError(f"YAML parse error in {source}: {exc}") from exc

    parsed = safe_json_parse(content, config)
    if not parsed.success:
        raise WorkflowLoadError(f"JSON parse error in {source}: {parsed.error}")
    return parsed.data


def load_workflow_document(
    content: str, source: str = "<memory>", config: Optional[SharedoConfig] = None
) -> LoadedWorkflow:
    document = parse_document(content, source, config)
    try:
        guard(document, config)
    except WorkflowSecurityError as exc:
        raise WorkflowLoadError(f"{source}: {exc}") from exc

    workflow = Workflow.from_dict(document)
    advisories = check_dangerous_actions(document)
    for advisory in advisories:
        LOGGER.warning("%s: %s", workflow.system_name, advisory)
    LOGGER.debug(
        "Loaded workflow %s from %s (%d steps, %d variables)",
        workflow.system_name,
        source,
        len(workflow.steps),
        len(workflow.variables),
    )
    return LoadedWorkflow(source, workflow, content_checksum(content), advisories)


def load_workflow(path: str, config: Optional[SharedoConfig] = None) -> LoadedWorkflow:
    """Read, guard and model the workflow stored at *path*.

    Raises:
        WorkflowLoadError: if the file is missing, unreadable, malformed, or
            rejected by the security guard.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            content = fh.read()
    except FileNotFoundError as exc:
        raise WorkflowLoadError(f"File not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkflowLoadError(f"Error reading file {path}: {exc}") from exc
    return load_workflow_document(content, os.path.abspath(path), config)


def find_workflow_files(directory: str) -> List[str]:
    """Return every workflow file under *directory*, sorted."""
    results: List[str] = []
    if not os.path.isdir(directory):
        return results
    for root, _dirs, files in os.walk(directory):
        for fname in files:
            if fname.lower().endswith(WORKFLOW_FILE_SUFFIXES):
                results.append(os.path.join(root, fname))
    return sorted(results)
