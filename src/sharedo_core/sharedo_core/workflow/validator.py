# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Rule-based static validation of ShareDo workflow definitions.

Each rule inspects the whole workflow and reports errors, warnings and
informational notes.  Rules are independent: a rule that raises is reported
as a single error and the remaining rules still run.  Only errors make a
workflow invalid.
"""

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from sharedo_common.constants import KNOWN_ACTION_TYPES
from sharedo_common.validation import (
    build_adjacency,
    connection_targets,
    detect_cycle,
    has_outgoing_connection,
    reachable_steps,
    referenced_steps,
    suggest,
    to_object,
)

from .model import Action, Workflow


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """A problem or observation reported by one rule."""

    severity: IssueSeverity
    rule: str
    message: str

    def __str__(self) -> str:
        return f"[{self.rule}] {self.message}"


@dataclass
class RuleResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)


@dataclass
class ValidationRule:
    name: str
    description: str
    check: Callable[[Workflow], RuleResult]


@dataclass
class ValidationResult:
    """Result of validating one workflow."""

    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == IssueSeverity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity == IssueSeverity.WARNING for i in self.issues)

    @property
    def errors(self) -> List[str]:
        return [str(i) for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == IssueSeverity.WARNING]

    @property
    def info(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == IssueSeverity.INFO]

    def add_error(self, rule: str, message: str):
        self.issues.append(ValidationIssue(IssueSeverity.ERROR, rule, message))

    def add_warning(self, rule: str, message: str):
        self.issues.append(ValidationIssue(IssueSeverity.WARNING, rule, message))

    def add_info(self, rule: str, message: str):
        self.issues.append(ValidationIssue(IssueSeverity.INFO, rule, message))


# (severity, any-of config keys, message) checks per action type.  A check
# fires when none of its keys holds a truthy value.
ConfigCheck = Tuple[IssueSeverity, Tuple[str, ...], str]

_LOOP_CHECKS: List[ConfigCheck] = [
    (IssueSeverity.ERROR, ("sourceCollection",), "Loop action missing source collection"),
    (IssueSeverity.ERROR, ("currentValueVariable",), "Loop action missing current value variable"),
]


class WorkflowValidator:
    """Validates ShareDo workflow definitions."""

    KNOWN_ACTION_TYPES = KNOWN_ACTION_TYPES
    VARIABLE_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*Variable$")
    ACTION_CONFIG_CHECKS: Dict[str, List[ConfigCheck]] = {
        "startStep": [
            (
                IssueSeverity.WARNING,
                ("now", "startOnDateTimeVariable", "startIn"),
                "Start step action has no timing configuration",
            ),
        ],
        "createNotification": [
            (
                IssueSeverity.ERROR,
                ("notificationTypeSystemName",),
                "Notification action missing notificationTypeSystemName",
            ),
            (IssueSeverity.WARNING, ("title", "message"), "Notification has no title or message"),
        ],
        "OutboundEmail": [
            (IssueSeverity.ERROR, ("taskType",), "Email action missing taskType"),
            (
                IssueSeverity.WARNING,
                ("fromParticipantRole", "toParticipantRole"),
                "Email action missing participant roles",
            ),
        ],
        "loadData": [
            (IssueSeverity.ERROR, ("workItemType", "entityType"), "Load data action missing entity type"),
        ],
        "Each": _LOOP_CHECKS,
        "forEach": _LOOP_CHECKS,
    }

    def __init__(self):
        self.rules: List[ValidationRule] = []
        self.add_rule(
            ValidationRule(
                "Basic Structure", "Validates basic workflow structure", self._validate_basic_structure
            )
        )
        self.add_rule(
            ValidationRule(
                "Start/End Steps",
                "Validates start and end step configuration",
                self._validate_start_end_steps,
            )
        )
        self.add_rule(
            ValidationRule(
                "Connections", "Validates step connections and flow", self._validate_connections
            )
        )
        self.add_rule(
            ValidationRule(
                "Variables", "Validates variable usage and references", self._validate_variables
            )
        )
        self.add_rule(
            ValidationRule("Actions", "Validates action configurations", self._validate_actions)
        )
        self.add_rule(
            ValidationRule(
                "Circular Dependencies",
                "Checks for circular dependencies in workflow",
                self._validate_circular_dependencies,
            )
        )
        self.add_rule(
            ValidationRule(
                "Orphaned Steps", "Checks for unreachable steps", self._validate_orphaned_steps
            )
        )

    def add_rule(self, rule: ValidationRule):
        """Append a rule; it runs after every rule already registered."""
        self.rules.append(rule)

    def rules_summary(self) -> List[str]:
        return [f"{rule.name}: {rule.description}" for rule in self.rules]

    def validate(self, workflow: Workflow) -> ValidationResult:
        """Run every rule against *workflow* and collect their findings."""
        result = ValidationResult()
        for rule in self.rules:
            try:
                outcome = rule.check(workflow)
            except Exception as exc:
                result.add_error(rule.name, f"Validation failed: {exc}")
                continue
            for message in outcome.errors:
                result.add_error(rule.name, message)
            for message in outcome.warnings:
                result.add_warning(rule.name, message)
            for message in outcome.info:
                result.add_info(rule.name, message)
        return result

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _validate_basic_structure(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        if not workflow.system_name:
            result.errors.append("Workflow must have a systemName")
        if not workflow.name:
            result.errors.append("Workflow must have a name")
        if not workflow.steps:
            result.warnings.append("Workflow has no steps defined")

        seen: Set[str] = set()
        for position, step in enumerate(workflow.steps, start=1):
            if not step.system_name:
                label = f" '{step.name}'" if step.name else ""
                result.errors.append(f"Step{label} at position {position} has no systemName")
                continue
            if step.system_name in seen:
                result.errors.append(f"Duplicate step systemName: {step.system_name}")
            seen.add(step.system_name)
        return result

    def _validate_start_end_steps(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        start_steps = workflow.start_steps
        end_steps = workflow.end_steps

        if not start_steps:
            result.warnings.append("No start step defined")
        elif len(start_steps) > 1:
            names = ", ".join(s.system_name for s in start_steps)
            result.info.append(f"Multiple start steps found: {names}")

        if not end_steps:
            result.warnings.append("No end step defined")

        for step in start_steps:
            if not step.actions:
                result.warnings.append(f"Start step '{step.system_name}' has no actions")
            elif not has_outgoing_connection(step.actions):
                result.warnings.append(f"Start step '{step.system_name}' has no outgoing connections")

        for step in end_steps:
            if has_outgoing_connection(step.actions):
                result.warnings.append(
                    f"End step '{step.system_name}' should not have outgoing connections"
                )
        return result

    def _validate_connections(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        step_names = [s.system_name for s in workflow.steps]
        known = set(step_names)

        for step in workflow.steps:
            for index, action in enumerate(step.actions):
                for slot, target in connection_targets(action.connections):
                    if target in known:
                        continue
                    message = (
                        f"Action '{_action_label(action, index)}' in step '{step.system_name}' "
                        f"references non-existent step in '{slot}' connection: {target}"
                    )
                    hint = suggest(target, step_names)
                    if hint:
                        message += f" (did you mean {hint}?)"
                    result.errors.append(message)
        return result

    def _validate_variables(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        names: Set[str] = set()

        for variable in workflow.variables:
            if variable.system_name in names:
                result.errors.append(f"Duplicate variable systemName: {variable.system_name}")
            names.add(variable.system_name)
            if variable.is_mandatory and variable.is_input_variable and not variable.default_value:
                result.warnings.append(
                    f"Mandatory input variable '{variable.system_name}' has no default value"
                )

        # Best effort: only keys shaped like ``somethingVariable`` are inspected.
        for step in workflow.steps:
            for index, action in enumerate(step.actions):
                refs = self._variable_references(to_object(action.config))
                for ref in dict.fromkeys(refs):
                    if ref not in names:
                        result.warnings.append(
                            f"Action '{_action_label(action, index)}' in step '{step.system_name}' "
                            f"references undefined variable: {ref}"
                        )
        return result

    def _variable_references(self, config: Any) -> List[str]:
        refs: List[str] = []

        def extract(value: Any):
            if isinstance(value, dict):
                for key, item in value.items():
                    if (
                        isinstance(key, str)
                        and self.VARIABLE_KEY_PATTERN.match(key)
                        and isinstance(item, str)
                        and item
                    ):
                        refs.append(item)
                    else:
                        extract(item)
            elif isinstance(value, list):
                for item in value:
                    extract(item)

        extract(config)
        return refs

    def _validate_actions(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()

        for step in workflow.steps:
            if not step.actions:
                if not step.is_end:
                    result.warnings.append(f"Step '{step.system_name}' has no actions")
                continue

            id_counts = Counter(a.id for a in step.actions if a.id)
            for action_id, count in id_counts.items():
                if count > 1:
                    result.errors.append(
                        f"Duplicate action ID in step '{step.system_name}': {action_id}"
                    )

            for index, action in enumerate(step.actions):
                label = _action_label(action, index)
                if action.action_system_name not in self.KNOWN_ACTION_TYPES:
                    result.info.append(
                        f"Unknown action type in step '{step.system_name}': "
                        f"{action.action_system_name}"
                    )

                config, parse_error = _parse_config(action.config)
                if parse_error:
                    result.errors.append(
                        f"Invalid configuration for action '{label}' in step "
                        f"'{step.system_name}': {parse_error}"
                    )
                    continue
                context = f"action '{label}' in step '{step.system_name}'"
                self._check_action_config(action, config, context, result)
        return result

    def _check_action_config(
        self, action: Action, config: Dict[str, Any], context: str, result: RuleResult
    ):
        for severity, keys, message in self.ACTION_CONFIG_CHECKS.get(action.action_system_name, []):
            if any(config.get(k) for k in keys):
                continue
            target = result.errors if severity == IssueSeverity.ERROR else result.warnings
            target.append(f"{message} ({context})")

    def _validate_circular_dependencies(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        graph = build_adjacency(workflow)
        cycle = detect_cycle([s.system_name for s in workflow.steps], graph)
        if cycle:
            origin, target = cycle[-2], cycle[-1]
            result.errors.append(
                f"Circular dependency detected: {origin} -> {target} "
                f"(cycle: {' -> '.join(cycle)})"
            )
        return result

    def _validate_orphaned_steps(self, workflow: Workflow) -> RuleResult:
        result = RuleResult()
        if not workflow.steps:
            return result

        graph = build_adjacency(workflow)
        referenced = referenced_steps(graph)
        start_names = [s.system_name for s in workflow.start_steps]

        for step in workflow.steps:
            if not step.is_start and step.system_name not in referenced:
                result.warnings.append(
                    f"Step '{step.system_name}' is not reachable from any other step"
                )

        if not start_names:
            result.warnings.append("No start step defined - workflow may not be executable")
            return result

        reachable = reachable_steps(graph, start_names)
        for step in workflow.steps:
            if step.system_name in referenced and step.system_name not in reachable:
                result.info.append(
                    f"Step '{step.system_name}' is not reachable from any start step"
                )
        return result


def _action_label(action: Action, index: int) -> str:
    return action.name or action.key(index)


def _parse_config(raw: Any) -> Tuple[Dict[str, Any], Optional[str]]:
    """Return the config as a dict plus a parse error message, if any."""
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError as exc:
            return {}, str(exc)
        return (parsed if isinstance(parsed, dict) else {}), None
    return to_object(raw), None


def validate(workflow: Workflow) -> ValidationResult:
    """Validate *workflow* with the default rule set."""
    return WorkflowValidator().validate(workflow)
