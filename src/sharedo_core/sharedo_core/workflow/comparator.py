# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Structural comparison of two ShareDo workflow definitions.

Steps, actions and variables are matched by identity (system name, action
id or positional key), never by list position alone.  Every difference
carries a dotted ``path`` such as ``steps.review.actions.notify_1`` so a
consumer can locate it without walking the workflows again.

``config`` and ``connections`` payloads are compared by their serialized
JSON text.  By default key order matters, so two equivalent objects whose
keys are ordered differently are reported as modified; pass
``ComparisonOptions(canonical_json=True)`` to sort keys before comparing.
"""

import difflib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .model import Action, Step, Variable, Workflow


class DifferenceType(Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass
class Difference:
    type: DifferenceType
    path: str
    description: str
    left_value: Any = None
    right_value: Any = None
    scope: str = "workflow"  # workflow | step | action | variable
    subject: Optional[str] = None  # owning step or variable system name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "path": self.path,
            "leftValue": self.left_value,
            "rightValue": self.right_value,
            "description": self.description,
        }


@dataclass
class ComparisonSummary:
    steps_added: int = 0
    steps_removed: int = 0
    steps_modified: int = 0
    actions_added: int = 0
    actions_removed: int = 0
    actions_modified: int = 0
    variables_added: int = 0
    variables_removed: int = 0
    variables_modified: int = 0

    @classmethod
    def from_differences(cls, differences: List[Difference]) -> "ComparisonSummary":
        """Derive the counters from a difference list.

        A step with several changed fields counts once in ``steps_modified``.
        """

        def count(scope: str, kind: DifferenceType) -> int:
            return sum(1 for d in differences if d.scope == scope and d.type == kind)

        modified_steps = {
            d.subject
            for d in differences
            if d.scope == "step" and d.type == DifferenceType.MODIFIED
        }
        return cls(
            steps_added=count("step", DifferenceType.ADDED),
            steps_removed=count("step", DifferenceType.REMOVED),
            steps_modified=len(modified_steps),
            actions_added=count("action", DifferenceType.ADDED),
            actions_removed=count("action", DifferenceType.REMOVED),
            actions_modified=count("action", DifferenceType.MODIFIED),
            variables_added=count("variable", DifferenceType.ADDED),
            variables_removed=count("variable", DifferenceType.REMOVED),
            variables_modified=count("variable", DifferenceType.MODIFIED),
        )


@dataclass
class ComparisonOptions:
    left_title: str = "Left"
    right_title: str = "Right"
    canonical_json: bool = False


@dataclass
class ComparisonResult:
    differences: List[Difference] = field(default_factory=list)
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)
    left_title: str = "Left"
    right_title: str = "Right"

    @property
    def identical(self) -> bool:
        return not self.differences


def serialize(value: Any, canonical: bool = False) -> str:
    """Compact JSON text used as the equality proxy for opaque payloads.

    Strings are taken as already-serialized JSON.  In canonical mode strings
    are parsed (when possible) and object keys are sorted.
    """
    if isinstance(value, str):
        if not canonical:
            return value
        try:
            value = json.loads(value)
        except ValueError:
            return value
    return json.dumps(
        value, separators=(",", ":"), ensure_ascii=False, sort_keys=canonical, default=str
    )


class WorkflowComparator:
    """Computes the structural differences between two workflows."""

    WORKFLOW_FIELDS = (
        ("name", "name"),
        ("description", "description"),
        ("overrideNotifications", "override_notifications"),
        ("exceptionNotifications", "exception_notifications"),
    )
    STEP_FIELDS = (
        ("name", "name"),
        ("description", "description"),
        ("isStart", "is_start"),
        ("isEnd", "is_end"),
    )

    def compare(
        self,
        left: Workflow,
        right: Workflow,
        options: Optional[ComparisonOptions] = None,
    ) -> ComparisonResult:
        """Compare *left* against *right*; "added" means present only on the right."""
        options = options or ComparisonOptions()
        canonical = options.canonical_json
        differences: List[Difference] = []

        self._compare_workflow_fields(left, right, differences)
        self._compare_steps(left.steps, right.steps, canonical, differences)
        self._compare_variables(left.variables, right.variables, canonical, differences)

        return ComparisonResult(
            differences=differences,
            summary=ComparisonSummary.from_differences(differences),
            left_title=options.left_title,
            right_title=options.right_title,
        )

    def _compare_workflow_fields(
        self, left: Workflow, right: Workflow, differences: List[Difference]
    ):
        for path, attr in self.WORKFLOW_FIELDS:
            lval, rval = getattr(left, attr), getattr(right, attr)
            if lval == rval:
                continue
            if path == "description":
                description = "Workflow description changed"
            elif path == "name":
                description = f'Workflow name changed from "{lval}" to "{rval}"'
            else:
                label = "Override" if path == "overrideNotifications" else "Exception"
                description = f"{label} notifications changed from {lval} to {rval}"
            differences.append(
                Difference(DifferenceType.MODIFIED, path, description, lval, rval)
            )

    def _compare_steps(
        self,
        left_steps: List[Step],
        right_steps: List[Step],
        canonical: bool,
        differences: List[Difference],
    ):
        left_map = {s.system_name: s for s in left_steps}
        right_map = {s.system_name: s for s in right_steps}

        for key, step in left_map.items():
            if key not in right_map:
                differences.append(
                    Difference(
                        DifferenceType.REMOVED,
                        f"steps.{key}",
                        f'Step "{step.name or key}" removed',
                        left_value=step.to_dict(),
                        scope="step",
                        subject=key,
                    )
                )

        for key, rstep in right_map.items():
            lstep = left_map.get(key)
            if lstep is None:
                differences.append(
                    Difference(
                        DifferenceType.ADDED,
                        f"steps.{key}",
                        f'Step "{rstep.name or key}" added',
                        right_value=rstep.to_dict(),
                        scope="step",
                        subject=key,
                    )
                )
                continue
            self._compare_step_fields(key, lstep, rstep, differences)
            self._compare_actions(
                lstep.actions, rstep.actions, f"steps.{key}.actions", key, canonical, differences
            )

    def _compare_step_fields(
        self, key: str, left: Step, right: Step, differences: List[Difference]
    ):
        for path, attr in self.STEP_FIELDS:
            lval, rval = getattr(left, attr), getattr(right, attr)
            if lval == rval:
                continue
            if path == "name":
                description = f'Step name changed from "{lval}" to "{rval}"'
            elif path == "description":
                description = "Step description changed"
            else:
                flag = "start" if path == "isStart" else "end"
                description = f"Step {flag} flag changed from {lval} to {rval}"
            differences.append(
                Difference(
                    DifferenceType.MODIFIED,
                    f"steps.{key}.{path}",
                    description,
                    lval,
                    rval,
                    scope="step",
                    subject=key,
                )
            )

    def _compare_actions(
        self,
        left_actions: List[Action],
        right_actions: List[Action],
        base_path: str,
        step_key: str,
        canonical: bool,
        differences: List[Difference],
    ):
        left_map = {a.key(i): a for i, a in enumerate(left_actions)}
        right_map = {a.key(i): a for i, a in enumerate(right_actions)}

        for key, action in left_map.items():
            if key not in right_map:
                differences.append(
                    Difference(
                        DifferenceType.REMOVED,
                        f"{base_path}.{key}",
                        f'Action "{action.name or key}" removed',
                        left_value=action.to_dict(),
                        scope="action",
                        subject=step_key,
                    )
                )

        for key, raction in right_map.items():
            laction = left_map.get(key)
            if laction is None:
                differences.append(
                    Difference(
                        DifferenceType.ADDED,
                        f"{base_path}.{key}",
                        f'Action "{raction.name or key}" added',
                        right_value=raction.to_dict(),
                        scope="action",
                        subject=step_key,
                    )
                )
            elif self.is_action_modified(laction, raction, canonical):
                differences.append(
                    Difference(
                        DifferenceType.MODIFIED,
                        f"{base_path}.{key}",
                        f'Action "{raction.name or key}" modified',
                        left_value=laction.to_dict(),
                        right_value=raction.to_dict(),
                        scope="action",
                        subject=step_key,
                    )
                )

    @staticmethod
    def is_action_modified(left: Action, right: Action, canonical: bool = False) -> bool:
        if (
            left.name != right.name
            or left.action_system_name != right.action_system_name
            or left.order != right.order
        ):
            return True
        if serialize(left.config, canonical) != serialize(right.config, canonical):
            return True
        return serialize(left.connections, canonical) != serialize(right.connections, canonical)

    def _compare_variables(
        self,
        left_vars: List[Variable],
        right_vars: List[Variable],
        canonical: bool,
        differences: List[Difference],
    ):
        left_map = {v.system_name: v for v in left_vars}
        right_map = {v.system_name: v for v in right_vars}

        for key, var in left_map.items():
            if key not in right_map:
                differences.append(
                    Difference(
                        DifferenceType.REMOVED,
                        f"variables.{key}",
                        f'Variable "{var.name or key}" removed',
                        left_value=var.to_dict(),
                        scope="variable",
                        subject=key,
                    )
                )

        for key, rvar in right_map.items():
            lvar = left_map.get(key)
            if lvar is None:
                differences.append(
                    Difference(
                        DifferenceType.ADDED,
                        f"variables.{key}",
                        f'Variable "{rvar.name or key}" added',
                        right_value=rvar.to_dict(),
                        scope="variable",
                        subject=key,
                    )
                )
            elif serialize(lvar.to_dict(), canonical) != serialize(rvar.to_dict(), canonical):
                differences.append(
                    Difference(
                        DifferenceType.MODIFIED,
                        f"variables.{key}",
                        f'Variable "{rvar.name or key}" modified',
                        left_value=lvar.to_dict(),
                        right_value=rvar.to_dict(),
                        scope="variable",
                        subject=key,
                    )
                )


def compare(
    left: Workflow, right: Workflow, options: Optional[ComparisonOptions] = None
) -> ComparisonResult:
    return WorkflowComparator().compare(left, right, options)


def unified_diff(
    left: Workflow, right: Workflow, options: Optional[ComparisonOptions] = None
) -> List[str]:
    """Line-based diff of both workflows rendered as indented JSON."""
    options = options or ComparisonOptions()
    sort_keys = options.canonical_json
    left_lines = json.dumps(left.to_dict(), indent=2, sort_keys=sort_keys, default=str).splitlines()
    right_lines = json.dumps(right.to_dict(), indent=2, sort_keys=sort_keys, default=str).splitlines()
    return list(
        difflib.unified_diff(
            left_lines,
            right_lines,
            fromfile=options.left_title,
            tofile=options.right_title,
            lineterm="",
        )
    )
