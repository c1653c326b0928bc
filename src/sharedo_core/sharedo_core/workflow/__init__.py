# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""ShareDo workflow model, validation and comparison."""

from .comparator import (
    ComparisonOptions,
    ComparisonResult,
    ComparisonSummary,
    Difference,
    DifferenceType,
    WorkflowComparator,
    compare,
    unified_diff,
)
from .loader import LoadedWorkflow, WorkflowLoadError, find_workflow_files, load_workflow
from .model import Action, Step, Variable, Workflow
from .validator import (
    IssueSeverity,
    RuleResult,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
    WorkflowValidator,
    validate,
)

__all__ = [
    "Action",
    "Step",
    "Variable",
    "Workflow",
    "WorkflowValidator",
    "ValidationRule",
    "ValidationResult",
    "ValidationIssue",
    "RuleResult",
    "IssueSeverity",
    "validate",
    "WorkflowComparator",
    "ComparisonOptions",
    "ComparisonResult",
    "ComparisonSummary",
    "Difference",
    "DifferenceType",
    "compare",
    "unified_diff",
    "LoadedWorkflow",
    "WorkflowLoadError",
    "load_workflow",
    "find_workflow_files",
]
