# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from typing import Final, FrozenSet, Tuple

# Named outcome slots of an action's ``connections`` payload, in the order
# they are reported.
CONNECTION_SLOTS: Final[Tuple[str, ...]] = (
    "execute",
    "yes",
    "no",
    "loop",
    "forEach",
    "complete",
)

KNOWN_ACTION_TYPES: Final[FrozenSet[str]] = frozenset(
    {
        "startStep",
        "endStep",
        "ifElse",
        "switch",
        "forEach",
        "Each",
        "when",
        "createNotification",
        "OutboundEmail",
        "createOutgoingSms",
        "CreatePrepareDocumentV2",
        "loadData",
        "UpdateAttribute",
        "createTask",
        "completeTask",
        "cancelTask",
        "logMessage",
        "setVariable",
        "callApi",
        "runScript",
    }
)

# Action types flagged as advisories by the security guard.
SCRIPT_ACTION_TYPES: Final[FrozenSet[str]] = frozenset({"runScript", "executeScript"})
API_ACTION_TYPES: Final[FrozenSet[str]] = frozenset({"callApi", "httpRequest"})
FILE_ACTION_TYPES: Final[FrozenSet[str]] = frozenset({"writeFile", "deleteFile"})
DATABASE_ACTION_TYPES: Final[FrozenSet[str]] = frozenset({"executeSql", "runQuery"})

WORKFLOW_FILE_SUFFIXES: Final[Tuple[str, ...]] = (".json", ".yaml", ".yml")
