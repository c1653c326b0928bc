# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""ShareDo workflow definition model.

The classes mirror the JSON documents exchanged with a ShareDo server.
``from_dict`` accepts the camelCase document form, ``to_dict`` writes it
back.  ``Action.config`` and ``Action.connections`` are kept exactly as
received (JSON string or parsed object) so that comparisons can see the raw
payload; use :func:`sharedo_common.validation.to_object` before inspecting
them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

_VARIABLE_FIELDS = ("systemName", "name", "isMandatory", "isInputVariable", "defaultValue")


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_key(value: Any) -> str:
    """Identity fields are always strings; JSON ``null`` becomes ``""``."""
    return "" if value is None else str(value)


@dataclass
class Variable:
    system_name: str
    name: Optional[str] = None
    is_mandatory: bool = False
    is_input_variable: bool = False
    default_value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)  # keys not modelled above

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variable":
        return cls(
            system_name=_as_key(data.get("systemName")),
            name=data.get("name"),
            is_mandatory=bool(data.get("isMandatory", False)),
            is_input_variable=bool(data.get("isInputVariable", False)),
            default_value=data.get("defaultValue"),
            extra={k: v for k, v in data.items() if k not in _VARIABLE_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "systemName": self.system_name,
            "name": self.name,
            "isMandatory": self.is_mandatory,
            "isInputVariable": self.is_input_variable,
            "defaultValue": self.default_value,
        }
        data.update(self.extra)
        return data


@dataclass
class Action:
    action_system_name: str
    name: Optional[str] = None
    id: Optional[str] = None
    order: Optional[int] = None
    config: Any = None
    connections: Any = None

    def key(self, index: int) -> str:
        """Stable identity within a step: the id, else ``<type>_<position>``."""
        return str(self.id) if self.id else f"{self.action_system_name}_{index}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        return cls(
            action_system_name=_as_key(data.get("actionSystemName")),
            name=data.get("name"),
            id=data.get("id") or None,
            order=data.get("order"),
            config=data.get("config"),
            connections=data.get("connections"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "actionSystemName": self.action_system_name,
            "name": self.name,
            "order": self.order,
            "config": self.config,
            "connections": self.connections,
        }
        if self.id:
            data["id"] = self.id
        return data


@dataclass
class Step:
    system_name: str
    name: Optional[str] = None
    description: Optional[str] = None
    is_start: bool = False
    is_end: bool = False
    is_optimal: bool = False
    ide_data: Optional[str] = None
    actions: List[Action] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(
            system_name=_as_key(data.get("systemName")),
            name=data.get("name"),
            description=data.get("description"),
            is_start=bool(data.get("isStart", False)),
            is_end=bool(data.get("isEnd", False)),
            is_optimal=bool(data.get("isOptimal", False)),
            ide_data=data.get("ideData"),
            actions=[Action.from_dict(a) for a in _as_list(data.get("actions")) if isinstance(a, dict)],
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "systemName": self.system_name,
            "name": self.name,
            "description": self.description,
            "isStart": self.is_start,
            "isEnd": self.is_end,
            "isOptimal": self.is_optimal,
            "actions": [a.to_dict() for a in self.actions],
        }
        if self.ide_data is not None:
            data["ideData"] = self.ide_data
        return data


@dataclass
class Workflow:
    system_name: str
    name: Optional[str] = None
    description: Optional[str] = None
    override_notifications: bool = False
    exception_notifications: bool = False
    exception_notification_email_addresses: Optional[str] = None
    variables: List[Variable] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workflow":
        """Build a workflow from its JSON document form.

        Raises:
            TypeError: if *data* is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Workflow document must be a mapping, got {type(data).__name__}")
        return cls(
            system_name=_as_key(data.get("systemName")),
            name=data.get("name"),
            description=data.get("description"),
            override_notifications=bool(data.get("overrideNotifications", False)),
            exception_notifications=bool(data.get("exceptionNotifications", False)),
            exception_notification_email_addresses=data.get("exceptionNotificationEmailAddresses"),
            variables=[
                Variable.from_dict(v) for v in _as_list(data.get("variables")) if isinstance(v, dict)
            ],
            steps=[Step.from_dict(s) for s in _as_list(data.get("steps")) if isinstance(s, dict)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systemName": self.system_name,
            "name": self.name,
            "description": self.description,
            "overrideNotifications": self.override_notifications,
            "exceptionNotifications": self.exception_notifications,
            "exceptionNotificationEmailAddresses": self.exception_notification_email_addresses,
            "variables": [v.to_dict() for v in self.variables],
            "steps": [s.to_dict() for s in self.steps],
        }

    @property
    def start_steps(self) -> List[Step]:
        return [s for s in self.steps if s.is_start]

    @property
    def end_steps(self) -> List[Step]:
        return [s for s in self.steps if s.is_end]
