# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import pytest

from sharedo_core.workflow.model import Action, Step, Variable, Workflow


def test_from_dict_reads_camel_case_document(workflow_dict):
    workflow = Workflow.from_dict(workflow_dict)
    assert workflow.system_name == "matter-intake"
    assert workflow.exception_notifications is True
    assert workflow.override_notifications is False
    assert [s.system_name for s in workflow.steps] == ["start", "mid", "end"]
    assert [s.system_name for s in workflow.start_steps] == ["start"]
    assert [s.system_name for s in workflow.end_steps] == ["end"]

    action = workflow.steps[0].actions[0]
    assert action.id == "a1"
    assert action.action_system_name == "startStep"
    assert action.config == {"now": True}


def test_missing_booleans_default_to_false():
    step = Step.from_dict({"systemName": "s"})
    assert not step.is_start and not step.is_end and not step.is_optimal
    assert step.actions == []


def test_non_list_collections_are_treated_as_empty():
    workflow = Workflow.from_dict({"systemName": "w", "steps": None, "variables": "x"})
    assert workflow.steps == []
    assert workflow.variables == []


def test_from_dict_rejects_non_mapping():
    with pytest.raises(TypeError, match="must be a mapping"):
        Workflow.from_dict(["not", "a", "workflow"])


def test_action_key_prefers_id():
    assert Action("createTask", id="abc").key(3) == "abc"
    assert Action("createTask").key(3) == "createTask_3"


def test_action_to_dict_omits_missing_id():
    assert "id" not in Action("createTask").to_dict()
    assert Action("createTask", id="x").to_dict()["id"] == "x"


def test_variable_round_trip_keeps_unmodelled_keys():
    data = {"systemName": "v", "name": "V", "type": "string", "isMandatory": True}
    variable = Variable.from_dict(data)
    assert variable.extra == {"type": "string"}
    assert variable.to_dict()["type"] == "string"
    assert variable.to_dict()["isMandatory"] is True


def test_raw_config_string_is_preserved(workflow_dict):
    workflow_dict["steps"][1]["actions"][0]["config"] = '{"b": 1, "a": 2}'
    workflow = Workflow.from_dict(workflow_dict)
    assert workflow.steps[1].actions[0].config == '{"b": 1, "a": 2}'
    assert workflow.to_dict()["steps"][1]["actions"][0]["config"] == '{"b": 1, "a": 2}'


def test_null_identity_fields_become_empty_strings():
    workflow = Workflow.from_dict(
        {
            "systemName": None,
            "variables": [{"systemName": None}],
            "steps": [{"systemName": None, "actions": [{"actionSystemName": None}]}],
        }
    )
    assert workflow.system_name == ""
    assert workflow.variables[0].system_name == ""
    assert workflow.steps[0].system_name == ""
    assert workflow.steps[0].actions[0].action_system_name == ""
    assert Step.from_dict({"systemName": 7}).system_name == "7"
