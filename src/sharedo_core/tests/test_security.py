# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import os

import pytest

from sharedo_core.cli.config import SharedoConfig
from sharedo_core.workflow.security import (
    WorkflowSecurityError,
    check_dangerous_actions,
    create_safe_file_name,
    guard,
    safe_json_parse,
    sanitize_name,
    validate_file_path,
    validate_system_name,
    validate_workflow_size,
)


class TestSystemName:
    @pytest.mark.parametrize("name", ["matter-intake", "Flow_2", "a"])
    def test_accepted(self, name, config):
        assert validate_system_name(name, config).valid

    @pytest.mark.parametrize(
        "name, error",
        [
            ("", "System name cannot be empty"),
            ("   ", "System name cannot be empty"),
            (None, "System name cannot be empty"),
            ("x" * 101, "System name too long (max 100 characters)"),
            ("../etc", "System name contains invalid characters"),
            ("a/b", "System name contains invalid characters"),
            ("a\\b", "System name contains invalid characters"),
            ("a:b", "System name contains invalid character: ':'"),
            ("a*b", "System name contains invalid character: '*'"),
            ("con", "System name is a reserved word"),
            ("LPT1", "System name is a reserved word"),
            (
                "has space",
                "System name must contain only letters, numbers, hyphens, and underscores",
            ),
            ("dot.name", "System name must contain only letters, numbers, hyphens, and underscores"),
        ],
    )
    def test_rejected(self, name, error, config):
        check = validate_system_name(name, config)
        assert not check.valid
        assert check.error == error

    def test_length_limit_is_configurable(self):
        cfg = SharedoConfig(max_system_name_length=5)
        assert not validate_system_name("abcdef", cfg).valid
        assert validate_system_name("abcde", cfg).valid


class TestSanitizeName:
    def test_strips_tags_and_escapes(self, config):
        assert sanitize_name("<b>Hi</b> & 'you'", config) == "Hi &amp; &#39;you&#39;"

    def test_escapes_slash_and_quotes(self, config):
        assert sanitize_name('a/b "c"', config) == "a&#x2F;b &quot;c&quot;"

    def test_truncates(self):
        cfg = SharedoConfig(max_display_name_length=10)
        assert sanitize_name("abcdefghijklmnop", cfg) == "abcdefg..."
        assert sanitize_name("abcdefghij", cfg) == "abcdefghij"


class TestWorkflowSize:
    def test_small_workflow_passes(self, workflow_dict, config):
        assert validate_workflow_size(workflow_dict, config).valid

    def test_too_large(self, workflow_dict):
        check = validate_workflow_size(workflow_dict, SharedoConfig(max_workflow_bytes=100))
        assert not check.valid
        assert check.error.startswith("Workflow too large (")

    def test_too_many_steps(self, workflow_dict):
        check = validate_workflow_size(workflow_dict, SharedoConfig(max_steps=2))
        assert check.error == "Too many steps (max 2)"

    def test_too_many_variables(self, workflow_dict):
        workflow_dict["variables"].append({"systemName": "other"})
        check = validate_workflow_size(workflow_dict, SharedoConfig(max_variables=1))
        assert check.error == "Too many variables (max 1)"


def test_validate_file_path(tmp_path):
    inside = tmp_path / "flows" / "a.json"
    assert validate_file_path(str(inside), str(tmp_path))
    assert validate_file_path(str(tmp_path / "flows" / ".." / "b.json"), str(tmp_path))
    assert not validate_file_path(str(tmp_path / ".." / "escape.json"), str(tmp_path))
    assert not validate_file_path(os.path.dirname(str(tmp_path)), str(tmp_path))


class TestSafeJsonParse:
    def test_parses(self, config):
        result = safe_json_parse('{"a": 1}', config)
        assert result.success
        assert result.data == {"a": 1}

    def test_strips_bom(self, config):
        assert safe_json_parse('\ufeff{"a": 1}', config).data == {"a": 1}

    def test_invalid(self, config):
        result = safe_json_parse("{oops", config)
        assert not result.success
        assert result.error

    def test_too_large(self):
        result = safe_json_parse('{"a": "' + "x" * 50 + '"}', SharedoConfig(max_workflow_bytes=20))
        assert result.error == "JSON content too large"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("matter-intake", "matter-intake"),
        ("My Workflow!!", "My-Workflow"),
        ("a  b", "a-b"),
        ("!!!", "workflow"),
        ("", "workflow"),
        ("x" * 150, "x" * 100),
    ],
)
def test_create_safe_file_name(name, expected):
    assert create_safe_file_name(name) == expected


def test_check_dangerous_actions():
    document = {
        "steps": [
            {
                "systemName": "s1",
                "name": "Scripts",
                "actions": [
                    {"actionSystemName": "runScript"},
                    {"actionSystemName": "callApi"},
                ],
            },
            {
                "systemName": "s2",
                "actions": [
                    {"actionSystemName": "writeFile"},
                    {"actionSystemName": "executeSql"},
                    {"actionSystemName": "createTask"},
                    "junk",
                ],
            },
            "junk",
        ]
    }
    assert check_dangerous_actions(document) == [
        'Step "Scripts" contains script execution action',
        'Step "Scripts" makes external API calls',
        'Step "s2" performs file system operations',
        'Step "s2" executes database queries',
    ]
    assert check_dangerous_actions({"steps": None}) == []
    assert check_dangerous_actions([]) == []


class TestGuard:
    def test_accepts_valid_document(self, workflow_dict, config):
        guard(workflow_dict, config)

    def test_rejects_non_object(self, config):
        with pytest.raises(WorkflowSecurityError, match="must be a JSON object"):
            guard([1, 2], config)

    def test_rejects_bad_system_name(self, workflow_dict, config):
        workflow_dict["systemName"] = "../../etc/passwd"
        with pytest.raises(WorkflowSecurityError, match="invalid characters"):
            guard(workflow_dict, config)

    def test_rejects_oversized(self, workflow_dict):
        with pytest.raises(WorkflowSecurityError, match="Too many steps"):
            guard(workflow_dict, SharedoConfig(max_steps=1))
