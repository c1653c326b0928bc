# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from sharedo_common.validation.suggestions import suggest


def test_close_match_is_quoted():
    assert suggest("reviw", ["review", "approve", "end"]) == "'review'"


def test_no_match_returns_none():
    assert suggest("zzzz", ["review", "approve"]) is None


def test_reference_itself_is_not_suggested():
    assert suggest("review", ["review"]) is None


def test_limits_number_of_matches():
    candidates = ["step1", "step2", "step3", "step4"]
    result = suggest("step", candidates, n=2)
    assert result is not None
    assert result.count("'") == 4


def test_duplicate_candidates_listed_once():
    assert suggest("reviw", ["review", "review"]) == "'review'"
