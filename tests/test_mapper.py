"""Tests for mapping recovered candidates into store rows."""

from __future__ import annotations

import pytest

from growthlab.errors import PreconditionError
from growthlab.mapper import checked_ice_score, ensure_goal_id, map_candidates
from growthlab.models.experiment import ExperimentStatus
from growthlab.models.generation import ExperimentCandidate


class TestMapCandidates:
    def test_field_mapping(self):
        candidate = ExperimentCandidate(
            title="T1",
            hypothesis="H1",
            metric="CTR",
            target=2.0,
            cutoff_line="pause if CPA>50",
            ice_score=8,
        )
        [row] = map_candidates([candidate], user_id="u1", goal_id=7, context_id=3)

        assert row.user_id == "u1"
        assert row.hypothesis == "H1"
        assert row.variable == "CTR"
        assert row.expected_result == 2.0
        assert row.target_value == 2.0
        assert row.cutoff_line == "pause if CPA>50"
        assert row.ice_score == 8
        assert row.context_id == 3
        assert row.goal_id == 7
        assert row.status == ExperimentStatus.BACKLOG

    def test_uuid_goal_carried_verbatim(self):
        goal_id = "3f2b8c1e-9d4a-4e7b-a1c2-5f6e7d8c9b0a"
        [row] = map_candidates([ExperimentCandidate(title="A")], user_id="u", goal_id=goal_id)
        assert row.goal_id == goal_id

    def test_text_target_has_no_numeric_mirror(self):
        [row] = map_candidates(
            [ExperimentCandidate(title="A", target="+20%")], user_id="u", goal_id=1
        )
        assert row.expected_result == "+20%"
        assert row.target_value is None

    def test_numeric_string_target_mirrored(self):
        [row] = map_candidates([ExperimentCandidate(target="2,5")], user_id="u", goal_id=1)
        assert row.target_value == 2.5

    @pytest.mark.parametrize("goal_id", [None, "", "   ", float("nan")])
    def test_unusable_goal_fails_before_mapping(self, goal_id):
        with pytest.raises(PreconditionError):
            map_candidates([ExperimentCandidate(title="A")], user_id="u", goal_id=goal_id)


class TestEnsureGoalId:
    def test_passes_valid_ids(self):
        assert ensure_goal_id(7) == 7
        assert ensure_goal_id("abc-def-ghij") == "abc-def-ghij"

    def test_rejects_bool(self):
        with pytest.raises(PreconditionError):
            ensure_goal_id(True)


class TestCheckedIceScore:
    @pytest.mark.parametrize(("raw", "expected"), [(8, 8), (0, 0), (None, None)])
    def test_integers_and_null(self, raw, expected):
        assert checked_ice_score(raw) == expected

    @pytest.mark.parametrize("raw", ["8", 7.5, 8.0, True, [8]])
    def test_non_integers_rejected(self, raw):
        assert checked_ice_score(raw) is None
