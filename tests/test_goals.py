"""Tests for goal-id classification, goal resolution and goal profiles."""

from __future__ import annotations

import asyncio

import pytest

from growthlab.errors import PreconditionError
from growthlab.goals import GOAL_REQUIRED_MESSAGE, load_goal_profile, resolve_goal_id
from growthlab.models.context import DiagnosticContext
from growthlab.models.goal import Goal, classify_goal_id, is_opaque_goal_id

UUID = "3f2b8c1e-9d4a-4e7b-a1c2-5f6e7d8c9b0a"


class _Contexts:
    def __init__(self, *contexts: DiagnosticContext) -> None:
        self._by_id = {c.id: c for c in contexts}

    def get_context(self, context_id: int) -> DiagnosticContext | None:
        return self._by_id.get(context_id)

    def get_latest_context(self, user_id: str) -> DiagnosticContext | None:
        return None


class _Goals:
    def __init__(self, goal: Goal | None = None, error: Exception | None = None) -> None:
        self._goal = goal
        self._error = error

    def get_goal(self, goal_id):
        if self._error is not None:
            raise self._error
        return self._goal


class TestClassifyGoalId:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("7", 7),
            (7, 7),
            (7.0, 7),
            (" 12 ", 12),
            ("7.0", 7),
            (UUID, UUID),
        ],
    )
    def test_resolves(self, raw, expected):
        assert classify_goal_id(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", "nan", "inf", 0, -3, 2.5, "2.5", True, False, [7], "short-id"],
    )
    def test_unresolved(self, raw):
        assert classify_goal_id(raw) is None

    def test_numeric_string_becomes_int(self):
        assert isinstance(classify_goal_id("42"), int)

    def test_opaque_heuristic_boundary(self):
        assert is_opaque_goal_id("abcd-efghij")  # 11 chars
        assert not is_opaque_goal_id("abcd-efghi")  # 10 chars
        assert not is_opaque_goal_id("abcdefghijkl")  # no hyphen


class TestResolveGoalId:
    def test_explicit_wins_over_context(self):
        ctx = DiagnosticContext(id=1, user_id="u", goal_id=UUID)
        assert asyncio.run(resolve_goal_id("7", 1, _Contexts(ctx))) == 7

    def test_falls_back_to_context_goal(self):
        ctx = DiagnosticContext(id=1, user_id="u", goal_id=UUID)
        assert asyncio.run(resolve_goal_id(None, 1, _Contexts(ctx))) == UUID

    def test_non_numeric_explicit_falls_back(self):
        ctx = DiagnosticContext(id=1, user_id="u", goal_id=9)
        assert asyncio.run(resolve_goal_id("abc", 1, _Contexts(ctx))) == 9

    def test_no_source_raises(self):
        with pytest.raises(PreconditionError) as exc_info:
            asyncio.run(resolve_goal_id(None, None, _Contexts()))
        assert exc_info.value.message == GOAL_REQUIRED_MESSAGE

    def test_context_without_goal_raises(self):
        ctx = DiagnosticContext(id=1, user_id="u")
        with pytest.raises(PreconditionError):
            asyncio.run(resolve_goal_id(None, 1, _Contexts(ctx)))

    def test_missing_context_raises(self):
        with pytest.raises(PreconditionError):
            asyncio.run(resolve_goal_id(None, 99, _Contexts()))


class TestLoadGoalProfile:
    def test_goal_metric_takes_precedence(self):
        goal = Goal(id=7, title="Reduzir CPA", target_metric="CPA", ad_platform="Meta Ads")
        profile = asyncio.run(load_goal_profile(7, _Goals(goal), fallback_metric="CTR"))
        assert profile.title == "Reduzir CPA"
        assert profile.target_metric == "CPA"
        assert profile.ad_platform == "Meta Ads"

    def test_fallback_metric_when_goal_has_none(self):
        goal = Goal(id=7, title="Meta")
        profile = asyncio.run(load_goal_profile(7, _Goals(goal), fallback_metric="CTR"))
        assert profile.target_metric == "CTR"

    def test_missing_goal_is_not_fatal(self):
        profile = asyncio.run(load_goal_profile(7, _Goals(None), fallback_metric="ROAS"))
        assert profile.title == ""
        assert profile.target_metric == "ROAS"

    def test_lookup_error_is_swallowed(self):
        profile = asyncio.run(load_goal_profile(7, _Goals(error=RuntimeError("db down"))))
        assert profile.title == ""
        assert profile.target_metric == ""
