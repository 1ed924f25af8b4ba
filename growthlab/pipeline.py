"""Experiment generation pipeline.

One request is one sequential chain: resolve goal -> enrich -> assemble
prompt -> generate -> recover -> map -> persist. Any failure aborts the whole
request; either a full, capped batch is stored or nothing is.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from growthlab.errors import ConfigurationError, GrowthLabError, PreconditionError
from growthlab.goals import load_goal_profile, resolve_goal_id
from growthlab.mapper import map_candidates
from growthlab.metrics import experiments_total, generation_requests_total
from growthlab.models.context import parse_structured_analysis
from growthlab.models.generation import TrafficContext
from growthlab.prompts import build_prompt
from growthlab.recovery import recover_experiments

if TYPE_CHECKING:
    from growthlab.models.experiment import Experiment
    from growthlab.models.user import User
    from growthlab.protocols import ContextStore, ExperimentStore, GoalStore, TextGenerator

logger = structlog.get_logger()

ANALYSIS_REQUIRED_MESSAGE = "Structured analysis is required"


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    structured_analysis: Any
    target_metric: str | None = None
    context_id: int | None = None
    goal_id: Any = None
    traffic_context: Any = None


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    experiments: list[Experiment] = field(default_factory=list)
    strategic_vision: str = ""


def has_analysis(value: Any) -> bool:
    """Empty string, null, false and zero count as missing; empty containers do not."""
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str):
        return value != ""
    if isinstance(value, int | float):
        return value != 0
    return True


def _traffic_source(request: GenerationRequest, analysis: Any) -> Any:
    if request.traffic_context is not None:
        return request.traffic_context
    if isinstance(analysis, dict):
        return analysis.get("_traffic_context")
    return None


class ExperimentGenerator:
    """Runs the generation pipeline against injected stores and model client."""

    def __init__(
        self,
        *,
        contexts: ContextStore,
        goals: GoalStore,
        experiments: ExperimentStore,
        llm: TextGenerator,
    ) -> None:
        self._contexts = contexts
        self._goals = goals
        self._experiments = experiments
        self._llm = llm

    async def generate(self, request: GenerationRequest, user: User) -> GenerationOutcome:
        try:
            outcome = await self._generate(request, user)
        except GrowthLabError as exc:
            generation_requests_total.labels(outcome=type(exc).__name__).inc()
            logger.warning(
                "Experiment generation aborted", error=exc.message, kind=type(exc).__name__
            )
            raise
        except Exception as exc:
            generation_requests_total.labels(outcome="unexpected").inc()
            logger.exception("Experiment generation crashed", error=str(exc))
            raise
        generation_requests_total.labels(outcome="success").inc()
        return outcome

    async def _generate(self, request: GenerationRequest, user: User) -> GenerationOutcome:
        if not has_analysis(request.structured_analysis):
            raise PreconditionError(ANALYSIS_REQUIRED_MESSAGE)

        goal_id = await resolve_goal_id(request.goal_id, request.context_id, self._contexts)
        structlog.contextvars.bind_contextvars(goal_id=goal_id, context_id=request.context_id)

        if not self._llm.is_available:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

        profile = await load_goal_profile(goal_id, self._goals, request.target_metric)
        analysis = parse_structured_analysis(request.structured_analysis)
        traffic = TrafficContext.from_raw(_traffic_source(request, analysis))
        prompt = build_prompt(profile, analysis, traffic)

        raw_text = await self._llm.generate_json_text(prompt.system, prompt.user)
        result = recover_experiments(raw_text)

        rows = map_candidates(
            result.candidates,
            user_id=user.id,
            goal_id=goal_id,
            context_id=request.context_id,
        )
        saved = await asyncio.to_thread(self._experiments.insert_experiments, rows)

        experiments_total.labels(status="backlog").inc(len(saved))
        logger.info("Experiments generated", count=len(saved), user_id=user.id)
        return GenerationOutcome(experiments=saved, strategic_vision=result.strategic_vision)
