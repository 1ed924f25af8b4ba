"""Re-exports all Pydantic models."""

from growthlab.models.context import DiagnosticContext
from growthlab.models.experiment import Experiment, ExperimentStatus, NewExperiment
from growthlab.models.generation import ExperimentCandidate, GenerationResult, TrafficContext
from growthlab.models.goal import Goal, GoalId, GoalProfile
from growthlab.models.user import User

__all__ = [
    "DiagnosticContext",
    "Experiment",
    "ExperimentCandidate",
    "ExperimentStatus",
    "GenerationResult",
    "Goal",
    "GoalId",
    "GoalProfile",
    "NewExperiment",
    "TrafficContext",
    "User",
]
