"""Prometheus metric definitions for the GrowthLab service."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# --- Generation ---

generation_requests_total = Counter(
    "growthlab_generation_requests_total",
    "Experiment generation requests by outcome",
    labelnames=["outcome"],
)

generation_duration_seconds = Histogram(
    "growthlab_generation_duration_seconds",
    "Time spent waiting on the model for one generation",
    buckets=(1, 2, 5, 10, 20, 30, 60, 120),
)

# --- LLM tokens ---

llm_tokens_total = Counter(
    "growthlab_llm_tokens_total",
    "Total LLM tokens consumed",
    labelnames=["model", "token_type"],
)

# --- Experiments ---

experiments_total = Counter(
    "growthlab_experiments_total",
    "Total experiments created or transitioned",
    labelnames=["status"],
)
