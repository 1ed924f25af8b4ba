"""Click CLI entry point for GrowthLab."""

from __future__ import annotations

import asyncio
import json
import sys
import uuid
from typing import Any

import click

from growthlab.config import Settings
from growthlab.db import Database
from growthlab.errors import GrowthLabError
from growthlab.lifecycle import LifecycleAction, transition_experiment
from growthlab.logging import configure_logging
from growthlab.models.context import DiagnosticContext
from growthlab.models.experiment import Experiment, ExperimentStatus
from growthlab.models.goal import Goal, classify_goal_id

DEFAULT_CLI_USER = "cli"


def _get_db(settings: Settings) -> Database:
    settings.ensure_data_dir()
    db = Database(settings.db_path)
    db.init_schema()
    return db


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_goal_id(raw: str | None) -> Any:
    if raw is None:
        return None
    goal_id = classify_goal_id(raw)
    if goal_id is None:
        _fail(f"invalid goal id {raw!r}")
    return goal_id


def _load_analysis(raw: str) -> Any:
    """Accept inline JSON, ``@path`` to a JSON file, or plain text."""
    if raw.startswith("@"):
        with open(raw[1:], encoding="utf-8") as fh:
            raw = fh.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _format_experiment(exp: Experiment) -> str:
    target = "" if exp.expected_result is None else f" target={exp.expected_result}"
    variable = exp.variable or "-"
    return f"  [{exp.id}] {exp.status.value:12s} {variable}: {exp.hypothesis or ''}{target}"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--user", "user_id", default=DEFAULT_CLI_USER, help="Owner of created records")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, user_id: str) -> None:
    """GrowthLab: growth experiment generation and backlog."""
    ctx.ensure_object(dict)
    settings = Settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)
    ctx.obj["settings"] = settings
    ctx.obj["user_id"] = user_id


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    db.close()
    click.echo(f"Database ready at {settings.db_path}")


@cli.command("add-goal")
@click.argument("title")
@click.option("--id", "raw_id", type=str, default=None, help="Goal id (number or UUID)")
@click.option("--metric", "target_metric", default="", help="Target metric, e.g. CPA")
@click.option("--platform", "ad_platform", default="", help="Ad platform, e.g. Meta Ads")
@click.option("--cycle", "current_cycle", default=1, type=int, help="Current cycle number")
@click.pass_context
def add_goal(
    ctx: click.Context,
    title: str,
    raw_id: str | None,
    target_metric: str,
    ad_platform: str,
    current_cycle: int,
) -> None:
    """Create a goal."""
    goal_id = _parse_goal_id(raw_id) if raw_id is not None else str(uuid.uuid4())
    db = _get_db(ctx.obj["settings"])
    try:
        goal = db.create_goal(
            Goal(
                id=goal_id,
                user_id=ctx.obj["user_id"],
                title=title,
                target_metric=target_metric,
                ad_platform=ad_platform,
                current_cycle=current_cycle,
            )
        )
        click.echo(f"Created goal {goal.id}")
    except GrowthLabError as exc:
        _fail(exc.message)
    finally:
        db.close()


@cli.command("add-context")
@click.argument("analysis")
@click.option("--raw-input", default="", help="Original free-form diagnostic text")
@click.option("--goal", "raw_goal", type=str, default=None, help="Associated goal id")
@click.pass_context
def add_context(ctx: click.Context, analysis: str, raw_input: str, raw_goal: str | None) -> None:
    """Store a diagnostic context. ANALYSIS is JSON, @file.json or text."""
    goal_id = _parse_goal_id(raw_goal)
    db = _get_db(ctx.obj["settings"])
    try:
        context = db.create_context(
            DiagnosticContext(
                user_id=ctx.obj["user_id"],
                raw_input=raw_input,
                structured_analysis=_load_analysis(analysis),
                goal_id=goal_id,
            )
        )
        click.echo(f"Created context {context.id}")
    except GrowthLabError as exc:
        _fail(exc.message)
    finally:
        db.close()


@cli.command()
@click.argument("context_id", type=int)
@click.option("--goal", "raw_goal", type=str, default=None, help="Goal id (default: the context's)")
@click.option("--metric", "target_metric", default=None, help="Fallback target metric")
@click.pass_context
def generate(
    ctx: click.Context, context_id: int, raw_goal: str | None, target_metric: str | None
) -> None:
    """Generate a batch of experiments from a stored context."""
    from growthlab.llm import LLMClient
    from growthlab.models.user import User
    from growthlab.pipeline import ExperimentGenerator, GenerationRequest

    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        context = db.get_context(context_id)
        if context is None:
            _fail(f"context {context_id} not found")
            return
        generator = ExperimentGenerator(
            contexts=db, goals=db, experiments=db, llm=LLMClient(settings)
        )
        request = GenerationRequest(
            structured_analysis=context.structured_analysis,
            target_metric=target_metric,
            context_id=context_id,
            goal_id=raw_goal,
        )
        outcome = asyncio.run(generator.generate(request, User(id=context.user_id)))
        if outcome.strategic_vision:
            click.echo(outcome.strategic_vision)
            click.echo("")
        click.echo(f"Created {len(outcome.experiments)} experiments:")
        for exp in outcome.experiments:
            click.echo(_format_experiment(exp))
    except GrowthLabError as exc:
        _fail(exc.message)
    finally:
        db.close()


@cli.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ExperimentStatus]),
    default=None,
    help="Filter by status",
)
@click.option("--all-users", is_flag=True, help="Include experiments of every user")
@click.pass_context
def list_experiments(ctx: click.Context, status: str | None, all_users: bool) -> None:
    """List experiments, newest first."""
    db = _get_db(ctx.obj["settings"])
    try:
        experiments = db.list_experiments(
            ExperimentStatus(status) if status else None,
            user_id=None if all_users else ctx.obj["user_id"],
        )
        if not experiments:
            click.echo("No experiments found.")
            return
        for exp in experiments:
            click.echo(_format_experiment(exp))
    finally:
        db.close()


def _run_action(ctx: click.Context, experiment_id: int, action: LifecycleAction) -> None:
    db = _get_db(ctx.obj["settings"])
    try:
        updated = transition_experiment(db, experiment_id, action)
        click.echo(f"Experiment {experiment_id} is now {updated.status.value}.")
    except GrowthLabError as exc:
        _fail(exc.message)
    finally:
        db.close()


@cli.command()
@click.argument("experiment_id", type=int)
@click.pass_context
def activate(ctx: click.Context, experiment_id: int) -> None:
    """Start running a backlog experiment."""
    _run_action(ctx, experiment_id, LifecycleAction.ACTIVATE)


@cli.command()
@click.argument("experiment_id", type=int)
@click.pass_context
def queue(ctx: click.Context, experiment_id: int) -> None:
    """Send a running experiment back to the backlog."""
    _run_action(ctx, experiment_id, LifecycleAction.QUEUE)


@cli.command()
@click.argument("experiment_id", type=int)
@click.pass_context
def archive(ctx: click.Context, experiment_id: int) -> None:
    """Archive an experiment."""
    _run_action(ctx, experiment_id, LifecycleAction.ARCHIVE)


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify which credentials are configured."""
    settings = ctx.obj["settings"]
    keys = {
        "Anthropic": bool(settings.anthropic_api_key),
        "API tokens": bool(settings.api_tokens),
    }
    for name, configured in keys.items():
        status = "OK" if configured else "-- not set"
        click.echo(f"  {name:16s} {status}")


@cli.command()
@click.option("--host", type=str, default=None, help="Bind host")
@click.option("--port", type=int, default=None, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the FastAPI API server."""
    import uvicorn

    settings = ctx.obj["settings"]
    uvicorn.run(
        "growthlab.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
    )
