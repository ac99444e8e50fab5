"""CLI entry point for the emotional profile engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from .core.enums import LedgerScope
from .core.errors import EngineError


def _read_json(path: str | None) -> Any:
    if path is None:
        return None
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise click.BadParameter(f"cannot read JSON from {path}: {exc}") from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _bootstrap(config: str | None, emotions: str | None):
    """Load settings, configure logging and resolve the emotion registry."""
    from .core.config import load_settings
    from .core.registry import EmotionRegistry
    from .observability.logger import setup_logging

    try:
        settings = load_settings(config_path=config)
    except EngineError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )

    path = emotions or settings.emotions_path
    try:
        registry = EmotionRegistry.from_file(path) if path else EmotionRegistry.default()
    except EngineError as exc:
        raise click.ClickException(str(exc)) from exc
    return settings, registry


@click.group()
def main() -> None:
    """Trading journal emotional profile engine."""


@main.command()
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--plan", "plan_file", default=None, help="Plan JSON file")
@click.option("--emotions", default=None, help="Emotion registry JSON file (default: built-in)")
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--alerts", "alerts_file", default=None, help="Persisted alerts JSON file")
@click.option("--subject", default="", help="Student/account id the alerts belong to")
@click.option("--from", "date_from", default=None, help="Start date (YYYY-MM-DD)")
@click.option("--to", "date_to", default=None, help="End date (YYYY-MM-DD)")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in LedgerScope]),
    default=LedgerScope.CYCLE.value,
    help="Goal/stop scope",
)
def analyze(
    trades_file: str,
    plan_file: str | None,
    emotions: str | None,
    config: str | None,
    alerts_file: str | None,
    subject: str,
    date_from: str | None,
    date_to: str | None,
    scope: str,
) -> None:
    """Run the full analysis and print it as JSON."""
    from .analysis import analyze as run_analysis

    settings, registry = _bootstrap(config, emotions)
    try:
        result = run_analysis(
            _read_json(trades_file),
            registry,
            plan=_read_json(plan_file),
            config=settings.detection,
            subject_id=subject,
            persisted_alerts=_read_json(alerts_file) or (),
            date_from=date_from,
            date_to=date_to,
            scope=scope,
        )
    except EngineError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(result)


@main.command()
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--plan", "plan_file", default=None, help="Plan JSON file")
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--from", "date_from", default=None, help="Start date (YYYY-MM-DD)")
@click.option("--to", "date_to", default=None, help="End date (YYYY-MM-DD)")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in LedgerScope]),
    default=LedgerScope.CYCLE.value,
    help="Goal/stop scope",
)
@click.option("--by-date", is_flag=True, help="Group entries by trade date")
def ledger(
    trades_file: str,
    plan_file: str | None,
    config: str | None,
    date_from: str | None,
    date_to: str | None,
    scope: str,
    by_date: bool,
) -> None:
    """Print the plan ledger and its summary as JSON."""
    from .journal.ledger import build_ledger, group_ledger_by_date, summarize_ledger

    _bootstrap(config, None)
    plan = _read_json(plan_file)
    try:
        entries = build_ledger(
            _read_json(trades_file), plan,
            date_from=date_from, date_to=date_to, scope=scope,
        )
        summary = summarize_ledger(entries, plan, scope=scope)
    except EngineError as exc:
        raise click.ClickException(str(exc)) from exc

    if by_date:
        body: Any = {
            day: [e.to_dict() for e in items]
            for day, items in group_ledger_by_date(entries).items()
        }
    else:
        body = [e.to_dict() for e in entries]
    _echo_json({"summary": summary, "entries": body})


@main.command()
@click.option("--emotions", default=None, help="Emotion registry JSON file (default: built-in)")
@click.option("--config", default=None, help="Config file path (TOML)")
def emotions(emotions: str | None, config: str | None) -> None:
    """List the emotion registry in use."""
    _, registry = _bootstrap(config, emotions)
    for emotion in registry:
        click.echo(
            f"{emotion.id:<14} {emotion.name:<14} {emotion.category.value:<9} "
            f"{emotion.score:>3}  {emotion.behavioral_pattern}"
        )


if __name__ == "__main__":
    main()
