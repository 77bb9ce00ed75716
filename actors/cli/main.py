"""Pattern tracker CLI actor implemented with Typer."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer
from pydantic import ValidationError

from packages.tracker_shared.config import load_settings
from packages.tracker_shared.envelope import Envelope, EnvelopeKind, EnvelopeMeta, new_meta
from packages.tracker_shared.logging import configure_logging
from resources.substrates.page_store import PageStoreSnapshotError, load_snapshot
from services.state.pattern_tracking import (
    ConfigurationError,
    PatternTrackingService,
    TrackedArtifact,
    TrackingReport,
    build_pattern_tracking_service,
)

SUCCESS_EXIT_CODE = 0
DOMAIN_ERROR_EXIT_CODE = 3
INPUT_ERROR_EXIT_CODE = 4

_COLUMN_GAP = "  "


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to service calls."""

    config_path: Path | None
    principal: str
    source: str
    as_json: bool
    trace_id: str | None


class InputError(Exception):
    """Raised for configuration or input problems found before a run."""


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(_serialize(key)): _serialize(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(_serialize(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_error(message: str, as_json: bool, *, code: str | None = None) -> None:
    """Render one error to stderr."""

    if as_json:
        payload: dict[str, str] = {"error": message}
        if code is not None:
            payload["code"] = code
        typer.echo(json.dumps(payload), err=True)
        return
    typer.echo(f"error: {message}", err=True)


def _render_table(headers: list[str], rows: list[list[str]]) -> list[str]:
    """Render left-aligned columns sized to their widest cell."""
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    def line(cells: list[str]) -> str:
        return _COLUMN_GAP.join(
            cell.ljust(widths[index]) for index, cell in enumerate(cells)
        ).rstrip()

    output = [line(headers), line(["-" * width for width in widths])]
    output.extend(line(row) for row in rows)
    return output


def _render_report(report: TrackingReport) -> str:
    """Render the legend, the row table and stage counts for humans."""
    legend = " | ".join(f"{entry.label} ({entry.key.value})" for entry in report.legend)
    lines = [f"Stages: {legend}", ""]
    if not report.rows:
        lines.append("No artifacts found.")
        return "\n".join(lines)

    headers = ["Title", "Type", "Wait", "Stage", *report.subtypes]
    rows: list[list[str]] = []
    for row in report.rows:
        stage = f"{row.stage} *" if row.waiting else row.stage
        rows.append(
            [
                row.title,
                row.type_label,
                str(row.wait_days),
                stage,
                *(str(count) for count in row.connection_counts),
            ]
        )
    lines.extend(_render_table(headers, rows))
    lines.append("")
    counts = ", ".join(
        f"{label}: {count}" for label, count in sorted(report.stage_counts.items())
    )
    lines.append(f"Counts: {counts}")
    if report.waiting_count:
        lines.append(f"Waiting (*): {report.waiting_count}")
    return "\n".join(lines)


def _render_artifact(tracked: TrackedArtifact, stage_label: str) -> str:
    """Render one artifact's classification details."""
    artifact = tracked.artifact
    lines = [
        f"Artifact: {artifact.path}",
        f"Title: {artifact.title}",
        f"Type: {artifact.type_label or '<none>'}",
        f"Stage: {stage_label} ({tracked.stage.value})",
        f"Wait days: {tracked.wait_days}",
        f"Waiting: {'yes' if tracked.waiting else 'no'}",
    ]
    for subtype, paths in tracked.connections.items():
        lines.append(f"{subtype}: {len(paths)}")
        lines.extend(f"  - {path}" for path in sorted(paths))
    return "\n".join(lines)


def _parse_now(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 ``--now`` override."""
    if raw is None or raw.strip() == "":
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InputError(f"invalid --now timestamp: {raw}") from exc


def _load_runtime(cfg: CliConfig, snapshot: Path) -> PatternTrackingService:
    """Resolve settings, configure logging and build the service over a snapshot."""
    try:
        settings = load_settings(config_path=cfg.config_path)
    except (ValidationError, ValueError, OSError) as exc:
        raise InputError(f"invalid configuration: {exc}") from exc

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )

    try:
        store = load_snapshot(snapshot)
        service = build_pattern_tracking_service(settings=settings, store=store)
    except (PageStoreSnapshotError, ConfigurationError, ValidationError) as exc:
        raise InputError(str(exc)) from exc
    return service


def _run_command(
    cfg: CliConfig,
    snapshot: Path,
    invoke: Callable[[PatternTrackingService], Envelope[Any]],
    render: Callable[[PatternTrackingService, Any], str],
) -> None:
    """Execute one service call and map outputs/errors to process semantics."""
    try:
        service = _load_runtime(cfg, snapshot)
        result = invoke(service)
    except InputError as exc:
        _emit_error(str(exc), cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    if not result.ok:
        for error in result.errors:
            if cfg.as_json:
                _emit_error(error.message, True, code=error.code)
            else:
                _emit_error(error.summary(), False)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE)

    if cfg.as_json:
        typer.echo(json.dumps(_serialize(result.value), sort_keys=True, separators=(",", ":")))
    else:
        typer.echo(render(service, result.value))
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _meta(cfg: CliConfig) -> EnvelopeMeta:
    return new_meta(
        kind=EnvelopeKind.COMMAND,
        source=cfg.source,
        principal=cfg.principal,
        trace_id=cfg.trace_id,
    )


app = typer.Typer(no_args_is_help=True, help="Pattern tracker command-line interface")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        envvar="TRACKER_CONFIG_PATH",
        help="YAML settings file (defaults to ~/.config/pattern-tracker/tracker.yaml)",
    ),
    principal: str = typer.Option("operator", help="Envelope principal"),
    source: str = typer.Option("cli", help="Envelope source"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    trace_id: str | None = typer.Option(None, help="Optional trace id"),
) -> None:
    """Store global options for all tracking commands."""

    ctx.obj = CliConfig(
        config_path=config,
        principal=principal,
        source=source,
        as_json=as_json,
        trace_id=trace_id,
    )


@app.command("track")
def track_command(
    ctx: typer.Context,
    snapshot: Path = typer.Argument(..., help="Vault snapshot file (YAML or JSON)"),
    filter_expression: str | None = typer.Option(
        None, "--filter", help="Page filter expression overriding settings"
    ),
    subtype: str | None = typer.Option(
        None, "--subtype", help="Report one tracked subtype instead of primary artifacts"
    ),
    stage: list[str] = typer.Option(
        [], "--stage", help="Only rows in this stage (display name); repeatable"
    ),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Classify every artifact and print the stage table."""
    cfg = _require_config(ctx)
    try:
        evaluated_at = _parse_now(now)
    except InputError as exc:
        _emit_error(str(exc), cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    _run_command(
        cfg,
        snapshot,
        lambda service: service.track(
            meta=_meta(cfg),
            filter_expression=filter_expression,
            subtype=subtype,
            stages=tuple(stage),
            now=evaluated_at,
        ),
        lambda _service, report: _render_report(report),
    )


@app.command("show")
def show_command(
    ctx: typer.Context,
    snapshot: Path = typer.Argument(..., help="Vault snapshot file (YAML or JSON)"),
    path: str = typer.Argument(..., help="Artifact path or link target"),
    filter_expression: str | None = typer.Option(
        None, "--filter", help="Page filter expression overriding settings"
    ),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Print one artifact's stage, wait time and connections."""
    cfg = _require_config(ctx)
    try:
        evaluated_at = _parse_now(now)
    except InputError as exc:
        _emit_error(str(exc), cfg.as_json)
        raise typer.Exit(code=INPUT_ERROR_EXIT_CODE) from exc

    _run_command(
        cfg,
        snapshot,
        lambda service: service.get_artifact(
            meta=_meta(cfg),
            path=path,
            filter_expression=filter_expression,
            now=evaluated_at,
        ),
        lambda service, tracked: _render_artifact(
            tracked, _stage_label(service, tracked)
        ),
    )


def _stage_label(service: PatternTrackingService, tracked: TrackedArtifact) -> str:
    registry = getattr(getattr(service, "engine", None), "registry", None)
    if registry is None:
        return tracked.stage.value
    return registry.display(tracked.stage)


if __name__ == "__main__":
    app()
