"""CLI tests for the pattern tracker Typer commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from actors.cli.main import (
    DOMAIN_ERROR_EXIT_CODE,
    INPUT_ERROR_EXIT_CODE,
    SUCCESS_EXIT_CODE,
    app,
)

NOW = "2024-06-01T09:00:00+00:00"

_SNAPSHOT = """
pages:
  - path: Stories/A.md
    frontmatter: {Type: story}
    mtime: 2024-05-25T09:00:00+00:00
    links: ['[[S]]']
  - path: Stories/WIP/B.md
    frontmatter: {Type: story}
    mtime: 2024-05-31T09:00:00+00:00
  - path: Stories/C.md
    frontmatter: {Type: story, publish: yes}
    mtime: 2024-01-01T00:00:00+00:00
    links: ['[[S]]', '[[T]]']
  - path: Side/S.md
    frontmatter: {Type: story, Subtype: side-story}
    mtime: 2024-05-31T09:00:00+00:00
  - path: Thoughts/T.md
    frontmatter: {Type: story, Subtype: thought}
    mtime: 2024-05-31T09:00:00+00:00
  - path: ~META/Template.md
    frontmatter: {Type: story}
    mtime: 2024-05-31T09:00:00+00:00
"""


@pytest.fixture
def workspace(tmp_path: Path) -> tuple[Path, Path]:
    """Write one snapshot and one quiet config file."""
    snapshot = tmp_path / "vault.yaml"
    snapshot.write_text(_SNAPSHOT, encoding="utf-8")
    config = tmp_path / "tracker.yaml"
    config.write_text(
        "\n".join(
            [
                "logging:",
                "  level: CRITICAL",
                "components:",
                "  service:",
                "    pattern_tracking:",
                "      stage_names:",
                "        stage4: ready to send",
            ]
        ),
        encoding="utf-8",
    )
    return snapshot, config


def test_track_prints_legend_and_table(workspace: tuple[Path, Path]) -> None:
    """Human output should show the legend, rows and stage counts."""
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(config), "track", str(snapshot), "--now", NOW]
    )

    assert result.exit_code == SUCCESS_EXIT_CODE
    assert "Stages: writing (stage1) | editing (stage2)" in result.stdout
    assert "ready to send (stage4)" in result.stdout
    lines = result.stdout.splitlines()
    header = next(line for line in lines if line.startswith("Title"))
    assert header.split() == ["Title", "Type", "Wait", "Stage", "side-story", "thought"]
    assert any(line.startswith("A ") and "ready to send *" in line for line in lines)
    assert any(line.startswith("C ") and " done" in line for line in lines)
    assert not any("Template" in line for line in lines)
    assert "Waiting (*): 1" in result.stdout


def test_track_json_output_is_machine_readable(workspace: tuple[Path, Path]) -> None:
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--config", str(config), "--json", "track", str(snapshot), "--now", NOW],
    )

    assert result.exit_code == SUCCESS_EXIT_CODE
    payload = json.loads(result.stdout)
    assert [row["title"] for row in payload["rows"]] == ["A", "B", "C"]
    assert [row["stage_key"] for row in payload["rows"]] == ["stage4", "stage1", "stage6"]
    assert payload["rows"][2]["wait_days"] == 0
    assert payload["subtypes"] == ["side-story", "thought"]


def test_track_filters_by_stage_and_subtype(workspace: tuple[Path, Path]) -> None:
    """Repeated --stage options and --subtype should narrow the rows."""
    snapshot, config = workspace
    runner = CliRunner()

    by_stage = runner.invoke(
        app,
        [
            "--config",
            str(config),
            "--json",
            "track",
            str(snapshot),
            "--now",
            NOW,
            "--stage",
            "writing",
            "--stage",
            "done",
        ],
    )
    by_subtype = runner.invoke(
        app,
        [
            "--config",
            str(config),
            "--json",
            "track",
            str(snapshot),
            "--now",
            NOW,
            "--subtype",
            "thought",
        ],
    )

    assert by_stage.exit_code == SUCCESS_EXIT_CODE
    assert [row["title"] for row in json.loads(by_stage.stdout)["rows"]] == ["B", "C"]
    assert by_subtype.exit_code == SUCCESS_EXIT_CODE
    assert [row["path"] for row in json.loads(by_subtype.stdout)["rows"]] == [
        "Thoughts/T.md"
    ]


def test_track_unknown_stage_exits_with_domain_error(
    workspace: tuple[Path, Path],
) -> None:
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--config", str(config), "track", str(snapshot), "--stage", "polishing"],
    )

    assert result.exit_code == DOMAIN_ERROR_EXIT_CODE
    assert "polishing" in result.output


def test_track_invalid_now_exits_with_input_error(workspace: tuple[Path, Path]) -> None:
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(config), "track", str(snapshot), "--now", "yesterday"]
    )

    assert result.exit_code == INPUT_ERROR_EXIT_CODE
    assert "invalid --now timestamp" in result.output


def test_track_missing_snapshot_exits_with_input_error(
    workspace: tuple[Path, Path], tmp_path: Path
) -> None:
    _snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(config), "track", str(tmp_path / "missing.yaml")]
    )

    assert result.exit_code == INPUT_ERROR_EXIT_CODE
    assert "cannot read snapshot" in result.output


def test_invalid_configuration_exits_with_input_error(
    workspace: tuple[Path, Path], tmp_path: Path
) -> None:
    """Conflicting location markers should fail before any run."""
    snapshot, _config = workspace
    config = tmp_path / "conflict.yaml"
    config.write_text(
        "\n".join(
            [
                "logging:",
                "  level: CRITICAL",
                "components:",
                "  service:",
                "    pattern_tracking:",
                "      location:",
                "        not_ready_marker: WIP",
                "        ready_marker: Final",
            ]
        ),
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(config), "track", str(snapshot)])

    assert result.exit_code == INPUT_ERROR_EXIT_CODE
    assert "exactly one" in result.output


def test_show_prints_artifact_details(workspace: tuple[Path, Path]) -> None:
    """Show should accept link-style identifiers and list connections."""
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(config), "show", str(snapshot), "C", "--now", NOW]
    )

    assert result.exit_code == SUCCESS_EXIT_CODE
    assert "Artifact: Stories/C.md" in result.stdout
    assert "Stage: done (stage6)" in result.stdout
    assert "Wait days: 0" in result.stdout
    assert "  - Side/S.md" in result.stdout
    assert "  - Thoughts/T.md" in result.stdout


def test_show_unknown_artifact_exits_with_domain_error(
    workspace: tuple[Path, Path],
) -> None:
    snapshot, config = workspace
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--config", str(config), "--json", "show", str(snapshot), "Nope", "--now", NOW],
    )

    assert result.exit_code == DOMAIN_ERROR_EXIT_CODE
    assert "ARTIFACT_NOT_FOUND" in result.output
