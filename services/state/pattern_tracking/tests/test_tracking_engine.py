"""Behavior tests for full tracking runs over an in-memory page store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from resources.substrates.page_store import InMemoryPageStore, PageRecord
from services.state.pattern_tracking.config import PatternTrackingSettings
from services.state.pattern_tracking.domain import StageKey
from services.state.pattern_tracking.engine import TrackingEngine
from services.state.pattern_tracking.errors import (
    ArtifactNotFoundError,
    InvalidInputError,
    UnknownSubtypeError,
)

NOW = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


def _page(
    path: str,
    *links: str,
    subtype: str | None = None,
    kind: str = "story",
    publish: object = None,
    age_days: int = 0,
) -> PageRecord:
    metadata: dict[str, object] = {"Type": kind}
    if subtype is not None:
        metadata["Subtype"] = subtype
    if publish is not None:
        metadata["publish"] = publish
    return PageRecord(
        path=path,
        metadata=metadata,
        modified_at=NOW - timedelta(days=age_days),
        outlinks=links,
    )


def _engine(*pages: PageRecord, **overrides: object) -> TrackingEngine:
    return TrackingEngine(
        store=InMemoryPageStore(pages),
        settings=PatternTrackingSettings.model_validate(overrides),
    )


def test_unready_story_without_links_is_writing() -> None:
    """A story in a WIP folder with no links is being written."""
    run = _engine(_page("WIP/A.md", age_days=2)).run(now=NOW)

    assert run.stage("WIP/A.md") is StageKey.WRITING
    assert run.wait_days("WIP/A.md") == 2
    assert run.is_waiting("WIP/A.md") is False


def test_unready_story_with_side_story_link_is_editing() -> None:
    """A WIP story linking one side-story is being edited."""
    run = _engine(
        _page("WIP/A.md", "[[S]]"),
        _page("Side/S.md", subtype="side-story"),
    ).run(now=NOW)

    assert run.stage("WIP/A.md") is StageKey.EDITING
    assert run.connections("WIP/A.md") == {
        "side-story": frozenset({"Side/S.md"}),
        "thought": frozenset(),
    }


def test_ready_story_without_links_is_close() -> None:
    run = _engine(_page("Stories/A.md")).run(now=NOW)

    assert run.stage("Stories/A.md") is StageKey.CLOSE


def test_ready_story_with_only_side_stories_is_ready() -> None:
    """An empty second subtype set makes a connected ready story ready."""
    run = _engine(
        _page("Stories/A.md", "S"),
        _page("Side/S.md", subtype="side-story"),
    ).run(now=NOW)

    assert run.stage("Stories/A.md") is StageKey.READY


def test_published_story_is_done_and_waits_zero_days() -> None:
    """Done stories report zero wait days whatever their age."""
    run = _engine(
        _page("Stories/A.md", "S", "T", publish="yes", age_days=30),
        _page("Side/S.md", subtype="side-story", age_days=30),
        _page("Thoughts/T.md", subtype="thought", age_days=30),
    ).run(now=NOW)

    assert run.stage("Stories/A.md") is StageKey.DONE
    assert run.wait_days("Stories/A.md") == 0
    assert run.is_waiting("Stories/A.md") is False


def test_mutual_links_count_each_side_story_once() -> None:
    """A two-cycle should be counted once and not include the artifact itself."""
    run = _engine(
        _page("Stories/A.md", "B"),
        _page("Side/B.md", "A", subtype="side-story"),
    ).run(now=NOW)

    assert run.get("Stories/A.md").connection_count("side-story") == 1
    assert run.get("Side/B.md").connection_count("side-story") == 0


def test_pages_of_other_types_and_filtered_folders_are_not_tracked() -> None:
    """Only primary-type pages passing the filter enter the working set."""
    run = _engine(
        _page("Stories/A.md"),
        _page("Notes/N.md", kind="note"),
        _page("~META/Template.md"),
    ).run(now=NOW)

    assert "Stories/A.md" in run
    assert "Notes/N.md" not in run
    assert "~META/Template.md" not in run
    with pytest.raises(ArtifactNotFoundError):
        run.get("Notes/N.md")


def test_links_through_untracked_pages_are_followed() -> None:
    """Pages outside the working set still relay links when resolvable."""
    run = _engine(
        _page("Stories/A.md", "Hub"),
        _page("Notes/Hub.md", "T", kind="note"),
        _page("Thoughts/T.md", subtype="thought"),
    ).run(now=NOW)

    assert run.connections("Stories/A.md")["thought"] == frozenset({"Thoughts/T.md"})


def test_stale_unfinished_story_is_waiting() -> None:
    run = _engine(_page("WIP/A.md", age_days=4), _page("WIP/B.md", age_days=3)).run(
        now=NOW
    )

    assert run.is_waiting("WIP/A.md") is True
    assert run.is_waiting("WIP/B.md") is False


def test_missing_modification_time_names_the_artifact() -> None:
    """Malformed timestamps should fail the run with the artifact path."""
    page = PageRecord(path="WIP/A.md", metadata={"Type": "story"})

    with pytest.raises(InvalidInputError, match="WIP/A.md"):
        _engine(page).run(now=NOW)


def test_rows_follow_subtype_order_and_display_names() -> None:
    """Rows should carry display stage names and counts in subtype order."""
    run = _engine(
        _page("Stories/B.md", "S1", "S2", "T", age_days=5),
        _page("Stories/A.md", age_days=1),
        _page("Side/S1.md", subtype="side-story"),
        _page("Side/S2.md", subtype="side-story"),
        _page("Thoughts/T.md", subtype="thought"),
        stage_names={"stage3": "almost"},
        fallback_label="look",
    ).run(now=NOW)

    rows = run.rows()

    assert [row.as_tuple() for row in rows] == [
        ("A", "story", 1, "almost", False, 0, 0),
        ("B", "story", 5, "look", True, 2, 1),
    ]


def test_files_of_type_selects_one_subtype_group() -> None:
    run = _engine(
        _page("Stories/A.md", "S"),
        _page("Side/S.md", "T", subtype="side-story"),
        _page("Thoughts/T.md", subtype="thought"),
    ).run(now=NOW)

    assert [item.artifact.path for item in run.files_of_type("side-story")] == [
        "Side/S.md"
    ]
    assert [item.artifact.path for item in run.files_of_type()] == ["Stories/A.md"]
    with pytest.raises(UnknownSubtypeError):
        run.files_of_type("character")


def test_report_filters_stages_and_counts_outcomes() -> None:
    """Reports should summarize one group, optionally restricted to stages."""
    run = _engine(
        _page("WIP/A.md", age_days=9),
        _page("Stories/B.md"),
        _page("Stories/C.md"),
    ).run(now=NOW)

    report = run.report(stages=[StageKey.CLOSE])

    assert [row.path for row in report.rows] == ["Stories/B.md", "Stories/C.md"]
    assert report.stage_counts == {"close": 2}
    assert run.report().stage_counts == {"close": 2, "writing": 1}
    assert run.report().waiting_count == 1
    assert [entry.label for entry in report.legend][:2] == ["writing", "editing"]


def test_without_subtype_key_every_story_is_primary_and_unconnected() -> None:
    """Disabling subtype tracking skips aggregation entirely."""
    run = _engine(
        _page("Stories/A.md", "S"),
        _page("Side/S.md", subtype="side-story"),
        subtype_key=None,
    ).run(now=NOW)

    assert len(run) == 2
    assert run.stage("Stories/A.md") is StageKey.CLOSE
    assert run.stage("Side/S.md") is StageKey.CLOSE


def test_runs_are_idempotent() -> None:
    """Repeated runs over the same store should agree."""
    engine = _engine(
        _page("Stories/A.md", "S", "T"),
        _page("Side/S.md", "A", subtype="side-story"),
        _page("Thoughts/T.md", "S", subtype="thought"),
    )

    first = engine.run(now=NOW)
    second = engine.run(now=NOW)

    assert first.rows() == second.rows()
    assert first.rows("thought") == second.rows("thought")
