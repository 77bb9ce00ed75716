"""Concrete Pattern Tracking Service implementation."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable, Sequence

from pydantic import BaseModel, ValidationError

from packages.tracker_shared.config import TrackerSettings
from packages.tracker_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.tracker_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
    not_found_error,
    validation_error,
)
from packages.tracker_shared.logging import get_logger, public_api_logged
from resources.substrates.page_store import (
    PageQueryError,
    PageStore,
    PageStoreError,
    PageStoreNotFoundError,
)
from services.state.pattern_tracking import errors
from services.state.pattern_tracking.component import SERVICE_COMPONENT_ID
from services.state.pattern_tracking.config import (
    PatternTrackingSettings,
    resolve_pattern_tracking_settings,
)
from services.state.pattern_tracking.domain import TrackedArtifact, TrackingReport
from services.state.pattern_tracking.engine import TrackingEngine
from services.state.pattern_tracking.service import PatternTrackingService
from services.state.pattern_tracking.validation import GetArtifactRequest, TrackRequest

_LOGGER = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DefaultPatternTrackingService(PatternTrackingService):
    """Default implementation running the tracking engine per call."""

    def __init__(
        self,
        *,
        settings: PatternTrackingSettings,
        store: PageStore,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._engine = TrackingEngine(store=store, settings=settings)
        self._store = store
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: TrackerSettings, *, store: PageStore
    ) -> "DefaultPatternTrackingService":
        """Build the service from typed root settings."""
        return cls(settings=resolve_pattern_tracking_settings(settings), store=store)

    @property
    def engine(self) -> TrackingEngine:
        return self._engine

    @public_api_logged(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("filter_expression", "subtype"),
    )
    def track(
        self,
        *,
        meta: EnvelopeMeta,
        filter_expression: str | None = None,
        subtype: str | None = None,
        stages: Sequence[str] = (),
        now: datetime | None = None,
    ) -> Envelope[TrackingReport]:
        """Classify every matching artifact and report one artifact group."""
        request, validation_errors = self._validate_request(
            meta=meta,
            model=TrackRequest,
            payload={
                "filter_expression": filter_expression,
                "subtype": subtype,
                "stages": tuple(stages),
                "now": now,
            },
        )
        if validation_errors:
            return failure(meta=meta, errors=validation_errors)
        assert isinstance(request, TrackRequest)

        try:
            stage_keys = [self._engine.registry.reverse(name) for name in request.stages]
            run = self._engine.run(
                now=request.now or self._clock(),
                filter_expression=request.filter_expression,
            )
            report = run.report(request.subtype, stages=stage_keys or None)
        except Exception as exc:  # noqa: BLE001
            return self._run_failure(meta=meta, operation="track", exc=exc)

        return success(meta=meta, payload=report)

    @public_api_logged(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("path",),
    )
    def get_artifact(
        self,
        *,
        meta: EnvelopeMeta,
        path: str,
        filter_expression: str | None = None,
        now: datetime | None = None,
    ) -> Envelope[TrackedArtifact]:
        """Classify the working set and return one artifact's annotations."""
        request, validation_errors = self._validate_request(
            meta=meta,
            model=GetArtifactRequest,
            payload={"path": path, "filter_expression": filter_expression, "now": now},
        )
        if validation_errors:
            return failure(meta=meta, errors=validation_errors)
        assert isinstance(request, GetArtifactRequest)

        try:
            run = self._engine.run(
                now=request.now or self._clock(),
                filter_expression=request.filter_expression,
            )
            resolved = request.path
            if resolved not in run:
                resolved = self._store.resolve(request.path).path
            tracked = run.get(resolved)
        except Exception as exc:  # noqa: BLE001
            return self._run_failure(meta=meta, operation="get_artifact", exc=exc)

        return success(meta=meta, payload=tracked)

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, object],
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Validate envelope metadata and request payload for one operation."""
        try:
            validate_meta(meta)
            request = model.model_validate(payload)
        except ValidationError as exc:
            first_error = exc.errors()[0]
            location = ".".join(str(item) for item in first_error.get("loc", ()))
            message = str(first_error.get("msg", "invalid request"))
            return None, [
                validation_error(
                    f"{location}: {message}",
                    code=codes.INVALID_ARGUMENT,
                    metadata={"service": SERVICE_COMPONENT_ID},
                )
            ]
        except ValueError as exc:
            return None, [
                validation_error(
                    str(exc),
                    code=codes.INVALID_ARGUMENT,
                    metadata={"service": SERVICE_COMPONENT_ID},
                )
            ]
        return request, []

    def _run_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Envelope[Any]:
        """Map engine and page store exceptions into service error contracts."""
        metadata = {"service": SERVICE_COMPONENT_ID, "operation": operation}
        if isinstance(exc, PageQueryError):
            error = validation_error(str(exc), code=errors.INVALID_FILTER, metadata=metadata)
        elif isinstance(exc, errors.StageNotFoundError):
            error = validation_error(
                str(exc), code=codes.INVALID_ARGUMENT, metadata=metadata
            )
        elif isinstance(exc, errors.UnknownSubtypeError):
            error = validation_error(
                str(exc), code=errors.UNKNOWN_SUBTYPE, metadata=metadata
            )
        elif isinstance(exc, errors.InvalidInputError):
            error = validation_error(
                str(exc), code=errors.INVALID_TIMESTAMP, metadata=metadata
            )
        elif isinstance(exc, (errors.ArtifactNotFoundError, PageStoreNotFoundError)):
            error = not_found_error(
                str(exc) or "artifact not found",
                code=errors.ARTIFACT_NOT_FOUND,
                metadata=metadata,
            )
        elif isinstance(exc, PageStoreError):
            error = dependency_error(
                str(exc) or "page store failure",
                code=codes.DEPENDENCY_FAILURE,
                retryable=False,
                metadata=metadata,
            )
        else:
            _LOGGER.exception("Unexpected failure in %s", operation)
            error = exception_to_error(exc)
        return failure(meta=meta, errors=[error])
