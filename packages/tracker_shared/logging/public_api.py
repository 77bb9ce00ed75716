"""Invocation logging for public service API methods.

Every public method of a service contract is wrapped with ``public_api_logged``
so one invocation and one completion event are emitted per call, carrying the
envelope correlation fields, selected identifying arguments and the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one public API invocation."""

    component_id: str
    api_name: str
    trace_id: str | None
    envelope_id: str | None
    principal: str | None
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed public API invocation."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]


def public_api_logged(
    *,
    logger: Any,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API method with invocation/completion logging."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        method_name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            meta = kwargs.get("meta")
            invocation = InvocationContext(
                component_id=component_id,
                api_name=method_name,
                trace_id=_attr_or_none(meta, "trace_id"),
                envelope_id=_attr_or_none(meta, "envelope_id"),
                principal=_attr_or_none(meta, "principal"),
                references={
                    name: str(kwargs[name])
                    for name in id_fields
                    if kwargs.get(name) not in (None, "")
                },
            )
            with log_context(_invocation_log_context(invocation)):
                logger.info("Public API invocation")

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                _log_completion(
                    logger,
                    CompletionContext(
                        invocation=invocation,
                        success=False,
                        duration_ms=_elapsed_ms(started),
                        errors=[f"{type(exc).__name__}: {exc}"],
                    ),
                )
                raise

            success, errors = _result_summary(result)
            _log_completion(
                logger,
                CompletionContext(
                    invocation=invocation,
                    success=success,
                    duration_ms=_elapsed_ms(started),
                    errors=errors,
                ),
            )
            return result

        return wrapper

    return decorator


def _log_completion(logger: Any, context: CompletionContext) -> None:
    """Emit the structured completion event for one invocation."""
    payload = _invocation_log_context(context.invocation)
    payload.update(
        {
            fields.EVENT: fields.PUBLIC_API_COMPLETION_EVENT,
            fields.SUCCESS: context.success,
            fields.DURATION_MS: context.duration_ms,
            fields.ERRORS: context.errors,
        }
    )
    with log_context(payload):
        if context.success:
            logger.info("Public API completion")
        else:
            logger.warning("Public API completion")


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)


def _attr_or_none(obj: object | None, name: str) -> str | None:
    """Return string attribute value from object when present."""
    if obj is None:
        return None
    value = getattr(obj, name, None)
    if value in (None, ""):
        return None
    return str(value)


def _result_summary(result: object) -> tuple[bool, list[str]]:
    """Infer success and one-line error summaries from an envelope-like result."""
    errors_obj = getattr(result, "errors", [])
    summaries: list[str] = []
    if isinstance(errors_obj, list):
        for item in errors_obj:
            code = getattr(item, "code", None)
            message = getattr(item, "message", None)
            if message in (None, ""):
                continue
            summaries.append(str(message) if code in (None, "") else f"{code}: {message}")
    ok_value = getattr(result, "ok", None)
    if isinstance(ok_value, bool):
        return ok_value, summaries
    return len(summaries) == 0, summaries


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    """Build common structured fields for one invocation event."""
    return {
        fields.EVENT: fields.PUBLIC_API_INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        fields.TRACE_ID: context.trace_id,
        fields.ENVELOPE_ID: context.envelope_id,
        fields.PRINCIPAL: context.principal,
        **context.references,
    }
