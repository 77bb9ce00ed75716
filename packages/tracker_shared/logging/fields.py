"""Canonical logging field names for structured log records.

Keeping names centralized prevents drift between the service layer, the
page store and the command-line actor.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Envelope/correlation fields.
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
PRINCIPAL = "principal"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"

# Tracking run fields.
ARTIFACT_PATH = "artifact_path"
ARTIFACT_COUNT = "artifact_count"
LINK_TARGET = "link_target"
STAGE = "stage"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
