"""
Log record models.

Coralogix rows are open-ended: a handful of well-known fields plus any number
of application-specific keys. RawLogRecord keeps the known fields typed and
leaves everything else in pydantic's extra map; NormalizedLogRecord is the
fixed shape handed back to the caller.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Keys of a raw record that map onto NormalizedLogRecord fields.
STANDARD_FIELDS = frozenset({
    "timestamp",
    "severity",
    "text",
    "applicationName",
    "subsystemName",
    "computerName",
    "className",
    "methodName",
    "threadId",
    "category",
})


class RawLogRecord(BaseModel):
    """A single log row as returned by the Coralogix API."""

    model_config = ConfigDict(extra="allow")

    timestamp: str | None = None
    severity: str | None = None
    text: str | None = None
    application_name: str | None = Field(None, alias="applicationName")
    subsystem_name: str | None = Field(None, alias="subsystemName")
    computer_name: str | None = Field(None, alias="computerName")
    class_name: str | None = Field(None, alias="className")
    method_name: str | None = Field(None, alias="methodName")
    thread_id: str | None = Field(None, alias="threadId")
    category: str | None = None

    @field_validator(
        "timestamp",
        "severity",
        "text",
        "application_name",
        "subsystem_name",
        "computer_name",
        "class_name",
        "method_name",
        "thread_id",
        "category",
        mode="before",
    )
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        """Accept numbers and structured payloads for the known text fields."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool | int | float):
            return str(v)
        if isinstance(v, dict | list):
            return json.dumps(v, default=str)
        return v

    @property
    def extra_fields(self) -> dict[str, Any]:
        """Keys outside the known field set, in arrival order."""
        return dict(self.model_extra or {})


class NormalizedLogRecord(BaseModel):
    """AI-consumption-safe projection of a raw log record."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str | None = None
    severity: str = "UNKNOWN"
    message: str = ""
    application: str | None = None
    subsystem: str | None = None
    host: str | None = None
    thread: str | None = None
    class_name: str | None = Field(None, alias="className")
    method_name: str | None = Field(None, alias="methodName")
    category: str | None = None
    additional_fields: dict[str, Any] | None = Field(None, alias="additionalFields")
