from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class HistoryRecord(BaseModel):
    """One entry of a bounded history store. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str
    payload: Mapping[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_validator("payload", mode="after")
    @classmethod
    def _read_only_payload(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("payload")
    def _serialize_payload(self, value: Mapping[str, Any]) -> dict:
        return dict(value)

    def to_row(self) -> dict:
        ts = self.created_at.astimezone(timezone.utc)
        return {
            "id": self.id,
            "subject": self.subject,
            "payload": dict(self.payload),
            "created_at": ts.isoformat(timespec="microseconds"),
        }

    @classmethod
    def from_row(cls, row: dict) -> "HistoryRecord":
        return cls(
            id=str(row["id"]),
            subject=row["subject"],
            payload=row.get("payload") or {},
            created_at=row["created_at"],
        )


class HistoryResponse(BaseModel):
    data: list[HistoryRecord]
    count: int


# ── Weather ─────────────────────────────────────────────────────────────────

class WeatherReading(BaseModel):
    city: str
    temp: float
    humidity: float
    wind: float
    condition: str
    description: str


class WeatherResponse(WeatherReading):
    history_id: Optional[str] = None


# ── Prediction ──────────────────────────────────────────────────────────────

class Prediction(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    label: str
    score: float = Field(..., ge=0.0, le=1.0)
    model_version: str


class PredictionItem(BaseModel):
    """A prediction as the dashboard reads it: camelCase keys, id under ``_id``."""

    model_config = ConfigDict(
        protected_namespaces=(),
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Optional[str] = Field(default=None, alias="_id")
    subject_id: str
    label: str
    score: float
    model_version: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: HistoryRecord) -> "PredictionItem":
        payload = record.payload
        return cls(
            id=record.id,
            subject_id=record.subject,
            label=str(payload.get("label", "")),
            score=float(payload.get("score", 0.0)),
            model_version=str(payload.get("model_version", "")),
            created_at=record.created_at,
        )


class PredictionResponse(BaseModel):
    model_config = ConfigDict(
        protected_namespaces=(),
        alias_generator=to_camel,
        populate_by_name=True,
    )

    prediction: PredictionItem
    model_version: str
    history_recorded: bool
