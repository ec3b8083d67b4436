"""
Series keys.

A chart line is identified by a `SeriesKey`: a metric name, optionally paired
with the `EntityKey` of the agent session the value belongs to. Keys are typed
values; the `agentId-sessionId` text form exists only at serialization
boundaries (JSON, chart labels) and escapes the separator so that decoding is
unambiguous even when identifiers contain it.
"""

from __future__ import annotations

from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, field_validator

__all__ = ["EntityKey", "SeriesKey", "SeriesKeyLike"]

ENTITY_SEPARATOR = "-"
METRIC_SEPARATOR = ":"


def _escape(component: str) -> str:
    return component.replace("%", "%25").replace(ENTITY_SEPARATOR, "%2D")


def _escape_metric(metric: str) -> str:
    return metric.replace("%", "%25").replace(METRIC_SEPARATOR, "%3A")


class EntityKey(BaseModel):
    """Composite key of an entity and one of its sub-entities (agent and session)."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    sub_entity_id: str

    @field_validator("entity_id", "sub_entity_id")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Entity key components cannot be empty")
        return value

    def encode(self) -> str:
        """Encode as ``{entityId}-{subEntityId}`` with separators escaped."""
        return f"{_escape(self.entity_id)}{ENTITY_SEPARATOR}{_escape(self.sub_entity_id)}"

    @classmethod
    def decode(cls, text: str) -> EntityKey:
        """Decode the output of `encode`.

        Raises:
            ValueError: If the text does not hold exactly two components
        """
        parts = text.split(ENTITY_SEPARATOR)
        if len(parts) != 2:
            raise ValueError(f"Invalid entity key: {text!r}")
        return cls(entity_id=unquote(parts[0]), sub_entity_id=unquote(parts[1]))

    def __str__(self) -> str:
        return self.encode()


class SeriesKey(BaseModel):
    """Identifier of one chart line."""

    model_config = ConfigDict(frozen=True)

    metric: str
    entity: EntityKey | None = None

    @field_validator("metric")
    @classmethod
    def _valid_metric(cls, value: str) -> str:
        if not value:
            raise ValueError("Metric name cannot be empty")
        return value

    @classmethod
    def of(cls, key: SeriesKeyLike) -> SeriesKey:
        """Coerce a plain metric name into a scalar SeriesKey."""
        if isinstance(key, SeriesKey):
            return key
        return cls(metric=key)

    @property
    def is_entity(self) -> bool:
        return self.entity is not None

    @property
    def label(self) -> str:
        """Chart legend label: the encoded entity key, or the metric name."""
        if self.entity is None:
            return self.metric
        return self.entity.encode()

    def encode(self) -> str:
        """Encode as ``metric`` or ``metric:{entityId}-{subEntityId}``, escaping ``:`` in the metric."""
        metric = _escape_metric(self.metric)
        if self.entity is None:
            return metric
        return f"{metric}{METRIC_SEPARATOR}{self.entity.encode()}"

    @classmethod
    def decode(cls, text: str) -> SeriesKey:
        """Decode the output of `encode`.

        Raises:
            ValueError: If the text is not a valid series key
        """
        metric, sep, entity = text.partition(METRIC_SEPARATOR)
        if not sep:
            return cls(metric=unquote(metric))
        return cls(metric=unquote(metric), entity=EntityKey.decode(entity))

    def __str__(self) -> str:
        return self.encode()


SeriesKeyLike = SeriesKey | str
