"""JSON wire format for cache entries.

Entries are stored as UTF-8 JSON envelopes::

    {"key": ..., "cached_at": ISO-8601, "expires_at": ISO-8601, "value": {...}}

Floats are written by ``json`` with full repr precision and ``None`` is kept
as ``null``, so numeric values and optional-field presence round-trip.
"""

from collections.abc import Callable
from datetime import datetime
import json
from typing import Any, TypeVar

import attrs

from tunematch.domain.entities import CacheEntry, FeatureVector, SongRecord
from tunematch.domain.matching.types import (
    ExplanationDetails,
    LayerResult,
    MatchBreakdown,
    MatchExplanation,
    MatchResult,
    ScoreComponent,
)

T = TypeVar("T")


class CacheDecodeError(ValueError):
    """Stored bytes could not be turned back into a cache entry."""


def encode_entry(entry: CacheEntry[Any]) -> bytes:
    envelope = {
        "key": entry.key,
        "cached_at": entry.cached_at.isoformat(),
        "expires_at": entry.expires_at.isoformat(),
        "value": attrs.asdict(entry.value),
    }
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8")


def _decode_entry(raw: bytes, structure: Callable[[dict[str, Any]], T]) -> CacheEntry[T]:
    try:
        envelope = json.loads(raw)
        return CacheEntry(
            key=envelope["key"],
            value=structure(envelope["value"]),
            cached_at=datetime.fromisoformat(envelope["cached_at"]),
            expires_at=datetime.fromisoformat(envelope["expires_at"]),
        )
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise CacheDecodeError(f"Malformed cache entry: {e}") from e


# -----------------------------------------------------------------------------
# Match results
# -----------------------------------------------------------------------------


def _structure_layer(data: dict[str, Any]) -> LayerResult:
    return LayerResult(
        score=data["score"],
        components={
            name: ScoreComponent(**component)
            for name, component in data["components"].items()
        },
    )


def _structure_explanation(data: dict[str, Any] | None) -> MatchExplanation | None:
    if data is None:
        return None
    details = data.get("details")
    return MatchExplanation(
        summary=data["summary"],
        strengths=data["strengths"],
        weaknesses=data["weaknesses"],
        details=ExplanationDetails(**details) if details is not None else None,
    )


def structure_match_result(data: dict[str, Any]) -> MatchResult:
    breakdown = data["breakdown"]
    return MatchResult(
        overall_score=data["overall_score"],
        confidence=data["confidence"],
        breakdown=MatchBreakdown(
            layer1=_structure_layer(breakdown["layer1"]),
            layer2=_structure_layer(breakdown["layer2"]),
            layer3=_structure_layer(breakdown["layer3"]),
        ),
        explanation=_structure_explanation(data["explanation"]),
        processing_time_ms=data["processing_time_ms"],
        algorithm_version=data["algorithm_version"],
    )


def decode_match_entry(raw: bytes) -> CacheEntry[MatchResult]:
    return _decode_entry(raw, structure_match_result)


# -----------------------------------------------------------------------------
# Song records
# -----------------------------------------------------------------------------


def structure_song_record(data: dict[str, Any]) -> SongRecord:
    fields = dict(data)
    fields["features"] = FeatureVector(**fields["features"])
    return SongRecord(**fields)


def decode_song_entry(raw: bytes) -> CacheEntry[SongRecord]:
    return _decode_entry(raw, structure_song_record)
