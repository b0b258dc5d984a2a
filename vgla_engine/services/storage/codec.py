"""
JSON encoding of persisted engine data.

Decoding never raises: corrupt payloads are logged and replaced by the
empty default (no snapshot, zero scores).
"""

from typing import Optional, Union

import structlog
from pydantic import ValidationError

from vgla_engine.models.assessment import ScoreVector, SessionSnapshot


logger = structlog.get_logger(__name__)

RawPayload = Union[str, bytes, None]


def encode_snapshot(snapshot: SessionSnapshot) -> str:
    return snapshot.model_dump_json()


def decode_snapshot(raw: RawPayload) -> Optional[SessionSnapshot]:
    if not raw:
        return None
    try:
        return SessionSnapshot.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("snapshot_decode_failed", error_count=e.error_count())
        return None


def encode_score_vector(score: ScoreVector) -> str:
    return score.model_dump_json()


def decode_score_vector(raw: RawPayload) -> ScoreVector:
    if not raw:
        return ScoreVector()
    try:
        return ScoreVector.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("score_decode_failed", error_count=e.error_count())
        return ScoreVector()
