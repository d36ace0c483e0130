"""Encode and decode sort sessions to plain JSON-compatible dicts."""

import base64
from datetime import datetime, timezone
from typing import Optional

from music_memory.domain.model import (
    ContentType,
    DuelRecord,
    Outcome,
    SortSession,
    SourceDescriptor,
    SourceKind,
)


def _encode_artwork(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _decode_artwork(value) -> Optional[bytes]:
    if not value:
        return None
    return base64.b64decode(value)


def _decode_datetime(value) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def duel_record_to_dict(record: DuelRecord) -> dict:
    data = {
        "left_id": record.left_id,
        "right_id": record.right_id,
        "battle_index": record.battle_index,
    }
    if record.outcome is not None:
        data["outcome"] = record.outcome.value
    if record.placed is not None:
        data["placed"] = record.placed
    return data


def duel_record_from_dict(data: dict) -> DuelRecord:
    outcome = data.get("outcome")
    placed = data.get("placed")
    return DuelRecord(
        left_id=str(data["left_id"]),
        right_id=str(data["right_id"]),
        battle_index=int(data.get("battle_index", 0)),
        outcome=Outcome(outcome) if outcome else None,
        placed=int(placed) if placed is not None else None,
    )


def session_to_dict(session: SortSession) -> dict:
    return {
        "id": session.id,
        "title": session.title,
        "content_type": session.content_type.value,
        "source": {
            "kind": session.source.kind.value,
            "id": session.source.id,
            "display_name": session.source.display_name,
        },
        "candidate_ids": list(session.candidate_ids),
        "ranked_ids": list(session.ranked_ids),
        "decision_history": [duel_record_to_dict(r) for r in session.decision_history],
        "battle_index": session.battle_index,
        "is_complete": session.is_complete,
        "artwork_snapshot": _encode_artwork(session.artwork_snapshot),
        "created_at": session.created_at.isoformat(),
    }


def session_from_dict(data: dict) -> SortSession:
    """Decode a stored record; fields added in later versions get defaults."""
    source = data.get("source") or {}
    if not isinstance(source, dict):
        raise TypeError(f"source must be an object, got {type(source).__name__}")
    return SortSession(
        id=str(data["id"]),
        title=str(data.get("title", "")),
        # Records from before content types existed only ranked songs.
        content_type=ContentType(data.get("content_type", ContentType.SONG.value)),
        source=SourceDescriptor(
            kind=SourceKind(source.get("kind", SourceKind.PLAYLIST.value)),
            id=str(source.get("id", "")),
            display_name=str(source.get("display_name", "")),
        ),
        candidate_ids=tuple(str(i) for i in data.get("candidate_ids", [])),
        ranked_ids=[str(i) for i in data.get("ranked_ids", [])],
        decision_history=[duel_record_from_dict(r) for r in data.get("decision_history", [])],
        battle_index=int(data.get("battle_index", 0)),
        is_complete=bool(data.get("is_complete", False)),
        artwork_snapshot=_decode_artwork(data.get("artwork_snapshot")),
        created_at=_decode_datetime(data.get("created_at")),
    )
