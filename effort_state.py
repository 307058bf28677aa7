"""
Persisted effort state per (student, module).

The bot_states row is shared with other study-bot features, so the blob is
merged, never replaced: the effort fields are written last-write-wins per
top-level key and every other key already in the blob is carried through.

Blob layout (schemaVersion 1):
    effort          int 0-100
    emoji           str
    status          excellent | good | neutral | concerned | at-risk
    lastCalculated  ISO timestamp
    needsReminder   bool, derived from status
    schemaVersion   int
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from effort_calculator import EffortScore, needs_reminder
from repositories import EffortStateRepository

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
COURSE_PREFIX = "course:"

_OWNED_KEYS = ("effort", "emoji", "status", "lastCalculated", "needsReminder", "schemaVersion")


# ── Module references ────────────────────────────────────────────────


@dataclass(frozen=True)
class CourseModule:
    course_id: str

    @property
    def key(self) -> str:
        return COURSE_PREFIX + self.course_id


@dataclass(frozen=True)
class OtherModule:
    """Any state partition that is not course-scoped (e.g. a chat module)."""

    raw: str

    @property
    def key(self) -> str:
        return self.raw


ModuleRef = Union[CourseModule, OtherModule]


def parse_module(raw: str) -> ModuleRef:
    if raw.startswith(COURSE_PREFIX) and len(raw) > len(COURSE_PREFIX):
        return CourseModule(raw[len(COURSE_PREFIX):])
    return OtherModule(raw)


def _as_effort(value: Any) -> int:
    """Stored effort as an int; other writers share the blob, so bad values read as 0."""
    if isinstance(value, bool):
        return 0
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


# ── Typed state record ───────────────────────────────────────────────


@dataclass
class EffortState:
    effort: int = 0
    emoji: str = "😐"
    status: str = "neutral"
    last_calculated: Optional[str] = None
    needs_reminder: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_blob(cls, blob: dict[str, Any]) -> EffortState:
        extra = {k: v for k, v in blob.items() if k not in _OWNED_KEYS}
        return cls(
            effort=_as_effort(blob.get("effort")),
            emoji=blob.get("emoji") or "😐",
            status=blob.get("status") or "neutral",
            last_calculated=blob.get("lastCalculated"),
            needs_reminder=bool(blob.get("needsReminder", False)),
            extra=extra,
        )

    @classmethod
    def from_json(cls, raw: Optional[str]) -> EffortState:
        """Parse a stored blob; unreadable or non-object JSON counts as empty."""
        if not raw:
            return cls()
        try:
            blob = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable bot state blob: %.80r", raw)
            return cls()
        if not isinstance(blob, dict):
            logger.warning("Discarding non-object bot state blob: %.80r", raw)
            return cls()
        return cls.from_blob(blob)

    def to_blob(self) -> dict[str, Any]:
        return {
            **self.extra,
            "effort": self.effort,
            "emoji": self.emoji,
            "status": self.status,
            "lastCalculated": self.last_calculated,
            "needsReminder": self.needs_reminder,
            "schemaVersion": SCHEMA_VERSION,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_blob(), ensure_ascii=False)

    def to_response(self) -> dict[str, Any]:
        return {
            "effort": self.effort,
            "emoji": self.emoji,
            "status": self.status,
            "needsReminder": self.needs_reminder,
            "lastCalculated": self.last_calculated,
        }

    def merge_score(self, score: EffortScore, calculated_at: datetime) -> EffortState:
        """Return a copy with the effort fields replaced and extra keys kept."""
        return EffortState(
            effort=score.score,
            emoji=score.emoji,
            status=score.status.value,
            last_calculated=calculated_at.isoformat(),
            needs_reminder=needs_reminder(score.status),
            extra=dict(self.extra),
        )


@dataclass
class StoredEffortState:
    user_id: str
    module: CourseModule
    state: EffortState


# ── Store ────────────────────────────────────────────────────────────


class EffortStateStore:
    """Reads and merges effort state through an EffortStateRepository.

    Concurrent upserts for the same key are last-write-wins; scores are
    recomputed from homework data, so a stale write is replaced on the
    next recompute.
    """

    def __init__(self, states: EffortStateRepository):
        self.states = states

    def get(self, user_id: str, course_id: str) -> Optional[EffortState]:
        raw = self.states.load(user_id, CourseModule(course_id).key)
        if raw is None:
            return None
        return EffortState.from_json(raw)

    def upsert(self, user_id: str, course_id: str, score: EffortScore,
               now: Optional[datetime] = None) -> EffortState:
        module = CourseModule(course_id)
        existing = EffortState.from_json(self.states.load(user_id, module.key))
        updated = existing.merge_score(score, now or datetime.now())
        self.states.save(user_id, module.key, updated.to_json())
        logger.info(
            "Effort updated user=%s module=%s effort=%s status=%s",
            user_id, module.key, updated.effort, updated.status,
            extra={"user_id": user_id, "state_module": module.key,
                   "effort": updated.effort, "status": updated.status},
        )
        return updated

    def course_states(self) -> list[StoredEffortState]:
        """Every stored course-scoped state."""
        result = []
        for user_id, raw_module, raw in self.states.scan(COURSE_PREFIX):
            module = parse_module(raw_module)
            if not isinstance(module, CourseModule):
                continue
            result.append(StoredEffortState(user_id, module, EffortState.from_json(raw)))
        return result

    def pending_reminders(self, user_id: Optional[str] = None) -> list[StoredEffortState]:
        """Course states flagged needsReminder, optionally for one student."""
        return [
            s for s in self.course_states()
            if s.state.needs_reminder and (user_id is None or s.user_id == user_id)
        ]
