"""Effort scoring: homework aggregation, weighted score, status ladder.

Formula: effort = 0.5 * completionRate + 0.3 * averageQuizScore + 0.2 * streakScore,
each component on a 0-100 scale, clamped and rounded half-up.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from repositories import HomeworkRepository

COMPLETION_WEIGHT = 0.5
QUIZ_WEIGHT = 0.3
STREAK_WEIGHT = 0.2
MAX_STREAK_DAYS = 7


class EffortStatus(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    CONCERNED = "concerned"
    AT_RISK = "at-risk"


# Descending ladder: first band whose floor the score reaches wins.
_LADDER: list[tuple[int, EffortStatus, str]] = [
    (80, EffortStatus.EXCELLENT, "😄"),
    (60, EffortStatus.GOOD, "🙂"),
    (40, EffortStatus.NEUTRAL, "😐"),
    (20, EffortStatus.CONCERNED, "😟"),
    (0, EffortStatus.AT_RISK, "😡"),
]

REMINDER_STATUSES = frozenset({EffortStatus.AT_RISK, EffortStatus.CONCERNED})


@dataclass(frozen=True)
class StudentHomeworkData:
    total_homework: int
    completed_homework: int
    average_score: float
    streak_days: int


@dataclass(frozen=True)
class EffortScore:
    score: int
    completion_rate: float
    average_quiz_score: float
    streak_score: float
    emoji: str
    status: EffortStatus

    def details(self) -> dict:
        return {
            "completionRate": self.completion_rate,
            "averageQuizScore": self.average_quiz_score,
            "streakScore": self.streak_score,
        }


def _band(effort: float) -> tuple[EffortStatus, str]:
    for floor, status, emoji in _LADDER:
        if effort >= floor:
            return status, emoji
    return EffortStatus.AT_RISK, "😡"


def status_for_effort(effort: float) -> EffortStatus:
    """Map an effort score to its status category."""
    return _band(effort)[0]


def emoji_for_effort(effort: float) -> str:
    """Map an effort score to its emoji."""
    return _band(effort)[1]


def needs_reminder(status: EffortStatus | str) -> bool:
    """True iff the status is one of the two lowest bands."""
    try:
        return EffortStatus(status) in REMINDER_STATUSES
    except ValueError:
        return False


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; 62.5 must become 63.
    return int(math.floor(value + 0.5))


def weighted_effort(completion_rate: float, average_quiz_score: float,
                    streak_score: float) -> int:
    """Weighted sum of the three components, clamped to 0-100 and rounded."""
    raw = (
        COMPLETION_WEIGHT * completion_rate
        + QUIZ_WEIGHT * average_quiz_score
        + STREAK_WEIGHT * streak_score
    )
    return _round_half_up(max(0.0, min(100.0, raw)))


def compute_effort_score(data: StudentHomeworkData) -> EffortScore:
    """Score a homework aggregate. Pure: no I/O, same input gives same output."""
    if data.total_homework > 0:
        completion_rate = data.completed_homework / data.total_homework * 100
    else:
        completion_rate = 0.0

    average_quiz_score = data.average_score or 0.0
    streak_score = min(data.streak_days, MAX_STREAK_DAYS) / MAX_STREAK_DAYS * 100

    score = weighted_effort(completion_rate, average_quiz_score, streak_score)
    status, emoji = _band(score)

    return EffortScore(
        score=score,
        completion_rate=completion_rate,
        average_quiz_score=average_quiz_score,
        streak_score=streak_score,
        emoji=emoji,
        status=status,
    )


class HomeworkAggregator:
    """Reduces a student's homework in one course to the four scoring inputs.

    The streak is an approximation: the number of the student's submissions
    inside the trailing window, capped at seven. It does not track
    consecutive active days.
    """

    def __init__(self, homework: HomeworkRepository, streak_window_days: int = 7):
        self.homework = homework
        self.streak_window_days = streak_window_days

    def aggregate(self, user_id: str, course_id: str,
                  now: Optional[datetime] = None) -> StudentHomeworkData:
        now = now or datetime.now()
        rows = self.homework.assignments_with_homework(course_id, user_id)

        total = len(rows)
        completed = [hw for _, hw in rows if hw is not None and hw.completed]
        scores = [hw.score for hw in completed if hw.score is not None]
        average = sum(scores) / len(scores) if scores else 0.0

        since = now - timedelta(days=self.streak_window_days)
        recent = self.homework.count_submissions_since(user_id, since)

        return StudentHomeworkData(
            total_homework=total,
            completed_homework=len(completed),
            average_score=average,
            streak_days=min(recent, MAX_STREAK_DAYS),
        )
