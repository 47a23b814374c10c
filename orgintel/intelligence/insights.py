"""Habit insights and meeting-day suggestions drawn from history."""

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from orgintel.utils.config import IntelligenceConfig

from .formatting import format_currency
from .models import (
    AttendanceRecord,
    HabitInsight,
    Member,
    MeetingSuggestion,
    Transaction,
    TransactionType,
)
from .scores import category_matches, is_learning_mode, is_present
from .timeutils import to_local

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Fixed heuristic confidences, not derived from the data.
SPENDING_CONFIDENCE = 0.85
MEETING_CONFIDENCE = 0.78
ENGAGEMENT_CONFIDENCE = 0.92


def generate_habit_insights(
    transactions: Sequence[Transaction],
    attendance: Sequence[AttendanceRecord],
    members: Sequence[Member],
    config: IntelligenceConfig,
    now: datetime,
) -> list[HabitInsight]:
    """Describe spending, attendance and engagement patterns.

    Returns an empty list while the engine is in learning mode. Each insight
    is only emitted when its own minimum sample is met.

    Args:
        transactions: Treasury transactions.
        attendance: Attendance records.
        members: Organization members.
        config: Engine configuration.
        now: Reference instant for the trailing 30-day window.

    Returns:
        Up to three insights: spending, meeting and activity.
    """
    if is_learning_mode(transactions, config.learning_threshold):
        return []

    tz = ZoneInfo(config.timezone)
    insights: list[HabitInsight] = []

    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]
    if len(expenses) >= 3:
        average = sum(t.amount for t in expenses) / len(expenses)
        insights.append(
            HabitInsight(
                category="spending",
                title="Spending pattern detected",
                description=(
                    "The organization's average expense is "
                    f"{format_currency(average, config.currency_symbol)} per transaction."
                ),
                metrics=f"{len(expenses)} transactions analyzed",
                confidence=SPENDING_CONFIDENCE,
                recommendation=(
                    "Consider a monthly budget based on this average "
                    "for better financial control."
                ),
            )
        )

    cutoff = to_local(now, tz) - timedelta(days=30)
    recent = [a for a in attendance if to_local(a.date, tz) >= cutoff]
    if len(recent) >= 2:
        rate = sum(1 for a in recent if is_present(a, config)) / len(recent) * 100
        if rate >= 70:
            recommendation = "Keep the good attendance going with regular reminders."
        else:
            recommendation = (
                "Improve engagement by scheduling meetings at more flexible times."
            )
        insights.append(
            HabitInsight(
                category="meeting",
                title="Attendance rate over the last 30 days",
                description=(
                    f"Average attendance over the last 30 days is {round(rate)}%."
                ),
                metrics=f"{len(recent)} meeting records",
                confidence=MEETING_CONFIDENCE,
                recommendation=recommendation,
            )
        )

    if len(members) >= 5:
        active = sum(1 for m in members if m.is_active)
        engagement = active / len(members) * 100
        if engagement >= 80:
            recommendation = (
                "Member engagement is excellent. Sustain it with an appreciation program."
            )
        else:
            recommendation = "Consider a re-engagement program for less active members."
        insights.append(
            HabitInsight(
                category="activity",
                title="Member activity level",
                description=(
                    f"{active} of {len(members)} members are active ({round(engagement)}%)."
                ),
                metrics=f"{len(members)} total members",
                confidence=ENGAGEMENT_CONFIDENCE,
                recommendation=recommendation,
            )
        )

    return insights


def suggest_meeting_times(
    transactions: Sequence[Transaction],
    attendance: Sequence[AttendanceRecord],
    config: IntelligenceConfig,
    limit: int = 3,
) -> list[MeetingSuggestion]:
    """Rank weekdays for meetings by attendance and operational load.

    Each weekday with attendance history is scored as
    ``0.7 * attendance_rate + 0.3 * (1 - normalized_operational_load)``,
    where the load counts operational expenses recorded on that weekday
    relative to the busiest weekday.
    """
    tz = ZoneInfo(config.timezone)

    totals: dict[int, int] = defaultdict(int)
    present: dict[int, int] = defaultdict(int)
    for record in attendance:
        day = to_local(record.date, tz).weekday()
        totals[day] += 1
        if is_present(record, config):
            present[day] += 1

    operational: dict[int, int] = defaultdict(int)
    for t in transactions:
        if t.type == TransactionType.EXPENSE and category_matches(
            t.category, config.operational_keywords
        ):
            operational[to_local(t.date, tz).weekday()] += 1

    max_load = max(max(operational.values(), default=0), 1)

    scored: list[tuple[float, MeetingSuggestion]] = []
    for day, name in enumerate(WEEKDAYS):
        if not totals[day]:
            continue

        attendance_rate = present[day] / totals[day]
        count = operational[day]
        load = count / max_load
        low_load = 1 - load
        score = attendance_rate * 0.7 + low_load * 0.3
        percent = round(attendance_rate * 100)

        if attendance_rate >= 0.8 and low_load >= 0.7:
            reason = f"High attendance ({percent}%) and low operational load"
        elif attendance_rate >= 0.8:
            reason = f"Excellent attendance ({percent}%)"
        elif low_load >= 0.7:
            reason = "Low operational load, good for strategic discussions"
        else:
            reason = (
                f"Attendance {percent}%, "
                f"{'moderate' if count > 0 else 'low'} operational load"
            )

        if count == 0:
            label = "Low"
        elif load < 0.5:
            label = "Medium"
        else:
            label = "High"

        scored.append(
            (
                score,
                MeetingSuggestion(
                    day=name,
                    reason=reason,
                    score=round(score, 2),
                    attendance_rate=percent,
                    operational_load=label,
                ),
            )
        )

    scored.sort(key=lambda item: item[0], reverse=True)
    return [suggestion for _, suggestion in scored[:limit]]
