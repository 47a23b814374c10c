"""Next-month forecasts for expenses and attendance."""

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

import numpy as np

from orgintel.utils.config import IntelligenceConfig
from orgintel.utils.logger import get_logger

from .formatting import format_thousands
from .models import (
    AttendancePrediction,
    AttendanceRecord,
    ExpensePrediction,
    ForecastConfidence,
    Transaction,
    TransactionType,
)
from .scores import is_present
from .timeutils import month_key, month_start, to_local

logger = get_logger(__name__)

HISTORY_MONTHS = 6
SMA_MONTHS = 3
MIN_MONTHS_WITH_DATA = 3
MIN_ATTENDANCE_RECORDS = 10
ATTENDANCE_WINDOW_MONTHS = 3


def predict_expenses(
    transactions: Sequence[Transaction],
    config: IntelligenceConfig,
    now: datetime,
) -> ExpensePrediction:
    """Forecast next month's expenses with a 3-month simple moving average.

    Expenses are bucketed into the six calendar months ending with the month
    of ``now``. Confidence comes from the coefficient of variation of the
    last three months and the trend from comparing the first two months with
    the last two.

    Args:
        transactions: Treasury transactions.
        config: Engine configuration (time zone, currency symbol).
        now: Reference instant; its month is the last bucket.

    Returns:
        The forecast, or a zero prediction flagged as insufficient when
        fewer than three months carry expense data.
    """
    tz = ZoneInfo(config.timezone)
    local_now = to_local(now, tz)

    starts = [month_start(local_now, -i) for i in range(HISTORY_MONTHS - 1, -1, -1)]
    keys = [month_key(s) for s in starts]
    totals = [0] * HISTORY_MONTHS

    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        key = month_key(to_local(t.date, tz))
        if key in keys:
            totals[keys.index(key)] += t.amount

    months_with_data = sum(1 for total in totals if total > 0)
    if months_with_data < MIN_MONTHS_WITH_DATA:
        basis = (
            "No historical data"
            if not transactions
            else f"Less than {MIN_MONTHS_WITH_DATA} months of expense history"
        )
        logger.info("Expense forecast skipped: %s", basis)
        return ExpensePrediction(
            prediction=0,
            confidence=ForecastConfidence.LOW,
            trend="stable",
            basis=basis,
            months=keys,
            monthly_totals=totals,
            has_insufficient_data=True,
        )

    recent = np.array(totals[-SMA_MONTHS:], dtype=float)
    sma = float(recent.mean())
    variation = float(recent.std()) / sma if sma > 0 else 0.0

    if variation < 0.15:
        confidence = ForecastConfidence.HIGH
    elif variation < 0.30:
        confidence = ForecastConfidence.MEDIUM
    else:
        confidence = ForecastConfidence.LOW

    first = float(np.mean(totals[:2]))
    last = float(np.mean(totals[-2:]))
    change = (last - first) / first * 100 if first > 0 else 0.0
    if change > 10:
        trend = "increasing"
    elif change < -10:
        trend = "decreasing"
    else:
        trend = "stable"

    basis = "Average of the last 3 months: " + ", ".join(
        format_thousands(total, config.currency_symbol) for total in totals[-SMA_MONTHS:]
    )
    logger.debug("Expense forecast %.0f (cv=%.3f, trend=%s)", sma, variation, trend)

    return ExpensePrediction(
        prediction=round(sma),
        confidence=confidence,
        trend=trend,
        basis=basis,
        months=keys,
        monthly_totals=totals,
        has_insufficient_data=False,
    )


def predict_attendance(
    attendance: Sequence[AttendanceRecord],
    config: IntelligenceConfig,
    now: datetime,
) -> AttendancePrediction:
    """Forecast next month's attendance rate from the trailing three months.

    The window starts on the first day of the month three months before
    ``now``. The trend compares the present rate of the older half of the
    records with the newer half.
    """
    tz = ZoneInfo(config.timezone)
    start = month_start(to_local(now, tz), -ATTENDANCE_WINDOW_MONTHS)

    recent = sorted(
        (a for a in attendance if to_local(a.date, tz) >= start),
        key=lambda a: to_local(a.date, tz),
    )

    if len(recent) < MIN_ATTENDANCE_RECORDS:
        return AttendancePrediction(
            prediction=0,
            confidence=ForecastConfidence.LOW,
            historical_average=0,
            trend="stable",
            sample_size=len(recent),
            has_insufficient_data=True,
        )

    flags = np.array([is_present(a, config) for a in recent], dtype=float)
    average = float(flags.mean()) * 100

    midpoint = len(flags) // 2
    first_half = float(flags[:midpoint].mean()) * 100
    second_half = float(flags[midpoint:].mean()) * 100
    diff = second_half - first_half
    if diff > 5:
        trend = "improving"
    elif diff < -5:
        trend = "declining"
    else:
        trend = "stable"

    if len(recent) >= 30:
        confidence = ForecastConfidence.HIGH
    elif len(recent) >= 20:
        confidence = ForecastConfidence.MEDIUM
    else:
        confidence = ForecastConfidence.LOW

    return AttendancePrediction(
        prediction=round(average),
        confidence=confidence,
        historical_average=round(average),
        trend=trend,
        sample_size=len(recent),
        has_insufficient_data=False,
    )
