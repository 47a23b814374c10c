"""Rule-based anomaly detection over treasury transactions.

Two rules are applied:

* large transactions (above ``threshold_amount``) without a proof image are
  flagged ``critical``;
* pairs of transactions with the same amount and category recorded within
  ``duplicate_hours`` of each other are flagged ``high`` as possible
  duplicates.

The duplicate rule compares every pair and so grows quadratically with the
number of transactions. The scan is restricted to the most recent
``duplicate_scan_limit`` transactions to keep large histories bounded.
"""

from collections.abc import Sequence
from zoneinfo import ZoneInfo

from orgintel.utils.config import AnomalyConfig
from orgintel.utils.logger import get_logger

from .formatting import format_currency
from .models import Anomaly, AnomalyType, Severity, Transaction
from .timeutils import to_local

logger = get_logger(__name__)

DUPLICATE_RECOMMENDATIONS = (
    "Check whether both entries record the same transaction",
    "Delete one of them if it is a duplicate",
    "Add a distinguishing note if they are genuinely different",
)


def _no_proof_recommendations(threshold: int, symbol: str) -> list[str]:
    return [
        "Upload the proof photo for this transaction right away",
        "Verify the transaction with the treasurer",
        f"Make sure every transaction above {format_currency(threshold, symbol)} "
        "has complete documentation",
    ]


def detect_anomalies(
    transactions: Sequence[Transaction],
    config: AnomalyConfig | None = None,
    timezone: str = "Asia/Jakarta",
    currency_symbol: str = "Rp",
) -> list[Anomaly]:
    """Flag transactions that need human review.

    Args:
        transactions: Treasury transactions. Not modified.
        config: Amount threshold, duplicate window and scan cap.
        timezone: Zone used to interpret naive transaction dates.
        currency_symbol: Symbol used in generated descriptions.

    Returns:
        Missing-proof anomalies in input order followed by duplicate
        anomalies in chronological order.
    """
    config = config or AnomalyConfig()
    if not transactions:
        return []

    tz = ZoneInfo(timezone)
    anomalies: list[Anomaly] = []

    for t in transactions:
        if t.amount > config.threshold_amount and not t.has_proof:
            anomalies.append(
                Anomaly(
                    id=f"anomaly-{t.id}-no-proof",
                    type=AnomalyType.HIGH_AMOUNT_NO_PROOF,
                    severity=Severity.CRITICAL,
                    title="Large transaction without proof",
                    description=(
                        f"The transaction of {format_currency(t.amount, currency_symbol)} "
                        "has no proof photo attached."
                    ),
                    transaction_id=t.id,
                    amount=t.amount,
                    date=t.date.isoformat(),
                    recommendations=_no_proof_recommendations(
                        config.threshold_amount, currency_symbol
                    ),
                )
            )

    anomalies.extend(_find_duplicates(transactions, config, tz, currency_symbol))

    logger.info(
        "Detected %d anomalies across %d transactions", len(anomalies), len(transactions)
    )
    return anomalies


def _find_duplicates(
    transactions: Sequence[Transaction],
    config: AnomalyConfig,
    tz: ZoneInfo,
    currency_symbol: str,
) -> list[Anomaly]:
    ordered = sorted(transactions, key=lambda t: to_local(t.date, tz))

    limit = config.duplicate_scan_limit
    if limit is not None and len(ordered) > limit:
        logger.warning(
            "Duplicate scan limited to the %d most recent of %d transactions",
            limit,
            len(ordered),
        )
        ordered = ordered[-limit:]

    window_seconds = config.duplicate_hours * 3600
    found: list[Anomaly] = []

    for i, first in enumerate(ordered):
        first_time = to_local(first.date, tz)
        for second in ordered[i + 1 :]:
            gap = (to_local(second.date, tz) - first_time).total_seconds()
            # Sorted ascending: every later pair is further apart.
            if gap > window_seconds:
                break
            if (
                first.amount == second.amount
                and first.category == second.category
                and first.id != second.id
            ):
                found.append(
                    Anomaly(
                        id=f"anomaly-{second.id}-duplicate",
                        type=AnomalyType.DUPLICATE_TRANSACTION,
                        severity=Severity.HIGH,
                        title="Possible duplicate transaction",
                        description=(
                            "Found 2 identical transactions "
                            f"({format_currency(first.amount, currency_symbol)}, "
                            f"{first.category}) within {config.duplicate_hours:g} hours."
                        ),
                        transaction_id=second.id,
                        amount=second.amount,
                        date=second.date.isoformat(),
                        recommendations=list(DUPLICATE_RECOMMENDATIONS),
                    )
                )

    return found
