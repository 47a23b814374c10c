"""Tests for transaction anomaly detection."""

from datetime import datetime, timedelta

from orgintel.intelligence.anomalies import detect_anomalies
from orgintel.intelligence.models import AnomalyType, Severity, Transaction
from orgintel.utils.config import AnomalyConfig

BASE = datetime(2024, 6, 10, 9, 0)


def _tx(
    tx_id: str,
    amount: int = 150000,
    hours: float = 0,
    category: str = "konsumsi",
    proof: str | None = "receipt.jpg",
    tx_type: str = "expense",
) -> Transaction:
    return Transaction(
        id=tx_id,
        date=BASE + timedelta(hours=hours),
        amount=amount,
        type=tx_type,
        category=category,
        proof=proof,
    )


class TestHighAmountWithoutProof:
    """Tests for the missing-proof rule."""

    def setup_method(self) -> None:
        self.config = AnomalyConfig(threshold_amount=1_000_000, duplicate_hours=24)

    def test_above_threshold_without_proof(self) -> None:
        anomalies = detect_anomalies([_tx("t1", amount=1_000_001, proof=None)], self.config)
        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.severity == Severity.CRITICAL
        assert anomaly.type == AnomalyType.HIGH_AMOUNT_NO_PROOF
        assert anomaly.transaction_id == "t1"
        assert anomaly.id == "anomaly-t1-no-proof"
        assert "Rp 1.000.001" in anomaly.description
        assert len(anomaly.recommendations) == 3

    def test_with_proof_not_flagged(self) -> None:
        anomalies = detect_anomalies([_tx("t1", amount=1_000_001)], self.config)
        assert anomalies == []

    def test_blank_proof_counts_as_missing(self) -> None:
        anomalies = detect_anomalies([_tx("t1", amount=2_000_000, proof="   ")], self.config)
        assert len(anomalies) == 1

    def test_threshold_is_exclusive(self) -> None:
        anomalies = detect_anomalies([_tx("t1", amount=1_000_000, proof=None)], self.config)
        assert anomalies == []

    def test_custom_threshold(self) -> None:
        config = AnomalyConfig(threshold_amount=100_000)
        anomalies = detect_anomalies([_tx("t1", amount=150_000, proof=None)], config)
        assert len(anomalies) == 1


class TestDuplicateTransactions:
    """Tests for the pairwise duplicate rule."""

    def setup_method(self) -> None:
        self.config = AnomalyConfig(duplicate_hours=24)

    def test_pair_within_window(self) -> None:
        anomalies = detect_anomalies([_tx("a"), _tx("b", hours=2)], self.config)
        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.type == AnomalyType.DUPLICATE_TRANSACTION
        assert anomaly.severity == Severity.HIGH
        assert anomaly.transaction_id == "b"
        assert anomaly.id == "anomaly-b-duplicate"

    def test_pair_outside_window(self) -> None:
        anomalies = detect_anomalies([_tx("a"), _tx("b", hours=48)], self.config)
        assert anomalies == []

    def test_flags_later_transaction_regardless_of_input_order(self) -> None:
        anomalies = detect_anomalies([_tx("late", hours=3), _tx("early")], self.config)
        assert [a.transaction_id for a in anomalies] == ["late"]

    def test_different_category_not_duplicate(self) -> None:
        anomalies = detect_anomalies(
            [_tx("a", category="konsumsi"), _tx("b", hours=1, category="transport")],
            self.config,
        )
        assert anomalies == []

    def test_different_amount_not_duplicate(self) -> None:
        anomalies = detect_anomalies(
            [_tx("a", amount=10000), _tx("b", hours=1, amount=10001)], self.config
        )
        assert anomalies == []

    def test_same_id_not_duplicate(self) -> None:
        anomalies = detect_anomalies([_tx("a"), _tx("a", hours=1)], self.config)
        assert anomalies == []

    def test_three_identical_flag_every_pair(self) -> None:
        anomalies = detect_anomalies(
            [_tx("a"), _tx("b", hours=1), _tx("c", hours=2)], self.config
        )
        assert [a.transaction_id for a in anomalies] == ["b", "c", "c"]

    def test_scan_limited_to_recent_transactions(self) -> None:
        config = AnomalyConfig(duplicate_hours=24, duplicate_scan_limit=2)
        transactions = [_tx("old-1"), _tx("old-2", hours=1), _tx("new", hours=100)]
        assert detect_anomalies(transactions, config) == []

    def test_does_not_mutate_input(self) -> None:
        transactions = [_tx("late", hours=3), _tx("early")]
        detect_anomalies(transactions, self.config)
        assert [t.id for t in transactions] == ["late", "early"]


class TestCombined:
    """Tests for both rules together."""

    def test_empty(self) -> None:
        assert detect_anomalies([]) == []

    def test_missing_proof_listed_before_duplicates(self) -> None:
        transactions = [
            _tx("a", amount=1_500_000, proof=None),
            _tx("b", amount=1_500_000, hours=5, proof=None),
        ]
        anomalies = detect_anomalies(transactions, AnomalyConfig())
        assert [a.type for a in anomalies] == [
            AnomalyType.HIGH_AMOUNT_NO_PROOF,
            AnomalyType.HIGH_AMOUNT_NO_PROOF,
            AnomalyType.DUPLICATE_TRANSACTION,
        ]
