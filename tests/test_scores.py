"""Tests for efficiency, compliance and risk scoring."""

from datetime import datetime, timedelta

import pytest

from orgintel.intelligence.models import (
    Anomaly,
    AnomalyType,
    AttendanceRecord,
    ComplianceMetrics,
    DocumentRiskSummary,
    EfficiencyScore,
    EfficiencyStatus,
    Member,
    Severity,
    Transaction,
)
from orgintel.intelligence.scores import (
    calculate_compliance,
    calculate_efficiency_score,
    calculate_risk_score,
    generate_action_plan,
    is_learning_mode,
)
from orgintel.utils.config import IntelligenceConfig


def _tx(tx_id: str, amount: int, category: str, tx_type: str = "expense") -> Transaction:
    return Transaction(
        id=tx_id, date="2024-06-01", amount=amount, type=tx_type, category=category
    )


def _efficiency(status: EfficiencyStatus) -> EfficiencyScore:
    return EfficiencyScore(
        score=0, status=status, program_spending=0, operational_spending=0, total_spending=0
    )


def _compliance(rate: int) -> ComplianceMetrics:
    return ComplianceMetrics(
        rate=rate,
        total_members=10,
        active_members=10,
        monthly_attendance=0,
        present_attendance=0,
        expected_attendance=40,
        trend="stable",
    )


def _anomaly(severity: Severity = Severity.HIGH) -> Anomaly:
    return Anomaly(
        id="anomaly-x",
        type=AnomalyType.DUPLICATE_TRANSACTION,
        severity=severity,
        title="t",
        description="d",
        transaction_id="x",
        amount=1,
        date="2024-06-01T00:00:00",
    )


def _documents(score: int) -> DocumentRiskSummary:
    return DocumentRiskSummary(
        score=score,
        high_risk_count=0,
        medium_risk_count=0,
        total_financial_commitments=0,
        details="No documents to analyze",
    )


class TestEfficiencyScore:
    """Tests for program versus operational spending."""

    def test_no_expenses_scores_zero(self) -> None:
        result = calculate_efficiency_score([_tx("i1", 500000, "donasi", "income")])
        assert result.score == 0
        assert result.status == EfficiencyStatus.NEEDS_IMPROVEMENT
        assert result.total_spending == 0

    def test_empty(self) -> None:
        assert calculate_efficiency_score([]).score == 0

    def test_all_program_scores_100(self) -> None:
        result = calculate_efficiency_score(
            [_tx("a", 100000, "Program Bakti Sosial"), _tx("b", 50000, "kegiatan")]
        )
        assert result.score == 100
        assert result.status == EfficiencyStatus.EXCELLENT
        assert result.program_spending == 150000

    def test_mixed_spending(self) -> None:
        result = calculate_efficiency_score(
            [
                _tx("a", 60000, "program"),
                _tx("b", 30000, "operasional"),
                _tx("c", 10000, "lainnya"),
                _tx("d", 999999, "program", "income"),
            ]
        )
        assert result.score == 60
        assert result.status == EfficiencyStatus.GOOD
        assert result.operational_spending == 30000
        assert result.total_spending == 100000

    def test_custom_keywords(self) -> None:
        config = IntelligenceConfig(program_keywords=["outreach"])
        result = calculate_efficiency_score([_tx("a", 1000, "Outreach")], config)
        assert result.score == 100


class TestCompliance:
    """Tests for monthly attendance compliance."""

    def setup_method(self) -> None:
        self.config = IntelligenceConfig()
        self.members = [Member(id=f"m{i}") for i in range(4)] + [
            Member(id="m9", is_active=False)
        ]

    def test_rate_for_current_month(self, now: datetime) -> None:
        attendance = [
            AttendanceRecord(date=now - timedelta(days=d), status="hadir")
            for d in range(12)
        ] + [
            AttendanceRecord(date=now - timedelta(days=40), status="hadir"),
            AttendanceRecord(date=now - timedelta(days=1), status="izin"),
        ]
        result = calculate_compliance(self.members, attendance, self.config, now)
        assert result.active_members == 4
        assert result.total_members == 5
        assert result.expected_attendance == 16
        assert result.present_attendance == 12
        assert result.monthly_attendance == 13
        assert result.rate == 75
        assert result.trend == "improving"

    def test_status_case_insensitive(self, now: datetime) -> None:
        attendance = [AttendanceRecord(date=now, status="Present")] * 8
        result = calculate_compliance(self.members, attendance, self.config, now)
        assert result.rate == 50
        assert result.trend == "stable"

    def test_no_active_members(self, now: datetime) -> None:
        result = calculate_compliance([], [], self.config, now)
        assert result.rate == 0
        assert result.trend == "worsening"

    def test_month_boundary_uses_local_zone(self) -> None:
        # 2024-06-30 18:00 UTC is already 1 July in Jakarta.
        now = datetime.fromisoformat("2024-07-01T08:00:00+07:00")
        attendance = [
            AttendanceRecord(date="2024-06-30T18:00:00+00:00", status="hadir"),
            AttendanceRecord(date="2024-06-30T16:00:00+00:00", status="hadir"),
        ]
        result = calculate_compliance(self.members, attendance, self.config, now)
        assert result.monthly_attendance == 1


class TestLearningMode:
    """Tests for the learning-mode gate."""

    def test_below_threshold(self) -> None:
        assert is_learning_mode([_tx(str(i), 1000, "x") for i in range(4)]) is True

    def test_at_threshold(self) -> None:
        assert is_learning_mode([_tx(str(i), 1000, "x") for i in range(5)]) is False


class TestRiskScore:
    """Tests for the composite risk score."""

    def test_best_case(self) -> None:
        risk = calculate_risk_score(
            _efficiency(EfficiencyStatus.EXCELLENT), _compliance(90), [], _documents(0)
        )
        assert (risk.financial, risk.compliance, risk.operational, risk.document) == (
            20,
            15,
            10,
            0,
        )
        assert risk.overall == 11
        assert risk.trend == "improving"
        assert risk.details.operational == "No critical audit findings"

    def test_worst_case(self) -> None:
        risk = calculate_risk_score(
            _efficiency(EfficiencyStatus.NEEDS_IMPROVEMENT),
            _compliance(10),
            [_anomaly()] * 3,
            _documents(100),
        )
        assert risk.overall == 78
        assert risk.trend == "worsening"
        assert "3 anomalies" in risk.details.operational

    @pytest.mark.parametrize("status", list(EfficiencyStatus))
    @pytest.mark.parametrize("rate", [0, 60, 80, 100])
    @pytest.mark.parametrize("anomaly_count", [0, 2, 5])
    @pytest.mark.parametrize("document_score", [0, 55, 100])
    def test_overall_is_rounded_mean_in_bounds(
        self,
        status: EfficiencyStatus,
        rate: int,
        anomaly_count: int,
        document_score: int,
    ) -> None:
        risk = calculate_risk_score(
            _efficiency(status),
            _compliance(rate),
            [_anomaly()] * anomaly_count,
            _documents(document_score),
        )
        parts = (risk.financial, risk.compliance, risk.operational, risk.document)
        assert all(0 <= p <= 100 for p in parts)
        assert risk.overall == round(sum(parts) / 4)
        assert 0 <= risk.overall <= 100

    def test_compliance_tiers(self) -> None:
        tiers = [
            calculate_risk_score(
                _efficiency(EfficiencyStatus.GOOD), _compliance(rate), [], _documents(0)
            ).compliance
            for rate in (80, 79, 60, 59)
        ]
        assert tiers == [15, 40, 40, 70]


class TestActionPlan:
    """Tests for action plan generation."""

    def test_never_empty(self) -> None:
        plan = generate_action_plan(
            _efficiency(EfficiencyStatus.GOOD), [], _compliance(75)
        )
        assert len(plan) == 1
        assert plan[0].startswith("The organization is stable")

    def test_needs_improvement_with_critical_findings(self) -> None:
        plan = generate_action_plan(
            _efficiency(EfficiencyStatus.NEEDS_IMPROVEMENT),
            [_anomaly(Severity.CRITICAL), _anomaly(Severity.CRITICAL), _anomaly()],
            _compliance(50),
        )
        assert len(plan) == 4
        assert "2 critical finding(s)" in plan[2]
        assert "reminders" in plan[3]

    def test_excellent_and_high_compliance(self) -> None:
        plan = generate_action_plan(
            _efficiency(EfficiencyStatus.EXCELLENT), [], _compliance(85)
        )
        assert len(plan) == 2
        assert "recognition program" in plan[1]
