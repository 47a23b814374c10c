"""Efficiency, compliance and composite risk scoring plus the action plan."""

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from orgintel.utils.config import IntelligenceConfig
from orgintel.utils.logger import get_logger

from .models import (
    Anomaly,
    AttendanceRecord,
    ComplianceMetrics,
    DocumentRiskSummary,
    EfficiencyScore,
    EfficiencyStatus,
    Member,
    RiskDetails,
    RiskScore,
    Severity,
    Transaction,
    TransactionType,
)
from .timeutils import month_start, to_local

logger = get_logger(__name__)

_FINANCIAL_RISK = {
    EfficiencyStatus.EXCELLENT: 20,
    EfficiencyStatus.GOOD: 50,
    EfficiencyStatus.NEEDS_IMPROVEMENT: 75,
}


def category_matches(category: str, keywords: Sequence[str]) -> bool:
    lowered = category.lower()
    return any(keyword in lowered for keyword in keywords)


def is_present(record: AttendanceRecord, config: IntelligenceConfig) -> bool:
    return record.status.strip().lower() in {s.lower() for s in config.present_statuses}


def calculate_efficiency_score(
    transactions: Sequence[Transaction], config: IntelligenceConfig | None = None
) -> EfficiencyScore:
    """Score the share of expense spending that went to programs.

    Args:
        transactions: Treasury transactions.
        config: Program and operational category keywords.

    Returns:
        Score 0-100 with a status grade; 0 when there are no expenses.
    """
    config = config or IntelligenceConfig()
    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]

    program = sum(
        t.amount for t in expenses if category_matches(t.category, config.program_keywords)
    )
    operational = sum(
        t.amount
        for t in expenses
        if category_matches(t.category, config.operational_keywords)
    )
    total = sum(t.amount for t in expenses)

    score = round(program / total * 100) if total > 0 else 0
    if score >= 70:
        status = EfficiencyStatus.EXCELLENT
    elif score >= 50:
        status = EfficiencyStatus.GOOD
    else:
        status = EfficiencyStatus.NEEDS_IMPROVEMENT

    return EfficiencyScore(
        score=score,
        status=status,
        program_spending=program,
        operational_spending=operational,
        total_spending=total,
    )


def calculate_compliance(
    members: Sequence[Member],
    attendance: Sequence[AttendanceRecord],
    config: IntelligenceConfig,
    now: datetime,
) -> ComplianceMetrics:
    """Attendance compliance for the calendar month containing ``now``.

    Expected attendance assumes ``meetings_per_month`` meetings for every
    active member.
    """
    tz = ZoneInfo(config.timezone)
    local_now = to_local(now, tz)
    start = month_start(local_now)
    end = month_start(local_now, 1)

    monthly = [a for a in attendance if start <= to_local(a.date, tz) < end]
    present = sum(1 for a in monthly if is_present(a, config))
    active = sum(1 for m in members if m.is_active)
    expected = active * config.meetings_per_month

    rate = round(present / expected * 100) if expected > 0 else 0
    if rate >= 75:
        trend = "improving"
    elif rate >= 50:
        trend = "stable"
    else:
        trend = "worsening"

    logger.debug(
        "Compliance %s: %d present of %d expected", start.strftime("%Y-%m"), present, expected
    )
    return ComplianceMetrics(
        rate=rate,
        total_members=len(members),
        active_members=active,
        monthly_attendance=len(monthly),
        present_attendance=present,
        expected_attendance=expected,
        trend=trend,
    )


def is_learning_mode(transactions: Sequence[Transaction], threshold: int = 5) -> bool:
    """True while there are too few transactions for pattern-based insights."""
    return len(transactions) < threshold


def calculate_risk_score(
    efficiency: EfficiencyScore,
    compliance: ComplianceMetrics,
    anomalies: Sequence[Anomaly],
    document_summary: DocumentRiskSummary,
) -> RiskScore:
    """Combine four risk dimensions into one 0-100 score.

    Each dimension is mapped to a fixed tier value and the overall score is
    their unweighted mean.
    """
    financial = _FINANCIAL_RISK[efficiency.status]

    if compliance.rate >= 80:
        compliance_risk = 15
    elif compliance.rate >= 60:
        compliance_risk = 40
    else:
        compliance_risk = 70

    if not anomalies:
        operational = 10
    elif len(anomalies) <= 2:
        operational = 35
    else:
        operational = 65

    document = document_summary.score
    overall = round((financial + compliance_risk + operational + document) / 4)

    if overall < 30:
        trend = "improving"
        overall_detail = "The organization is in very healthy condition"
    elif overall < 60:
        trend = "stable"
        overall_detail = "The organization is stable with room for improvement"
    else:
        trend = "worsening"
        overall_detail = "Several areas need immediate attention"

    details = RiskDetails(
        financial=(
            "Program spending ratio is excellent (>70%)"
            if efficiency.status == EfficiencyStatus.EXCELLENT
            else "Budget allocation needs optimization"
        ),
        compliance=(
            "Member compliance is satisfactory"
            if compliance.rate >= 70
            else "Member participation needs improvement"
        ),
        operational=(
            "No critical audit findings"
            if not anomalies
            else f"Found {len(anomalies)} anomalies that need follow-up"
        ),
        document=document_summary.details,
        overall=overall_detail,
    )

    return RiskScore(
        overall=overall,
        financial=financial,
        compliance=compliance_risk,
        operational=operational,
        document=document,
        trend=trend,
        details=details,
    )


def generate_action_plan(
    efficiency: EfficiencyScore,
    anomalies: Sequence[Anomaly],
    compliance: ComplianceMetrics,
) -> list[str]:
    """Ordered recommendations for the organization; never empty."""
    actions: list[str] = []

    if efficiency.status == EfficiencyStatus.NEEDS_IMPROVEMENT:
        actions.append(
            "Increase the budget share for core programs "
            "(target: more than 70% of total spending)"
        )
        actions.append("Review and trim non-essential operational costs")
    elif efficiency.status == EfficiencyStatus.EXCELLENT:
        actions.append("Keep the excellent program efficiency ratio (>70%)")

    critical = [a for a in anomalies if a.severity == Severity.CRITICAL]
    if critical:
        actions.append(
            f"Follow up on {len(critical)} critical finding(s) in the financial audit"
        )

    if compliance.rate < 70:
        actions.append(
            "Raise member participation with automatic reminders "
            "and attendance incentives"
        )
    elif compliance.rate >= 80:
        actions.append(
            "Member compliance is excellent. Consider a recognition program "
            "to keep the momentum"
        )

    if not actions:
        actions.append(
            "The organization is stable. Focus on program innovation "
            "and growing social impact"
        )

    return actions
