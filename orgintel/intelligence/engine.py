"""Single entry point that computes the full intelligence report."""

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from orgintel.utils.config import AnomalyConfig, DocumentRiskConfig, IntelligenceConfig
from orgintel.utils.logger import get_logger

from .anomalies import detect_anomalies
from .document_risk import DocumentRiskAnalyzer
from .forecast import predict_attendance, predict_expenses
from .insights import generate_habit_insights, suggest_meeting_times
from .models import (
    AttendanceRecord,
    Document,
    EfficiencyStatus,
    IntelligenceData,
    IntelligenceSummary,
    Member,
    Predictions,
    Transaction,
)
from .scores import (
    calculate_compliance,
    calculate_efficiency_score,
    calculate_risk_score,
    generate_action_plan,
    is_learning_mode,
)

logger = get_logger(__name__)

_FINANCIAL_TREND = {
    EfficiencyStatus.EXCELLENT: "positive",
    EfficiencyStatus.GOOD: "stable",
    EfficiencyStatus.NEEDS_IMPROVEMENT: "negative",
}


class IntelligenceEngine:
    """Aggregates organizational records into an ``IntelligenceData`` report.

    Every call recomputes everything from the given collections; the engine
    keeps no state between calls and never mutates its inputs.

    Args:
        config: Engine configuration. Defaults are used when ``None``.
        document_config: Document risk keyword configuration.
    """

    def __init__(
        self,
        config: IntelligenceConfig | None = None,
        document_config: DocumentRiskConfig | None = None,
    ) -> None:
        self.config = config or IntelligenceConfig()
        self.document_analyzer = DocumentRiskAnalyzer(document_config)

    def generate(
        self,
        members: Sequence[Member],
        attendance: Sequence[AttendanceRecord],
        transactions: Sequence[Transaction],
        documents: Sequence[Document] = (),
        anomaly_config: AnomalyConfig | None = None,
        now: datetime | None = None,
    ) -> IntelligenceData:
        """Compute the full report in one pass.

        Args:
            members: Organization members.
            attendance: Attendance records.
            transactions: Treasury transactions.
            documents: Documents for risk analysis.
            anomaly_config: Overrides the configured anomaly thresholds.
            now: Reference instant for month windows and forecasts.
                Defaults to the current time in the configured zone.

        Returns:
            The complete intelligence report.
        """
        config = self.config
        now = now or datetime.now(ZoneInfo(config.timezone))
        anomaly_config = anomaly_config or config.anomalies

        logger.info(
            "Generating intelligence: %d members, %d attendance, "
            "%d transactions, %d documents",
            len(members),
            len(attendance),
            len(transactions),
            len(documents),
        )

        efficiency = calculate_efficiency_score(transactions, config)
        anomalies = detect_anomalies(
            transactions,
            anomaly_config,
            timezone=config.timezone,
            currency_symbol=config.currency_symbol,
        )
        compliance = calculate_compliance(members, attendance, config, now)
        document_summary = self.document_analyzer.overall(list(documents))

        report = IntelligenceData(
            is_learning=is_learning_mode(transactions, config.learning_threshold),
            efficiency_score=efficiency,
            anomalies=anomalies,
            compliance_metrics=compliance,
            habit_insights=generate_habit_insights(
                transactions, attendance, members, config, now
            ),
            meeting_suggestions=suggest_meeting_times(transactions, attendance, config),
            predictions=Predictions(
                expenses=predict_expenses(transactions, config, now),
                attendance=predict_attendance(attendance, config, now),
            ),
            summary=IntelligenceSummary(
                total_transactions=len(transactions),
                suspicious_transactions=len(anomalies),
                total_members=len(members),
                compliance_rate=compliance.rate,
                financial_trend=_FINANCIAL_TREND[efficiency.status],
            ),
            risk_score=calculate_risk_score(
                efficiency, compliance, anomalies, document_summary
            ),
            action_plan=generate_action_plan(efficiency, anomalies, compliance),
        )

        logger.info(
            "Intelligence ready: risk=%d (%s), %d anomalies, learning=%s",
            report.risk_score.overall,
            report.risk_score.trend,
            len(anomalies),
            report.is_learning,
        )
        return report
