"""Input records and computed results for the intelligence engine.

Input records are frozen pydantic models validated from plain dicts or JSON
(snake_case or camelCase keys). Results are plain dataclasses that serialize
with ``dataclasses.asdict``.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(StrEnum):
    """Direction of a treasury transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class Severity(StrEnum):
    """Anomaly severity, most to least urgent."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnomalyType(StrEnum):
    """Rule that flagged an anomaly."""

    HIGH_AMOUNT_NO_PROOF = "high_amount_no_proof"
    DUPLICATE_TRANSACTION = "duplicate_transaction"


class EfficiencyStatus(StrEnum):
    """Grade of program spending versus total spending."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


class RiskLevel(StrEnum):
    """Risk tier of a document."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ForecastConfidence(StrEnum):
    """Confidence grade attached to a forecast."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _coerce_datetime(value: Any) -> Any:
    """Accept ISO date strings and ``date`` objects where a datetime is expected."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and len(value.strip()) == 10:
        return datetime.fromisoformat(value.strip())
    return value


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )


class Transaction(_Record):
    """A treasury record. Amounts are in the smallest currency unit."""

    id: str
    date: datetime
    amount: int = Field(gt=0)
    type: TransactionType
    category: str = ""
    proof: str | None = None
    status: str = "verified"

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return _coerce_datetime(value)

    @property
    def has_proof(self) -> bool:
        return bool(self.proof and self.proof.strip())


class AttendanceRecord(_Record):
    """One member's attendance status for one meeting."""

    date: datetime
    status: str
    member_id: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return _coerce_datetime(value)


class Member(_Record):
    """An organization member."""

    id: str
    is_active: bool = True


class Document(_Record):
    """A free-text organizational document."""

    id: str
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


@dataclass
class EfficiencyScore:
    """Share of expense spending that went to programs."""

    score: int
    status: EfficiencyStatus
    program_spending: int
    operational_spending: int
    total_spending: int


@dataclass
class Anomaly:
    """A transaction flagged for human review."""

    id: str
    type: AnomalyType
    severity: Severity
    title: str
    description: str
    transaction_id: str
    amount: int
    date: str
    recommendations: list[str] = field(default_factory=list)


@dataclass
class ComplianceMetrics:
    """Attendance compliance for the current calendar month."""

    rate: int
    total_members: int
    active_members: int
    monthly_attendance: int
    present_attendance: int
    expected_attendance: int
    trend: str


@dataclass
class HabitInsight:
    """A pattern observed in the organization's history."""

    category: str
    title: str
    description: str
    metrics: str
    confidence: float
    recommendation: str


@dataclass
class MeetingSuggestion:
    """A weekday recommended for meetings."""

    day: str
    reason: str
    score: float
    attendance_rate: int
    operational_load: str


@dataclass
class ExpensePrediction:
    """Next-month expense forecast."""

    prediction: int
    confidence: ForecastConfidence
    trend: str
    basis: str
    months: list[str]
    monthly_totals: list[int]
    has_insufficient_data: bool


@dataclass
class AttendancePrediction:
    """Next-month attendance rate forecast, in percent."""

    prediction: int
    confidence: ForecastConfidence
    historical_average: int
    trend: str
    sample_size: int
    has_insufficient_data: bool


@dataclass
class DocumentRiskAnalysis:
    """Risk indicators found in one document."""

    document_id: str
    risk_level: RiskLevel
    urgency_score: int
    has_financial_commitment: bool
    financial_amounts: list[str]
    risk_keywords: list[str]
    recommendations: list[str]


@dataclass
class DocumentRiskSummary:
    """Risk aggregated over a set of documents."""

    score: int
    high_risk_count: int
    medium_risk_count: int
    total_financial_commitments: int
    details: str


@dataclass
class RiskDetails:
    financial: str
    compliance: str
    operational: str
    document: str
    overall: str


@dataclass
class RiskScore:
    """Composite 0-100 organizational risk with its four components."""

    overall: int
    financial: int
    compliance: int
    operational: int
    document: int
    trend: str
    details: RiskDetails


@dataclass
class Predictions:
    expenses: ExpensePrediction
    attendance: AttendancePrediction


@dataclass
class IntelligenceSummary:
    total_transactions: int
    suspicious_transactions: int
    total_members: int
    compliance_rate: int
    financial_trend: str


@dataclass
class IntelligenceData:
    """Everything the engine computes in one pass."""

    is_learning: bool
    efficiency_score: EfficiencyScore
    anomalies: list[Anomaly]
    compliance_metrics: ComplianceMetrics
    habit_insights: list[HabitInsight]
    meeting_suggestions: list[MeetingSuggestion]
    predictions: Predictions
    summary: IntelligenceSummary
    risk_score: RiskScore
    action_plan: list[str]
