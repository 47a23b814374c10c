"""Keyword and currency based risk analysis of organizational documents.

Scores each document's urgency from three keyword tiers (urgent,
deadline/priority, financial) and from currency amounts mentioned in the
text, then aggregates a 0-100 document risk score for the intelligence
engine.
"""

import re

from orgintel.utils.config import DocumentRiskConfig
from orgintel.utils.logger import get_logger

from .models import Document, DocumentRiskAnalysis, DocumentRiskSummary, RiskLevel

logger = get_logger(__name__)

_BASE_URGENCY = {RiskLevel.HIGH: 60, RiskLevel.MEDIUM: 30, RiskLevel.LOW: 10}
_POINTS_PER_KEYWORD = 5
_MAX_KEYWORD_POINTS = 20
_FINANCIAL_POINTS = 20


class DocumentRiskAnalyzer:
    """Analyzes free-text documents for urgency and financial commitments.

    Args:
        config: Keyword tiers and currency patterns.
    """

    def __init__(self, config: DocumentRiskConfig | None = None) -> None:
        self.config = config or DocumentRiskConfig()
        self._currency_patterns = [
            re.compile(p, re.IGNORECASE) for p in self.config.currency_patterns
        ]

    def analyze(self, document: Document) -> DocumentRiskAnalysis:
        """Analyze one document.

        Args:
            document: Document with free-text content.

        Returns:
            Risk level, urgency score, currency amounts found, matched
            keywords and at least one recommendation.
        """
        content = document.content or ""
        keywords, level = self.extract_risk_keywords(content)
        amounts = self.extract_financial_amounts(content)
        has_commitment = len(amounts) > 0

        urgency = _BASE_URGENCY[level]
        urgency += min(len(keywords) * _POINTS_PER_KEYWORD, _MAX_KEYWORD_POINTS)
        if has_commitment:
            urgency += _FINANCIAL_POINTS
        urgency = min(urgency, 100)

        analysis = DocumentRiskAnalysis(
            document_id=document.id,
            risk_level=level,
            urgency_score=urgency,
            has_financial_commitment=has_commitment,
            financial_amounts=amounts,
            risk_keywords=keywords,
            recommendations=self._recommendations(level, has_commitment, keywords),
        )
        logger.debug(
            "Document %s: risk=%s urgency=%d keywords=%s",
            document.id,
            level,
            urgency,
            keywords,
        )
        return analysis

    def extract_risk_keywords(self, content: str) -> tuple[list[str], RiskLevel]:
        """Find tier keywords and the highest tier they reach.

        Medium keywords are only collected when no high keyword matched.
        Financial keywords are always collected and lift a low document to
        medium.
        """
        lowered = content.lower()
        found: list[str] = []
        level = RiskLevel.LOW

        for keyword in self.config.high_keywords:
            if keyword in lowered:
                found.append(keyword)
                level = RiskLevel.HIGH

        if level == RiskLevel.LOW:
            for keyword in self.config.medium_keywords:
                if keyword in lowered:
                    found.append(keyword)
                    level = RiskLevel.MEDIUM

        for keyword in self.config.financial_keywords:
            if keyword in lowered:
                found.append(keyword)
                if level == RiskLevel.LOW:
                    level = RiskLevel.MEDIUM

        return found, level

    def extract_financial_amounts(self, content: str) -> list[str]:
        """Return distinct currency-looking substrings in order of discovery."""
        amounts: list[str] = []
        for pattern in self._currency_patterns:
            for match in pattern.finditer(content):
                value = match.group(0).strip()
                if value not in amounts:
                    amounts.append(value)
        return amounts

    def _recommendations(
        self, level: RiskLevel, has_commitment: bool, keywords: list[str]
    ) -> list[str]:
        recommendations: list[str] = []

        if level == RiskLevel.HIGH:
            recommendations.append("Follow up on this document immediately")
            recommendations.append(
                "Schedule a review with the responsible team within 24 hours"
            )
        elif level == RiskLevel.MEDIUM:
            recommendations.append("Review this document soon")
            recommendations.append("Make sure every involved party has been notified")

        if has_commitment:
            recommendations.append("Verify the financial commitment with the treasurer")
            recommendations.append("Confirm the budget is available before proceeding")

        if any(d in k for k in keywords for d in self.config.deadline_keywords):
            recommendations.append("Add the deadline to the organization calendar")

        if not recommendations:
            recommendations.append("This document can proceed at normal priority")

        return recommendations

    def overall(self, documents: list[Document]) -> DocumentRiskSummary:
        """Aggregate document risk into a single 0-100 score.

        The score weighs mean urgency at 50%, the share of high-risk
        documents at 30% and the share with financial commitments at 20%.

        Args:
            documents: Documents to analyze.

        Returns:
            Aggregate score with tier counts and a details sentence.
        """
        if not documents:
            return DocumentRiskSummary(
                score=0,
                high_risk_count=0,
                medium_risk_count=0,
                total_financial_commitments=0,
                details="No documents to analyze",
            )

        analyses = [self.analyze(doc) for doc in documents]
        total = len(analyses)
        high = sum(1 for a in analyses if a.risk_level == RiskLevel.HIGH)
        medium = sum(1 for a in analyses if a.risk_level == RiskLevel.MEDIUM)
        financial = sum(1 for a in analyses if a.has_financial_commitment)
        mean_urgency = sum(a.urgency_score for a in analyses) / total

        score = round(
            mean_urgency * 0.5
            + (high / total * 100) * 0.3
            + (financial / total * 100) * 0.2
        )

        if high > 0:
            details = f"{high} high-risk document(s) need immediate attention"
        elif medium > 0:
            details = f"{medium} document(s) with medium priority"
        else:
            details = "All documents are in normal condition"

        logger.info(
            "Document risk over %d documents: score=%d high=%d medium=%d",
            total,
            min(score, 100),
            high,
            medium,
        )
        return DocumentRiskSummary(
            score=min(score, 100),
            high_risk_count=high,
            medium_risk_count=medium,
            total_financial_commitments=financial,
            details=details,
        )
