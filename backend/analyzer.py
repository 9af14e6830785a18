"""YouTube Copyright Checker - Copyright Analyzer
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Core analysis engine: per-dimension verdicts, overall risk score,
issues and recommendations for a video submission.
"""

import asyncio
import logging
import os
from typing import Optional

from models import (
    DIMENSIONS,
    AnalysisReport,
    DimensionVerdict,
    Issue,
    Recommendation,
    RiskLevel,
    SubmissionInput,
)
from rules_db import RuleDatabase

logger = logging.getLogger(__name__)

# --- Analysis constants ---
# Simulated processing pause around analyze(); does not affect the result
DEFAULT_ANALYSIS_DELAY = 0.0

RISK_SUMMARIES = {
    RiskLevel.HIGH: "Your content has significant copyright risks. Review the recommendations below before uploading.",
    RiskLevel.MEDIUM: "Your content has some potential copyright issues. Consider the recommendations to reduce risk.",
    RiskLevel.LOW: "Your content appears to have minimal copyright risks. Review recommendations for best practices.",
}


def _to_risk(value, fallback: RiskLevel = RiskLevel.LOW) -> RiskLevel:
    """Coerce a rule-table risk string, falling back instead of raising"""
    try:
        return RiskLevel(value)
    except ValueError:
        logger.warning(f"Unknown risk level in rule table: {value!r}, using {fallback}")
        return fallback


def _field_text(submission: SubmissionInput, field: Optional[str], lowercase: bool = False) -> str:
    if not field:
        return ""
    text = str(getattr(submission, field, "") or "")
    return text.lower() if lowercase else text


def _gate_open(submission: SubmissionInput, gate: Optional[str]) -> bool:
    if not gate:
        return True
    return bool(getattr(submission, gate, False))


def _contains_any(text: str, keywords: list[str]) -> bool:
    return any(keyword and keyword in text for keyword in keywords)


def evaluate_dimension(rule_set: dict, submission: SubmissionInput) -> DimensionVerdict:
    """
    Apply one dimension's rule set to a submission.

    Gate closed -> `inactive` verdict. Otherwise the first rule whose
    keywords appear in the field wins, else the `default` verdict.
    """
    if not _gate_open(submission, rule_set.get("gate")):
        verdict = rule_set.get("inactive") or rule_set.get("default") or {}
    else:
        text = _field_text(submission, rule_set.get("field"), rule_set.get("lowercase", False))
        verdict = rule_set.get("default") or {}
        for rule in rule_set.get("rules", []):
            if _contains_any(text, rule.get("keywords", [])):
                verdict = rule
                break

    return DimensionVerdict(
        risk=_to_risk(verdict.get("risk", "low")),
        details=verdict.get("details") or "No details available",
    )


def score_rule_matches(rule: dict, submission: SubmissionInput) -> bool:
    """True when a weighted score signal fires for the raw submission"""
    if not _gate_open(submission, rule.get("gate")):
        return False
    text = _field_text(submission, rule.get("field"), rule.get("lowercase", False))
    return _contains_any(text, rule.get("keywords", []))


class CopyrightAnalyzer:
    """
    Main analysis engine that:
    1. Inspects each facet of the submission (title, description, music,
       footage, thumbnail, text) against the keyword rules
    2. Computes a weighted score from the raw submission fields
    3. Derives issues from selected dimension verdicts
    4. Generates prioritized recommendations

    The score and the issues are computed independently on purpose: a
    `high` footage verdict never raises an issue, and a `medium` music
    verdict adds nothing to the score.
    """

    def __init__(self, rules_db: Optional[RuleDatabase] = None, delay_seconds: Optional[float] = None):
        """Initialize with a rule database and optional simulated delay."""
        self.rules_db = rules_db or RuleDatabase()
        if delay_seconds is None:
            delay_seconds = float(os.environ.get("ANALYSIS_DELAY_SECONDS") or DEFAULT_ANALYSIS_DELAY)
        self.delay_seconds = max(0.0, delay_seconds)

    # --- Dimension analyzers ---

    def analyze_dimension(self, name: str, submission: SubmissionInput) -> DimensionVerdict:
        return evaluate_dimension(self.rules_db.get_dimension(name), submission)

    def analyze_title(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("title", submission)

    def analyze_description(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("description", submission)

    def analyze_music(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("music", submission)

    def analyze_footage(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("footage", submission)

    def analyze_thumbnail(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("thumbnail", submission)

    def analyze_text(self, submission: SubmissionInput) -> DimensionVerdict:
        return self.analyze_dimension("text", submission)

    def analyze_dimensions(self, submission: SubmissionInput) -> dict[str, DimensionVerdict]:
        return {name: self.analyze_dimension(name, submission) for name in DIMENSIONS}

    # --- Aggregation ---

    def calculate_risk_score(self, submission: SubmissionInput) -> int:
        """Weighted sum over the raw submission fields"""
        score = 0
        for rule in self.rules_db.get_score_rules():
            if score_rule_matches(rule, submission):
                score += int(rule.get("weight", 0))
        return score

    def risk_from_score(self, score: int) -> RiskLevel:
        thresholds = self.rules_db.get_thresholds()
        if score >= thresholds.get("high", 50):
            return RiskLevel.HIGH
        if score >= thresholds.get("medium", 25):
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def calculate_overall_risk(self, submission: SubmissionInput) -> RiskLevel:
        return self.risk_from_score(self.calculate_risk_score(submission))

    def build_issues(self, dimensions: dict[str, DimensionVerdict]) -> list[Issue]:
        """Issues for verdicts matching a trigger, in trigger order"""
        issues = []
        for trigger in self.rules_db.get_issue_triggers():
            verdict = dimensions.get(trigger.get("dimension"))
            if verdict is None or verdict.risk != _to_risk(trigger.get("risk"), RiskLevel.HIGH):
                continue
            issues.append(Issue(
                type=trigger.get("type") or trigger.get("dimension"),
                severity=_to_risk(trigger.get("severity"), verdict.risk),
                message=trigger.get("message", ""),
                details=trigger.get("details", ""),
            ))
        return issues

    # --- Recommendations ---

    def _recommendation_applies(self, when: Optional[dict], overall_risk: RiskLevel,
                                submission: SubmissionInput, dimensions: dict[str, DimensionVerdict]) -> bool:
        if not when:
            return True
        if "overall_risk" in when:
            return overall_risk == _to_risk(when["overall_risk"], RiskLevel.HIGH)
        if "score_rule" in when:
            rule = self.rules_db.get_score_rule(when["score_rule"])
            return rule is not None and score_rule_matches(rule, submission)
        if "dimension" in when:
            verdict = dimensions.get(when["dimension"])
            return verdict is not None and verdict.risk == _to_risk(when.get("risk"), RiskLevel.HIGH)
        logger.warning(f"Unknown recommendation condition: {when}")
        return False

    def generate_recommendations(self, overall_risk: RiskLevel, submission: SubmissionInput,
                                 dimensions: dict[str, DimensionVerdict]) -> list[Recommendation]:
        """Append-only, in rule order; no sorting or deduplication"""
        recommendations = []
        for rule in self.rules_db.get_recommendations():
            if self._recommendation_applies(rule.get("when"), overall_risk, submission, dimensions):
                recommendations.append(Recommendation(
                    priority=_to_risk(rule.get("priority")),
                    title=rule.get("title", ""),
                    description=rule.get("description", ""),
                ))
        return recommendations

    # --- Entry points ---

    def evaluate(self, submission: SubmissionInput) -> AnalysisReport:
        """
        Run the full rule set synchronously.

        Args:
            submission: form snapshot; an empty title is tolerated

        Returns:
            AnalysisReport with overall risk, score, issues,
            recommendations and per-dimension verdicts
        """
        score = self.calculate_risk_score(submission)
        overall_risk = self.risk_from_score(score)
        dimensions = self.analyze_dimensions(submission)
        issues = self.build_issues(dimensions)
        recommendations = self.generate_recommendations(overall_risk, submission, dimensions)

        logger.info(
            f"Analyzed '{(submission.title or '')[:80]}': risk={overall_risk} score={score} "
            f"issues={len(issues)} recommendations={len(recommendations)}"
        )

        return AnalysisReport(
            overall_risk=overall_risk,
            score=score,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
            dimensions=dimensions,
        )

    async def analyze(self, submission: SubmissionInput) -> AnalysisReport:
        """Async entry point; waits out the configured delay, then evaluates."""
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return self.evaluate(submission)

    @staticmethod
    def summarize(overall_risk: RiskLevel) -> str:
        """One-sentence summary for the overall verdict"""
        return RISK_SUMMARIES.get(overall_risk, RISK_SUMMARIES[RiskLevel.LOW])
