from typing import Dict, Iterable, List, Optional
from linkguard.core.config import Settings
from linkguard.models.schemas import AnalysisDetails, AnalysisResult, Finding, ThreatLevel

DEFAULT_WEIGHTS: Dict[str, int] = {"high": 40, "medium": 20, "low": 5}
SEVERITY_RANK: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}

NO_ISSUES_MESSAGE = "No obvious issues detected"


class ScoringPolicy:
    def __init__(self, weights: Optional[Dict[str, int]] = None,
                 danger_threshold: int = 40, warning_threshold: int = 20):
        self.weights = dict(DEFAULT_WEIGHTS)
        if weights:
            self.weights.update(weights)
        self.danger_threshold = danger_threshold
        self.warning_threshold = warning_threshold

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringPolicy":
        return cls(settings.severity_weights, settings.danger_threshold, settings.warning_threshold)

    def weight(self, severity: str) -> int:
        return self.weights[severity]

    def score(self, findings: Iterable[Finding]) -> int:
        return sum(self.weight(f.severity) for f in findings)

    def classify(self, score: int) -> ThreatLevel:
        if score >= self.danger_threshold:
            return "danger"
        if score >= self.warning_threshold:
            return "warning"
        return "safe"

    def result(self, url: str, findings: List[Finding], details: AnalysisDetails,
               checked_at: int) -> AnalysisResult:
        """Score, level and message all come from ``findings``."""
        score = self.score(findings)
        return AnalysisResult(
            url=url,
            threat_level=self.classify(score),
            score=score,
            message=compose_message(findings),
            findings=findings,
            details=details,
            checked_at=checked_at,
        )


def rank_findings(findings: Iterable[Finding]) -> List[Finding]:
    # sorted() is stable, so ties keep detector order
    return sorted(findings, key=lambda f: SEVERITY_RANK[f.severity])


def compose_message(findings: List[Finding]) -> str:
    if not findings:
        return NO_ISSUES_MESSAGE
    ranked = rank_findings(findings)
    extra = len(ranked) - 1
    if extra == 0:
        return ranked[0].message
    suffix = "issues" if extra > 1 else "issue"
    return f"{ranked[0].message} (+{extra} more {suffix})"
