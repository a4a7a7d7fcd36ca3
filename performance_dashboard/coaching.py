"""
Coaching advisor: canned recommendation text keyed by metric and gap.

Tip selection takes an optional numpy Generator. Without one the first tip
in each pool is used, so output is deterministic unless randomness is
injected.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .config import METRIC_REGISTRY
from .kpis import STATUS_DANGER, STATUS_SUCCESS, STATUS_WARNING, is_underperforming

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.85

# Gap bands as a share of the goal
HIGH_PRIORITY_GAP = 0.2
MEDIUM_PRIORITY_GAP = 0.1

COACHING_TIPS: dict[str, list[str]] = {
    "adh": [
        "Focus on staying logged in during your scheduled hours",
        "Review your break patterns - are you taking breaks at optimal times?",
        "Consider using productivity techniques like the Pomodoro method",
    ],
    "weighted_sph": [
        "Analyze your call distribution across different contact types",
        "Practice handling common inquiries more efficiently",
        "Review successful colleagues' techniques for faster resolution",
    ],
    "email_sph": [
        "Use email templates for common responses",
        "Batch similar emails together for efficiency",
        "Set up keyboard shortcuts for frequently used phrases",
    ],
    "phone_sph": [
        "Practice active listening to reduce call duration",
        "Prepare standard responses for common questions",
        "Use hold time effectively to research customer issues",
    ],
    "chat_sph": [
        "Master keyboard shortcuts and quick responses",
        "Handle multiple chats by prioritizing urgent issues",
        "Use saved responses for common questions",
    ],
    "tnps": [
        "Focus on empathy and understanding customer pain points",
        "Follow up proactively on customer issues",
        "Ask for feedback and act on customer suggestions",
    ],
    "qa_score": [
        "Review your recent call recordings for improvement areas",
        "Practice compliance requirements regularly",
        "Ask your supervisor for specific feedback on QA criteria",
    ],
    "call_refusals": [
        "Review refusal reasons and address common patterns",
        "Improve your rapport-building skills at call start",
        "Practice handling objections with empathy",
    ],
}
FALLBACK_TIP = "Continue monitoring this metric and maintain consistency"

ACTION_ITEMS: dict[str, list[str]] = {
    "adh": ["Track login/logout times", "Set calendar reminders", "Review schedule adherence"],
    "weighted_sph": ["Analyze call data", "Practice common scenarios", "Shadow top performers"],
    "email_sph": ["Create templates", "Use shortcuts", "Batch processing"],
    "phone_sph": ["Review call recordings", "Practice scripts", "Improve note-taking"],
    "chat_sph": ["Use quick responses", "Multi-chat management", "Keyboard shortcuts"],
    "tnps": ["Customer follow-up", "Empathy training", "Feedback collection"],
    "qa_score": ["Review QA rubric", "Practice compliance", "Supervisor coaching"],
    "call_refusals": ["Rapport building", "Objection handling", "Call opening scripts"],
}
FALLBACK_ACTIONS = ["Monitor and maintain"]

SURVEY_ACTIONS = {
    STATUS_SUCCESS: [
        "Ask for referrals or testimonials",
        "Document what went well for training",
        "Continue the same approach",
    ],
    STATUS_WARNING: [
        "Follow up to ensure issue is resolved",
        "Ask for specific improvement feedback",
        "Review interaction for learning opportunities",
    ],
    STATUS_DANGER: [
        "Immediate supervisor review required",
        "Customer recovery process needed",
        "Additional training may be beneficial",
    ],
}


@dataclass
class Recommendation:
    metric: str
    name: str
    priority: str
    recommendation: str
    actions: list[str] = field(default_factory=list)
    confidence: float = DEFAULT_CONFIDENCE
    current: float | None = None
    goal: float | None = None


def classify_priority(current: float, goal: float) -> str:
    """'high' beyond 20% of goal away, 'medium' beyond 10%, else 'low'."""
    gap = abs(goal - current)
    if gap > goal * HIGH_PRIORITY_GAP:
        return "high"
    if gap > goal * MEDIUM_PRIORITY_GAP:
        return "medium"
    return "low"


def classify_survey_score(score: float) -> str:
    """Colour tier for a 0-10 survey score."""
    if score >= 8:
        return STATUS_SUCCESS
    if score >= 6:
        return STATUS_WARNING
    return STATUS_DANGER


def get_survey_actions(score: float) -> list[str]:
    """Suggested follow-up for a survey response."""
    return list(SURVEY_ACTIONS[classify_survey_score(score)])


class CoachingAdvisor:
    """Looks up coaching text for underperforming metrics.

    Parameters
    ----------
    rng : Source of randomness for tip selection. None picks the first tip.
    tips, actions : Override the canned pools (metric -> list of strings).
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        tips: dict[str, list[str]] | None = None,
        actions: dict[str, list[str]] | None = None,
    ):
        self.rng = rng
        self.tips = tips or COACHING_TIPS
        self.actions = actions or ACTION_ITEMS

    def _pick_tip(self, metric: str) -> str:
        pool = self.tips.get(metric) or [FALLBACK_TIP]
        if self.rng is None:
            return pool[0]
        return pool[int(self.rng.integers(len(pool)))]

    def get_action_items(self, metric: str) -> list[str]:
        return list(self.actions.get(metric, FALLBACK_ACTIONS))

    def generate_coaching(
        self,
        metric: str,
        current: float,
        goal: float,
        history: list[float] | None = None,
    ) -> Recommendation:
        """Build a recommendation for one metric.

        history is accepted for parity with model-backed advisors; the canned
        lookup does not use it.
        """
        name = METRIC_REGISTRY.get(metric, {}).get("name", metric)
        return Recommendation(
            metric=metric,
            name=name,
            priority=classify_priority(current, goal),
            recommendation=self._pick_tip(metric),
            actions=self.get_action_items(metric),
            current=current,
            goal=goal,
        )

    def recommend(
        self,
        evaluation: pd.DataFrame,
        history: pd.DataFrame | None = None,
    ) -> list[Recommendation]:
        """Recommendations for every underperforming metric, in evaluation order.

        Parameters
        ----------
        evaluation : Output of kpis.evaluate_record().
        history : Agent's fact_performance rows, passed through per metric.
        """
        recommendations = []
        for _, row in evaluation.iterrows():
            if not is_underperforming(row["current"], row["goal"], row["lower_is_better"]):
                continue
            metric = row["metric"]
            series = None
            if history is not None and metric in history.columns:
                series = history[metric].tolist()
            recommendations.append(
                self.generate_coaching(metric, row["current"], row["goal"], series)
            )

        logger.info("Generated %d coaching recommendations", len(recommendations))
        return recommendations
