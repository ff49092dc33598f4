"""
Priority Ranker Service

Turns the assessment collection of one aggregation cycle into a bounded
dispatch queue.

Composite priority:
    risk_score * 2
    + minutes_without_communication / 60
    + 3 if predicted to worsen

minutes_without_communication is the largest value of any stale
communication reason on the assessment (0 if none). A vehicle is predicted
to worsen when it is already CRITICAL or has been silent past the critical
staleness threshold.

Sorting is stable and descending: equal scores keep their input order.
"""

from typing import List, Optional, Sequence, Tuple

import structlog

from fleet_risk.models import (
    PriorityQueueItem,
    RiskAssessment,
    RiskLevel,
    RiskReasonType,
)
from fleet_risk.models.risk_models import STALE_REASON_TYPES

logger = structlog.get_logger()


class PriorityRanker:
    """
    Example Usage:
        ranker = PriorityRanker()
        queue = ranker.rank(assessments)
        # queue[0].rank == 1, len(queue) <= 5
    """

    DEFAULT_TOP_N = 5
    MAX_TOP_N = 5
    RISK_SCORE_WEIGHT = 2
    MINUTES_DIVISOR = 60
    WORSENING_BONUS = 3

    def __init__(self, top_n: Optional[int] = None):
        self.top_n = top_n if top_n is not None else self.DEFAULT_TOP_N

    def minutes_without_communication(self, assessment: RiskAssessment) -> int:
        values = [r.value for r in assessment.reasons_of(*STALE_REASON_TYPES)]
        return max(values) if values else 0

    def predicted_to_worsen(self, assessment: RiskAssessment) -> bool:
        return assessment.risk_level == RiskLevel.CRITICAL or bool(
            assessment.reasons_of(RiskReasonType.NO_UPDATE_CRITICAL)
        )

    def priority_score(
        self, risk_score: int, minutes: int, predicted_to_worsen: bool
    ) -> float:
        """
        Examples:
            >>> PriorityRanker().priority_score(6, 400, True)
            21.666666666666668
            >>> PriorityRanker().priority_score(2, 0, False)
            4.0
        """
        return (
            risk_score * self.RISK_SCORE_WEIGHT
            + minutes / self.MINUTES_DIVISOR
            + (self.WORSENING_BONUS if predicted_to_worsen else 0)
        )

    def rank(
        self, assessments: Sequence[RiskAssessment], top_n: Optional[int] = None
    ) -> List[PriorityQueueItem]:
        """
        Rank assessments for dispatch.

        Args:
            assessments: All assessments of one completed cycle, in roster order
            top_n: Queue length (defaults to the ranker's top_n)

        Returns:
            At most min(top_n, MAX_TOP_N) items, highest priority first,
            ranks starting at 1
        """
        limit = min(top_n if top_n is not None else self.top_n, self.MAX_TOP_N)
        if limit <= 0:
            return []

        scored: List[Tuple[float, int, bool, RiskAssessment]] = []
        for assessment in assessments:
            minutes = self.minutes_without_communication(assessment)
            worsening = self.predicted_to_worsen(assessment)
            score = self.priority_score(assessment.risk_score, minutes, worsening)
            scored.append((score, minutes, worsening, assessment))

        # sorted() is stable, reverse=True keeps input order among equal scores
        ordered = sorted(scored, key=lambda entry: entry[0], reverse=True)[:limit]

        queue = [
            PriorityQueueItem(
                assessment=assessment,
                rank=position,
                priority_score=score,
                minutes_without_communication=minutes,
                predicted_to_worsen=worsening,
            )
            for position, (score, minutes, worsening, assessment) in enumerate(
                ordered, start=1
            )
        ]

        logger.debug(
            "Priority queue ranked",
            candidates=len(scored),
            queued=len(queue),
            top_vehicle=queue[0].assessment.vehicle_id if queue else None,
        )
        return queue
