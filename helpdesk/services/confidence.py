"""
Confidence calibration engine

Turns the raw confidence the classification service reports into a
calibrated score and a recommendation, and folds agent feedback back into
the calibration curve.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from helpdesk.config import Settings, get_settings
from helpdesk.models.schemas import Classification, ConfidenceScore, Priority, Recommendation
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

PRIORITY_ORDER = [p.value for p in Priority]

# (lower, upper, observed accuracy, sample size)
DEFAULT_BINS: List[Tuple[float, float, float, int]] = [
    (0.0, 0.2, 0.15, 100),
    (0.2, 0.4, 0.35, 150),
    (0.4, 0.6, 0.55, 200),
    (0.6, 0.8, 0.72, 300),
    (0.8, 1.0, 0.88, 250),
]


@dataclass
class CalibrationBin:
    lower: float
    upper: float
    accuracy: float
    samples: int

    @property
    def midpoint(self) -> float:
        return (self.lower + self.upper) / 2

    def contains(self, value: float) -> bool:
        # Last bin is closed on the right so 1.0 lands somewhere
        return self.lower <= value < self.upper or (self.upper >= 1.0 and value == 1.0)


class ConfidenceEngine:
    """
    Calibrates confidence scores and recommends a disposition.

    One curve is kept per component ("overall" by default). Feedback updates
    the running accuracy of the bin a prediction fell into.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._curves: Dict[str, List[CalibrationBin]] = {}

    def _curve(self, component: str) -> List[CalibrationBin]:
        if component not in self._curves:
            self._curves[component] = [CalibrationBin(*b) for b in DEFAULT_BINS]
        return self._curves[component]

    def calibrate(self, raw: float, component: str = "overall") -> float:
        """
        Map a raw score onto observed accuracy.

        Linear interpolation between bin midpoints; scores outside the first
        and last midpoint take that bin's accuracy.
        """
        raw = min(max(raw, 0.0), 1.0)
        bins = self._curve(component)

        if raw <= bins[0].midpoint:
            return round(bins[0].accuracy, 4)
        if raw >= bins[-1].midpoint:
            return round(bins[-1].accuracy, 4)

        for left, right in zip(bins, bins[1:]):
            if left.midpoint <= raw <= right.midpoint:
                ratio = (raw - left.midpoint) / (right.midpoint - left.midpoint)
                return round(left.accuracy + ratio * (right.accuracy - left.accuracy), 4)

        return raw

    def recommend(self, calibrated: float, classification: Optional[Classification] = None) -> str:
        """Pick a recommendation for a calibrated score"""
        s = self.settings

        if s.auto_resolution_enabled and self._eligible_for_auto_resolution(classification):
            if calibrated >= s.auto_resolve_threshold:
                return Recommendation.AUTO_RESOLVE.value

        if calibrated >= s.agent_review_threshold:
            return Recommendation.AGENT_REVIEW.value
        if calibrated >= s.human_review_threshold:
            return Recommendation.HUMAN_REVIEW.value
        return Recommendation.ESCALATE.value

    def _eligible_for_auto_resolution(self, classification: Optional[Classification]) -> bool:
        if classification is None or classification.category is None:
            return False

        category = (classification.category.category or "").lower()
        if category not in self.settings.auto_resolution_category_list:
            return False

        priority = classification.priority.priority if classification.priority else None
        priority = priority.lower() if priority else None
        if priority not in PRIORITY_ORDER:
            return False

        max_priority = self.settings.auto_resolution_max_priority
        if max_priority not in PRIORITY_ORDER:
            return False
        return PRIORITY_ORDER.index(priority) <= PRIORITY_ORDER.index(max_priority)

    def assess(
        self,
        confidence: Optional[ConfidenceScore],
        classification: Optional[Classification] = None
    ) -> ConfidenceScore:
        """
        Complete a capability confidence assessment.

        Values the capability already supplied are kept as-is.
        """
        confidence = confidence or ConfidenceScore()
        update = {}
        if confidence.calibrated is None:
            update["calibrated"] = self.calibrate(confidence.overall)
        if not confidence.recommendation:
            calibrated = update.get("calibrated", confidence.calibrated)
            update["recommendation"] = self.recommend(calibrated, classification)

        if update:
            logger.debug(f"Filled confidence fields: {update}")
            confidence = confidence.model_copy(update=update)
        return confidence

    def record_feedback(
        self,
        ticket_id: str,
        predicted: float,
        correct: bool,
        component: str = "overall"
    ) -> Dict[str, float]:
        """
        Fold one outcome into the bin the prediction fell into.

        Returns:
            The updated bin
        """
        if not 0.0 <= predicted <= 1.0:
            raise ValueError(f"Predicted confidence must be within [0, 1], got {predicted}")

        bin_ = next(b for b in self._curve(component) if b.contains(predicted))
        hits = bin_.accuracy * bin_.samples + (1.0 if correct else 0.0)
        bin_.samples += 1
        bin_.accuracy = hits / bin_.samples

        logger.info(
            f"Recorded confidence feedback for ticket {ticket_id}: "
            f"predicted={predicted:.2f} correct={correct} "
            f"bin=[{bin_.lower}, {bin_.upper}) accuracy={bin_.accuracy:.4f}"
        )
        return self._bin_dict(bin_)

    @staticmethod
    def _bin_dict(bin_: CalibrationBin) -> Dict[str, float]:
        return {
            "range": [bin_.lower, bin_.upper],
            "accuracy": round(bin_.accuracy, 4),
            "samples": bin_.samples,
        }

    def stats(self) -> Dict[str, object]:
        """Per-bin accuracy and sample sizes for every component"""
        self._curve("overall")
        return {
            "thresholds": {
                "auto_resolve": self.settings.auto_resolve_threshold,
                "agent_review": self.settings.agent_review_threshold,
                "human_review": self.settings.human_review_threshold,
            },
            "components": {
                name: [self._bin_dict(b) for b in bins]
                for name, bins in self._curves.items()
            },
        }
