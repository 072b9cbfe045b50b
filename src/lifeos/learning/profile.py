"""Feedback-driven learning profile.

Users rate the insights an analysis surfaced. The profile keeps an append-only
log of those ratings and derives:

- a summary (count, mean rating, learning progress),
- per insight type preferences (mean rating per type),
- per insight type weights the next analysis hands to its caller, so liked
  kinds of finding surface more readily and disliked kinds need more
  confidence.

Feedback never changes results already returned; it only informs the next
invocation. Profiles are immutable values: ``with_feedback`` returns a new
profile, and ``ProfileRegistry`` serialises submissions per user.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from lifeos.models.insights import InsightType
from lifeos.errors import InvalidFeedbackError, LearningError

logger = logging.getLogger(__name__)

STRENGTHEN_ABOVE = 0.7
WEAKEN_BELOW = 0.3
WEIGHT_STEP = 0.1
MIN_WEIGHT = 0.5
MAX_WEIGHT = 1.5
PROGRESS_SATURATION = 100


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def infer_insight_type(insight_id: str) -> Optional[InsightType]:
    """Insight type encoded in an engine insight id (``trend:health`` -> TREND)."""
    prefix = insight_id.split(":", 1)[0]
    try:
        return InsightType(prefix)
    except ValueError:
        return None


@dataclass(frozen=True)
class FeedbackEntry:
    """User feedback on one insight.

    Attributes:
        insight_id: The insight being rated
        rating: User's rating in [0, 1]
        action: What the user did (e.g. 'accepted', 'dismissed')
        timestamp: When feedback was recorded, epoch millis
        insight_type: Type of insight, inferred from the id when omitted
    """

    insight_id: str
    rating: float
    action: str = ""
    timestamp: int = field(default_factory=_now_ms)
    insight_type: Optional[InsightType] = None

    def __post_init__(self):
        if not self.insight_id or not isinstance(self.insight_id, str):
            raise InvalidFeedbackError("insight_id is required for feedback")
        if isinstance(self.rating, bool) or not isinstance(self.rating, (int, float)):
            raise InvalidFeedbackError(
                f"rating must be a number, got {type(self.rating).__name__}",
                details={"insight_id": self.insight_id},
            )
        if math.isnan(self.rating) or not 0.0 <= self.rating <= 1.0:
            raise InvalidFeedbackError(
                f"rating must be between 0 and 1, got {self.rating}",
                details={"insight_id": self.insight_id},
            )
        if self.insight_type is None:
            object.__setattr__(self, "insight_type", infer_insight_type(self.insight_id))
        elif not isinstance(self.insight_type, InsightType):
            try:
                object.__setattr__(self, "insight_type", InsightType(self.insight_type))
            except ValueError:
                raise InvalidFeedbackError(
                    f"Unknown insight type: {self.insight_type!r}",
                    details={"insight_id": self.insight_id},
                ) from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insightId": self.insight_id,
            "rating": self.rating,
            "action": self.action,
            "timestamp": self.timestamp,
            "insightType": self.insight_type.value if self.insight_type else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeedbackEntry":
        if not isinstance(data, Mapping):
            raise LearningError(
                f"Feedback entry must be a mapping, got {type(data).__name__}"
            )
        kwargs: Dict[str, Any] = {
            "insight_id": data.get("insightId", data.get("insight_id", "")),
            "rating": data.get("rating"),
            "action": data.get("action", ""),
            "insight_type": data.get("insightType", data.get("insight_type")),
        }
        if data.get("timestamp") is not None:
            try:
                kwargs["timestamp"] = int(data["timestamp"])
            except (TypeError, ValueError) as exc:
                raise LearningError(
                    "Feedback timestamp must be epoch milliseconds",
                    details={"insight_id": str(kwargs["insight_id"])},
                ) from exc
        return cls(**kwargs)


FeedbackInput = Union[FeedbackEntry, Tuple[str, float, str], Mapping[str, Any]]


def to_feedback_entry(item: FeedbackInput, timestamp: Optional[int] = None) -> FeedbackEntry:
    """Coerce an ``(insight_id, rating, action)`` tuple or mapping to an entry."""
    if isinstance(item, FeedbackEntry):
        return item
    if isinstance(item, Mapping):
        entry = FeedbackEntry.from_dict(item)
        if timestamp is not None and item.get("timestamp") is None:
            entry = FeedbackEntry(
                insight_id=entry.insight_id,
                rating=entry.rating,
                action=entry.action,
                timestamp=timestamp,
                insight_type=entry.insight_type,
            )
        return entry
    if isinstance(item, (tuple, list)) and len(item) in (3, 4):
        insight_type = item[3] if len(item) == 4 else None
        return FeedbackEntry(
            insight_id=str(item[0]),
            rating=item[1],
            action=item[2],
            timestamp=timestamp if timestamp is not None else _now_ms(),
            insight_type=insight_type,
        )
    raise InvalidFeedbackError(f"Unsupported feedback item: {type(item).__name__}")


@dataclass(frozen=True)
class ProfileSummary:
    """Aggregate view of a learning profile.

    Attributes:
        total_feedback: Number of feedback entries
        average_rating: Running mean of all ratings, 0 when empty
        learning_progress: ``min(1, total_feedback / 100)``
        preferred_insight_types: Mean rating per insight type
    """

    total_feedback: int = 0
    average_rating: float = 0.0
    learning_progress: float = 0.0
    preferred_insight_types: Dict[str, float] = field(default_factory=dict)

    @property
    def most_valued(self) -> Optional[str]:
        if not self.preferred_insight_types:
            return None
        return max(self.preferred_insight_types.items(), key=lambda item: item[1])[0]

    @property
    def least_valued(self) -> Optional[str]:
        if not self.preferred_insight_types:
            return None
        return min(self.preferred_insight_types.items(), key=lambda item: item[1])[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFeedback": self.total_feedback,
            "averageRating": self.average_rating,
            "learningProgress": self.learning_progress,
            "preferredInsightTypes": {
                "mostValued": self.most_valued,
                "leastValued": self.least_valued,
                "preferences": dict(self.preferred_insight_types),
            },
        }


@dataclass(frozen=True)
class LearningProfile:
    """Append-only feedback history for one user or session.

    Example:
        >>> profile = LearningProfile(profile_id="user-1")
        >>> profile = profile.with_feedback([("trend:health", 0.9, "accepted")])
        >>> profile.summary.total_feedback
        1
    """

    profile_id: str = field(default_factory=lambda: str(uuid4()))
    feedback_log: Tuple[FeedbackEntry, ...] = ()

    def with_feedback(
        self, items: Iterable[FeedbackInput], timestamp: Optional[int] = None
    ) -> "LearningProfile":
        """Return a new profile with ``items`` appended to the log.

        Raises:
            InvalidFeedbackError: Any item is malformed; nothing is appended
        """
        entries = tuple(to_feedback_entry(item, timestamp) for item in items)
        for entry in entries:
            if entry.rating > STRENGTHEN_ABOVE:
                logger.debug(f"Strengthening {entry.insight_type} from {entry.insight_id}")
            elif entry.rating < WEAKEN_BELOW:
                logger.debug(f"Weakening {entry.insight_type} from {entry.insight_id}")
        return LearningProfile(
            profile_id=self.profile_id,
            feedback_log=self.feedback_log + entries,
        )

    @property
    def summary(self) -> ProfileSummary:
        count = len(self.feedback_log)
        average = sum(e.rating for e in self.feedback_log) / count if count else 0.0
        return ProfileSummary(
            total_feedback=count,
            average_rating=average,
            learning_progress=min(1.0, count / PROGRESS_SATURATION),
            preferred_insight_types={
                insight_type.value: score
                for insight_type, score in self.type_preferences().items()
            },
        )

    def type_preferences(self) -> Dict[InsightType, float]:
        """Mean rating per insight type with at least one rating."""
        ratings: Dict[InsightType, List[float]] = {}
        for entry in self.feedback_log:
            if entry.insight_type is None:
                continue
            ratings.setdefault(entry.insight_type, []).append(entry.rating)
        return {
            insight_type: sum(values) / len(values)
            for insight_type, values in ratings.items()
        }

    def insight_weights(self) -> Dict[InsightType, float]:
        """Weight in [0.5, 1.5] per insight type, 1.0 when never rated.

        Every rating above 0.7 strengthens its type by 0.1, every rating below
        0.3 weakens it by 0.1.
        """
        weights = {insight_type: 1.0 for insight_type in InsightType}
        for entry in self.feedback_log:
            if entry.insight_type is None:
                continue
            if entry.rating > STRENGTHEN_ABOVE:
                delta = WEIGHT_STEP
            elif entry.rating < WEAKEN_BELOW:
                delta = -WEIGHT_STEP
            else:
                continue
            current = weights[entry.insight_type]
            weights[entry.insight_type] = max(MIN_WEIGHT, min(MAX_WEIGHT, current + delta))
        return weights

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "profileId": self.profile_id,
            "feedback": [entry.to_dict() for entry in self.feedback_log],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LearningProfile":
        """Create from dictionary.

        Raises:
            LearningError: The record is not a profile object
        """
        if not isinstance(data, Mapping):
            raise LearningError(f"Profile must be a JSON object, got {type(data).__name__}")
        feedback = data.get("feedback", [])
        if not isinstance(feedback, (list, tuple)):
            raise LearningError(
                f"Profile feedback must be a list, got {type(feedback).__name__}"
            )
        entries = []
        for position, item in enumerate(feedback):
            if not isinstance(item, Mapping):
                raise LearningError(
                    f"Feedback entry must be a mapping, got {type(item).__name__}",
                    details={"position": position},
                )
            entries.append(FeedbackEntry.from_dict(item))
        return cls(
            profile_id=str(data.get("profileId", data.get("profile_id", str(uuid4())))),
            feedback_log=tuple(entries),
        )


class ProfileRegistry:
    """Process-scoped store of learning profiles keyed by user or session.

    Submissions for the same user are serialised by a per-user lock so the
    feedback log stays monotonic; different users never contend.
    """

    def __init__(self) -> None:
        self._profiles: Dict[str, LearningProfile] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(user_id, threading.Lock())

    def get(self, user_id: str) -> Optional[LearningProfile]:
        with self._lock_for(user_id):
            return self._profiles.get(user_id)

    def submit(
        self, user_id: str, items: Iterable[FeedbackInput]
    ) -> Tuple[LearningProfile, ProfileSummary]:
        """Append feedback for ``user_id``, creating the profile on first use."""
        with self._lock_for(user_id):
            current = self._profiles.get(user_id) or LearningProfile(profile_id=user_id)
            updated = current.with_feedback(items)
            self._profiles[user_id] = updated
        summary = updated.summary
        logger.info(
            f"Recorded feedback for {user_id}: total={summary.total_feedback} "
            f"average={summary.average_rating:.2f}"
        )
        return updated, summary

    def users(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._profiles)
