"""
Common types for the pluggable model backends.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple

if TYPE_CHECKING:
    from contamtrends.data.dataset import Group


class SkipReason(Enum):
    """Why a group produced no model output."""
    INSUFFICIENT_OBSERVATIONS = "insufficient_observations"
    MISSING_VALUES = "missing_values"
    MODEL_FIT_FAILURE = "model_fit_failure"


@dataclass(frozen=True)
class GroupResult:
    """Tagged outcome for one group: a backend payload or a skip reason."""
    payload: Any = None
    reason: Optional[SkipReason] = None
    detail: Optional[str] = None

    @classmethod
    def valid(cls, payload: Any) -> "GroupResult":
        return cls(payload=payload)

    @classmethod
    def skipped(cls, reason: SkipReason, detail: str = None) -> "GroupResult":
        return cls(reason=reason, detail=detail)

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    @property
    def status(self) -> str:
        return "valid" if self.is_valid else "skipped"


class ModelBackend(ABC):
    """
    A model applied to one time-ordered group at a time.

    Implementations raise ModelFitFailure for empty, constant or too short
    input; the runner turns that into a skipped group.
    """

    name: str = "backend"

    # Change-point search needs at least one candidate split per group
    requires_search_space: bool = False

    @property
    def required_columns(self) -> Tuple[str, ...]:
        """Columns read besides the value column."""
        return ()

    @abstractmethod
    def analyze(self, group: "Group", value_column: str) -> Any:
        """Fit the model to `group` and return its payload."""
