"""
Mean change-point detection.

Binary segmentation (ruptures `Binseg`) over a normal mean-change cost: at
each step the split that most reduces the squared error of any current
segment is accepted if the reduction exceeds a BIC-style penalty, until no
split pays for itself or the maximum number of change points is reached.
"""
import numpy as np
import ruptures as rpt
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple
import logging

from contamtrends.data.dataset import Group
from contamtrends.models.base import ModelBackend
from contamtrends.utils.config import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from contamtrends.utils.exceptions import ModelFitFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangePointResult:
    """Detected mean shifts of one group."""
    positions: Tuple[int, ...]   # index of the last observation before each shift
    times: Tuple[Any, ...]       # time values at those positions
    max_search: int
    segment_means: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def has_changepoints(self) -> bool:
        return len(self.positions) > 0


class ChangePointDetector(ModelBackend):
    """
    Detects shifts in the mean of an ordered numeric sequence.

    The series is standardised by its sample standard deviation before the
    squared-error cost is evaluated, so the penalty is scale free.
    """

    name = "changepoint"
    requires_search_space = True

    def __init__(self, config: AnalysisConfig = None):
        """
        Initialize detector.

        Args:
            config: Analysis configuration (max_changepoints, changepoint_penalty).
        """
        self.config = config or DEFAULT_ANALYSIS_CONFIG

    def max_search(self, length: int) -> int:
        """Number of change points searched for: min(configured max, length - 1)."""
        return min(self.config.max_changepoints, length - 1)

    def penalty(self, length: int) -> float:
        if self.config.changepoint_penalty == "BIC":
            return 2.0 * np.log(length)
        return 3.0 * np.log(length)

    def detect(self, values: Sequence[float]) -> List[int]:
        """
        Find change-point positions in `values`.

        Returns:
            Sorted 0-based positions; each marks the last observation of the
            segment preceding a shift.
        """
        x = np.asarray(values, dtype=float)
        n = len(x)
        if n == 0:
            raise ModelFitFailure(self.name, "empty sequence")

        q = self.max_search(n)
        if q <= 0:
            return []

        if np.isnan(x).any():
            raise ModelFitFailure(self.name, "sequence contains missing values")

        sd = x.std(ddof=1)
        if not np.isfinite(sd) or sd == 0:
            raise ModelFitFailure(self.name, "constant sequence")

        z = (x - x.mean()) / sd
        pen = self.penalty(n)

        algo = rpt.Binseg(model="l2", min_size=1, jump=1).fit(z.reshape(-1, 1))
        bkps = algo.predict(pen=pen)
        # greedy splits come in the same order, so the first q are kept
        if len(bkps) - 1 > q:
            bkps = algo.predict(n_bkps=q)

        changepoints = [bp - 1 for bp in bkps if bp < n]
        logger.debug(f"Detected {len(changepoints)} change points (Q={q}, penalty={pen:.2f})")
        return sorted(changepoints)

    def analyze(self, group: Group, value_column: str) -> ChangePointResult:
        values = group.values(value_column)
        positions = self.detect(values)
        times = group.times()

        bounds = [0] + [p + 1 for p in positions] + [len(values)]
        means = tuple(float(values[a:b].mean()) for a, b in zip(bounds[:-1], bounds[1:]))

        return ChangePointResult(
            positions=tuple(positions),
            times=tuple(times[p] for p in positions),
            max_search=self.max_search(len(values)),
            segment_means=means,
        )

