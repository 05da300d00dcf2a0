"""
Grouped analysis runner.

Partitions a DataSet by key columns, validates each group and applies one
model backend per valid group. Every group ends up with a GroupResult; a
failing group never aborts the run.
"""
import pandas as pd
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple, Union
import logging

from contamtrends.data.dataset import DataSet, Group
from contamtrends.data.validator import GroupValidator
from contamtrends.models.base import GroupResult, ModelBackend, SkipReason
from contamtrends.utils.config import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from contamtrends.utils.exceptions import (
    InsufficientObservationsError,
    MissingValuesError,
    ModelFitFailure,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisRun:
    """Group key → GroupResult for one runner invocation. Read-only."""
    backend: str
    keys: Tuple[str, ...]
    time_column: str
    value_column: str
    results: Mapping[Tuple[Any, ...], GroupResult] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "results", MappingProxyType(dict(self.results)))

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        return iter(self.results)

    def __getitem__(self, key: Tuple[Any, ...]) -> GroupResult:
        return self.results[key]

    def items(self):
        return self.results.items()

    def valid(self) -> Dict[Tuple[Any, ...], Any]:
        """Payloads of groups that were modelled."""
        return {k: r.payload for k, r in self.results.items() if r.is_valid}

    def skipped(self) -> Dict[Tuple[Any, ...], GroupResult]:
        return {k: r for k, r in self.results.items() if not r.is_valid}

    def counts(self) -> Dict[str, int]:
        """Number of valid groups and of skipped groups per reason."""
        counts = {"valid": 0}
        counts.update({reason.value: 0 for reason in SkipReason})
        for result in self.results.values():
            counts["valid" if result.is_valid else result.reason.value] += 1
        return counts


class GroupedAnalysisRunner:
    """
    Runs one ModelBackend over every group of a DataSet.

    Example:
        runner = GroupedAnalysisRunner(ChangePointDetector(config), config)
        run = runner.run(releases, ["county", "chemical"], "year", "total_releases")
    """

    def __init__(self, backend: ModelBackend, config: AnalysisConfig = None):
        self.backend = backend
        self.config = config or DEFAULT_ANALYSIS_CONFIG

    def run(
        self,
        dataset: DataSet,
        keys: Union[str, Sequence[str]],
        time_column: str,
        value_column: str
    ) -> AnalysisRun:
        """
        Analyse each group of `dataset`.

        Args:
            dataset: Input table.
            keys: Grouping column(s).
            time_column: Column that orders observations within a group.
            value_column: Numeric column handed to the backend.

        Returns:
            AnalysisRun with one GroupResult per group.
        """
        keys = (keys,) if isinstance(keys, str) else tuple(keys)
        dataset.require(value_column, *self.backend.required_columns)

        validator = GroupValidator(
            value_column,
            min_count=self.config.min_count,
            search_space_required=self.backend.requires_search_space,
        )

        results: Dict[Tuple[Any, ...], GroupResult] = {}
        for group in dataset.group_by(keys, time_column=time_column):
            results[group.key] = self._analyze_group(group, validator, value_column)

        run = AnalysisRun(
            backend=self.backend.name,
            keys=keys,
            time_column=time_column,
            value_column=value_column,
            results=results,
        )
        logger.info(f"{self.backend.name} run over {len(run)} groups: {run.counts()}")
        return run

    def _analyze_group(self, group: Group, validator: GroupValidator, value_column: str) -> GroupResult:
        try:
            validator.ensure_valid(group)
        except InsufficientObservationsError as e:
            return self._skip(group, SkipReason.INSUFFICIENT_OBSERVATIONS, e.message)
        except MissingValuesError as e:
            return self._skip(group, SkipReason.MISSING_VALUES, e.message)

        try:
            payload = self.backend.analyze(group, value_column)
        except ModelFitFailure as e:
            logger.debug(
                f"Model fit failed for group {group.key}: {e.reason}",
                extra={"group": list(group.key), "backend": e.backend, "reason": e.reason}
            )
            return GroupResult.skipped(SkipReason.MODEL_FIT_FAILURE, e.reason)

        return GroupResult.valid(payload)

    @staticmethod
    def _skip(group: Group, reason: SkipReason, detail: str) -> GroupResult:
        logger.debug(
            f"Skipping group {group.key}: {reason.value}",
            extra={"group": list(group.key), "reason": reason.value}
        )
        return GroupResult.skipped(reason, detail)


def status_frame(run: AnalysisRun) -> pd.DataFrame:
    """One row per group with its status, skip reason and detail."""
    rows: List[Dict[str, Any]] = []
    for key, result in run.items():
        row = dict(zip(run.keys, key))
        row["status"] = result.status
        row["reason"] = result.reason.value if result.reason else None
        row["detail"] = result.detail
        rows.append(row)
    return pd.DataFrame(rows, columns=list(run.keys) + ["status", "reason", "detail"])
