"""
Training history utilities.

`History` is the record returned by `Model.fit()`: one entry per completed
epoch, keyed by metric name. It holds plain Python floats only.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Union


Number = Union[int, float]


@dataclass
class History:
    """
    Container for per-epoch training metrics.

    Attributes
    ----------
    history : Dict[str, List[float]]
        Mapping from metric name to a list of per-epoch values, ordered by
        epoch index.
    epoch : List[int]
        Zero-based epoch indices corresponding to entries in `history`.
    """

    history: Dict[str, List[float]] = field(default_factory=dict)
    epoch: List[int] = field(default_factory=list)

    def append_epoch(self, epoch_idx: int, logs: Mapping[str, Number]) -> None:
        """
        Append already-aggregated metrics for a completed epoch.
        """
        self.epoch.append(int(epoch_idx))
        for k, v in logs.items():
            self.history.setdefault(k, []).append(float(v))

    @property
    def losses(self) -> List[float]:
        """Per-epoch mean training loss."""
        return list(self.history.get("loss", []))

    def last(self) -> Dict[str, float]:
        """
        Return metrics from the most recent epoch.

        Metrics with no recorded values are omitted.
        """
        return {k: float(vs[-1]) for k, vs in self.history.items() if vs}

    def __len__(self) -> int:
        return len(self.epoch)
