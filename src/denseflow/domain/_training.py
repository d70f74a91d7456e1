"""
Training configuration value object.

`TrainingOptions` is built by the caller before a `fit` invocation, consumed
read-only during it, and discarded afterwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ._loss import ILossFunction


@dataclass(frozen=True)
class TrainingOptions:
    """
    Immutable per-run training configuration.

    Parameters
    ----------
    learning_rate : float
        Positive step size that scales every gradient-derived update.
    loss_algorithm : ILossFunction
        Loss function used to score predictions and produce the output
        gradient.
    should_print_information : bool, optional
        If True, `fit` prints the loss of each epoch. Observability only; it
        never changes numeric results. Defaults to False.
    use_gpu : bool, optional
        If True, every device-capable optimizer in the model executes its
        update arithmetic through compute kernels for this run. Defaults to
        False.
    batch_size : Optional[int], optional
        Number of examples per training step. `None` trains on the whole
        training set as a single batch. Defaults to None.
    reset_optimizer_state : bool, optional
        If True, velocity memory of every optimizer is zeroed before the first
        epoch. By default optimizer state persists across `fit` calls on the
        same model.

    Raises
    ------
    ValueError
        If `learning_rate` is not a finite positive number or `batch_size < 1`.
    TypeError
        If `loss_algorithm` does not implement the loss function contract.
    """

    learning_rate: float
    loss_algorithm: ILossFunction
    should_print_information: bool = False
    use_gpu: bool = False
    batch_size: Optional[int] = None
    reset_optimizer_state: bool = False

    def __post_init__(self) -> None:
        lr = float(self.learning_rate)
        if not (lr > 0.0 and math.isfinite(lr)):
            raise ValueError(
                f"learning_rate must be a finite number > 0, got {self.learning_rate}"
            )
        object.__setattr__(self, "learning_rate", lr)

        if not isinstance(self.loss_algorithm, ILossFunction):
            raise TypeError(
                "loss_algorithm must implement compute_loss() and "
                f"compute_loss_gradient(), got {type(self.loss_algorithm).__name__}"
            )

        if self.batch_size is not None:
            if isinstance(self.batch_size, bool) or int(self.batch_size) < 1:
                raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
            object.__setattr__(self, "batch_size", int(self.batch_size))
