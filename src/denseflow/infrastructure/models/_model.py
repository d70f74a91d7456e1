"""
Sequential model and training loop.

`Model` chains layers whose widths agree, runs inference with `predict`, and
trains with `fit`, a full-batch or mini-batch gradient descent loop.

Design notes
------------
- Everything `fit` can validate is validated before the first epoch, so a
  rejected call never changes a parameter.
- Where the arithmetic runs is a per-run decision: with ``use_gpu=True``
  every optimizer receives a device executor and every layer receives device
  layer ops, both bound to the shared compute context for the duration of
  the call. Host strategies are restored on exit, whether training finished
  or raised.
- On exit every layer cache is cleared, which also drops any pending
  look-ahead parameters of an interrupted step.
- Device work is awaited once per epoch, before the epoch is recorded.
- Verbose output is plain `print`; non-fatal adjustments use
  `warnings.warn`.
"""

from __future__ import annotations

import numbers
import warnings
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ._history import History
from .._buffer import as_buffer, check_width, stack_examples
from .._layer_ops import HOST_LAYER_OPS, DeviceLayerOps
from ..compute._context import ComputeContext, get_compute_context
from ..optimizers._executors import HOST_EXECUTOR, DeviceUpdateExecutor
from ...domain._errors import (
    DeviceNotSupportedError,
    PrecisionMismatchError,
    ShapeMismatchError,
)
from ...domain._layer import ILayer
from ...domain._loss import ILossFunction
from ...domain._optimizer import IOptimizer, IUpdateExecutor
from ...domain._precision import Precision
from ...domain._training import TrainingOptions


class Model:
    """
    Ordered chain of layers.

    Parameters
    ----------
    layers : Iterable[ILayer], optional
        Layers in forward order. Each is validated as by `add()`.

    Raises
    ------
    ShapeMismatchError
        If adjacent layers disagree on width.
    PrecisionMismatchError
        If layers mix float32 and float64.
    """

    def __init__(self, layers: Iterable[ILayer] = ()) -> None:
        self._layers: List[ILayer] = []
        for layer in layers:
            self.add(layer)

    def add(self, layer: ILayer) -> "Model":
        """
        Append `layer` after the current last layer.

        Returns
        -------
        Model
            `self`, so calls can be chained.
        """
        if not isinstance(layer, ILayer):
            raise TypeError(f"expected a layer, got {type(layer).__name__}")

        if self._layers:
            last = self._layers[-1]
            index = len(self._layers)
            if last.outputs_amount != layer.inputs_amount:
                raise ShapeMismatchError(
                    f"layer {index} ({type(layer).__name__}) inputs_amount",
                    last.outputs_amount,
                    layer.inputs_amount,
                )
            if Precision.of(last.dtype) is not Precision.of(layer.dtype):
                raise PrecisionMismatchError(
                    f"layer {index} ({type(layer).__name__})", (last.dtype, layer.dtype)
                )

        self._layers.append(layer)
        return self

    @property
    def layers(self) -> Tuple[ILayer, ...]:
        return tuple(self._layers)

    @property
    def inputs_amount(self) -> int:
        return self._require_layers()[0].inputs_amount

    @property
    def outputs_amount(self) -> int:
        return self._require_layers()[-1].outputs_amount

    @property
    def precision(self) -> Precision:
        return Precision.of(self._require_layers()[0].dtype)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[ILayer]:
        return iter(self._layers)

    def _require_layers(self) -> List[ILayer]:
        if not self._layers:
            raise ValueError("model has no layers")
        return self._layers

    def _optimizers(self) -> Iterator[IOptimizer]:
        for layer in self._layers:
            yield from layer.optimizers()

    def predict(self, inputs: Any) -> np.ndarray:
        """
        Run the forward pass over every layer.

        Parameters
        ----------
        inputs : Any
            A single example or a batch.

        Returns
        -------
        np.ndarray
            Outputs of the last layer, with the rank of `inputs`.

        Raises
        ------
        ShapeMismatchError
            If the input width differs from the first layer input width.
        """
        self._require_layers()
        out = as_buffer(inputs, self.precision)
        check_width(out, self.inputs_amount, "predict inputs")
        for layer in self._layers:
            out = layer.forward(out)
        return out

    def compute_loss(
        self, inputs: Any, expected: Any, loss_algorithm: ILossFunction
    ) -> float:
        """
        Evaluate `loss_algorithm` on the model predictions without training.
        """
        expected_batch = stack_examples(expected, self.precision, "expected_outputs")
        predicted = self.predict(stack_examples(inputs, self.precision, "inputs"))
        return float(loss_algorithm.compute_loss(predicted, expected_batch))

    def fit(
        self,
        training_inputs: Sequence[Any],
        expected_outputs: Sequence[Any],
        options: TrainingOptions,
        epochs: int,
    ) -> History:
        """
        Train the model for a fixed number of epochs.

        Parameters
        ----------
        training_inputs : Sequence[Any]
            Training examples, a 2-D array or a sequence of 1-D examples.
        expected_outputs : Sequence[Any]
            Expected outputs, one per training example.
        options : TrainingOptions
            Learning rate, loss function, verbosity, device and batching
            options for this run.
        epochs : int
            Number of passes over the training set. Must be positive.

        Returns
        -------
        History
            Per-epoch sample-weighted mean loss under the ``"loss"`` key.

        Raises
        ------
        ValueError
            If `epochs` is not a positive integer.
        ShapeMismatchError
            If sample counts differ or widths do not match the model.
        DeviceNotSupportedError
            If ``use_gpu`` is set on a float64 model.
        DeviceUnavailableError
            If ``use_gpu`` is set and no compute device can be acquired.
        KernelDispatchError
            If a compute kernel fails during training.
        """
        if isinstance(epochs, bool) or not isinstance(epochs, numbers.Integral) or epochs < 1:
            raise ValueError(f"epochs must be a positive integer, got {epochs!r}")
        if not isinstance(options, TrainingOptions):
            raise TypeError(f"options must be TrainingOptions, got {type(options).__name__}")

        self._require_layers()
        x = stack_examples(training_inputs, self.precision, "training_inputs")
        y = stack_examples(expected_outputs, self.precision, "expected_outputs")

        samples = x.shape[0]
        if samples == 0:
            raise ShapeMismatchError("training_inputs samples", "at least one example", 0)
        if y.shape[0] != samples:
            raise ShapeMismatchError("expected_outputs samples", samples, y.shape[0])
        check_width(x, self.inputs_amount, "training_inputs width")
        check_width(y, self.outputs_amount, "expected_outputs width")

        batch_size = self._resolve_batch_size(options.batch_size, samples)
        context = self._acquire_context(options)

        if options.reset_optimizer_state:
            for opt in self._optimizers():
                opt.reset_state()

        hist = History()
        try:
            if context is not None:
                self._use_executor(DeviceUpdateExecutor(context))
                self._use_layer_ops(DeviceLayerOps(context))

            for epoch_idx in range(int(epochs)):
                total = 0.0
                for start in range(0, samples, batch_size):
                    xb = x[start : start + batch_size]
                    yb = y[start : start + batch_size]
                    total += self._train_on_batch(xb, yb, options) * xb.shape[0]

                if context is not None:
                    context.synchronize()

                epoch_loss = total / samples
                hist.append_epoch(epoch_idx, {"loss": epoch_loss})

                if options.should_print_information:
                    print(f"Epoch {epoch_idx + 1}/{epochs} - loss: {epoch_loss:.6f}")
        finally:
            for layer in self._layers:
                layer.clear_cache()
                if context is not None and hasattr(layer, "release_device_state"):
                    layer.release_device_state()
            self._use_executor(HOST_EXECUTOR)
            self._use_layer_ops(HOST_LAYER_OPS)

        return hist

    def _train_on_batch(
        self, xb: np.ndarray, yb: np.ndarray, options: TrainingOptions
    ) -> float:
        for layer in self._layers:
            if hasattr(layer, "prepare_step"):
                layer.prepare_step()

        out = xb
        for layer in self._layers:
            out = layer.forward(out)

        loss = options.loss_algorithm.compute_loss(out, yb)
        gradient = options.loss_algorithm.compute_loss_gradient(out, yb)

        for layer in reversed(self._layers):
            gradient = layer.backward(gradient, options.learning_rate)

        return float(loss)

    def _resolve_batch_size(self, batch_size: Optional[int], samples: int) -> int:
        if batch_size is None:
            return samples
        if batch_size > samples:
            warnings.warn(
                f"batch_size={batch_size} exceeds the number of training examples "
                f"({samples}); training on the full set per step.",
                RuntimeWarning,
                stacklevel=3,
            )
            return samples
        return batch_size

    def _acquire_context(self, options: TrainingOptions) -> Optional[ComputeContext]:
        if not options.use_gpu:
            return None
        if not self.precision.device_supported:
            raise DeviceNotSupportedError(
                f"compute kernels on {self.precision}", "compute device"
            )
        return get_compute_context()

    def _use_executor(self, executor: IUpdateExecutor) -> None:
        for opt in self._optimizers():
            opt.use_executor(executor)

    def _use_layer_ops(self, ops: Any) -> None:
        for layer in self._layers:
            if hasattr(layer, "use_layer_ops"):
                layer.use_layer_ops(ops)

    def __repr__(self) -> str:
        inner = ", ".join(repr(layer) for layer in self._layers)
        return f"Model([{inner}])"
