import unittest

import numpy as np

from denseflow.domain._precision import Precision
from denseflow.domain._training import TrainingOptions
from denseflow.infrastructure._losses import MeanSquared


class TestTrainingOptions(unittest.TestCase):
    def test_defaults(self):
        opts = TrainingOptions(learning_rate=0.1, loss_algorithm=MeanSquared())
        self.assertEqual(opts.learning_rate, 0.1)
        self.assertFalse(opts.should_print_information)
        self.assertFalse(opts.use_gpu)
        self.assertIsNone(opts.batch_size)
        self.assertFalse(opts.reset_optimizer_state)

    def test_rejects_non_positive_learning_rate(self):
        for lr in (0.0, -0.5):
            with self.subTest(lr=lr):
                with self.assertRaises(ValueError):
                    TrainingOptions(learning_rate=lr, loss_algorithm=MeanSquared())

    def test_rejects_nan_learning_rate(self):
        with self.assertRaises(ValueError):
            TrainingOptions(learning_rate=float("nan"), loss_algorithm=MeanSquared())

    def test_rejects_infinite_learning_rate(self):
        for lr in (float("inf"), float("-inf")):
            with self.subTest(lr=lr):
                with self.assertRaises(ValueError):
                    TrainingOptions(learning_rate=lr, loss_algorithm=MeanSquared())

    def test_rejects_non_loss_algorithm(self):
        with self.assertRaises(TypeError):
            TrainingOptions(learning_rate=0.1, loss_algorithm=object())

    def test_rejects_bad_batch_size(self):
        for bs in (0, -3, True):
            with self.subTest(batch_size=bs):
                with self.assertRaises(ValueError):
                    TrainingOptions(
                        learning_rate=0.1, loss_algorithm=MeanSquared(), batch_size=bs
                    )

    def test_is_frozen(self):
        opts = TrainingOptions(learning_rate=0.1, loss_algorithm=MeanSquared())
        with self.assertRaises(Exception):
            opts.learning_rate = 1.0  # type: ignore[misc]


class TestPrecision(unittest.TestCase):
    def test_resolves_numpy_and_string_dtypes(self):
        self.assertIs(Precision.of(np.float32), Precision.FLOAT32)
        self.assertIs(Precision.of(np.dtype("float64")), Precision.FLOAT64)
        self.assertIs(Precision.of("float32"), Precision.FLOAT32)
        self.assertIs(Precision.of(Precision.FLOAT64), Precision.FLOAT64)

    def test_rejects_other_dtypes(self):
        for dt in (np.int32, np.float16, "int8"):
            with self.subTest(dtype=dt):
                with self.assertRaises(TypeError):
                    Precision.of(dt)

    def test_device_support(self):
        self.assertTrue(Precision.FLOAT32.device_supported)
        self.assertFalse(Precision.FLOAT64.device_supported)


if __name__ == "__main__":
    unittest.main()
