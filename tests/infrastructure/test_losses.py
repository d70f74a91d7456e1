import unittest

import numpy as np

from denseflow.domain._errors import ShapeMismatchError
from denseflow.infrastructure._losses import CategoricalCrossEntropy, MeanSquared


def _finite_diff_grad(loss_fn, pred: np.ndarray, target: np.ndarray, eps: float = 1e-6) -> np.ndarray:
    """
    Central difference gradient of `samples * loss` wrt pred.

    Gradients returned by the losses are per sample, so the batch mean in the
    loss value is undone before comparing.
    """
    samples = pred.shape[0]
    grad = np.zeros_like(pred)
    it = np.nditer(pred, flags=["multi_index"])
    while not it.finished:
        idx = it.multi_index
        p_plus = pred.copy()
        p_minus = pred.copy()
        p_plus[idx] += eps
        p_minus[idx] -= eps
        grad[idx] = (
            samples * (loss_fn.compute_loss(p_plus, target) - loss_fn.compute_loss(p_minus, target))
        ) / (2 * eps)
        it.iternext()
    return grad


class TestMeanSquared(unittest.TestCase):
    def test_loss_value(self):
        pred = np.array([[1.0, 2.0], [3.0, 4.0]])
        target = np.array([[1.0, 0.0], [0.0, 4.0]])
        # (0 + 4 + 9 + 0) / 2 outputs / 2 samples
        self.assertAlmostEqual(MeanSquared().compute_loss(pred, target), 13.0 / 4.0)

    def test_gradient(self):
        pred = np.array([[1.0, 2.0], [3.0, 4.0]])
        target = np.array([[1.0, 0.0], [0.0, 4.0]])
        grad = MeanSquared().compute_loss_gradient(pred, target)
        np.testing.assert_allclose(grad, 2.0 * (pred - target) / 2.0)

    def test_gradient_matches_finite_differences(self):
        rng = np.random.default_rng(3)
        pred = rng.normal(size=(3, 4))
        target = rng.normal(size=(3, 4))
        loss = MeanSquared()
        np.testing.assert_allclose(
            loss.compute_loss_gradient(pred, target),
            _finite_diff_grad(loss, pred, target),
            rtol=1e-5,
            atol=1e-8,
        )

    def test_single_example(self):
        grad = MeanSquared().compute_loss_gradient([1.0, 0.0], [0.0, 0.0])
        self.assertEqual(grad.shape, (2,))
        np.testing.assert_allclose(grad, [1.0, 0.0])

    def test_keeps_float32(self):
        pred = np.ones((2, 2), dtype=np.float32)
        grad = MeanSquared().compute_loss_gradient(pred, np.zeros((2, 2)))
        self.assertEqual(grad.dtype, np.float32)

    def test_shape_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            MeanSquared().compute_loss(np.zeros((2, 3)), np.zeros((2, 2)))
        with self.assertRaises(ShapeMismatchError):
            MeanSquared().compute_loss_gradient(np.zeros((2, 3)), np.zeros((3, 3)))


class TestCategoricalCrossEntropy(unittest.TestCase):
    def test_loss_value(self):
        pred = np.array([[0.7, 0.2, 0.1], [0.1, 0.1, 0.8]])
        target = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        expected = -(np.log(0.7) + np.log(0.8)) / 2
        self.assertAlmostEqual(CategoricalCrossEntropy().compute_loss(pred, target), expected)

    def test_gradient_matches_finite_differences(self):
        pred = np.array([[0.6, 0.3, 0.1], [0.2, 0.5, 0.3]])
        target = np.array([[1.0, 0.0, 0.0], [0.0, 0.5, 0.5]])
        loss = CategoricalCrossEntropy()
        np.testing.assert_allclose(
            loss.compute_loss_gradient(pred, target),
            _finite_diff_grad(loss, pred, target),
            rtol=1e-5,
        )

    def test_zero_probability_is_clipped(self):
        pred = np.array([[0.0, 1.0]])
        target = np.array([[1.0, 0.0]])
        loss = CategoricalCrossEntropy(epsilon=1e-7)
        self.assertTrue(np.isfinite(loss.compute_loss(pred, target)))
        self.assertTrue(np.all(np.isfinite(loss.compute_loss_gradient(pred, target))))

    def test_rejects_bad_epsilon(self):
        with self.assertRaises(ValueError):
            CategoricalCrossEntropy(epsilon=0.0)


if __name__ == "__main__":
    unittest.main()
