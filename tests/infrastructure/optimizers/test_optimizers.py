import unittest

import numpy as np

from denseflow.domain._errors import ShapeMismatchError
from denseflow.infrastructure.optimizers import (
    HOST_EXECUTOR,
    BasicOptimizer,
    MomentumOptimizer,
    NesterovMomentumOptimizer,
)


class TestBasicOptimizer(unittest.TestCase):
    def test_update_is_gradient_times_learning_rate(self):
        g = np.array([0.1, -0.2, 0.3], dtype=np.float32)
        update = BasicOptimizer().compute_update(g, 0.5)
        np.testing.assert_allclose(update, g * np.float32(0.5))
        self.assertEqual(update.dtype, np.float32)

    def test_keeps_gradient_shape(self):
        g = np.ones((2, 3))
        self.assertEqual(BasicOptimizer().compute_update(g, 0.1).shape, (2, 3))

    def test_has_no_velocity(self):
        opt = BasicOptimizer()
        opt.compute_update(np.ones(3), 0.1)
        self.assertIsNone(opt.velocity)
        opt.reset_state()

    def test_rejects_non_positive_learning_rate(self):
        with self.assertRaises(ValueError):
            BasicOptimizer().compute_update(np.ones(3), 0.0)

    def test_rejects_integer_gradients(self):
        with self.assertRaises(TypeError):
            BasicOptimizer().compute_update(np.ones(3, dtype=np.int64), 0.1)

    def test_pre_update_adjustment_is_identity(self):
        p = np.array([1.0, 2.0])
        self.assertIs(BasicOptimizer().pre_update_adjustment(p), p)


class TestMomentumOptimizer(unittest.TestCase):
    def test_gamma_zero_reduces_to_plain_update(self):
        rng = np.random.default_rng(0)
        basic = BasicOptimizer()
        momentum = MomentumOptimizer(momentum_gamma=0.0)
        for _ in range(5):
            g = rng.normal(size=7)
            np.testing.assert_array_equal(
                momentum.compute_update(g, 0.3), basic.compute_update(g, 0.3)
            )

    def test_velocity_accumulates(self):
        opt = MomentumOptimizer(momentum_gamma=0.5)
        g = np.array([1.0, -2.0])
        u1 = opt.compute_update(g, 0.1)
        np.testing.assert_allclose(u1, [0.1, -0.2])
        np.testing.assert_allclose(opt.velocity, u1)

        u2 = opt.compute_update(g, 0.1)
        np.testing.assert_allclose(u2, [0.1 + 0.05, -0.2 - 0.1])
        np.testing.assert_allclose(opt.velocity, u2)

    def test_velocity_length_is_fixed(self):
        opt = MomentumOptimizer(0.9)
        opt.compute_update(np.ones(4), 0.1)
        with self.assertRaises(ShapeMismatchError):
            opt.compute_update(np.ones(5), 0.1)

    def test_reset_state_zeroes_velocity(self):
        opt = MomentumOptimizer(0.9)
        opt.compute_update(np.ones(3), 0.1)
        opt.reset_state()
        np.testing.assert_array_equal(opt.velocity, np.zeros(3))

    def test_velocity_property_is_a_copy(self):
        opt = MomentumOptimizer(0.9)
        opt.compute_update(np.ones(3), 0.1)
        v = opt.velocity
        v[...] = 42.0
        self.assertFalse(np.any(opt.velocity == 42.0))

    def test_clone_copies_hyperparameters_not_state(self):
        opt = MomentumOptimizer(0.7)
        opt.compute_update(np.ones(3), 0.1)
        clone = opt.clone()
        self.assertIsInstance(clone, MomentumOptimizer)
        self.assertEqual(clone.momentum_gamma, 0.7)
        self.assertIsNone(clone.velocity)

    def test_rejects_negative_gamma(self):
        with self.assertRaises(ValueError):
            MomentumOptimizer(momentum_gamma=-0.1)

    def test_uses_host_executor_by_default(self):
        self.assertIs(MomentumOptimizer().executor, HOST_EXECUTOR)


class TestNesterovMomentumOptimizer(unittest.TestCase):
    def test_first_update_matches_momentum(self):
        g = np.array([0.5, -1.5, 2.0])
        np.testing.assert_array_equal(
            NesterovMomentumOptimizer(0.9).compute_update(g, 0.1),
            MomentumOptimizer(0.9).compute_update(g, 0.1),
        )

    def test_lookahead_returns_new_buffer(self):
        opt = NesterovMomentumOptimizer(0.5)
        params = np.array([1.0, 1.0])
        opt.compute_update(np.array([2.0, -2.0]), 0.1)  # velocity = [0.2, -0.2]

        adjusted = opt.pre_update_adjustment(params)
        np.testing.assert_allclose(adjusted, [0.9, 1.1])
        np.testing.assert_array_equal(params, [1.0, 1.0])
        self.assertIsNot(adjusted, params)

    def test_lookahead_before_any_update_is_parameters(self):
        params = np.array([[1.0, 2.0], [3.0, 4.0]])
        adjusted = NesterovMomentumOptimizer(0.9).pre_update_adjustment(params)
        self.assertEqual(adjusted.shape, params.shape)
        np.testing.assert_array_equal(adjusted, params)

    def test_clone_keeps_type(self):
        self.assertIsInstance(NesterovMomentumOptimizer(0.3).clone(), NesterovMomentumOptimizer)


if __name__ == "__main__":
    unittest.main()
