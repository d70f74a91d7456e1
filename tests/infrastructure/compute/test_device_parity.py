from __future__ import annotations

import unittest

import numpy as np

from denseflow.domain._errors import DeviceNotSupportedError
from denseflow.infrastructure._layer_ops import HOST_LAYER_OPS, DeviceLayerOps
from denseflow.infrastructure.compute import (
    DeviceBuffer,
    get_compute_context,
    is_compute_available,
    run_compute_plain_update,
    run_compute_update_vector,
    run_optimize_parameters,
)
from denseflow.infrastructure.optimizers import (
    HOST_EXECUTOR,
    DeviceUpdateExecutor,
    MomentumOptimizer,
    NesterovMomentumOptimizer,
    VelocityState,
)


def _compute_available() -> bool:
    return is_compute_available()


def _rand(n: int, seed: int) -> np.ndarray:
    return np.random.default_rng(seed).normal(size=n).astype(np.float32)


@unittest.skipUnless(_compute_available(), "no WebGPU compute adapter available")
class TestKernels(unittest.TestCase):
    def setUp(self):
        self.ctx = get_compute_context()

    def test_context_is_shared(self):
        self.assertIs(get_compute_context(), self.ctx)

    def test_buffer_round_trip(self):
        values = _rand(1000, 0)
        np.testing.assert_array_equal(DeviceBuffer.from_host(self.ctx, values).read(), values)

    def test_plain_update(self):
        g = _rand(1000, 1)
        out = DeviceBuffer(self.ctx, g.size)
        run_compute_plain_update(self.ctx, DeviceBuffer.from_host(self.ctx, g), out, 0.25)
        np.testing.assert_allclose(out.read(), g * np.float32(0.25), rtol=1e-6)

    def test_compute_update_vector_writes_both_buffers(self):
        g = _rand(777, 2)
        v = _rand(777, 3)
        v_buf = DeviceBuffer.from_host(self.ctx, v)
        out = DeviceBuffer(self.ctx, g.size)
        run_compute_update_vector(
            self.ctx, DeviceBuffer.from_host(self.ctx, g), v_buf, out, 0.9, 0.01
        )
        expected = g * np.float32(0.01) + v * np.float32(0.9)
        np.testing.assert_allclose(out.read(), expected, rtol=1e-5, atol=1e-7)
        np.testing.assert_allclose(v_buf.read(), expected, rtol=1e-5, atol=1e-7)

    def test_optimize_parameters(self):
        p = _rand(300, 4)
        v = _rand(300, 5)
        p_buf = DeviceBuffer.from_host(self.ctx, p)
        run_optimize_parameters(self.ctx, p_buf, DeviceBuffer.from_host(self.ctx, v), 0.5)
        np.testing.assert_allclose(p_buf.read(), p - v * np.float32(0.5), rtol=1e-5, atol=1e-7)

    def test_large_buffer_uses_second_grid_row(self):
        n = 256 * 65535 + 1000
        g = np.ones(n, dtype=np.float32)
        out = DeviceBuffer(self.ctx, n)
        run_compute_plain_update(self.ctx, DeviceBuffer.from_host(self.ctx, g), out, 2.0)
        result = out.read()
        self.assertEqual(float(result[0]), 2.0)
        self.assertEqual(float(result[-1]), 2.0)


@unittest.skipUnless(_compute_available(), "no WebGPU compute adapter available")
class TestHostDeviceParity(unittest.TestCase):
    def setUp(self):
        self.device = DeviceUpdateExecutor(get_compute_context())

    def test_momentum_steps_match(self):
        host = MomentumOptimizer(0.9)
        dev = MomentumOptimizer(0.9)
        dev.use_executor(self.device)
        for step in range(4):
            g = _rand(513, 10 + step)
            np.testing.assert_allclose(
                dev.compute_update(g, 0.05), host.compute_update(g, 0.05), rtol=1e-5, atol=1e-7
            )
        np.testing.assert_allclose(dev.velocity, host.velocity, rtol=1e-5, atol=1e-7)

    def test_nesterov_lookahead_matches(self):
        host = NesterovMomentumOptimizer(0.8)
        dev = NesterovMomentumOptimizer(0.8)
        dev.use_executor(self.device)
        params = _rand(64, 20)
        g = _rand(64, 21)
        host.compute_update(g, 0.1)
        dev.compute_update(g, 0.1)
        np.testing.assert_allclose(
            dev.pre_update_adjustment(params),
            host.pre_update_adjustment(params),
            rtol=1e-5,
            atol=1e-7,
        )

    def test_velocity_survives_switch_back_to_host(self):
        opt = MomentumOptimizer(0.5)
        opt.use_executor(self.device)
        g = np.ones(10, dtype=np.float32)
        opt.compute_update(g, 0.1)
        opt.release_device_state()
        opt.use_executor(HOST_EXECUTOR)
        np.testing.assert_allclose(opt.compute_update(g, 0.1), np.full(10, 0.15), rtol=1e-6)

    def test_velocity_state_tracks_latest_side(self):
        state = VelocityState(4, np.dtype(np.float32))
        ctx = get_compute_context()
        buf = state.device_buffer(ctx)
        buf.write(np.arange(4, dtype=np.float32))
        state.mark_device_written()
        np.testing.assert_array_equal(state.host(), np.arange(4, dtype=np.float32))

        state.host()[...] = 7.0
        state.mark_host_written()
        np.testing.assert_array_equal(state.device_buffer(ctx).read(), np.full(4, 7.0))

    def test_float64_is_rejected(self):
        opt = MomentumOptimizer(0.9)
        opt.use_executor(self.device)
        with self.assertRaises(DeviceNotSupportedError):
            opt.compute_update(np.ones(3, dtype=np.float64), 0.1)



@unittest.skipUnless(_compute_available(), "no WebGPU compute adapter available")
class TestLayerKernels(unittest.TestCase):
    def setUp(self):
        self.ops = DeviceLayerOps(get_compute_context())

    def test_dense_propagate_matches_host(self):
        rng = np.random.default_rng(30)
        x = rng.normal(size=(7, 5)).astype(np.float32)
        w = rng.normal(size=(5, 3)).astype(np.float32)
        b = rng.normal(size=3).astype(np.float32)
        np.testing.assert_allclose(
            self.ops.dense_forward(x, w, b),
            HOST_LAYER_OPS.dense_forward(x, w, b),
            rtol=1e-5,
            atol=1e-5,
        )

    def test_dense_gradients_match_host(self):
        rng = np.random.default_rng(31)
        x = rng.normal(size=(6, 4)).astype(np.float32)
        g = rng.normal(size=(6, 3)).astype(np.float32)
        w = rng.normal(size=(4, 3)).astype(np.float32)
        for got, want in zip(
            self.ops.dense_backward(x, g, w), HOST_LAYER_OPS.dense_backward(x, g, w)
        ):
            self.assertEqual(got.shape, want.shape)
            np.testing.assert_allclose(got, want, rtol=1e-5, atol=1e-5)

    def test_tanh_kernels_match_host(self):
        x = np.linspace(-30.0, 30.0, 600, dtype=np.float32).reshape(20, 30)
        y = self.ops.tanh_forward(x)
        np.testing.assert_allclose(y, np.tanh(x), rtol=1e-5, atol=1e-6)
        self.assertFalse(np.any(np.isnan(y)))
        g = np.random.default_rng(32).normal(size=x.shape).astype(np.float32)
        np.testing.assert_allclose(
            self.ops.tanh_backward(y, g), HOST_LAYER_OPS.tanh_backward(y, g), rtol=1e-5, atol=1e-6
        )

if __name__ == "__main__":
    unittest.main()
