import unittest

import numpy as np

from denseflow.domain._errors import PrecisionMismatchError, ShapeMismatchError
from denseflow.infrastructure._activations import ReLU, SoftMax, TanH
from denseflow.infrastructure._losses import CategoricalCrossEntropy, MeanSquared
from denseflow.infrastructure.fully_connected._dense import Dense
from denseflow.infrastructure.models import History, Model
from denseflow.infrastructure.optimizers import NesterovMomentumOptimizer


class TestModelConstruction(unittest.TestCase):
    def test_valid_chain(self):
        model = Model([Dense(4, 8), ReLU(8), Dense(8, 2), SoftMax(2)])
        self.assertEqual(len(model), 4)
        self.assertEqual(model.inputs_amount, 4)
        self.assertEqual(model.outputs_amount, 2)

    def test_width_mismatch_names_the_layer(self):
        with self.assertRaises(ShapeMismatchError) as ctx:
            Model([Dense(4, 8), TanH(7)])
        self.assertIn("layer 1", str(ctx.exception))
        self.assertEqual(ctx.exception.expected, 8)
        self.assertEqual(ctx.exception.actual, 7)

    def test_precision_mismatch(self):
        with self.assertRaises(PrecisionMismatchError):
            Model([Dense(2, 2, dtype=np.float32), TanH(2, dtype=np.float64)])

    def test_add_validates_and_chains(self):
        model = Model().add(Dense(3, 2)).add(TanH(2))
        self.assertEqual(len(model), 2)
        with self.assertRaises(ShapeMismatchError):
            model.add(Dense(3, 1))
        self.assertEqual(len(model), 2)

    def test_add_rejects_non_layers(self):
        with self.assertRaises(TypeError):
            Model().add(object())

    def test_layers_view_is_read_only(self):
        model = Model([Dense(2, 2)])
        self.assertIsInstance(model.layers, tuple)

    def test_accepts_protocol_only_layers(self):
        class Identity:
            inputs_amount = 2
            outputs_amount = 2
            dtype = np.float32

            def forward(self, inputs):
                return inputs

            def backward(self, loss_to_output_gradient, learning_rate):
                return loss_to_output_gradient

            def optimizers(self):
                return ()

            def clear_cache(self):
                pass

        model = Model([Dense(3, 2), Identity()])
        self.assertEqual(model.outputs_amount, 2)
        self.assertEqual(model.predict(np.zeros((1, 3), dtype=np.float32)).shape, (1, 2))

    def test_empty_model_cannot_predict(self):
        with self.assertRaises(ValueError):
            Model().predict(np.zeros((1, 2)))


class TestModelPredict(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(0)
        self.model = Model(
            [
                Dense(3, 4, NesterovMomentumOptimizer(0.9), rng=rng),
                TanH(4),
                Dense(4, 2, rng=rng),
                SoftMax(2),
            ]
        )

    def test_predict_batch_and_single(self):
        x = np.array([[0.1, 0.2, 0.3], [1.0, -1.0, 0.5]], dtype=np.float32)
        batch = self.model.predict(x)
        self.assertEqual(batch.shape, (2, 2))
        np.testing.assert_allclose(batch.sum(axis=1), [1.0, 1.0], rtol=1e-6)

        single = self.model.predict(x[1])
        self.assertEqual(single.shape, (2,))
        np.testing.assert_allclose(single, batch[1], rtol=1e-6)

    def test_predict_matches_manual_chain(self):
        x = np.array([[0.5, -0.5, 2.0]], dtype=np.float32)
        d1, _, d2, _ = self.model.layers
        h = np.tanh(x @ d1.weights + d1.biases)
        z = h @ d2.weights + d2.biases
        e = np.exp(z - z.max(axis=1, keepdims=True))
        np.testing.assert_allclose(self.model.predict(x), e / e.sum(axis=1, keepdims=True), rtol=1e-5)

    def test_predict_does_not_change_parameters(self):
        before = [l.weights.copy() for l in self.model.layers if isinstance(l, Dense)]
        self.model.predict(np.ones((5, 3), dtype=np.float32))
        after = [l.weights for l in self.model.layers if isinstance(l, Dense)]
        for b, a in zip(before, after):
            np.testing.assert_array_equal(b, a)

    def test_predict_rejects_wrong_width(self):
        with self.assertRaises(ShapeMismatchError):
            self.model.predict(np.zeros((2, 4), dtype=np.float32))

    def test_compute_loss(self):
        x = np.array([[0.1, 0.2, 0.3]], dtype=np.float32)
        y = np.array([[1.0, 0.0]], dtype=np.float32)
        pred = self.model.predict(x)
        self.assertAlmostEqual(
            self.model.compute_loss(x, y, CategoricalCrossEntropy()),
            float(-np.log(pred[0, 0])),
            places=5,
        )
        self.assertAlmostEqual(
            self.model.compute_loss(x, y, MeanSquared()),
            float(((pred - y) ** 2).mean()),
            places=6,
        )


class TestHistory(unittest.TestCase):
    def test_append_and_last(self):
        h = History()
        h.append_epoch(0, {"loss": 1.5})
        h.append_epoch(1, {"loss": np.float32(0.5)})
        self.assertEqual(h.epoch, [0, 1])
        self.assertEqual(h.losses, [1.5, 0.5])
        self.assertEqual(h.last(), {"loss": 0.5})
        self.assertEqual(len(h), 2)
        self.assertIsInstance(h.history["loss"][1], float)


if __name__ == "__main__":
    unittest.main()
