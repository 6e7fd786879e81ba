import unittest

import numpy as np

from poolgrad.infrastructure._datasets import DATASETS, Graph, make_pts, spiral, xor
from poolgrad.infrastructure.tensor._pool import StoragePool


class TestDatasets(unittest.TestCase):
    def test_registry_names(self):
        self.assertEqual(
            list(DATASETS), ["Simple", "Diag", "Split", "Xor", "Circle", "Spiral"]
        )
        with self.assertRaises(TypeError):
            DATASETS["Other"] = xor

    def test_generators_shape_and_labels(self):
        for name, gen in DATASETS.items():
            graph = gen(40, rng=1)
            self.assertIsInstance(graph, Graph)
            self.assertEqual(graph.N, 40, name)
            self.assertEqual(len(graph.X), 40, name)
            self.assertEqual(len(graph.y), 40, name)
            self.assertTrue(set(graph.y) <= {0, 1}, name)

    def test_random_points_in_unit_square(self):
        for name in ("Simple", "Diag", "Split", "Xor", "Circle"):
            pts = np.asarray(DATASETS[name](50, rng=2).X)
            self.assertTrue(np.all((pts >= 0.0) & (pts < 1.0)), name)

    def test_seeded_generation_is_reproducible(self):
        self.assertEqual(DATASETS["Circle"](20, rng=3), DATASETS["Circle"](20, rng=3))
        gen = np.random.default_rng(3)
        self.assertEqual(len(make_pts(5, gen)), 5)

    def test_xor_labels(self):
        graph = xor(100, rng=4)
        for (x1, x2), label in zip(graph.X, graph.y):
            expected = 1 if (x1 < 0.5 and x2 > 0.5) or (x1 > 0.5 and x2 < 0.5) else 0
            self.assertEqual(label, expected)

    def test_spiral_is_balanced(self):
        graph = spiral(21)
        self.assertEqual(graph.N, 20)
        self.assertEqual(graph.y.count(0), 10)
        self.assertEqual(graph.y.count(1), 10)

    def test_negative_size(self):
        with self.assertRaises(ValueError):
            make_pts(-1)

    def test_to_tensors(self):
        graph = DATASETS["Simple"](6, rng=0)
        with StoragePool():
            X, y = graph.to_tensors()
            self.assertEqual(X.shape, (6, 2))
            self.assertEqual(y.shape, (6,))
            self.assertTrue(X.is_constant())
            np.testing.assert_array_equal(X.to_numpy(), np.asarray(graph.X))
            np.testing.assert_array_equal(y.to_numpy(), graph.y)
            del X, y


if __name__ == "__main__":
    unittest.main()
