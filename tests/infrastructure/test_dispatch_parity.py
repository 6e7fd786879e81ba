import unittest
import warnings

import numpy as np

from poolgrad.infrastructure._config import override_config
from poolgrad.infrastructure._dispatch_parity import (
    ABOVE_THRESHOLD,
    BELOW_THRESHOLD,
    DispatchParityResult,
    run_dispatch_parity,
    train_linear_regression,
)
from poolgrad.infrastructure.ops._dispatch import select_kernel
from poolgrad.infrastructure.ops._kernel_builder import KernelKind
from poolgrad.infrastructure.tensor._pool import StoragePool


def closed_form(features, epochs, lr):
    # every row is identical, so the gradient of each weight is 2 * sum(w)
    w = np.arange(1, features + 1, dtype=np.float64)
    for _ in range(epochs):
        w = w - lr * 2.0 * w.sum()
    return w


class TestDispatchParityScenario(unittest.TestCase):
    def test_reference_run_agrees_across_threshold(self):
        with override_config(fast_threshold=4096, disable_fast=False):
            self.assertIs(select_kernel(BELOW_THRESHOLD), KernelKind.NAIVE)
            self.assertIs(select_kernel(ABOVE_THRESHOLD), KernelKind.FAST)

            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", RuntimeWarning)
                result = run_dispatch_parity()

        self.assertIsInstance(result, DispatchParityResult)
        self.assertEqual(len(result.weights_below), 8)
        np.testing.assert_allclose(result.weights_below, result.weights_above, rtol=1e-9)
        np.testing.assert_allclose(
            result.weights_below, closed_form(8, 3, 0.01), rtol=1e-9
        )
        self.assertEqual([w for w in caught if issubclass(w.category, RuntimeWarning)], [])

    def test_threshold_minus_one_and_threshold_agree(self):
        with override_config(fast_threshold=64, disable_fast=False):
            with StoragePool():
                below = train_linear_regression(63, 4, 2, 0.01)
                at = train_linear_regression(64, 4, 2, 0.01)
        np.testing.assert_allclose(below, closed_form(4, 2, 0.01), rtol=1e-9)
        np.testing.assert_allclose(at, closed_form(4, 2, 0.01), rtol=1e-9)

    def test_disable_fast_gives_same_weights(self):
        with override_config(fast_threshold=32, disable_fast=False):
            with StoragePool():
                fast = train_linear_regression(40, 3, 2, 0.05)
        with override_config(fast_threshold=32, disable_fast=True):
            with StoragePool():
                naive = train_linear_regression(40, 3, 2, 0.05)
        self.assertEqual(fast, naive)

    def test_rejects_invalid_sizes(self):
        with self.assertRaises(ValueError):
            train_linear_regression(0, 8, 3, 0.01)
        with self.assertRaises(ValueError):
            train_linear_regression(10, 0, 3, 0.01)


if __name__ == "__main__":
    unittest.main()
