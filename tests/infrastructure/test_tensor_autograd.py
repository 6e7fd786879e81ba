import unittest
from typing import Callable, Sequence

import numpy as np

from poolgrad.domain._errors import GradientMissingError, ShapeError
from poolgrad.infrastructure.tensor._pool import StoragePool
from poolgrad.infrastructure.tensor._tensor import Tensor, tensor


def numeric_grads(
    fn: Callable[..., Tensor], arrays: Sequence[np.ndarray], eps: float = 1e-6
):
    """Centered finite differences of ``fn(*tensors).sum()`` w.r.t. each array."""
    grads = []
    for i, arr in enumerate(arrays):
        g = np.zeros_like(arr)
        for idx in np.ndindex(arr.shape):
            plus = [a.copy() for a in arrays]
            minus = [a.copy() for a in arrays]
            plus[i][idx] += eps
            minus[i][idx] -= eps
            f_plus = fn(*(tensor(a) for a in plus)).sum().item()
            f_minus = fn(*(tensor(a) for a in minus)).sum().item()
            g[idx] = (f_plus - f_minus) / (2.0 * eps)
        grads.append(g)
    return grads


class TestTensorGradients(unittest.TestCase):
    def setUp(self):
        self.pool = StoragePool()
        self.pool.__enter__()
        self.rng = np.random.default_rng(7)

    def tearDown(self):
        self.pool.__exit__(None, None, None)

    def assert_grads_match(self, fn, *arrays):
        inputs = [tensor(a) for a in arrays]
        fn(*inputs).sum().backward()
        expected = numeric_grads(fn, arrays)
        for t, g in zip(inputs, expected):
            self.assertEqual(t.grad.shape, t.shape)
            np.testing.assert_allclose(t.grad.to_numpy(), g, atol=1e-4, rtol=0)

    def away_from_zero(self, *shape):
        x = self.rng.uniform(0.2, 1.5, size=shape)
        sign = np.where(self.rng.random(shape) < 0.5, -1.0, 1.0)
        return x * sign

    def test_elementwise_unary(self):
        x = self.away_from_zero(2, 3)
        self.assert_grads_match(lambda a: a.neg(), x)
        self.assert_grads_match(lambda a: a.sigmoid(), x)
        self.assert_grads_match(lambda a: a.exp(), x)
        self.assert_grads_match(lambda a: a.relu(), x)
        self.assert_grads_match(lambda a: a.leaky_relu(), x)
        self.assert_grads_match(lambda a: a.inv(), x)
        self.assert_grads_match(lambda a: a.log(), np.abs(x))

    def test_elementwise_binary(self):
        a = self.away_from_zero(2, 3)
        b = self.away_from_zero(2, 3)
        self.assert_grads_match(lambda x, y: x + y, a, b)
        self.assert_grads_match(lambda x, y: x - y, a, b)
        self.assert_grads_match(lambda x, y: x * y, a, b)
        self.assert_grads_match(lambda x, y: x / y, a, b)

    def test_broadcast_binary(self):
        a = self.away_from_zero(2, 3)
        row = self.away_from_zero(3)
        col = self.away_from_zero(2, 1)
        self.assert_grads_match(lambda x, y: x * y, a, row)
        self.assert_grads_match(lambda x, y: x + y, col, a)
        self.assert_grads_match(lambda x, y: (x * y).sigmoid(), col, row)

    def test_reductions(self):
        x = self.away_from_zero(2, 3, 4)
        self.assert_grads_match(lambda a: a.sum(0), x)
        self.assert_grads_match(lambda a: a.sum(1).exp(), x)
        self.assert_grads_match(lambda a: a.sum(2) * a.sum(2), x)
        self.assert_grads_match(lambda a: a.mean(1), x)
        self.assert_grads_match(lambda a: a.sum() * a.sum(), x)

    def test_layout(self):
        x = self.away_from_zero(2, 3, 4)
        w = self.away_from_zero(4, 3, 2)
        self.assert_grads_match(lambda a, b: a.permute(2, 1, 0) * b, x, w)
        self.assert_grads_match(
            lambda a: a.permute(1, 0, 2).contiguous().view(6, 4).sigmoid(), x
        )

    def test_matmul(self):
        a = self.away_from_zero(3, 4)
        b = self.away_from_zero(4, 2)
        self.assert_grads_match(lambda x, y: x @ y, a, b)

    def test_batched_matmul_broadcast(self):
        a = self.away_from_zero(2, 3, 4)
        b = self.away_from_zero(4, 2)
        self.assert_grads_match(lambda x, y: (x @ y).sigmoid(), a, b)

    def test_composite_network(self):
        x = self.away_from_zero(5, 3)
        w1 = self.away_from_zero(3, 4)
        b1 = self.away_from_zero(4)
        w2 = self.away_from_zero(4, 1)

        def net(x, w1, b1, w2):
            hidden = (x @ w1 + b1).relu()
            return (hidden @ w2).sigmoid()

        self.assert_grads_match(net, x, w1, b1, w2)


class TestTensorBackwardSemantics(unittest.TestCase):
    def setUp(self):
        self.pool = StoragePool()
        self.pool.__enter__()

    def tearDown(self):
        self.pool.__exit__(None, None, None)

    def test_diamond(self):
        x = tensor([3.0])
        (x * x).backward()
        self.assertEqual(x.grad.item(), 6.0)

    def test_shared_input_accumulates(self):
        x = tensor([1.0, 2.0])
        (x * 3 + x.exp()).sum().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), 3.0 + np.exp([1.0, 2.0]))

    def test_broadcast_gradient_is_summed(self):
        a = tensor(np.ones((3, 1)))
        b = tensor(np.ones((1, 4)))
        (a + b).sum().backward()
        np.testing.assert_array_equal(a.grad.to_numpy(), np.full((3, 1), 4.0))
        np.testing.assert_array_equal(b.grad.to_numpy(), np.full((1, 4), 3.0))

    def test_multi_element_root_needs_grad_output(self):
        x = tensor(np.ones((2, 2)))
        y = x * 2
        with self.assertRaises(ShapeError):
            y.backward()

    def test_explicit_grad_output(self):
        x = tensor(np.ones((2, 2)))
        y = x * 2
        y.backward(np.array([[1.0, 0.0], [0.5, 2.0]]))
        np.testing.assert_array_equal(x.grad.to_numpy(), [[2.0, 0.0], [1.0, 4.0]])

    def test_grad_output_shape_mismatch(self):
        x = tensor(np.ones((2, 2)))
        with self.assertRaises(ShapeError):
            (x * 2).backward(Tensor.ones((2, 3)))

    def test_zero_grad_resets(self):
        x = tensor([1.0, 2.0])
        (x * x).sum().backward()
        np.testing.assert_array_equal(x.grad.to_numpy(), [2.0, 4.0])
        (x * x).sum().backward()
        np.testing.assert_array_equal(x.grad.to_numpy(), [4.0, 8.0])

        x.zero_grad_()
        self.assertIsNone(x.grad)
        with self.assertRaises(GradientMissingError):
            x.grad_or_raise()

        (x * x).sum().backward()
        np.testing.assert_array_equal(x.grad_or_raise().to_numpy(), [2.0, 4.0])

    def test_constants_get_no_grad(self):
        x = tensor([1.0, 2.0])
        c = tensor([3.0, 4.0], requires_grad=False)
        (x * c).sum().backward()
        np.testing.assert_array_equal(x.grad.to_numpy(), [3.0, 4.0])
        self.assertIsNone(c.grad)

    def test_intermediate_values_keep_no_grad(self):
        x = tensor([1.0, 2.0])
        y = x * 2
        y.sum().backward()
        self.assertIsNone(y.grad)

    def test_comparison_gradient_is_zero(self):
        x = tensor([0.0, 1.0])
        x.lt(0.5).sum().backward()
        np.testing.assert_array_equal(x.grad.to_numpy(), [0.0, 0.0])

    def test_grad_is_an_owned_copy(self):
        x = tensor([1.0, 2.0])
        x.backward(tensor([5.0, 6.0], requires_grad=False))
        np.testing.assert_array_equal(x.grad.to_numpy(), [5.0, 6.0])
        self.assertTrue(x.grad.is_constant())

    def test_accumulate_checks_shape(self):
        x = tensor([1.0, 2.0])
        with self.assertRaises(ShapeError):
            x.accumulate_grad_(Tensor.zeros((3,)).data)


if __name__ == "__main__":
    unittest.main()
