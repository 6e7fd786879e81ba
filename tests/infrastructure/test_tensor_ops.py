import unittest

import numpy as np

from poolgrad.domain._errors import NumericDomainError, ShapeError
from poolgrad.infrastructure.tensor._pool import StoragePool
from poolgrad.infrastructure.tensor._tensor import Tensor, ones, rand, tensor, zeros


class _PooledTestCase(unittest.TestCase):
    def setUp(self):
        self.pool = StoragePool()
        self.pool.__enter__()

    def tearDown(self):
        self.pool.__exit__(None, None, None)


class TestTensorFactories(_PooledTestCase):
    def test_zeros_ones(self):
        np.testing.assert_array_equal(zeros((2, 3)).to_numpy(), np.zeros((2, 3)))
        np.testing.assert_array_equal(ones((3,)).to_numpy(), np.ones(3))

    def test_tensor_copies_values(self):
        src = np.array([[1.0, 2.0], [3.0, 4.0]])
        t = tensor(src)
        src[0, 0] = 99.0
        self.assertEqual(t.shape, (2, 2))
        self.assertEqual(t.get((0, 0)), 1.0)

    def test_rand_is_reproducible(self):
        a = rand((3, 2), rng=np.random.default_rng(4))
        b = rand((3, 2), rng=np.random.default_rng(4))
        np.testing.assert_array_equal(a.to_numpy(), b.to_numpy())
        self.assertTrue(np.all((a.to_numpy() >= 0.0) & (a.to_numpy() < 1.0)))

    def test_properties(self):
        t = Tensor.zeros((2, 3, 4))
        self.assertEqual(t.size, 24)
        self.assertEqual(t.dims, 3)
        self.assertEqual(len(t), 2)
        self.assertTrue(t.is_leaf())
        self.assertTrue(t.requires_grad)

    def test_requires_tensor_data(self):
        with self.assertRaises(TypeError):
            Tensor(np.zeros(3))


class TestTensorElementwise(_PooledTestCase):
    def setUp(self):
        super().setUp()
        self.a_np = np.array([[1.0, -2.0, 3.0], [0.5, 4.0, -1.5]])
        self.b_np = np.array([2.0, 0.25, -1.0])
        self.a = tensor(self.a_np)
        self.b = tensor(self.b_np)

    def tearDown(self):
        del self.a, self.b
        super().tearDown()

    def test_binary_ops_broadcast(self):
        np.testing.assert_array_equal((self.a + self.b).to_numpy(), self.a_np + self.b_np)
        np.testing.assert_array_equal((self.a - self.b).to_numpy(), self.a_np - self.b_np)
        np.testing.assert_array_equal((self.a * self.b).to_numpy(), self.a_np * self.b_np)
        np.testing.assert_allclose((self.a / self.b).to_numpy(), self.a_np / self.b_np)

    def test_outer_broadcast(self):
        col = tensor([[1.0], [2.0], [3.0]])
        row = tensor([[10.0, 20.0, 30.0, 40.0]])
        out = col + row
        self.assertEqual(out.shape, (3, 4))
        np.testing.assert_array_equal(
            out.to_numpy(), np.array([[1.0], [2.0], [3.0]]) + np.array([[10.0, 20.0, 30.0, 40.0]])
        )

    def test_incompatible_shapes(self):
        with self.assertRaises(ShapeError):
            self.a + tensor([1.0, 2.0])

    def test_literals(self):
        np.testing.assert_array_equal((2.0 * self.a).to_numpy(), 2.0 * self.a_np)
        np.testing.assert_array_equal((self.a - 1).to_numpy(), self.a_np - 1)
        np.testing.assert_array_equal((1 - self.a).to_numpy(), 1 - self.a_np)
        np.testing.assert_allclose((self.a / 2).to_numpy(), self.a_np / 2)
        np.testing.assert_array_equal((-self.a).to_numpy(), -self.a_np)

    def test_unsupported_operand(self):
        with self.assertRaises(TypeError):
            self.a + "x"
        with self.assertRaises(TypeError):
            self.a * False

    def test_unary_ops(self):
        np.testing.assert_allclose(self.a.exp().to_numpy(), np.exp(self.a_np))
        np.testing.assert_allclose(self.a.sigmoid().to_numpy(), 1.0 / (1.0 + np.exp(-self.a_np)))
        np.testing.assert_array_equal(self.a.relu().to_numpy(), np.maximum(self.a_np, 0.0))
        np.testing.assert_allclose(
            self.a.leaky_relu().to_numpy(), np.where(self.a_np > 0, self.a_np, 0.01 * self.a_np)
        )
        np.testing.assert_allclose(self.b.inv().to_numpy(), 1.0 / self.b_np)
        pos = tensor(np.abs(self.a_np))
        np.testing.assert_allclose(pos.log().to_numpy(), np.log(np.abs(self.a_np) + 1e-6))

    def test_domain_errors(self):
        with self.assertRaises(NumericDomainError):
            self.a.log()
        with self.assertRaises(NumericDomainError):
            tensor([1.0, 0.0]).inv()

    def test_comparisons(self):
        x = tensor([1.0, 2.0, 3.0])
        y = tensor([2.0, 2.0, 2.0])
        np.testing.assert_array_equal(x.lt(y).to_numpy(), [1.0, 0.0, 0.0])
        np.testing.assert_array_equal((x > y).to_numpy(), [0.0, 0.0, 1.0])
        np.testing.assert_array_equal(x.eq(y).to_numpy(), [0.0, 1.0, 0.0])
        np.testing.assert_array_equal(x.is_close(2.005).to_numpy(), [0.0, 1.0, 0.0])


class TestTensorReductionsAndLayout(_PooledTestCase):
    def setUp(self):
        super().setUp()
        self.x_np = np.arange(24, dtype=np.float64).reshape(2, 3, 4)
        self.x = tensor(self.x_np)

    def tearDown(self):
        del self.x
        super().tearDown()

    def test_sum_keeps_dim(self):
        for dim in range(3):
            out = self.x.sum(dim)
            np.testing.assert_array_equal(out.to_numpy(), self.x_np.sum(axis=dim, keepdims=True))

    def test_sum_negative_dim(self):
        np.testing.assert_array_equal(
            self.x.sum(-1).to_numpy(), self.x_np.sum(axis=-1, keepdims=True)
        )

    def test_sum_out_of_range(self):
        with self.assertRaises(ShapeError):
            self.x.sum(3)

    def test_full_sum(self):
        out = self.x.sum()
        self.assertEqual(out.shape, (1,))
        self.assertEqual(out.item(), float(self.x_np.sum()))

    def test_mean(self):
        self.assertAlmostEqual(self.x.mean().item(), float(self.x_np.mean()))
        np.testing.assert_allclose(
            self.x.mean(1).to_numpy(), self.x_np.mean(axis=1, keepdims=True)
        )

    def test_all(self):
        t = tensor([[1.0, 0.0], [1.0, 1.0]])
        np.testing.assert_array_equal(t.all(1).to_numpy(), [[0.0], [1.0]])
        np.testing.assert_array_equal(t.all().to_numpy(), [0.0])
        self.assertTrue(t.all(1).is_constant())

    def test_permute(self):
        p = self.x.permute(2, 0, 1)
        self.assertEqual(p.shape, (4, 2, 3))
        np.testing.assert_array_equal(p.to_numpy(), self.x_np.transpose(2, 0, 1))

    def test_view_after_permute_needs_contiguous(self):
        p = self.x.permute(1, 0, 2)
        with self.assertRaises(ShapeError):
            p.view(24)
        flat = p.contiguous().view(24)
        np.testing.assert_array_equal(flat.to_numpy(), self.x_np.transpose(1, 0, 2).reshape(24))

    def test_matmul_2d(self):
        a = np.arange(6, dtype=np.float64).reshape(2, 3)
        b = np.arange(12, dtype=np.float64).reshape(3, 4) - 5.0
        out = tensor(a) @ tensor(b)
        self.assertEqual(out.shape, (2, 4))
        np.testing.assert_array_equal(out.to_numpy(), a @ b)

    def test_matmul_batched_broadcast(self):
        a = np.arange(12, dtype=np.float64).reshape(2, 2, 3)
        b = np.arange(12, dtype=np.float64).reshape(3, 4)
        out = tensor(a).matmul(tensor(b))
        self.assertEqual(out.shape, (2, 2, 4))
        np.testing.assert_array_equal(out.to_numpy(), a @ b)

    def test_matmul_shape_errors(self):
        with self.assertRaises(ShapeError):
            tensor(np.ones((2, 3))) @ tensor(np.ones((2, 3)))
        with self.assertRaises(ShapeError):
            tensor(np.ones(3)) @ tensor(np.ones((3, 1)))


class TestTensorAccessAndInPlace(_PooledTestCase):
    def test_item(self):
        self.assertEqual(tensor([5.0]).item(), 5.0)
        with self.assertRaises(ShapeError):
            tensor([1.0, 2.0]).item()

    def test_to_numpy_does_not_alias(self):
        t = tensor([1.0, 2.0])
        arr = t.to_numpy()
        arr[0] = 50.0
        self.assertEqual(t.get((0,)), 1.0)

    def test_tolist(self):
        self.assertEqual(tensor([[1.0, 2.0]]).tolist(), [[1.0, 2.0]])

    def test_in_place_updates_on_leaf(self):
        t = tensor([1.0, 2.0])
        t.add_(tensor([1.0, 1.0]), alpha=-0.5)
        np.testing.assert_array_equal(t.to_numpy(), [0.5, 1.5])
        t.fill_(3.0)
        np.testing.assert_array_equal(t.to_numpy(), [3.0, 3.0])
        t.copy_from_numpy([7.0, 8.0])
        np.testing.assert_array_equal(t.to_numpy(), [7.0, 8.0])
        t.set((1,), 0.0)
        self.assertEqual(t.get((1,)), 0.0)
        self.assertIsNone(t.history)

    def test_in_place_rejected_on_non_leaf(self):
        y = tensor([1.0]) * 2
        with self.assertRaises(RuntimeError):
            y.add_(1.0)
        with self.assertRaises(RuntimeError):
            y.fill_(0.0)
        with self.assertRaises(RuntimeError):
            y.set((0,), 1.0)

    def test_copy_from_numpy_checks_shape(self):
        with self.assertRaises(ShapeError):
            tensor([1.0, 2.0]).copy_from_numpy([1.0, 2.0, 3.0])

    def test_detach_shares_storage(self):
        t = tensor([1.0, 2.0])
        d = (t * 2).detach()
        self.assertTrue(d.is_constant())
        np.testing.assert_array_equal(d.to_numpy(), [2.0, 4.0])

    def test_repr(self):
        self.assertIn("shape=(2,)", repr(tensor([1.0, 2.0])))


if __name__ == "__main__":
    unittest.main()
