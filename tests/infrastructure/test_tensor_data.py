import unittest

import numpy as np

from poolgrad.domain._errors import ShapeError
from poolgrad.infrastructure.tensor._pool import StoragePool
from poolgrad.infrastructure.tensor._tensor_data import (
    TensorData,
    broadcast_index,
    index_to_position,
    shape_broadcast,
    shape_product,
    strides_from_shape,
    to_index,
)


class TestShapeHelpers(unittest.TestCase):
    def test_shape_product(self):
        self.assertEqual(shape_product((2, 3, 4)), 24)
        self.assertEqual(shape_product(()), 1)
        self.assertEqual(shape_product((3, 0)), 0)

    def test_strides_from_shape(self):
        self.assertEqual(strides_from_shape((2, 3, 4)), (12, 4, 1))
        self.assertEqual(strides_from_shape(()), ())

    def test_to_index_round_trips_position(self):
        shape = (2, 3, 4)
        strides = strides_from_shape(shape)
        out = [0, 0, 0]
        for ordinal in range(shape_product(shape)):
            to_index(ordinal, shape, out)
            self.assertEqual(index_to_position(out, strides), ordinal)

    def test_shape_broadcast(self):
        self.assertEqual(shape_broadcast((2, 1, 3), (4, 3)), (2, 4, 3))
        self.assertEqual(shape_broadcast((1,), (5,)), (5,))
        self.assertEqual(shape_broadcast((), (2, 3)), (2, 3))
        self.assertEqual(shape_broadcast((3, 1), (1, 4)), (3, 4))

    def test_shape_broadcast_matches_numpy(self):
        for a, b in [((5, 1, 4), (3, 1)), ((1,), (2, 2)), ((6, 1), (1, 1, 7))]:
            self.assertEqual(shape_broadcast(a, b), np.broadcast_shapes(a, b))

    def test_shape_broadcast_mismatch(self):
        with self.assertRaises(ShapeError):
            shape_broadcast((2, 3), (3, 2))

    def test_broadcast_index(self):
        out = [0, 0]
        broadcast_index((1, 2, 2), (2, 4, 3), (1, 3), out)
        self.assertEqual(out, [0, 2])


class TestTensorData(unittest.TestCase):
    def setUp(self):
        self.pool = StoragePool()
        self.pool.__enter__()

    def tearDown(self):
        self.pool.__exit__(None, None, None)

    def _arange(self, *shape):
        return TensorData.from_numpy(np.arange(shape_product(shape), dtype=np.float64).reshape(shape))

    def test_zeros(self):
        d = TensorData.zeros((2, 3))
        self.assertEqual(d.shape, (2, 3))
        self.assertEqual(d.strides, (3, 1))
        self.assertEqual(d.size, 6)
        np.testing.assert_array_equal(d.to_numpy(), np.zeros((2, 3)))

    def test_get_and_set(self):
        d = TensorData.zeros((2, 3))
        d.set((1, 2), 5.0)
        self.assertEqual(d.get((1, 2)), 5.0)
        self.assertEqual(d.storage[5], 5.0)

    def test_index_out_of_range(self):
        d = TensorData.zeros((2, 3))
        with self.assertRaises(ShapeError):
            d.get((2, 0))
        with self.assertRaises(ShapeError):
            d.get((0, -1))

    def test_index_wrong_rank(self):
        d = TensorData.zeros((2, 3))
        with self.assertRaises(ShapeError):
            d.get((1,))

    def test_strides_length_must_match(self):
        with self.assertRaises(ShapeError):
            TensorData(np.zeros(6), (2, 3), (1,))

    def test_indices_row_major(self):
        d = TensorData.zeros((2, 2))
        self.assertEqual(list(d.indices()), [(0, 0), (0, 1), (1, 0), (1, 1)])

    def test_permute_is_view(self):
        arr = np.arange(6, dtype=np.float64).reshape(2, 3)
        d = TensorData.from_numpy(arr)
        p = d.permute(1, 0)
        self.assertEqual(p.shape, (3, 2))
        self.assertEqual(p.strides, (1, 3))
        self.assertIs(p.storage, d.storage)
        self.assertIs(p.owner, d)
        self.assertEqual(p.get((2, 1)), 5.0)
        np.testing.assert_array_equal(p.to_numpy(), arr.T)
        self.assertFalse(p.is_contiguous())

    def test_permute_rejects_invalid_order(self):
        d = TensorData.zeros((2, 3))
        with self.assertRaises(ShapeError):
            d.permute(0, 0)
        with self.assertRaises(ShapeError):
            d.permute(0)

    def test_view(self):
        d = self._arange(2, 3)
        v = d.view(3, 2)
        self.assertIs(v.owner, d)
        np.testing.assert_array_equal(v.to_numpy(), np.arange(6).reshape(3, 2))

    def test_view_rejects_size_change(self):
        with self.assertRaises(ShapeError):
            TensorData.zeros((2, 3)).view(4, 2)

    def test_view_requires_contiguous(self):
        with self.assertRaises(ShapeError):
            self._arange(2, 3).permute(1, 0).view(6)

    def test_size_one_dims_do_not_break_contiguity(self):
        d = TensorData(np.zeros(3), (1, 3), (99, 1))
        self.assertTrue(d.is_contiguous())

    def test_view_array_is_read_only(self):
        d = self._arange(2, 2)
        with self.assertRaises(ValueError):
            d.view_array()[0, 0] = 1.0

    def test_view_array_broadcasts(self):
        d = self._arange(1, 3)
        arr = d.view_array((2, 3))
        np.testing.assert_array_equal(arr, [[0, 1, 2], [0, 1, 2]])
        with self.assertRaises(ShapeError):
            d.view_array((2, 4))

    def test_write_array_follows_strides(self):
        d = TensorData.zeros((2, 3))
        d.permute(1, 0).write_array()[2, 0] = 7.0
        self.assertEqual(d.get((0, 2)), 7.0)

    def test_to_numpy_copies(self):
        d = self._arange(2, 2)
        out = d.to_numpy()
        out[0, 0] = 100.0
        self.assertEqual(d.get((0, 0)), 0.0)


if __name__ == "__main__":
    unittest.main()
