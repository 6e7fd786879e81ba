import unittest

from poolgrad.domain.utils._weight_initialization import (
    _calculate_fan_in,
    _calculate_fan_in_and_fan_out,
)


class TestFanInFanOut(unittest.TestCase):
    def test_dense_weight(self):
        self.assertEqual(_calculate_fan_in_and_fan_out((3, 4)), (3, 4))

    def test_scalar_shape(self):
        self.assertEqual(_calculate_fan_in_and_fan_out(()), (1, 1))

    def test_vector_shape(self):
        self.assertEqual(_calculate_fan_in_and_fan_out((5,)), (5, 5))

    def test_batched_dense_uses_last_two_dims(self):
        self.assertEqual(_calculate_fan_in_and_fan_out((2, 3, 4)), (3, 4))

    def test_fan_in(self):
        self.assertEqual(_calculate_fan_in((7, 2)), 7)


if __name__ == "__main__":
    unittest.main()
