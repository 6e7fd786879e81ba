import math
import unittest

from poolgrad.domain._errors import GradientMissingError, NumericDomainError
from poolgrad.infrastructure.scalar._scalar import Scalar, derivative_check


class TestScalarForward(unittest.TestCase):
    def test_arithmetic_with_literals(self):
        x = Scalar(2.0)
        self.assertEqual((x + 3).data, 5.0)
        self.assertEqual((3 + x).data, 5.0)
        self.assertEqual((x - 0.5).data, 1.5)
        self.assertEqual((10 - x).data, 8.0)
        self.assertEqual((x * 4).data, 8.0)
        self.assertEqual((1 / x).data, 0.5)
        self.assertEqual((x / 4).data, 0.5)
        self.assertEqual((-x).data, -2.0)

    def test_comparisons(self):
        x = Scalar(2.0)
        self.assertEqual((x < 3).data, 1.0)
        self.assertEqual((x > 3).data, 0.0)
        self.assertEqual(x.eq(2.0).data, 1.0)
        self.assertEqual(x.is_close(2.005).data, 1.0)
        self.assertEqual(x.is_close(2.5).data, 0.0)

    def test_unsupported_operands(self):
        x = Scalar(1.0)
        with self.assertRaises(TypeError):
            x + "a"
        with self.assertRaises(TypeError):
            x + True

    def test_domain_errors(self):
        with self.assertRaises(NumericDomainError):
            Scalar(-1.0).log()
        with self.assertRaises(NumericDomainError):
            Scalar(0.0).inv()
        with self.assertRaises(NumericDomainError):
            Scalar(1e-320).inv()
        with self.assertRaises(NumericDomainError):
            Scalar(1000.0).exp()

    def test_literals_are_constant_leaves(self):
        y = Scalar(1.0) + 2.0
        constant = y.parents[1]
        self.assertTrue(constant.is_leaf())
        self.assertTrue(constant.is_constant())
        self.assertFalse(y.is_leaf())

    def test_data_is_read_only_on_non_leaves(self):
        y = Scalar(1.0) * 2
        with self.assertRaises(RuntimeError):
            y.data = 3.0
        with self.assertRaises(RuntimeError):
            y.requires_grad = False


class TestScalarBackward(unittest.TestCase):
    def test_square(self):
        x = Scalar(3.0)
        y = x * x
        y.backward()
        self.assertEqual(x.grad, 6.0)

    def test_diamond_accumulates(self):
        x = Scalar(2.0)
        a = x * 3
        b = x * x
        (a + b).backward()
        self.assertEqual(x.grad, 3.0 + 4.0)

    def test_two_inputs(self):
        x, y = Scalar(2.0), Scalar(5.0)
        (x * y + x).backward()
        self.assertEqual(x.grad, 6.0)
        self.assertEqual(y.grad, 2.0)

    def test_repeated_backward_accumulates_and_zero_grad_resets(self):
        x = Scalar(1.0)
        y = x * 2
        y.backward()
        y.backward()
        self.assertEqual(x.grad, 4.0)
        x.zero_grad_()
        self.assertIsNone(x.grad)
        y.backward()
        self.assertEqual(x.grad, 2.0)

    def test_grad_or_raise(self):
        x = Scalar(1.0)
        with self.assertRaises(GradientMissingError):
            x.grad_or_raise()
        (x * 2).backward()
        self.assertEqual(x.grad_or_raise(), 2.0)

    def test_unreached_leaf_has_no_grad(self):
        x, z = Scalar(1.0), Scalar(5.0)
        (x * 2).backward()
        self.assertIsNone(z.grad)

    def test_leaf_without_requires_grad_is_skipped(self):
        c = Scalar(4.0, requires_grad=False)
        x = Scalar(1.0)
        (x * c).backward()
        self.assertEqual(x.grad, 4.0)
        self.assertIsNone(c.grad)

    def test_comparisons_have_zero_gradient(self):
        x = Scalar(1.0)
        (x < 2).backward()
        self.assertEqual(x.grad, 0.0)

    def test_explicit_seed(self):
        x = Scalar(3.0)
        (x * x).backward(0.5)
        self.assertEqual(x.grad, 3.0)

    def test_log_gradient_uses_offset(self):
        x = Scalar(2.0)
        x.log().backward()
        self.assertAlmostEqual(x.grad, 1.0 / (2.0 + 1e-6))
        self.assertAlmostEqual(Scalar(2.0).log().data, math.log(2.0 + 1e-6))


class TestScalarFiniteDifferences(unittest.TestCase):
    def check(self, f, *values):
        derivative_check(f, *(Scalar(v) for v in values), atol=1e-4)

    def test_unary_ops(self):
        self.check(lambda a: a.sigmoid(), 0.3)
        self.check(lambda a: a.sigmoid(), -4.0)
        self.check(lambda a: a.exp(), 0.7)
        self.check(lambda a: a.log(), 1.7)
        self.check(lambda a: a.inv(), 1.3)
        self.check(lambda a: a.relu(), 0.8)
        self.check(lambda a: a.relu(), -0.8)
        self.check(lambda a: a.leaky_relu(), -0.8)
        self.check(lambda a: -a, 0.8)

    def test_binary_ops(self):
        self.check(lambda a, b: a * b, 1.5, -2.0)
        self.check(lambda a, b: a + b, 1.5, -2.0)
        self.check(lambda a, b: a - b, 1.5, -2.0)
        self.check(lambda a, b: a / b, 1.5, -2.0)

    def test_composite(self):
        self.check(lambda a, b: (a * b + a.exp()).sigmoid() * b.log(), 0.4, 2.2)
        self.check(lambda a, b: (a * a - b).relu() / (b + 3), 2.0, 1.0)

    def test_failing_check_raises(self):
        x = Scalar(1.0)

        def f(a):
            # discontinuous at 1.0: gradient is zero, numeric slope is huge
            return a.lt(1.0) * 1000.0

        with self.assertRaises(AssertionError):
            derivative_check(f, x)


if __name__ == "__main__":
    unittest.main()
