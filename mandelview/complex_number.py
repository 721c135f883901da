"""Immutable complex value type used by the escape-time evaluator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Union

Operand = Union["Complex", float, int]


@dataclass(frozen=True)
class Complex:
    """A complex number ``re + im*i`` with value semantics.

    Arithmetic accepts another :class:`Complex` or a real scalar on either
    side and always returns a new value.
    """

    re: float
    im: float = 0.0

    @classmethod
    def from_builtin(cls, value: complex) -> Complex:
        return cls(float(value.real), float(value.imag))

    def to_builtin(self) -> complex:
        return complex(self.re, self.im)

    def conjugate(self) -> Complex:
        return Complex(self.re, -self.im)

    def squared_magnitude(self) -> float:
        """Return ``re**2 + im**2`` without taking a square root."""

        return self.re * self.re + self.im * self.im

    def magnitude(self) -> float:
        return math.hypot(self.re, self.im)

    def __neg__(self) -> Complex:
        return Complex(-self.re, -self.im)

    def __add__(self, other: Operand) -> Complex:
        if isinstance(other, Complex):
            return Complex(self.re + other.re, self.im + other.im)
        if isinstance(other, Real):
            return Complex(self.re + other, self.im)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: Operand) -> Complex:
        if isinstance(other, Complex):
            return Complex(self.re - other.re, self.im - other.im)
        if isinstance(other, Real):
            return Complex(self.re - other, self.im)
        return NotImplemented

    def __rsub__(self, other: Operand) -> Complex:
        if isinstance(other, Real):
            return Complex(other - self.re, -self.im)
        return NotImplemented

    def __mul__(self, other: Operand) -> Complex:
        if isinstance(other, Complex):
            return Complex(
                self.re * other.re - self.im * other.im,
                self.re * other.im + self.im * other.re,
            )
        if isinstance(other, Real):
            return Complex(self.re * other, self.im * other)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other: Operand) -> Complex:
        # Dividing by a complex number multiplies by its conjugate and
        # divides by its squared magnitude. Exact zero raises ZeroDivisionError.
        if isinstance(other, Complex):
            return self * other.conjugate() / other.squared_magnitude()
        if isinstance(other, Real):
            return Complex(self.re / other, self.im / other)
        return NotImplemented

    def __rtruediv__(self, other: Operand) -> Complex:
        if isinstance(other, Real):
            return Complex(float(other)) / self
        return NotImplemented


ZERO = Complex(0.0, 0.0)
