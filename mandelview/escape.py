"""Escape-time classification of points in the complex plane."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .complex_number import ZERO, Complex


@dataclass(frozen=True)
class Bounded:
    """The orbit stayed within the escape radius for the whole budget."""


@dataclass(frozen=True)
class EscapedAt:
    """The orbit first exceeded the escape radius at zero-based ``iteration``."""

    iteration: int


EscapeClassification = Union[Bounded, EscapedAt]

BOUNDED = Bounded()


@dataclass(frozen=True)
class EscapeStatistics:
    """Summary of the classifications produced by a render pass."""

    bounded: int
    escaped: int
    unique_escape_indices: int
    min_escape: Optional[int]
    max_escape: Optional[int]


def evaluate(c: Complex, max_iterations: int, escape_magnitude: float) -> EscapeClassification:
    """Iterate ``z <- z*z + c`` from zero and classify ``c``.

    The squared magnitude of ``z`` is compared against ``escape_magnitude``
    squared, so the loop never takes a square root. Non-finite inputs still
    terminate after at most ``max_iterations`` steps.
    """

    if max_iterations < 0:
        raise ValueError("max_iterations must be non-negative.")

    threshold = escape_magnitude * escape_magnitude
    z = ZERO
    for i in range(max_iterations):
        z = z * z + c
        if z.squared_magnitude() > threshold:
            return EscapedAt(i)
    return BOUNDED


def classification_to_index(classification: EscapeClassification, max_iterations: int) -> int:
    """Encode a classification as an integer; ``max_iterations`` means bounded."""

    if isinstance(classification, EscapedAt):
        return classification.iteration
    return max_iterations


def index_to_classification(index: int, max_iterations: int) -> EscapeClassification:
    if index >= max_iterations:
        return BOUNDED
    return EscapedAt(int(index))


def escape_statistics(iterations: np.ndarray, max_iterations: int) -> EscapeStatistics:
    inside = iterations >= max_iterations
    escaped_indices = np.unique(iterations[~inside])
    if escaped_indices.size:
        min_escape = int(escaped_indices[0])
        max_escape = int(escaped_indices[-1])
    else:
        min_escape = max_escape = None
    return EscapeStatistics(
        bounded=int(np.count_nonzero(inside)),
        escaped=int(inside.size - np.count_nonzero(inside)),
        unique_escape_indices=int(escaped_indices.size),
        min_escape=min_escape,
        max_escape=max_escape,
    )
