"""Bezier curve fitting over control points."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import replace

from fieldplan.node import Node


def factorial(a: int) -> int:
    """Return ``a!``; raise ``ValueError`` for negative input."""
    if a < 0:
        raise ValueError("a < 0")
    return math.factorial(a)


def n_choose_k(n: int, a: int) -> int:
    """Binomial coefficient ``n`` choose ``a``; raise ``ValueError`` if ``a > n``."""
    if a > n:
        raise ValueError("a > n")
    return factorial(n) // (factorial(n - a) * factorial(a))


def _bernstein(degree: int, t: float) -> list[float]:
    return [
        n_choose_k(degree, j) * (1 - t) ** (degree - j) * t**j
        for j in range(degree + 1)
    ]


def bezier_curve_fit(pts: Iterable[Node]) -> list[Node]:
    """Sample the Bezier curve of ``pts`` at as many evenly spaced parameters.

    Each output node keeps the heading of its source node, except that every
    node after the first gets the heading of the segment leading to it.
    """
    points = list(pts)
    if not points:
        return []
    degree = len(points) - 1
    if degree == 0:
        return [replace(points[0])]

    fitted = []
    for i, source in enumerate(points):
        weights = _bernstein(degree, i / degree)
        x = sum(w * p.x for w, p in zip(weights, points))
        y = sum(w * p.y for w, p in zip(weights, points))
        fitted.append(replace(source, x=x, y=y))

    for prev, cur in zip(fitted, fitted[1:]):
        cur.orien = math.atan2(cur.y - prev.y, cur.x - prev.x)
    return fitted


def one_d_bezier_curve_fit(control_pts: Sequence[float], total: int = 500) -> list[float]:
    """Sample a one-dimensional Bezier curve at ``total`` evenly spaced parameters."""
    if total < 2:
        raise ValueError("total must be at least 2")
    values = list(control_pts)
    degree = len(values) - 1
    step = 1.0 / (total - 1)
    samples = []
    for j in range(total):
        weights = _bernstein(degree, step * j)
        samples.append(sum(w * v for w, v in zip(weights, values)))
    return samples