"""
Module: delivery_engines.apportionment
Responsibility:
    Split a whole-unit quantity across weighted members (a group's original
    line items, weighted by ordered quantity) with a deterministic integer
    rounding rule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - LARGEST_REMAINDER conserves the total exactly: each member gets the
      floor of its exact share, leftover units go to the largest fractional
      remainders, ties to the earlier member.
    - HALF_UP rounds each share to the nearest integer (halves up); the sum
      drifts from the total by at most ``len(weights) - 1`` units.
    - All arithmetic is exact integer arithmetic; no floats.
    - When every weight is zero the quantity is split equally.

Failure modes:
    - ValueError on an empty weight list, a negative weight or a negative
      quantity.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class RoundingMethod(str, Enum):
    """How fractional member shares become whole units."""

    LARGEST_REMAINDER = "largest_remainder"  # Exact, default
    HALF_UP = "half_up"  # Nearest integer per member


def apportion(
    quantity: int,
    weights: Sequence[int],
    method: RoundingMethod = RoundingMethod.LARGEST_REMAINDER,
) -> tuple[int, ...]:
    """
    Apportion ``quantity`` over ``weights``.

    Args:
        quantity: Non-negative whole units to split.
        weights: One non-negative weight per member, in member order.
        method: Rounding rule for fractional shares.

    Returns:
        One share per member, in member order.
    """
    if not weights:
        raise ValueError("Cannot apportion over zero members")
    if quantity < 0:
        raise ValueError(f"Cannot apportion a negative quantity: {quantity}")
    if any(w < 0 for w in weights):
        raise ValueError(f"Weights cannot be negative: {list(weights)}")

    total_weight = sum(weights)
    if total_weight == 0:
        weights = [1] * len(weights)
        total_weight = len(weights)

    if method == RoundingMethod.HALF_UP:
        return tuple(
            (2 * quantity * w + total_weight) // (2 * total_weight) for w in weights
        )

    shares = [quantity * w // total_weight for w in weights]
    remainders = [quantity * w % total_weight for w in weights]
    leftover = quantity - sum(shares)
    by_remainder = sorted(range(len(weights)), key=lambda i: (-remainders[i], i))
    for i in by_remainder[:leftover]:
        shares[i] += 1
    return tuple(shares)
