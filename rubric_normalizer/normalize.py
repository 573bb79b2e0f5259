"""
Core rubric weight normalization lives here.

Responsibilities (v1):
- raw weight clamping + defaulting
- zero-sum uniform fallback
- proportional scaling with remainder on the last entry
- bounded convergence passes
- negative deficit redistribution
- adjustment reporting
"""

from __future__ import annotations

import logging
import math
import numbers
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .rules import (
    DEFAULT_MISSING_WEIGHT,
    MAX_PASSES,
    PRECISION,
    SUM_TOLERANCE,
    TARGET_SUM,
)

logger = logging.getLogger(__name__)

Pair = Tuple[Any, Any]


def _round(value: float) -> float:
    # adding 0.0 turns -0.0 into 0.0
    return round(value, PRECISION) + 0.0


def _total(weights: Sequence[float]) -> float:
    return math.fsum(weights)


def _within_tolerance(weights: Sequence[float]) -> bool:
    return abs(_total(weights) - TARGET_SUM) <= SUM_TOLERANCE


def _converged(weights: Sequence[float]) -> bool:
    return _within_tolerance(weights) and all(w >= 0 for w in weights)


def _already_valid(weights: Sequence[float]) -> bool:
    return _converged(weights) and all(w == _round(w) for w in weights)


def _is_number(raw: Any) -> bool:
    return isinstance(raw, numbers.Real) and not isinstance(raw, bool)


def _fraction(value: Any) -> Fraction:
    # Fraction() only takes Rational and float; other Reals (numpy.float32, ...) go through float
    if isinstance(value, (numbers.Rational, float)):
        return Fraction(value)
    return Fraction(float(value))


def _warning(index: int, label: Any, issue: str, value: Any, action: str) -> Dict[str, Any]:
    return {
        "row": index,
        "column": None if label is None else str(label),
        "issue": issue,
        "value": None if value is None else str(value),
        "action": action,
    }


def clamp_default_weight(default_weight: Any) -> float:
    """Bring a configured default into [0, 1]; unusable values fall back to the rule default."""
    if not _is_number(default_weight) or default_weight != default_weight:
        return DEFAULT_MISSING_WEIGHT
    return float(min(1.0, max(0.0, default_weight)))


def clamp_weights(
    raw_weights: Sequence[Any],
    labels: Sequence[Any],
    default_weight: float,
) -> tuple[List[float], float, List[Dict[str, Any]]]:
    """
    Map untrusted raw weights onto [0, 1].

    Rules:
    - None -> default weight ("missing").
    - Non-numeric values, booleans and NaN -> default weight.
    - Negative numbers (and -inf) -> 0.
    - If any finite weight exceeds 1, every finite positive weight is divided
      by the largest one, so that a set like 2/1/1 or 40/30/20/10 keeps its
      proportions instead of collapsing to 1/1/1.
    - +inf -> 1.
    - An explicit 0 stays 0.

    Returns (clamped, range_scale, warnings).
    """
    warnings: List[Dict[str, Any]] = []
    values: List[Optional[float]] = []

    for index, raw in enumerate(raw_weights):
        label = labels[index]
        if raw is None:
            values.append(None)
            warnings.append(_warning(index, label, "weight_missing", raw, f"defaulted_to_{default_weight}"))
        elif not _is_number(raw) or raw != raw:
            values.append(None)
            warnings.append(_warning(index, label, "weight_not_numeric", raw, f"defaulted_to_{default_weight}"))
        elif raw < 0:
            values.append(0.0)
            warnings.append(_warning(index, label, "weight_below_range", raw, "clamped_to_0"))
        elif raw == math.inf:
            values.append(math.inf)
            warnings.append(_warning(index, label, "weight_above_range", raw, "clamped_to_1"))
        else:
            values.append(raw)

    finite = [v for v in values if v is not None and v != math.inf]
    peak = max(finite, default=0)
    range_scale = 1.0
    if peak > 1:
        # Fraction keeps huge integers out of float overflow
        range_scale = float(1 / _fraction(peak))

    clamped: List[float] = []
    for index, value in enumerate(values):
        if value is None:
            clamped.append(default_weight)
        elif value == math.inf:
            clamped.append(1.0)
        elif peak > 1:
            scaled = float(_fraction(value) / _fraction(peak))
            if value > 1:
                warnings.append(_warning(index, labels[index], "weight_above_range", value, f"rescaled_to_{_round(scaled)}"))
            clamped.append(scaled)
        else:
            clamped.append(float(value))

    warnings.sort(key=lambda w: w["row"])
    return clamped, range_scale, warnings


def uniform_weights(count: int) -> List[float]:
    """Equal shares for every entry, the last one taking what rounding left over."""
    if count <= 0:
        return []
    share = _round(TARGET_SUM / count)
    head = [share] * (count - 1)
    return head + [_round(TARGET_SUM - _total(head))]


def scale_pass(weights: Sequence[float]) -> List[float]:
    """
    One convergence pass: scale every entry but the last by 1 / sum, then give
    the last entry the remainder. Negative inputs count as 0.
    """
    positive = [max(0.0, w) for w in weights]
    total = _total(positive)
    if total <= 0:
        return uniform_weights(len(positive))

    # w / total stays finite even when total is subnormal
    head = [_round(TARGET_SUM * (w / total)) for w in positive[:-1]]
    return head + [_round(TARGET_SUM - _total(head))]


def settle_deficit(weights: Sequence[float]) -> tuple[List[float], float]:
    """
    Zero out negative weights and take the missing amount from the largest
    entries (first occurrence on ties), never pushing any entry below zero.

    Returns (settled, deficit).
    """
    deficit = _round(-_total([w for w in weights if w < 0]))
    settled = [max(0.0, w) for w in weights]

    remaining = deficit
    while remaining > 0:
        idx = max(range(len(settled)), key=settled.__getitem__)
        if settled[idx] <= 0:
            break
        take = min(remaining, settled[idx])
        settled[idx] = _round(settled[idx] - take)
        remaining = _round(remaining - take)

    return settled, deficit


def normalize_with_report(
    weights: Sequence[Pair],
    default_weight: Any = DEFAULT_MISSING_WEIGHT,
) -> tuple[List[Tuple[Any, float]], Dict[str, Any]]:
    """
    Normalize an ordered sequence of (label, raw_weight) pairs.

    Output weights are non-negative, rounded to PRECISION decimals and sum to
    TARGET_SUM within SUM_TOLERANCE. Labels and order are kept. Never raises
    for any weight value.

    Returns (pairs, report) where report matches the API's report envelope.
    """
    items = list(weights)
    labels = [label for label, _ in items]
    raw_weights = [raw for _, raw in items]
    default = clamp_default_weight(default_weight)

    clamped, range_scale, warnings = clamp_weights(raw_weights, labels, default)
    input_sum = _total(clamped)

    passes = 0
    deficit = 0.0
    count = len(clamped)

    if count == 0:
        fallback = "none"
        result: List[float] = []
    elif count == 1:
        fallback = "singleton"
        result = [TARGET_SUM]
    elif _already_valid(clamped):
        fallback = "already_valid"
        result = [_round(w) for w in clamped]
    else:
        if input_sum == 0:
            fallback = "uniform"
            logger.debug("All %d weights are zero, distributing uniformly", count)
            result = uniform_weights(count)
        else:
            fallback = "none"
            result = scale_pass(clamped)
        passes = 1

        while passes < MAX_PASSES and not _converged(result):
            result = scale_pass(result)
            passes += 1

        if any(w < 0 for w in result):
            for index, w in enumerate(result):
                if w < 0:
                    warnings.append(_warning(index, labels[index], "weight_negative_after_rounding", w, "clamped_to_0"))
            result, deficit = settle_deficit(result)
            logger.debug("Redistributed a rounding deficit of %s after %d passes", deficit, passes)

    report = {
        "summary": {
            "criteria": count,
            "warnings": len(warnings),
            "passes": passes,
            "fallback": fallback,
            "deterministic": True,
        },
        "normalizations": {
            "default_weight": default,
            "precision": PRECISION,
            "tolerance": SUM_TOLERANCE,
            "max_passes": MAX_PASSES,
            "range_scale": range_scale,
            "input_sum": input_sum,
            "output_sum": _round(_total(result)),
            "deficit_redistributed": deficit,
        },
        "warnings": warnings,
    }

    return list(zip(labels, result)), report


def normalize_weights(
    weights: Sequence[Pair],
    default_weight: Any = DEFAULT_MISSING_WEIGHT,
) -> List[Tuple[Any, float]]:
    """Normalize (label, raw_weight) pairs; see normalize_with_report."""
    normalized, _ = normalize_with_report(weights, default_weight)
    return normalized
