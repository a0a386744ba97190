"""
Items API — Input Coercion Rules
=================================

What:  Explicit coercion of query parameters and insert payload fields.
Why:   The API never rejects a bad number: `limit=abc` lists 20 rows,
       `n=99999` runs 1000 iterations, `{"value": "x"}` stores 0. Each rule
       lives in one function that returns a `Coerced` result saying which
       value was used, whether it was a fallback, and why.
How:   Pure functions, no I/O. Routes call them and log `reason` at DEBUG
       when `defaulted` is set.

Rules:
    limit  leading integer of the raw string; missing, non-numeric or <= 0
           → 20; above 500 → 500
    n      any numeric string; missing or NaN → 20; truncated toward zero,
           clamped to [1, 1000]
    mode   lowercased; "insert" writes, any other value runs selects and is
           reported back as given
    title  any JSON string (the empty string included); otherwise "item"
    value  finite number or numeric string; otherwise 0
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 500

DEFAULT_BENCH_COUNT = 20
MAX_BENCH_COUNT = 1000

BENCH_MODES = ("select", "insert")
DEFAULT_BENCH_MODE = "select"

DEFAULT_TITLE = "item"
DEFAULT_VALUE = 0.0

_LEADING_INT_RE = re.compile(r"^\s*([+-]?)(\d+)")


@dataclass(frozen=True)
class Coerced(Generic[T]):
    """Outcome of a coercion: the value to use and, if defaulted, why."""

    value: T
    defaulted: bool = False
    reason: Optional[str] = None


def parse_limit(raw: Optional[str]) -> Coerced[int]:
    """Row limit for the list endpoint."""
    if raw is None or raw == "":
        return Coerced(DEFAULT_LIMIT, True, "missing")
    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return Coerced(DEFAULT_LIMIT, True, f"not a number: {raw!r}")
    sign, digits = match.groups()
    digits = digits.lstrip("0") or "0"
    # Longer digit runs are out of range whatever they spell; int() would
    # also refuse strings past the interpreter's digit limit
    if len(digits) > len(str(MAX_LIMIT)):
        if sign == "-":
            return Coerced(DEFAULT_LIMIT, True, "not positive")
        return Coerced(MAX_LIMIT, True, f"clamped from {len(digits)}-digit value")
    limit = int(sign + digits)
    if limit <= 0:
        return Coerced(DEFAULT_LIMIT, True, f"not positive: {limit}")
    if limit > MAX_LIMIT:
        return Coerced(MAX_LIMIT, True, f"clamped from {limit}")
    return Coerced(limit)


def parse_bench_count(raw: Optional[str]) -> Coerced[int]:
    """Iteration count for the benchmark endpoint."""
    if raw is None or raw.strip() == "":
        return Coerced(DEFAULT_BENCH_COUNT, True, "missing")
    try:
        number = float(raw)
    except ValueError:
        return Coerced(DEFAULT_BENCH_COUNT, True, f"not a number: {raw!r}")
    if math.isnan(number):
        return Coerced(DEFAULT_BENCH_COUNT, True, "not a number: nan")

    clamped = min(float(MAX_BENCH_COUNT), max(1.0, number))
    count = int(clamped)
    if count != number:
        return Coerced(count, True, f"clamped from {raw.strip()}")
    return Coerced(count)


def parse_bench_mode(raw: Optional[str]) -> Coerced[str]:
    """Benchmark operation kind."""
    if not raw:
        return Coerced(DEFAULT_BENCH_MODE, True, "missing")
    mode = raw.lower()
    if mode not in BENCH_MODES:
        # Echoed back as given (lowercased); the loop runs selects
        return Coerced(mode, True, f"unknown mode {raw!r} runs {DEFAULT_BENCH_MODE}")
    return Coerced(mode)


def coerce_title(raw: Any) -> Coerced[str]:
    """Item title from the insert payload."""
    if isinstance(raw, str):
        return Coerced(raw)
    if raw is None:
        return Coerced(DEFAULT_TITLE, True, "missing")
    return Coerced(DEFAULT_TITLE, True, f"not a string: {type(raw).__name__}")


def coerce_value(raw: Any) -> Coerced[float]:
    """Item value from the insert payload; always finite."""
    if raw is None:
        return Coerced(DEFAULT_VALUE, True, "missing")

    try:
        if isinstance(raw, (bool, int, float)):
            number = float(raw)
        elif isinstance(raw, str):
            stripped = raw.strip()
            if stripped == "":
                return Coerced(DEFAULT_VALUE, True, "empty string")
            number = float(stripped)
        else:
            return Coerced(DEFAULT_VALUE, True, f"not a number: {type(raw).__name__}")
    except ValueError:
        return Coerced(DEFAULT_VALUE, True, f"not a number: {raw!r}")
    except OverflowError:
        # JSON integers beyond float range
        return Coerced(DEFAULT_VALUE, True, "not finite: integer out of float range")

    if not math.isfinite(number):
        return Coerced(DEFAULT_VALUE, True, f"not finite: {raw!r}")
    return Coerced(number)
