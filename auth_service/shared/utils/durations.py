# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Parsing of compact duration strings such as ``15m``, ``1d`` or ``3600``."""

from __future__ import annotations

import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 60 * 60 * 24,
    "w": 60 * 60 * 24 * 7,
}


def parse_duration(value: str | int | timedelta) -> timedelta:
    """Return ``value`` as a positive :class:`timedelta`.

    Bare integers are seconds. Strings take an optional unit suffix
    (``ms``, ``s``, ``m``, ``h``, ``d``, ``w``).
    """

    if isinstance(value, timedelta):
        result = value
    elif isinstance(value, int):
        result = timedelta(seconds=value)
    else:
        match = _DURATION_RE.match(value)
        if not match:
            raise ValueError(f"invalid duration: {value!r}")
        amount, unit = match.groups()
        result = timedelta(seconds=int(amount) * _UNIT_SECONDS[(unit or "s").lower()])

    if result <= timedelta(0):
        raise ValueError(f"duration must be positive: {value!r}")
    return result


__all__ = ["parse_duration"]
