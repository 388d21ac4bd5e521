"""
MAJOR.MINOR version arithmetic for revisions.

Versions are parsed from their leading decimal number; a label without one
(e.g. the legacy "A.0") counts as 0. Results are always one-decimal strings.
"""
from __future__ import annotations

import re
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from doccontrol.enum.revision_type import RevisionType

_LEADING_NUMBER = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")
_VERSION_LABEL = re.compile(r"^\d+\.\d+$")
_ONE_DECIMAL = Decimal("0.1")


def parse_version(label: str) -> Decimal:
    m = _LEADING_NUMBER.match(label or "")
    return Decimal(m.group(1)) if m else Decimal(0)


def format_version(value: Decimal) -> str:
    return str(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def is_version_label(label: str) -> bool:
    return bool(_VERSION_LABEL.match(label or ""))


def next_major(label: str) -> str:
    """'1.0' -> '2.0', '1.7' -> '2.0'."""
    current = parse_version(label)
    return format_version(current.to_integral_value(rounding=ROUND_FLOOR) + 1)


def next_minor(label: str) -> str:
    """'1.0' -> '1.1', '2.9' -> '3.0'."""
    return format_version(parse_version(label) + _ONE_DECIMAL)


def next_version(label: str, revision_type: RevisionType) -> str:
    if revision_type == RevisionType.MAJOR:
        return next_major(label)
    return next_minor(label)
