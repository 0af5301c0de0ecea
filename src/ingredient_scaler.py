#!/usr/bin/env python3
"""
Ingredient quantity scaler.
Parses the leading quantity of a free-text ingredient line, multiplies it by a
scale factor and re-renders the line with a readable amount.
"""

import re
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
from dataclasses import dataclass
from fractions import Fraction


# Canonical formatting constants
COMMON_FRACTIONS: Tuple[Fraction, ...] = (
    Fraction(1, 4),
    Fraction(1, 3),
    Fraction(1, 2),
    Fraction(2, 3),
    Fraction(3, 4),
)
FRACTION_TOLERANCE = 0.01
DECIMAL_PLACES = 2
DECIMAL_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)
WHOLE_TOLERANCE = 1e-9

# Quantity grammar, evaluated top-down. ASCII digits only.
MIXED_NUMBER_PATTERN = re.compile(r'^([0-9]+)[ \t]+([0-9]+)/([0-9]+)')
FRACTION_PATTERN = re.compile(r'^([0-9]+)/([0-9]+)')
DECIMAL_PATTERN = re.compile(r'^([0-9]+(?:\.[0-9]+)?)')


@dataclass(frozen=True)
class QuantityToken:
    """Leading quantity of an ingredient line."""
    text: str
    value: float
    end: int


def parse_quantity(line: str) -> Optional[QuantityToken]:
    """
    Parse the quantity token at the very start of an ingredient line.

    Args:
        line: Ingredient line, e.g. "1 1/2 cups flour"

    Returns:
        Parsed token, or None when the line has no usable leading quantity
    """
    try:
        match = MIXED_NUMBER_PATTERN.match(line)
        if match:
            whole, numerator, denominator = (int(group) for group in match.groups())
            if denominator == 0:
                return None
            return QuantityToken(match.group(0), float(whole + Fraction(numerator, denominator)), match.end())

        match = FRACTION_PATTERN.match(line)
        if match:
            numerator, denominator = (int(group) for group in match.groups())
            if denominator == 0:
                return None
            return QuantityToken(match.group(0), float(Fraction(numerator, denominator)), match.end())
    except (OverflowError, ValueError):
        # Digit groups too long for an int or too large for a float
        return None

    match = DECIMAL_PATTERN.match(line)
    if match:
        return QuantityToken(match.group(0), float(match.group(1)), match.end())

    return None


def _match_common_fraction(remainder: float) -> Optional[Fraction]:
    for fraction in COMMON_FRACTIONS:
        if abs(remainder - float(fraction)) < FRACTION_TOLERANCE:
            return fraction
    return None


def format_amount(amount: float) -> str:
    """
    Format a finite amount for display.

    Whole numbers render without a decimal point, remainders close to a
    common fraction render as "<whole> <n>/<d>", anything else falls back to
    a decimal with trailing zeros stripped.

    Args:
        amount: Scaled amount

    Returns:
        Display string such as "3", "1 1/2", "3/4" or "2.15"
    """
    if amount < 0:
        formatted = format_amount(-amount)
        return formatted if formatted == "0" else f"-{formatted}"

    nearest = round(amount)
    if abs(amount - nearest) < WHOLE_TOLERANCE:
        return str(int(nearest))

    whole = math.floor(amount)
    fraction = _match_common_fraction(amount - whole)
    if fraction is not None:
        fraction_text = f"{fraction.numerator}/{fraction.denominator}"
        return f"{whole} {fraction_text}" if whole else fraction_text

    rounded = Decimal(amount).quantize(DECIMAL_QUANTUM, rounding=ROUND_HALF_UP)
    return f"{rounded:f}".rstrip('0').rstrip('.')


def scale_ingredient(line: str, factor: float) -> str:
    """
    Scale the leading quantity of an ingredient line.

    Lines without a leading quantity are returned unchanged, as are lines
    whose quantity cannot be scaled to a finite number. The factor is not
    clamped: zero renders "0" and negative factors render a signed amount.

    Args:
        line: Ingredient line
        factor: Scale factor

    Returns:
        Ingredient line with the scaled amount and the original trailing text
    """
    token = parse_quantity(line)
    if token is None:
        return line

    scaled_amount = token.value * factor
    if not math.isfinite(scaled_amount):
        return line

    return f"{format_amount(scaled_amount)}{line[token.end:]}"
