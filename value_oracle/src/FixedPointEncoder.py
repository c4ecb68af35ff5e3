"""FixedPointEncoder: Decimal values to on-chain unsigned integers.

Contracts store prices as integers scaled by ``10**decimals``. The value is
first formatted to exactly ``decimals`` fractional digits, then the decimal
point is dropped, so no binary floating-point product is ever taken.

.. code-block:: python

    >>> encode(65000.12, 8)
    6500012000000
    >>> decode(6500012000000, 8)
    Decimal('65000.12000000')
"""

from __future__ import annotations

import math
from decimal import Decimal

from .exceptions import EncodingOverflow, InvalidValue

# Number of decimals stored on-chain for prices.
DEFAULT_DECIMALS = 8

# Width of the contract's integer field.
UINT256_BITS = 256


def max_unsigned(bits: int = UINT256_BITS) -> int:
    """Largest value of an unsigned integer of the given width."""
    return (1 << bits) - 1


def _check_number(value: object) -> None:
    """Reject values that cannot be stored as an unsigned integer.

    :raises InvalidValue: If value is not a finite, non-negative number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidValue(f"Value is not a number: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidValue(f"Value is not finite: {value!r}")
    if isinstance(value, Decimal) and not value.is_finite():
        raise InvalidValue(f"Value is not finite: {value!r}")
    if value < 0:
        raise InvalidValue(f"Value is negative: {value!r}")


def _check_width(encoded: int, bits: int) -> int:
    if encoded > max_unsigned(bits):
        raise EncodingOverflow(f"Encoded value {encoded} exceeds uint{bits}")
    return encoded


def encode(
    value: float | int | Decimal,
    decimals: int = DEFAULT_DECIMALS,
    bits: int = UINT256_BITS,
) -> int:
    """Encode a decimal value as a scaled unsigned integer.

    Rounding follows standard decimal string formatting: the value is
    rounded to the nearest representable ``decimals``-digit string.

    :param value: Non-negative finite value.
    :param decimals: Number of fractional digits kept on-chain.
    :param bits: Width of the target integer (default: 256).
    :returns: ``round(value * 10**decimals)``.
    :raises ValueError: If decimals is negative.
    :raises InvalidValue: If value is negative, non-finite or not a number.
    :raises EncodingOverflow: If the result does not fit in ``bits`` bits.
    """
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    _check_number(value)

    if isinstance(value, int):
        return _check_width(value * 10**decimals, bits)

    text = format(value, f".{decimals}f")
    return _check_width(int(text.replace(".", "")), bits)


def encode_raw(value: int, bits: int = UINT256_BITS) -> int:
    """Validate an integer that is stored unscaled (e.g. a random counter).

    :param value: Non-negative integer.
    :param bits: Width of the target integer (default: 256).
    :returns: The value itself.
    :raises InvalidValue: If value is not a non-negative integer.
    :raises EncodingOverflow: If the value does not fit in ``bits`` bits.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"Raw value must be an integer: {value!r}")
    _check_number(value)
    return _check_width(value, bits)


def decode(encoded: int, decimals: int = DEFAULT_DECIMALS) -> Decimal:
    """Return the decimal value a scaled integer stands for.

    :param encoded: Scaled integer as stored on-chain.
    :param decimals: Number of fractional digits.
    :returns: Exact decimal value.
    """
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    return Decimal(f"{encoded}e-{decimals}")
