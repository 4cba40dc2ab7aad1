# ScientificEngine
"""""
Native numeric functions behind the registered operators and functions.

Everything here works on plain floats and follows IEEE double semantics:
a domain problem gives NaN, an overflow gives +/-inf. Python's math module
raises instead, so each wrapper catches the specific error and returns the
IEEE value.
"""""
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext


# Digits beyond this are below double precision, rounding leaves the value unchanged
MAX_ROUND_DIGITS = 15


def square_root(value):
    if value < 0:
        return math.nan
    return math.sqrt(value)


def maximum(first, second):
    if math.isnan(first) or math.isnan(second):
        return math.nan
    return first if first >= second else second


def log_10(value):
    if value == 0:
        return -math.inf
    if value < 0 or math.isnan(value):
        return math.nan
    return math.log10(value)


def round_away_from_zero(value, digits):
    """Round value to `digits` decimal places, ties away from zero.

    The digit count is truncated toward zero. Negative counts round left of the
    decimal point (round(1250, -2) == 1300).
    """
    if math.isnan(digits) or math.isinf(digits):
        return math.nan
    if math.isnan(value) or math.isinf(value):
        return value

    digits = int(digits)
    if digits > MAX_ROUND_DIGITS:
        return value
    if digits < -308:
        return math.copysign(0.0, value)

    # repr gives the shortest string that round-trips, so 2.675 stays 2.675
    with localcontext() as context:
        context.prec = 400
        rounding_pattern = Decimal(1).scaleb(-digits)
        rounded = Decimal(repr(value)).quantize(rounding_pattern, rounding=ROUND_HALF_UP)
    return float(rounded)


# -----------------------------
# Operator arithmetic
# -----------------------------

def divide(dividend, divisor):
    if divisor == 0:
        if dividend == 0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)
    return dividend / divisor


def modulo(dividend, divisor):
    """Python float remainder: the result takes the sign of the divisor."""
    if divisor == 0 or math.isinf(dividend):
        return math.nan
    return dividend % divisor


def power(base, exponent):
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and float(exponent).is_integer() and exponent % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # math.pow raises for 0 ** negative and negative ** fractional
        if base == 0:
            if float(exponent).is_integer() and exponent % 2 == 1:
                return math.copysign(math.inf, base)
            return math.inf
        return math.nan
