from decimal import Decimal, ROUND_HALF_UP


def fraction_to_pct(value: float) -> int:
    """
    Convert a 0.0-1.0 fraction into a whole percentage.

    Rounds half up (0.755 -> 76) and clamps into 0..100. The fraction is
    rounded from its shortest decimal repr so float noise never flips a .5.
    """
    pct = (Decimal(repr(float(value))) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


def format_number(value: float) -> str:
    """Render a reading the way it came from the device: 225.0 -> '225', 72.5 -> '72.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)
