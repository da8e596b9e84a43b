from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int) -> float:
    """
    Round to `places` decimals with exact ties going up, as the host UI's
    ``toFixed`` does.

    The float's exact binary value decides the tie, so 1.25 becomes 1.3 while
    0.15 (stored just below 0.15) stays 0.1.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
