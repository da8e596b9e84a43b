from typing import Optional

from hwasanscore.core.rules import (
    BAND_ORDER,
    PRACTICAL,
    STANDARD,
    Thresholds,
    category_for,
    thresholds_for_category,
)


PASS_BAND = "P"


def band_rank(band: str) -> int:
    try:
        return BAND_ORDER.index(band)
    except ValueError as exc:
        raise ValueError(f"Unsupported achievement band: {band}") from exc


def classify(raw_score: float, category: str = STANDARD, thresholds: Optional[Thresholds] = None) -> str:
    table = thresholds or thresholds_for_category(category)
    score = max(0.0, min(float(raw_score), 100.0))
    for min_score, band in table.cutoffs:
        if score >= min_score:
            return band
    return table.cutoffs[-1][1]
