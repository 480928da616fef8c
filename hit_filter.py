"""E-value filtering of parsed tblout hits."""

from typing import Iterable, Iterator

from constants import DEFAULT_EVALUE_THRESHOLD
from tblout_parser import Hit


def passes_threshold(hit: Hit, threshold: float = DEFAULT_EVALUE_THRESHOLD) -> bool:
    """Inclusive: a hit exactly at the threshold is kept."""
    return hit.e_value <= threshold


def filter_hits(hits: Iterable[Hit], threshold: float = DEFAULT_EVALUE_THRESHOLD) -> Iterator[Hit]:
    for hit in hits:
        if passes_threshold(hit, threshold):
            yield hit
