"""
RIP Substitution Bias Detection

Scores every reference column of a pseudo-multiple alignment and reverts
the genome base where the column shows a RIP-like transition bias.

Per column:
    depth = a + c + g + t          (gaps, n and ambiguity codes excluded)
    ct = (c + t) / depth           ag = (a + g) / depth
    ac = (a + c) / depth           gt = (g + t) / depth
    bias = max(ct, ag) / max(ac, gt)

A column is corrected when depth > min_depth and bias > min_ratio:
    ct >= ag  ->  genome 't' reverted to 'c'   (label "t->c")
    ct <  ag  ->  genome 'a' reverted to 'g'   (label "a->g")

The genome base must currently hold the expected pre-correction base,
otherwise nothing is written and no call is reported.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .composition import A, ALPHABET, C, G, GAP, T, encode
from .sequence_store import SequenceStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_DEPTH = 10
DEFAULT_MIN_RATIO = 1.0

# (observed genome base, corrected base, label)
TC_CORRECTION = ("t", "c", "t->c")
AG_CORRECTION = ("a", "g", "a->g")


@dataclass
class SiteCall:
    """A corrected genome position."""
    seq_id: str
    position: int  # 0-based
    label: str
    bias: float

    def to_line(self) -> str:
        return "\t".join([
            self.seq_id,
            str(self.position),
            str(self.position + 1),
            self.label,
            f"{self.bias:.4f}",
        ])


def encode_alignment(rows: Sequence[str]) -> np.ndarray:
    """Encode equal-length rows into a (rows x columns) code matrix."""
    if not rows:
        return np.zeros((0, 0), dtype=np.uint8)
    return np.vstack([encode(row) for row in rows])


def column_counts(codes: np.ndarray) -> np.ndarray:
    """Tally matrix of shape (len(ALPHABET), columns)."""
    return np.stack([(codes == index).sum(axis=0) for index in range(len(ALPHABET))])


def depth(counts: np.ndarray) -> int:
    return int(counts[A] + counts[C] + counts[G] + counts[T])


def bias_ratio(counts: np.ndarray) -> Optional[float]:
    """
    Transition/transversion contrast for one column tally.

    Returns None for an empty column or when both a+c and g+t are zero.
    """
    total = depth(counts)
    if total == 0:
        return None
    ct = (counts[C] + counts[T]) / total
    ag = (counts[A] + counts[G]) / total
    ac = (counts[A] + counts[C]) / total
    gt = (counts[G] + counts[T]) / total
    denominator = max(ac, gt)
    if denominator == 0:
        return None
    return float(max(ct, ag) / denominator)


def choose_correction(counts: np.ndarray) -> Tuple[str, str, str]:
    if counts[C] + counts[T] >= counts[A] + counts[G]:
        return TC_CORRECTION
    return AG_CORRECTION


def reference_sites(codes: np.ndarray) -> Iterator[Tuple[int, int]]:
    """
    Yield ``(offset, column)`` for every column where row 0 is not a gap.

    ``offset`` counts reference bases from the left, so it maps onto
    increasing genome positions.
    """
    if codes.size == 0:
        return
    reference = codes[0]
    offset = 0
    for column in range(codes.shape[1]):
        if reference[column] == GAP:
            continue
        yield offset, column
        offset += 1


class BiasDetector:
    def __init__(self, min_depth: int = DEFAULT_MIN_DEPTH, min_ratio: float = DEFAULT_MIN_RATIO):
        self.min_depth = min_depth
        self.min_ratio = min_ratio
        self.sites_scored = 0

    @classmethod
    def from_config(cls, config: dict) -> 'BiasDetector':
        bias = config.get("bias", {})
        return cls(
            min_depth=int(bias.get("min_depth", DEFAULT_MIN_DEPTH)),
            min_ratio=float(bias.get("min_ratio", DEFAULT_MIN_RATIO)),
        )

    def scan(self, seq_id: str, start: int, rows: Sequence[str], store: SequenceStore) -> List[SiteCall]:
        """
        Score the alignment and apply corrections to the store.

        Args:
            seq_id: Sequence the fragment was taken from
            start: 0-based genome position of the fragment's first base
            rows: Normalized alignment, row 0 being the fragment
            store: Genome to correct in place

        Returns:
            SiteCall for every base that was changed, left to right
        """
        codes = encode_alignment(rows)
        counts = column_counts(codes) if codes.size else codes
        calls = []

        for offset, column in reference_sites(codes):
            site = counts[:, column]
            if depth(site) <= self.min_depth:
                continue
            self.sites_scored += 1

            ratio = bias_ratio(site)
            if ratio is None:
                logger.debug(f"{seq_id}:{start + offset} has no a/c or g/t bases, skipped")
                continue
            if ratio <= self.min_ratio:
                continue

            observed, corrected, label = choose_correction(site)
            position = start + offset
            if store.set_base(seq_id, position, corrected, expected=observed):
                calls.append(SiteCall(seq_id, position, label, ratio))

        return calls
