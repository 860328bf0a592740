"""
Nucleotide and Dinucleotide Composition

Shared nucleotide encoding plus the composition statistics used to
characterise RIP-affected sequence.

Encoding:
    a => 0, c => 1, g => 2, t => 3, n and any other letter => 4, gap => 5

Composition types:
    Dinucleotide counts are collapsed into 14 strand-independent classes; the
    resulting distribution is summarised by its Shannon entropy and assigned
    to the nearest of three reference profiles (A, B, C).

RIP index:
    RIP depletes CpA/TpG dinucleotides and enriches their mutated products,
    so the ratio (ApC + GpT) / (CpA + TpG) rises in affected repeats.
"""

from typing import Optional, Union

import numpy as np

ALPHABET = "acgtn-"
A, C, G, T, N, GAP = range(len(ALPHABET))

_CODES = np.full(256, N, dtype=np.uint8)
for _index, _letter in enumerate(ALPHABET):
    _CODES[ord(_letter)] = _index
    _CODES[ord(_letter.upper())] = _index


def encode(sequence: Union[str, bytes, bytearray]) -> np.ndarray:
    """
    Encode a nucleotide string into an array of ALPHABET indices.

    Examples:
        >>> encode("ACgt-R").tolist()
        [0, 1, 2, 3, 5, 4]
    """
    if isinstance(sequence, str):
        sequence = sequence.encode("ascii")
    return _CODES[np.frombuffer(bytes(sequence), dtype=np.uint8)]


def base_counts(sequence: Union[str, bytes, bytearray]) -> np.ndarray:
    """Tally of ``a c g t n -`` over a sequence, indexed like ALPHABET."""
    return np.bincount(encode(sequence), minlength=len(ALPHABET))


def dinucleotide_counts(sequence: Union[str, bytes, bytearray]) -> np.ndarray:
    """
    Count adjacent base pairs in a 5x5 matrix over ``a c g t other``.

    Gaps fall into the ``other`` row/column.
    """
    codes = np.minimum(encode(sequence), N)
    counts = np.zeros((5, 5), dtype=np.int64)
    if len(codes) > 1:
        np.add.at(counts, (codes[:-1], codes[1:]), 1)
    return counts


def gc_content(counts: np.ndarray) -> float:
    """GC fraction over unambiguous bases of a dinucleotide count matrix."""
    first = counts[:4, :].sum(axis=1)
    gc = first[C] + first[G]
    at = first[A] + first[T]
    if gc + at == 0:
        return float("nan")
    return float(gc / (gc + at))


def rip_index(counts: np.ndarray) -> float:
    """
    Ratio of (ApC + GpT) to (CpA + TpG).

    Returns NaN when the sequence has no CpA or TpG.
    """
    numerator = counts[A, C] + counts[G, T]
    denominator = counts[C, A] + counts[T, G]
    if denominator == 0:
        return float("nan")
    return float(numerator / denominator)


# Strand-collapsed dinucleotide classes, each as (first, second) cell pairs
# of the 5x5 count matrix. Palindromic classes count their cell twice.
DISTRIBUTION_CLASSES = [
    ("aa/tt", (A, A), (T, T)),
    ("ac/gt", (A, C), (G, T)),
    ("ag/ct", (A, G), (C, T)),
    ("at", (A, T), (A, T)),
    ("ca/tg", (C, A), (T, G)),
    ("cc/gg", (C, C), (G, G)),
    ("cg", (C, G), (C, G)),
    ("gc", (G, C), (G, C)),
    ("ta", (T, A), (T, A)),
    ("an/nt", (A, N), (N, T)),
    ("cn/ng", (C, N), (N, G)),
    ("gn/nc", (G, N), (N, C)),
    ("tn/na", (T, N), (N, A)),
    ("nn", (N, N), (N, N)),
]

# Reference distributions of the three composition types.
COMPOSITION_PROFILES = {
    "A": np.array([0.1704377, 0.06633411, 0.1541075, 0.1709693, 0.02717819, 0.01615981,
                   0.02071386, 0.07266667, 0.30141589, 0, 0, 0, 0, 0]),
    "B": np.array([0.1041197, 0.10521961, 0.1171455, 0.1026425, 0.13173368, 0.11020999,
                   0.12192831, 0.13965545, 0.06733974, 0, 0, 0, 0, 0]),
    "C": np.array([0.22606667, 0.08146667, 0.09600000, 0.18870000, 0.07200000, 0.04806667,
                   0.03183333, 0.03980000, 0.21600000, 0, 0, 0, 0, 0]),
}


def dinucleotide_distribution(counts: np.ndarray) -> np.ndarray:
    """
    Collapse a dinucleotide count matrix into the 14 DISTRIBUTION_CLASSES
    and normalise to fractions.

    Returns an all-zero vector when there are no dinucleotides.
    """
    classes = np.array(
        [counts[first] + counts[second] for _, first, second in DISTRIBUTION_CLASSES],
        dtype=np.float64,
    )
    total = classes.sum()
    if total == 0:
        return classes
    return classes / total


def shannon_entropy(distribution: np.ndarray) -> float:
    """
    Shannon entropy in bits; empty classes contribute nothing.

    Examples:
        >>> shannon_entropy(np.array([0.5, 0.5, 0.0]))
        1.0
    """
    p = distribution[distribution > 0]
    return float(-(p * np.log2(p)).sum())


def composition_type(distribution: np.ndarray) -> Optional[str]:
    """
    Name of the nearest COMPOSITION_PROFILES entry by Euclidean distance.

    Ties go to the earlier profile. None when the distribution is empty.
    """
    if not distribution.any():
        return None
    names = list(COMPOSITION_PROFILES)
    distances = [np.linalg.norm(distribution - COMPOSITION_PROFILES[name]) for name in names]
    return names[int(np.argmin(distances))]
