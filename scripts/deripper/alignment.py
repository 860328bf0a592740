"""
Pseudo-multiple Alignment from BLAST HSPs

Each HSP is placed under the query fragment by left-padding its aligned
subject string with gaps up to its query offset. No realignment is done:
insertions in the subject shift its row to the right of the reference.

Row layout:
    row 0          fragment, unmodified
    forward HSP    '-' * query_from + hit_sequence
    reverse HSP    '-' * query_to + reverse_complement(hit_sequence)
"""

from typing import List, Sequence

from Bio.Seq import reverse_complement

from .blast_utils import BlastHit, HSPRecord, flatten_hsps

GAP = "-"


def hsp_row(hsp: HSPRecord) -> str:
    if hsp.is_forward:
        return GAP * hsp.query_from + hsp.hit_sequence
    return GAP * hsp.query_to + reverse_complement(hsp.hit_sequence).lower()


def normalize(rows: Sequence[str]) -> List[str]:
    """
    Right-pad every row with gaps to the length of the longest row.

    Examples:
        >>> normalize(["acgt", "--a"])
        ['acgt', '--a-']
    """
    width = max((len(row) for row in rows), default=0)
    return [row.ljust(width, GAP) for row in rows]


def build_alignment(fragment: str, hits: Sequence[BlastHit]) -> List[str]:
    """Fragment plus one row per HSP, normalized to equal length."""
    rows = [fragment]
    rows.extend(hsp_row(hsp) for hsp in flatten_hsps(hits))
    return normalize(rows)


def has_hits(rows: Sequence[str]) -> bool:
    return len(rows) > 1
