"""
De-ripping Pipeline - Core Library

Reverts RIP (Repeat-Induced Point mutation) damage in repeat regions of a
genome assembly:
- Genome store with guarded in-place base edits and FASTA output
- BLAST database building and tabular search parsing
- Pseudo-multiple alignments built from HSPs
- Per-column substitution bias scoring and correction
- Region-by-region driver with progress reporting
"""

from .errors import (
    DeripError,
    ParseError,
    SequenceLookupError,
    RangeError,
    SearchError,
)

from .sequence_store import (
    SequenceStore,
    write_fasta,
    deripped_path,
)

from .blast_utils import (
    BlastHit,
    BlastSearcher,
    HSPRecord,
    parse_blast_line,
)

from .alignment import (
    build_alignment,
    normalize,
)

from .bias import (
    BiasDetector,
    SiteCall,
    bias_ratio,
)

from .region_processor import (
    RegionProcessor,
    RegionRecord,
    RegionSummary,
    parse_region_line,
    format_number,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "DeripError",
    "ParseError",
    "SequenceLookupError",
    "RangeError",
    "SearchError",
    # Genome
    "SequenceStore",
    "write_fasta",
    "deripped_path",
    # Search
    "BlastHit",
    "BlastSearcher",
    "HSPRecord",
    "parse_blast_line",
    # Alignment and scoring
    "build_alignment",
    "normalize",
    "BiasDetector",
    "SiteCall",
    "bias_ratio",
    # Driver
    "RegionProcessor",
    "RegionRecord",
    "RegionSummary",
    "parse_region_line",
    "format_number",
]
