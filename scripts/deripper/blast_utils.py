"""
BLAST Search Utilities

Wraps the local BLAST+ programs: builds the nucleotide database next to the
genome FASTA once, and searches region fragments against it.

Tabular output requested from blastn (-outfmt "6 ..."):
    Col 1:  Subject id (sseqid)
    Col 2:  Query start (1-based)
    Col 3:  Query end (1-based, inclusive)
    Col 4:  Subject strand (plus/minus)
    Col 5:  Aligned subject sequence (may contain '-')
    Col 6:  E-value
    Col 7:  Bit score

blastn writes hits in rank order with each hit's HSPs on consecutive lines,
so grouping by subject while preserving first appearance keeps the engine's
ordering.
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import SearchError

logger = logging.getLogger(__name__)

OUTFMT_FIELDS = ["sseqid", "qstart", "qend", "sstrand", "sseq", "evalue", "bitscore"]
INDEX_SUFFIXES = (".nhr", ".nin", ".nsq")
DEFAULT_EVALUE = 1e-10


@dataclass
class HSPRecord:
    """One high-scoring segment pair, in 0-based query coordinates."""
    subject_id: str
    query_from: int  # 0-based
    query_to: int  # 0-based, inclusive
    strand: int  # +1 or -1 on the subject
    hit_sequence: str
    evalue: float = 0.0
    bit_score: float = 0.0

    @property
    def is_forward(self) -> bool:
        return self.strand > 0

    @property
    def query_aligned_length(self) -> int:
        return self.query_to - self.query_from + 1


@dataclass
class BlastHit:
    """All HSPs of a single subject sequence."""
    subject_id: str
    hsps: List[HSPRecord] = field(default_factory=list)


def parse_blast_line(line: str) -> Optional[HSPRecord]:
    """
    Parse a single tabular blastn line into an HSPRecord.

    Returns:
        HSPRecord if parsing successful, None otherwise

    Examples:
        >>> hsp = parse_blast_line("chr1\\t1\\t4\\tplus\\tacgt\\t1e-20\\t50.1")
        >>> hsp.query_from, hsp.query_to, hsp.strand
        (0, 3, 1)
    """
    parts = line.strip().split('\t')
    if len(parts) < 5:
        return None

    strand = parts[3].lower()
    if strand not in ("plus", "minus"):
        return None

    try:
        return HSPRecord(
            subject_id=parts[0],
            query_from=int(parts[1]) - 1,
            query_to=int(parts[2]) - 1,
            strand=1 if strand == "plus" else -1,
            hit_sequence=parts[4].lower(),
            evalue=float(parts[5]) if len(parts) > 5 else 0.0,
            bit_score=float(parts[6]) if len(parts) > 6 else 0.0,
        )
    except ValueError:
        return None


def group_hsps_by_subject(records: Iterable[HSPRecord]) -> List[BlastHit]:
    """Group HSPs into hits, keeping first-appearance order of subjects."""
    by_subject: Dict[str, BlastHit] = {}
    for record in records:
        if record.subject_id not in by_subject:
            by_subject[record.subject_id] = BlastHit(record.subject_id)
        by_subject[record.subject_id].hsps.append(record)
    return list(by_subject.values())


def flatten_hsps(hits: Sequence[BlastHit]) -> List[HSPRecord]:
    """HSPs in hit order, then HSP order within each hit."""
    return [hsp for hit in hits for hsp in hit.hsps]


def parse_blast_output(text: str) -> List[BlastHit]:
    """
    Parse blastn tabular output into hits.

    Raises:
        SearchError: A line does not match OUTFMT_FIELDS
    """
    records = []
    for line in text.splitlines():
        if line.startswith('#') or not line.strip():
            continue
        record = parse_blast_line(line)
        if record is None:
            raise SearchError(f"Unexpected blastn output line: {line!r}")
        records.append(record)
    return group_hsps_by_subject(records)


def index_exists(db_path: str, suffixes: Sequence[str] = INDEX_SUFFIXES) -> bool:
    return all(os.path.exists(db_path + suffix) for suffix in suffixes)


class BlastSearcher:
    """Local blastn searches against a genome database."""

    def __init__(
        self,
        db_path: str,
        evalue: float = DEFAULT_EVALUE,
        blastn: str = "blastn",
        makeblastdb: str = "makeblastdb",
        index_suffixes: Sequence[str] = INDEX_SUFFIXES,
        extra_args: Optional[Sequence[str]] = None,
    ):
        self.db_path = db_path
        self.evalue = evalue
        self.blastn = blastn
        self.makeblastdb = makeblastdb
        self.index_suffixes = tuple(index_suffixes)
        self.extra_args = list(extra_args or [])

    @classmethod
    def from_config(cls, db_path: str, config: Dict) -> 'BlastSearcher':
        search = config.get("search", {})
        return cls(
            db_path,
            evalue=float(search.get("evalue", DEFAULT_EVALUE)),
            blastn=search.get("blastn", "blastn"),
            makeblastdb=search.get("makeblastdb", "makeblastdb"),
            index_suffixes=search.get("index_suffixes", INDEX_SUFFIXES),
            extra_args=search.get("extra_args", []),
        )

    def build_index(self) -> bool:
        """
        Build the BLAST database unless all index files already exist.

        Returns:
            True if makeblastdb was run
        """
        if index_exists(self.db_path, self.index_suffixes):
            logger.info(f"Using existing BLAST database for {self.db_path}")
            return False

        cmd = [self.makeblastdb, "-in", self.db_path, "-dbtype", "nucl"]
        logger.info(f"Building BLAST database: {' '.join(cmd)}")
        self._run(cmd)
        return True

    def command(self) -> List[str]:
        return [
            self.blastn,
            "-db", self.db_path,
            "-evalue", str(self.evalue),
            "-outfmt", "6 " + " ".join(OUTFMT_FIELDS),
        ] + self.extra_args

    def query(self, fragment: str) -> List[BlastHit]:
        """
        Search a fragment against the database.

        Raises:
            SearchError: Empty fragment, missing executable or failed search
        """
        if not fragment:
            raise SearchError("Cannot search an empty fragment")
        result = self._run(self.command(), stdin=f">query\n{fragment}\n")
        return parse_blast_output(result.stdout)

    def _run(self, cmd: List[str], stdin: Optional[str] = None) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(cmd, input=stdin, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise SearchError(f"{cmd[0]} not found in PATH") from e
        except subprocess.CalledProcessError as e:
            raise SearchError(
                f"{cmd[0]} exited with status {e.returncode}: {e.stderr.strip()}"
            ) from e
