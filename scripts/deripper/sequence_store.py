"""
In-memory Genome Store

Holds every sequence of a genome FASTA as a mutable, lower-case buffer keyed
by identifier, in file order. All base edits go through ``set_base`` so the
match-before-mutate rule lives in one place.

Coordinates:
    subsequence()      1-based, inclusive
    get_base/set_base  0-based
"""

from typing import Dict, Iterator, Optional

import numpy as np
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqIO.FastaIO import FastaWriter
from Bio.SeqRecord import SeqRecord

from .composition import base_counts, dinucleotide_counts
from .errors import ParseError, RangeError, SequenceLookupError


class SequenceStore:
    """Mapping of sequence id to mutable nucleotide buffer."""

    def __init__(self) -> None:
        self._sequences: Dict[str, bytearray] = {}

    @classmethod
    def load(cls, fasta_path: str) -> 'SequenceStore':
        """
        Parse every record of a FASTA file.

        Raises:
            ParseError: If the file holds no records, a record is malformed,
                or an identifier occurs twice
        """
        store = cls()
        try:
            for record in SeqIO.parse(fasta_path, "fasta"):
                if not record.id:
                    raise ParseError(f"Record without identifier in {fasta_path}")
                if record.id in store._sequences:
                    raise ParseError(f"Duplicate sequence id '{record.id}' in {fasta_path}")
                store._sequences[record.id] = bytearray(str(record.seq).lower(), "ascii")
        except ParseError:
            raise
        except ValueError as e:
            raise ParseError(f"Malformed FASTA {fasta_path}: {e}") from e

        if not store._sequences:
            raise ParseError(f"No FASTA records found in {fasta_path}")
        return store

    @classmethod
    def from_dict(cls, sequences: Dict[str, str]) -> 'SequenceStore':
        store = cls()
        for seq_id, sequence in sequences.items():
            store._sequences[seq_id] = bytearray(sequence.lower(), "ascii")
        return store

    def __len__(self) -> int:
        return len(self._sequences)

    def _buffer(self, seq_id: str) -> bytearray:
        try:
            return self._sequences[seq_id]
        except KeyError:
            raise SequenceLookupError(f"Unknown sequence id '{seq_id}'") from None

    def sequence(self, seq_id: str) -> str:
        return self._buffer(seq_id).decode("ascii")

    def length(self, seq_id: str) -> int:
        return len(self._buffer(seq_id))

    def genome_size(self) -> int:
        """Total number of bases that are not 'n'."""
        return sum(len(buf) - buf.count(b"n") for buf in self._sequences.values())

    def composition(self, seq_id: Optional[str] = None) -> np.ndarray:
        """Tally of ``a c g t n -`` for one sequence or the whole genome."""
        if seq_id is not None:
            return base_counts(self._buffer(seq_id))
        return sum((base_counts(buf) for buf in self._sequences.values()),
                   np.zeros(6, dtype=np.int64))

    def dinucleotides(self, seq_id: Optional[str] = None) -> np.ndarray:
        if seq_id is not None:
            return dinucleotide_counts(self._buffer(seq_id))
        return sum((dinucleotide_counts(buf) for buf in self._sequences.values()),
                   np.zeros((5, 5), dtype=np.int64))

    def subsequence(self, seq_id: str, start: int, stop: int) -> str:
        """
        Extract bases ``start..stop`` (1-based, inclusive).

        A ``stop`` below ``start`` yields an empty string.

        Raises:
            SequenceLookupError: Unknown sequence id
            RangeError: ``start < 1`` or ``stop`` past the sequence end
        """
        buf = self._buffer(seq_id)
        if start < 1 or stop > len(buf):
            raise RangeError(
                f"{seq_id}:{start}-{stop} outside valid range [1, {len(buf)}]"
            )
        return buf[start - 1:stop].decode("ascii")

    def get_base(self, seq_id: str, pos: int) -> str:
        buf = self._buffer(seq_id)
        if pos < 0 or pos >= len(buf):
            raise RangeError(f"Position {pos} outside {seq_id} (length {len(buf)})")
        return chr(buf[pos])

    def set_base(self, seq_id: str, pos: int, value: str, expected: Optional[str] = None) -> bool:
        """
        Overwrite the base at a 0-based position.

        If ``expected`` is given the write only happens when the current base
        equals it.

        Returns:
            True if the base was written
        """
        if len(value) != 1:
            raise ValueError(f"Expected a single base, got '{value}'")
        current = self.get_base(seq_id, pos)
        if expected is not None and current != expected:
            return False
        self._sequences[seq_id][pos] = ord(value)
        return True

    def records(self) -> Iterator[SeqRecord]:
        for seq_id, buf in self._sequences.items():
            yield SeqRecord(Seq(buf.decode("ascii")), id=seq_id, description="")


def deripped_path(genome_path: str, suffix: str = ".deripped") -> str:
    """
    Output path for the corrected genome.

    Examples:
        >>> deripped_path("genome.fa")
        'genome.fa.deripped'
    """
    return f"{genome_path}{suffix}"


def write_fasta(store: SequenceStore, output_path: str, line_width: int = 80) -> int:
    """
    Write every sequence of the store as FASTA, in load order.

    Returns:
        Number of records written
    """
    with open(output_path, "w") as handle:
        writer = FastaWriter(handle, wrap=line_width)
        return writer.write_file(store.records())
