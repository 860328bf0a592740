"""
Pytest configuration and fixtures for de-ripping tests.
"""

import sys
import tempfile
from pathlib import Path

import pytest

scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from deripper.blast_utils import BlastHit, HSPRecord


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Genome Fixtures
# ============================================================================

@pytest.fixture
def sample_genome_content():
    """Two-sequence genome; chr1 is 100 bp with two n bases, chr2 is 16 bp."""
    chr1 = "ACGTTGCAAC" * 4 + "NN" + "TTGACCAGTA" * 5 + "GGCAGTCA"
    return (
        ">chr1 first contig\n"
        f"{chr1[:60]}\n"
        f"{chr1[60:]}\n"
        ">chr2\n"
        "ggggacgttgcagggg\n"
    )


@pytest.fixture
def sample_genome_file(temp_dir, sample_genome_content):
    """Create a temporary genome FASTA file."""
    fasta_path = temp_dir / "genome.fa"
    fasta_path.write_text(sample_genome_content)
    return fasta_path


# ============================================================================
# Search Fixtures
# ============================================================================

class FakeSearcher:
    """Stands in for BlastSearcher; returns canned hits and records queries."""

    def __init__(self, hits_for=None):
        self.hits_for = hits_for or (lambda fragment: [])
        self.queries = []

    def query(self, fragment):
        self.queries.append(fragment)
        return self.hits_for(fragment)


@pytest.fixture
def fake_searcher():
    """Factory fixture building a FakeSearcher from a fragment -> hits callable."""
    def _create(hits_for=None):
        return FakeSearcher(hits_for)
    return _create


@pytest.fixture
def make_hits():
    """Factory fixture turning aligned strings into forward hits at offset 0."""
    def _create(hit_sequences, query_from=0, subject_id="chr1"):
        hsps = [
            HSPRecord(subject_id=subject_id, query_from=query_from,
                      query_to=query_from + len(seq) - 1, strand=1, hit_sequence=seq)
            for seq in hit_sequences
        ]
        return [BlastHit(subject_id, hsps)]
    return _create


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config_yaml():
    """Provide a partial YAML configuration."""
    return """\
search:
  evalue: 1.0e-5
bias:
  min_depth: 5
output:
  line_width: 60
"""
