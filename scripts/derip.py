#!/usr/bin/env python3
"""
De-rip repeat regions of a genome assembly.

Reads region records (seq_id, start, stop, name) from the given files or
stdin, BLASTs each region against the genome, and reverts bases at columns
with a RIP-like substitution bias. Corrections are printed to stdout as

    seq_id  position  position+1  label  bias

and the corrected genome is written to GENOME.deripped.

Usage:
    python derip.py genome.fa < repeats.tsv > corrections.tsv
    python derip.py genome.fa repeats.tsv --config derip.yaml --summary regions.tsv
"""

import argparse
import fileinput
import logging
import sys

import yaml

from deripper.bias import BiasDetector
from deripper.blast_utils import BlastSearcher
from deripper.composition import gc_content, rip_index
from deripper.config import load_config, validate_config
from deripper.region_processor import RegionProcessor, format_number
from deripper.sequence_store import SequenceStore, deripped_path, write_fasta

logger = logging.getLogger("derip")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Revert RIP mutations in repeat regions of a genome assembly.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument("genome", help="Genome FASTA; the BLAST database is built next to it.")
    ap.add_argument("regions", nargs="*", help="Region files (default: stdin).")
    ap.add_argument("--config", help="YAML configuration file.")
    ap.add_argument("--summary", help="Write a per-region summary TSV here.")
    ap.add_argument("--evalue", type=float, help="Override search.evalue.")
    ap.add_argument("--min-depth", type=int, help="Override bias.min_depth.")
    ap.add_argument("--log-level", help="Override logging.level (DEBUG, INFO, ...).")
    return ap.parse_args(argv)


def apply_overrides(config, args):
    if args.evalue is not None:
        config["search"]["evalue"] = args.evalue
    if args.min_depth is not None:
        config["bias"]["min_depth"] = args.min_depth
    if args.log_level:
        config["logging"]["level"] = args.log_level.upper()
    return config


def main(argv=None):
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        sys.exit(1)

    is_valid, errors = validate_config(config)
    if not is_valid:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=config["logging"]["level"],
        format=config["logging"]["format"],
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    store = SequenceStore.load(args.genome)
    dinucleotides = store.dinucleotides()
    logger.info(f"Loaded {format_number(len(store))} sequences from {args.genome}")
    logger.info(f"Genome size: {format_number(store.genome_size())} bp")
    logger.info(f"GC content: {gc_content(dinucleotides):.4f}, RIP index: {rip_index(dinucleotides):.4f}")

    searcher = BlastSearcher.from_config(args.genome, config)
    searcher.build_index()

    processor = RegionProcessor(store, searcher, BiasDetector.from_config(config), out=sys.stdout)
    with fileinput.input(files=args.regions or ("-",)) as lines:
        summaries = processor.run(lines)

    corrected = sum(s.t_to_c + s.a_to_g for s in summaries)
    logger.info(f"Processed {format_number(len(summaries))} regions, {format_number(corrected)} bases corrected")

    if args.summary:
        processor.write_summary(args.summary)
        logger.info(f"Region summary written to {args.summary}")

    output_path = deripped_path(args.genome, config["output"]["suffix"])
    write_fasta(store, output_path, int(config["output"]["line_width"]))
    logger.info(f"Corrected genome written to {output_path}")


if __name__ == "__main__":
    main()
