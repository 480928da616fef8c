#!/usr/bin/env python3
"""
Extract FASTA records for nhmmer hits using esl-sfetch.

Reads an nhmmer --tblout file, keeps hits with e-value <= threshold and
fetches each hit's alignment range from the searched FASTA with esl-sfetch.
Records go to stdout, progress and errors to stderr.

Usage:
    python extract_nhmmer_tblout.py \\
        --esl-sfetch <path/to/esl-sfetch> \\
        <hits.tbl> [<genome.fa>] \\
        [--e-value-threshold 1e-5] \\
        [--species-id SPX_] \\
        [--hits-table hits.tsv] \\
        [--no-index] [--fail-fast] > hits.fa

Exit codes:
    0  all hits fetched (or none passed the threshold)
    1  at least one esl-sfetch call failed
    2  setup error (missing file, bad threshold, missing esl-sfetch,
       no parseable rows)
"""

from pathlib import Path
import argparse
import sys
import tempfile
from typing import List, Optional, TextIO

import pandas as pd

import config as run_config
from constants import (
    COL_END,
    COL_EVALUE,
    COL_N_RECORDS,
    COL_QUERY_NAME,
    COL_RETURNCODE,
    COL_SCORE,
    COL_START,
    COL_STATUS,
    COL_STDERR,
    COL_STRAND,
    COL_TARGET_NAME,
    DEFAULT_EVALUE_THRESHOLD,
    EXIT_FETCH_FAILED,
    EXIT_OK,
    EXIT_SETUP_ERROR,
    HITS_TABLE_COLUMNS,
    STATUS_FAILED,
    STATUS_FETCHED,
)
from errors import ExtractError, FetchFailed, MalformedRow
from hit_filter import filter_hits
from sfetch import (
    FetchResult,
    fetch_hit,
    has_index,
    index_fasta,
    prepare_fasta,
    require_esl_sfetch,
)
from tblout_parser import iter_hits

__version__ = "0.1.0"


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="extract_nhmmer_tblout",
        description="Extract sequences for nhmmer tblout hits using esl-sfetch",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('tbl', type=Path, metavar='TBL',
                        help='Path to the nhmmer tblout file')
    parser.add_argument('fasta', type=Path, nargs='?', default=None, metavar='FASTA',
                        help="Path to the FASTA file searched by nhmmer "
                             "(default: the '# Target file:' recorded in the tblout)")
    parser.add_argument('-e', '--esl-sfetch', required=True, type=Path,
                        help="Path to esl-sfetch (part of HMMER's Easel)")
    parser.add_argument('-v', '--e-value-threshold', default=str(DEFAULT_EVALUE_THRESHOLD),
                        help='Inclusive e-value threshold for hits to extract (default: 0.00001)')
    parser.add_argument('-s', '--species-id', default=run_config.DEFAULT_SPECIES_ID,
                        help='Prefix added to every output record ID')
    parser.add_argument('-t', '--hits-table', type=Path, default=None,
                        help='Write a TSV summary of every dispatched hit')
    parser.add_argument('--no-index', action='store_true',
                        help='Never run esl-sfetch --index (gzipped FASTA is still decompressed)')
    parser.add_argument('--fail-fast', action='store_true',
                        help='Stop at the first failed fetch instead of continuing')
    parser.add_argument('-V', '--version', action='version',
                        version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def write_hits_table(results: List[FetchResult], output_path: Path) -> None:
    """Write one row per dispatched hit with its fetch status."""
    rows = []
    for result in results:
        hit = result.hit
        rows.append({
            COL_TARGET_NAME: hit.target_name,
            COL_QUERY_NAME: hit.query_name,
            COL_START: hit.start,
            COL_END: hit.end,
            COL_STRAND: hit.strand.value,
            COL_EVALUE: hit.e_value,
            COL_SCORE: hit.score,
            COL_STATUS: STATUS_FETCHED if result.ok else STATUS_FAILED,
            COL_RETURNCODE: result.returncode,
            COL_N_RECORDS: result.n_records,
            COL_STDERR: result.stderr.strip(),
        })

    df = pd.DataFrame(rows, columns=HITS_TABLE_COLUMNS)
    df.to_csv(output_path, sep='\t', index=False)
    print(f"  Wrote hits table ({len(df)} rows) to {output_path}", file=sys.stderr, flush=True)


def run(config: run_config.Config, out: Optional[TextIO] = None) -> int:
    """
    Parse, filter and fetch every hit in config.tbl_path.

    Returns:
        Exit code (EXIT_OK, EXIT_FETCH_FAILED or EXIT_SETUP_ERROR)

    Raises:
        ExtractError: Setup failures (missing tblout, indexing failed)
    """
    out = out or sys.stdout
    err = sys.stderr

    print("Running extract_nhmmer_tblout", file=err, flush=True)
    print(f"  tblout: {config.tbl_path}", file=err)
    print(f"  FASTA: {config.fasta_path}", file=err)
    print(f"  esl-sfetch: {config.esl_sfetch_path}", file=err)
    print(f"  E-value threshold: {config.e_value_threshold:g}", file=err, flush=True)

    counts = {'rows': 0, 'malformed': 0}
    results: List[FetchResult] = []
    failures: List[FetchFailed] = []

    def parsed_hits():
        for line_number, item in iter_hits(config.tbl_path):
            if isinstance(item, MalformedRow):
                counts['malformed'] += 1
                print(f"  WARNING: {config.tbl_path}:{line_number}: {item.reason}", file=err, flush=True)
                continue
            counts['rows'] += 1
            yield item

    with tempfile.TemporaryDirectory(prefix="extract_nhmmer_tblout_") as tmpdir:
        print("\n[1] Preparing FASTA...", file=err, flush=True)
        fasta = prepare_fasta(config.fasta_path, Path(tmpdir), link=config.index)
        if not config.index:
            print("  Skipping FASTA indexing (--no-index)", file=err, flush=True)
        elif has_index(fasta):
            print(f"  Using existing index for {fasta}", file=err, flush=True)
        else:
            print(f"  Indexing {fasta}", file=err, flush=True)
            index_fasta(config.esl_sfetch_path, fasta)

        print("\n[2] Iterating over tblout...", file=err, flush=True)
        for hit in filter_hits(parsed_hits(), config.e_value_threshold):
            try:
                results.append(fetch_hit(hit, config, fasta, out))
            except FetchFailed as e:
                failures.append(e)
                results.append(FetchResult(hit=hit, returncode=e.returncode, stderr=e.stderr))
                print(f"  ERROR: {config.tbl_path}:{hit.line_number}: {e}", file=err, flush=True)
                if not config.keep_going:
                    print("  Stopping at first failure (--fail-fast)", file=err, flush=True)
                    break

    n_rows = counts['rows']
    n_malformed = counts['malformed']

    if config.hits_table:
        write_hits_table(results, config.hits_table)

    # Rows are read lazily, so every counted row was either dispatched or filtered
    n_fetched = sum(1 for r in results if r.ok)
    print("\nSummary:", file=err)
    print(f"  Hit rows: {n_rows}", file=err)
    print(f"  Malformed rows skipped: {n_malformed}", file=err)
    print(f"  Above threshold: {n_rows - len(results)}", file=err)
    print(f"  Fetched: {n_fetched}", file=err)
    print(f"  Failed: {len(failures)}", file=err, flush=True)

    if n_malformed and n_rows == 0:
        print(f"ERROR: no parseable hit rows in {config.tbl_path} "
              f"({n_malformed} malformed)", file=err, flush=True)
        return EXIT_SETUP_ERROR

    if failures:
        for e in failures:
            print(f"  FAILED: {e.target_name}:{e.coords} (exit code {e.returncode})", file=err)
        return EXIT_FETCH_FAILED
    return EXIT_OK


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        esl_sfetch = require_esl_sfetch(args.esl_sfetch)
        config = run_config.from_args(args, esl_sfetch)
        return run(config)
    except ExtractError as e:
        print(f"ERROR: {e}", file=sys.stderr, flush=True)
        return EXIT_SETUP_ERROR


if __name__ == "__main__":
    sys.exit(main())
