#!/usr/bin/env python3
"""
Run configuration for extract_nhmmer_tblout.

Built once from the command line and passed explicitly to every step.
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from constants import DEFAULT_EVALUE_THRESHOLD
from errors import FileNotFound, InvalidThreshold
from tblout_parser import read_target_file

# ==============================================================================
# DEFAULTS
# ==============================================================================

DEFAULT_SPECIES_ID = ""
KEEP_GOING = True          # Continue past failed fetches, exit non-zero at the end
INDEX_FASTA = True         # Run esl-sfetch --index when no .ssi exists


@dataclass(frozen=True)
class Config:
    tbl_path: Path
    fasta_path: Path
    esl_sfetch_path: Path
    e_value_threshold: float = DEFAULT_EVALUE_THRESHOLD
    species_id: str = DEFAULT_SPECIES_ID
    keep_going: bool = KEEP_GOING
    hits_table: Optional[Path] = None
    index: bool = INDEX_FASTA


def parse_threshold(value) -> float:
    """Parse an e-value cutoff such as "1e-5" or "0.00001"."""
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise InvalidThreshold(value) from None
    if math.isnan(threshold) or threshold < 0:
        raise InvalidThreshold(value)
    return threshold


def resolve_fasta(tbl_path: Path, fasta_path: Optional[Path]) -> Path:
    """
    Pick the FASTA to fetch from.

    Falls back to the "# Target file:" recorded by nhmmer when no FASTA is
    given on the command line.
    """
    if fasta_path is None:
        fasta_path = read_target_file(tbl_path)
        if fasta_path is None:
            raise FileNotFound(
                tbl_path, "FASTA file",
                f"no FASTA given and no '# Target file:' recorded in {tbl_path}"
            )
    if not Path(fasta_path).exists():
        raise FileNotFound(fasta_path, "FASTA file")
    return Path(fasta_path)


def from_args(args, esl_sfetch_path: Path) -> Config:
    """
    Build the run configuration from parsed CLI arguments.

    Args:
        args: argparse.Namespace from extract_nhmmer_tblout.parse_args()
        esl_sfetch_path: Already resolved esl-sfetch executable

    Raises:
        FileNotFound: tblout or FASTA missing
        InvalidThreshold: e-value threshold is not a non-negative number
    """
    tbl_path = Path(args.tbl)
    if not tbl_path.exists():
        raise FileNotFound(tbl_path, "tblout file")

    return Config(
        tbl_path=tbl_path,
        fasta_path=resolve_fasta(tbl_path, args.fasta),
        esl_sfetch_path=Path(esl_sfetch_path),
        e_value_threshold=parse_threshold(args.e_value_threshold),
        species_id=args.species_id,
        keep_going=not args.fail_fast,
        hits_table=args.hits_table,
        index=not args.no_index,
    )
