#!/usr/bin/env python3
"""
esl-sfetch wrapper: index a FASTA and fetch hit subsequences from it.

esl-sfetch ships with Easel (bundled with HMMER). For a hit it is called as

    esl-sfetch -c <start>..<end> <fasta> <target_name>

and writes the subsequence as FASTA on stdout. A start greater than end
makes it return the reverse complement, which matches how nhmmer reports
minus-strand alignments.
"""

import gzip
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import List, Optional, TextIO

from Bio import SeqIO

from constants import SSI_SUFFIX
from errors import ExecutableNotFound, FetchFailed
from tblout_parser import Hit


@dataclass(frozen=True)
class FetchResult:
    hit: Hit
    returncode: int
    n_records: int = 0
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


# =============================================================================
# SETUP
# =============================================================================

def require_esl_sfetch(path) -> Path:
    """
    Resolve the esl-sfetch executable.

    Args:
        path: Explicit path, or a bare command name looked up on PATH

    Returns:
        Path to an executable file

    Raises:
        ExecutableNotFound: If nothing executable is found
    """
    path = str(path)
    if os.sep not in path:
        found = shutil.which(path)
        if found:
            return Path(found)

    candidate = Path(path)
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return candidate
    raise ExecutableNotFound(path)


def ssi_path(fasta: Path) -> Path:
    return Path(str(fasta) + SSI_SUFFIX)


def has_index(fasta: Path) -> bool:
    return ssi_path(fasta).exists()


def prepare_fasta(fasta: Path, workdir: Path, link: bool = True) -> Path:
    """
    Make a FASTA that esl-sfetch can index and read.

    Gzipped files are always decompressed into workdir, esl-sfetch cannot
    fetch subsequences from gzip. Plain files that already have an .ssi
    index, or any plain file when link is False, are used in place;
    otherwise they are symlinked into workdir so the index is written there
    and not next to the input.
    """
    fasta = Path(fasta)
    workdir = Path(workdir)

    if fasta.suffix == '.gz':
        plain = workdir / fasta.stem
        print(f"  Input FASTA is gzipped, decompressing to {plain}", file=sys.stderr, flush=True)
        with gzip.open(fasta, 'rb') as src, open(plain, 'wb') as dst:
            shutil.copyfileobj(src, dst)
        return plain

    if not link or has_index(fasta):
        return fasta

    linked = workdir / fasta.name
    linked.symlink_to(fasta.resolve())
    return linked


def index_fasta(esl_sfetch: Path, fasta: Path) -> Path:
    """
    Run esl-sfetch --index on a FASTA.

    Returns:
        Path to the .ssi index

    Raises:
        FetchFailed: If indexing exits non-zero (target_name is the FASTA path)
    """
    cmd = [str(esl_sfetch), '--index', str(fasta)]
    result = subprocess.run(cmd, capture_output=True, text=True,
                            encoding='utf-8', errors='replace')
    if result.returncode != 0:
        raise FetchFailed(str(fasta), result.returncode, result.stderr)
    return ssi_path(fasta)


# =============================================================================
# FETCH
# =============================================================================

def build_fetch_command(esl_sfetch: Path, fasta: Path, hit: Hit) -> List[str]:
    return [str(esl_sfetch), '-c', hit.coords, str(fasta), hit.target_name]


def rename_record(record, species_id: str):
    """Prefix the record id with species_id, keeping the rest of the header."""
    if not species_id:
        return record

    old_id = record.id
    description = record.description
    if description.split(None, 1)[:1] == [old_id]:
        description = description[len(old_id):].strip()

    record.id = species_id + old_id
    record.name = record.id
    record.description = description
    return record


def fetch_hit(hit: Hit, config, fasta: Optional[Path] = None,
              out: Optional[TextIO] = None) -> FetchResult:
    """
    Fetch one hit's subsequence and write it to out.

    Args:
        hit: Hit that passed the e-value filter
        config: Run Config (esl_sfetch_path, species_id, fasta_path)
        fasta: FASTA to fetch from, defaults to config.fasta_path
        out: Text stream for the FASTA records, defaults to stdout

    Returns:
        FetchResult with the number of records written

    Raises:
        FetchFailed: If esl-sfetch exits non-zero, with its stderr attached
    """
    fasta = fasta or config.fasta_path
    out = out or sys.stdout

    cmd = build_fetch_command(config.esl_sfetch_path, fasta, hit)
    result = subprocess.run(cmd, capture_output=True, text=True,
                            encoding='utf-8', errors='replace')

    if result.returncode != 0:
        raise FetchFailed(hit.target_name, result.returncode, result.stderr, hit.coords)

    records = [
        rename_record(record, config.species_id)
        for record in SeqIO.parse(StringIO(result.stdout), 'fasta')
    ]
    if records:
        SeqIO.write(records, out, 'fasta')
        out.flush()

    # esl-sfetch can warn on stderr and still succeed
    if result.stderr.strip():
        print(f"  esl-sfetch ({hit.target_name}:{hit.coords}): {result.stderr.strip()}",
              file=sys.stderr, flush=True)

    return FetchResult(hit=hit, returncode=result.returncode,
                       n_records=len(records), stderr=result.stderr)
