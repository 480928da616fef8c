#!/usr/bin/env python3
"""
Parse nhmmer --tblout files into Hit records.

Data lines are split on runs of whitespace and read by fixed column
position (see constants.py); the tblout header is a comment block, so
columns are never looked up by name.

Example line:
    seqA  -  tRNA-Ala  RF00005  1  72  100  200  98  202  5000  +  1e-10  55.1  0.2  -
"""

import gzip
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from constants import (
    STRAND_MINUS,
    STRAND_PLUS,
    TBL_ALI_FROM,
    TBL_ALI_TO,
    TBL_COMMENT,
    TBL_EVALUE,
    TBL_MIN_COLUMNS,
    TBL_QUERY_NAME,
    TBL_SCORE,
    TBL_STRAND,
    TBL_TARGET_FILE_PREFIX,
    TBL_TARGET_NAME,
)
from errors import FileNotFound, MalformedRow


class Strand(Enum):
    PLUS = STRAND_PLUS
    MINUS = STRAND_MINUS


@dataclass(frozen=True)
class Hit:
    """One nhmmer alignment. start/end are ali-from/ali-to, 1-based, as reported."""

    target_name: str
    start: int
    end: int
    strand: Strand
    e_value: float
    query_name: str = ""
    score: float = 0.0
    line_number: int = 0

    @property
    def coords(self) -> str:
        """Range in esl-sfetch -c syntax; start > end asks for the reverse complement."""
        return f"{self.start}..{self.end}"


def open_text(path: Path):
    """
    Open a plain or gzipped text file for reading.

    nhmmer copies raw FASTA header bytes into the description column, so
    undecodable bytes are replaced; the columns read here are ASCII.
    """
    if str(path).endswith('.gz'):
        return gzip.open(path, 'rt', encoding='utf-8', errors='replace')
    return open(path, 'r', encoding='utf-8', errors='replace')


def is_comment(line: str) -> bool:
    return line.lstrip().startswith(TBL_COMMENT)


def _strand_from_coords(start: int, end: int, column: str) -> Strand:
    if start > end:
        return Strand.MINUS
    if start < end:
        return Strand.PLUS
    # Single-base hit, coordinates say nothing
    return Strand.MINUS if column == STRAND_MINUS else Strand.PLUS


def parse_line(line: str, line_number: int = 0) -> Optional[Hit]:
    """
    Parse one tblout line.

    Args:
        line: Raw line, with or without trailing newline
        line_number: 1-based position in the file, used in error messages

    Returns:
        Hit for a data line, None for comment and blank lines

    Raises:
        MalformedRow: If the line does not have the nhmmer tblout layout
    """
    if not line.strip() or is_comment(line):
        return None

    parts = line.split()
    if len(parts) < TBL_MIN_COLUMNS:
        raise MalformedRow(
            line_number, line,
            f"expected at least {TBL_MIN_COLUMNS} columns, found {len(parts)}"
        )

    try:
        start = int(parts[TBL_ALI_FROM])
        end = int(parts[TBL_ALI_TO])
    except ValueError:
        raise MalformedRow(
            line_number, line,
            f"alignment coordinates are not integers "
            f"({parts[TBL_ALI_FROM]!r}, {parts[TBL_ALI_TO]!r})"
        ) from None

    try:
        e_value = float(parts[TBL_EVALUE])
        score = float(parts[TBL_SCORE])
    except ValueError:
        raise MalformedRow(
            line_number, line,
            f"e-value/score are not numbers ({parts[TBL_EVALUE]!r}, {parts[TBL_SCORE]!r})"
        ) from None

    strand_column = parts[TBL_STRAND]
    if strand_column not in (STRAND_PLUS, STRAND_MINUS):
        raise MalformedRow(line_number, line, f"unknown strand {strand_column!r}")

    strand = _strand_from_coords(start, end, strand_column)
    if strand.value != strand_column:
        raise MalformedRow(
            line_number, line,
            f"strand {strand_column!r} does not match alignment {start}..{end}"
        )

    return Hit(
        target_name=parts[TBL_TARGET_NAME],
        start=start,
        end=end,
        strand=strand,
        e_value=e_value,
        query_name=parts[TBL_QUERY_NAME],
        score=score,
        line_number=line_number,
    )


def iter_hits(tbl_path: Path) -> Iterator[Tuple[int, Union[Hit, MalformedRow]]]:
    """
    Stream (line_number, Hit or MalformedRow) pairs from a tblout file.

    Malformed rows are yielded rather than raised so the caller decides
    whether to skip or abort. Comment and blank lines are not yielded.
    """
    tbl_path = Path(tbl_path)
    if not tbl_path.exists():
        raise FileNotFound(tbl_path, "tblout file")

    with open_text(tbl_path) as f:
        for line_number, line in enumerate(f, start=1):
            try:
                hit = parse_line(line, line_number)
            except MalformedRow as e:
                yield line_number, e
                continue
            if hit is not None:
                yield line_number, hit


def read_target_file(tbl_path: Path) -> Optional[Path]:
    """
    Get the target sequence file recorded in the tblout metadata block.

    nhmmer ends every tblout with comment lines such as
    "# Target file:     genome.fa". Relative paths are as nhmmer saw them,
    so they only resolve from the directory nhmmer ran in.
    """
    tbl_path = Path(tbl_path)
    if not tbl_path.exists():
        raise FileNotFound(tbl_path, "tblout file")

    target = None
    with open_text(tbl_path) as f:
        for line in f:
            if line.startswith(TBL_TARGET_FILE_PREFIX):
                value = line[len(TBL_TARGET_FILE_PREFIX):].strip()
                if value:
                    target = Path(value)
    return target
