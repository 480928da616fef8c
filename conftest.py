"""Shared fixtures: synthetic nhmmer tblout files and a fake esl-sfetch."""

import stat
from pathlib import Path

import pytest

TBL_HEADER = (
    "# target name            accession  query name           accession   hmmfrom hmm to alifrom  ali to envfrom  env to  sq len strand   E-value  score  bias  description of target\n"
    "#    ------------------- ---------- --------------------  ---------- ------- ------- ------- ------- ------- ------- ------- ------ --------- ------ ----- ---------------------\n"
)


def tbl_row(target, start, end, evalue, strand=None, query="ACCORD2_I"):
    """Format one nhmmer tblout data line."""
    if strand is None:
        strand = '-' if start > end else '+'
    return (
        f"{target:<24} -          {query:<20} DF0001530.0 {4416:>7} {5277:>7} "
        f"{start:>7} {end:>7} {start:>7} {end:>7} {7028:>7} {strand:>6} "
        f"{evalue:>9}   82.6  34.4  -\n"
    )


def tbl_trailer(target_file="genome.fa"):
    return (
        "#\n"
        "# Program:         nhmmer\n"
        "# Version:         3.3.2 (Nov 2020)\n"
        "# Pipeline mode:   SEARCH\n"
        "# Query file:      query.hmm\n"
        f"# Target file:     {target_file}\n"
        "# Option settings: nhmmer --tblout hits.tbl query.hmm genome.fa \n"
        "# [ok]\n"
    )


@pytest.fixture
def write_tbl(tmp_path):
    """Write a tblout file from data rows, with nhmmer's header and trailer."""
    def _write(rows, name="hits.tbl", target_file=None):
        path = tmp_path / name
        trailer = tbl_trailer(target_file) if target_file else tbl_trailer()
        path.write_text(TBL_HEADER + "".join(rows) + trailer)
        return path
    return _write


@pytest.fixture
def fasta_file(tmp_path):
    path = tmp_path / "genome.fa"
    path.write_text(">seqA test contig\nACGTACGTACGT\n>seqB\nGGGGCCCC\n")
    return path


@pytest.fixture
def fake_esl_sfetch(tmp_path):
    """
    Executable standing in for esl-sfetch.

    Appends its arguments to calls.log, creates <fasta>.ssi for --index,
    exits 1 for targets starting with FAIL, prints a Latin-1 header for
    targets starting with LATIN and otherwise prints one record named
    <target>/<range>.
    """
    log = tmp_path / "calls.log"
    script = tmp_path / "esl-sfetch"
    script.write_text(
        "#!/bin/sh\n"
        f"echo \"$@\" >> '{log}'\n"
        "if [ \"$1\" = \"--index\" ]; then\n"
        "  touch \"$2.ssi\"\n"
        "  exit 0\n"
        "fi\n"
        "case \"$4\" in\n"
        "  FAIL*) echo \"Failed to find key $4\" >&2; exit 1;;\n"
        "  LATIN*) printf '>%s/%s Caf\\351\\nACGTACGT\\n' \"$4\" \"$2\"; exit 0;;\n"
        "esac\n"
        "printf '>%s/%s fetched\\nACGTACGT\\n' \"$4\" \"$2\"\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


def read_calls(script: Path):
    """Return the fetch calls (not --index) recorded by fake_esl_sfetch."""
    log = script.parent / "calls.log"
    if not log.exists():
        return []
    lines = log.read_text().splitlines()
    return [line.split() for line in lines if not line.startswith('--index')]
