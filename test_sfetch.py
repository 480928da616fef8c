"""Tests for the esl-sfetch wrapper, using a fake esl-sfetch script."""

import gzip
import io
from pathlib import Path

import pytest

from config import Config
from conftest import read_calls
from errors import ExecutableNotFound, FetchFailed
from sfetch import (
    build_fetch_command,
    fetch_hit,
    has_index,
    index_fasta,
    prepare_fasta,
    require_esl_sfetch,
)
from tblout_parser import Hit, Strand


def make_config(fasta, esl_sfetch, species_id=""):
    return Config(
        tbl_path=Path("hits.tbl"),
        fasta_path=Path(fasta),
        esl_sfetch_path=Path(esl_sfetch),
        species_id=species_id,
    )


def make_hit(target="seqA", start=100, end=200):
    strand = Strand.MINUS if start > end else Strand.PLUS
    return Hit(target_name=target, start=start, end=end, strand=strand, e_value=1e-10)


def test_build_fetch_command():
    cmd = build_fetch_command(Path("/opt/hmmer/esl-sfetch"), Path("genome.fa"), make_hit())
    assert cmd == ["/opt/hmmer/esl-sfetch", "-c", "100..200", "genome.fa", "seqA"]


def test_build_fetch_command_minus_strand():
    cmd = build_fetch_command(Path("esl-sfetch"), Path("genome.fa"), make_hit(start=200, end=100))
    assert cmd[1:3] == ["-c", "200..100"]


def test_require_esl_sfetch_explicit_path(fake_esl_sfetch):
    assert require_esl_sfetch(fake_esl_sfetch) == fake_esl_sfetch


def test_require_esl_sfetch_on_path(fake_esl_sfetch, monkeypatch):
    monkeypatch.setenv("PATH", str(fake_esl_sfetch.parent))
    assert require_esl_sfetch("esl-sfetch") == fake_esl_sfetch


def test_require_esl_sfetch_missing(tmp_path):
    with pytest.raises(ExecutableNotFound):
        require_esl_sfetch(tmp_path / "nope" / "esl-sfetch")


def test_require_esl_sfetch_not_executable(tmp_path):
    plain = tmp_path / "esl-sfetch"
    plain.write_text("not a program\n")
    plain.chmod(0o644)
    with pytest.raises(ExecutableNotFound):
        require_esl_sfetch(plain)


def test_fetch_hit_writes_record(fasta_file, fake_esl_sfetch):
    out = io.StringIO()
    result = fetch_hit(make_hit(), make_config(fasta_file, fake_esl_sfetch), out=out)

    assert result.ok
    assert result.n_records == 1
    assert out.getvalue() == ">seqA/100..200 fetched\nACGTACGT\n"
    assert read_calls(fake_esl_sfetch) == [["-c", "100..200", str(fasta_file), "seqA"]]


def test_fetch_hit_species_prefix(fasta_file, fake_esl_sfetch):
    out = io.StringIO()
    fetch_hit(make_hit(), make_config(fasta_file, fake_esl_sfetch, species_id="Amel_"), out=out)

    assert out.getvalue().splitlines()[0] == ">Amel_seqA/100..200 fetched"


def test_fetch_hit_failure_carries_target_and_stderr(fasta_file, fake_esl_sfetch):
    out = io.StringIO()
    with pytest.raises(FetchFailed) as excinfo:
        fetch_hit(make_hit(target="FAIL_seq"), make_config(fasta_file, fake_esl_sfetch), out=out)

    assert excinfo.value.target_name == "FAIL_seq"
    assert excinfo.value.returncode == 1
    assert "Failed to find key FAIL_seq" in excinfo.value.stderr
    assert "FAIL_seq:100..200" in str(excinfo.value)
    assert out.getvalue() == ""


def test_duplicate_targets_fetched_independently(fasta_file, fake_esl_sfetch):
    config = make_config(fasta_file, fake_esl_sfetch)
    out = io.StringIO()
    fetch_hit(make_hit(start=1, end=50), config, out=out)
    fetch_hit(make_hit(start=60, end=90), config, out=out)

    ranges = [call[1] for call in read_calls(fake_esl_sfetch)]
    assert ranges == ["1..50", "60..90"]


def test_prepare_fasta_links_unindexed(tmp_path, fasta_file):
    workdir = tmp_path / "work"
    workdir.mkdir()

    prepared = prepare_fasta(fasta_file, workdir)

    assert prepared.parent == workdir
    assert prepared.read_text() == fasta_file.read_text()


def test_prepare_fasta_uses_existing_index(tmp_path, fasta_file):
    Path(str(fasta_file) + ".ssi").write_text("")
    assert prepare_fasta(fasta_file, tmp_path) == fasta_file


def test_prepare_fasta_decompresses_gzip(tmp_path):
    gz = tmp_path / "genome.fa.gz"
    with gzip.open(gz, 'wt') as f:
        f.write(">seqA\nACGT\n")
    workdir = tmp_path / "work"
    workdir.mkdir()

    prepared = prepare_fasta(gz, workdir)

    assert prepared == workdir / "genome.fa"
    assert prepared.read_text() == ">seqA\nACGT\n"


def test_index_fasta(tmp_path, fasta_file, fake_esl_sfetch):
    assert not has_index(fasta_file)
    ssi = index_fasta(fake_esl_sfetch, fasta_file)
    assert ssi == Path(str(fasta_file) + ".ssi")
    assert has_index(fasta_file)


def test_fetch_hit_non_utf8_header(fasta_file, fake_esl_sfetch):
    out = io.StringIO()
    result = fetch_hit(make_hit(target="LATIN_seq"), make_config(fasta_file, fake_esl_sfetch), out=out)

    assert result.ok
    assert result.n_records == 1
    assert out.getvalue().startswith(">LATIN_seq/100..200 Caf")
    assert out.getvalue().endswith("\nACGTACGT\n")


def test_prepare_fasta_without_link_uses_plain_fasta(tmp_path, fasta_file):
    assert prepare_fasta(fasta_file, tmp_path, link=False) == fasta_file


def test_prepare_fasta_without_link_still_decompresses(tmp_path):
    gz = tmp_path / "genome.fa.gz"
    with gzip.open(gz, 'wt') as f:
        f.write(">seqA\nACGT\n")
    workdir = tmp_path / "work"
    workdir.mkdir()

    prepared = prepare_fasta(gz, workdir, link=False)

    assert prepared == workdir / "genome.fa"
    assert prepared.read_text() == ">seqA\nACGT\n"
