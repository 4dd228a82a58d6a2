import numpy as np

from buildHMM.msa_hmm.SequenceDataset import AlignedDataset
from buildHMM.run.console import SUMMARY_HEADER, run_main

DIR = "tests/data"
SMALL = ["--EvL", "40", "--EvN", "20", "--EfL", "40", "--EfN", "20"]


def test_build_from_alignment(capsys) -> None:
    assert run_main(["-i", f"{DIR}/globins.sto"] + SMALL) == 0
    out = capsys.readouterr().out
    assert SUMMARY_HEADER in out
    row = [line for line in out.splitlines() if line.startswith("globin_frag")]
    assert len(row) == 1
    fields = row[0].split()
    assert fields[1] == "12"
    assert fields[3] == "28"


def test_silent(capsys) -> None:
    assert run_main(["-i", f"{DIR}/globins.sto", "--silent"] + SMALL) == 0
    assert capsys.readouterr().out == ""


def test_write_alignment(tmp_path) -> None:
    out_file = tmp_path / "post.sto"
    argv = ["-i", f"{DIR}/globins.sto", "-o", str(out_file), "-s"] + SMALL
    assert run_main(argv) == 0
    with AlignedDataset(out_file) as post, \
            AlignedDataset(f"{DIR}/globins.sto") as data:
        assert post.name == "globin_frag"
        assert post.reference_annotation == data.reference_annotation
        np.testing.assert_equal(post.msa_matrix, data.msa_matrix)
        assert post.has_weights


def test_write_fasta(tmp_path) -> None:
    out_file = tmp_path / "post.fasta"
    argv = ["-i", f"{DIR}/dna.sto", "--dna", "-o", str(out_file),
            "-f", "fasta", "-s"] + SMALL
    assert run_main(argv) == 0
    lines = out_file.read_text().splitlines()
    assert lines[0] == ">d1"
    assert "".join(lines[1:]).startswith("ACGTACGTAC.GTACGTAGC")


def test_single_sequences(capsys) -> None:
    argv = ["-i", f"{DIR}/queries.fasta", "--input_format", "fasta",
            "--single"] + SMALL
    assert run_main(argv) == 0
    out = capsys.readouterr().out
    names = [line.split()[0] for line in out.splitlines()
             if line.startswith("query")]
    assert names == ["query1", "query2"]


def test_build_errors(capsys) -> None:
    argv = ["-i", f"{DIR}/weighted.sto", "--hand", "-s"] + SMALL
    assert run_main(argv) == 1
    assert "Error: Alignment weighted has no reference annotation line" in \
        capsys.readouterr().err

    argv = ["-i", f"{DIR}/dna.sto", "--single", "--mxfile",
            f"{DIR}/asymmetric.mat", "--dna", "-s"] + SMALL
    assert run_main(argv) == 1
    assert "Error: Matrix isn't symmetric" in capsys.readouterr().err

    argv = ["-i", f"{DIR}/dna.sto", "--single", "--mxfile",
            "no_such_matrix", "--dna", "-s"] + SMALL
    assert run_main(argv) == 1
    assert "Failed to find or open matrix file no_such_matrix" in \
        capsys.readouterr().err


def test_input_errors(capsys) -> None:
    assert run_main(["-i", f"{DIR}/unknown_symbol.sto", "-s"] + SMALL) == 1
    assert "unknown character" in capsys.readouterr().err
    assert run_main(["-i", f"{DIR}/missing.sto", "-s"] + SMALL) == 1


def test_invalid_option(capsys) -> None:
    assert run_main(["-i", f"{DIR}/globins.sto", "--Eft", "2"]) == 2
    assert "invalid options" in capsys.readouterr().err
