import numpy as np
import pytest

from buildHMM.hmm.alphabet import Alphabet
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset, SequenceDataset

DIR = "tests/data"


def test_records() -> None:
    with SequenceDataset(f"{DIR}/queries.fasta", "fasta") as data:
        data.validate_dataset()
        assert data.num_seq == 2
        assert data.seq_ids == ["query1", "query2"]
        assert data.get_record(0).description == "query1 first test query"
        np.testing.assert_equal(data.seq_lens, [28, 22])


def test_encoded_seq() -> None:
    with SequenceDataset(sequences=[("a", "AC-D"), ("b", "acd")]) as data:
        alphabet = data.alphabet
        np.testing.assert_equal(
            data.get_encoded_seq(0), alphabet.encode("ACD")
        )
        np.testing.assert_equal(
            data.get_encoded_seq(1), data.get_encoded_seq(0)
        )
        full = data.get_encoded_seq(0, remove_gaps=False)
        assert full.size == 4
        assert full[2] == alphabet.gap_code


def test_encoded_seq_unknown_symbol() -> None:
    with SequenceDataset(sequences=[("bad", "AC1D")]) as data:
        with pytest.raises(ValueError, match="Sequence bad"):
            data.get_encoded_seq(0)


def test_invalid_datasets() -> None:
    with pytest.raises(ValueError, match="single sequence"):
        SequenceDataset(sequences=[("a", "ACD")]).validate_dataset()
    SequenceDataset(sequences=[("a", "ACD")]).validate_dataset(
        single_seq_ok=True
    )
    with pytest.raises(ValueError, match="empty sequences"):
        SequenceDataset(
            sequences=[("a", "ACD"), ("b", "---")]
        ).validate_dataset()
    with pytest.raises(ValueError, match="different lengths"):
        AlignedDataset(aligned_sequences=[("a", "ACD"), ("b", "AC")])


def test_all_gap_row_in_alignment() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACD"), ("b", "---"), ("c", "A-D")
    ])
    np.testing.assert_equal(data.seq_lens, [3, 0, 2])
    assert np.all(data.msa_matrix[1] == data.alphabet.gap_code)


class TestAlignedDataset:

    def test_stockholm_markup(self) -> None:
        with AlignedDataset(f"{DIR}/globins.sto") as data:
            assert data.num_seq == 12
            assert data.alignment_len == 30
            assert data.msa_matrix.shape == (12, 30)
            assert data.name == "globin_frag"
            assert data.accession == "PF99999.1"
            assert data.description == "Globin fragment test family"
            assert data.reference_annotation == "x" * 10 + ".." + "x" * 18
            assert data.cutoffs == {
                "GA": (25.0, 25.0), "TC": (27.5, 26.1), "NC": (22.0, 21.4)
            }
            assert not data.has_weights
            np.testing.assert_equal(data.weights, np.ones(12))

    def test_gap_codes(self) -> None:
        with AlignedDataset(f"{DIR}/globins.sto") as data:
            gap = data.alphabet.gap_code
            assert data.msa_matrix[0, 10] == gap
            assert data.msa_matrix[6, 0] == gap
            assert data.msa_matrix[6, 10] != gap

    def test_given_weights(self) -> None:
        with AlignedDataset(f"{DIR}/weighted.sto") as data:
            assert data.has_weights
            np.testing.assert_almost_equal(data.weights, [0.5, 1.5, 1.0])
            assert data.reference_annotation is None
            assert data.cutoffs == {}

    def test_name_defaults_to_file_stem(self, tmp_path) -> None:
        path = tmp_path / "family.sto"
        path.write_text("# STOCKHOLM 1.0\n\na ACDE\nb AC-E\n//\n")
        with AlignedDataset(path) as data:
            assert data.name == "family"
            assert data.accession is None

    def test_no_name_without_file(self) -> None:
        data = AlignedDataset(aligned_sequences=[("a", "ACD"), ("b", "A-D")])
        assert data.name is None
        data = AlignedDataset(
            aligned_sequences=[("a", "ACD"), ("b", "A-D")], name="test"
        )
        assert data.name == "test"

    def test_weights_setter(self) -> None:
        data = AlignedDataset(aligned_sequences=[("a", "ACD"), ("b", "A-D")])
        data.weights = [2., 0.5]
        np.testing.assert_equal(data.weights, [2., 0.5])
        with pytest.raises(ValueError, match="Expected 2 weights"):
            data.weights = [1., 1., 1.]

    def test_reference_annotation_length(self) -> None:
        with pytest.raises(ValueError, match="Reference annotation"):
            AlignedDataset(
                aligned_sequences=[("a", "ACD"), ("b", "A-D")],
                reference_annotation="xx",
            )

    def test_unknown_symbol(self) -> None:
        with pytest.raises(ValueError, match="Sequence s1"):
            AlignedDataset(f"{DIR}/unknown_symbol.sto")

    def test_nucleic(self) -> None:
        with AlignedDataset(f"{DIR}/dna.sto", alphabet=Alphabet.dna()) as data:
            assert data.alphabet.K == 4
            assert data.alignment_len == 20
            assert data.name == "dna_test"

    def test_checksum(self) -> None:
        a = AlignedDataset(aligned_sequences=[("a", "ACD"), ("b", "A-D")])
        b = AlignedDataset(aligned_sequences=[("x", "ACD"), ("y", "A-D")])
        c = AlignedDataset(aligned_sequences=[("a", "ACD"), ("b", "AD-")])
        assert a.checksum() == b.checksum()
        assert a.checksum() != c.checksum()
        assert 0 <= a.checksum() < 2**32

    def test_write_stockholm(self, tmp_path) -> None:
        path = tmp_path / "out.sto"
        with AlignedDataset(f"{DIR}/globins.sto") as data:
            data.write(path)
        with AlignedDataset(path) as copy:
            assert copy.name == "globin_frag"
            assert copy.accession == "PF99999.1"
            assert copy.description == "Globin fragment test family"
            assert copy.reference_annotation == data.reference_annotation
            assert copy.cutoffs == data.cutoffs
            np.testing.assert_equal(copy.msa_matrix, data.msa_matrix)

    def test_write_weights(self, tmp_path) -> None:
        path = tmp_path / "out.sto"
        with AlignedDataset(f"{DIR}/weighted.sto") as data:
            data.write(path)
        with AlignedDataset(path) as copy:
            assert copy.has_weights
            np.testing.assert_almost_equal(copy.weights, [0.5, 1.5, 1.0])

    def test_single_value_cutoff(self, tmp_path) -> None:
        path = tmp_path / "one_ga.sto"
        path.write_text(
            "# STOCKHOLM 1.0\n#=GF ID one_ga\n#=GF GA 25.00;\n"
            "#=GF TC 27.50 26.10;\n\na ACDE\nb AC-E\n//\n"
        )
        with AlignedDataset(path) as data:
            assert data.cutoffs == {"GA": (25.0,), "TC": (27.5, 26.1)}
            out = tmp_path / "out.sto"
            data.write(out)
        with AlignedDataset(out) as copy:
            assert copy.cutoffs == data.cutoffs

    def test_invalid_cutoff(self, tmp_path) -> None:
        path = tmp_path / "bad_ga.sto"
        path.write_text(
            "# STOCKHOLM 1.0\n#=GF GA 25.00 24.00 23.00;\n\n"
            "a ACDE\nb AC-E\n//\n"
        )
        with pytest.raises(ValueError, match="Invalid GA cutoff line"):
            AlignedDataset(path)
