import numpy as np
import pytest

from buildHMM.msa_hmm.SequenceDataset import AlignedDataset
from buildHMM.msa_hmm.Weighting import (blosum_weights, gsc_weights,
                                        position_based_weights)

ALGORITHMS = [position_based_weights, gsc_weights, blosum_weights]


@pytest.fixture
def redundant_msa() -> AlignedDataset:
    return AlignedDataset(aligned_sequences=[
        ("a", "AAAA"), ("b", "AAAA"), ("c", "CCCC"),
    ])


@pytest.mark.parametrize("weighting", ALGORITHMS)
def test_identical_sequences(weighting) -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDE"), ("b", "ACDE"), ("c", "ACDE"),
    ])
    np.testing.assert_almost_equal(weighting(data), [1., 1., 1.])


@pytest.mark.parametrize("weighting", ALGORITHMS)
def test_redundant_sequences_downweighted(weighting, redundant_msa) -> None:
    weights = weighting(redundant_msa)
    np.testing.assert_almost_equal(weights, [0.75, 0.75, 1.5])


@pytest.mark.parametrize("weighting", ALGORITHMS)
def test_weights_sum_to_num_seq(weighting) -> None:
    with AlignedDataset("tests/data/globins.sto") as data:
        weights = weighting(data)
    assert weights.shape == (12,)
    assert np.all(weights > 0)
    np.testing.assert_almost_equal(np.sum(weights), 12.)


def test_single_sequence() -> None:
    data = AlignedDataset(aligned_sequences=[("a", "ACDE")])
    np.testing.assert_equal(gsc_weights(data), [1.])
    np.testing.assert_equal(blosum_weights(data), [1.])
    np.testing.assert_equal(position_based_weights(data), [1.])


def test_position_based_no_canonical_residues() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "AAAA"), ("b", "CCCC"), ("x", "XXXX"),
    ])
    with pytest.warns(UserWarning, match="without canonical residues"):
        weights = position_based_weights(data)
    np.testing.assert_almost_equal(weights, [1., 1., 1.])


def test_gsc_outlier_gets_most_weight() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDEFGHIKL"),
        ("b", "ACDEFGHIKM"),
        ("c", "ACDEFGHIKN"),
        ("d", "MNPQRSTVWY"),
    ])
    weights = gsc_weights(data)
    assert np.argmax(weights) == 3
    np.testing.assert_almost_equal(weights[0], weights[1])
