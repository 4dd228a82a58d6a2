import numpy as np

from buildHMM.msa_hmm.Clustering import (distance_matrix, pairwise_identity,
                                         single_linkage)
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset


def test_pairwise_identity() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDE"), ("b", "ACDF"), ("c", "AC--"),
    ])
    pid = pairwise_identity(data)
    np.testing.assert_almost_equal(pid, [
        [1., 0.75, 1.],
        [0.75, 1., 1.],
        [1., 1., 1.],
    ])


def test_identity_ignores_degenerate_residues() -> None:
    data = AlignedDataset(aligned_sequences=[("a", "AXXX"), ("b", "AXXX")])
    np.testing.assert_almost_equal(pairwise_identity(data)[0, 1], 0.25)


def test_distance_matrix() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDE"), ("b", "ACDF"), ("c", "GHIK"),
    ])
    np.testing.assert_almost_equal(distance_matrix(data), [0.25, 1., 1.])


def test_single_linkage() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDEFGHIKL"),
        ("b", "ACDEFGHIKM"),
        ("c", "MNPQRSTVWY"),
    ])
    nclusters, assignment = single_linkage(data, 0.62)
    assert nclusters == 2
    assert assignment[0] == assignment[1]
    assert assignment[0] != assignment[2]


def test_single_linkage_chaining() -> None:
    # a-b and b-c are 70% identical, a-c only 40%
    data = AlignedDataset(aligned_sequences=[
        ("a", "AAAAAAAAAA"),
        ("b", "AAAAAAACCC"),
        ("c", "AAAACCCCCC"),
    ])
    nclusters, assignment = single_linkage(data, 0.62)
    assert nclusters == 1
    np.testing.assert_equal(assignment, [0, 0, 0])
    nclusters, _ = single_linkage(data, 0.8)
    assert nclusters == 3


def test_single_linkage_identity_threshold() -> None:
    data = AlignedDataset(aligned_sequences=[
        ("a", "ACDE"), ("b", "ACDF"), ("c", "ACDF"),
    ])
    assert single_linkage(data, 0.75)[0] == 1
    assert single_linkage(data, 0.8)[0] == 2
    assert single_linkage(data, 0.)[0] == 1


def test_single_sequence() -> None:
    data = AlignedDataset(aligned_sequences=[("a", "ACDE")])
    nclusters, assignment = single_linkage(data, 0.62)
    assert nclusters == 1
    np.testing.assert_equal(assignment, [0])
