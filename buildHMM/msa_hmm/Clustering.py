import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from buildHMM.msa_hmm.SequenceDataset import AlignedDataset


def pairwise_identity(data : AlignedDataset) -> np.ndarray:
    """
    Computes the pairwise identities of all aligned sequences. The identity
    of two sequences is the number of aligned identical canonical residues
    divided by the length of the shorter sequence.

    Returns:
        A symmetric matrix of shape ``(num_seq, num_seq)`` with ones on the
        diagonal.
    """
    msa = data.msa_matrix
    canonical = data.alphabet.is_canonical(msa)
    seq_lens = np.sum(data.alphabet.is_residue(msa), axis=1)
    n = data.num_seq
    pid = np.eye(n)
    for i in range(n-1):
        same = (msa[i+1:] == msa[i]) & canonical[i+1:] & canonical[i]
        idents = np.sum(same, axis=1)
        min_len = np.minimum(seq_lens[i+1:], seq_lens[i])
        with np.errstate(divide="ignore", invalid="ignore"):
            row = np.where(min_len > 0, idents / min_len, 0.)
        pid[i, i+1:] = row
        pid[i+1:, i] = row
    return pid


def distance_matrix(data : AlignedDataset) -> np.ndarray:
    """Condensed pairwise distances ``1 - identity``."""
    dist = 1. - pairwise_identity(data)
    np.fill_diagonal(dist, 0.)
    return squareform(dist, checks=False)


def single_linkage(
    data : AlignedDataset, maxid : float
) -> tuple[int, np.ndarray]:
    """
    Clusters the sequences by single linkage: two sequences end up in the
    same cluster if they are connected by a chain of pairs with an
    identity of at least ``maxid``.

    Returns:
        The number of clusters and a 0-based cluster index per sequence.
    """
    if data.num_seq == 1:
        return 1, np.zeros(1, dtype=int)
    Z = linkage(distance_matrix(data), method="single")
    # fcluster merges at distances <= t, so identities >= maxid
    labels = fcluster(Z, t=1. - maxid, criterion="distance")
    _, assignment = np.unique(labels, return_inverse=True)
    return int(assignment.max()) + 1, assignment
