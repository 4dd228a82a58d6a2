""" Relative sequence weighting algorithms. All functions return weights
that are positive and sum to the number of sequences.
"""
import warnings

import numpy as np
from scipy.cluster.hierarchy import linkage

from buildHMM.msa_hmm.Clustering import distance_matrix, single_linkage
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset


def position_based_weights(data : AlignedDataset) -> np.ndarray:
    """
    Henikoff & Henikoff position-based weights. In each column, a
    sequence receives ``1/(r*s)`` where ``r`` is the number of different
    residues in the column and ``s`` the number of sequences sharing its
    residue. The sum is divided by the number of residues of the sequence.
    Only canonical residues contribute.
    """
    msa = data.msa_matrix
    K = data.alphabet.K
    canonical = data.alphabet.is_canonical(msa)
    one_hot = (msa[:, :, np.newaxis] == np.arange(K)) # (n, L, K)
    counts = np.sum(one_hot, axis=0) # (L, K)
    ntypes = np.sum(counts > 0, axis=1) # (L,)
    cols = np.arange(data.alignment_len)
    own_count = counts[cols[np.newaxis], np.minimum(msa, K-1)]
    with np.errstate(divide="ignore"):
        contrib = np.where(
            canonical, 1. / (ntypes[np.newaxis] * own_count), 0.
        )
    rlen = np.sum(canonical, axis=1)
    weights = np.zeros(data.num_seq)
    has_residues = rlen > 0
    weights[has_residues] = np.sum(contrib[has_residues], axis=1) \
        / rlen[has_residues]
    if not np.all(has_residues):
        warnings.warn(
            f"{np.sum(~has_residues)} sequence(s) without canonical residues "
            "received the mean position-based weight."
        )
        weights[~has_residues] = np.mean(weights[has_residues]) \
            if np.any(has_residues) else 1.
    return _normalize(weights)


def gsc_weights(data : AlignedDataset) -> np.ndarray:
    """
    Gerstein/Sonnhammer/Chothia tree weights. A UPGMA tree is built from
    pairwise distances and the weight of the root is distributed down
    the tree in proportion to the total branch length of each subtree.
    Where both subtrees have zero length, the weight is split by their
    number of leaves.
    """
    n = data.num_seq
    if n == 1:
        return np.ones(1)
    Z = linkage(distance_matrix(data), method="average")
    nnodes = 2*n - 1
    height = np.zeros(nnodes)
    height[n:] = Z[:, 2] / 2.
    children = Z[:, :2].astype(int)
    parent_height = np.zeros(nnodes)
    for j, (a, b) in enumerate(children):
        parent_height[a] = parent_height[b] = height[n+j]
    branch = parent_height - height
    branch[-1] = 0.

    # upward pass: total branch length below each node
    x = np.zeros(nnodes)
    for j, (a, b) in enumerate(children):
        x[n+j] = x[a] + branch[a] + x[b] + branch[b]

    size = np.ones(nnodes)
    size[n:] = Z[:, 3]

    # downward pass
    w = np.zeros(nnodes)
    w[-1] = 1.
    for j in range(n-2, -1, -1):
        a, b = children[j]
        la = x[a] + branch[a]
        lb = x[b] + branch[b]
        if la + lb > 0:
            w[a] = w[n+j] * la / (la + lb)
            w[b] = w[n+j] * lb / (la + lb)
        else:
            w[a] = w[n+j] * size[a] / size[n+j]
            w[b] = w[n+j] * size[b] / size[n+j]
    weights = w[:n]
    if np.any(weights <= 0):
        # zero-length branches can leave a leaf without weight
        positive = weights[weights > 0]
        floor = positive.min() if positive.size else 1.
        weights = np.maximum(weights, floor)
    return _normalize(weights)


def blosum_weights(data : AlignedDataset, wid : float = 0.62) -> np.ndarray:
    """
    BLOSUM weights: sequences are clustered by single linkage at identity
    ``wid`` and each sequence receives the inverse size of its cluster.
    """
    nclusters, assignment = single_linkage(data, wid)
    sizes = np.bincount(assignment, minlength=nclusters)
    return _normalize(1. / sizes[assignment])


def _normalize(weights : np.ndarray) -> np.ndarray:
    total = np.sum(weights)
    if not np.isfinite(total) or total <= 0:
        raise ValueError("Sequence weights do not sum to a positive value.")
    return weights * (weights.shape[0] / total)
