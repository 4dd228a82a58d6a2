"""Dynamic programming scoring of sequences against a local multihit
profile. All functions score a batch of equal length digital sequences
at once and return bit scores corrected by the null model.
"""
import math

import numpy as np

from buildHMM.hmm.background import Background

LN2 = math.log(2.)


def msv(prof, bg: Background, x: np.ndarray) -> np.ndarray:
    """ Ungapped multihit local alignment score (MSV filter).

    Args:
        prof: A Profile or OptimizedProfile.
        bg: Null model.
        x: Digital sequences of shape ``(n, L)`` or ``(L,)``.
    """
    x = np.atleast_2d(x)
    n, L = x.shape
    M = prof.M
    Mp = np.full((n, M+1), -np.inf)
    N = np.zeros(n)
    J = np.full(n, -np.inf)
    C = np.full(n, -np.inf)
    B = N + prof.n_move
    for i in range(L):
        sc = prof.msv_scores(x[:, i])
        Mc = np.full((n, M+1), -np.inf)
        Mc[:, 1:] = sc[:, 1:] + np.maximum(
            Mp[:, :-1], B[:, np.newaxis] + prof.tbm
        )
        E = np.max(Mc[:, 1:], axis=1)
        J = np.maximum(J + prof.j_loop, E + prof.e_j)
        C = np.maximum(C + prof.c_loop, E + prof.e_c)
        N = N + prof.n_loop
        B = np.maximum(N + prof.n_move, J + prof.j_move)
        Mp = Mc
    return (C + prof.c_move - bg.null_score(L)) / LN2


def viterbi(prof, bg: Background, x: np.ndarray) -> np.ndarray:
    """Optimal gapped local alignment score."""
    return _generic(prof, bg, x, np.maximum)


def forward(prof, bg: Background, x: np.ndarray) -> np.ndarray:
    """Score summed over all local alignments."""
    return _generic(prof, bg, x, np.logaddexp)


def _generic(prof, bg: Background, x: np.ndarray, op: np.ufunc) -> np.ndarray:
    x = np.atleast_2d(x)
    n, L = x.shape
    M = prof.M
    tMM, tMI, tMD = prof.tMM, prof.tMI, prof.tMD
    tIM, tII, tDM = prof.tIM, prof.tII, prof.tDM
    # cdd[k] is the summed score of D1 -> ... -> Dk
    cdd = np.zeros(M+1)
    cdd[2:] = np.cumsum(prof.tDD[1:M])

    Mp = np.full((n, M+1), -np.inf)
    Ip = np.full((n, M+1), -np.inf)
    Dp = np.full((n, M+1), -np.inf)
    N = np.zeros(n)
    J = np.full(n, -np.inf)
    C = np.full(n, -np.inf)
    B = N + prof.n_move
    for i in range(L):
        msc = prof.match_scores(x[:, i])
        isc = prof.insert_scores(x[:, i])

        Mc = np.full((n, M+1), -np.inf)
        Mc[:, 1:] = msc[:, 1:] + op.reduce(np.stack([
            Mp[:, :-1] + tMM[:-1],
            Ip[:, :-1] + tIM[:-1],
            Dp[:, :-1] + tDM[:-1],
            B[:, np.newaxis] + prof.tBM[1:],
        ]), axis=0)

        Ic = np.full((n, M+1), -np.inf)
        Ic[:, 1:M] = isc[:, 1:M] + op(
            Mp[:, 1:M] + tMI[1:M], Ip[:, 1:M] + tII[1:M]
        )

        Dc = np.full((n, M+1), -np.inf)
        if M > 1:
            Dc[:, 2:] = cdd[2:] + op.accumulate(
                Mc[:, 1:M] + tMD[1:M] - cdd[2:], axis=1
            )

        E = op.reduce(Mc[:, 1:], axis=1)
        J = op(J + prof.j_loop, E + prof.e_j)
        C = op(C + prof.c_loop, E + prof.e_c)
        N = N + prof.n_loop
        B = op(N + prof.n_move, J + prof.j_move)
        Mp, Ip, Dp = Mc, Ic, Dc
    return (C + prof.c_move - bg.null_score(L)) / LN2
