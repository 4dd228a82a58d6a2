import numpy as np

from buildHMM.errors import FormatError, NoResultError
from buildHMM.hmm.alphabet import GAP_SYMBOLS
from buildHMM.hmm.phmm import (PHMM, PHMMFlags, TDD, TDM, TII, TIM, TMD, TMI,
                               TMM)
from buildHMM.hmm.trace import StateType, Trace
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset

S, N, B, M, D, I, E, C, T = StateType

# Transition index for (from state, to state). E counts like M(k+1).
_TRANSITION_INDEX = {
    (M, M): TMM, (M, E): TMM, (M, I): TMI, (M, D): TMD,
    (I, M): TIM, (I, E): TIM, (I, I): TII,
    (D, M): TDM, (D, E): TDM, (D, D): TDD,
    (B, M): TMM, (B, I): TMI, (B, D): TMD,
}


def fast_model_maker(
    data : AlignedDataset,
    symfrac : float = 0.5,
    want_traces : bool = False,
) -> tuple[PHMM, list[Trace] | None]:
    """
    Builds a model of weighted counts from an alignment. A column is
    assigned to a match state if the weighted fraction of residues in it
    is at least ``symfrac``.

    Args:
        data: The alignment. Its weights are used for counting.
        symfrac: Residue fraction threshold.
        want_traces: If True, the faux tracebacks of all sequences are
            returned as well.

    Returns:
        The model and a list of traces (or None).

    Raises:
        NoResultError: If no column passes the threshold.
    """
    residues = data.alphabet.is_residue(data.msa_matrix)
    w = data.weights[:, np.newaxis]
    r = np.sum(w * residues, axis=0)
    g = np.sum(w * ~residues, axis=0)
    with np.errstate(divide="ignore", invalid="ignore"):
        matassign = (r > 0) & (r / (r + g) >= symfrac)
    if not np.any(matassign):
        raise NoResultError("no consensus columns")
    return matassign2hmm(data, matassign, want_traces)


def hand_model_maker(
    data : AlignedDataset,
    want_traces : bool = False,
) -> tuple[PHMM, list[Trace] | None]:
    """
    Builds a model of weighted counts from an alignment. Match columns are
    the non-gap characters of the reference annotation line.

    Raises:
        FormatError: If the alignment has no reference annotation.
        NoResultError: If no column is marked.
    """
    if data.reference_annotation is None:
        raise FormatError("no reference annotation line")
    matassign = np.array([
        c not in GAP_SYMBOLS and not c.isspace()
        for c in data.reference_annotation
    ], dtype=bool)
    if not np.any(matassign):
        raise NoResultError("no annotated consensus columns")
    return matassign2hmm(data, matassign, want_traces)


def matassign2hmm(
    data : AlignedDataset,
    matassign : np.ndarray,
    want_traces : bool = False,
) -> tuple[PHMM, list[Trace] | None]:
    """
    Counts a model given an assignment of columns to match states.
    """
    num_match = int(np.sum(matassign))
    hmm = PHMM.zeros(num_match, data.alphabet)
    traces = [
        faux_trace(data, i, matassign) for i in range(data.num_seq)
    ]
    for tr in traces:
        doctor_trace(tr)
    for i, tr in enumerate(traces):
        count_trace(hmm, tr, data.msa_matrix[i], data.weights[i])
    hmm.nseq = data.num_seq
    hmm.eff_nseq = float(data.num_seq)
    if data.reference_annotation is not None:
        hmm.rf = "".join(
            c for c, m in zip(data.reference_annotation, matassign) if m
        )
        hmm.flags |= PHMMFlags.RF
    return hmm, traces if want_traces else None


def faux_trace(
    data : AlignedDataset, i : int, matassign : np.ndarray
) -> Trace:
    """
    Creates the trace of sequence ``i`` implied by a match assignment.
    Residues before the first and after the last match column are
    assigned to the N and C flanks.
    """
    num_match = int(np.sum(matassign))
    row = data.msa_matrix[i]
    residues = data.alphabet.is_residue(row)
    tr = Trace(M=num_match, L=int(np.sum(residues)))
    tr.append(S)
    tr.append(N)
    k = 0
    core = []
    for col in range(data.alignment_len):
        if matassign[col]:
            k += 1
            core.append((M, k, col) if residues[col] else (D, k, -1))
        elif residues[col]:
            core.append((I, k, col))
    # leading and trailing inserts are flanking residues
    for st, k, col in core:
        if st == I and k == 0:
            tr.append(N, 0, col)
    tr.append(B)
    for st, k, col in core:
        if st != I or 0 < k < num_match:
            tr.append(st, k, col)
    tr.append(E)
    tr.append(C)
    for st, k, col in core:
        if st == I and k == num_match:
            tr.append(C, 0, col)
    tr.append(T)
    return tr


def doctor_trace(tr : Trace) -> tuple[int, int]:
    """
    Removes D->I and I->D transitions which the model does not have.
    A delete followed by an insert becomes a match that takes the first
    insert residue. An insert followed by a delete gives its last residue
    to a match in place of the delete.

    Returns:
        The number of D->I and I->D fixes.
    """
    ndi = nid = 0
    z = 0
    while z < len(tr) - 1:
        st, nxt = tr.st[z], tr.st[z+1]
        if st == D and nxt == I:
            tr.st[z] = M
            tr.i[z] = tr.i[z+1]
            _delete_step(tr, z+1)
            ndi += 1
            continue
        if st == I and nxt == D:
            tr.st[z] = M
            tr.k[z] = tr.k[z+1]
            _delete_step(tr, z+1)
            nid += 1
            continue
        z += 1
    return ndi, nid


def _delete_step(tr : Trace, z : int) -> None:
    del tr.st[z]
    del tr.k[z]
    del tr.i[z]


def count_trace(
    hmm : PHMM, tr : Trace, row : np.ndarray, weight : float
) -> None:
    """
    Adds the weighted emissions and transitions of a trace to the counts
    of a model.

    Raises:
        ValueError: If the trace uses a transition the model lacks.
    """
    deg = hmm.alphabet.degeneracy
    deg = deg / np.maximum(deg.sum(axis=1, keepdims=True), 1)
    for z, (st, k, col) in enumerate(tr):
        if st == M:
            hmm.mat[k] += weight * deg[row[col]]
        elif st == I:
            hmm.ins[k] += weight * deg[row[col]]
        if st not in (B, M, I, D):
            continue
        nxt = tr.st[z+1]
        try:
            idx = _TRANSITION_INDEX[(st, nxt)]
        except KeyError:
            raise ValueError(
                f"Unexpected transition {st.name}->{nxt.name} in trace."
            ) from None
        hmm.t[0 if st == B else k, idx] += weight
