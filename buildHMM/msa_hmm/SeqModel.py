import numpy as np
from Bio.SeqRecord import SeqRecord

from buildHMM.hmm.alphabet import Alphabet
from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import (PHMM, PHMMFlags, TDD, TDM, TII, TIM, TMD, TMI,
                               TMM)
from buildHMM.hmm.trace import StateType, Trace
from buildHMM.msa_hmm.ScoreSystem import ScoreSystem


def seq_model(
    record : SeqRecord,
    alphabet : Alphabet,
    score_system : ScoreSystem,
    bg : Background,
) -> PHMM:
    """
    Builds a probability model from a single sequence. Each residue
    becomes a match state that emits the conditional distribution of its
    row of the score system, inserts emit the background and the
    transitions are derived from the gap open and extend probabilities.

    Raises:
        ValueError: If the sequence is empty or contains unknown symbols.
    """
    codes = alphabet.encode(str(record.seq))
    codes = codes[codes != alphabet.gap_code]
    M = codes.shape[0]
    if M == 0:
        raise ValueError(f"Sequence {record.id} is empty.")
    popen = score_system.popen
    pextend = score_system.pextend

    hmm = PHMM.zeros(M, alphabet)
    deg = alphabet.degeneracy[codes]
    deg = deg / deg.sum(axis=1, keepdims=True)
    hmm.mat[1:] = deg @ score_system.Q
    hmm.mat[0, 0] = 1.
    hmm.ins[:] = bg.f

    hmm.t[0, TMM] = 1. - popen
    hmm.t[0, TMD] = popen
    hmm.t[0, TIM] = 1.
    hmm.t[0, TDM] = 1.
    hmm.t[1:M, TMM] = 1. - 2.*popen
    hmm.t[1:M, TMI] = popen
    hmm.t[1:M, TMD] = popen
    hmm.t[1:M, TIM] = 1. - pextend
    hmm.t[1:M, TII] = pextend
    hmm.t[1:M, TDM] = 1. - pextend
    hmm.t[1:M, TDD] = pextend
    hmm.t[M, TMM] = 1.
    hmm.t[M, TIM] = 1.
    hmm.t[M, TDM] = 1.

    hmm.nseq = 1
    hmm.eff_nseq = 1.
    hmm.name = record.id
    if record.description and record.description != record.id:
        desc = record.description
        if desc.startswith(record.id):
            desc = desc[len(record.id):].strip()
        if desc:
            hmm.description = desc
            hmm.flags |= PHMMFlags.DESC
    hmm.flags |= PHMMFlags.SINGLE
    return hmm


def single_trace(M : int) -> Trace:
    """The trace of a sequence through its own single sequence model,
    relative to the core model (B, M1..MM, E)."""
    tr = Trace(M=M, L=M)
    tr.append(StateType.B)
    for k in range(1, M+1):
        tr.append(StateType.M, k, k-1)
    tr.append(StateType.E)
    return tr
