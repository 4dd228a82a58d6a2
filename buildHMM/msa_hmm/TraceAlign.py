import numpy as np

from buildHMM.hmm.phmm import PHMM
from buildHMM.hmm.trace import StateType, Trace
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset


def make_post_msa(
    data : AlignedDataset, traces : list[Trace], hmm : PHMM
) -> AlignedDataset:
    """
    Rebuilds an alignment from the traces of its sequences. Match states
    become upper case consensus columns (gaps ``-``), inserts and flanking
    residues lower case insert columns (gaps ``.``). Inserts are left
    justified. The reference annotation marks the consensus columns with
    ``x``.

    Args:
        data: The alignment the traces were created from.
        traces: One trace per sequence of ``data``.
        hmm: The model, which provides the number of match states.
    """
    M = hmm.M
    if len(traces) != data.num_seq:
        raise ValueError("Expected one trace per sequence.")
    # number of residues in the N flank, each insert and the C flank
    nflank = np.zeros(data.num_seq, dtype=int)
    cflank = np.zeros(data.num_seq, dtype=int)
    ins = np.zeros((data.num_seq, M+1), dtype=int)
    for n, tr in enumerate(traces):
        for st, k, i in tr:
            if st == StateType.N and i >= 0:
                nflank[n] += 1
            elif st == StateType.C and i >= 0:
                cflank[n] += 1
            elif st == StateType.I:
                ins[n, k] += 1
    nwidth = int(nflank.max())
    cwidth = int(cflank.max())
    iwidth = ins.max(axis=0)

    rf = ["." * nwidth]
    for k in range(1, M+1):
        rf.append("x" + "." * int(iwidth[k]))
    rf.append("." * cwidth)

    aligned = []
    for n, tr in enumerate(traces):
        text = str(data.get_record(n).seq)
        flank_n, flank_c = [], []
        match = ["-"] * (M+1)
        inserts = [[] for _ in range(M+1)]
        for st, k, i in tr:
            if st == StateType.N and i >= 0:
                flank_n.append(text[i].lower())
            elif st == StateType.C and i >= 0:
                flank_c.append(text[i].lower())
            elif st == StateType.M:
                match[k] = text[i].upper()
            elif st == StateType.I:
                inserts[k].append(text[i].lower())
        row = ["".join(flank_n).ljust(nwidth, ".")]
        for k in range(1, M+1):
            row.append(match[k])
            row.append("".join(inserts[k]).ljust(int(iwidth[k]), "."))
        row.append("".join(flank_c).ljust(cwidth, "."))
        aligned.append((data.seq_ids[n], "".join(row)))

    return AlignedDataset(
        aligned_sequences=aligned,
        alphabet=data.alphabet,
        name=data.name,
        accession=data.accession,
        description=data.description,
        reference_annotation="".join(rf),
        cutoffs=data.cutoffs,
        weights=data.weights.copy(),
    )
