import numpy as np
import pytest

from buildHMM.hmm import Alphabet, Background, PHMM, PHMMFlags, StateType, Trace
from buildHMM.hmm.phmm import TDM, TDD, TIM, TMD, TMI, TMM


def test_zeros() -> None:
    hmm = PHMM.zeros(5, Alphabet.amino())
    assert hmm.t.shape == (6, 7)
    assert hmm.mat.shape == (6, 20)
    assert hmm.ins.shape == (6, 20)
    assert hmm.flags == PHMMFlags(0)
    with pytest.raises(ValueError):
        PHMM.zeros(0, Alphabet.amino())


def test_estimated_model_is_normalized(make_model) -> None:
    hmm = make_model()
    hmm.validate()
    # fixed transitions of the first and last node
    assert hmm.t[0, TDM] == 1. and hmm.t[0, TDD] == 0.
    assert hmm.t[3, TMD] == 0.
    assert hmm.t[3, TDM] == 1. and hmm.t[3, TDD] == 0.
    np.testing.assert_almost_equal(hmm.mat[1], [11/14, 1/14, 1/14, 1/14])


def test_validate_unnormalized(make_model) -> None:
    hmm = make_model()
    hmm.mat[2, 0] += 0.5
    with pytest.raises(ValueError, match="match emissions"):
        hmm.validate()


def test_scale_and_copy() -> None:
    hmm = PHMM.zeros(2, Alphabet.dna())
    hmm.mat[1, 0] = 4.
    hmm.t[1, TMM] = 2.
    copy = hmm.copy()
    hmm.scale(0.5)
    assert hmm.mat[1, 0] == 2. and hmm.t[1, TMM] == 1.
    assert copy.mat[1, 0] == 4.


def test_occupancy(make_model) -> None:
    hmm = make_model()
    mocc, iocc = hmm.occupancy()
    t = hmm.t
    assert mocc[0] == 0.
    assert mocc[1] == pytest.approx(t[0, TMM] + t[0, TMI])
    assert mocc[2] == pytest.approx(
        mocc[1] * (t[1, TMM] + t[1, TMI]) + (1 - mocc[1]) * t[1, TDM]
    )
    assert np.all((mocc[1:] > 0) & (mocc[1:] <= 1))
    assert iocc[1] == pytest.approx(mocc[1] * t[1, TMI] / t[1, TIM])


def test_composition(make_model) -> None:
    hmm = make_model()
    hmm.set_composition()
    np.testing.assert_almost_equal(hmm.compo.sum(), 1.)
    assert PHMMFlags.COMPO in hmm.flags


def test_consensus(make_model) -> None:
    hmm = make_model(4)
    hmm.mat[4] = [0.1, 0.5, 0.2, 0.2]
    hmm.set_consensus()
    # nucleic residues need a probability of 0.9 to be upper case
    assert hmm.consensus == "acgc"
    hmm = PHMM.zeros(2, Alphabet.amino())
    hmm.mat[1] = np.eye(20)[3]
    hmm.mat[2] = np.full(20, 0.05)
    hmm.set_consensus()
    assert hmm.consensus[0] == "D"
    assert hmm.consensus[1] == "a"
    assert PHMMFlags.CONS in hmm.flags


def test_relative_entropy() -> None:
    bg = Background.for_alphabet(Alphabet.dna())
    hmm = PHMM.zeros(2, Alphabet.dna())
    hmm.mat[1:] = 0.25
    assert hmm.mean_match_relative_entropy(bg) == pytest.approx(0.)
    hmm.mat[1:] = [1., 0., 0., 0.]
    assert hmm.mean_match_relative_entropy(bg) == pytest.approx(2.)


class TestTrace:

    def make_trace(self) -> Trace:
        tr = Trace(M=3, L=4)
        tr.append(StateType.S)
        tr.append(StateType.N)
        tr.append(StateType.N, 0, 0)
        tr.append(StateType.B)
        tr.append(StateType.M, 1, 1)
        tr.append(StateType.I, 1, 2)
        tr.append(StateType.D, 2)
        tr.append(StateType.M, 3, 3)
        tr.append(StateType.E)
        tr.append(StateType.C)
        tr.append(StateType.T)
        return tr

    def test_valid(self) -> None:
        tr = self.make_trace()
        tr.validate()
        assert len(tr) == 11
        assert tr.residue_count() == 4

    def test_start_and_end(self) -> None:
        tr = self.make_trace()
        tr.st[-1] = StateType.C
        with pytest.raises(ValueError, match="start with S"):
            tr.validate()

    def test_decreasing_node(self) -> None:
        tr = self.make_trace()
        tr.k[7] = 2
        with pytest.raises(ValueError, match="Invalid node"):
            tr.validate()

    def test_insert_node(self) -> None:
        tr = self.make_trace()
        tr.k[5] = 2
        with pytest.raises(ValueError, match="insert node"):
            tr.validate()

    def test_silent_with_column(self) -> None:
        tr = self.make_trace()
        tr.i[6] = 2
        with pytest.raises(ValueError, match="Column mismatch"):
            tr.validate()
