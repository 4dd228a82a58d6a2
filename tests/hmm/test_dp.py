import math

import numpy as np
import pytest

from buildHMM.hmm import Alphabet, Background, OptimizedProfile, Profile
from buildHMM.hmm import dp
from buildHMM.hmm.profile import DD_FLOOR


@pytest.fixture
def setup(make_model):
    hmm = make_model(4)
    bg = Background.for_alphabet(Alphabet.dna())
    gm = Profile.configure(hmm, bg, 10)
    om = OptimizedProfile.from_profile(gm)
    return hmm, bg, gm, om


def test_profile_configuration(setup) -> None:
    hmm, bg, gm, _ = setup
    assert gm.msc.shape == (5, 4)
    assert np.all(np.isneginf(gm.msc[0]))
    assert gm.msc[1, 0] == pytest.approx(math.log((11 / 14) / 0.25))
    # local entry distribution sums to 1 over all fragments
    k = np.arange(1, 5)
    assert np.sum(np.exp(gm.tBM[1:]) * (4 - k + 1)) == pytest.approx(1.)
    assert np.all(gm.tDD >= DD_FLOOR)
    assert gm.L == 10
    assert gm.n_loop == pytest.approx(math.log(10 / 13))
    assert gm.c_move == pytest.approx(math.log(3 / 13))


def test_optimized_profile(setup) -> None:
    _, _, gm, om = setup
    assert om.rsc.shape == (4, 5)
    assert om.rsc.dtype == np.float32
    assert om.rbv.dtype == np.uint8
    np.testing.assert_equal(om.rbv[:, 0], 255)
    # quantized scores are within half a unit of the real ones
    x = np.arange(4)
    err = np.abs(om.msv_scores(x)[:, 1:] - gm.match_scores(x)[:, 1:])
    assert np.all(err <= 0.5 / om.scale + 1e-6)
    assert om.tbm == pytest.approx(math.log(2. / 20.))


def test_viterbi_not_above_forward(setup) -> None:
    _, bg, gm, _ = setup
    rng = np.random.default_rng(7)
    x = rng.integers(0, 4, size=(20, 15))
    v = dp.viterbi(gm, bg, x)
    f = dp.forward(gm, bg, x)
    assert v.shape == f.shape == (20,)
    assert np.all(np.isfinite(v))
    assert np.all(v <= f + 1e-9)


def test_batch_matches_single(setup) -> None:
    _, bg, gm, om = setup
    rng = np.random.default_rng(3)
    x = rng.integers(0, 4, size=(5, 12))
    for fn, prof in [(dp.msv, om), (dp.viterbi, gm), (dp.forward, gm)]:
        batch = fn(prof, bg, x)
        single = [fn(prof, bg, x[i])[0] for i in range(5)]
        np.testing.assert_almost_equal(batch, single)


def test_consensus_scores_higher(setup) -> None:
    _, bg, gm, om = setup
    consensus = np.array([[0, 1, 2, 3] * 3])
    shuffled = np.array([[3, 3, 0, 0] * 3])
    for fn, prof in [(dp.msv, om), (dp.viterbi, gm), (dp.forward, gm)]:
        assert fn(prof, bg, consensus)[0] > fn(prof, bg, shuffled)[0]


def test_viterbi_single_hit_score(setup) -> None:
    hmm, bg, gm, _ = setup
    # a length 1 sequence can only align to a single match state
    x = np.array([[0]])
    expected = max(
        gm.n_move + gm.tBM[k] + gm.msc[k, 0] + gm.e_c + gm.c_move
        for k in range(1, 5)
    ) - bg.null_score(1)
    assert dp.viterbi(gm, bg, x)[0] == pytest.approx(expected / math.log(2))
