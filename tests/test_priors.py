import numpy as np
import pytest

from buildHMM.hmm import (Alphabet, Background, DirichletMixture, PHMM,
                          PHMMPrior)
from buildHMM.hmm.phmm import TDD, TDM, TMD, TMI, TMM


class TestDirichletMixture:

    def test_single_component(self) -> None:
        dm = DirichletMixture([1.], [[1., 2., 3.]])
        np.testing.assert_almost_equal(
            dm.posterior_mean([3., 0., 1.]), [4/10, 2/10, 4/10]
        )

    def test_no_counts(self) -> None:
        dm = DirichletMixture([0.25, 0.75], [[1., 1.], [3., 1.]])
        np.testing.assert_almost_equal(
            dm.posterior_mean([0., 0.]),
            [0.25 * 0.5 + 0.75 * 0.75, 0.25 * 0.5 + 0.75 * 0.25],
        )

    def test_component_selection(self) -> None:
        dm = DirichletMixture([0.5, 0.5], [[10., 1.], [1., 10.]])
        post = dm.posterior_mean([100., 0.])
        # the first component explains the counts far better
        np.testing.assert_almost_equal(post, [110/111, 1/111], decimal=5)

    def test_batched(self) -> None:
        dm = DirichletMixture([0.3, 0.7], [[2., 1., 1.], [1., 1., 5.]])
        counts = np.array([[[1., 0., 0.], [0., 4., 1.]],
                           [[0., 0., 0.], [7., 7., 7.]]])
        post = dm.posterior_mean(counts)
        assert post.shape == (2, 2, 3)
        np.testing.assert_almost_equal(post.sum(axis=-1), np.ones((2, 2)))
        np.testing.assert_almost_equal(
            post[1, 0], dm.posterior_mean(counts[1, 0])
        )

    def test_mixture_weights_normalized(self) -> None:
        dm = DirichletMixture([2., 6.], [[1., 1.], [2., 2.]])
        np.testing.assert_almost_equal(dm.q, [0.25, 0.75])
        assert dm.K == 2

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            DirichletMixture([1.], [[1., 0.]])
        with pytest.raises(ValueError, match="coefficients"):
            DirichletMixture([0.5, 0.5], [[1., 1.]])
        with pytest.raises(ValueError, match="Expected counts over 2"):
            DirichletMixture([1.], [[1., 1.]]).posterior_mean([1., 1., 1.])


class TestPHMMPrior:

    def test_for_alphabet(self) -> None:
        amino = PHMMPrior.for_alphabet(Alphabet.amino())
        assert amino.em.K == 20
        assert amino.em.alpha.shape == (2, 20)
        dna = PHMMPrior.for_alphabet(Alphabet.dna())
        assert dna.em.K == 4
        other = PHMMPrior.for_alphabet(Alphabet("ABC"))
        np.testing.assert_equal(other.em.alpha, np.ones((1, 3)))

    def test_amino_prior_without_data_is_background(self) -> None:
        bg = Background.for_alphabet(Alphabet.amino())
        prior = PHMMPrior.amino(bg)
        np.testing.assert_almost_equal(
            prior.em.posterior_mean(np.zeros(20)), bg.f
        )
        np.testing.assert_almost_equal(
            prior.ei.posterior_mean(np.zeros(20)), bg.f
        )

    def test_estimate_empty_model(self) -> None:
        alphabet = Alphabet.amino()
        hmm = PHMM.zeros(4, alphabet)
        PHMMPrior.for_alphabet(alphabet).estimate(hmm)
        hmm.validate()
        np.testing.assert_almost_equal(
            hmm.t[1, TMM:TMD+1], np.array([0.7939, 0.0278, 0.0135]) / 0.8352
        )
        assert hmm.t[0, TDM] == 1. and hmm.t[0, TDD] == 0.
        assert hmm.t[4, TMD] == 0.
        assert hmm.t[4, TMM] + hmm.t[4, TMI] == pytest.approx(1.)
        assert hmm.t[4, TDM] == 1.
        np.testing.assert_equal(hmm.mat[0], np.eye(20)[0])

    def test_estimate_follows_counts(self) -> None:
        alphabet = Alphabet.dna()
        hmm = PHMM.zeros(2, alphabet)
        hmm.mat[1, 2] = 100.
        hmm.t[1, TMM] = 100.
        PHMMPrior.for_alphabet(alphabet).estimate(hmm)
        assert np.argmax(hmm.mat[1]) == 2
        assert hmm.mat[1, 2] > 0.95
        assert hmm.t[1, TMM] > 0.99
        np.testing.assert_almost_equal(hmm.mat[2], [0.25] * 4)
        np.testing.assert_almost_equal(hmm.ins[1], [0.25] * 4)

    def test_alphabet_mismatch(self) -> None:
        hmm = PHMM.zeros(2, Alphabet.dna())
        with pytest.raises(ValueError, match="Prior is defined over 20"):
            PHMMPrior.for_alphabet(Alphabet.amino()).estimate(hmm)
