"""
Unit Tests for the full conditional samplers

Tests each conditional sampler in isolation, including checks of the
conditional distributions against their closed forms.
Run with: pytest tests/test_samplers.py -v
"""

import numpy as np
import pytest

from pyBSVAR import helpers
from pyBSVAR.errors import NumericalFailure
from pyBSVAR.restrictions import RestrictionSet
from pyBSVAR.samplers import GibbsState, sample_A, sample_B, sample_hyperparameters
from pyBSVAR.specification import Prior, specify_prior, specify_starting_values


def make_state(N, K, B=None, hyper=None):
    sv = specify_starting_values(N, K)
    state = GibbsState.from_starting_values(sv)
    if B is not None:
        state.B = np.array(B, dtype=float)
    if hyper is not None:
        state.hyper = np.array(hyper, dtype=float)
    return state


# ============================================================================
# HELPERS
# ============================================================================

class TestHelpers:

    def test_rig2_mean(self):
        rng = np.random.default_rng(0)
        draws = np.array([helpers.rig2(4.0, 10.0, rng) for _ in range(20000)])
        # IG2(s, nu) has mean s / (nu - 2)
        assert abs(draws.mean() - 0.5) < 0.02
        assert np.all(draws > 0)

    def test_rgamma_mean(self):
        rng = np.random.default_rng(1)
        draws = np.array([helpers.rgamma(3.0, 2.0, rng) for _ in range(20000)])
        assert abs(draws.mean() - 1.5) < 0.03

    def test_draw_from_precision_moments(self):
        rng = np.random.default_rng(2)
        P = np.array([[2.0, 0.5], [0.5, 1.0]])
        b = np.array([1.0, -1.0])
        U = helpers.cholesky_precision(P, component='A')
        draws = np.array([helpers.draw_from_precision(U, b, rng) for _ in range(20000)])
        np.testing.assert_allclose(draws.mean(axis=0), np.linalg.solve(P, b), atol=0.03)
        np.testing.assert_allclose(np.cov(draws.T), np.linalg.inv(P), atol=0.05)

    def test_cholesky_precision_failure(self):
        with pytest.raises(NumericalFailure) as excinfo:
            helpers.cholesky_precision(-np.eye(2), component='B', index=1)
        assert excinfo.value.component == 'B'
        assert excinfo.value.index == 1

    def test_orthogonal_complement(self):
        M = np.array([[1.0], [1.0], [0.0]])
        W = helpers.orthogonal_complement(M)
        assert W.shape == (3, 2)
        np.testing.assert_allclose(W.T @ M, 0.0, atol=1e-12)
        np.testing.assert_allclose(W.T @ W, np.eye(2), atol=1e-12)
        assert helpers.orthogonal_complement(np.zeros((2, 0))).shape == (2, 2)

    def test_companion(self):
        A = np.array([[0.5, 0.1, 0.2, 0.0, 1.0],
                      [0.0, 0.4, 0.0, 0.1, 2.0]])
        MM = helpers.get_companion(A, N=2, p=2)
        np.testing.assert_array_equal(MM[:2], A[:, :4])
        np.testing.assert_array_equal(MM[2:, :2], np.eye(2))


# ============================================================================
# HYPERPARAMETERS
# ============================================================================

class TestSampleHyperparameters:

    def test_updates_only_hyper_in_place(self, prior, lower_restrictions):
        state = make_state(2, 3)
        hyper = state.hyper
        A_before, B_before = state.A.copy(), state.B.copy()

        out = sample_hyperparameters(state, prior, lower_restrictions, np.random.default_rng(3))

        assert out is hyper
        assert state.hyper is hyper
        np.testing.assert_array_equal(state.A, A_before)
        np.testing.assert_array_equal(state.B, B_before)
        assert np.all(hyper > 0)
        assert not np.allclose(hyper, np.ones(5))

    def test_positive_over_many_draws(self, prior, lower_restrictions):
        state = make_state(2, 3)
        rng = np.random.default_rng(4)
        for _ in range(500):
            sample_hyperparameters(state, prior, lower_restrictions, rng)
            assert np.all(np.isfinite(state.hyper))
            assert np.all(state.hyper > 0)

    def test_gamma_A_conditional_mean(self, lower_restrictions):
        # gamma_A | s_A, A ~ IG2(s_A + tr, nu + NK)
        prior = specify_prior(N=2, p=1)
        state = make_state(2, 3)
        state.A = prior.A + 0.5
        dev = state.A - prior.A
        quad = np.trace(dev @ prior.A_V_inv @ dev.T)
        rng = np.random.default_rng(5)
        draws = []
        for _ in range(5000):
            state.hyper[:] = [1.0, 1.0, 1.0, 1.0, 1.0]
            sample_hyperparameters(state, prior, lower_restrictions, rng)
            draws.append((state.hyper[0], state.hyper[2]))
        draws = np.array(draws)
        shape = prior.hyper_nu + 6
        expected = (draws[:, 1] + quad) / (shape - 2)
        assert abs(draws[:, 0].mean() - expected.mean()) < 0.05 * expected.mean()

    def test_deterministic_given_seed(self, prior, lower_restrictions):
        s1, s2 = make_state(2, 3), make_state(2, 3)
        sample_hyperparameters(s1, prior, lower_restrictions, np.random.default_rng(6))
        sample_hyperparameters(s2, prior, lower_restrictions, np.random.default_rng(6))
        np.testing.assert_array_equal(s1.hyper, s2.hyper)


# ============================================================================
# A ROWS
# ============================================================================

class TestSampleA:

    def test_in_place_and_shape(self, svar_data, prior):
        Y, X = svar_data
        state = make_state(2, 3)
        A = state.A
        out = sample_A(state, Y, X, prior, np.random.default_rng(7))
        assert out is A
        assert state.A is A
        assert A.shape == (2, 3)
        assert np.all(np.isfinite(A))

    def test_rows_condition_on_updated_rows(self, svar_data, prior):
        Y, X = svar_data
        state = make_state(2, 3, B=[[1.0, 0.0], [0.5, 1.0]], hyper=[0.5, 1, 1, 1, 1])
        A_start = state.A.copy()
        sample_A(state, Y, X, prior, np.random.default_rng(8))

        # replay the conditional draws row by row
        rng = np.random.default_rng(8)
        A = A_start.copy()
        Omega = state.B @ state.B.T
        prior_precision = prior.A_V_inv / 0.5
        for n in range(2):
            Z = Y - A @ X
            Z[n] += A[n] @ X
            precision = prior_precision + Omega[n, n] * X @ X.T
            location = prior.A[n] @ prior_precision + X @ (Omega[n] @ Z)
            U = helpers.cholesky_precision(precision, component='A')
            A[n] = helpers.draw_from_precision(U, location, rng)

        np.testing.assert_allclose(state.A, A)

    def test_univariate_posterior_mean(self):
        rng = np.random.default_rng(9)
        T = 50
        X = np.vstack([rng.standard_normal(T), np.ones(T)])
        Y = (0.7 * X[0] + 0.3 + 0.5 * rng.standard_normal(T)).reshape(1, -1)
        prior = Prior(A=np.zeros((1, 2)), A_V_inv=np.eye(2), B_V_inv=np.eye(1), B_nu=1)
        b, gamma_A = 2.0, 0.5

        precision = np.eye(2) / gamma_A + b ** 2 * X @ X.T
        mean = np.linalg.solve(precision, b ** 2 * X @ Y[0])
        sd = np.sqrt(np.diag(np.linalg.inv(precision)))

        state = make_state(1, 2, B=[[b]], hyper=[gamma_A, 1, 1, 1, 1])
        draws = np.empty((4000, 2))
        for i in range(4000):
            draws[i] = sample_A(state, Y, X, prior, rng)[0]
        assert np.all(np.abs(draws.mean(axis=0) - mean) < 5 * sd / np.sqrt(4000))

    def test_non_positive_definite_precision(self):
        prior = Prior(A=np.zeros((2, 3)), A_V_inv=-np.eye(3), B_V_inv=np.eye(2), B_nu=2)
        state = make_state(2, 3)
        Y, X = np.zeros((2, 10)), np.zeros((3, 10))
        with pytest.raises(NumericalFailure) as excinfo:
            sample_A(state, Y, X, prior, np.random.default_rng(10))
        assert excinfo.value.component == 'A'
        assert excinfo.value.index == 0


# ============================================================================
# B COLUMNS
# ============================================================================

class TestSampleB:

    def test_in_place_conformance_and_normalisation(self, trivariate_setup):
        setup = trivariate_setup
        VB = setup['restrictions']
        state = make_state(3, 4)
        B = state.B
        rng = np.random.default_rng(11)
        for _ in range(50):
            out = sample_B(state, setup['Y'], setup['X'], setup['prior'], VB, rng)
            assert out is B
            assert VB.conforms(B)
            assert abs(np.linalg.det(B)) > 1e-8
            assert np.all(B[VB.pivots, np.arange(3)] > 0)

    def test_restricted_diagonal_uses_pivot_row(self, svar_data, prior):
        Y, X = svar_data
        VB = RestrictionSet.from_pattern(np.array([[1, 1], [1, 0]]))
        state = make_state(2, 3, B=[[0.0, 1.0], [1.0, 0.0]])
        rng = np.random.default_rng(12)
        for _ in range(50):
            sample_B(state, Y, X, prior, VB, rng)
            assert state.B[1, 1] == 0.0
            assert state.B[0, 1] > 0
            assert state.B[0, 0] > 0
            assert abs(np.linalg.det(state.B)) > 1e-8

    def test_univariate_chi_square(self):
        # N=1: b^2 * omega ~ chi2(T + B_nu)
        rng = np.random.default_rng(13)
        T = 20
        X = np.ones((1, T))
        Y = rng.standard_normal((1, T))
        prior = Prior(A=np.zeros((1, 1)), A_V_inv=np.eye(1), B_V_inv=np.eye(1), B_nu=1)
        state = make_state(1, 1, hyper=[1, 2.0, 1, 1, 1])
        state.A[:] = 0.1
        E = Y - state.A @ X
        omega = 1.0 / 2.0 + (E @ E.T)[0, 0]

        draws = np.empty(4000)
        VB = RestrictionSet.unrestricted(1)
        for i in range(4000):
            draws[i] = sample_B(state, Y, X, prior, VB, rng)[0, 0]
        assert np.all(draws > 0)
        assert abs(np.mean(draws ** 2 * omega) - (T + 1)) < 1.0

    @pytest.mark.parametrize("structure", ['unrestricted', 'lower'])
    def test_multivariate_moments(self, structure):
        # b_n' S b_n ~ chi2(T + B_nu - N + r_n) with S = B_V_inv / gamma_B + E E'
        rng = np.random.default_rng(16)
        N, T = 3, 5
        Y, X = rng.standard_normal((N, T)), rng.standard_normal((N + 1, T))
        prior = specify_prior(N=N, p=1)
        VB = getattr(RestrictionSet, 'lower_triangular' if structure == 'lower' else structure)(N)
        state = make_state(N, N + 1, hyper=[1, 2.0, 1, 1, 1])
        E = Y - state.A @ X
        S = prior.B_V_inv / 2.0 + E @ E.T

        V = VB[N - 1]
        Omega_inv = np.linalg.inv(V.T @ S @ V)
        n_draws = 10000
        quad = np.empty((n_draws, N))
        along_w = np.empty(n_draws)
        for i in range(n_draws):
            B = sample_B(state, Y, X, prior, VB, rng)
            quad[i] = np.diag(B.T @ S @ B)
            # the last column is drawn given the final values of the others
            w = helpers.orthogonal_complement(B[:, :-1])[:, 0]
            along_w[i] = (w @ B[:, -1]) ** 2 / (w @ V @ Omega_inv @ V.T @ w)

        expected = T + prior.B_nu - N + VB.n_free
        np.testing.assert_allclose(quad.mean(axis=0), expected, atol=0.3)
        assert abs(along_w.mean() - (T + prior.B_nu - N + 1)) < 0.3

    def test_collinear_columns_fail(self):
        prior = specify_prior(N=3, p=1)
        rng = np.random.default_rng(14)
        Y, X = rng.standard_normal((3, 30)), rng.standard_normal((4, 30))
        state = make_state(3, 4, B=[[1.0, 1.0, 1.0], [0.0, 1.0, 1.0], [0.0, 0.0, 0.0]])
        with pytest.raises(NumericalFailure) as excinfo:
            sample_B(state, Y, X, prior, RestrictionSet.unrestricted(3), rng)
        assert excinfo.value.component == 'B'
        assert excinfo.value.index == 0

    def test_non_positive_definite_precision(self):
        prior = Prior(A=np.zeros((2, 1)), A_V_inv=np.eye(1), B_V_inv=-np.eye(2), B_nu=2)
        state = make_state(2, 1)
        state.A[:] = 0.0
        Y, X = np.zeros((2, 5)), np.ones((1, 5))
        with pytest.raises(NumericalFailure) as excinfo:
            sample_B(state, Y, X, prior, RestrictionSet.unrestricted(2), np.random.default_rng(15))
        assert excinfo.value.component == 'B'
