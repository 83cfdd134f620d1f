"""
Tests for MI, CaMI, TE and directionality measures.

Core principle: DI and TE are exact algebraic identities of the CaMI and
MI sums, scalar and pointwise, in either unit.
"""

import numpy as np
import pytest

from mtcami.information.embedding import build_embeddings
from mtcami.information.engine import CaMIEngine, analyze_pair
from mtcami.information.measures import (
    PROBABILITY_FLOOR,
    compute_measures,
    gated_terms,
    resolve_units,
    unit_scale,
)
from mtcami.information.probability import estimate_probabilities
from mtcami.information.symbols import Partition


# ─────────────────────────────────────────────────────────────────────
# Tests: Floor gate and units
# ─────────────────────────────────────────────────────────────────────

class TestGatedTerms:

    def test_zero_joint_contributes_nothing(self):
        terms = gated_terms(np.array([0.0, 0.5]), np.array([0.25, 0.25]))
        assert terms[0] == 0.0
        np.testing.assert_allclose(terms[1], 0.5 * np.log(2.0))

    def test_below_floor_is_exactly_zero(self):
        joint = np.array([PROBABILITY_FLOOR / 2, 0.3])
        product = np.array([0.2, PROBABILITY_FLOOR / 2])
        np.testing.assert_array_equal(gated_terms(joint, product), [0.0, 0.0])

    def test_broadcasting(self):
        joint = np.full((2, 3), 1 / 6)
        product = np.full((1, 3), 1 / 6)
        np.testing.assert_allclose(gated_terms(joint, product), 0.0, atol=1e-15)


class TestUnits:

    def test_resolve_known(self):
        assert resolve_units('nats') == 'nats'
        assert resolve_units('bits') == 'bits'

    def test_matching_is_exact(self):
        assert resolve_units('NATS') == 'bits'
        assert resolve_units(' nats') == 'bits'
        assert resolve_units('Nats') == 'bits'

    def test_unknown_falls_back_to_bits(self, caplog):
        assert resolve_units('nat') == 'bits'
        assert resolve_units(None) == 'bits'
        assert "Unrecognized units" in caplog.text

    def test_scale(self):
        assert unit_scale('nats') == 1.0
        np.testing.assert_allclose(unit_scale('bits'), np.log(2.0))

    def test_bits_equal_nats_over_ln2(self, lagged_pair, make_config):
        cause, effect = lagged_pair
        nats = CaMIEngine(make_config(units='nats')).run(cause, effect)
        bits = CaMIEngine(make_config(units='bits')).run(cause, effect)

        for name, value in nats.scalars().items():
            np.testing.assert_allclose(value / np.log(2.0), bits.scalars()[name], rtol=1e-12)

        for name, array in nats.pointwise.as_dict().items():
            np.testing.assert_allclose(
                array / np.log(2.0), bits.pointwise.as_dict()[name], rtol=1e-12, atol=1e-15
            )


# ─────────────────────────────────────────────────────────────────────
# Tests: Identities
# ─────────────────────────────────────────────────────────────────────

class TestIdentities:

    @pytest.fixture
    def result(self, rng):
        cause = rng.random((80, 20))
        effect = 0.6 * np.roll(cause, 1, axis=0) + 0.4 * rng.random((80, 20))
        return analyze_pair(
            cause, effect, Partition((0.5,)), Partition((0.5,)), 2, 1, units='nats'
        )

    def test_directionality_index(self, result):
        assert result.diridx == pytest.approx(result.cami_xy - result.cami_yx, abs=1e-12)

    def test_transfer_entropy(self, result):
        assert result.te_xy == pytest.approx(result.cami_xy - result.mutual_info, abs=1e-12)
        assert result.te_yx == pytest.approx(result.cami_yx - result.mutual_info, abs=1e-12)

    def test_pointwise_sums_match_scalars(self, result):
        pw = result.pointwise
        np.testing.assert_allclose(pw.pmi.sum(), result.mutual_info, atol=1e-12)
        np.testing.assert_allclose(pw.pcami_xy.sum(), result.cami_xy, atol=1e-12)
        np.testing.assert_allclose(pw.pcami_yx.sum(), result.cami_yx, atol=1e-12)
        np.testing.assert_allclose(pw.pdiridx.sum(), result.diridx, atol=1e-12)

    def test_pointwise_elementwise(self, result):
        pw = result.pointwise
        np.testing.assert_allclose(pw.pdiridx, pw.pcami_xy - pw.pcami_yx)
        np.testing.assert_allclose(pw.pte_xy, pw.pcami_xy - pw.pmi[:, :, np.newaxis])
        np.testing.assert_allclose(pw.pte_yx, pw.pcami_yx - pw.pmi.T[:, :, np.newaxis])

    def test_pointwise_shapes(self, result):
        pw = result.pointwise
        assert pw.pmi.shape == (4, 4)
        for array in (pw.pcami_xy, pw.pcami_yx, pw.pdiridx, pw.pte_xy, pw.pte_yx):
            assert array.shape == (4, 4, 2)

    def test_non_negative(self, result):
        assert result.mutual_info >= -1e-12
        assert result.cami_xy >= -1e-12
        assert result.cami_yx >= -1e-12

    def test_mi_symmetric_between_directions(self, rng):
        sx = rng.integers(0, 2, size=(60, 10))
        sy = rng.integers(0, 2, size=(60, 10))
        forward = estimate_probabilities(build_embeddings(sx, sy, 2, 1, 1, 2))
        reverse = estimate_probabilities(build_embeddings(sy, sx, 2, 1, 1, 2))

        mi_forward = compute_measures(forward, reverse, 'nats').mutual_info
        mi_reverse = compute_measures(reverse, forward, 'nats').mutual_info
        np.testing.assert_allclose(mi_forward, mi_reverse, atol=1e-12)

    def test_swapping_roles_flips_directionality(self, lagged_pair, make_config):
        cause, effect = lagged_pair
        engine = CaMIEngine(make_config())
        forward = engine.run(cause, effect)
        backward = engine.run(effect, cause)

        np.testing.assert_allclose(forward.cami_xy, backward.cami_yx, atol=1e-12)
        np.testing.assert_allclose(forward.diridx, -backward.diridx, atol=1e-12)


# ─────────────────────────────────────────────────────────────────────
# Tests: Known couplings
# ─────────────────────────────────────────────────────────────────────

class TestKnownCouplings:

    def test_independent_noise_carries_no_information(self, independent_pair, make_config):
        result = CaMIEngine(make_config()).run(*independent_pair)

        assert result.mutual_info < 0.01
        assert result.cami_xy < 0.01
        assert result.cami_yx < 0.01
        assert abs(result.diridx) < 0.01

    def test_lagged_copy_flows_forward(self, lagged_pair, make_config):
        result = CaMIEngine(make_config()).run(*lagged_pair)

        # Y future is X past: one full bit flows X -> Y
        assert result.cami_xy > 0.9
        assert result.cami_yx < 0.01
        assert result.diridx > 0.9
        assert result.te_xy > 0.9
        assert result.mutual_info < 0.01

    def test_identical_series_have_full_mi(self, rng, make_config):
        x = rng.random((100, 30))
        result = CaMIEngine(make_config()).run(x, x.copy())

        assert result.mutual_info > 0.9
        np.testing.assert_allclose(result.cami_xy, result.cami_yx, atol=1e-12)
        assert abs(result.diridx) < 1e-12


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
