"""Tests for composite action distributions (universe_bridge.action_space.distributions).

Covers:
    - Size bookkeeping for factors and TupleDistribution
    - Closed-form checks: Bernoulli entropy at logit 0, Gaussian log-prob / KL
    - Additivity: joint statistics equal the sum of per-factor statistics
    - KL(p || p) == 0, KL >= 0
    - Flat vs (B, N) input equivalence and size validation
    - Empty distribution (no factors)

Run:
    pytest tests/test_distributions.py -v
"""

import math

import pytest
import torch

from universe_bridge.action_space.distributions import (
    BernoulliFactor,
    GaussianFactor,
    TupleDistribution,
)
from universe_bridge.utils.torch_utils import seed_everything


@pytest.fixture
def dist():
    return TupleDistribution([BernoulliFactor(3), GaussianFactor(2), BernoulliFactor(1)])


class TestSizes:

    def test_factor_sizes(self):
        assert BernoulliFactor(4).param_size == 4
        assert BernoulliFactor(4).sample_size == 4
        assert GaussianFactor(2).param_size == 4
        assert GaussianFactor(2).sample_size == 2

    def test_tuple_sizes(self, dist):
        assert dist.param_sizes == [3, 4, 1]
        assert dist.sample_sizes == [3, 2, 1]
        assert dist.param_size == 8
        assert dist.sample_size == 6

    def test_non_positive_factor_size_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            BernoulliFactor(0)


class TestSample:

    def test_shape(self, dist):
        seed_everything(0)
        params = torch.zeros(5, dist.param_size)
        assert dist.sample(params, 5).shape == (5, dist.sample_size)

    def test_flat_params_accepted(self, dist):
        seed_everything(0)
        params = torch.zeros(4 * dist.param_size)
        assert dist.sample(params, 4).shape == (4, dist.sample_size)

    def test_extreme_logits_are_deterministic(self):
        d = TupleDistribution([BernoulliFactor(2)])
        params = torch.tensor([[100.0, -100.0]])
        for _ in range(10):
            assert d.sample(params, 1).tolist() == [[1.0, 0.0]]

    def test_tiny_variance_sample_near_mean(self):
        d = TupleDistribution([GaussianFactor(2)])
        params = torch.tensor([[0.25, -0.75, -60.0, -60.0]])
        sample = d.sample(params, 1)
        assert torch.allclose(sample, torch.tensor([[0.25, -0.75]]), atol=1e-6)

    def test_seeded_sampling_reproducible(self, dist):
        params = torch.randn(3, dist.param_size)
        seed_everything(7)
        a = dist.sample(params, 3)
        seed_everything(7)
        b = dist.sample(params, 3)
        assert torch.equal(a, b)

    def test_wrong_size_rejected(self, dist):
        with pytest.raises(ValueError, match="elements"):
            dist.sample(torch.zeros(dist.param_size + 1), 1)

    def test_wrong_2d_shape_rejected(self, dist):
        with pytest.raises(ValueError, match="shape"):
            dist.sample(torch.zeros(1, 2 * dist.param_size), 2)

    def test_non_positive_batch_rejected(self, dist):
        with pytest.raises(ValueError, match="batch_size"):
            dist.sample(torch.zeros(0), 0)


class TestStatistics:

    def test_bernoulli_entropy_at_zero_logit(self):
        d = TupleDistribution([BernoulliFactor(3)])
        ent = d.entropy(torch.zeros(2, 3), 2)
        assert torch.allclose(ent, torch.full((2,), 3 * math.log(2)))

    def test_bernoulli_log_prob_at_zero_logit(self):
        d = TupleDistribution([BernoulliFactor(2)])
        lp = d.log_prob(torch.zeros(1, 2), torch.tensor([[1.0, 0.0]]), 1)
        assert torch.allclose(lp, torch.tensor([2 * math.log(0.5)]))

    def test_gaussian_log_prob_closed_form(self):
        d = TupleDistribution([GaussianFactor(1)])
        mean, log_var, x = 0.5, math.log(4.0), 1.5
        params = torch.tensor([[mean, log_var]])
        lp = d.log_prob(params, torch.tensor([[x]]), 1)
        std = 2.0
        expected = -0.5 * ((x - mean) / std) ** 2 - math.log(std) - 0.5 * math.log(2 * math.pi)
        assert lp.item() == pytest.approx(expected, abs=1e-5)

    def test_gaussian_entropy_unit_variance(self):
        d = TupleDistribution([GaussianFactor(2)])
        ent = d.entropy(torch.zeros(1, 4), 1)
        expected = 2 * 0.5 * math.log(2 * math.pi * math.e)
        assert ent.item() == pytest.approx(expected, abs=1e-5)

    def test_gaussian_kl_closed_form(self):
        d = TupleDistribution([GaussianFactor(1)])
        p = torch.tensor([[0.0, 0.0]])
        q = torch.tensor([[1.0, math.log(4.0)]])
        kl = d.kl(p, q, 1)
        # KL(N(0,1) || N(1,4)) = ln(2) + (1 + 1) / 8 - 1/2
        assert kl.item() == pytest.approx(math.log(2) + 0.25 - 0.5, abs=1e-5)

    def test_kl_self_is_zero(self, dist):
        torch.manual_seed(1)
        params = torch.randn(6, dist.param_size)
        assert torch.allclose(dist.kl(params, params, 6), torch.zeros(6), atol=1e-6)

    def test_kl_non_negative(self, dist):
        torch.manual_seed(2)
        p = torch.randn(16, dist.param_size)
        q = torch.randn(16, dist.param_size)
        assert (dist.kl(p, q, 16) >= -1e-6).all()

    def test_statistics_additive_over_factors(self, dist):
        """Joint log-prob / entropy / KL equal the sum over each factor alone."""
        torch.manual_seed(3)
        B = 4
        p = torch.randn(B, dist.param_size)
        q = torch.randn(B, dist.param_size)
        s = dist.sample(p, B)

        parts = [TupleDistribution([f]) for f in dist.factors]
        p_blocks = torch.split(p, dist.param_sizes, dim=-1)
        q_blocks = torch.split(q, dist.param_sizes, dim=-1)
        s_blocks = torch.split(s, dist.sample_sizes, dim=-1)

        lp = sum(d.log_prob(pb, sb, B) for d, pb, sb in zip(parts, p_blocks, s_blocks))
        ent = sum(d.entropy(pb, B) for d, pb in zip(parts, p_blocks))
        kl = sum(d.kl(pb, qb, B) for d, pb, qb in zip(parts, p_blocks, q_blocks))

        assert torch.allclose(dist.log_prob(p, s, B), lp, atol=1e-5)
        assert torch.allclose(dist.entropy(p, B), ent, atol=1e-5)
        assert torch.allclose(dist.kl(p, q, B), kl, atol=1e-5)

    def test_underflowing_log_variance_stays_finite(self):
        """exp(0.5 * -250) underflows float32; statistics must not raise."""
        d = TupleDistribution([GaussianFactor(2)])
        params = torch.tensor([[0.3, -0.2, -250.0, -250.0]])
        sample = d.sample(params, 1)
        assert torch.allclose(sample, torch.tensor([[0.3, -0.2]]))
        assert torch.isfinite(d.entropy(params, 1)).all()
        assert torch.isfinite(d.log_prob(params, sample, 1)).all()
        assert torch.allclose(d.kl(params, params, 1), torch.zeros(1))

    def test_log_prob_is_differentiable(self, dist):
        params = torch.zeros(2, dist.param_size, requires_grad=True)
        samples = torch.zeros(2, dist.sample_size)
        dist.log_prob(params, samples, 2).sum().backward()
        assert params.grad is not None
        assert params.grad.shape == params.shape


class TestEmpty:

    def test_empty_distribution(self):
        d = TupleDistribution([])
        assert d.param_size == 0
        assert d.sample_size == 0
        assert d.sample(torch.zeros(0), 3).shape == (3, 0)
        assert torch.equal(d.entropy(torch.zeros(0), 3), torch.zeros(3))
        assert torch.equal(d.kl(torch.zeros(0), torch.zeros(0), 3), torch.zeros(3))
        assert torch.equal(d.log_prob(torch.zeros(0), torch.zeros(0), 3), torch.zeros(3))
