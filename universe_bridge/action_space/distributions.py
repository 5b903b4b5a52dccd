"""Composite action distributions built from independent factors.

A policy head emits one flat parameter vector per batch row. The vector is
cut into consecutive blocks, one per factor, and each block parameterizes
an independent distribution:

    BernoulliFactor(n)  params: n logits          sample: n values in {0, 1}
    GaussianFactor(n)   params: n means, n log-variances
                                                  sample: n reals

TupleDistribution chains factors and combines their statistics by summing
over factors (joint log-prob, KL and entropy are additive under
independence). Adding or removing a factor only changes the sizes.

Shapes:
    params:  (B, param_size) or flat (B * param_size,)
    samples: (B, sample_size) or flat (B * sample_size,)
    log_prob / kl / entropy: (B,)

Factor math is delegated to torch.distributions; nothing here owns
gradients, so the outputs stay differentiable w.r.t. params.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Sequence, Tuple

import torch
from torch.distributions import Bernoulli, Distribution, Normal, kl_divergence


# ---------------------------------------------------------------------------
# Factors
# ---------------------------------------------------------------------------


class Factor(ABC):
    """One independent block of a composite distribution.

    Subclasses define the block sizes and how a (B, param_size) parameter
    block maps to a torch Distribution with event values laid out as
    (B, sample_size).
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"{type(self).__name__} size must be positive, got {size}")
        self.size = size

    @property
    @abstractmethod
    def param_size(self) -> int:
        ...

    @property
    def sample_size(self) -> int:
        return self.size

    @abstractmethod
    def distribution(self, params: torch.Tensor) -> Distribution:
        ...

    def sample(self, params: torch.Tensor) -> torch.Tensor:
        return self.distribution(params).sample()

    def log_prob(self, params: torch.Tensor, samples: torch.Tensor) -> torch.Tensor:
        return self.distribution(params).log_prob(samples).sum(dim=-1)

    def kl(self, params1: torch.Tensor, params2: torch.Tensor) -> torch.Tensor:
        return kl_divergence(self.distribution(params1), self.distribution(params2)).sum(dim=-1)

    def entropy(self, params: torch.Tensor) -> torch.Tensor:
        return self.distribution(params).entropy().sum(dim=-1)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.size})"


class BernoulliFactor(Factor):
    """Independent Bernoulli per slot, parameterized by logits."""

    @property
    def param_size(self) -> int:
        return self.size

    def distribution(self, params: torch.Tensor) -> Distribution:
        return Bernoulli(logits=params, validate_args=False)


class GaussianFactor(Factor):
    """Diagonal Gaussian over ``size`` reals.

    The parameter block is ``[mean_0..mean_{n-1}, logvar_0..logvar_{n-1}]``;
    standard deviation is ``exp(0.5 * logvar)``, floored at the smallest
    positive normal of the dtype so very negative log-variances stay finite.
    """

    @property
    def param_size(self) -> int:
        return 2 * self.size

    def distribution(self, params: torch.Tensor) -> Distribution:
        mean, log_var = params[..., :self.size], params[..., self.size:]
        scale = torch.exp(0.5 * log_var).clamp_min(torch.finfo(params.dtype).tiny)
        return Normal(loc=mean, scale=scale, validate_args=False)


# ---------------------------------------------------------------------------
# Composite
# ---------------------------------------------------------------------------


class TupleDistribution:
    """Product of independent factors over consecutive vector blocks.

    Parameters
    ----------
    factors : Sequence[Factor]
        Factors in layout order. An empty sequence is allowed and yields
        zero-width samples with zero log-prob, KL and entropy.

    Examples
    --------
    >>> dist = TupleDistribution([BernoulliFactor(3), GaussianFactor(2), BernoulliFactor(1)])
    >>> dist.param_size, dist.sample_size
    (8, 6)
    """

    def __init__(self, factors: Sequence[Factor]) -> None:
        self.factors: Tuple[Factor, ...] = tuple(factors)
        self.param_sizes: List[int] = [f.param_size for f in self.factors]
        self.sample_sizes: List[int] = [f.sample_size for f in self.factors]

    @property
    def param_size(self) -> int:
        return sum(self.param_sizes)

    @property
    def sample_size(self) -> int:
        return sum(self.sample_sizes)

    def sample(self, params: torch.Tensor, batch_size: int) -> torch.Tensor:
        """Draw one sample per batch row.

        Returns
        -------
        torch.Tensor
            Samples, shape (batch_size, sample_size)
        """
        params = _as_batch(params, batch_size, self.param_size, "params")
        if not self.factors:
            return params.new_zeros((batch_size, 0))
        blocks = _split(params, self.param_sizes)
        return torch.cat([f.sample(p) for f, p in zip(self.factors, blocks)], dim=-1)

    def log_prob(
        self,
        params: torch.Tensor,
        samples: torch.Tensor,
        batch_size: int
    ) -> torch.Tensor:
        """Joint log-probability of samples, shape (batch_size,)."""
        params = _as_batch(params, batch_size, self.param_size, "params")
        samples = _as_batch(samples, batch_size, self.sample_size, "samples").to(params.dtype)
        param_blocks = _split(params, self.param_sizes)
        sample_blocks = _split(samples, self.sample_sizes)
        return self._sum_over_factors(
            lambda f, i: f.log_prob(param_blocks[i], sample_blocks[i]),
            params, batch_size
        )

    def kl(
        self,
        params1: torch.Tensor,
        params2: torch.Tensor,
        batch_size: int
    ) -> torch.Tensor:
        """KL(params1 || params2) per batch row, shape (batch_size,)."""
        params1 = _as_batch(params1, batch_size, self.param_size, "params1")
        params2 = _as_batch(params2, batch_size, self.param_size, "params2")
        blocks1 = _split(params1, self.param_sizes)
        blocks2 = _split(params2, self.param_sizes)
        return self._sum_over_factors(
            lambda f, i: f.kl(blocks1[i], blocks2[i]),
            params1, batch_size
        )

    def entropy(self, params: torch.Tensor, batch_size: int) -> torch.Tensor:
        """Joint entropy per batch row, shape (batch_size,)."""
        params = _as_batch(params, batch_size, self.param_size, "params")
        blocks = _split(params, self.param_sizes)
        return self._sum_over_factors(
            lambda f, i: f.entropy(blocks[i]),
            params, batch_size
        )

    def _sum_over_factors(
        self,
        fn: Callable[[Factor, int], torch.Tensor],
        like: torch.Tensor,
        batch_size: int
    ) -> torch.Tensor:
        total = like.new_zeros(batch_size)
        for i, factor in enumerate(self.factors):
            total = total + fn(factor, i)
        return total

    def __repr__(self) -> str:
        return f"TupleDistribution({list(self.factors)!r})"


def _as_batch(x: torch.Tensor, batch_size: int, width: int, name: str) -> torch.Tensor:
    """View x as (batch_size, width), failing fast on any size mismatch."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    x = torch.as_tensor(x)
    if not torch.is_floating_point(x):
        x = x.float()
    if x.ndim == 2 and tuple(x.shape) != (batch_size, width):
        raise ValueError(
            f"{name} has shape {tuple(x.shape)}, expected ({batch_size}, {width})"
        )
    if x.numel() != batch_size * width:
        raise ValueError(
            f"{name} has {x.numel()} elements, expected batch_size * size = "
            f"{batch_size} * {width} = {batch_size * width}"
        )
    return x.reshape(batch_size, width)


def _split(x: torch.Tensor, sizes: Sequence[int]) -> Tuple[torch.Tensor, ...]:
    if not sizes:
        return ()
    return torch.split(x, list(sizes), dim=-1)
