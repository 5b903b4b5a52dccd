"""ActionSpace: policy parameters → composite distribution → wire events.

Parameter layout (P = len(keys)):
    [0, P)        one Bernoulli logit per key, in sorted key order
    [P, P+2)      pointer Gaussian mean (x, y)              (pointer only)
    [P+2, P+4)    pointer Gaussian log-variance (x, y)      (pointer only)
    P+4           click Bernoulli logit                     (pointer only)

Sample layout:
    [0, P)        key flags in {0, 1}
    [P, P+2)      normalized pointer position, nominally in [-1, 1]
    P+2           click flag in {0, 1}

Public API:
    space = ActionSpace(keys=KeySet.of("ArrowUp", "space"))
    params = policy(obs)                      # (B, space.param_size)
    samples = space.sample(params, B)         # (B, space.sample_size)
    events = space.vec_to_obj(samples[0])     # [KeyEvent, ..., PointerEvent]

Legality:
    - key_mask limits which keys are emitted; it never changes the layout
    - pointer positions are clipped into the bounding region
    - clicks inside a forbidden region are forced to 0

Instances are immutable; every method only reads its arguments, so one
space can be shared by any number of rollout threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import torch

from universe_bridge.action_space.distributions import (
    BernoulliFactor,
    Factor,
    GaussianFactor,
    TupleDistribution,
)
from universe_bridge.action_space.events import Event, KeyEvent, PointerEvent
from universe_bridge.action_space.keys import KeySet
from universe_bridge.utils.compute import assert_finite, round_half_away
from universe_bridge.utils.geometry import Region, any_contains

logger = logging.getLogger(__name__)

# Gaussian mean (x, y) + log-variance (x, y) + click logit
POINTER_PARAM_SIZE = 5
# position (x, y) + click flag
POINTER_SAMPLE_SIZE = 3


@dataclass(frozen=True)
class PointerInfo:
    """Where pointer events may occur.

    Parameters
    ----------
    bounding_region : Region
        Pointer events are clipped into this region.
    forbidden_regions : tuple[Region, ...]
        Regions where clicking is suppressed.
    """

    bounding_region: Region
    forbidden_regions: Tuple[Region, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "forbidden_regions", tuple(self.forbidden_regions))

    def to_pixels(self, x: float, y: float) -> Tuple[int, int]:
        """Map a normalized [-1, 1] position to clipped screen pixels."""
        area = self.bounding_region
        half_width, half_height = area.width / 2, area.height / 2
        raw_x = round_half_away(x * half_width + half_width) + area.x
        raw_y = round_half_away(y * half_height + half_height) + area.y
        return area.clip(raw_x, raw_y)

    def click_allowed(self, x: int, y: int) -> bool:
        return not any_contains(self.forbidden_regions, x, y)


@dataclass(frozen=True)
class ActionSpace:
    """Events an agent may send to one environment instance.

    Parameters
    ----------
    keys : KeySet
        Every key the policy head knows about. Defines the key part of the
        parameter layout.
    key_mask : KeySet, optional
        Keys that may actually be pressed; must be a subset of ``keys``.
        None allows every key. Set it when one policy (trained on a key
        superset) drives games with different key sets.
    pointer : bool
        Reserve pointer slots in the layout. May be set even when
        ``pointer_info`` is None, so one agent can serve games with and
        without pointer events.
    pointer_info : PointerInfo, optional
        Pointer geometry. None drops pointer events everywhere; without
        ``pointer`` it has no effect.

    Raises
    ------
    ValueError
        If ``key_mask`` names keys outside ``keys``.
    """

    keys: KeySet
    key_mask: Optional[KeySet] = None
    pointer: bool = False
    pointer_info: Optional[PointerInfo] = None
    _distribution: TupleDistribution = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.keys, KeySet):
            object.__setattr__(self, "keys", KeySet(self.keys))
        if self.key_mask is not None and not isinstance(self.key_mask, KeySet):
            object.__setattr__(self, "key_mask", KeySet(self.key_mask))
        if self.key_mask is not None and not self.key_mask.issubset(self.keys):
            unknown = sorted(k for k in self.key_mask if k not in self.keys)
            raise ValueError(f"key_mask contains keys outside the key set: {unknown}")

        factors: List[Factor] = []
        if len(self.keys):
            factors.append(BernoulliFactor(len(self.keys)))
        if self.pointer:
            factors.extend([GaussianFactor(2), BernoulliFactor(1)])
        object.__setattr__(self, "_distribution", TupleDistribution(factors))

        logger.debug(
            "ActionSpace: %d keys (%s masked), pointer=%s, geometry=%s, param_size=%d",
            len(self.keys),
            "none" if self.key_mask is None else len(self.keys) - len(self.key_mask),
            self.pointer,
            self.pointer_info is not None,
            self.param_size,
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @property
    def param_size(self) -> int:
        """Size of one parameter vector."""
        return len(self.keys) + (POINTER_PARAM_SIZE if self.pointer else 0)

    @property
    def sample_size(self) -> int:
        """Size of one sampled action vector."""
        return len(self.keys) + (POINTER_SAMPLE_SIZE if self.pointer else 0)

    @property
    def distribution(self) -> TupleDistribution:
        return self._distribution

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def sample(self, params: torch.Tensor, batch_size: int) -> torch.Tensor:
        """Sample a batch of action vectors, shape (batch_size, sample_size)."""
        return self._distribution.sample(params, batch_size)

    def log_prob(
        self,
        params: torch.Tensor,
        samples: torch.Tensor,
        batch_size: int
    ) -> torch.Tensor:
        """Log probabilities of samples under params, shape (batch_size,)."""
        return self._distribution.log_prob(params, samples, batch_size)

    def kl(
        self,
        params1: torch.Tensor,
        params2: torch.Tensor,
        batch_size: int
    ) -> torch.Tensor:
        """KL divergence between two batches of distributions, shape (batch_size,)."""
        return self._distribution.kl(params1, params2, batch_size)

    def entropy(self, params: torch.Tensor, batch_size: int) -> torch.Tensor:
        """Entropy of each distribution in the batch, shape (batch_size,)."""
        return self._distribution.entropy(params, batch_size)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def vec_to_obj(self, vec: torch.Tensor | Sequence[float]) -> List[Event]:
        """Turn one sampled action vector into wire-level events.

        Parameters
        ----------
        vec : torch.Tensor | Sequence[float]
            Sample of length ``sample_size`` (any shape with that many elements).

        Returns
        -------
        List[Event]
            Key events in sorted key order (masked keys skipped), followed
            by at most one pointer event. Never contains a disallowed
            action, such as a click inside a forbidden region.

        Raises
        ------
        ValueError
            If the length differs from ``sample_size`` or a value is non-finite.
        """
        values = torch.as_tensor(vec, dtype=torch.float64).detach().reshape(-1)
        if values.numel() != self.sample_size:
            raise ValueError(
                f"Action vector has {values.numel()} elements, expected sample_size={self.sample_size}"
            )
        assert_finite(values, "action vector")
        values = values.cpu().tolist()

        events: List[Event] = []
        for i, key_name in enumerate(self.keys.sorted_list()):
            if self.key_mask is not None and key_name not in self.key_mask:
                continue
            events.append(KeyEvent(name=key_name, pressed=values[i] != 0))

        if self.pointer and self.pointer_info is not None:
            x, y, click = values[-POINTER_SAMPLE_SIZE:]
            px, py = self.pointer_info.to_pixels(x, y)
            if not self.pointer_info.click_allowed(px, py):
                click = 0.0
            events.append(PointerEvent(x=px, y=py, click=float(click)))

        return events

    def decode_batch(self, samples: torch.Tensor) -> List[List[Event]]:
        """Apply vec_to_obj to every row of a (B, sample_size) batch."""
        samples = torch.as_tensor(samples)
        if samples.ndim != 2 or samples.shape[1] != self.sample_size:
            raise ValueError(
                f"Samples must have shape (B, {self.sample_size}), got {tuple(samples.shape)}"
            )
        return [self.vec_to_obj(row) for row in samples]

    def mask(self, events: Iterable[Event]) -> List[Event]:
        """Restrict an action to this space's keys (see mask_action)."""
        return mask_action(events, self.keys)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    @classmethod
    def union(cls, *spaces: ActionSpace, pointer: bool = False) -> ActionSpace:
        """Action space over the union of the inputs' keys.

        Pointer geometry is never merged; each environment binds its own.
        Pass ``pointer=True`` to reserve pointer slots in the combined layout.
        """
        return cls(keys=KeySet.union(*(s.keys for s in spaces)), pointer=pointer)


def mask_action(events: Iterable[Event], keys: KeySet) -> List[Event]:
    """Drop key events for keys outside ``keys``.

    Pointer events pass through; pointer legality is enforced at decode time.
    """
    return [
        event for event in events
        if not isinstance(event, KeyEvent) or event.name in keys
    ]
