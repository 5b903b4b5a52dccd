"""Action encoding: parameter layout, composite distribution, wire events.

Provides:
    - KeySet: sorted, deduplicated key vocabulary (defines vector layout)
    - ActionSpace: param/sample sizes, sample/log_prob/kl/entropy, vec_to_obj
    - PointerInfo: bounding region + forbidden click regions
    - KeyEvent / PointerEvent: wire-level events
    - TupleDistribution and its factors (Bernoulli, Gaussian)

Modules:
    - keys: KeySet
    - events: Event hierarchy and wire encoding
    - distributions: factor math over torch.distributions
    - space: ActionSpace, PointerInfo, mask_action

Invariants:
    - param_size == len(keys) + 5 with pointer output, else len(keys)
    - key events are emitted in sorted key order, the pointer event last
    - a pointer event inside a forbidden region never clicks

No image handling here; observation encoding lives in universe_bridge.observation.
"""

from universe_bridge.action_space.distributions import (
    BernoulliFactor,
    Factor,
    GaussianFactor,
    TupleDistribution,
)
from universe_bridge.action_space.events import (
    Event,
    KeyEvent,
    PointerEvent,
    action_to_wire,
)
from universe_bridge.action_space.keys import KeySet
from universe_bridge.action_space.space import ActionSpace, PointerInfo, mask_action

__all__ = [
    "ActionSpace",
    "BernoulliFactor",
    "Event",
    "Factor",
    "GaussianFactor",
    "KeyEvent",
    "KeySet",
    "PointerEvent",
    "PointerInfo",
    "TupleDistribution",
    "action_to_wire",
    "mask_action",
]
