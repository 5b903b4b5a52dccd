"""Environment adapter: remote binding + Imager + ActionSpace.

Wraps a remote environment binding so callers work purely in tensors:
    - reset() → observation tensor
    - step(action_vec) → (observation tensor, reward, done)

The binding only needs the RemoteEnv protocol below; the transport behind it
(socket, subprocess, in-process emulator) is the binding's concern.

Failures inside the binding are re-raised as EnvError with the operation
prefixed ("reset environment: ...") and the binding's exception chained.
Contract violations on our side (wrong vector or frame size) stay ValueError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Sequence, Tuple

import torch

from universe_bridge.action_space.events import action_to_wire
from universe_bridge.action_space.space import ActionSpace
from universe_bridge.configs.loader import EnvironmentRegistry
from universe_bridge.observation.imager import Imager, RawFrame

logger = logging.getLogger(__name__)


class EnvError(Exception):
    """Raised when the remote environment fails during reset or step."""

    pass


class RemoteEnv(Protocol):
    """Minimal interface of a remote environment binding."""

    def reset(self) -> RawFrame:
        ...

    def step(self, action: List[List[Any]]) -> Tuple[RawFrame, float, bool, Dict[str, Any]]:
        ...


class UniverseEnv:
    """Remote environment speaking tensors instead of raw frames and events.

    Parameters
    ----------
    remote : RemoteEnv
        Binding that exchanges raw frames and wire-encoded actions.
    imager : Imager
        Turns raw frames into observation tensors.
    action_space : ActionSpace
        Turns sampled action vectors into legal events.
    """

    def __init__(self, remote: RemoteEnv, imager: Imager, action_space: ActionSpace) -> None:
        self.remote = remote
        self.imager = imager
        self.action_space = action_space

    @classmethod
    def from_registry(
        cls,
        registry: EnvironmentRegistry,
        name: str,
        remote: RemoteEnv,
        *,
        screen_size: int = 200,
        color: bool = False,
        shared: bool = False
    ) -> UniverseEnv:
        """Build the adapter for a registered environment.

        ``shared`` selects the action space spanning every registered
        environment's keys instead of the environment's own.
        """
        action_space = registry.shared_action_space(name) if shared else registry.action_space(name)
        imager = registry.imager(name, screen_size=screen_size, color=color)
        logger.info(
            "Environment %s: observation %s, action params %d",
            name, imager.output_shape, action_space.param_size,
        )
        return cls(remote, imager, action_space)

    def reset(self) -> torch.Tensor:
        """Reset the remote environment and return the first observation."""
        try:
            raw_obs = self.remote.reset()
        except Exception as exc:
            logger.error("Reset failed: %s", exc)
            raise EnvError(f"reset environment: {exc}") from exc
        logger.debug("Environment reset")
        return self.imager.image(raw_obs)

    def step(self, action_vec: torch.Tensor | Sequence[float]) -> Tuple[torch.Tensor, float, bool]:
        """Send one sampled action and return (observation, reward, done).

        Raises
        ------
        ValueError
            If ``action_vec`` does not match the action space's sample size.
        EnvError
            If the remote environment fails.
        """
        events = self.action_space.vec_to_obj(action_vec)
        try:
            raw_obs, reward, done, _info = self.remote.step(action_to_wire(events))
        except Exception as exc:
            logger.error("Step failed: %s", exc)
            raise EnvError(f"step environment: {exc}") from exc
        return self.imager.image(raw_obs), float(reward), bool(done)
