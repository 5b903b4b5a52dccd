"""Environment registry: per-game key masks, pointer geometry and resolutions.

Loads and validates ``environments.yaml`` into an immutable registry of
domain objects (KeySet, PointerInfo, ObservationSpace). The registry is
built once at startup and passed to whatever needs it; there is no
process-wide mutable table.

Usage::

    from universe_bridge.configs.loader import load_registry
    registry = load_registry()                          # default path
    registry = load_registry("/custom/environments.yaml")

    space = registry.action_space("flashgames.DuskDrive-v0")
    imager = registry.imager("flashgames.DuskDrive-v0", screen_size=200)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import torch
import yaml

from universe_bridge.action_space.keys import KeySet
from universe_bridge.action_space.space import ActionSpace, PointerInfo
from universe_bridge.observation.imager import Imager, ObservationSpace
from universe_bridge.utils.geometry import Region
from universe_bridge.utils.validators import (
    EnvironmentsV1,
    PointerInfoModel,
    RegionModel,
    load_environments_config,
)

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "environments.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


class UnknownEnvironmentError(ConfigError):
    """Raised when an environment id is not in the registry."""

    pass


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnvironmentConfig:
    """Everything the encoders need to know about one environment."""

    name: str
    keys: KeySet
    pointer_info: Optional[PointerInfo] = None
    observation: Optional[ObservationSpace] = None


class EnvironmentRegistry:
    """Read-only lookup of EnvironmentConfig by environment id."""

    def __init__(self, environments: Mapping[str, EnvironmentConfig]) -> None:
        self._environments: Dict[str, EnvironmentConfig] = dict(environments)
        self._all_keys = KeySet.union(*(env.keys for env in self._environments.values()))

    def names(self) -> List[str]:
        return sorted(self._environments)

    def __contains__(self, name: object) -> bool:
        return name in self._environments

    def __len__(self) -> int:
        return len(self._environments)

    def get(self, name: str) -> EnvironmentConfig:
        """Look up an environment.

        Raises
        ------
        UnknownEnvironmentError
            If ``name`` is not registered.
        """
        try:
            return self._environments[name]
        except KeyError:
            raise UnknownEnvironmentError(
                f"Unknown environment: {name!r}; known: {self.names()}"
            ) from None

    def key_mask(self, name: str) -> KeySet:
        """Keys which perform meaningful actions in ``name``."""
        return self.get(name).keys

    def pointer_info(self, name: str) -> Optional[PointerInfo]:
        """Allowed pointer events for ``name``; None for keyboard-only games."""
        return self.get(name).pointer_info

    def observation_space(self, name: str) -> ObservationSpace:
        """Native frame size for ``name``.

        Raises
        ------
        ConfigError
            If the environment declares no observation size.
        """
        env = self.get(name)
        if env.observation is None:
            raise ConfigError(f"Environment {name!r} has no observation size configured")
        return env.observation

    def all_keys(self) -> KeySet:
        """Every key that is useful in at least one environment."""
        return self._all_keys

    def action_space(self, name: str) -> ActionSpace:
        """Action space dedicated to one environment.

        Keys are exactly the environment's keys; pointer output is enabled
        iff the environment has pointer geometry.
        """
        env = self.get(name)
        return ActionSpace(
            keys=env.keys,
            pointer=env.pointer_info is not None,
            pointer_info=env.pointer_info,
        )

    def shared_action_space(self, name: str) -> ActionSpace:
        """Action space for a policy shared across every registered environment.

        The layout covers all_keys() plus pointer slots, so one network can
        drive any game; the environment's own keys become the key mask and
        its pointer geometry (if any) decides whether pointer events are sent.
        """
        env = self.get(name)
        return ActionSpace(
            keys=self._all_keys,
            key_mask=env.keys,
            pointer=True,
            pointer_info=env.pointer_info,
        )

    def imager(
        self,
        name: str,
        screen_size: int = 200,
        color: bool = False,
        *,
        dtype: torch.dtype = torch.float32,
        device: Any = "cpu"
    ) -> Imager:
        """Imager whose longest output side is ``screen_size``."""
        return self.observation_space(name).imager_for_screen_size(
            screen_size, color=color, dtype=dtype, device=device
        )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _to_region(model: RegionModel) -> Region:
    return Region.from_xywh((model.x, model.y, model.width, model.height))


def _to_pointer_info(model: Optional[PointerInfoModel]) -> Optional[PointerInfo]:
    if model is None:
        return None
    return PointerInfo(
        bounding_region=_to_region(model.bounding_region),
        forbidden_regions=tuple(_to_region(r) for r in model.forbidden_regions),
    )


def _validate_registry(cfg: EnvironmentsV1) -> None:
    """Cross-field checks the schema cannot express.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    for name, env in cfg.environments.items():
        if env.pointer is None:
            continue
        bx0, by0, bx1, by1 = _to_region(env.pointer.bounding_region).as_xyxy()
        for region in env.pointer.forbidden_regions:
            x0, y0, x1, y1 = _to_region(region).as_xyxy()
            if x1 <= bx0 or x0 >= bx1 or y1 <= by0 or y0 >= by1:
                logger.warning(
                    "Environment %s: forbidden region %s lies outside the "
                    "bounding region and never applies",
                    name, (region.x, region.y, region.width, region.height),
                )
        if env.observation is not None and (
            bx1 > env.observation.width or by1 > env.observation.height
        ):
            raise ConfigError(
                f"Environment {name!r}: pointer bounding region {(bx0, by0, bx1, by1)} "
                f"exceeds the observation size "
                f"{env.observation.width}x{env.observation.height}"
            )


def load_registry(path: str | Path | None = None) -> EnvironmentRegistry:
    """Load and validate the environment registry from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``environments.yaml``. ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    EnvironmentRegistry
        Fully validated, read-only registry.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_REGISTRY_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading environment registry from %s", path)

    try:
        cfg = load_environments_config(path)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(str(exc)) from exc

    _validate_registry(cfg)

    environments: Dict[str, EnvironmentConfig] = {}
    for name, env in cfg.environments.items():
        observation = None
        if env.observation is not None:
            observation = ObservationSpace(
                width=env.observation.width, height=env.observation.height
            )
        environments[name] = EnvironmentConfig(
            name=name,
            keys=KeySet(env.keys),
            pointer_info=_to_pointer_info(env.pointer),
            observation=observation,
        )

    registry = EnvironmentRegistry(environments)
    logger.info(
        "Environment registry loaded: %d environments, %d distinct keys",
        len(registry), len(registry.all_keys()),
    )
    return registry
