"""Environment adapter over a remote environment binding."""

from universe_bridge.env.universe_env import EnvError, RemoteEnv, UniverseEnv

__all__ = ["EnvError", "RemoteEnv", "UniverseEnv"]
