"""Universe Bridge: encoding layer between an RL agent and a remote pixel environment.

This package converts policy outputs into wire-level input events and raw
screen buffers into fixed-shape tensors. Training, networks and transport
live outside it.

Architecture layers (strict one-way dependency):
    env/ → {action_space, observation, configs}/ → utils/

Key invariants:
    - Parameter layout follows the lexicographic order of key names
    - param_size == len(keys) + 5 when pointer output is enabled
    - Imager output shape is exactly (out_h, out_w, depth) for every frame
    - Action spaces and imagers are immutable after construction
    - YAML-only configs (environments.v1 schema)
"""

__version__ = "0.3.0"
