"""Observation encoding: native screen buffers → fixed-shape tensors.

Modules:
    - imager: ObservationSpace (native resolution) and Imager (resize + pad)

Invariants:
    - image() output shape is exactly (out_h, out_w, depth) for every frame
    - Grayscale is the plain channel mean (no perceptual weighting)
    - Wrong-size frames are rejected, never truncated or padded
"""

from universe_bridge.observation.imager import NATIVE_DEPTH, Imager, ObservationSpace

__all__ = ["NATIVE_DEPTH", "Imager", "ObservationSpace"]
