"""Depth-to-space (sub-pixel shuffle) for NCHW float tensors.

Sub-pixel networks end with a convolution producing ``C * r * r`` channels
at the input resolution; the shuffle rearranges them into ``C`` channels at
``r`` times the resolution:

    out[n, ch, y, x] = in[n, C*r*(y % r) + C*(x % r) + ch, y // r, x // r]

The channel order is the TensorFlow ``depth_to_space`` one (channel index
fastest), which matches ``torch.nn.PixelShuffle`` only for ``C == 1``.
"""

import logging
import math

import numpy as np
import cv2

from superres.errors import PreconditionError, ShapeMismatchError

logger = logging.getLogger(__name__)

LAYER_NAME = "DepthToSpace"


def infer_output_shape(shape):
    """Output shape of the shuffle for an ``[N, C, H, W]`` input shape.

    The scale is guessed from the channel count: sqrt(C) for 4, 9 and 16
    channels (grey output), sqrt(C / 3) otherwise (colour output). Only
    scales 2, 3 and 4 are recognised reliably.
    """
    if len(shape) != 4:
        raise PreconditionError(f"Expected a 4-D NCHW shape, got {tuple(shape)}")
    n, c, h, w = (int(d) for d in shape)
    if h <= 0 or w <= 0:
        raise PreconditionError(f"Input height and width must be positive, got {h}x{w}")

    if c in (4, 9, 16):
        scale = math.isqrt(c)
    else:
        scale = math.isqrt(c // 3)

    if scale < 1 or c % (scale * scale) or c // (scale * scale) not in (1, 3):
        raise PreconditionError(
            f"Cannot infer depth-to-space scale from {c} channels "
            "(expected r*r or 3*r*r with r in 2..4)"
        )
    return (n, c // (scale * scale), h * scale, w * scale)


def depth_to_space(tensor, output_shape=None):
    """Rearrange ``[N, C*r*r, H, W]`` into a new ``[N, C, H*r, W*r]`` array."""
    x = np.asarray(tensor)
    if x.ndim != 4:
        raise PreconditionError(f"Expected a 4-D NCHW tensor, got shape {x.shape}")
    n, c_in, in_h, in_w = x.shape
    if in_h <= 0 or in_w <= 0:
        raise PreconditionError(f"Input height and width must be positive, got {in_h}x{in_w}")
    if output_shape is None:
        output_shape = infer_output_shape(x.shape)
    n_out, c_out, out_h, out_w = (int(d) for d in output_shape)

    if out_h % in_h or out_w % in_w:
        raise ShapeMismatchError(
            f"Output {out_h}x{out_w} is not an integer multiple of input {in_h}x{in_w}"
        )
    scale = out_h // in_h
    if out_w // in_w != scale:
        raise ShapeMismatchError(
            f"Height scale {scale} differs from width scale {out_w // in_w}"
        )
    if n_out != n or c_in != c_out * scale * scale:
        raise ShapeMismatchError(
            f"Cannot shuffle {tuple(x.shape)} into {(n_out, c_out, out_h, out_w)}"
        )

    # channel axis unfolds as (row offset, column offset, output channel)
    blocks = x.reshape(n, scale, scale, c_out, in_h, in_w)
    out = blocks.transpose(0, 3, 4, 1, 5, 2).reshape(n, c_out, out_h, out_w)
    return np.ascontiguousarray(out)


class DepthToSpaceLayer(object):
    """cv2.dnn custom layer backing the ``DepthToSpace`` op of TF graphs."""

    def __init__(self, params, blobs):
        super().__init__()

    def getMemoryShapes(self, inputs):
        return [list(infer_output_shape(inputs[0]))]

    def forward(self, inputs):
        return [depth_to_space(inputs[0])]


class LayerRegistry:
    """Tracks custom layers registered with the cv2.dnn layer factory.

    Registration through one registry is idempotent: each name is handed to
    OpenCV at most once.
    """

    def __init__(self, register_fn=None):
        self._register_fn = register_fn
        self._layers = {}

    def register(self, name, layer_cls):
        if name in self._layers:
            return False
        register_fn = self._register_fn or cv2.dnn_registerLayer
        register_fn(name, layer_cls)
        self._layers[name] = layer_cls
        logger.debug("Registered custom dnn layer %s", name)
        return True

    def is_registered(self, name):
        return name in self._layers

    def register_depth_to_space(self):
        return self.register(LAYER_NAME, DepthToSpaceLayer)
