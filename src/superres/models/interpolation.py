import numpy as np
import cv2

from superres.errors import ModelNotLoadedError, PreconditionError
from superres.models.base_engine import BaseEngine

INTERPOLATION_MODES = {
    "nearest": cv2.INTER_NEAREST,
    "bilinear": cv2.INTER_LINEAR,
    "bicubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


def _resolve_mode(mode):
    try:
        return INTERPOLATION_MODES[mode.lower()]
    except KeyError:
        raise ValueError(
            f"mode must be one of: {', '.join(sorted(INTERPOLATION_MODES))}"
        ) from None


def interpolate_upscale(image, scale, mode="bicubic"):
    """Upscale an image by an integer factor without a network."""
    h, w = image.shape[:2]
    return cv2.resize(image, (w * scale, h * scale), interpolation=_resolve_mode(mode))


class InterpolationEngine(BaseEngine):
    """
    Non-learned stand-in for a network: resizes every tensor channel.
    Useful as a quality baseline and for exercising the pipeline without
    model files. ``outputs`` maps node names to scales for multi-output runs.
    """

    def __init__(self, scale=2, mode="bicubic", outputs=None):
        super().__init__()
        self.scale = scale
        self.mode = mode
        self.interpolation = _resolve_mode(mode)
        self.outputs = dict(outputs or {})
        self._loaded = False

    def load(self, model_path=None, definition_path=None):
        # Nothing to read; a path is accepted so the engine is interchangeable.
        self._loaded = True

    def is_loaded(self):
        return self._loaded

    def _upscale(self, tensor, scale):
        n, c, h, w = tensor.shape
        out = np.empty((n, c, h * scale, w * scale), dtype=np.float32)
        for i in range(n):
            for ch in range(c):
                out[i, ch] = cv2.resize(
                    np.ascontiguousarray(tensor[i, ch], dtype=np.float32),
                    (w * scale, h * scale),
                    interpolation=self.interpolation
                )
        return out

    def forward(self, output_names=None):
        if not self._loaded:
            raise ModelNotLoadedError("No network loaded")
        tensor = np.asarray(self._input)
        if tensor.ndim != 4:
            raise PreconditionError(f"Expected a 4-D NCHW tensor, got shape {tensor.shape}")

        if output_names is None:
            return self._upscale(tensor, self.scale)

        missing = [name for name in output_names if name not in self.outputs]
        if missing:
            raise PreconditionError(f"Unknown output node(s): {missing}")
        return [self._upscale(tensor, self.outputs[name]) for name in output_names]
