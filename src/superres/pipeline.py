import logging

import numpy as np

from superres.colour import extract_luma, preprocess_ycrcb, reconstruct_ycrcb, to_uint8
from superres.config import DIV2K_MEAN_BGR, Algorithm, ModelConfig, ScaleSpec
from superres.depth_to_space import LayerRegistry
from superres.errors import (
    ModelNotLoadedError,
    PreconditionError,
    ShapeMismatchError,
    UnsupportedAlgorithmError,
    UnsupportedFormatError,
)
from superres.models.opencv_dnn import OpenCVDnnEngine
from superres.stream import FrameStreamDriver
from superres.video_source import VideoSink, VideoSource

logger = logging.getLogger(__name__)

_MEAN = np.array(DIV2K_MEAN_BGR, dtype=np.float32)


def _first_plane(blob):
    """Single-channel image of the first batch item of an NCHW output."""
    blob = np.asarray(blob)
    if blob.ndim != 4 or blob.shape[1] != 1:
        raise ShapeMismatchError(f"Expected a (N, 1, H, W) luma output, got {blob.shape}")
    return blob[0, 0]


class UpscalePipeline:
    """Upscale images with a super-resolution network.

    The network itself is an engine (cv2.dnn by default); this class owns the
    colour handling around it. Typical use::

        sr = UpscalePipeline()
        sr.read_model("ESPCN_x2.pb")
        sr.set_model("espcn", 2)
        result = sr.upsample(image)

    Changing the model config does not reload the network; keeping the two
    consistent is up to the caller.
    """

    def __init__(self, engine=None, config=None, registry=None):
        self.registry = registry if registry is not None else LayerRegistry()
        self.engine = engine if engine is not None else OpenCVDnnEngine(registry=self.registry)
        self.config = config

    @classmethod
    def from_name(cls, algorithm, scale, engine=None, registry=None):
        return cls(engine=engine, config=ModelConfig.from_name(algorithm, scale),
                   registry=registry)

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------
    def read_model(self, path, definition=None):
        self.engine.load(path, definition)

    def set_model(self, algorithm, scale):
        self.config = ModelConfig(Algorithm.parse(algorithm), scale)

    @property
    def algorithm(self):
        return self.config.algorithm if self.config is not None else None

    @property
    def scale(self):
        return self.config.scale if self.config is not None else None

    def ensure_ready(self):
        if self.config is None:
            raise ModelNotLoadedError("Model not specified. Please set model via set_model().")
        if not self.engine.is_loaded():
            raise ModelNotLoadedError("Model not specified. Please load it via read_model().")

    # -----------------------------------------------------------------------
    # Single image
    # -----------------------------------------------------------------------
    def upsample(self, image):
        """Return a new uint8 image ``scale`` times larger than ``image``."""
        self.ensure_ready()

        if self.config.algorithm.luma_only:
            reference = preprocess_ycrcb(image)
            output = self.engine.infer(extract_luma(reference))
            return reconstruct_ycrcb(_first_plane(output), reference, self.config.scale)

        return self._upsample_mean_normalised(image)

    def _upsample_mean_normalised(self, image):
        if (not isinstance(image, np.ndarray) or image.ndim != 3 or image.shape[2] != 3
                or image.dtype not in (np.uint8, np.float32)):
            raise UnsupportedFormatError(
                f"{self.config.algorithm.value} needs a 3-channel uint8 or float32 BGR image"
            )

        blob = (image.astype(np.float32) - _MEAN).transpose(2, 0, 1)[np.newaxis]
        output = np.asarray(self.engine.infer(np.ascontiguousarray(blob)))
        if output.ndim != 4 or output.shape[1] != 3:
            raise ShapeMismatchError(f"Expected a (N, 3, H, W) output, got {output.shape}")

        h, w = image.shape[:2]
        if output.shape[2:] != (h * self.config.scale, w * self.config.scale):
            logger.warning("Network output %s is not x%d of input %s",
                           output.shape[2:], self.config.scale, (h, w))
        return to_uint8(output[0].transpose(1, 2, 0) + _MEAN)

    # -----------------------------------------------------------------------
    # Several scales from one forward pass
    # -----------------------------------------------------------------------
    def upsample_multioutput(self, image, scale_spec, node_names=None):
        """Upscale to every ``(scale, node)`` of ``scale_spec`` with one inference.

        ``scale_spec`` is a ``ScaleSpec``, a sequence of ``(scale, node)``
        pairs, or a list of scales with ``node_names`` alongside. Results come
        back in ``scale_spec`` order.
        """
        if not isinstance(scale_spec, ScaleSpec):
            if node_names is None:
                scale_spec = ScaleSpec(tuple(scale_spec))
            else:
                scale_spec = ScaleSpec.from_lists(scale_spec, node_names)

        if self.config is None:
            raise ModelNotLoadedError("Model not specified. Please set model via set_model().")
        if not self.config.algorithm.supports_multioutput:
            raise UnsupportedAlgorithmError(
                f"Only LapSRN supports multiscale upsampling, not {self.config.algorithm.value}"
            )
        self.ensure_ready()

        reference = preprocess_ycrcb(image)
        outputs = self.engine.infer(extract_luma(reference), output_names=scale_spec.node_names)
        if len(outputs) != len(scale_spec):
            raise PreconditionError(
                f"Requested {len(scale_spec)} outputs, engine returned {len(outputs)}"
            )

        results = []
        for (scale, node), output in zip(scale_spec, outputs):
            logger.debug("Output %s: %s", node, np.shape(output))
            results.append(reconstruct_ycrcb(_first_plane(output), reference, scale))
        return results

    # -----------------------------------------------------------------------
    # Video
    # -----------------------------------------------------------------------
    def upsample_video(self, input_path, output_path, fourcc=None, timing_interval=120):
        """Upscale every frame of a video file; returns the number of frames written."""
        driver = FrameStreamDriver(self, timing_interval=timing_interval)
        return driver.run(VideoSource(input_path), VideoSink(), output_path, fourcc=fourcc)
