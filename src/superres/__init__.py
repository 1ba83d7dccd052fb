"""Super-resolution pipeline around pretrained convolutional networks."""

from superres.colour import preprocess_ycrcb, reconstruct_ycrcb
from superres.config import Algorithm, ModelConfig, ScaleSpec
from superres.depth_to_space import LayerRegistry, depth_to_space, infer_output_shape
from superres.errors import (
    ModelLoadError,
    ModelNotLoadedError,
    PreconditionError,
    ShapeMismatchError,
    SuperResError,
    UnsupportedAlgorithmError,
    UnsupportedFormatError,
    VideoOpenError,
)
from superres.pipeline import UpscalePipeline
from superres.stream import FrameStreamDriver

__version__ = "0.1.0"

__all__ = [
    "Algorithm",
    "FrameStreamDriver",
    "LayerRegistry",
    "ModelConfig",
    "ModelLoadError",
    "ModelNotLoadedError",
    "PreconditionError",
    "ScaleSpec",
    "ShapeMismatchError",
    "SuperResError",
    "UnsupportedAlgorithmError",
    "UnsupportedFormatError",
    "UpscalePipeline",
    "VideoOpenError",
    "depth_to_space",
    "infer_output_shape",
    "preprocess_ycrcb",
    "reconstruct_ycrcb",
]
