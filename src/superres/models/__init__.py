# onnx_engine and torch_engine are imported on demand; they pull in heavy runtimes.
from superres.models.base_engine import BaseEngine
from superres.models.interpolation import InterpolationEngine, interpolate_upscale
from superres.models.opencv_dnn import OpenCVDnnEngine

__all__ = ["BaseEngine", "InterpolationEngine", "OpenCVDnnEngine", "interpolate_upscale"]
