import logging
import os

import cv2

from superres.depth_to_space import LayerRegistry
from superres.errors import ModelLoadError, ModelNotLoadedError
from superres.models.base_engine import BaseEngine

logger = logging.getLogger(__name__)


class OpenCVDnnEngine(BaseEngine):
    """cv2.dnn executor for the published TensorFlow super-resolution graphs.

    ESPCN and FSRCNN graphs contain a ``DepthToSpace`` op that cv2.dnn has
    no importer for; it is provided by the custom layer registered through
    ``registry`` before the first graph is read.
    """

    def __init__(self, backend="opencv", registry=None):
        super().__init__()
        self.registry = registry if registry is not None else LayerRegistry()
        self.backend, self.target = self._resolve_backend(backend)
        self.net = None

    def _resolve_backend(self, backend):
        mode = backend.lower()
        if mode == "opencv":
            return cv2.dnn.DNN_BACKEND_OPENCV, cv2.dnn.DNN_TARGET_CPU
        if mode == "cuda":
            if cv2.cuda.getCudaEnabledDeviceCount() == 0:
                raise RuntimeError("OpenCV was built without CUDA or no CUDA device is present.")
            return cv2.dnn.DNN_BACKEND_CUDA, cv2.dnn.DNN_TARGET_CUDA
        raise ValueError("backend must be one of: opencv, cuda")

    def load(self, model_path, definition_path=None):
        self._check_path(model_path)
        if definition_path:
            self._check_path(definition_path)

        self.registry.register_depth_to_space()

        ext = os.path.splitext(model_path)[1].lower()
        try:
            if ext == ".pb":
                if definition_path:
                    net = cv2.dnn.readNetFromTensorflow(model_path, definition_path)
                else:
                    net = cv2.dnn.readNetFromTensorflow(model_path)
            else:
                net = cv2.dnn.readNet(model_path, definition_path or "")
        except cv2.error as exc:
            raise ModelLoadError(f"Could not load model {model_path}: {exc}") from exc

        if net.empty():
            raise ModelLoadError(f"Could not load model {model_path}: empty network")

        net.setPreferableBackend(self.backend)
        net.setPreferableTarget(self.target)
        self.net = net
        logger.info("Successfully loaded model %s", model_path)

    def is_loaded(self):
        return self.net is not None

    def set_input(self, tensor):
        if self.net is None:
            raise ModelNotLoadedError("No network loaded")
        self.net.setInput(tensor)

    def forward(self, output_names=None):
        if self.net is None:
            raise ModelNotLoadedError("No network loaded")
        if output_names is None:
            return self.net.forward()
        return list(self.net.forward(list(output_names)))
