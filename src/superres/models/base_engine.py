import os

from superres.errors import ModelLoadError, ModelNotLoadedError


class BaseEngine:
    """
    Abstract inference engine interface.
    All backends (OpenCV dnn, ONNX Runtime, TorchScript, interpolation)
    must implement this.
    """

    def __init__(self):
        self._input = None

    def _check_path(self, path):
        if not path:
            raise ModelLoadError("Could not load model: empty path")
        if not os.path.isfile(path):
            raise ModelLoadError(f"Could not load model: {path} is not a readable file")

    def load(self, model_path, definition_path=None):
        """
        Load network weights (and an optional graph definition).
        """
        raise NotImplementedError

    def is_loaded(self):
        raise NotImplementedError

    def set_input(self, tensor):
        """
        Stage an NCHW float32 tensor for the next forward pass.
        """
        if not self.is_loaded():
            raise ModelNotLoadedError("No network loaded")
        self._input = tensor

    def forward(self, output_names=None):
        """
        Run the network on the staged input.
        Returns one tensor, or a list ordered like ``output_names``.
        """
        raise NotImplementedError

    def infer(self, tensor, output_names=None):
        """
        Full call: stage input → forward
        """
        self.set_input(tensor)
        return self.forward(output_names)
