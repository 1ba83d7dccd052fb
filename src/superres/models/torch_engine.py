import logging

import numpy as np
import torch

from superres.errors import ModelLoadError, ModelNotLoadedError, PreconditionError
from superres.models.base_engine import BaseEngine

logger = logging.getLogger(__name__)


class TorchEngine(BaseEngine):
    """TorchScript inference wrapper.

    Networks returning several tensors are addressed by name: dict outputs
    are indexed directly, tuple/list outputs through ``output_names`` which
    gives the name of each position.
    """

    def __init__(self, device="auto", precision="auto", output_names=None):
        super().__init__()
        self.device = self._resolve_device(device)
        self.precision = self._resolve_precision(precision, self.device)
        self._use_cuda = self.device.type == "cuda"
        self._dtype = {"fp16": torch.float16}.get(self.precision, torch.float32)
        self.output_names = list(output_names) if output_names else []
        self.model = None

        logger.info("PyTorch device : %s", self.device)
        logger.info("PyTorch precision: %s", self.precision)

    # -----------------------------------------------------------------------
    # Device / precision helpers
    # -----------------------------------------------------------------------
    def _resolve_device(self, device):
        mode = device.lower()
        if mode == "auto":
            if torch.cuda.is_available():
                return torch.device("cuda:0")
            return torch.device("cpu")
        if mode == "cuda":
            if not torch.cuda.is_available():
                raise RuntimeError("CUDA/ROCm device not available for PyTorch.")
            return torch.device("cuda:0")
        if mode == "cpu":
            return torch.device("cpu")
        raise ValueError("device must be one of: auto, cuda, cpu")

    def _resolve_precision(self, precision, device):
        p = precision.lower()
        if p not in {"auto", "fp16", "fp32"}:
            raise ValueError("precision must be one of: auto, fp16, fp32")
        if p == "auto":
            return "fp16" if device.type == "cuda" else "fp32"
        if device.type != "cuda" and p == "fp16":
            return "fp32"
        return p

    # -----------------------------------------------------------------------
    # Model loading
    # -----------------------------------------------------------------------
    def load(self, model_path, definition_path=None):
        self._check_path(model_path)
        if definition_path:
            logger.warning("TorchScript archives carry their own graph; ignoring %s",
                           definition_path)
        try:
            model = torch.jit.load(model_path, map_location=self.device)
        except (RuntimeError, ValueError) as exc:
            raise ModelLoadError(f"Could not load model {model_path}: {exc}") from exc
        model.eval()

        if self.precision == "fp16" and self._use_cuda:
            model = model.half()
        else:
            model = model.float()

        self.model = model
        logger.info("Successfully loaded model %s", model_path)

    def is_loaded(self):
        return self.model is not None

    # -----------------------------------------------------------------------
    # Inference
    # -----------------------------------------------------------------------
    def _to_numpy(self, output):
        return output.detach().float().cpu().numpy()

    def _select(self, outputs, name):
        if isinstance(outputs, dict):
            if name not in outputs:
                raise PreconditionError(
                    f"Network has no output {name!r}; available: {sorted(outputs)}"
                )
            return outputs[name]
        if name not in self.output_names:
            raise PreconditionError(
                f"Unknown output {name!r}; configured output names: {self.output_names}"
            )
        index = self.output_names.index(name)
        if index >= len(outputs):
            raise PreconditionError(
                f"Output {name!r} maps to position {index} but the network "
                f"returned {len(outputs)} tensors"
            )
        return outputs[index]

    @torch.inference_mode()
    def forward(self, output_names=None):
        if self.model is None:
            raise ModelNotLoadedError("No network loaded")

        tensor = torch.from_numpy(np.ascontiguousarray(self._input, dtype=np.float32))
        tensor = tensor.to(device=self.device, dtype=self._dtype,
                           non_blocking=self._use_cuda)
        outputs = self.model(tensor)

        if output_names is None:
            if isinstance(outputs, dict):
                outputs = next(iter(outputs.values()))
            elif isinstance(outputs, (tuple, list)):
                outputs = outputs[0]
            return self._to_numpy(outputs)

        if torch.is_tensor(outputs):
            outputs = (outputs,)
        return [self._to_numpy(self._select(outputs, name)) for name in output_names]
