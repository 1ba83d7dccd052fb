import logging

import numpy as np
import onnxruntime as ort

from superres.errors import ModelLoadError, ModelNotLoadedError
from superres.models.base_engine import BaseEngine

logger = logging.getLogger(__name__)


class OnnxEngine(BaseEngine):
    def __init__(self, provider="auto", device_id=0):
        super().__init__()
        self.provider = provider
        self.device_id = device_id
        self.session = None
        self.input_name = None
        self.output_names = []
        self.dtype = np.float32

    def load(self, model_path, definition_path=None):
        self._check_path(model_path)
        if definition_path:
            logger.warning("ONNX models carry their own graph; ignoring %s", definition_path)

        so = ort.SessionOptions()
        so.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        so.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL

        providers = self._build_providers(self.provider, self.device_id)
        try:
            self.session = ort.InferenceSession(
                model_path,
                sess_options=so,
                providers=providers
            )
        except Exception as exc:
            raise ModelLoadError(f"Could not load model {model_path}: {exc}") from exc

        inputs = self.session.get_inputs()
        if len(inputs) != 1:
            raise ModelLoadError(
                f"Expected 1 image input, found {len(inputs)}: {[x.name for x in inputs]}"
            )
        self.input_name = inputs[0].name
        self.output_names = [item.name for item in self.session.get_outputs()]

        # Detect precision
        if "float16" in inputs[0].type:
            self.dtype = np.float16
            logger.info("Running in FP16 mode")
        else:
            self.dtype = np.float32
            logger.info("Running in FP32 mode")
        logger.info("Successfully loaded model %s", model_path)

    def _build_providers(self, provider, device_id):
        available = set(ort.get_available_providers())
        mode = provider.lower()
        valid = {"auto", "dml", "cuda", "rocm", "tensorrt", "coreml", "openvino", "cpu"}
        if mode not in valid:
            raise ValueError(f"provider must be one of: {sorted(valid)}")

        resolved = []
        gpu_priority = [
            ("TensorrtExecutionProvider", None),
            ("CUDAExecutionProvider", None),
            ("ROCMExecutionProvider", None),
            ("DmlExecutionProvider", {"device_id": device_id}),
            ("CoreMLExecutionProvider", None),
            ("OpenVINOExecutionProvider", None),
        ]
        mode_to_ep = {
            "dml": ("DmlExecutionProvider", {"device_id": device_id}),
            "cuda": ("CUDAExecutionProvider", None),
            "rocm": ("ROCMExecutionProvider", None),
            "tensorrt": ("TensorrtExecutionProvider", None),
            "coreml": ("CoreMLExecutionProvider", None),
            "openvino": ("OpenVINOExecutionProvider", None),
        }

        if mode == "auto":
            for ep_name, ep_opts in gpu_priority:
                if ep_name in available:
                    resolved.append((ep_name, ep_opts) if ep_opts is not None else ep_name)
                    break
        elif mode != "cpu":
            ep_name, ep_opts = mode_to_ep[mode]
            if ep_name not in available:
                raise RuntimeError(
                    f"{ep_name} is not available in this environment. "
                    f"Available providers: {sorted(available)}"
                )
            resolved.append((ep_name, ep_opts) if ep_opts is not None else ep_name)

        # CPU stays as the last fallback
        if "CPUExecutionProvider" in available:
            resolved.append("CPUExecutionProvider")
        elif mode == "cpu":
            raise RuntimeError(
                f"CPUExecutionProvider is not available. Available providers: {sorted(available)}"
            )

        if not resolved:
            raise RuntimeError(
                "No compatible execution provider found. "
                f"Available providers: {sorted(available)}"
            )

        logger.info("ONNX providers: %s", resolved)
        return resolved

    def is_loaded(self):
        return self.session is not None

    def forward(self, output_names=None):
        if self.session is None:
            raise ModelNotLoadedError("No network loaded")
        feed = {self.input_name: np.asarray(self._input, dtype=self.dtype)}

        if output_names is None:
            output = self.session.run([self.output_names[0]], feed)[0]
            return output.astype(np.float32, copy=False)

        outputs = self.session.run(list(output_names), feed)
        return [out.astype(np.float32, copy=False) for out in outputs]
