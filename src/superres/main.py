import argparse
import logging
import os
import sys
import time

import cv2

from superres.config import Algorithm, ModelConfig, ScaleSpec
from superres.depth_to_space import LayerRegistry
from superres.errors import (
    ModelLoadError,
    ModelNotLoadedError,
    UnsupportedAlgorithmError,
    UnsupportedFormatError,
    VideoOpenError,
)
from superres.models.interpolation import INTERPOLATION_MODES, InterpolationEngine
from superres.models.opencv_dnn import OpenCVDnnEngine
from superres.pipeline import UpscalePipeline

# PreconditionError is a programming error and is left to propagate.
RECOVERABLE_ERRORS = (
    UnsupportedFormatError,
    UnsupportedAlgorithmError,
    ModelNotLoadedError,
    ModelLoadError,
    VideoOpenError,
    ValueError,
    RuntimeError,
)


def parse_scale_node(value):
    scale, sep, node = value.partition(":")
    if not sep or not node or not scale.isdigit():
        raise argparse.ArgumentTypeError(f"expected SCALE:NODE, got {value!r}")
    return int(scale), node


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Super-resolution for images and videos")
    parser.add_argument("--input", "-i", required=True, help="Input image or video path")
    parser.add_argument("--output", "-o", required=True, help="Output image or video path")
    parser.add_argument("--model", "-m", default="", help="Model path (.pb/.onnx/.pt)")
    parser.add_argument("--definition", default=None, help="Optional graph definition (.pbtxt)")
    parser.add_argument(
        "--algorithm", "-a",
        required=True,
        choices=[a.value for a in Algorithm],
        help="Network family the model belongs to"
    )
    parser.add_argument("--scale", "-s", type=int, required=True, help="Upscale factor of the model")
    parser.add_argument(
        "--backend",
        default="opencv",
        choices=["opencv", "onnx", "torch", "interpolate"],
        help="Inference engine (interpolate = no network, plain resizing)"
    )
    parser.add_argument(
        "--device",
        default="auto",
        choices=["auto", "cuda", "cpu"],
        help="Device for the opencv / torch backends"
    )
    parser.add_argument("--provider", default="auto", help="ONNX Runtime execution provider")
    parser.add_argument(
        "--precision",
        default="auto",
        choices=["auto", "fp16", "fp32"],
        help="Torch backend precision"
    )
    parser.add_argument(
        "--interpolation",
        default="bicubic",
        choices=sorted(INTERPOLATION_MODES),
        help="Resize mode of the interpolate backend"
    )
    parser.add_argument(
        "--multioutput",
        nargs="+",
        type=parse_scale_node,
        metavar="SCALE:NODE",
        help="LapSRN only: write one image per requested output node"
    )
    parser.add_argument("--video", action="store_true", help="Treat input as a video file")
    parser.add_argument("--fourcc", default=None, help="Output FourCC (default: same as input)")
    parser.add_argument("--timing-interval", type=int, default=120, help="Frames between timing reports")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def build_engine(args, registry):
    if args.backend == "opencv":
        backend = "cuda" if args.device == "cuda" else "opencv"
        return OpenCVDnnEngine(backend=backend, registry=registry)
    if args.backend == "onnx":
        from superres.models.onnx_engine import OnnxEngine
        return OnnxEngine(provider=args.provider)
    if args.backend == "torch":
        from superres.models.torch_engine import TorchEngine
        names = [node for _, node in args.multioutput or []]
        return TorchEngine(device=args.device, precision=args.precision, output_names=names)
    outputs = {node: scale for scale, node in args.multioutput or []}
    return InterpolationEngine(scale=args.scale, mode=args.interpolation, outputs=outputs)


def output_path_for(path, scale):
    root, ext = os.path.splitext(path)
    return f"{root}_x{scale}{ext}"


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    start_time = time.perf_counter()
    try:
        config = ModelConfig.from_name(args.algorithm, args.scale)
        registry = LayerRegistry()
        pipeline = UpscalePipeline(
            engine=build_engine(args, registry),
            config=config,
            registry=registry,
        )
        pipeline.read_model(args.model, args.definition)

        if args.video:
            frames = pipeline.upsample_video(
                args.input,
                args.output,
                fourcc=args.fourcc,
                timing_interval=args.timing_interval,
            )
            print(f"Frames written: {frames}")
        else:
            image = cv2.imread(args.input, cv2.IMREAD_UNCHANGED)
            if image is None:
                print(f"Cannot read image: {args.input}")
                return 1

            if args.multioutput:
                spec = ScaleSpec(tuple(args.multioutput))
                results = pipeline.upsample_multioutput(image, spec)
                for scale, result in zip(spec.scales, results):
                    path = output_path_for(args.output, scale)
                    cv2.imwrite(path, result)
                    print(f"x{scale}: {result.shape[1]}x{result.shape[0]} -> {path}")
            else:
                result = pipeline.upsample(image)
                cv2.imwrite(args.output, result)
                print(f"x{args.scale}: {result.shape[1]}x{result.shape[0]} -> {args.output}")
    except RECOVERABLE_ERRORS as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Done in {time.perf_counter() - start_time:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
