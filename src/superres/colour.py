"""Colour-space handling around luma-only super-resolution networks.

ESPCN, FSRCNN and LapSRN are trained on the Y channel of YCrCb images. The
image is converted once, Y goes through the network and the chroma planes
are upscaled with plain bilinear resizing before being merged back.
"""

import numpy as np
import cv2

from superres.errors import ShapeMismatchError, UnsupportedFormatError

_SCALE = np.float32(1.0 / 255.0)


def _channels(image):
    if not isinstance(image, np.ndarray):
        raise UnsupportedFormatError(f"Expected a numpy image, got {type(image).__name__}")
    if image.ndim == 2:
        return 1
    if image.ndim == 3 and image.shape[2] in (1, 3):
        return image.shape[2]
    raise UnsupportedFormatError(f"Not supported image shape: {image.shape}")


def to_uint8(array):
    """Round and saturate to the 8-bit range (cv::Mat::convertTo(CV_8U))."""
    return np.clip(np.rint(array), 0, 255).astype(np.uint8)


def preprocess_ycrcb(image):
    """Convert a BGR or grey image into a normalised float32 YCrCb reference.

    Single channel images are only rescaled by 1/255. Float inputs are
    rescaled the same way as 8-bit ones, so float images are expected to
    hold values in the 0..255 range.
    """
    channels = _channels(image)
    if image.dtype not in (np.uint8, np.float32):
        raise UnsupportedFormatError(
            f"Not supported image type: {channels} channel(s) of {image.dtype}"
        )

    if channels == 1:
        plane = image if image.ndim == 2 else image[:, :, 0]
        return plane.astype(np.float32) * _SCALE

    if image.dtype == np.uint8:
        ycrcb = cv2.cvtColor(image, cv2.COLOR_BGR2YCrCb)
        return ycrcb.astype(np.float32) * _SCALE

    img_float = np.ascontiguousarray(image) * _SCALE
    return cv2.cvtColor(img_float, cv2.COLOR_BGR2YCrCb)


def extract_luma(reference):
    """Y plane of a preprocessed reference as a (1, 1, H, W) tensor."""
    plane = reference if reference.ndim == 2 else reference[:, :, 0]
    return np.ascontiguousarray(plane, dtype=np.float32)[np.newaxis, np.newaxis]


def reconstruct_ycrcb(luma, reference, scale):
    """Merge upscaled luma with the reference chroma and return a uint8 image.

    ``luma`` is the network output in [0, 1] and must be exactly ``scale``
    times the reference size.
    """
    if not isinstance(reference, np.ndarray) or reference.dtype != np.float32:
        raise UnsupportedFormatError("Not supported reference type, expected float32")
    channels = _channels(reference)

    luma = np.asarray(luma, dtype=np.float32)
    if luma.ndim == 3 and luma.shape[2] == 1:
        luma = luma[:, :, 0]
    h, w = reference.shape[:2]
    expected = (h * scale, w * scale)
    if luma.shape != expected:
        raise ShapeMismatchError(
            f"Network output {luma.shape} does not match x{scale} of reference {(h, w)}"
        )

    if channels == 1:
        return to_uint8(luma * 255.0)

    cr = cv2.resize(reference[:, :, 1], (w * scale, h * scale), interpolation=cv2.INTER_LINEAR)
    cb = cv2.resize(reference[:, :, 2], (w * scale, h * scale), interpolation=cv2.INTER_LINEAR)
    merged = cv2.merge([np.ascontiguousarray(luma), cr, cb])
    merged_8u = to_uint8(merged * 255.0)
    return cv2.cvtColor(merged_8u, cv2.COLOR_YCrCb2BGR)
