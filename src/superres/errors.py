"""Exceptions raised by the super-resolution pipeline.

Recoverable conditions (bad input format, missing model, unopenable video)
are raised before any output is produced. ``PreconditionError`` marks a
contract violation between caller and engine and is never caught here.
"""


class SuperResError(Exception):
    pass


class UnsupportedFormatError(SuperResError, ValueError):
    """Image channel count / dtype combination is not handled."""


class UnsupportedAlgorithmError(SuperResError, ValueError):
    """Unknown algorithm name, or operation not available for the algorithm."""


class ModelNotLoadedError(SuperResError, RuntimeError):
    """Upsampling requested before a network and algorithm were configured."""


class ModelLoadError(SuperResError, RuntimeError):
    pass


class VideoOpenError(SuperResError, IOError):
    pass


class PreconditionError(SuperResError, AssertionError):
    """Caller and engine disagree about shapes or lengths."""


class ShapeMismatchError(PreconditionError):
    pass
