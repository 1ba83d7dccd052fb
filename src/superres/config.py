import enum
import logging
from dataclasses import dataclass

from superres.errors import PreconditionError, UnsupportedAlgorithmError

logger = logging.getLogger(__name__)

# BGR mean of the DIV2K training set, subtracted before EDSR inference.
DIV2K_MEAN_BGR = (103.1545782, 111.561547, 114.35629928)


class Algorithm(enum.Enum):
    """Super-resolution network families with known pre/post-processing."""

    EDSR = "edsr"
    ESPCN = "espcn"
    FSRCNN = "fsrcnn"
    LAPSRN = "lapsrn"

    @classmethod
    def parse(cls, name):
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            choices = ", ".join(a.value for a in cls)
            raise UnsupportedAlgorithmError(
                f"Unknown algorithm {name!r}; expected one of: {choices}"
            ) from None

    @property
    def luma_only(self):
        """Network sees only the Y channel; chroma is upscaled by resizing."""
        return self is not Algorithm.EDSR

    @property
    def supports_multioutput(self):
        return self is Algorithm.LAPSRN

    @property
    def usual_scales(self):
        if self is Algorithm.LAPSRN:
            return (2, 4, 8)
        return (2, 3, 4)


@dataclass(frozen=True)
class ModelConfig:
    algorithm: Algorithm
    scale: int

    def __post_init__(self):
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        if isinstance(self.scale, bool) or not isinstance(self.scale, int) or self.scale < 1:
            raise ValueError(f"scale must be a positive integer, got {self.scale!r}")
        if self.scale not in self.algorithm.usual_scales:
            logger.warning(
                "Scale x%d is unusual for %s (pretrained models exist for %s)",
                self.scale, self.algorithm.value, self.algorithm.usual_scales,
            )

    @classmethod
    def from_name(cls, name, scale):
        return cls(Algorithm.parse(name), scale)


@dataclass(frozen=True)
class ScaleSpec:
    """Ordered ``(scale, node_name)`` pairs for multi-output upsampling."""

    entries: tuple

    def __post_init__(self):
        for entry in self.entries:
            if not isinstance(entry, (tuple, list)) or len(entry) != 2:
                raise PreconditionError(f"Expected a (scale, node) pair, got {entry!r}")
        entries = tuple((int(scale), str(name)) for scale, name in self.entries)
        if not entries:
            raise PreconditionError("ScaleSpec needs at least one (scale, node) pair")
        object.__setattr__(self, "entries", entries)

    @classmethod
    def from_lists(cls, scale_factors, node_names):
        scale_factors = list(scale_factors)
        node_names = list(node_names)
        if len(scale_factors) != len(node_names):
            raise PreconditionError(
                f"Got {len(scale_factors)} scale factors for {len(node_names)} output nodes"
            )
        return cls(tuple(zip(scale_factors, node_names)))

    @property
    def scales(self):
        return [scale for scale, _ in self.entries]

    @property
    def node_names(self):
        return [name for _, name in self.entries]

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
