"""Configuration records handed to the processing stages.

Every record can be built from a plain mapping (``from_mapping``) so the HTTP
layer can pass JSON straight through. Both the camelCase keys a browser
front-end sends and snake_case keys are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import InvalidConfiguration


class EdgeKernel(str, Enum):
    SOBEL = "sobel"
    PREWITT = "prewitt"
    SCHARR = "scharr"
    ROBERTS = "roberts"
    LAPLACIAN = "laplacian"
    MORPHOLOGICAL = "morphological"

    @classmethod
    def parse(cls, value: Any) -> "EdgeKernel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidConfiguration(f"Unknown edge kernel: {value!r}") from None


class DistanceMetric(str, Enum):
    NEAREST = "nearest"
    WEIGHTED = "weighted"
    CIELAB = "cielab"
    LUMA = "luma"

    @classmethod
    def parse(cls, value: Any) -> "DistanceMetric":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidConfiguration(f"Unknown distance metric: {value!r}") from None


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _number(data: Mapping[str, Any], *keys: str, default: float, kind: type = int) -> Any:
    raw = _pick(data, *keys, default=default)
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Expected {kind.__name__} for {keys[0]}, got {raw!r}") from None


def _bounded(data: Mapping[str, Any], *keys: str, low: int, high: int, default: int = 0) -> int:
    value = _number(data, *keys, default=default)
    if not low <= value <= high:
        raise InvalidConfiguration(f"{keys[0]} must be within {low}..{high}, got {value}")
    return value


def _flag(data: Mapping[str, Any], *keys: str, default: bool) -> bool:
    raw = _pick(data, *keys, default=default)
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return bool(raw)


def _section(data: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    raw = _pick(data, *keys, default={})
    if not isinstance(raw, Mapping):
        raise InvalidConfiguration(f"Expected an object for {keys[0]}")
    return raw


@dataclass(frozen=True)
class AdjustmentConfig:
    brightness: int = 0
    contrast: int = 0
    saturation: int = 0
    hue: int = 0

    @property
    def is_noop(self) -> bool:
        return self.brightness == 0 and self.contrast == 0 and self.saturation == 0 and self.hue == 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AdjustmentConfig":
        return cls(
            brightness=_bounded(data, "brightness", low=-255, high=255),
            contrast=_bounded(data, "contrast", low=-255, high=255),
            saturation=_bounded(data, "saturation", low=-100, high=100),
            hue=_bounded(data, "hue", "hue_shift", "hueShift", low=-180, high=180),
        )


@dataclass(frozen=True)
class PreProcessConfig:
    r: int = 0
    g: int = 0
    b: int = 0
    brightness: int = 0
    contrast: int = 0
    saturation: int = 0
    gamma: float = 1.0
    enabled: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PreProcessConfig":
        gamma = _number(data, "gamma", default=1.0, kind=float)
        if gamma <= 0:
            raise InvalidConfiguration(f"Gamma must be positive, got {gamma}")
        return cls(
            r=_bounded(data, "r", low=-255, high=255),
            g=_bounded(data, "g", low=-255, high=255),
            b=_bounded(data, "b", low=-255, high=255),
            brightness=_bounded(data, "brightness", low=-255, high=255),
            contrast=_bounded(data, "contrast", low=-255, high=255),
            saturation=_bounded(data, "saturation", low=-100, high=100),
            gamma=gamma,
            enabled=_flag(data, "enabled", default=True),
        )


@dataclass(frozen=True)
class AlphaBandRule:
    enabled: bool = False
    minimum: int = 32
    maximum: int = 254

    def matches(self, alpha: int) -> bool:
        return self.enabled and self.minimum <= alpha <= self.maximum


@dataclass(frozen=True)
class OutlineRule:
    enabled: bool = False
    opacity_min: int = 255
    neighbor_max: int = 0


@dataclass(frozen=True)
class AlgorithmRule:
    enabled: bool = True
    kernel: EdgeKernel = EdgeKernel.SOBEL
    threshold: float = 30
    hue_priority: int = 0

    @property
    def hue_weight(self) -> float:
        return self.hue_priority / 100


@dataclass(frozen=True)
class EdgeConfig:
    band: AlphaBandRule = field(default_factory=AlphaBandRule)
    outline: OutlineRule = field(default_factory=OutlineRule)
    algorithm: AlgorithmRule = field(default_factory=AlgorithmRule)
    adjustments: AdjustmentConfig = field(default_factory=AdjustmentConfig)
    enabled: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EdgeConfig":
        force = _section(data, "forceEdge", "force_edge", "band")
        outline = _section(force, "outline") or _section(data, "outline")
        band = AlphaBandRule(
            enabled=_flag(force, "enabled", default=False),
            minimum=_number(force, "thresholdMin", "minimum", "min", default=32),
            maximum=_number(force, "thresholdMax", "maximum", "max", default=254),
        )
        outline_rule = OutlineRule(
            enabled=_flag(outline, "enabled", default=False),
            opacity_min=_number(outline, "opacityMin", "opacity_min", default=255),
            neighbor_max=_number(outline, "neighborMax", "neighbor_max", default=0),
        )
        hue_priority = _number(data, "huePriority", "hue_priority", default=0)
        if not 0 <= hue_priority <= 100:
            raise InvalidConfiguration(f"Hue priority must be within 0..100, got {hue_priority}")
        algorithm = AlgorithmRule(
            enabled=_flag(data, "algorithmEnabled", "algorithm_enabled", default=True),
            kernel=EdgeKernel.parse(_pick(data, "algorithm", "kernel", default=EdgeKernel.SOBEL)),
            threshold=_number(data, "threshold", default=30, kind=float),
            hue_priority=hue_priority,
        )
        return cls(
            band=band,
            outline=outline_rule,
            algorithm=algorithm,
            adjustments=AdjustmentConfig.from_mapping(_section(data, "adjustments")),
            enabled=_flag(data, "enabled", default=True),
        )


@dataclass(frozen=True)
class HsvWeights:
    h: float = 50
    s: float = 30
    v: float = 20


@dataclass(frozen=True)
class ReductionConfig:
    metric: DistanceMetric = DistanceMetric.NEAREST
    weights: HsvWeights = field(default_factory=HsvWeights)
    edge_strength: float = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReductionConfig":
        weights = _section(data, "weights")
        return cls(
            metric=DistanceMetric.parse(_pick(data, "type", "metric", default=DistanceMetric.NEAREST)),
            weights=HsvWeights(
                h=_number(weights, "h", default=50, kind=float),
                s=_number(weights, "s", default=30, kind=float),
                v=_number(weights, "v", default=20, kind=float),
            ),
            edge_strength=_number(data, "edgeStrength", "edge_strength", default=0, kind=float),
        )


@dataclass(frozen=True)
class PipelineConfig:
    reduction: ReductionConfig = field(default_factory=ReductionConfig)
    pre_process: Optional[PreProcessConfig] = None
    edge: Optional[EdgeConfig] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        pre = _pick(data, "preProcess", "pre_process")
        edge = _pick(data, "edge")
        if pre is not None and not isinstance(pre, Mapping):
            raise InvalidConfiguration("Expected an object for preProcess")
        if edge is not None and not isinstance(edge, Mapping):
            raise InvalidConfiguration("Expected an object for edge")
        return cls(
            reduction=ReductionConfig.from_mapping(data),
            pre_process=PreProcessConfig.from_mapping(pre) if pre is not None else None,
            edge=EdgeConfig.from_mapping(edge) if edge is not None else None,
        )
