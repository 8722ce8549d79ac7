from dataclasses import dataclass, field
from typing import List, Tuple

AXES = ("vertical", "horizontal", "axial")

# Global unit directions (model space). Vertical is inverted relative to world-up.
AXIAL_PLUS = (0.0, 0.0, 1.0)
VERTICAL_PLUS = (0.0, -1.0, 0.0)
HORIZONTAL_PLUS = (1.0, 0.0, 0.0)

FILTER_TYPES = ("None", "BandPass", "LowPass")


@dataclass(frozen=True)
class Harmonic:
    order: float
    amplitude_ratio: float
    phase_shift_deg: float = 0.0


@dataclass
class VibrationComponent:
    amplitude: float = 0.0
    phase_meas: float = 0.0  # absolute, as entered
    phase: float = 0.0  # derived, relative to the active reference
    harmonics: List[Harmonic] = field(default_factory=list)
    noise: float = 0.0


@dataclass
class MeasurementPoint:
    id: str
    label: str
    position: Tuple[float, float, float]
    horizontal: VibrationComponent = field(default_factory=VibrationComponent)
    vertical: VibrationComponent = field(default_factory=VibrationComponent)
    axial: VibrationComponent = field(default_factory=VibrationComponent)
    is_reference: bool = False

    def component(self, axis: str) -> VibrationComponent:
        if axis not in AXES:
            raise KeyError(axis)
        return getattr(self, axis)


@dataclass(frozen=True)
class OrderFilter:
    """Order gate for orbit probes: None, BandPass(order) or LowPass(order)."""

    kind: str = "None"
    order: float = 1.0

    def passes(self, order: float) -> bool:
        if self.kind == "BandPass":
            return abs(order - self.order) < 0.01
        if self.kind == "LowPass":
            return order <= self.order + 0.01
        return True

    @property
    def passes_noise(self) -> bool:
        return self.kind not in ("BandPass", "LowPass")

    def label(self) -> str:
        if not self.passes_noise:
            return f"{self.kind} {self.order:g}X"
        return "Unfiltered"
