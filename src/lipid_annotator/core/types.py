from dataclasses import dataclass
from typing import Iterator
import numpy as np


@dataclass(frozen=True, order=True)
class Peak:
    """
    A single centroided signal of a fragment spectrum.

    Attributes:
        mz: The m/z value of the peak.
        intensity: The intensity of the peak.
    """
    mz: float
    intensity: float


@dataclass(frozen=True, eq=False)
class Spectrum:
    """
    Represents a centroided MS/MS spectrum.

    Attributes:
        mz: A numpy array of m/z values.
        intensity: A numpy array of intensity values.
    """
    mz: np.ndarray
    intensity: np.ndarray

    def __post_init__(self):
        mz = np.asarray(self.mz, dtype=float)
        intensity = np.asarray(self.intensity, dtype=float)
        if mz.shape != intensity.shape or mz.ndim != 1:
            raise ValueError("m/z and intensity arrays must be one-dimensional and of equal length.")
        # Read-only copies keep the spectrum immutable for concurrent readers.
        mz = mz.copy()
        intensity = intensity.copy()
        mz.flags.writeable = False
        intensity.flags.writeable = False
        object.__setattr__(self, "mz", mz)
        object.__setattr__(self, "intensity", intensity)

    @classmethod
    def from_pairs(cls, pairs) -> "Spectrum":
        """Builds a spectrum from an iterable of (m/z, intensity) pairs."""
        pairs = list(pairs)
        if not pairs:
            return cls(mz=np.empty(0), intensity=np.empty(0))
        mz, intensity = zip(*pairs)
        return cls(mz=np.array(mz), intensity=np.array(intensity))

    def peaks(self) -> list[Peak]:
        return [Peak(float(mz), float(i)) for mz, i in zip(self.mz, self.intensity)]

    def __iter__(self) -> Iterator[Peak]:
        return iter(self.peaks())

    def __len__(self) -> int:
        return len(self.mz)
