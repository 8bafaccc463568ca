"""
Map Generator - Noise Utilities
Deterministic multi-octave sinusoidal noise for local terrain detail.
"""

import numpy as np
from typing import Optional

from mapgen.config import NOISE_BASE_AMPLITUDE, NOISE_BASE_FREQUENCY, NOISE_OCTAVES


class SinusoidalNoise:
    """
    Octave-summed sin/cos noise.

    Each octave doubles the frequency and halves the amplitude. Phases are
    drawn from the caller's RNG so the pattern is seed dependent while the
    generator itself holds no randomness.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        octaves: int = NOISE_OCTAVES,
        base_frequency: float = NOISE_BASE_FREQUENCY,
        base_amplitude: float = NOISE_BASE_AMPLITUDE,
    ):
        self.octaves = octaves
        self.base_frequency = base_frequency
        self.base_amplitude = base_amplitude

        if rng is None:
            self.phases = np.zeros((octaves, 2))
        else:
            self.phases = rng.random((octaves, 2)) * 2 * np.pi

    def generate(self, width: int, height: int) -> np.ndarray:
        """
        Generate a (height, width) noise grid.

        Args:
            width: Number of columns
            height: Number of rows

        Returns:
            Float64 array of noise in meters, roughly +/- 2 * base_amplitude
        """
        ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
        noise = np.zeros((height, width), dtype=np.float64)

        for octave in range(self.octaves):
            frequency = self.base_frequency * (2 ** octave)
            amplitude = self.base_amplitude / (2 ** octave)

            phase_x, phase_y = self.phases[octave]
            value = (np.sin(xs * frequency + phase_x) + np.cos(ys * frequency + phase_y)) / 2.0
            noise += value * amplitude

        return noise
