"""Data models for DSP features"""

from dataclasses import dataclass
import numpy as np

from music_features.models.enums import TempoMethod


@dataclass(eq=False)
class SpectralFrame:
    """Magnitude spectrum of one windowed sub-buffer

    Only the first half of the FFT bins is kept (up to Nyquist).

    Attributes:
        magnitudes: Magnitude per frequency bin
        sample_rate: Sample rate of the source buffer in Hz
    """
    magnitudes: np.ndarray
    sample_rate: int = 16000

    def __post_init__(self):
        assert self.sample_rate > 0, "Sample rate must be positive"
        assert self.magnitudes.ndim == 1, "Magnitudes must be a 1-D array"

    @property
    def bin_count(self) -> int:
        return len(self.magnitudes)

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    def frequencies(self) -> np.ndarray:
        """Centre frequency in Hz of every bin (bin / bin_count * Nyquist)."""
        return np.arange(self.bin_count) / self.bin_count * self.nyquist


@dataclass(frozen=True)
class Peak:
    """Local maximum of a lag-domain sequence"""
    index: int
    strength: float


@dataclass(frozen=True)
class TempoEstimate:
    """Tempo estimate and the fallback tier that produced it"""
    bpm: float
    method: TempoMethod
    score: float = 0.0

    def __post_init__(self):
        assert 60.0 <= self.bpm <= 200.0, "Tempo must be in [60, 200] BPM"


@dataclass(frozen=True)
class DspFeatureSet:
    """Hand-computed signal features for one excerpt

    Attributes:
        tempo_bpm: Estimated tempo, clamped to [60, 200]
        beat_strength: Onset salience [0, 1]
        energy: Scaled RMS energy [0, 1]
        spectral_centroid_hz: Spectral centre of mass in Hz
        spectral_rolloff_hz: 85% cumulative-magnitude frequency in Hz
        zero_crossing_rate: Fraction of adjacent-sample sign changes [0, 1]
        spectral_flux: Mean positive frame-to-frame magnitude change (>= 0)
        danceability: Tempo/beat groove score [0, 1]
        confidence: Signal-to-noise based trust in the measurements [0, 1]
        tempo_method: Which estimator stage produced ``tempo_bpm``
    """
    tempo_bpm: float
    beat_strength: float
    energy: float
    spectral_centroid_hz: float
    spectral_rolloff_hz: float
    zero_crossing_rate: float
    spectral_flux: float
    danceability: float
    confidence: float = 0.0
    tempo_method: TempoMethod = TempoMethod.DEFAULT

    def __post_init__(self):
        """Validate feature ranges"""
        assert 60.0 <= self.tempo_bpm <= 200.0, "Tempo must be in [60, 200] BPM"
        assert 0.0 <= self.beat_strength <= 1.0, "Beat strength must be in [0, 1]"
        assert 0.0 <= self.energy <= 1.0, "Energy must be in [0, 1]"
        assert self.spectral_centroid_hz >= 0, "Spectral centroid must be non-negative"
        assert self.spectral_rolloff_hz >= 0, "Spectral rolloff must be non-negative"
        assert 0.0 <= self.zero_crossing_rate <= 1.0, "Zero-crossing rate must be in [0, 1]"
        assert self.spectral_flux >= 0, "Spectral flux must be non-negative"
        assert 0.0 <= self.danceability <= 1.0, "Danceability must be in [0, 1]"
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"

    @property
    def brightness(self) -> float:
        """Centroid mapped onto [0, 1] with 8 kHz as full brightness"""
        return min(1.0, self.spectral_centroid_hz / 8000.0)
