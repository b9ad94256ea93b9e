"""Signal Processing Module

Computes the DspFeatureSet for one excerpt by running preprocessing, the
spectral engine and the rhythm engine over a SampleBuffer.
"""

import logging
import math

import numpy as np

from music_features.analysis import rhythm, spectral
from music_features.analysis.math_utils import clamp01
from music_features.analysis.preprocessing import prepare_window, rms
from music_features.config.config_loader import Config, config as default_config
from music_features.models.enums import TempoMethod, WindowType
from music_features.models.features import DspFeatureSet
from music_features.models.frames import SampleBuffer


logger = logging.getLogger(__name__)


class SignalProcessor:
    """Extracts hand-computed DSP features from a SampleBuffer.

    Every stage tolerates degenerate input: buffers too short for a stage
    produce that stage's documented default rather than an error, so the
    returned feature set is always complete.

    Attributes:
        window_size: Samples used for the centroid/rolloff spectrum
        window: Window function for spectral analysis
        analysis_seconds: Span used for flux and beat strength
        rhythm_params: Keyword arguments forwarded to the tempo estimator
    """

    def __init__(self, cfg: Config = None):
        cfg = cfg or default_config
        self.window_size = cfg.get('spectral.window_size', 1024)
        self.window = WindowType(cfg.get('spectral.window', 'hann'))
        self.min_spectral_samples = cfg.get('spectral.min_samples', 64)
        self.rolloff_fraction = cfg.get('spectral.rolloff_fraction', 0.85)
        self.default_centroid = float(cfg.get('spectral.default_centroid', spectral.DEFAULT_CENTROID_HZ))
        self.default_rolloff = float(cfg.get('spectral.default_rolloff', spectral.DEFAULT_ROLLOFF_HZ))
        self.frame_size = cfg.get('spectral.frame_size', 1024)
        self.hop_size = cfg.get('spectral.hop_size', 512)
        self.band_edges = tuple(cfg.get('spectral.band_edges', [250.0, 2000.0]))
        self.analysis_seconds = cfg.get('spectral.analysis_seconds', 10.0)
        self.tempo_weight = cfg.get('rhythm.tempo_weight', 0.6)
        self.beat_weight = cfg.get('rhythm.beat_weight', 0.4)
        self.rhythm_params = {
            'window_seconds': cfg.get('rhythm.window_seconds', 2.0),
            'min_samples': cfg.get('rhythm.min_samples', 1024),
            'cutoff': cfg.get('rhythm.highpass_cutoff', 80.0),
            'min_height': cfg.get('rhythm.peak_threshold', 0.1),
            'min_distance': cfg.get('rhythm.peak_min_distance', 10),
            'min_bpm': cfg.get('rhythm.min_bpm', rhythm.MIN_BPM),
            'max_bpm': cfg.get('rhythm.max_bpm', rhythm.MAX_BPM),
            'default_bpm': cfg.get('rhythm.default_bpm', rhythm.DEFAULT_BPM),
            'envelope_window': cfg.get('rhythm.envelope_window', 4000),
            'envelope_hop': cfg.get('rhythm.envelope_hop', 2000),
        }

    def analyze(self, buffer: SampleBuffer) -> DspFeatureSet:
        """Compute the full DSP feature set.

        Args:
            buffer: Excerpt to analyze

        Returns:
            DspFeatureSet with every field populated
        """
        samples = buffer.samples
        sample_rate = buffer.sample_rate

        energy = min(1.0, rms(samples) * 10.0)
        centroid, rolloff = self._spectral_shape(samples, sample_rate)
        zcr = spectral.zero_crossing_rate(samples)

        span = buffer.head(self.analysis_seconds)
        magnitudes = spectral.stft_magnitudes(span, self.frame_size, self.hop_size, self.window)
        flux = spectral.spectral_flux(magnitudes)
        beat = rhythm.beat_strength(span, sample_rate, self.frame_size, self.hop_size, self.band_edges)

        tempo = rhythm.estimate_tempo(samples, sample_rate, **self.rhythm_params)
        dance = rhythm.danceability(beat, tempo.bpm, self.tempo_weight, self.beat_weight)

        features = DspFeatureSet(
            tempo_bpm=tempo.bpm,
            beat_strength=beat,
            energy=energy,
            spectral_centroid_hz=centroid,
            spectral_rolloff_hz=rolloff,
            zero_crossing_rate=zcr,
            spectral_flux=flux,
            danceability=dance,
            confidence=self.signal_confidence(samples),
            tempo_method=tempo.method,
        )
        logger.debug(
            f"DSP features for {buffer.source or '<buffer>'}: tempo={features.tempo_bpm:.1f} "
            f"({tempo.method.value}), energy={energy:.3f}, centroid={centroid:.0f}Hz"
        )
        return features

    def _spectral_shape(self, samples: np.ndarray, sample_rate: int):
        windowed = prepare_window(samples, self.window_size, self.window, self.min_spectral_samples)
        if windowed is None:
            return self.default_centroid, self.default_rolloff

        frame = spectral.magnitude_spectrum(windowed, sample_rate)
        centroid = spectral.spectral_centroid(frame, self.default_centroid)
        rolloff = spectral.spectral_rolloff(frame, self.rolloff_fraction, self.default_rolloff)
        return centroid, rolloff

    @staticmethod
    def signal_confidence(samples: np.ndarray) -> float:
        """Confidence from a crude signal-to-noise estimate.

        The noise floor is the mean magnitude of the quietest 10% of
        samples; the SNR in dB is mapped from [-20, 20] onto [0, 1].
        """
        if len(samples) == 0:
            return 0.0
        magnitudes = np.abs(np.asarray(samples, dtype=np.float64))
        level = float(np.mean(magnitudes))
        if level == 0.0:
            return 0.0

        quietest = np.sort(magnitudes)[:max(1, len(magnitudes) // 10)]
        noise = float(np.mean(quietest))
        if noise == 0.0:
            return 0.5
        snr = 20.0 * math.log10(level / noise)
        return clamp01((snr + 20.0) / 40.0)

    def neutral_features(self) -> DspFeatureSet:
        """Feature set used when signal processing is disabled."""
        return DspFeatureSet(
            tempo_bpm=self.rhythm_params['default_bpm'],
            beat_strength=0.5,
            energy=0.5,
            spectral_centroid_hz=self.default_centroid,
            spectral_rolloff_hz=self.default_rolloff,
            zero_crossing_rate=0.1,
            spectral_flux=0.5,
            danceability=0.5,
            confidence=0.0,
            tempo_method=TempoMethod.DEFAULT,
        )
