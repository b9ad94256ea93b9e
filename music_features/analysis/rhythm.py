"""Rhythm Engine

Tempo estimation and beat strength.

Tempo is estimated in three tiers, each covering a different failure mode:

1. autocorrelation of an onset envelope, with peak-picking and a musical
   likelihood prior over BPM (fails on silence and arrhythmic material),
2. the interval between peaks of a coarse energy envelope (fails on short
   or flat buffers),
3. a fixed default tempo.
"""

import logging
from typing import List, Optional

import numpy as np

from music_features.analysis.math_utils import clamp, clamp01
from music_features.analysis.preprocessing import next_power_of_two
from music_features.analysis.spectral import fft_iterative, flux_sequence, split_bands, stft_magnitudes
from music_features.models.enums import TempoMethod
from music_features.models.features import Peak, TempoEstimate


logger = logging.getLogger(__name__)

DEFAULT_BPM = 120.0
MIN_BPM = 60.0
MAX_BPM = 200.0
BEAT_EPSILON = 1e-6


def highpass(samples: np.ndarray, cutoff: float, sample_rate: int) -> np.ndarray:
    """One-pole high-pass filter ``y[n] = a * (y[n-1] + x[n] - x[n-1])``."""
    alpha = 1.0 / (1.0 + 2.0 * np.pi * cutoff / sample_rate)
    output = np.empty(len(samples), dtype=np.float64)
    previous_in = 0.0
    previous_out = 0.0
    for i, value in enumerate(np.asarray(samples, dtype=np.float64).tolist()):
        previous_out = alpha * (previous_out + value - previous_in)
        previous_in = value
        output[i] = previous_out
    return output


def onset_envelope(samples: np.ndarray, sample_rate: int, cutoff: float = 80.0) -> np.ndarray:
    """Half-wave rectified first difference of the high-passed signal."""
    if len(samples) < 2:
        return np.zeros(0)
    filtered = highpass(samples, cutoff, sample_rate)
    return np.maximum(np.diff(filtered), 0.0)


def autocorrelation(x: np.ndarray) -> np.ndarray:
    """Unbiased autocorrelation ``R[lag] = sum(x[i] * x[i+lag]) / (N - lag)``.

    Evaluated for lags 0..N/2 through the power spectrum of the
    zero-padded signal.

    Args:
        x: Input sequence

    Returns:
        Array of length N//2 + 1 (empty for empty input)
    """
    x = np.asarray(x, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.zeros(0)

    size = next_power_of_two(2 * n)
    padded = np.zeros(size)
    padded[:n] = x
    spectrum = fft_iterative(padded)
    power = (spectrum * np.conj(spectrum)).real
    # The power spectrum is real and even, so a forward transform inverts it
    raw = fft_iterative(power).real / size

    max_lag = n // 2
    lags = np.arange(max_lag + 1)
    return raw[:max_lag + 1] / (n - lags)


def find_peaks(data: np.ndarray, min_height: float = 0.1, min_distance: int = 10) -> List[Peak]:
    """Local maxima above ``min_height`` with non-maximum suppression.

    Candidates are accepted strongest first; any candidate closer than
    ``min_distance`` to an accepted peak is discarded.

    Returns:
        Accepted peaks, strongest first
    """
    data = np.asarray(data, dtype=np.float64)
    if len(data) < 3:
        return []

    interior = data[1:-1]
    mask = (interior > data[:-2]) & (interior > data[2:]) & (interior > min_height)
    candidates = np.nonzero(mask)[0] + 1
    order = candidates[np.argsort(-data[candidates], kind="stable")]

    suppressed = np.zeros(len(data), dtype=bool)
    peaks = []
    for index in order:
        if suppressed[index]:
            continue
        peaks.append(Peak(index=int(index), strength=float(data[index])))
        suppressed[max(0, index - min_distance + 1):index + min_distance] = True
    return peaks


def bpm_likelihood(bpm: float) -> float:
    """Musical prior over tempo; 0.0 rejects the candidate."""
    if bpm < 60:
        return 0.0
    if bpm <= 80:
        return 0.8
    if bpm <= 120:
        return 1.0
    if bpm <= 140:
        return 0.9
    if bpm <= 180:
        return 0.7
    if bpm <= 200:
        return 0.5
    return 0.3


def autocorrelation_tempo(
    samples: np.ndarray,
    sample_rate: int,
    cutoff: float = 80.0,
    min_height: float = 0.1,
    min_distance: int = 10,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
) -> Optional[TempoEstimate]:
    """Best likelihood-weighted autocorrelation candidate, or None."""
    acf = autocorrelation(onset_envelope(samples, sample_rate, cutoff))
    if len(acf) == 0 or acf[0] <= 0.0:
        return None

    best = None
    for peak in find_peaks(acf / acf[0], min_height, min_distance):
        bpm = sample_rate * 60.0 / peak.index
        if not min_bpm <= bpm <= max_bpm:
            continue
        score = peak.strength * bpm_likelihood(bpm)
        if score > 0.0 and (best is None or score > best.score):
            best = TempoEstimate(bpm=bpm, method=TempoMethod.AUTOCORRELATION, score=score)
    return best


def energy_envelope_tempo(
    samples: np.ndarray,
    sample_rate: int,
    window: int = 4000,
    hop: int = 2000,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
) -> Optional[float]:
    """Tempo from the mean interval between energy-envelope peaks.

    Returns:
        BPM within [min_bpm, max_bpm], or None when fewer than two peaks
        exist or the interval maps outside the range
    """
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) < window:
        return None

    frames = np.lib.stride_tricks.sliding_window_view(samples, window)[::hop]
    energies = np.mean(frames * frames, axis=1)
    if len(energies) < 3:
        return None

    interior = energies[1:-1]
    peaks = np.nonzero((interior > energies[:-2]) & (interior > energies[2:]))[0] + 1
    if len(peaks) < 2:
        return None

    interval_seconds = float(np.mean(np.diff(peaks))) * hop / sample_rate
    bpm = 60.0 / interval_seconds
    if not min_bpm <= bpm <= max_bpm:
        return None
    return bpm


def estimate_tempo(
    samples: np.ndarray,
    sample_rate: int = 16000,
    window_seconds: float = 2.0,
    min_samples: int = 1024,
    cutoff: float = 80.0,
    min_height: float = 0.1,
    min_distance: int = 10,
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
    default_bpm: float = DEFAULT_BPM,
    envelope_window: int = 4000,
    envelope_hop: int = 2000,
) -> TempoEstimate:
    """Estimate tempo with the autocorrelation -> energy envelope -> default chain.

    Args:
        samples: Excerpt samples
        sample_rate: Sample rate in Hz
        window_seconds: Autocorrelation analysis span taken from the start

    Returns:
        TempoEstimate clamped to [min_bpm, max_bpm]
    """
    window = np.asarray(samples[:int(window_seconds * sample_rate)], dtype=np.float64)

    if len(window) >= min_samples:
        estimate = autocorrelation_tempo(window, sample_rate, cutoff, min_height, min_distance, min_bpm, max_bpm)
        if estimate is not None:
            return TempoEstimate(
                bpm=clamp(estimate.bpm, min_bpm, max_bpm),
                method=estimate.method,
                score=estimate.score,
            )
        logger.debug("No autocorrelation tempo candidate, trying energy envelope")

    bpm = energy_envelope_tempo(samples, sample_rate, envelope_window, envelope_hop, min_bpm, max_bpm)
    if bpm is not None:
        return TempoEstimate(bpm=clamp(bpm, min_bpm, max_bpm), method=TempoMethod.ENERGY_ENVELOPE)

    logger.debug(f"Tempo estimation fell back to default {default_bpm} BPM")
    return TempoEstimate(bpm=clamp(default_bpm, min_bpm, max_bpm), method=TempoMethod.DEFAULT)


def beat_strength(
    samples: np.ndarray,
    sample_rate: int = 16000,
    frame_size: int = 1024,
    hop_size: int = 512,
    band_edges=(250.0, 2000.0),
    epsilon: float = BEAT_EPSILON,
) -> float:
    """Onset salience from band-wise short-time spectral flux.

    Each band's flux is expressed relative to the band's mean level so
    that bands contribute comparably; the bands are then averaged into one
    onset sequence and scored as ``variance / (mean + epsilon)``.

    Returns:
        Strength in [0, 1]; 0.0 for buffers with fewer than three frames
        or no spectral energy
    """
    magnitudes = stft_magnitudes(samples, frame_size, hop_size)
    if len(magnitudes) < 3:
        return 0.0

    onsets = []
    for band in split_bands(magnitudes, sample_rate, band_edges):
        if band.shape[1] == 0:
            continue
        level = float(np.mean(band.sum(axis=1)))
        if level <= 0.0:
            continue
        onsets.append(flux_sequence(band) / level)

    if not onsets:
        return 0.0

    onset = np.mean(onsets, axis=0)
    return clamp01(float(np.var(onset)) / (float(np.mean(onset)) + epsilon))


def tempo_score(bpm: float) -> float:
    """Groove proximity score, highest for 120-130 BPM."""
    if 120 <= bpm <= 130:
        return 1.0
    if 110 <= bpm <= 140:
        return 0.9
    if 90 <= bpm <= 160:
        return 0.8
    if 70 <= bpm <= 180:
        return 0.6
    return 0.3


def danceability(beat: float, bpm: float, tempo_weight: float = 0.6, beat_weight: float = 0.4) -> float:
    return clamp01(tempo_weight * tempo_score(bpm) + beat_weight * beat)
