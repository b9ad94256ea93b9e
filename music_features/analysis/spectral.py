"""Spectral Engine

FFT implementations and the spectral descriptors derived from them:
centroid, rolloff, zero-crossing rate and spectral flux. The recursive FFT
is the reference implementation; ``fft_iterative`` computes the same
transform in place over a batch of frames and is used for short-time
analysis where hundreds of frames are transformed per excerpt.
"""

import logging
from typing import List

import numpy as np

from music_features.analysis.preprocessing import make_window, next_power_of_two
from music_features.models.enums import WindowType
from music_features.models.features import SpectralFrame


logger = logging.getLogger(__name__)

DEFAULT_CENTROID_HZ = 2000.0
DEFAULT_ROLLOFF_HZ = 4000.0


def fft(signal: np.ndarray) -> np.ndarray:
    """Recursive radix-2 Cooley-Tukey FFT.

    The input is zero-padded to a power of two once, up front.

    Args:
        signal: Real or complex samples of any length

    Returns:
        Complex spectrum with a power-of-two number of bins
    """
    values = np.asarray(signal)
    buffer = np.zeros(next_power_of_two(len(values)), dtype=np.complex128)
    buffer[:len(values)] = values
    return _fft_recursive(buffer)


def _fft_recursive(x: np.ndarray) -> np.ndarray:
    n = len(x)
    if n == 1:
        return np.array([complex(x[0])])

    even = _fft_recursive(x[0::2])
    odd = _fft_recursive(x[1::2])
    twiddled = np.exp(-2j * np.pi * np.arange(n // 2) / n) * odd
    return np.concatenate([even + twiddled, even - twiddled])


def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    index = np.arange(n)
    reversed_index = np.zeros(n, dtype=np.int64)
    for _ in range(bits):
        reversed_index = (reversed_index << 1) | (index & 1)
        index = index >> 1
    return reversed_index


def fft_iterative(frames: np.ndarray) -> np.ndarray:
    """Iterative in-place radix-2 FFT along the last axis.

    Args:
        frames: Array of shape (..., N); N is zero-padded to a power of two

    Returns:
        Complex array of shape (..., N') with N' the padded length
    """
    frames = np.asarray(frames)
    length = frames.shape[-1]
    n = next_power_of_two(length)
    data = np.zeros(frames.shape[:-1] + (n,), dtype=np.complex128)
    data[..., :length] = frames
    data = data[..., _bit_reverse_indices(n)]

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = data.reshape(data.shape[:-1] + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:] * twiddle
        data = np.concatenate([even + odd, even - odd], axis=-1).reshape(data.shape)
        size *= 2
    return data


def magnitude_spectrum(windowed: np.ndarray, sample_rate: int = 16000) -> SpectralFrame:
    """Magnitude of the first half of the FFT bins."""
    spectrum = fft(windowed)
    return SpectralFrame(magnitudes=np.abs(spectrum[:len(spectrum) // 2]), sample_rate=sample_rate)


def spectral_centroid(frame: SpectralFrame, default: float = DEFAULT_CENTROID_HZ) -> float:
    """Magnitude-weighted mean frequency in Hz.

    Returns ``default`` when the magnitude sum is zero.
    """
    total = float(np.sum(frame.magnitudes))
    if total <= 0.0 or frame.bin_count == 0:
        return default
    return float(np.sum(frame.frequencies() * frame.magnitudes) / total)


def spectral_rolloff(
    frame: SpectralFrame,
    fraction: float = 0.85,
    default: float = DEFAULT_ROLLOFF_HZ,
) -> float:
    """Lowest bin frequency below which ``fraction`` of the magnitude lies.

    Returns ``default`` for an all-zero spectrum.
    """
    if frame.bin_count == 0:
        return default
    cumulative = np.cumsum(frame.magnitudes)
    total = float(cumulative[-1])
    if total <= 0.0:
        return default

    # cumulative[-1] == total, so the search always lands inside the spectrum
    index = int(np.searchsorted(cumulative, fraction * total, side="left"))
    index = min(index, frame.bin_count - 1)
    return float(frame.frequencies()[index])


def zero_crossing_rate(samples: np.ndarray) -> float:
    """Fraction of adjacent sample pairs whose sign differs (0.0 below 2 samples)."""
    n = len(samples)
    if n < 2:
        return 0.0
    non_negative = np.asarray(samples) >= 0
    crossings = np.count_nonzero(non_negative[1:] != non_negative[:-1])
    return float(crossings / (n - 1))


def stft_magnitudes(
    samples: np.ndarray,
    frame_size: int = 1024,
    hop_size: int = 512,
    window: WindowType = WindowType.HANN,
) -> np.ndarray:
    """Short-time magnitude spectra of overlapping windowed frames.

    Args:
        samples: Raw samples
        frame_size: Frame length in samples
        hop_size: Distance between frame starts

    Returns:
        Array of shape (frames, bins); zero frames when the buffer is shorter
        than one frame
    """
    bins = next_power_of_two(frame_size) // 2
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) < frame_size:
        return np.zeros((0, bins))

    frames = np.lib.stride_tricks.sliding_window_view(samples, frame_size)[::hop_size]
    spectra = fft_iterative(frames * make_window(window, frame_size))
    return np.abs(spectra[:, :bins])


def flux_sequence(magnitude_frames: np.ndarray) -> np.ndarray:
    """Positive-only magnitude change between each pair of consecutive frames."""
    if len(magnitude_frames) < 2:
        return np.zeros(0)
    rises = np.diff(magnitude_frames, axis=0)
    return np.maximum(rises, 0.0).sum(axis=1)


def spectral_flux(magnitude_frames: np.ndarray) -> float:
    """Summed positive flux normalised by frame count minus one (0.0 below 2 frames)."""
    sequence = flux_sequence(magnitude_frames)
    if len(sequence) == 0:
        return 0.0
    return float(np.sum(sequence) / (len(magnitude_frames) - 1))


def split_bands(
    magnitude_frames: np.ndarray,
    sample_rate: int,
    edges=(250.0, 2000.0),
) -> List[np.ndarray]:
    """Split short-time spectra into contiguous frequency bands.

    Args:
        magnitude_frames: Array of shape (frames, bins)
        sample_rate: Sample rate of the source in Hz
        edges: Ascending band boundaries in Hz

    Returns:
        One (frames, band_bins) array per band, low to high
    """
    bins = magnitude_frames.shape[1]
    nyquist = sample_rate / 2.0
    cuts = [int(np.clip(round(edge / nyquist * bins), 0, bins)) for edge in edges]
    bounds = [0] + cuts + [bins]
    return [magnitude_frames[:, start:stop] for start, stop in zip(bounds[:-1], bounds[1:])]
