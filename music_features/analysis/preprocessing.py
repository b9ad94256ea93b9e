"""Preprocessing of raw sample buffers

Windowing and power-of-two padding ahead of the FFT, plus the PCM helpers
used by the decoder fallback.
"""

import logging
from typing import Optional

import numpy as np

from music_features.models.enums import WindowType


logger = logging.getLogger(__name__)

MIN_SPECTRAL_SAMPLES = 64


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def pad_to_power_of_two(samples: np.ndarray, length: int) -> np.ndarray:
    """Truncate or zero-pad ``samples`` to the power of two >= ``length``.

    Args:
        samples: Input samples
        length: Requested length

    Returns:
        New float64 array whose length is a power of two
    """
    target = next_power_of_two(length)
    padded = np.zeros(target, dtype=np.float64)
    count = min(target, len(samples))
    padded[:count] = samples[:count]
    return padded


def hann_window(n: int) -> np.ndarray:
    """Hann window ``w[i] = 0.5 * (1 - cos(2*pi*i/(N-1)))``."""
    if n <= 1:
        return np.ones(max(n, 0))
    i = np.arange(n)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * i / (n - 1)))


def make_window(window: WindowType, n: int) -> np.ndarray:
    """Window coefficients of the requested type and length."""
    if window is WindowType.HANN:
        return hann_window(n)
    if n <= 1 or window is WindowType.RECTANGULAR:
        return np.ones(max(n, 0))

    phase = 2.0 * np.pi * np.arange(n) / (n - 1)
    if window is WindowType.HAMMING:
        return 0.54 - 0.46 * np.cos(phase)
    if window is WindowType.BLACKMAN:
        return 0.42 - 0.5 * np.cos(phase) + 0.08 * np.cos(2.0 * phase)
    raise ValueError(f"Unsupported window type: {window}")


def prepare_window(
    samples: np.ndarray,
    window_length: int = 1024,
    window: WindowType = WindowType.HANN,
    min_samples: int = MIN_SPECTRAL_SAMPLES,
) -> Optional[np.ndarray]:
    """Produce a windowed, power-of-two length buffer for spectral analysis.

    The first ``window_length`` samples are windowed over their actual
    length and then zero-padded, so the taper never covers padding.

    Args:
        samples: Raw samples
        window_length: Target analysis-window length
        window: Window function to apply
        min_samples: Buffers shorter than this are degenerate

    Returns:
        Windowed buffer, or None when the input is too short for spectral
        analysis (callers substitute default descriptors)
    """
    segment = np.asarray(samples[:window_length], dtype=np.float64)
    if len(segment) < min_samples:
        logger.debug(f"Buffer of {len(segment)} samples too short for spectral analysis")
        return None

    windowed = segment * make_window(window, len(segment))
    return pad_to_power_of_two(windowed, len(windowed))


def normalize_peak(samples: np.ndarray) -> np.ndarray:
    """Scale so the largest absolute sample is 1.0 (silence is returned as-is)."""
    peak = float(np.max(np.abs(samples))) if len(samples) else 0.0
    if peak == 0.0:
        return np.asarray(samples, dtype=np.float32)
    return (np.asarray(samples, dtype=np.float32) / peak).astype(np.float32)


def rms(samples: np.ndarray) -> float:
    """Root-mean-square level, 0.0 for an empty buffer."""
    if len(samples) == 0:
        return 0.0
    values = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(values * values)))


def pcm16_bytes_to_float(data: bytes, header_bytes: int = 44) -> np.ndarray:
    """Interpret raw bytes as little-endian 16-bit PCM normalised to [-1, 1).

    Args:
        data: Raw file bytes
        header_bytes: Leading bytes to skip (a canonical WAV header)

    Returns:
        Float32 samples; a trailing odd byte is ignored
    """
    payload = data[header_bytes:] if len(data) > header_bytes else b""
    usable = len(payload) - (len(payload) % 2)
    pcm = np.frombuffer(payload[:usable], dtype="<i2")
    return (pcm.astype(np.float32) / 32768.0).astype(np.float32)


def quantize_pcm16(samples: np.ndarray) -> np.ndarray:
    """Round float samples to 16-bit PCM levels, returned as float32."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 32767.0 / 32768.0)
    pcm = np.round(clipped * 32768.0).astype(np.int16)
    return (pcm.astype(np.float32) / 32768.0).astype(np.float32)
