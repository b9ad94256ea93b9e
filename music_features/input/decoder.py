"""Audio Decoder

Decodes an excerpt of an audio file into a 16 kHz mono SampleBuffer using
PyAV for container/codec handling and librosa for resampling. When a file
cannot be decoded, a deterministic buffer is synthesized from its raw bytes
so the analysis can still produce a record.
"""

import logging
from pathlib import Path
from typing import List, Optional

import av
import librosa
import numpy as np

from music_features.analysis.preprocessing import pcm16_bytes_to_float, quantize_pcm16
from music_features.config.config_loader import Config, config as default_config
from music_features.models.frames import SampleBuffer


logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """Exception raised when an audio file cannot be decoded"""
    pass


def _frame_to_mono(frame) -> np.ndarray:
    """Convert a decoded PyAV audio frame to mono float32 in [-1, 1]."""
    data = frame.to_ndarray()
    if np.issubdtype(data.dtype, np.unsignedinteger):
        half = float(np.iinfo(data.dtype).max + 1) / 2.0
        data = (data.astype(np.float32) - half) / half
    elif np.issubdtype(data.dtype, np.integer):
        data = data.astype(np.float32) / float(np.iinfo(data.dtype).max + 1)

    channels = len(frame.layout.channels)
    if data.ndim == 2 and data.shape[0] == 1 and channels > 1:
        # Packed formats interleave channels in a single plane
        data = data.reshape(-1, channels).T
    elif data.ndim == 2 and data.shape[0] != channels and data.shape[-1] == channels:
        data = data.T
    if data.ndim == 2:
        data = data.mean(axis=0)
    return np.asarray(data, dtype=np.float32)


class AudioDecoder:
    """Decodes audio excerpts for analysis.

    Attributes:
        sample_rate: Output sample rate in Hz
        offset: Default excerpt start in seconds
        duration: Default excerpt length in seconds
        header_bytes: Bytes skipped when synthesizing from raw file bytes
    """

    def __init__(self, cfg: Config = None):
        cfg = cfg or default_config
        self.sample_rate = cfg.get('audio.sample_rate', 16000)
        self.offset = cfg.get('audio.excerpt_offset', 0.0)
        self.duration = cfg.get('audio.excerpt_duration', 10.0)
        self.header_bytes = cfg.get('audio.wav_header_bytes', 44)

    def load(self, path, offset: Optional[float] = None, duration: Optional[float] = None) -> SampleBuffer:
        """Decode an excerpt, falling back to byte-wise synthesis.

        Raises:
            DecodeError: Only if the file itself cannot be read
        """
        try:
            return self.decode(path, offset, duration)
        except DecodeError as e:
            logger.warning(f"Decoding failed for {path}: {e}; using synthetic fallback buffer")
            return self.synthesize(path, offset, duration)

    def decode(self, path, offset: Optional[float] = None, duration: Optional[float] = None) -> SampleBuffer:
        """Decode an excerpt to 16 kHz mono, 16-bit PCM levels.

        Args:
            path: Audio file path
            offset: Excerpt start in seconds (restarts at 0 past the end)
            duration: Excerpt length in seconds

        Returns:
            SampleBuffer for the excerpt

        Raises:
            DecodeError: If the file is missing, has no audio stream, or
                the codec fails
        """
        path = Path(path)
        offset = self.offset if offset is None else offset
        duration = self.duration if duration is None else duration

        if not path.exists():
            raise DecodeError(f"Audio file not found: {path}")

        try:
            container = av.open(str(path))
        except Exception as e:
            logger.error(f"Failed to open {path}: {e}")
            raise DecodeError(f"Failed to open {path}: {e}")

        try:
            chunks, native_rate = self._decode_stream(container, offset + duration)
        except DecodeError:
            raise
        except Exception as e:
            logger.error(f"Failed to decode {path}: {e}")
            raise DecodeError(f"Failed to decode {path}: {e}")
        finally:
            container.close()

        if not chunks:
            raise DecodeError(f"No audio samples decoded from {path}")

        samples = self._excerpt(np.concatenate(chunks), native_rate, offset, duration)
        if native_rate != self.sample_rate:
            samples = librosa.resample(samples, orig_sr=native_rate, target_sr=self.sample_rate)

        logger.debug(f"Decoded {len(samples)} samples from {path} (native rate {native_rate} Hz)")
        return SampleBuffer(samples=quantize_pcm16(samples), sample_rate=self.sample_rate, source=str(path))

    def _decode_stream(self, container, seconds_needed: float):
        audio_stream = next((s for s in container.streams if s.type == 'audio'), None)
        if audio_stream is None:
            raise DecodeError("No audio stream in container")

        chunks: List[np.ndarray] = []
        native_rate = None
        collected = 0
        for packet in container.demux(audio_stream):
            for frame in packet.decode():
                if native_rate is None:
                    native_rate = frame.sample_rate
                mono = _frame_to_mono(frame)
                chunks.append(mono)
                collected += len(mono)
            if native_rate and collected >= seconds_needed * native_rate:
                break
        return chunks, native_rate

    @staticmethod
    def _excerpt(samples: np.ndarray, rate: int, offset: float, duration: float) -> np.ndarray:
        start = int(offset * rate)
        if start >= len(samples):
            logger.debug(f"Offset {offset}s beyond end of track, starting at 0")
            start = 0
        return samples[start:start + int(duration * rate)]

    def synthesize(self, path, offset: Optional[float] = None, duration: Optional[float] = None) -> SampleBuffer:
        """Deterministic buffer from the file's raw bytes read as 16-bit PCM.

        Raises:
            DecodeError: If the file cannot be read
        """
        offset = self.offset if offset is None else offset
        duration = self.duration if duration is None else duration
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise DecodeError(f"Cannot read {path}: {e}")

        samples = self._excerpt(pcm16_bytes_to_float(data, self.header_bytes), self.sample_rate, offset, duration)
        return SampleBuffer(samples=samples, sample_rate=self.sample_rate, source=str(path), synthetic=True)
