"""Data models for raw audio buffers"""

from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Mono PCM excerpt handed to a single analysis call

    Attributes:
        samples: Float32 amplitudes in [-1, 1] (read-only array)
        sample_rate: Sample rate in Hz (16000 throughout the pipeline)
        source: Identifier of the excerpt, usually the file path
        synthetic: True when the samples were synthesized from raw file
                   bytes because decoding failed
    """
    samples: np.ndarray
    sample_rate: int = 16000
    source: str = ""
    synthetic: bool = False

    def __post_init__(self):
        """Coerce samples to a read-only float32 vector and validate."""
        assert self.sample_rate > 0, "Sample rate must be positive"
        samples = np.asarray(self.samples, dtype=np.float32)
        assert samples.ndim == 1, "Samples must be a 1-D array"
        samples = np.nan_to_num(samples, nan=0.0, posinf=1.0, neginf=-1.0)
        samples = np.clip(samples, -1.0, 1.0)
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Length of the excerpt in seconds"""
        return len(self.samples) / self.sample_rate

    def head(self, seconds: float) -> np.ndarray:
        """First ``seconds`` of audio as a view."""
        return self.samples[:int(seconds * self.sample_rate)]
