"""Signal provider interface"""

from abc import ABC, abstractmethod
from typing import Optional

from music_features.models.frames import SampleBuffer
from music_features.models.features import DspFeatureSet
from music_features.models.results import ClassifierSignal


class SignalProvider(ABC):
    """Produces a ClassifierSignal for one excerpt"""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this provider can currently produce signals"""
        pass

    @abstractmethod
    def provide(self, buffer: SampleBuffer, dsp: DspFeatureSet) -> Optional[ClassifierSignal]:
        """Produce a signal for the excerpt

        Args:
            buffer: Excerpt samples
            dsp: DSP features already computed for the excerpt

        Returns:
            ClassifierSignal, or None if this provider could not produce one
        """
        pass
