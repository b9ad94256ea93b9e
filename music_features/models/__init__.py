"""Data models and interfaces"""

from music_features.models.frames import SampleBuffer
from music_features.models.features import SpectralFrame, Peak, TempoEstimate, DspFeatureSet
from music_features.models.results import ClassifierSignal, FeatureRecord
from music_features.models.options import AnalysisOptions
from music_features.models.enums import (
    SignalSource,
    TempoMethod,
    WindowType,
    TempoClass,
    StrengthClass,
    EnergyClass,
    MoodClass,
)
from music_features.models.interfaces import SignalProvider

__all__ = [
    # Buffers
    "SampleBuffer",
    # Features
    "SpectralFrame",
    "Peak",
    "TempoEstimate",
    "DspFeatureSet",
    # Results
    "ClassifierSignal",
    "FeatureRecord",
    "AnalysisOptions",
    # Enums
    "SignalSource",
    "TempoMethod",
    "WindowType",
    "TempoClass",
    "StrengthClass",
    "EnergyClass",
    "MoodClass",
    # Interfaces
    "SignalProvider",
]
