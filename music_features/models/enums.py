"""Enumerations for categorical descriptors and signal provenance"""

from enum import Enum


class SignalSource(Enum):
    """Origin of a ClassifierSignal"""
    CLASSIFIER = "classifier"
    HEURISTIC = "heuristic"


class TempoMethod(Enum):
    """Which stage of the tempo estimator produced the estimate"""
    AUTOCORRELATION = "autocorrelation"
    ENERGY_ENVELOPE = "energy_envelope"
    DEFAULT = "default"


class WindowType(Enum):
    """Analysis window functions"""
    RECTANGULAR = "rectangular"
    HANN = "hann"
    HAMMING = "hamming"
    BLACKMAN = "blackman"


class TempoClass(Enum):
    VERY_SLOW = "Very Slow"
    SLOW = "Slow"
    MODERATE = "Moderate"
    FAST = "Fast"
    VERY_FAST = "Very Fast"


class StrengthClass(Enum):
    """Three-level scale shared by beat strength and vocal intensity"""
    SOFT = "Soft"
    MEDIUM = "Medium"
    STRONG = "Strong"


class EnergyClass(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class MoodClass(Enum):
    SAD = "Sad"
    MELANCHOLY = "Melancholy"
    NEUTRAL = "Neutral"
    HAPPY = "Happy"
    VERY_HAPPY = "Very Happy"
