"""Analysis modules: preprocessing, spectral and rhythm engines, classifier interpretation"""

from music_features.analysis.signal_processor import SignalProcessor
from music_features.analysis.interpreter import ClassifierOutputInterpreter, InterpretationError
from music_features.analysis.fallback import HeuristicSignalProvider

__all__ = [
    "SignalProcessor",
    "ClassifierOutputInterpreter",
    "InterpretationError",
    "HeuristicSignalProvider",
]
