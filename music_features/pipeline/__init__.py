"""Single-excerpt and batch analysis"""

from music_features.pipeline.analyzer import MusicFeatureAnalyzer
from music_features.pipeline.batch import BatchAnalyzer, BatchResult, ExtractionProgress
from music_features.pipeline.stats import AnalysisStats, StatsSummary

__all__ = [
    "MusicFeatureAnalyzer",
    "BatchAnalyzer",
    "BatchResult",
    "ExtractionProgress",
    "AnalysisStats",
    "StatsSummary",
]
