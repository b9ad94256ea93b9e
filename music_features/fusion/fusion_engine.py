"""Fusion Engine

Combines the categorised ClassifierSignal and the DspFeatureSet into the
final FeatureRecord: discretizes continuous values into categorical labels
and computes the derived metrics (complexity, valence, arousal, overall
energy, confidence) and carries the excerpt's signal quality through.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from music_features import __version__
from music_features.analysis.math_utils import clamp, clamp01
from music_features.models.enums import EnergyClass, MoodClass, StrengthClass, TempoClass
from music_features.models.features import DspFeatureSet
from music_features.models.results import ClassifierSignal, FeatureRecord


logger = logging.getLogger(__name__)


def categorize_tempo(bpm: float) -> TempoClass:
    if bpm < 60:
        return TempoClass.VERY_SLOW
    if bpm < 80:
        return TempoClass.SLOW
    if bpm < 120:
        return TempoClass.MODERATE
    if bpm < 140:
        return TempoClass.FAST
    return TempoClass.VERY_FAST


def categorize_strength(value: float) -> StrengthClass:
    """Three-level scale used for beat strength and vocal intensity."""
    if value < 0.3:
        return StrengthClass.SOFT
    if value < 0.7:
        return StrengthClass.MEDIUM
    return StrengthClass.STRONG


def categorize_energy(energy: float) -> EnergyClass:
    if energy < 0.25:
        return EnergyClass.LOW
    if energy < 0.5:
        return EnergyClass.MEDIUM
    if energy < 0.75:
        return EnergyClass.HIGH
    return EnergyClass.VERY_HIGH


def categorize_mood(mood_score: float) -> MoodClass:
    if mood_score < 0.2:
        return MoodClass.SAD
    if mood_score < 0.4:
        return MoodClass.MELANCHOLY
    if mood_score < 0.6:
        return MoodClass.NEUTRAL
    if mood_score < 0.8:
        return MoodClass.HAPPY
    return MoodClass.VERY_HAPPY


def complexity(centroid_hz: float, rolloff_hz: float, zero_crossing_rate: float) -> float:
    return clamp01((centroid_hz / 8000.0 + rolloff_hz / 8000.0 + zero_crossing_rate) / 3.0)


def overall_energy(classifier_energy: float, dsp_energy: float) -> float:
    return clamp01((classifier_energy + dsp_energy) / 2.0)


def valence(mood_score: float, overall: float) -> float:
    return clamp01((mood_score + 0.5 * overall) / 1.5)


def arousal(classifier_energy: float, tempo_bpm: float, overall: float) -> float:
    return clamp01((classifier_energy + tempo_bpm / 200.0 + overall) / 3.0)


def dsp_confidence(dsp: DspFeatureSet) -> float:
    return clamp01((dsp.beat_strength + dsp.energy + dsp.brightness) / 3.0)


def combined_confidence(classifier_confidence: float, dsp: DspFeatureSet) -> float:
    return clamp01((classifier_confidence + dsp_confidence(dsp)) / 2.0)


class FusionEngine:
    """Builds FeatureRecords from classifier signals and DSP features.

    The metric helpers above are pure functions; this class only wires
    them together and stamps the record metadata.

    Attributes:
        min_bpm: Lower tempo clamp
        max_bpm: Upper tempo clamp
        version: Analyzer version written into every record
    """

    def __init__(self, min_bpm: float = 60.0, max_bpm: float = 200.0, version: str = __version__):
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.version = version

    def fuse(
        self,
        signal: ClassifierSignal,
        dsp: DspFeatureSet,
        analyzed_at: Optional[datetime] = None,
    ) -> FeatureRecord:
        """Fuse one excerpt's signals into its FeatureRecord.

        Args:
            signal: Categorised classifier (or heuristic) signal
            dsp: DSP features of the same excerpt
            analyzed_at: Timestamp to record, defaults to now (UTC)

        Returns:
            Immutable FeatureRecord
        """
        tempo_bpm = clamp(dsp.tempo_bpm, self.min_bpm, self.max_bpm)
        signal_energy = clamp01(dsp.energy)
        overall = overall_energy(signal.energy, signal_energy)

        record = FeatureRecord(
            tempo=categorize_tempo(tempo_bpm).value,
            beat=categorize_strength(dsp.beat_strength).value,
            energy=categorize_energy(signal_energy).value,
            mood=categorize_mood(signal.mood_score).value,
            vocals=categorize_strength(signal.vocal_intensity).value if signal.has_vocals else None,
            instruments=signal.instruments,
            has_vocals=signal.has_vocals,
            genre=signal.genre,
            mood_tags=signal.mood_tags,
            signal_source=signal.source.value,
            tempo_bpm=tempo_bpm,
            beat_strength=clamp01(dsp.beat_strength),
            signal_energy=signal_energy,
            brightness=clamp01(dsp.brightness),
            danceability=clamp01(dsp.danceability),
            spectral_centroid=dsp.spectral_centroid_hz,
            spectral_rolloff=dsp.spectral_rolloff_hz,
            zero_crossing_rate=dsp.zero_crossing_rate,
            spectral_flux=dsp.spectral_flux,
            overall_energy=overall,
            intensity=signal_energy,
            complexity=complexity(dsp.spectral_centroid_hz, dsp.spectral_rolloff_hz, dsp.zero_crossing_rate),
            valence=valence(signal.mood_score, overall),
            arousal=arousal(signal.energy, tempo_bpm, overall),
            classifier_energy=clamp01(signal.energy),
            mood_score=clamp01(signal.mood_score),
            confidence=combined_confidence(signal.confidence, dsp),
            signal_quality=clamp01(dsp.confidence),
            analyzed_at=analyzed_at or datetime.now(timezone.utc),
            analyzer_version=self.version,
        )
        logger.debug(
            f"Fused record: tempo={record.tempo} ({record.tempo_bpm:.1f} BPM), genre={record.genre}, "
            f"mood={record.mood}, confidence={record.confidence:.2f}"
        )
        return record
