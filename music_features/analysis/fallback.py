"""Fallback Heuristics

Derives a ClassifierSignal from DSP features alone. Used whenever the
pretrained classifier is disabled, failed to run, or produced output that
could not be interpreted, so genre, mood and instrument fields are always
populated.
"""

import logging
from typing import List, Optional

from music_features.analysis.math_utils import clamp01
from music_features.config.config_loader import Config, config as default_config
from music_features.models.enums import SignalSource
from music_features.models.features import DspFeatureSet
from music_features.models.frames import SampleBuffer
from music_features.models.interfaces import SignalProvider
from music_features.models.results import ClassifierSignal


logger = logging.getLogger(__name__)

DEFAULT_GENRE = "Pop music"


def infer_instruments(dsp: DspFeatureSet, silence_energy: float = 0.01, limit: int = 5) -> List[str]:
    """Instrument guesses from spectral centroid band and zero-crossing rate."""
    if dsp.energy < silence_energy:
        return []

    centroid = dsp.spectral_centroid_hz
    if centroid > 3000:
        instruments = ["Piano", "Guitar", "Violin"]
    elif centroid >= 1500:
        instruments = ["Guitar", "Bass"]
    else:
        instruments = ["Bass", "Drums"]

    if dsp.zero_crossing_rate > 0.1 and "Drums" not in instruments:
        instruments.append("Drums")
    return instruments[:limit]


def infer_vocals(dsp: DspFeatureSet) -> bool:
    """Vocals are assumed when ZCR and energy are both in a moderate band."""
    return bool(0.05 <= dsp.zero_crossing_rate <= 0.15 and 0.1 <= dsp.energy <= 0.8)


def infer_genre(dsp: DspFeatureSet) -> str:
    """Decision table over tempo, energy and spectral centroid."""
    tempo = dsp.tempo_bpm
    energy = dsp.energy
    centroid = dsp.spectral_centroid_hz

    if tempo > 140 and energy > 0.8:
        return "Electronic dance music"
    if tempo < 80 and energy < 0.4:
        return "Classical music"
    if tempo > 120 and energy > 0.6 and centroid > 3000:
        return "Rock music"
    if 85 <= tempo <= 105 and energy >= 0.4 and centroid < 1500:
        return "Hip hop music"
    if energy < 0.3 and centroid < 1500:
        return "Ambient music"
    if tempo < 110 and 0.3 <= energy <= 0.6 and centroid < 2500:
        return "Jazz"
    return DEFAULT_GENRE


def infer_mood_tags(dsp: DspFeatureSet) -> List[str]:
    """Mood tags from energy and tempo bands."""
    tempo = dsp.tempo_bpm
    energy = dsp.energy

    if energy > 0.7 or tempo > 140:
        tags = ["energetic"]
        if tempo > 120:
            tags.append("upbeat")
        return tags
    if energy < 0.3 and tempo < 90:
        return ["calm", "relaxing"]

    tags = ["neutral"]
    if tempo > 120 and energy >= 0.5:
        tags.append("upbeat")
    return tags


def mood_score_for(tags: List[str]) -> float:
    if "energetic" in tags:
        return 0.8 if "upbeat" in tags else 0.7
    if "calm" in tags:
        return 0.6
    if "upbeat" in tags:
        return 0.65
    return 0.5


class HeuristicSignalProvider(SignalProvider):
    """Signal provider backed only by DSP features; always available."""

    def __init__(self, cfg: Config = None, max_instruments: Optional[int] = None):
        cfg = cfg or default_config
        self.confidence_scale = cfg.get('fallback.confidence_scale', 0.5)
        self.silence_energy = cfg.get('fallback.silence_energy', 0.01)
        self.max_instruments = max_instruments or cfg.get('classifier.max_instruments', 5)

    def is_available(self) -> bool:
        return True

    def provide(self, buffer: Optional[SampleBuffer], dsp: DspFeatureSet) -> ClassifierSignal:
        return self.infer(dsp)

    def infer(self, dsp: DspFeatureSet) -> ClassifierSignal:
        """Build a ClassifierSignal from DSP features.

        Args:
            dsp: Features of the excerpt

        Returns:
            ClassifierSignal with source HEURISTIC
        """
        has_vocals = infer_vocals(dsp)
        mood_tags = infer_mood_tags(dsp)
        signal = ClassifierSignal(
            instruments=tuple(infer_instruments(dsp, self.silence_energy, self.max_instruments)),
            has_vocals=has_vocals,
            genre=infer_genre(dsp),
            mood_tags=tuple(mood_tags),
            energy=clamp01(dsp.energy),
            confidence=clamp01(self.confidence_scale * (dsp.beat_strength + dsp.energy + dsp.brightness) / 3.0),
            mood_score=mood_score_for(mood_tags),
            vocal_intensity=clamp01(dsp.energy) if has_vocals else 0.0,
            source=SignalSource.HEURISTIC,
        )
        logger.debug(f"Heuristic signal: genre={signal.genre}, moods={list(signal.mood_tags)}")
        return signal
