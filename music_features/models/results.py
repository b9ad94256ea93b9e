"""Data models for classifier signals and final feature records"""

import json
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from music_features.models.enums import SignalSource


UNKNOWN_INSTRUMENT = "Unknown"
NEUTRAL_MOOD = "Neutral"


@dataclass(frozen=True)
class ClassifierSignal:
    """Categorised instrument/vocal/genre/mood/energy signals

    Produced either from the classifier probability vector or from the
    DSP fallback heuristics; both sources fill every field.

    Attributes:
        instruments: Detected instruments, highest score first, never empty
        has_vocals: Whether vocal content was detected
        genre: Single best genre label
        mood_tags: Mood descriptors, never empty
        energy: Energy evidence [0, 1]
        confidence: Trust in this signal [0, 1]
        mood_score: Scalar mood from sad (0) to very happy (1)
        vocal_intensity: Strength of the vocal evidence [0, 1]
        source: Which provider produced the signal
    """
    instruments: Tuple[str, ...]
    has_vocals: bool
    genre: str
    mood_tags: Tuple[str, ...]
    energy: float
    confidence: float
    mood_score: float = 0.5
    vocal_intensity: float = 0.0
    source: SignalSource = SignalSource.CLASSIFIER

    def __post_init__(self):
        """Apply sentinels for empty label lists and validate ranges"""
        if not self.instruments:
            object.__setattr__(self, "instruments", (UNKNOWN_INSTRUMENT,))
        if not self.mood_tags:
            object.__setattr__(self, "mood_tags", (NEUTRAL_MOOD,))
        object.__setattr__(self, "instruments", tuple(self.instruments))
        object.__setattr__(self, "mood_tags", tuple(self.mood_tags))
        object.__setattr__(self, "has_vocals", bool(self.has_vocals))
        assert 0.0 <= self.energy <= 1.0, "Energy must be in [0, 1]"
        assert 0.0 <= self.confidence <= 1.0, "Confidence must be in [0, 1]"
        assert 0.0 <= self.mood_score <= 1.0, "Mood score must be in [0, 1]"
        assert 0.0 <= self.vocal_intensity <= 1.0, "Vocal intensity must be in [0, 1]"


_UNIT_FIELDS = (
    "beat_strength", "signal_energy", "brightness", "danceability",
    "overall_energy", "intensity", "complexity", "valence", "arousal",
    "classifier_energy", "mood_score", "confidence", "signal_quality",
)
_FLOAT_FIELDS = _UNIT_FIELDS + (
    "tempo_bpm", "spectral_centroid", "spectral_rolloff", "zero_crossing_rate", "spectral_flux",
)


@dataclass(frozen=True)
class FeatureRecord:
    """Final descriptor record for one audio excerpt

    Categorical labels are stored as plain strings so the record serializes
    without custom encoders.
    """
    # Categorical labels
    tempo: str
    beat: str
    energy: str
    mood: str
    vocals: Optional[str]

    # Label signals
    instruments: Tuple[str, ...]
    has_vocals: bool
    genre: str
    mood_tags: Tuple[str, ...]
    signal_source: str

    # Continuous metrics
    tempo_bpm: float
    beat_strength: float
    signal_energy: float
    brightness: float
    danceability: float
    spectral_centroid: float
    spectral_rolloff: float
    zero_crossing_rate: float
    spectral_flux: float
    overall_energy: float
    intensity: float
    complexity: float
    valence: float
    arousal: float
    classifier_energy: float
    mood_score: float
    confidence: float
    signal_quality: float

    # Metadata
    analyzed_at: datetime = field(default_factory=datetime.now)
    analyzer_version: str = "1.0.0"

    def __post_init__(self):
        """Validate record invariants"""
        object.__setattr__(self, "instruments", tuple(self.instruments) or (UNKNOWN_INSTRUMENT,))
        object.__setattr__(self, "mood_tags", tuple(self.mood_tags) or (NEUTRAL_MOOD,))
        object.__setattr__(self, "has_vocals", bool(self.has_vocals))
        # numpy scalars do not serialize to JSON
        for name in _FLOAT_FIELDS:
            object.__setattr__(self, name, float(getattr(self, name)))
        assert 60.0 <= self.tempo_bpm <= 200.0, "Tempo must be in [60, 200] BPM"
        for name in _UNIT_FIELDS:
            value = getattr(self, name)
            assert 0.0 <= value <= 1.0, f"{name} must be in [0, 1]"
        assert self.vocals is None or self.has_vocals, "Vocal class requires detected vocals"

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view suitable for JSON or DataFrame rows."""
        data = asdict(self)
        data["instruments"] = list(self.instruments)
        data["mood_tags"] = list(self.mood_tags)
        data["analyzed_at"] = self.analyzed_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureRecord":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values["instruments"] = tuple(values.get("instruments", ()))
        values["mood_tags"] = tuple(values.get("mood_tags", ()))
        if isinstance(values.get("analyzed_at"), str):
            values["analyzed_at"] = datetime.fromisoformat(values["analyzed_at"])
        return cls(**values)

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text: str) -> "FeatureRecord":
        return cls.from_dict(json.loads(text))
