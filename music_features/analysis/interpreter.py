"""Classifier Output Interpreter

Turns the classifier's fixed-length probability vector into a
ClassifierSignal: instruments, vocals, genre, mood tags, energy and
confidence.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from music_features.analysis.math_utils import clamp01, safe_mean
from music_features.analysis.taxonomy import LabelCategory, categorize, display_name, mood_value
from music_features.config.config_loader import Config, config as default_config
from music_features.models.enums import SignalSource
from music_features.models.results import ClassifierSignal


logger = logging.getLogger(__name__)


class InterpretationError(Exception):
    """Exception raised when a probability vector cannot be interpreted"""
    pass


class ClassifierOutputInterpreter:
    """Maps label probabilities onto categorised music signals.

    Attributes:
        top_k: Number of highest-scoring labels considered
        confidence_floor: Minimum score for a top-K label; relaxed to 0.0
                          when no label clears it
        thresholds: Per-category acceptance thresholds
        max_instruments: Cap on reported instruments
        max_mood_tags: Cap on reported mood tags
        energy_prior: Starting value of the running energy average
        confidence_top_n: Number of top scores averaged into the confidence
    """

    def __init__(self, cfg: Config = None):
        cfg = cfg or default_config
        self.top_k = cfg.get('classifier.top_k', 15)
        self.confidence_floor = cfg.get('classifier.confidence_floor', 0.05)
        self.thresholds = {
            LabelCategory.INSTRUMENT: cfg.get('classifier.thresholds.instrument', 0.15),
            LabelCategory.VOCAL: cfg.get('classifier.thresholds.vocal', 0.2),
            LabelCategory.GENRE: cfg.get('classifier.thresholds.genre', 0.05),
            LabelCategory.MOOD: cfg.get('classifier.thresholds.mood', 0.15),
            LabelCategory.ENERGY: cfg.get('classifier.thresholds.energy', 0.1),
        }
        self.max_instruments = cfg.get('classifier.max_instruments', 5)
        self.max_mood_tags = cfg.get('classifier.max_mood_tags', 3)
        self.energy_prior = cfg.get('classifier.energy_prior', 0.5)
        self.confidence_top_n = cfg.get('classifier.confidence_top_n', 5)

    def top_predictions(self, scores: np.ndarray, labels: Sequence[str]) -> List[Tuple[str, float]]:
        """Top-K (label, score) pairs, highest first.

        Labels below the confidence floor are dropped; if that leaves
        nothing, the floor is relaxed to 0.0 so some signal is returned.
        """
        order = np.argsort(-scores, kind="stable")[:self.top_k]
        ranked = [(labels[i], float(scores[i])) for i in order]
        above_floor = [(label, score) for label, score in ranked if score >= self.confidence_floor]
        if above_floor:
            return above_floor

        logger.debug(f"No label above floor {self.confidence_floor}, retrying with floor 0.0")
        return ranked

    def interpret(self, scores: np.ndarray, labels: Sequence[str]) -> ClassifierSignal:
        """Build a ClassifierSignal from a probability vector.

        Args:
            scores: One score in [0, 1] per label
            labels: Label table aligned with ``scores``

        Returns:
            ClassifierSignal with source CLASSIFIER

        Raises:
            InterpretationError: If the vector is not 1-D, does not match the
                label table, or contains non-finite values
        """
        scores = self._validate(scores, labels)
        predictions = self.top_predictions(scores, labels)

        instruments: List[str] = []
        mood_tags: List[str] = []
        genre = None
        has_vocals = False
        vocal_scores: List[float] = []
        energy = None
        mood_weight = 0.0
        mood_total = 0.0

        for label, score in predictions:
            categories = categorize(label)
            name = display_name(label)

            if LabelCategory.INSTRUMENT in categories and score >= self.thresholds[LabelCategory.INSTRUMENT]:
                if name not in instruments and len(instruments) < self.max_instruments:
                    instruments.append(name)

            if LabelCategory.VOCAL in categories and score >= self.thresholds[LabelCategory.VOCAL]:
                has_vocals = True
                vocal_scores.append(score)

            if genre is None and LabelCategory.GENRE in categories and score >= self.thresholds[LabelCategory.GENRE]:
                genre = name

            if LabelCategory.MOOD in categories and score >= self.thresholds[LabelCategory.MOOD]:
                if name not in mood_tags and len(mood_tags) < self.max_mood_tags:
                    mood_tags.append(name)
                mood_total += mood_value(label) * score
                mood_weight += score

            if LabelCategory.ENERGY in categories and score >= self.thresholds[LabelCategory.ENERGY]:
                previous = self.energy_prior if energy is None else energy
                energy = (previous + score) / 2.0

        top_scores = [score for _, score in predictions[:self.confidence_top_n]]
        signal = ClassifierSignal(
            instruments=tuple(instruments),
            has_vocals=has_vocals,
            genre=genre or "Unknown",
            mood_tags=tuple(mood_tags),
            energy=clamp01(self.energy_prior if energy is None else energy),
            confidence=clamp01(safe_mean(top_scores)),
            mood_score=clamp01(mood_total / mood_weight) if mood_weight > 0 else 0.5,
            vocal_intensity=clamp01(safe_mean(vocal_scores)),
            source=SignalSource.CLASSIFIER,
        )
        logger.debug(
            f"Interpreted classifier output: genre={signal.genre}, "
            f"instruments={list(signal.instruments)}, moods={list(signal.mood_tags)}"
        )
        return signal

    @staticmethod
    def _validate(scores, labels: Sequence[str]) -> np.ndarray:
        try:
            scores = np.asarray(scores, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InterpretationError(f"Scores are not numeric: {e}")

        if scores.ndim != 1:
            raise InterpretationError(f"Expected a 1-D score vector, got shape {scores.shape}")
        if len(scores) != len(labels):
            raise InterpretationError(
                f"Score vector length {len(scores)} does not match {len(labels)} labels"
            )
        if len(scores) == 0:
            raise InterpretationError("Empty score vector")
        if not np.all(np.isfinite(scores)):
            raise InterpretationError("Score vector contains non-finite values")
        return np.clip(scores, 0.0, 1.0)
