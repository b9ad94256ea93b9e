"""Unit tests for batch statistics"""

from datetime import datetime, timezone

import pytest

from music_features.fusion.fusion_engine import FusionEngine
from music_features.models.features import DspFeatureSet
from music_features.models.results import ClassifierSignal
from music_features.pipeline.stats import AnalysisStats


def make_record(genre="Rock music", instruments=("Guitar",), mood_tags=("Happy music",)):
    signal = ClassifierSignal(
        instruments=instruments, has_vocals=False, genre=genre, mood_tags=mood_tags,
        energy=0.5, confidence=0.5,
    )
    dsp = DspFeatureSet(
        tempo_bpm=120.0, beat_strength=0.5, energy=0.5, spectral_centroid_hz=2000.0,
        spectral_rolloff_hz=4000.0, zero_crossing_rate=0.1, spectral_flux=1.0, danceability=0.5,
    )
    return FusionEngine().fuse(signal, dsp, analyzed_at=datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def stats():
    stats = AnalysisStats()
    stats.record(make_record(), 1.0)
    stats.record(make_record(genre="Jazz", instruments=("Piano", "Guitar")), 2.0)
    stats.record(None, 3.0)
    return stats


class TestAnalysisStats:
    """Tests for AnalysisStats"""

    def test_empty_summary(self):
        summary = AnalysisStats().summary()

        assert summary.total == 0
        assert summary.success_rate == 0.0
        assert summary.average_processing_time == 0.0

    def test_counts_and_rates(self, stats):
        summary = stats.summary()

        assert summary.total == 3
        assert summary.successful == 2
        assert summary.failed == 1
        assert summary.success_rate == pytest.approx(2 / 3)
        assert summary.failure_rate == pytest.approx(1 / 3)
        assert summary.total_processing_time == pytest.approx(6.0)
        assert summary.average_processing_time == pytest.approx(2.0)

    def test_distributions(self, stats):
        summary = stats.summary()

        assert summary.genre_distribution == {"Rock music": 1, "Jazz": 1}
        assert summary.instrument_distribution["Guitar"] == 2
        assert summary.instrument_distribution["Piano"] == 1
        assert summary.mood_distribution == {"Happy music": 2}

    def test_merge(self, stats):
        other = AnalysisStats()
        other.record(make_record(genre="Jazz"), 0.5)

        merged = stats.merge(other)

        assert merged is stats
        assert stats.total == 4
        assert stats.summary().genre_distribution["Jazz"] == 2

    def test_reset(self, stats):
        stats.reset()

        assert stats.total == 0
        assert stats.summary().genre_distribution == {}

    def test_summary_to_dict(self, stats):
        data = stats.summary().to_dict()

        assert data["successful"] == 2
        assert data["genre_distribution"]["Jazz"] == 1

    def test_distributions_frame(self, stats):
        frame = stats.distributions_frame()

        assert list(frame.columns) == ["category", "label", "count"]
        genres = frame[frame["category"] == "genre"]
        assert set(genres["label"]) == {"Rock music", "Jazz"}

    def test_empty_distributions_frame(self):
        frame = AnalysisStats().distributions_frame()

        assert frame.empty
        assert list(frame.columns) == ["category", "label", "count"]
