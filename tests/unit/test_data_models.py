"""Unit tests for data models"""

import json
from datetime import datetime, timezone

import numpy as np
import pytest

from music_features.config.config_loader import Config
from music_features.models import (
    AnalysisOptions,
    ClassifierSignal,
    DspFeatureSet,
    FeatureRecord,
    SampleBuffer,
    SignalSource,
    SpectralFrame,
    TempoEstimate,
    TempoMethod,
)


def make_record(**overrides):
    values = dict(
        tempo="Fast", beat="Medium", energy="High", mood="Happy", vocals="Strong",
        instruments=("Guitar", "Drum kit"), has_vocals=True, genre="Rock music",
        mood_tags=("Happy music",), signal_source="classifier",
        tempo_bpm=128.0, beat_strength=0.6, signal_energy=0.55, brightness=0.3,
        danceability=0.8, spectral_centroid=2400.0, spectral_rolloff=4800.0,
        zero_crossing_rate=0.12, spectral_flux=3.0, overall_energy=0.6,
        intensity=0.55, complexity=0.34, valence=0.63, arousal=0.58,
        classifier_energy=0.65, mood_score=0.7, confidence=0.61, signal_quality=0.75,
        analyzed_at=datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return FeatureRecord(**values)


class TestSampleBuffer:
    """Tests for SampleBuffer model"""

    def test_create_valid_buffer(self):
        buffer = SampleBuffer(samples=np.zeros(16000), sample_rate=16000, source="a.wav")

        assert len(buffer) == 16000
        assert buffer.duration == 1.0
        assert buffer.samples.dtype == np.float32
        assert buffer.synthetic is False

    def test_samples_are_read_only(self):
        buffer = SampleBuffer(samples=np.zeros(10))

        with pytest.raises(ValueError):
            buffer.samples[0] = 1.0

    def test_out_of_range_and_non_finite_samples_sanitized(self):
        buffer = SampleBuffer(samples=np.array([2.0, -3.0, np.nan, np.inf]))

        np.testing.assert_array_equal(buffer.samples, [1.0, -1.0, 0.0, 1.0])

    def test_head(self):
        buffer = SampleBuffer(samples=np.zeros(48000))

        assert len(buffer.head(1.0)) == 16000
        assert len(buffer.head(10.0)) == 48000

    def test_invalid_sample_rate(self):
        with pytest.raises(AssertionError):
            SampleBuffer(samples=np.zeros(10), sample_rate=0)

    def test_multichannel_rejected(self):
        with pytest.raises(AssertionError):
            SampleBuffer(samples=np.zeros((2, 10)))


class TestFeatureModels:
    """Tests for DSP feature models"""

    def test_spectral_frame(self):
        frame = SpectralFrame(magnitudes=np.ones(512), sample_rate=16000)

        assert frame.bin_count == 512
        assert frame.nyquist == 8000.0

    def test_tempo_estimate_range(self):
        assert TempoEstimate(bpm=120.0, method=TempoMethod.DEFAULT).bpm == 120.0
        with pytest.raises(AssertionError):
            TempoEstimate(bpm=250.0, method=TempoMethod.AUTOCORRELATION)

    def test_dsp_feature_set_brightness(self):
        features = DspFeatureSet(
            tempo_bpm=120.0, beat_strength=0.5, energy=0.5, spectral_centroid_hz=12000.0,
            spectral_rolloff_hz=4000.0, zero_crossing_rate=0.1, spectral_flux=0.0, danceability=0.5,
        )

        assert features.brightness == 1.0
        assert features.tempo_method is TempoMethod.DEFAULT

    def test_dsp_feature_set_validation(self):
        with pytest.raises(AssertionError):
            DspFeatureSet(
                tempo_bpm=120.0, beat_strength=1.5, energy=0.5, spectral_centroid_hz=1000.0,
                spectral_rolloff_hz=4000.0, zero_crossing_rate=0.1, spectral_flux=0.0, danceability=0.5,
            )


class TestClassifierSignal:
    """Tests for ClassifierSignal model"""

    def test_empty_lists_get_sentinels(self):
        signal = ClassifierSignal(
            instruments=[], has_vocals=False, genre="Jazz", mood_tags=[], energy=0.5, confidence=0.5,
        )

        assert signal.instruments == ("Unknown",)
        assert signal.mood_tags == ("Neutral",)
        assert signal.source is SignalSource.CLASSIFIER

    def test_lists_become_tuples(self):
        signal = ClassifierSignal(
            instruments=["Guitar"], has_vocals=False, genre="Jazz", mood_tags=["calm"],
            energy=0.5, confidence=0.5,
        )

        assert signal.instruments == ("Guitar",)

    def test_invalid_confidence(self):
        with pytest.raises(AssertionError):
            ClassifierSignal(
                instruments=(), has_vocals=False, genre="Jazz", mood_tags=(), energy=0.5, confidence=1.5,
            )


class TestFeatureRecord:
    """Tests for FeatureRecord model"""

    def test_create_valid_record(self):
        record = make_record()

        assert record.genre == "Rock music"
        assert record.analyzer_version == "1.0.0"

    def test_record_is_immutable(self):
        record = make_record()

        with pytest.raises(AttributeError):
            record.genre = "Jazz"

    def test_tempo_out_of_range(self):
        with pytest.raises(AssertionError):
            make_record(tempo_bpm=30.0)

    def test_unit_metric_out_of_range(self):
        with pytest.raises(AssertionError):
            make_record(valence=1.2)

    def test_vocal_class_requires_vocals(self):
        with pytest.raises(AssertionError):
            make_record(has_vocals=False, vocals="Soft")

    def test_empty_lists_get_sentinels(self):
        record = make_record(instruments=(), mood_tags=())

        assert record.instruments == ("Unknown",)
        assert record.mood_tags == ("Neutral",)

    def test_to_dict(self):
        data = make_record().to_dict()

        assert data["instruments"] == ["Guitar", "Drum kit"]
        assert data["analyzed_at"] == "2024-05-01T12:30:15.250000+00:00"
        json.dumps(data)

    def test_json_round_trip(self):
        record = make_record()

        assert FeatureRecord.from_json(record.to_json()) == record

    def test_from_dict_ignores_unknown_keys(self):
        data = make_record().to_dict()
        data["status"] = "ok"

        assert FeatureRecord.from_dict(data) == make_record()


class TestAnalysisOptions:
    """Tests for AnalysisOptions"""

    def test_defaults(self):
        options = AnalysisOptions()

        assert options.enable_classifier is True
        assert options.enable_signal_processing is True
        assert options.max_instruments == 5

    def test_from_config(self):
        cfg = Config.from_dict({'classifier': {'enabled': True, 'max_instruments': 3}})

        options = AnalysisOptions.from_config(cfg)

        assert options.enable_classifier is True
        assert options.max_instruments == 3

    def test_classifier_option_independent_of_model_loading(self):
        cfg = Config.from_dict({'classifier': {'enabled': False}})

        assert AnalysisOptions.from_config(cfg).enable_classifier is True

    def test_invalid_threshold(self):
        with pytest.raises(AssertionError):
            AnalysisOptions(confidence_threshold=1.5)
