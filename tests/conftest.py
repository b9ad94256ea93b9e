"""Pytest configuration and fixtures"""

import numpy as np
import pytest
from hypothesis import settings, Verbosity

from music_features.models.frames import SampleBuffer

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20, verbosity=Verbosity.normal)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)

# Use CI profile by default
settings.load_profile("ci")

SAMPLE_RATE = 16000


def _pulse_train(period: int, seconds: float = 4.0, start: int = 400, width: int = 64,
                 amplitude: float = 0.8, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Rectangular bursts every ``period`` samples"""
    samples = np.zeros(int(seconds * sample_rate), dtype=np.float32)
    for onset in range(start, len(samples), period):
        samples[onset:onset + width] = amplitude
    return samples


class FakeEngine:
    """Stand-in for ClassifierEngine returning fixed scores"""

    def __init__(self, labels, scores=None, error=None):
        self.labels = list(labels)
        self.scores = scores
        self.error = error
        self.calls = 0

    def predict(self, samples):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return np.asarray(self.scores, dtype=np.float64)


@pytest.fixture(scope="session")
def pulse_train():
    """Factory for burst trains with a given period in samples"""
    return _pulse_train


@pytest.fixture(scope="session")
def engine_factory():
    """FakeEngine class for tests that need custom scores"""
    return FakeEngine


@pytest.fixture(scope="session")
def silent_samples():
    """One second of digital silence"""
    return np.zeros(SAMPLE_RATE, dtype=np.float32)


@pytest.fixture(scope="session")
def sine_samples():
    """One second of a 440 Hz sine at amplitude 0.5"""
    t = np.arange(SAMPLE_RATE) / SAMPLE_RATE
    return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


@pytest.fixture(scope="session")
def pulse_samples():
    """Four seconds of bursts at 120 BPM"""
    return _pulse_train(period=8000)


@pytest.fixture
def silent_buffer(silent_samples):
    return SampleBuffer(samples=silent_samples, source="silence")


@pytest.fixture
def sine_buffer(sine_samples):
    return SampleBuffer(samples=sine_samples, source="sine-440")


@pytest.fixture(scope="session")
def music_labels():
    """Small label table in the classifier's naming style"""
    return [
        "Music", "Guitar", "Electric guitar", "Singing", "Rock music",
        "Happy music", "Drum kit", "Piano", "Silence", "Dog",
    ]


@pytest.fixture(scope="session")
def music_scores():
    return [0.9, 0.6, 0.4, 0.5, 0.3, 0.25, 0.2, 0.1, 0.01, 0.02]


@pytest.fixture
def fake_engine(music_labels, music_scores):
    return FakeEngine(music_labels, music_scores)
