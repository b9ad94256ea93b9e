"""Property-based tests for tempo detection

Property 5: Periodic bursts are detected at their tempo

For a train of short bursts with a period between 100 and 133 BPM, the
autocorrelation estimator returns a tempo within 15% of the true rate.
"""

import numpy as np
import pytest
from hypothesis import given, strategies as st, settings

from music_features.analysis.rhythm import beat_strength, estimate_tempo
from music_features.models.enums import TempoMethod


SAMPLE_RATE = 16000


@settings(max_examples=20, deadline=None)
@given(period=st.integers(min_value=7200, max_value=9600))
def test_burst_train_tempo(pulse_train, period):
    """Property 5: Estimated tempo is within 15% of the burst rate"""
    expected = SAMPLE_RATE * 60.0 / period

    estimate = estimate_tempo(pulse_train(period), SAMPLE_RATE)

    assert estimate.method is TempoMethod.AUTOCORRELATION
    assert abs(estimate.bpm - expected) <= 0.15 * expected


@settings(max_examples=20, deadline=None)
@given(
    period=st.integers(min_value=7200, max_value=9600),
    gain=st.floats(min_value=0.05, max_value=1.0),
)
def test_tempo_invariant_to_gain(pulse_train, period, gain):
    """Property 5: Scaling the signal does not change the detected tempo"""
    samples = pulse_train(period)

    reference = estimate_tempo(samples, SAMPLE_RATE).bpm
    scaled = estimate_tempo((samples * gain).astype(np.float32), SAMPLE_RATE).bpm

    assert scaled == pytest.approx(reference)


@settings(max_examples=20, deadline=None)
@given(period=st.integers(min_value=7200, max_value=9600))
def test_burst_train_has_strong_beat(pulse_train, period):
    """Property 5: Burst trains register as rhythmic"""
    assert beat_strength(pulse_train(period), SAMPLE_RATE) > 0.3
