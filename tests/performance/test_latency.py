"""
Performance tests for analysis latency.

A ten-second excerpt should be analyzed well within interactive time on
the DSP path, and a batch should overlap work across its workers.
"""

import time

import numpy as np
import pytest

from music_features.config.config_loader import Config
from music_features.fusion.fusion_engine import FusionEngine
from music_features.models.frames import SampleBuffer
from music_features.pipeline.analyzer import MusicFeatureAnalyzer
from music_features.pipeline.batch import BatchAnalyzer


def noisy_excerpt(seconds=10.0, seed=0):
    """Noise with a 120 BPM burst pattern on top"""
    rng = np.random.default_rng(seed)
    samples = 0.05 * rng.standard_normal(int(seconds * 16000))
    for onset in range(400, len(samples), 8000):
        samples[onset:onset + 64] += 0.7
    return np.clip(samples, -1.0, 1.0).astype(np.float32)


@pytest.fixture(scope="module")
def analyzer():
    return MusicFeatureAnalyzer(Config())


@pytest.mark.performance
def test_single_excerpt_latency(analyzer):
    """Analyze a ten-second excerpt repeatedly and check the mean latency."""
    buffer = SampleBuffer(samples=noisy_excerpt(), source="noise")

    times = []
    for _ in range(5):
        start = time.perf_counter()
        record = analyzer.analyze_buffer(buffer)
        times.append(time.perf_counter() - start)

    print("\nSingle excerpt latency:")
    print(f"  Mean: {np.mean(times) * 1000:.1f}ms")
    print(f"  Max: {np.max(times) * 1000:.1f}ms")

    assert record.genre
    assert np.mean(times) < 5.0
    assert np.max(times) < 10.0


@pytest.mark.performance
def test_fusion_latency():
    """Fusion is pure arithmetic and should be negligible."""
    analyzer = MusicFeatureAnalyzer(Config())
    buffer = SampleBuffer(samples=noisy_excerpt(seconds=2.0))
    dsp = analyzer.signal_processor.analyze(buffer)
    signal = analyzer.heuristic_provider.infer(dsp)
    engine = FusionEngine()

    start = time.perf_counter()
    for _ in range(1000):
        engine.fuse(signal, dsp)
    per_call = (time.perf_counter() - start) / 1000

    print(f"\nFusion latency: {per_call * 1e6:.1f}us per record")
    assert per_call < 0.01


@pytest.mark.performance
def test_batch_throughput(analyzer):
    """A batch of eight excerpts completes and reports every record."""
    items = {f"excerpt-{i}": SampleBuffer(samples=noisy_excerpt(seed=i)) for i in range(8)}
    batch = BatchAnalyzer(analyzer, max_workers=4)

    start = time.perf_counter()
    result = batch.analyze_files(items)
    elapsed = time.perf_counter() - start

    print(f"\nBatch of {len(items)}: {elapsed:.2f}s ({len(items) / elapsed:.1f} excerpts/s)")

    assert len(result.successful) == len(items)
    assert result.summary.success_rate == 1.0
    assert elapsed < 60.0
