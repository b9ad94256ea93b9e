"""Integration tests for concurrent batch analysis"""

import time

import numpy as np
import pytest

from music_features.config.config_loader import Config
from music_features.models.frames import SampleBuffer
from music_features.pipeline.analyzer import MusicFeatureAnalyzer
from music_features.pipeline.batch import BatchAnalyzer, ExtractionProgress
from music_features.pipeline.stats import AnalysisStats


class SlowAnalyzer:
    """Analyzer stand-in whose calls block for a fixed time"""

    def __init__(self, delay):
        self.delay = delay

    def analyze_buffer(self, buffer):
        time.sleep(self.delay)
        raise AssertionError("should have timed out")

    def analyze_file(self, path):
        return self.analyze_buffer(None)


@pytest.fixture
def analyzer():
    return MusicFeatureAnalyzer(Config())


@pytest.fixture
def buffers(sine_samples, silent_samples):
    return [
        SampleBuffer(samples=sine_samples, source="sine"),
        SampleBuffer(samples=silent_samples, source="silence"),
        SampleBuffer(samples=sine_samples * 0.5, source="quiet-sine"),
    ]


class TestBatchAnalyzer:
    """Tests for BatchAnalyzer.run"""

    @pytest.mark.asyncio
    async def test_all_items_analyzed_in_input_order(self, analyzer, buffers):
        batch = BatchAnalyzer(analyzer, max_workers=2)

        result = await batch.run(buffers)

        assert list(result.records) == ["sine", "silence", "quiet-sine"]
        assert all(record is not None for record in result.records.values())
        assert result.summary.successful == 3
        assert result.summary.success_rate == 1.0
        assert result.cancelled == []

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, analyzer, buffers, tmp_path):
        items = {
            "good": buffers[0],
            "missing": tmp_path / "missing.wav",
            "also-good": buffers[1],
        }
        batch = BatchAnalyzer(analyzer, max_workers=3)

        result = await batch.run(items)

        assert result.records["missing"] is None
        assert result.records["good"] is not None
        assert result.records["also-good"] is not None
        assert result.failed == ["missing"]
        assert set(result.successful) == {"good", "also-good"}
        assert result.summary.failed == 1

    @pytest.mark.asyncio
    async def test_progress_and_result_callbacks(self, analyzer, buffers):
        progress = []
        results = []
        batch = BatchAnalyzer(analyzer, max_workers=2)

        await batch.run(
            buffers,
            on_progress=lambda done, total: progress.append((done, total)),
            on_result=lambda key, record: results.append(key),
        )

        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert sorted(results) == ["quiet-sine", "silence", "sine"]
        assert batch.progress == ExtractionProgress(total=3, analyzed=3, failed=0, pending=0)
        assert batch.progress.percentage == 100.0

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_batch(self, analyzer, buffers):
        def broken(done, total):
            raise RuntimeError("display went away")

        result = await BatchAnalyzer(analyzer, max_workers=1).run(buffers, on_progress=broken)

        assert result.summary.successful == 3

    @pytest.mark.asyncio
    async def test_cancel_stops_dispatch(self, analyzer, buffers):
        batch = BatchAnalyzer(analyzer, max_workers=1)

        result = await batch.run(buffers, on_progress=lambda done, total: batch.cancel())

        assert list(result.records) == ["sine"]
        assert result.cancelled == ["silence", "quiet-sine"]
        assert result.summary.total == 1

    @pytest.mark.asyncio
    async def test_unit_timeout(self, sine_samples):
        batch = BatchAnalyzer(SlowAnalyzer(delay=0.5), max_workers=1, unit_timeout=0.05)

        started = time.perf_counter()
        result = await batch.run([SampleBuffer(samples=sine_samples, source="slow")])

        assert time.perf_counter() - started < 0.4
        assert result.records["slow"] is None
        assert result.summary.failed == 1

    @pytest.mark.asyncio
    async def test_shared_stats_accumulate(self, analyzer, buffers):
        stats = AnalysisStats()
        batch = BatchAnalyzer(analyzer, max_workers=2)

        await batch.run(buffers[:2], stats=stats)
        result = await batch.run(buffers[2:], stats=stats)

        assert result.summary.total == 3
        assert sum(result.summary.genre_distribution.values()) == 3

    @pytest.mark.asyncio
    async def test_empty_batch(self, analyzer):
        batch = BatchAnalyzer(analyzer)

        result = await batch.run([])

        assert result.records == {}
        assert result.summary.total == 0
        assert batch.progress.percentage == 100.0

    def test_unnamed_buffers_get_keys(self, analyzer, sine_samples):
        batch = BatchAnalyzer(analyzer, max_workers=2)

        result = batch.analyze_files([SampleBuffer(samples=sine_samples), SampleBuffer(samples=sine_samples)])

        assert list(result.records) == ["buffer-0", "buffer-1"]

    def test_duplicate_items_are_all_analyzed(self, analyzer, sine_samples, caplog):
        items = [
            SampleBuffer(samples=sine_samples, source="take"),
            SampleBuffer(samples=sine_samples, source="take"),
            SampleBuffer(samples=sine_samples, source="other"),
        ]

        result = BatchAnalyzer(analyzer, max_workers=2).analyze_files(items)

        assert list(result.records) == ["take", "take#1", "other"]
        assert result.summary.total == 3
        assert "Duplicate batch item take" in caplog.text

    def test_to_dataframe(self, analyzer, buffers, tmp_path):
        batch = BatchAnalyzer(analyzer, max_workers=2)
        items = {"sine": buffers[0], "missing": tmp_path / "missing.wav"}

        frame = batch.analyze_files(items).to_dataframe()

        assert len(frame) == 2
        assert list(frame["status"]) == ["ok", "failed"]
        assert frame.loc[0, "genre"]
        assert np.isnan(frame.loc[1, "tempo_bpm"])

    def test_workers_default_from_config(self, analyzer):
        batch = BatchAnalyzer(analyzer, cfg=Config.from_dict({'batch': {'max_workers': 7}}))

        assert batch.max_workers == 7
