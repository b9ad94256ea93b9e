"""Batch Analyzer

Runs one analysis per input on a bounded thread pool driven by asyncio.
Each input is an independent unit of work: a failure yields ``None`` for
that input and a failure in the statistics, and the batch continues.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from music_features.config.config_loader import Config, config as default_config
from music_features.models.frames import SampleBuffer
from music_features.models.results import FeatureRecord
from music_features.pipeline.analyzer import MusicFeatureAnalyzer
from music_features.pipeline.stats import AnalysisStats, StatsSummary


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
ResultCallback = Callable[[str, Optional[FeatureRecord]], None]
BatchItem = Union[str, Path, SampleBuffer]


@dataclass(frozen=True)
class ExtractionProgress:
    """Progress of a running or finished batch"""
    total: int
    analyzed: int
    failed: int
    pending: int

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0
        return (self.analyzed + self.failed) / self.total * 100.0


@dataclass
class BatchResult:
    """Outcome of a batch

    Attributes:
        records: Input identifier -> FeatureRecord, or None when the unit failed
        summary: Statistics snapshot taken at the end of the batch
        cancelled: Identifiers never dispatched because the batch was cancelled
    """
    records: Dict[str, Optional[FeatureRecord]]
    summary: StatsSummary
    cancelled: List[str] = field(default_factory=list)

    @property
    def successful(self) -> Dict[str, FeatureRecord]:
        return {key: record for key, record in self.records.items() if record is not None}

    @property
    def failed(self) -> List[str]:
        return [key for key, record in self.records.items() if record is None]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per input; failed inputs keep only ``source`` and ``status``."""
        rows = []
        for key, record in self.records.items():
            row = {'source': key, 'status': 'ok' if record is not None else 'failed'}
            if record is not None:
                row.update(record.to_dict())
            rows.append(row)
        return pd.DataFrame(rows)


class BatchAnalyzer:
    """Analyzes many excerpts concurrently with bounded parallelism.

    Attributes:
        analyzer: Shared analyzer (its loaded model is read-only)
        max_workers: Upper bound on concurrently running analyses
        unit_timeout: Seconds before a unit is abandoned and counted as failed
    """

    def __init__(
        self,
        analyzer: MusicFeatureAnalyzer,
        max_workers: Optional[int] = None,
        unit_timeout: Optional[float] = None,
        cfg: Config = None,
    ):
        cfg = cfg or default_config
        self.analyzer = analyzer
        self.max_workers = max_workers or cfg.get('batch.max_workers', 4)
        self.unit_timeout = unit_timeout if unit_timeout is not None else cfg.get('batch.unit_timeout')
        self._cancel_requested = False
        self._total = 0
        self._analyzed = 0
        self._failed = 0

    def cancel(self) -> None:
        """Stop dispatching further units; units already running finish."""
        logger.info("Batch cancellation requested")
        self._cancel_requested = True

    @property
    def progress(self) -> ExtractionProgress:
        done = self._analyzed + self._failed
        return ExtractionProgress(
            total=self._total,
            analyzed=self._analyzed,
            failed=self._failed,
            pending=max(0, self._total - done),
        )

    @staticmethod
    def _normalize_items(items) -> Dict[str, BatchItem]:
        if isinstance(items, Mapping):
            return {str(key): value for key, value in items.items()}
        normalized = {}
        for index, item in enumerate(items):
            if isinstance(item, SampleBuffer):
                key = item.source or f"buffer-{index}"
            else:
                key = str(item)
            if key in normalized:
                duplicate = f"{key}#{index}"
                logger.warning(f"Duplicate batch item {key}, analyzing it again as {duplicate}")
                key = duplicate
            normalized[key] = item
        return normalized

    def _analyze_item(self, item: BatchItem) -> FeatureRecord:
        if isinstance(item, SampleBuffer):
            return self.analyzer.analyze_buffer(item)
        return self.analyzer.analyze_file(item)

    async def run(
        self,
        items: Union[Iterable[BatchItem], Mapping[str, BatchItem]],
        on_progress: Optional[ProgressCallback] = None,
        on_result: Optional[ResultCallback] = None,
        stats: Optional[AnalysisStats] = None,
    ) -> BatchResult:
        """Analyze every item.

        Args:
            items: File paths or SampleBuffers, or a mapping from identifier
                to either
            on_progress: Called with (processed, total) after every unit
            on_result: Called with (identifier, record-or-None) after every unit
            stats: Accumulator to record into (a fresh one by default)

        Returns:
            BatchResult with records in input order
        """
        work = self._normalize_items(items)
        stats = stats if stats is not None else AnalysisStats()
        self._cancel_requested = False
        self._total = len(work)
        self._analyzed = 0
        self._failed = 0

        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.max_workers)
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        records: Dict[str, Optional[FeatureRecord]] = {}
        cancelled: List[str] = []

        logger.info(f"Starting batch of {self._total} items with {self.max_workers} workers")

        async def unit(key: str, item: BatchItem) -> None:
            async with semaphore:
                if self._cancel_requested:
                    cancelled.append(key)
                    return

                started = time.perf_counter()
                record = None
                try:
                    future = loop.run_in_executor(executor, self._analyze_item, item)
                    if self.unit_timeout:
                        record = await asyncio.wait_for(future, self.unit_timeout)
                    else:
                        record = await future
                except asyncio.TimeoutError:
                    logger.warning(f"Analysis of {key} timed out after {self.unit_timeout}s")
                except Exception as e:
                    logger.error(f"Analysis of {key} failed: {e}", exc_info=True)

                elapsed = time.perf_counter() - started
                stats.record(record, elapsed)
                records[key] = record
                if record is None:
                    self._failed += 1
                else:
                    self._analyzed += 1

                self._notify(on_result, key, record)
                self._notify(on_progress, self._analyzed + self._failed, self._total)

        try:
            await asyncio.gather(*(unit(key, item) for key, item in work.items()))
        finally:
            executor.shutdown(wait=False)

        ordered = {key: records[key] for key in work if key in records}
        summary = stats.summary()
        logger.info(
            f"Batch finished: {summary.successful} ok, {summary.failed} failed, "
            f"{len(cancelled)} cancelled"
        )
        return BatchResult(records=ordered, summary=summary, cancelled=[k for k in work if k in cancelled])

    def analyze_files(self, items, on_progress: Optional[ProgressCallback] = None,
                      on_result: Optional[ResultCallback] = None) -> BatchResult:
        """Blocking wrapper around :meth:`run`."""
        return asyncio.run(self.run(items, on_progress, on_result))

    @staticmethod
    def _notify(callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Batch callback raised: {e}")
