"""Batch statistics accumulator"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from music_features.models.results import FeatureRecord


@dataclass(frozen=True)
class StatsSummary:
    """Snapshot of an AnalysisStats accumulator

    Attributes:
        total: Excerpts attempted
        successful: Excerpts that produced a record
        failed: Excerpts that produced no record
        total_processing_time: Seconds spent across all excerpts
        average_processing_time: Seconds per attempted excerpt
        success_rate: successful / total (0.0 when nothing was attempted)
        failure_rate: failed / total
        genre_distribution: Count of records per genre
        instrument_distribution: Count of records mentioning each instrument
        mood_distribution: Count of records per mood tag
    """
    total: int
    successful: int
    failed: int
    total_processing_time: float
    average_processing_time: float
    success_rate: float
    failure_rate: float
    genre_distribution: Dict[str, int] = field(default_factory=dict)
    instrument_distribution: Dict[str, int] = field(default_factory=dict)
    mood_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'total_processing_time': self.total_processing_time,
            'average_processing_time': self.average_processing_time,
            'success_rate': self.success_rate,
            'failure_rate': self.failure_rate,
            'genre_distribution': dict(self.genre_distribution),
            'instrument_distribution': dict(self.instrument_distribution),
            'mood_distribution': dict(self.mood_distribution),
        }


class AnalysisStats:
    """Running totals and label histograms for a batch.

    Owned by whoever runs the batch and passed around explicitly; two
    accumulators from separate batches can be combined with ``merge``.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.successful = 0
        self.failed = 0
        self.total_processing_time = 0.0
        self.genres: Counter = Counter()
        self.instruments: Counter = Counter()
        self.moods: Counter = Counter()

    @property
    def total(self) -> int:
        return self.successful + self.failed

    def record_success(self, record: FeatureRecord, seconds: float = 0.0) -> None:
        self.successful += 1
        self.total_processing_time += seconds
        self.genres[record.genre] += 1
        self.instruments.update(set(record.instruments))
        self.moods.update(set(record.mood_tags))

    def record_failure(self, seconds: float = 0.0) -> None:
        self.failed += 1
        self.total_processing_time += seconds

    def record(self, record: Optional[FeatureRecord], seconds: float = 0.0) -> None:
        """Record an outcome; None counts as a failure."""
        if record is None:
            self.record_failure(seconds)
        else:
            self.record_success(record, seconds)

    def merge(self, other: "AnalysisStats") -> "AnalysisStats":
        """Add another accumulator's totals into this one (in place)."""
        self.successful += other.successful
        self.failed += other.failed
        self.total_processing_time += other.total_processing_time
        self.genres.update(other.genres)
        self.instruments.update(other.instruments)
        self.moods.update(other.moods)
        return self

    def summary(self) -> StatsSummary:
        total = self.total
        return StatsSummary(
            total=total,
            successful=self.successful,
            failed=self.failed,
            total_processing_time=self.total_processing_time,
            average_processing_time=self.total_processing_time / total if total else 0.0,
            success_rate=self.successful / total if total else 0.0,
            failure_rate=self.failed / total if total else 0.0,
            genre_distribution=dict(self.genres.most_common()),
            instrument_distribution=dict(self.instruments.most_common()),
            mood_distribution=dict(self.moods.most_common()),
        )

    def distributions_frame(self) -> pd.DataFrame:
        """Label histograms as a long-format DataFrame (category, label, count)."""
        rows = []
        for category, counter in (('genre', self.genres), ('instrument', self.instruments), ('mood', self.moods)):
            for label, count in counter.most_common():
                rows.append({'category': category, 'label': label, 'count': count})
        return pd.DataFrame(rows, columns=['category', 'label', 'count'])
