"""Music Feature Analyzer

Single-excerpt orchestration: decode, compute DSP features, obtain a
ClassifierSignal from the classifier or the heuristics, and fuse.
"""

import logging
from typing import Optional, Union

import numpy as np

from music_features.analysis.classifier import ClassifierEngine, ClassifierSignalProvider
from music_features.analysis.fallback import HeuristicSignalProvider
from music_features.analysis.interpreter import ClassifierOutputInterpreter
from music_features.analysis.signal_processor import SignalProcessor
from music_features.config.config_loader import Config, config as default_config
from music_features.fusion.fusion_engine import FusionEngine
from music_features.input.decoder import AudioDecoder
from music_features.models.frames import SampleBuffer
from music_features.models.options import AnalysisOptions
from music_features.models.results import FeatureRecord


logger = logging.getLogger(__name__)


class MusicFeatureAnalyzer:
    """Extracts a FeatureRecord from one audio excerpt.

    The classifier engine is loaded once at construction and shared
    read-only by every call, so one analyzer can serve a whole batch from
    several worker threads.

    Attributes:
        options: Analyzer switches and limits
        signal_processor: DSP feature extraction
        classifier_provider: Signal provider backed by the classifier
        heuristic_provider: Signal provider backed by DSP heuristics
        fusion_engine: Builds the final record
        decoder: Audio decoding collaborator
    """

    def __init__(
        self,
        cfg: Config = None,
        engine: Optional[ClassifierEngine] = None,
        options: Optional[AnalysisOptions] = None,
        decoder: Optional[AudioDecoder] = None,
    ):
        """Initialize the analyzer.

        Args:
            cfg: Configuration, defaults to the global config
            engine: Preloaded classifier engine; when omitted it is loaded
                from ``classifier.model_path`` if ``classifier.enabled``
            options: Analyzer options, defaults derived from ``cfg``
            decoder: Audio decoder, defaults to an AudioDecoder on ``cfg``

        Raises:
            ConfigurationError: If the classifier is enabled but its model
                or label table cannot be loaded
        """
        cfg = cfg or default_config
        self.options = options or AnalysisOptions.from_config(cfg)
        if self.options.verbose_logging:
            logging.getLogger('music_features').setLevel(logging.DEBUG)

        if engine is None and self.options.enable_classifier and cfg.get('classifier.enabled', False):
            engine = ClassifierEngine(cfg=cfg)

        interpreter = ClassifierOutputInterpreter(cfg)
        interpreter.max_instruments = self.options.max_instruments

        self.signal_processor = SignalProcessor(cfg)
        self.classifier_provider = ClassifierSignalProvider(
            engine if self.options.enable_classifier else None,
            interpreter,
        )
        self.heuristic_provider = HeuristicSignalProvider(cfg, self.options.max_instruments)
        self.fusion_engine = FusionEngine(
            min_bpm=cfg.get('rhythm.min_bpm', 60.0),
            max_bpm=cfg.get('rhythm.max_bpm', 200.0),
        )
        self.decoder = decoder or AudioDecoder(cfg)
        self.sample_rate = cfg.get('audio.sample_rate', 16000)

        mode = "classifier" if self.classifier_available else "heuristics only"
        logger.info(f"MusicFeatureAnalyzer initialized ({mode})")

    @property
    def classifier_available(self) -> bool:
        return self.classifier_provider.is_available()

    def analyze_buffer(self, buffer: Union[SampleBuffer, np.ndarray]) -> FeatureRecord:
        """Analyze an in-memory excerpt.

        Args:
            buffer: SampleBuffer, or a raw 16 kHz mono sample array

        Returns:
            FeatureRecord for the excerpt
        """
        if not isinstance(buffer, SampleBuffer):
            buffer = SampleBuffer(samples=np.asarray(buffer), sample_rate=self.sample_rate)

        if self.options.enable_signal_processing:
            dsp = self.signal_processor.analyze(buffer)
        else:
            dsp = self.signal_processor.neutral_features()

        signal = None
        if self.classifier_provider.is_available():
            signal = self.classifier_provider.provide(buffer, dsp)
        if signal is None:
            signal = self.heuristic_provider.provide(buffer, dsp)

        record = self.fusion_engine.fuse(signal, dsp)
        if record.confidence < self.options.confidence_threshold:
            logger.info(
                f"Low confidence ({record.confidence:.2f}) for {buffer.source or '<buffer>'}"
            )
        return record

    def analyze_file(self, path, offset: Optional[float] = None, duration: Optional[float] = None) -> FeatureRecord:
        """Decode and analyze an excerpt of an audio file.

        Raises:
            DecodeError: If the file cannot be read at all
        """
        buffer = self.decoder.load(path, offset, duration)
        if buffer.synthetic:
            logger.info(f"Analyzing synthetic fallback buffer for {path}")
        return self.analyze_buffer(buffer)
