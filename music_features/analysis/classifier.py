"""Audio-event classifier inference

Loads a TorchScript export of the pretrained audio-event classifier
together with its label table, and runs it on one excerpt window.
"""

import csv
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import torch

from music_features.analysis.interpreter import ClassifierOutputInterpreter, InterpretationError
from music_features.config.config_loader import Config, ConfigurationError, config as default_config
from music_features.models.features import DspFeatureSet
from music_features.models.frames import SampleBuffer
from music_features.models.interfaces import SignalProvider
from music_features.models.results import ClassifierSignal


logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Exception raised when the classifier fails or returns malformed output"""
    pass


class ClassifierEngine:
    """Pretrained classifier and label table, loaded once and shared read-only.

    Attributes:
        model_path: TorchScript model file
        labels_path: CSV label table (index, mid, display_name)
        input_length: Samples per inference window (15600 = 0.975 s at 16 kHz)
        num_labels: Length of the probability vector
        labels: Display names in model output order
        model: Loaded TorchScript module
    """

    def __init__(self, model_path: str = None, labels_path: str = None, cfg: Config = None):
        """Load model weights and labels.

        Raises:
            ConfigurationError: If the model or label table is missing,
                unreadable or inconsistent
        """
        cfg = cfg or default_config
        self.model_path = Path(model_path or cfg.get('classifier.model_path', 'models/yamnet.pt'))
        self.labels_path = Path(labels_path or cfg.get('classifier.labels_path', 'models/yamnet_class_map.csv'))
        self.input_length = cfg.get('classifier.input_length', 15600)
        self.num_labels = cfg.get('classifier.num_labels', 521)
        self.device = "cuda" if cfg.get('performance.use_gpu', False) and torch.cuda.is_available() else "cpu"

        self.labels: List[str] = self._load_labels()
        self.model = self._load_model()

        logger.info(f"ClassifierEngine loaded {len(self.labels)} labels on device: {self.device}")

    def _load_labels(self) -> List[str]:
        """Read display names from the label CSV, skipping its header row."""
        if not self.labels_path.exists():
            raise ConfigurationError(f"Label table not found: {self.labels_path}")

        try:
            with open(self.labels_path, 'r', newline='') as f:
                reader = csv.reader(f)
                next(reader, None)
                labels = [row[2] for row in reader if row]
        except (OSError, IndexError, csv.Error) as e:
            logger.error(f"Failed to read label table: {e}", exc_info=True)
            raise ConfigurationError(f"Unreadable label table {self.labels_path}: {e}")

        if len(labels) != self.num_labels:
            raise ConfigurationError(
                f"Label table has {len(labels)} entries, expected {self.num_labels}"
            )
        return labels

    def _load_model(self):
        if not self.model_path.exists():
            raise ConfigurationError(f"Classifier model not found: {self.model_path}")

        try:
            logger.info(f"Loading classifier model from {self.model_path}")
            model = torch.jit.load(str(self.model_path), map_location=self.device)
            model.eval()
            return model
        except Exception as e:
            logger.error(f"Failed to load classifier model: {e}", exc_info=True)
            raise ConfigurationError(f"Unreadable classifier model {self.model_path}: {e}")

    def prepare_input(self, samples: np.ndarray) -> np.ndarray:
        """Zero-pad or truncate to exactly ``input_length`` samples."""
        window = np.zeros(self.input_length, dtype=np.float32)
        count = min(self.input_length, len(samples))
        window[:count] = samples[:count]
        return window

    def predict(self, samples: np.ndarray) -> np.ndarray:
        """Run inference on one window.

        Models that score several patches return a (patches, labels)
        matrix; patch scores are averaged.

        Args:
            samples: 16 kHz mono samples

        Returns:
            Probability vector of length ``num_labels``

        Raises:
            InferenceError: If the model raises or its output has the wrong
                shape or non-finite values
        """
        waveform = torch.from_numpy(self.prepare_input(samples)).to(self.device)
        try:
            with torch.no_grad():
                output = self.model(waveform)
        except Exception as e:
            logger.error(f"Classifier inference failed: {e}", exc_info=True)
            raise InferenceError(f"Classifier inference failed: {e}")

        if isinstance(output, (tuple, list)):
            output = output[0] if output else None
        if isinstance(output, torch.Tensor):
            output = output.detach().cpu().numpy()
        try:
            scores = np.asarray(output, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InferenceError(f"Classifier returned non-numeric output: {e}")

        if scores.ndim == 2 and scores.shape[-1] == self.num_labels and scores.shape[0] > 0:
            scores = scores.mean(axis=0)
        if scores.shape != (self.num_labels,):
            raise InferenceError(
                f"Classifier output shape {scores.shape}, expected ({self.num_labels},)"
            )
        if not np.all(np.isfinite(scores)):
            raise InferenceError("Classifier output contains non-finite values")
        return scores


class ClassifierSignalProvider(SignalProvider):
    """Signal provider backed by the pretrained classifier.

    Returns None instead of raising when inference or interpretation
    fails, so the caller can switch to the heuristic provider.
    """

    def __init__(self, engine: Optional[ClassifierEngine], interpreter: ClassifierOutputInterpreter = None):
        self.engine = engine
        self.interpreter = interpreter or ClassifierOutputInterpreter()

    def is_available(self) -> bool:
        return self.engine is not None

    def provide(self, buffer: SampleBuffer, dsp: DspFeatureSet) -> Optional[ClassifierSignal]:
        if self.engine is None:
            return None
        try:
            scores = self.engine.predict(buffer.samples)
            return self.interpreter.interpret(scores, self.engine.labels)
        except (InferenceError, InterpretationError) as e:
            logger.warning(f"Classifier unavailable for {buffer.source or '<buffer>'}: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected classifier error: {e}", exc_info=True)
            return None
