"""Per-analyzer options"""

from dataclasses import dataclass

from music_features.config.config_loader import Config, config as default_config


@dataclass
class AnalysisOptions:
    """Switches and limits for one analyzer instance

    Attributes:
        enable_classifier: Use the pretrained classifier when it is loaded
        enable_signal_processing: Compute DSP features (when False, neutral
                                  defaults are fused instead)
        confidence_threshold: Records below this confidence are logged as
                              low-confidence
        max_instruments: Cap on the instrument list
        verbose_logging: Log per-stage details at DEBUG level
    """
    enable_classifier: bool = True
    enable_signal_processing: bool = True
    confidence_threshold: float = 0.0
    max_instruments: int = 5
    verbose_logging: bool = False

    def __post_init__(self):
        assert 0.0 <= self.confidence_threshold <= 1.0, "Confidence threshold must be in [0, 1]"
        assert self.max_instruments >= 1, "At least one instrument slot is required"

    @classmethod
    def from_config(cls, cfg: Config = None) -> "AnalysisOptions":
        cfg = cfg or default_config
        # classifier.enabled governs model loading only, not use of an injected engine
        return cls(max_instruments=cfg.get('classifier.max_instruments', 5))
