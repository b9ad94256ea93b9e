"""Fusion of classifier and DSP signals"""

from music_features.fusion.fusion_engine import FusionEngine

__all__ = ["FusionEngine"]
