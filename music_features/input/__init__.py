"""Audio input"""

from music_features.input.decoder import AudioDecoder, DecodeError

__all__ = ["AudioDecoder", "DecodeError"]
