"""Player control for manual transcription of audio and video recordings."""

__version__ = "0.3.0"
