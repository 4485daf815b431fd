"""radiopulse — live radio capture, transcription and topic mining."""

__version__ = "0.3.0"
