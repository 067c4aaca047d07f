"""Interview practice coach: question catalog, practice session, transcription and feedback relays."""

__version__ = "0.1.0"
