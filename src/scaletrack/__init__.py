"""ScaleTrack: personal weight tracking with goal guidance lines."""

__version__ = "1.0.0"
