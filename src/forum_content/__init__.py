"""Forum content service: posts with a status lifecycle and threaded replies."""

__version__ = "0.1.0"
