"""DisserTrack - meeting lifecycle client for dissertation projects"""

__version__ = "1.0.0"
