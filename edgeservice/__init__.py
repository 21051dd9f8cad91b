"""Edge camera inspection service: ffmpeg snapshots checked by an AI service, served over HTTP."""

__version__ = "0.1.0"