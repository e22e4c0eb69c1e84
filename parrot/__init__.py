"""Music bot core: queues, playback commands, media sources and queue views."""

__version__ = "1.0.0"