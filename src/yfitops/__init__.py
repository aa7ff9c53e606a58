"""Yfitops - Spotify play-queue service backed by a private queue playlist."""

__version__ = "0.1.0"
