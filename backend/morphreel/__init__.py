"""Morphreel — image-to-prompt and image-to-video proxy backend."""

__version__ = "0.1.0"
