"""Encoding-robust CSV decoding and record normalization."""

__version__ = "0.1.0"
