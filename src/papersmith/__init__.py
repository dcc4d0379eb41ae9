"""Papersmith: topic-to-paper generation pipeline."""

from __future__ import annotations

__version__ = "0.1.0"
