"""Concept graph synchronization engine for interlinked notes on remote storage."""

__version__ = "0.1.0"
