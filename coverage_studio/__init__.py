"""Batched, fault-tolerant generation core for video pre-production coverage."""

__version__ = "0.1.0"
