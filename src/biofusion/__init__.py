"""Uncertainty-weighted multi-modal fusion for wearable health analysis."""

__version__ = "0.1.0"
