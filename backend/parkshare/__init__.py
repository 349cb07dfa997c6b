"""ParkShare booking lifecycle and availability engine."""

__version__ = "1.0.0"
