"""Fuse Tester - automated test sequence for a three-fuse resistor network."""

__version__ = "1.0.0"
