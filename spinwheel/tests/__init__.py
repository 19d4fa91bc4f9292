"""Spinwheel test suite."""
