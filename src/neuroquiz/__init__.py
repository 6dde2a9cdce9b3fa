"""Adaptive quiz engine with cognitive profile analytics."""
