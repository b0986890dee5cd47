"""Tetrix: rules engine for a 10x10 block-placement puzzle."""

__version__ = "0.1.0"
