"""Clinical Score Toolkit — declarative bedside scores and calculators."""

__version__ = "0.1.0"
