"""MicroLearn: weighted topic selection with a pass/fail feedback loop."""

__version__ = "1.0.0"
