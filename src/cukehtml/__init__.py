"""Render feature/scenario/step results as a single progressive HTML report."""

__version__ = "0.1.0"
