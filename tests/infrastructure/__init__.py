"""
Shared helpers for the test suite.
"""

from .rendering_utils import render, compile_tree, RecordingLoader

__all__ = ["render", "compile_tree", "RecordingLoader"]
