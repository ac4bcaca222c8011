"""Renderers for file contents."""

from .console import render_file

__all__ = ["render_file"]
