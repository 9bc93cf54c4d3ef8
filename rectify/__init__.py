"""Undistortion module."""

from .undistorter import Undistorter

__all__ = ["Undistorter"]
