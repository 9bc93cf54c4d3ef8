"""Detection module."""

from .chessboard import ChessboardDetection, ChessboardDetector, CornerLocator, SubpixelRefiner

__all__ = [
    "ChessboardDetection",
    "ChessboardDetector",
    "CornerLocator",
    "SubpixelRefiner",
]
