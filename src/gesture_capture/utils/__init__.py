"""Utility modules for logging and loop rates."""
from .performance import LoopRate
from .logger import setup_logging, CaptureLogger

__all__ = ["LoopRate", "setup_logging", "CaptureLogger"]
