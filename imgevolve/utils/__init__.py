"""Utility helpers shared across the imgevolve codebase."""

from imgevolve.utils.binary import BinaryReader, BinaryWriter
from imgevolve.utils.logger_setup import setup_logger

__all__ = ["BinaryReader", "BinaryWriter", "setup_logger"]
