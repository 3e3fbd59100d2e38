"""
Record layer: SQLAlchemy models and the field/record binding helpers.
"""

from kompo.records.base import Record
from kompo.records.model_manager import ModelManager

__all__ = ["ModelManager", "Record"]
