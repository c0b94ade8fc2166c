"""Result persistence"""

from .result_writer import ResultWriter

__all__ = ["ResultWriter"]
