"""
Map Generator - Errors
"""

from typing import Optional


class ConfigurationError(ValueError):
    """Invalid generation input, e.g. a non-positive player count"""


class GenerationError(RuntimeError):
    """Generation could not complete; pass_name is set when a pass raised"""

    def __init__(self, message: str, pass_name: Optional[str] = None):
        self.pass_name = pass_name
        super().__init__(message)
