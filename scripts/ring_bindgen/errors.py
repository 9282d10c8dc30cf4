"""
Error types raised by the binding generator
"""

from typing import Optional


class BindgenError(Exception):
    """Base class for generator failures"""


class SourceError(BindgenError):
    """Malformed declaration input"""

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        if line is not None:
            message = f'line {line}: {message}'
        super().__init__(message)
