"""
pson: compact binary encoding of JSON-like data with a shared key dictionary.
"""

from pson.config import EncoderConfig
from pson.dictionary import Dictionary
from pson.encoder import Encoder
from pson.errors import UnsupportedValueError, WireFormatError
from pson.values import UNDEFINED, Frozen

__version__ = "0.4.0"
__author__ = "pson contributors"

# Package metadata
__title__ = "pson"
__description__ = "Compact binary JSON encoding with a shared key dictionary"

__license__ = "MIT"

# Version tuple for programmatic access (major, minor, patch)
VERSION = (0, 4, 0)

__all__ = [
    "__version__",
    "VERSION",
    # Encoding
    "Encoder",
    "EncoderConfig",
    "Dictionary",
    # Input markers
    "UNDEFINED",
    "Frozen",
    # Errors
    "UnsupportedValueError",
    "WireFormatError",
]
