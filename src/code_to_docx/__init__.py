"""Render a source tree into a single Word document."""

from .config import AppConfig, ReadErrorPolicy, load_config
from .core import ConversionService
from .errors import ConversionError
from .models import ConversionResult

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "ConversionError",
    "ConversionResult",
    "ConversionService",
    "ReadErrorPolicy",
    "load_config",
    "__version__",
]
