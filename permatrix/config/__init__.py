from .loader import load_config
from .models import CsvConfig, JsonConfig, PermatrixConfig

__all__ = [
    "CsvConfig",
    "JsonConfig",
    "PermatrixConfig",
    "load_config",
]
