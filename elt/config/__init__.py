from .load import load_config
from .model import EngineConfig, LINE_TERMINATORS, normalize_line_terminator
from .typed import ConfigLoadError, load_typed

__all__ = [
    "EngineConfig",
    "ConfigLoadError",
    "LINE_TERMINATORS",
    "load_config",
    "load_typed",
    "normalize_line_terminator",
]
