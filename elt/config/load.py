from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .model import EngineConfig
from .typed import ConfigLoadError, load_typed

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


def load_config(path: Optional[Path]) -> EngineConfig:
    """
    Загружает EngineConfig из YAML-файла.

    • path is None — конфигурация по умолчанию.
    • Пустой файл — тоже по умолчанию.
    • Корень документа должен быть mapping.
    """
    if path is None:
        return EngineConfig()

    path = Path(path)
    if not path.is_file():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        raw = _yaml.load(path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise ConfigLoadError(f"{path}: invalid YAML: {e}") from e

    if raw is None:
        raw = {}
    try:
        cfg = load_typed(EngineConfig, raw)
    except ConfigLoadError as e:
        raise ConfigLoadError(f"{path}: {e}") from e
    except ValueError as e:
        # неизвестное имя разделителя строк из __post_init__
        raise ConfigLoadError(f"{path}: $.line_terminator: {e}") from e

    logger.debug("Loaded config from %s: %r", path, cfg)
    return cfg


__all__ = ["load_config"]
