"""
Rules file and knowledge base loading.

The rules file is YAML validated against app.models.schemas.RoutingConfig.
Any problem with it is fatal for startup and surfaces as RulesConfigError.
"""

from pathlib import Path
from typing import Union

import yaml
from loguru import logger
from pydantic import ValidationError

from app.models.schemas import RoutingConfig


class RulesConfigError(Exception):
    """Rules file could not be read or is invalid."""


def load_config(path: Union[str, Path]) -> RoutingConfig:
    """
    Load and validate the rules file.

    Args:
        path: Path to the YAML rules file

    Returns:
        Validated routing configuration

    Raises:
        RulesConfigError: If the file is unreadable, not YAML, or fails validation
    """
    path = Path(path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesConfigError(f"couldn't open file {path}: {e}") from e

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise RulesConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise RulesConfigError(f"Invalid rules file {path}: top level must be a mapping")

    try:
        config = RoutingConfig.model_validate(data)
    except ValidationError as e:
        raise RulesConfigError(f"Invalid rules file {path}: {e}") from e

    logger.info(f"Loaded {len(config.rules)} rules from {path}")
    return config


def load_knowledge_base(path: Union[str, Path, None], base_dir: Path = None) -> str:
    """
    Read the knowledge base text handed to the suggestion service.

    A missing or unreadable file is not fatal; the worker simply runs
    without extra knowledge.

    Args:
        path: Knowledge base path from the rules file (may be empty)
        base_dir: Directory that relative paths are resolved against

    Returns:
        File contents, or an empty string
    """
    if not path:
        return ""

    kb_path = Path(path).expanduser()
    if not kb_path.is_absolute() and base_dir is not None:
        kb_path = base_dir / kb_path

    try:
        return kb_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read knowledge base {kb_path}: {e}")
        return ""
