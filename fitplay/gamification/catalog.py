"""
Catalog Loading

Quests, badges and challenge templates are static, read-only inputs to the
engine. The built-in definitions can be replaced per section by a JSON file:

    {
        "quests": [...],
        "badges": [...],
        "challenge_templates": [...]
    }

Missing sections keep the built-in definitions. Invalid entries or
duplicate IDs abort loading with ConfigurationError.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fitplay.config import CATALOG_PATH
from fitplay.exceptions import ConfigurationError
from fitplay.models.catalog import Badge, ChallengeTemplate, Quest
from fitplay.gamification.badge_system import BADGE_CATALOG
from fitplay.gamification.challenges import CHALLENGE_TEMPLATES
from fitplay.gamification.quest_system import DAILY_QUESTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Catalog:
    """Immutable set of engine catalogs"""
    quests: Tuple[Quest, ...]
    badges: Tuple[Badge, ...]
    challenge_templates: Tuple[ChallengeTemplate, ...]


def default_catalog() -> Catalog:
    """Built-in catalogs"""
    return Catalog(
        quests=tuple(DAILY_QUESTS),
        badges=tuple(BADGE_CATALOG),
        challenge_templates=tuple(CHALLENGE_TEMPLATES),
    )


def _parse_section(
    section: str,
    entries: Any,
    model: Type[BaseModel]
) -> Tuple[BaseModel, ...]:
    """Validate one catalog section"""
    if not isinstance(entries, list):
        raise ConfigurationError(
            message=f"Catalog section '{section}' must be a list",
            config_key=section
        )

    try:
        parsed = tuple(model.model_validate(entry) for entry in entries)
    except PydanticValidationError as e:
        raise ConfigurationError(
            message=f"Invalid entry in catalog section '{section}': {e}",
            config_key=section,
            cause=e
        )

    _check_unique_ids(section, parsed)
    return parsed


def _check_unique_ids(section: str, entries: Sequence[BaseModel]) -> None:
    seen = set()
    for entry in entries:
        if entry.id in seen:
            raise ConfigurationError(
                message=f"Duplicate id '{entry.id}' in catalog section '{section}'",
                config_key=section
            )
        seen.add(entry.id)


def parse_catalog(data: Dict[str, Any]) -> Catalog:
    """
    Build a Catalog from decoded JSON

    Raises:
        ConfigurationError: Invalid structure, entries, or duplicate IDs
    """
    if not isinstance(data, dict):
        raise ConfigurationError(message="Catalog must be a JSON object")

    base = default_catalog()
    quests = base.quests
    badges = base.badges
    templates = base.challenge_templates

    if "quests" in data:
        quests = _parse_section("quests", data["quests"], Quest)
    if "badges" in data:
        badges = _parse_section("badges", data["badges"], Badge)
    if "challenge_templates" in data:
        templates = _parse_section("challenge_templates", data["challenge_templates"], ChallengeTemplate)

    return Catalog(quests=quests, badges=badges, challenge_templates=templates)


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """
    Load catalogs from a JSON file, or the built-ins when no file is set

    Args:
        path: JSON file (defaults to CATALOG_PATH)

    Returns:
        Catalog

    Raises:
        ConfigurationError: Unreadable file or invalid catalog data
    """
    path = Path(path) if path is not None else CATALOG_PATH
    if path is None:
        return default_catalog()

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            message=f"Could not read catalog file {path}: {e}",
            config_key="CATALOG_PATH",
            cause=e
        )

    catalog = parse_catalog(data)
    logger.info(
        f"Loaded catalog from {path}: {len(catalog.quests)} quests, "
        f"{len(catalog.badges)} badges, {len(catalog.challenge_templates)} challenge templates"
    )
    return catalog
