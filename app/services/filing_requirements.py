"""Per-state annual/biennial report requirements.

The table is a versioned JSON asset keyed by full state name, then entity
type. It is read once on first use.
"""

import json
import logging
from functools import lru_cache

from app.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def load_filing_requirements() -> dict:
    with open(settings.filing_requirements_path, encoding="utf-8") as fh:
        data = json.load(fh)
    logger.info(
        "Loaded filing requirements version %s (%d states)",
        data.get("version"),
        len(data.get("states", {})),
    )
    return data


def table_version() -> str | None:
    return load_filing_requirements().get("version")


def get_filing_requirement(state: str, entity_type: str) -> dict | None:
    entry = load_filing_requirements().get("states", {}).get(state, {}).get(entity_type)
    if entry is None:
        return None
    return {
        "state": state,
        "entity_type": entity_type,
        "required": bool(entry.get("required", False)),
        "frequency": entry.get("frequency"),
        "notes": entry.get("notes"),
    }


def is_filing_required(state: str, entity_type: str) -> bool:
    # Unknown states and entity types are treated as not required.
    requirement = get_filing_requirement(state, entity_type)
    return bool(requirement and requirement["required"])
