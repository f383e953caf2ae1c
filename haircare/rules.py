"""Rule table: ordered, immutable canned replies loaded once per process.

A rule's priority is its position in the table. Earlier rules win.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from haircare.config import settings
from haircare.errors import ValidationError
from haircare.models.profile import HairType, ScalpCondition

logger = logging.getLogger(__name__)


class Rule(BaseModel):
    """One entry of the knowledge table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    keywords: tuple[Annotated[str, Field(min_length=1)], ...] = Field(min_length=1)
    hair_type: Optional[HairType] = Field(default=None, alias="hairType")
    scalp: Optional[ScalpCondition] = None
    response: str = Field(min_length=1)


RuleTable = tuple[Rule, ...]

_rules_adapter = TypeAdapter(list[Rule])
_prompts_adapter = TypeAdapter(list[str])


def load_rules(path: Path) -> RuleTable:
    """
    Parse a JSON rule file.

    Raises:
        ValidationError: If the file is unreadable or an entry is malformed
    """
    try:
        raw = Path(path).read_bytes()
        rules = _rules_adapter.validate_json(raw)
    except (OSError, PydanticValidationError) as e:
        raise ValidationError(f"Invalid rule table {path}: {e}") from e

    logger.info(f"Loaded {len(rules)} response rules from {path}")
    return tuple(rules)


@lru_cache(maxsize=None)
def get_rules(path: Optional[Path] = None) -> RuleTable:
    """Process-wide rule table, read from disk on first use."""
    return load_rules(path or settings.rules_file)


@lru_cache(maxsize=None)
def get_prompts(path: Optional[Path] = None) -> tuple[str, ...]:
    """Suggested starter questions shown to users."""
    path = path or settings.prompts_file
    try:
        prompts = _prompts_adapter.validate_python(json.loads(Path(path).read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        raise ValidationError(f"Invalid prompts file {path}: {e}") from e
    return tuple(prompts)
