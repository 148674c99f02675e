"""What a catalog workflow hands back to the web layer."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from services.validation import FieldError


@dataclass
class Choice:
    """One option of a select / checkbox list, marked when already chosen."""
    entity: Any
    selected: bool = False


@dataclass
class RenderForm:
    template: str
    title: str
    fields: Dict[str, Any]
    errors: List[FieldError] = field(default_factory=list)
    references: Dict[str, Any] = field(default_factory=dict)
    # set when editing an existing entity
    entity_id: Optional[str] = None


@dataclass
class RedirectTo:
    location: str


@dataclass
class RenderDetail:
    template: str
    title: str
    entity: Any
    related: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NotFound:
    kind: str
    entity_id: str


Outcome = Union[RenderForm, RedirectTo, RenderDetail, NotFound]
