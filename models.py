"""
Shared Data Models for Smart Scraper

Contains the field model and the row type shared by the extraction engine,
the CLI and the API.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

# Selector meaning "the list item itself" rather than a descendant of it
WHOLE_ITEM = '_ROOT_'

# One extracted record: {"id": "row-<index>", <field id>: <value>, ...}
Row = Dict[str, str]


class FieldType(str, Enum):
    """How a field's value is read from its target node"""
    TEXT = 'TEXT'
    IMAGE = 'IMAGE'
    LINK = 'LINK'


class ScrapedField(BaseModel):
    """A user-defined column mapped to a relative selector"""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    selector: str
    type: FieldType = FieldType.TEXT
    sample_value: Optional[str] = None

    @field_validator('id', 'selector')
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    @property
    def is_whole_item(self) -> bool:
        return self.selector == WHOLE_ITEM

    def __repr__(self) -> str:
        return f"ScrapedField({self.id}, selector='{self.selector}', type={self.type.value})"
