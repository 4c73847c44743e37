from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum

from feedsync.models.base import utcnow

class ChangeEventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

class ChangeEvent(BaseModel):
    """One row-level change pushed by the change feed"""
    schema_name: str = "public"
    table: str
    event_type: ChangeEventType
    new: Dict[str, Any] = Field(default_factory=dict)
    old: Dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: datetime = Field(default_factory=utcnow)

    @property
    def record(self) -> Dict[str, Any]:
        """Row the event is about: the old row for deletes, else the new one"""
        if self.event_type == ChangeEventType.DELETE:
            return self.old
        return self.new

class ChangeFilter(BaseModel):
    """Column equality filter written as ``column=eq.value``"""
    column: str
    value: str

    @classmethod
    def parse(cls, expression: Optional[str]) -> Optional["ChangeFilter"]:
        if not expression:
            return None
        column, sep, rest = expression.partition("=")
        operator, dot, value = rest.partition(".")
        if not sep or not dot or operator != "eq" or not column:
            raise ValueError(f"Unsupported change filter: {expression!r}")
        return cls(column=column.strip(), value=value)

    def matches(self, event: ChangeEvent) -> bool:
        value = event.record.get(self.column)
        return value is not None and str(value) == self.value

    def __str__(self) -> str:
        return f"{self.column}=eq.{self.value}"
