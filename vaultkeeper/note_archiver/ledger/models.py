"""
Persisted state models.

Settings and ledger share one persisted blob:

    {
        "archiveFolderName": "Archive",
        "grouping": "NoGrouping" | "Year" | "Month" | "Date",
        "paths": [{"origin": "Notes/todo.md", "destination": "Archive/Notes/todo.md"}]
    }

The models validate that shape on load. Unknown top-level keys are kept so
that a newer writer's data survives a round trip through an older reader.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import DEFAULT_ARCHIVE_FOLDER, Grouping


@dataclass(frozen=True)
class RelocationRecord:
    """One completed archive operation.

    Attributes:
        origin: Where the note lived before it was archived
        destination: Where the note was moved to
    """

    origin: str
    destination: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {"origin": self.origin, "destination": self.destination}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelocationRecord:
        """Create from dictionary."""
        return cls(origin=data["origin"], destination=data["destination"])

    def __str__(self) -> str:
        return f"{self.origin} -> {self.destination}"


class RelocationRecordModel(BaseModel):
    """Validated form of a persisted ledger entry."""

    model_config = ConfigDict(extra="ignore")

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)

    def to_record(self) -> RelocationRecord:
        return RelocationRecord(origin=self.origin, destination=self.destination)


class PersistedState(BaseModel):
    """Validated form of the whole persisted blob."""

    model_config = ConfigDict(extra="allow")

    archiveFolderName: str = DEFAULT_ARCHIVE_FOLDER
    grouping: str = Grouping.NO_GROUPING.value
    paths: list[RelocationRecordModel] = Field(default_factory=list)

    @field_validator("grouping")
    @classmethod
    def _known_grouping(cls, value: str) -> str:
        Grouping.parse(value)
        return value

    def records(self) -> list[RelocationRecord]:
        """Ledger entries in persisted order."""
        return [entry.to_record() for entry in self.paths]

    def to_blob(self) -> dict[str, Any]:
        """Plain JSON-ready dictionary, extra keys included."""
        return self.model_dump(mode="json")
