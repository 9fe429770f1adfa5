"""Data model for the family graph: individuals, families and query results."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger("silsilah.models")


class SnapshotError(ValueError):
    """Raised when a family snapshot document cannot be read or validated."""


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================================
# Records
# ============================================================================

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class DetailEntry(CamelModel):
    """Free-form profile detail (education, work, source, reference)."""
    id: str | None = None
    title: str = ""
    description: str = ""
    period: str | None = None


class Individual(CamelModel):
    """A person record in the genealogy graph."""
    id: str
    name: str = Field(min_length=1)
    gender: Gender = Gender.UNKNOWN
    birth_date: str | None = None
    birth_place: str | None = None
    death_date: str | None = None
    death_place: str | None = None
    child_in_family_id: str | None = None
    photo_url: str | None = None
    profession: str | None = None
    description: str | None = None
    notes: str | None = None
    education: list[DetailEntry] = []
    works: list[DetailEntry] = []
    sources: list[DetailEntry] = []
    related_references: list[DetailEntry] = []

    @field_validator("gender", mode="before")
    @classmethod
    def _normalize_gender(cls, value: Any) -> Any:
        if value is None:
            return Gender.UNKNOWN
        if isinstance(value, str):
            value = value.strip().lower()
            return {"m": "male", "f": "female", "": "unknown"}.get(value, value)
        return value

    @field_validator("education", "works", "sources", "related_references", mode="before")
    @classmethod
    def _null_details(cls, value: Any) -> Any:
        # The database stores missing detail lists as NULL
        return [] if value is None else value


class Family(CamelModel):
    """A union record linking up to two spouses and their children."""
    id: str
    spouse1_id: str | None = None
    spouse2_id: str | None = None
    children_ids: list[str] = []
    marriage_date: str | None = None
    marriage_place: str | None = None
    divorce_date: str | None = None
    divorce_place: str | None = None

    @field_validator("children_ids", mode="before")
    @classmethod
    def _unique_children(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(dict.fromkeys(value))
        return value

    def has_spouse(self, individual_id: str) -> bool:
        return individual_id in (self.spouse1_id, self.spouse2_id)

    def other_spouse(self, individual_id: str) -> str | None:
        """Return the partner of individual_id in this family, if any."""
        if self.spouse1_id == individual_id:
            return self.spouse2_id
        if self.spouse2_id == individual_id:
            return self.spouse1_id
        return None


# ============================================================================
# Snapshot
# ============================================================================

class FamilySnapshot(CamelModel):
    """A consistent, fully loaded pair of keyed collections."""
    individuals: dict[str, Individual] = {}
    families: dict[str, Family] = {}
    root_individual_id: str | None = None

    @field_validator("individuals", "families", mode="before")
    @classmethod
    def _key_records(cls, value: Any) -> Any:
        """Accept a list of records and key it by each record's id."""
        if isinstance(value, list):
            keyed = {}
            for record in value:
                record_id = record.get("id") if isinstance(record, dict) else getattr(record, "id", None)
                if record_id in keyed:
                    raise ValueError(f"Duplicate id {record_id!r}")
                keyed[record_id] = record
            return keyed
        return value

    @model_validator(mode="after")
    def _keys_match_ids(self) -> "FamilySnapshot":
        for collection in (self.individuals, self.families):
            for key, record in collection.items():
                if key != record.id:
                    raise ValueError(f"Record keyed {key!r} has id {record.id!r}")
        return self

    @classmethod
    def from_records(
        cls,
        individuals: Iterable[Individual],
        families: Iterable[Family],
        root_individual_id: str | None = None,
    ) -> "FamilySnapshot":
        return cls(
            individuals=list(individuals),
            families=list(families),
            root_individual_id=root_individual_id,
        )


def parse_snapshot(content: str | bytes) -> FamilySnapshot:
    """Parse a JSON family snapshot document."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError("Snapshot document must be a JSON object")

    try:
        snapshot = FamilySnapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid family data: {e}") from e

    logger.debug(
        f"Parsed snapshot with {len(snapshot.individuals)} individuals "
        f"and {len(snapshot.families)} families"
    )
    return snapshot


def load_snapshot(file_path: str | Path) -> FamilySnapshot:
    """Load a family snapshot from a JSON file."""
    path = Path(file_path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise SnapshotError(f"Cannot read {path}: {e}") from e
    return parse_snapshot(content)


# ============================================================================
# Query Results
# ============================================================================

class Orientation(str, Enum):
    DESCENDANTS = "descendants"
    ANCESTORS = "ancestors"


class RelationshipKind(str, Enum):
    """Edge type of a hop, relative to the previous person on the path."""
    SELF = "Diri Sendiri"
    CHILD = "Anak"
    FATHER = "Ayah"
    MOTHER = "Ibu"
    SPOUSE = "Pasangan"

    @property
    def is_parent(self) -> bool:
        return self in (RelationshipKind.FATHER, RelationshipKind.MOTHER)


class PathNode(CamelModel):
    """One hop of a relationship path."""
    individual_id: str
    name: str
    relationship: RelationshipKind
    display_term: str | None = None


class TreeNode(CamelModel):
    """A node of a rooted hierarchy built for rendering."""
    individual: Individual
    children: list["TreeNode"] = []
    ahnentafel: int | None = None

    def size(self) -> int:
        """Total number of nodes in this subtree."""
        count = 0
        stack = [self]
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(node.children)
        return count

    def depth(self) -> int:
        """Number of levels in this subtree (a leaf has depth 1)."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest
