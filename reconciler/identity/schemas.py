"""Identity reconciliation schemas.

Defines the query identity, candidate records returned by the search index
and identity store, and the per-stage and per-candidate result models.
"""

import hashlib
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Leading run of the name up to the first date or parenthetical qualifier
_NAME_ONLY_PATTERN = re.compile(r"^[^\d(\[]*")

FeatureVector = dict[str, float]


class EntityType(str, Enum):
    """Kind of real-world entity an identity describes."""

    PERSON = "person"
    CORPORATE_BODY = "corporateBody"
    FAMILY = "family"

    @classmethod
    def from_term(cls, term: str | None) -> "EntityType | None":
        """Parse an index/store term, returning None for unknown terms."""
        if not term:
            return None
        try:
            return cls(term)
        except ValueError:
            return None


class AlternateId(BaseModel):
    """Link from an identity to a record in an external vocabulary."""

    model_config = ConfigDict(frozen=True)

    uri: str | None = Field(default=None, description="External record URI")
    link_type: str | None = Field(
        default=None, description="Link type term, e.g. sameAs or viafID"
    )


class Identity(BaseModel):
    """Identity submitted for reconciliation.

    Carries the preferred name entry exactly as written (the original
    unparsed input when built from a bare query string), plus whatever
    structured evidence the caller has.
    """

    model_config = ConfigDict(frozen=True)

    name_entry: str = Field(default="", description="Preferred name entry as written")
    entity_type: EntityType | None = Field(default=None)
    alternate_ids: list[AlternateId] = Field(default_factory=list)
    relation_count: int | None = Field(
        default=None, ge=0, description="Number of relations to other identities"
    )

    @property
    def name_only(self) -> str:
        """Preferred name without trailing dates or qualifiers.

        "Washington, George, 1732-1799" -> "Washington, George"
        """
        match = _NAME_ONLY_PATTERN.match(self.name_entry)
        name = match.group(0).rstrip(" ,-") if match else ""
        return name or self.name_entry.strip()

    def fingerprint(self) -> str:
        """Content hash of the name entry."""
        return hashlib.md5(self.name_entry.encode("utf-8")).hexdigest()


class CandidateRecord(Identity):
    """Identity already known to the identity store or search index."""

    id: str | None = Field(default=None, description="Store identifier")
    ark_id: str | None = Field(default=None, description="ARK identifier")

    def unique_id(self) -> str:
        """Key used to decide whether two candidates are the same entity.

        The store identifier when there is one, otherwise the name fingerprint.
        """
        if self.id is not None:
            return self.id
        return self.fingerprint()


class StageResult(BaseModel):
    """Single output of a stage.

    A result without a candidate is a global modifier: its strength applies to
    every candidate identified by the other stages.
    """

    candidate: CandidateRecord | None = Field(default=None)
    strength: float = Field(default=0.0)

    @property
    def is_global(self) -> bool:
        return self.candidate is None


class ScoredCandidate(BaseModel):
    """Candidate with its collated feature vector and final score."""

    candidate: CandidateRecord
    vector: FeatureVector = Field(default_factory=dict)
    score: float = Field(default=0.0)
