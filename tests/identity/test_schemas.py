"""Tests for identity schemas."""

import hashlib

import pytest
from pydantic import ValidationError

from reconciler.identity.schemas import (
    AlternateId,
    CandidateRecord,
    EntityType,
    Identity,
    ScoredCandidate,
    StageResult,
)


class TestNameOnly:
    """Tests for Identity.name_only parsing."""

    def test_strips_dates(self):
        """Trailing life dates should be dropped."""
        identity = Identity(name_entry="Washington, George, 1732-1799")
        assert identity.name_only == "Washington, George"

    def test_strips_parenthetical_qualifier(self):
        """Parenthetical qualifiers should be dropped."""
        identity = Identity(name_entry="Smith, John (Architect)")
        assert identity.name_only == "Smith, John"

    def test_plain_name_unchanged(self):
        """A name without qualifiers should pass through."""
        assert Identity(name_entry="George Washington").name_only == "George Washington"

    def test_keeps_non_ascii_letters(self):
        """Accented names should not be truncated."""
        identity = Identity(name_entry="Müller, Jürgen, 1901-1980")
        assert identity.name_only == "Müller, Jürgen"

    def test_falls_back_to_entry_when_name_starts_with_digits(self):
        """Names that start with a number keep the whole entry."""
        identity = Identity(name_entry=" 1776 Society ")
        assert identity.name_only == "1776 Society"

    def test_empty_entry(self):
        """Empty entry yields empty name."""
        assert Identity().name_only == ""


class TestCandidateIdentity:
    """Tests for candidate unique ids and fingerprints."""

    def test_unique_id_uses_store_id(self):
        """Store id should identify the candidate when present."""
        candidate = CandidateRecord(id="42", name_entry="Washington, George")
        assert candidate.unique_id() == "42"

    def test_unique_id_falls_back_to_fingerprint(self):
        """Without a store id the name fingerprint identifies the candidate."""
        candidate = CandidateRecord(name_entry="Washington, George")
        expected = hashlib.md5(b"Washington, George").hexdigest()
        assert candidate.unique_id() == expected
        assert candidate.fingerprint() == expected

    def test_same_id_different_names_same_entity(self):
        """Equality of entities is decided by store id only."""
        a = CandidateRecord(id="7", name_entry="Twain, Mark")
        b = CandidateRecord(id="7", name_entry="Clemens, Samuel")
        assert a.unique_id() == b.unique_id()


class TestEntityType:
    """Tests for EntityType term parsing."""

    @pytest.mark.parametrize(
        ("term", "expected"),
        [
            ("person", EntityType.PERSON),
            ("corporateBody", EntityType.CORPORATE_BODY),
            ("family", EntityType.FAMILY),
            ("spaceship", None),
            ("", None),
            (None, None),
        ],
    )
    def test_from_term(self, term, expected):
        assert EntityType.from_term(term) is expected


def test_identity_is_immutable():
    """Query identities must not change during a call."""
    identity = Identity(name_entry="George Washington")
    with pytest.raises(ValidationError):
        identity.name_entry = "Martha Washington"


def test_negative_relation_count_rejected():
    """Relation count is a non-negative integer."""
    with pytest.raises(ValidationError):
        Identity(name_entry="X", relation_count=-1)


def test_identity_parses_alternate_ids():
    """Alternate ids should parse from JSON-like data."""
    identity = Identity.model_validate(
        {
            "name_entry": "Washington, George",
            "entity_type": "person",
            "alternate_ids": [
                {"uri": "http://viaf.org/viaf/31432428", "link_type": "sameAs"}
            ],
        }
    )
    assert identity.entity_type is EntityType.PERSON
    assert identity.alternate_ids == [
        AlternateId(uri="http://viaf.org/viaf/31432428", link_type="sameAs")
    ]


def test_stage_result_global_flag():
    """A result without a candidate is a global modifier."""
    assert StageResult(strength=2.0).is_global
    assert not StageResult(candidate=CandidateRecord(id="1"), strength=2.0).is_global


def test_scored_candidate_defaults():
    """Scored candidates start with an empty vector and zero score."""
    scored = ScoredCandidate(candidate=CandidateRecord(id="1"))
    assert scored.vector == {}
    assert scored.score == 0.0
