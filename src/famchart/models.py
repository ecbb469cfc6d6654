"""Data classes for family tree entities."""

from dataclasses import dataclass, field

# Relationship types
PARENT_CHILD = "parent_child"
SPOUSE = "spouse"
PARTNER = "partner"
SIBLING = "sibling"
HALF_SIBLING = "half_sibling"

RELATIONSHIP_TYPES = frozenset({PARENT_CHILD, SPOUSE, PARTNER, SIBLING, HALF_SIBLING})
COUPLE_TYPES = frozenset({SPOUSE, PARTNER})
SIBLING_TYPES = frozenset({SIBLING, HALF_SIBLING})

# Claim (life event) types, in display order
CLAIM_TYPES = (
    "birth",
    "death",
    "marriage",
    "divorce",
    "residence",
    "occupation",
    "workplace",
    "education",
    "military_service",
    "immigration",
    "emigration",
    "naturalization",
    "religion",
    "name_change",
    "custom",
)

# Claim types that may be marked as ongoing ("current residence")
CURRENT_ELIGIBLE_CLAIM_TYPES = frozenset({"residence", "occupation", "education", "military_service"})


@dataclass(frozen=True)
class Person:
    id: str
    given_names: str | None = None
    surnames: str | None = None
    is_living: bool = False
    birth_date: str | None = None  # "YYYY", "YYYY-MM" or "YYYY-MM-DD"
    death_date: str | None = None
    sex: str | None = None  # M, F or None
    is_ongoing: bool = False

    @property
    def full_name(self) -> str:
        name = " ".join(part for part in (self.given_names, self.surnames) if part)
        return name or "Unknown"

    @property
    def sort_name(self) -> str:
        return f"{self.surnames or ''} {self.given_names or ''}".strip()


@dataclass(frozen=True)
class Relationship:
    id: str
    type: str  # parent_child, spouse, partner, sibling, half_sibling
    person_id1: str  # parent for parent_child
    person_id2: str  # child for parent_child


@dataclass(frozen=True)
class ClaimValue:
    date: str | None = None
    date_end: str | None = None
    is_current: bool = False
    description: str | None = None


@dataclass(frozen=True)
class Claim:
    id: str
    subject_id: str
    claim_type: str
    value: ClaimValue = field(default_factory=ClaimValue)
    person_name: str | None = None


def person_sort_key(person_id: str, people_by_id: dict[str, Person]) -> tuple:
    """
    Deterministic ordering key: surname + given name, then id.

    Ids that are not in ``people_by_id`` sort after every known person.
    """
    person = people_by_id.get(person_id)
    if person is None:
        return (1, "", person_id)
    return (0, person.sort_name.casefold(), person_id)
