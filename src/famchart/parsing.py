"""GEDCOM parsing and date handling utilities."""

from datetime import date
from pathlib import Path
import re

from ged4py import GedcomReader

from famchart.models import PARENT_CHILD, SPOUSE, Claim, ClaimValue, Person, Relationship

# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

# Individual event tags that become life-event claims
INDI_CLAIM_TAGS = {
    "RESI": "residence",
    "OCCU": "occupation",
    "EDUC": "education",
    "EMIG": "emigration",
    "IMMI": "immigration",
    "NATU": "naturalization",
    "RELI": "religion",
}

# Family event tags, recorded once for each spouse
FAM_CLAIM_TAGS = {
    "MARR": "marriage",
    "DIV": "divorce",
}

# People with no death record born longer ago than this are not treated as living
MAX_LIFESPAN = 110

QUALIFIER_PATTERN = re.compile(
    r"^(ABOUT|ABT|BEFORE|BEF|AFTER|AFT|ESTIMATED|EST|CALCULATED|CAL|CIRCA|CA|AROUND)\b\.?:?\s*",
    flags=re.IGNORECASE,
)
RANGE_PATTERN = re.compile(
    r"^(?:FROM\s+(?P<start>.+?)\s+TO\s+(?P<end>.+)|BET\.?\s+(?P<low>.+?)\s+AND\s+(?P<high>.+))$",
    flags=re.IGNORECASE,
)


def normalize_xref(xref_id: str) -> str:
    """'@I_347421849@' -> 'I_347421849'."""
    normalized = xref_id.strip().strip("@")
    if not normalized:
        raise ValueError(f"Empty GEDCOM xref: {xref_id!r}")
    return normalized


def _iso(year: int, month: int | None = None, day: int | None = None) -> str | None:
    """ISO string at the precision that is known: YYYY, YYYY-MM or YYYY-MM-DD."""
    if month is None:
        return f"{year:04d}"
    if not 1 <= month <= 12:
        return None
    if day is None:
        return f"{year:04d}-{month:02d}"
    if not 1 <= day <= 31:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a GEDCOM or free-text date string into ISO format.

    The result keeps only the precision present in the input, so "NOV 1954"
    gives "1954-11" and "1698" gives "1698". Returns None if the date cannot
    be parsed.

    Handles formats like:
    - "25 NOV 1954"
    - "ABOUT 1905"
    - "JAN 1905"
    - "(01-27-1920)" and "(05/15/1923)" (month first)
    - "(04 05 1911)"
    - "(02 May1838)"
    - "(1839-08-29)" and "(About:1746-00-00)"
    - "(SEPT. 17,1910)" and "(Oct.12,1929)"
    - "(May, 1837)"
    - "(1789?)"
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = QUALIFIER_PATTERN.sub("", s).strip()
    if not s:
        return None

    # ISO, with 00 month/day meaning unknown
    match = re.match(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$", s)
    if match:
        month = int(match.group(2))
        day = int(match.group(3)) if match.group(3) else 0
        if month == 0:
            return _iso(int(match.group(1)))
        return _iso(int(match.group(1)), month, day or None)

    # Year only
    match = re.match(r"^(\d{4})$", s)
    if match:
        return _iso(int(match.group(1)))

    # Day, month name, year: "25 NOV 1954", "02 May1838", "11 Aug. 1968"
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(2).upper())
        return _iso(int(match.group(3)), month, int(match.group(1))) if month else None

    # Month name, year: "NOV 1954", "May, 1837"
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        return _iso(int(match.group(2)), month) if month else None

    # Month name, day, year: "April 17, 1850", "SEPT. 17,1910"
    match = re.match(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        return _iso(int(match.group(3)), month, int(match.group(2))) if month else None

    # Numeric, month first: "01-27-1920", "1/15/1957", "04 05 1911"
    match = re.match(r"^(\d{1,2})[-/\s](\d{1,2})[-/\s](\d{4})$", s)
    if match:
        return _iso(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    return None


def parse_date_range(date_str: str | None) -> tuple[str | None, str | None]:
    """Split "FROM x TO y" / "BET x AND y" into two ISO dates; plain dates give (date, None)."""
    if not date_str:
        return (None, None)
    match = RANGE_PATTERN.match(date_str.strip())
    if match:
        start = match.group("start") or match.group("low")
        end = match.group("end") or match.group("high")
        return (parse_date_string(start), parse_date_string(end))
    return (parse_date_string(date_str), None)


def parse_gedcom(filepath: Path) -> GedcomReader:
    """Parse a GEDCOM file and return the reader object."""
    return GedcomReader(str(filepath))


def extract_name_parts(indi) -> tuple[str | None, str | None]:
    """Extract given names and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return (None, None)

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        given, surname, _ = name_rec.value
        return (given or None, surname or None)

    # Fallback: string format "Given /Surname/"
    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    if givn or surn:
        return (givn.value if givn else None, surn.value if surn else None)

    match = re.match(r"^(.*?)\s*/(.*)/", str(name_rec.value))
    if match:
        return (match.group(1) or None, match.group(2) or None)
    return (str(name_rec.value).strip() or None, None)


def extract_event_date(record, tag: str) -> str | None:
    """Raw date string of the first ``tag`` event, if any."""
    event = record.sub_tag(tag)
    if event is None:
        return None
    date_rec = event.sub_tag("DATE")
    # ged4py may return DateValue objects
    return str(date_rec.value) if date_rec and date_rec.value else None


def extract_sex(indi) -> str | None:
    """Extract sex from an individual record."""
    sex_rec = indi.sub_tag("SEX")
    return sex_rec.value if sex_rec else None


def _event_claims(record, subject_ids: list[str], tags: dict[str, str], prefix: str) -> list[Claim]:
    """One claim per subject for every dated or described event under ``record``."""
    claims: list[Claim] = []
    for tag, claim_type in tags.items():
        for n, event in enumerate(record.sub_tags(tag)):
            date_rec = event.sub_tag("DATE")
            place_rec = event.sub_tag("PLAC")
            start, end = parse_date_range(str(date_rec.value) if date_rec and date_rec.value else None)

            # OCCU and RELI carry their text as the tag value
            parts = [str(event.value)] if isinstance(event.value, str) and event.value else []
            if place_rec and place_rec.value:
                parts.append(str(place_rec.value))
            description = ", ".join(parts) or None

            if start is None and description is None:
                continue
            for subject_id in subject_ids:
                claims.append(
                    Claim(
                        id=f"{prefix}-{tag}-{n}-{subject_id}",
                        subject_id=subject_id,
                        claim_type=claim_type,
                        value=ClaimValue(date=start, date_end=end, description=description),
                    )
                )
    return claims


def normalize_data(
    reader: GedcomReader, today: date | None = None
) -> tuple[list[Person], list[Relationship], list[Claim]]:
    """
    Extract people, relationships and life-event claims from parsed GEDCOM data.
    Ignores non-standard Ancestry-specific tags (starting with _).
    """
    today = today or date.today()
    people: list[Person] = []
    relationships: list[Relationship] = []
    claims: list[Claim] = []

    # First pass: individuals and their own events
    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        person_id = normalize_xref(rec.xref_id)
        given_names, surnames = extract_name_parts(rec)
        birth_date = parse_date_string(extract_event_date(rec, "BIRT"))
        death_date = parse_date_string(extract_event_date(rec, "DEAT"))
        born_long_ago = birth_date is not None and int(birth_date[:4]) < today.year - MAX_LIFESPAN

        people.append(
            Person(
                id=person_id,
                given_names=given_names,
                surnames=surnames,
                is_living=rec.sub_tag("DEAT") is None and not born_long_ago,
                birth_date=birth_date,
                death_date=death_date,
                sex=extract_sex(rec),
            )
        )
        claims.extend(_event_claims(rec, [person_id], INDI_CLAIM_TAGS, person_id))

    # Second pass: family records
    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue
        fam_id = normalize_xref(rec.xref_id)

        spouse_ids = [
            normalize_xref(sub.xref_id)
            for sub in (rec.sub_tag("HUSB"), rec.sub_tag("WIFE"))
            if sub is not None and sub.xref_id
        ]
        child_ids = [normalize_xref(child.xref_id) for child in rec.sub_tags("CHIL") if child.xref_id]

        if len(spouse_ids) == 2:
            relationships.append(Relationship(f"{fam_id}-spouse", SPOUSE, spouse_ids[0], spouse_ids[1]))
            claims.extend(_event_claims(rec, spouse_ids, FAM_CLAIM_TAGS, fam_id))

        for child_id in child_ids:
            for parent_id in spouse_ids:
                relationships.append(
                    Relationship(f"{fam_id}-{parent_id}-{child_id}", PARENT_CHILD, parent_id, child_id)
                )

    return people, relationships, claims


def load_tree(filepath: Path) -> tuple[list[Person], list[Relationship], list[Claim]]:
    """Read a GEDCOM file into people, relationships and claims."""
    return normalize_data(parse_gedcom(filepath))
