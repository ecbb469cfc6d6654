import itertools

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from famchart.models import Person, Relationship  # noqa: E402

SAMPLE_GEDCOM = """\
0 HEAD
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 25 NOV 1900
1 DEAT
2 DATE 1970
1 OCCU Farmer
2 DATE 1925
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 BIRT
2 DATE ABT 1902
1 DEAT
2 DATE 3 MAR 1980
0 @I3@ INDI
1 NAME Alice /Smith/
1 SEX F
1 BIRT
2 DATE JAN 1930
1 RESI
2 DATE FROM 1950 TO 1960
2 PLAC Leeds
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
1 MARR
2 DATE 1925
0 TRLR
"""


@pytest.fixture
def person():
    """Factory for people whose name sorts by the id: person("b") is "B Tester"."""

    def make(person_id, given=None, surname="Tester", **kwargs):
        return Person(person_id, given or person_id.upper(), surname, **kwargs)

    return make


@pytest.fixture
def rel():
    counter = itertools.count(1)

    def make(rel_type, person_id1, person_id2):
        return Relationship(f"rel_{next(counter)}", rel_type, person_id1, person_id2)

    return make


@pytest.fixture
def gedcom_file(tmp_path):
    path = tmp_path / "family.ged"
    path.write_text(SAMPLE_GEDCOM, encoding="utf-8")
    return path
