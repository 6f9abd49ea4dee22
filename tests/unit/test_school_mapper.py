"""
Unit tests for school mapping
"""

from decimal import Decimal

import pytest

from legacy_import.mappers import SchoolDataMapper, ValidationContext
from legacy_import.records import LegacySchoolRecord

pytestmark = pytest.mark.unit


def _school(**overrides):
    values = dict(school_id=1, short_school="Noord", school_description="Laerskool Noord",
                  print_invoice=True, import_flag=True)
    values.update(overrides)
    return LegacySchoolRecord(**values)


class TestSchoolDataMapper:
    """Test legacy School -> School"""

    def test_maps_basic_fields(self):
        result = SchoolDataMapper().map(_school(price=150.1, formula=2.5, taal="Afr", kluis="Code 12"))

        assert result.success
        assert not result.has_warnings
        school = result.data
        assert school.id == 1
        assert school.legacy_id == "1"
        assert school.name == "Laerskool Noord"
        assert school.short_name == "Noord"
        assert school.price == Decimal("150.1")
        assert school.formula == Decimal("2.5")
        assert school.language == "Afr"
        assert school.safe_notes == "Code 12"
        assert school.print_invoice is True
        assert school.is_active is True

    def test_name_falls_back_to_short_name(self):
        result = SchoolDataMapper().map(_school(school_description="  "))

        assert result.data.name == "Noord"
        assert not result.has_warnings

    def test_missing_name_is_a_warning(self):
        result = SchoolDataMapper().map(_school(school_id=4, school_description=None, short_school=None))

        assert result.success
        assert result.data.name == ""
        assert result.warnings[0].field == "Name"
        assert result.warnings[0].message == "School 4 is missing a description and short name."

    def test_long_values_are_truncated(self):
        result = SchoolDataMapper().map(_school(contact_person="x" * 300))

        assert result.success
        assert len(result.data.contact_person) == 255
        warning = result.warnings[0]
        assert warning.field == "ContactPerson"
        assert warning.message == "School 1: ContactPerson truncated from 300 to 255 characters."
        assert warning.original_value == "300"
        assert warning.mapped_value == "255"

    def test_unknown_truck_is_set_to_null(self):
        mapper = SchoolDataMapper(ValidationContext(valid_truck_ids=frozenset({1, 2})))
        result = mapper.map(_school(trok=3))

        assert result.success
        assert result.data.truck_id is None
        warning = result.warnings[0]
        assert warning.field == "TruckId"
        assert warning.message == "School 1 references invalid TruckId 3. Truck will be set to null."
        assert warning.original_value == "3"
        assert warning.mapped_value is None

    def test_known_truck_is_kept(self):
        mapper = SchoolDataMapper(ValidationContext(valid_truck_ids=frozenset({1, 2})))

        assert mapper.map(_school(trok=2)).data.truck_id == 2

    def test_truck_not_checked_without_truck_set(self):
        result = SchoolDataMapper().map(_school(trok=9))

        assert result.data.truck_id == 9
        assert not result.has_warnings

    def test_empty_truck_set_rejects_every_truck(self):
        mapper = SchoolDataMapper(ValidationContext(valid_truck_ids=frozenset()))

        assert mapper.map(_school(trok=1)).data.truck_id is None

    def test_map_many(self):
        batch = SchoolDataMapper().map_many([_school(school_id=1), _school(school_id=2)])

        assert batch.success
        assert [s.id for s in batch.data] == [1, 2]
