"""
School mapping
Legacy School element -> School entity. A school is never rejected: a missing name and
an unknown truck are reported as warnings.
"""

import logging
from typing import List

from ..models import School
from ..records import LegacySchoolRecord
from ..utils import first_non_blank, float_to_decimal, normalize_string
from .base import BaseDataMapper, MappingResult, MappingWarning

logger = logging.getLogger(__name__)

# School attribute <- legacy attribute, field name used in warnings
TEXT_FIELDS = [
    ("short_name", "short_school", "ShortName"),
    ("fee_description", "formula_description", "FeeDescription"),
    ("visit_day", "day", "VisitDay"),
    ("visit_sequence", "sequence", "VisitSequence"),
    ("contact_person", "contact_person", "ContactPerson"),
    ("contact_cell", "contact_cell", "ContactCell"),
    ("telephone", "telephone", "Telephone"),
    ("fax", "fax", "Fax"),
    ("email", "email_address", "Email"),
    ("circulars_email", "omsendbriewe", "CircularsEmail"),
    ("address", "address1", "Address"),
    ("address2", "address2", "Address2"),
    ("headmaster", "headmaster", "Headmaster"),
    ("headmaster_cell", "headmaster_cell", "HeadmasterCell"),
    ("money_message", "money_message", "MoneyMessage"),
    ("language", "taal", "Language"),
    ("afterschool1_name", "naskool1_name", "Afterschool1Name"),
    ("afterschool1_contact", "naskool1_contact", "Afterschool1Contact"),
    ("afterschool2_name", "naskool2_name", "Afterschool2Name"),
    ("afterschool2_contact", "naskool2_contact", "Afterschool2Contact"),
    ("safe_notes", "kluis", "SafeNotes"),
    ("web_page", "web_page", "WebPage"),
    ("kcow_web_page_link", "kcow_web_page_link", "KcowWebPageLink"),
]


class SchoolDataMapper(BaseDataMapper[LegacySchoolRecord, School]):
    """Maps legacy schools; validates Trok against the known trucks when a truck set is given"""

    entity_label = "School"

    def map(self, record: LegacySchoolRecord) -> MappingResult[School]:
        warnings: List[MappingWarning] = []

        name = first_non_blank(record.school_description, record.short_school) or ""
        if not name:
            warnings.append(MappingWarning(
                "Name", f"School {record.school_id} is missing a description and short name."))
        name = self._truncate(warnings, record.school_id, "Name", name)

        truck_id = self._check_truck(warnings, record.trok, f"School {record.school_id}")

        text_values = {
            attr: self._truncate(warnings, record.school_id, label,
                                 normalize_string(getattr(record, source)))
            for attr, source, label in TEXT_FIELDS
        }

        school = School(
            id=record.school_id,
            name=name,
            truck_id=truck_id,
            price=float_to_decimal(record.price),
            formula=float_to_decimal(record.formula),
            print_invoice=record.print_invoice,
            import_flag=record.import_flag,
            legacy_id=str(record.school_id),
            is_active=True,
            **text_values,
        )
        return MappingResult.ok(school, warnings)
