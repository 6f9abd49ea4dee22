"""
Student mapping
Legacy Children element -> Student entity plus the family details carried on the record.
Only a missing Reference rejects a child; unresolved schools, class groups and unreadable
values are warnings.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..models import FamilyInfo, Student, StudentMappingData
from ..records import LegacyChildRecord
from ..utils import first_non_blank, normalize_string, parse_bool, parse_date, parse_decimal, parse_float, parse_int
from .base import BaseDataMapper, MappingResult, MappingWarning

logger = logging.getLogger(__name__)

# Student attribute <- legacy attribute, copied as-is
PLAIN_FIELDS = {
    "first_name": "child_name",
    "last_name": "child_surname",
    "gender": "sex",
    "language": "language",
    "account_person_name": "account_person_name",
    "account_person_surname": "account_person_surname",
    "account_person_id_number": "account_person_idnumber",
    "account_person_cellphone": "account_person_cellphone",
    "account_person_office": "account_person_office",
    "account_person_home": "account_person_home",
    "account_person_email": "account_person_email",
    "relation": "relation",
    "mother_name": "mother_name",
    "mother_surname": "mother_surname",
    "mother_office": "mother_office",
    "mother_cell": "mother_cell",
    "mother_home": "mother_home",
    "mother_email": "mother_email",
    "father_name": "father_name",
    "father_surname": "father_surname",
    "father_office": "father_office",
    "father_cell": "father_cell",
    "father_home": "father_home",
    "father_email": "father_email",
    "address1": "address1",
    "address2": "address2",
    "postal_code": "code",
    "school_name": "school_name",
    "class_group_code": "class_group",
    "grade": "grade",
    "teacher": "teacher",
    "attending_kcow_at": "attending_kcow_at",
    "aftercare": "aftercare",
    "extra": "extra",
    "terms": "terms",
    "seat": "seat",
    "truck": "truck",
    "family": "family",
    "sequence": "sequence",
    "financial_code": "financial_code",
    "deposit": "deposit",
    "pay_date": "pay_date",
    "tshirt_code": "tshirt_code",
    "tshirt_money1": "tshirt_money1",
    "tshirt_received1": "tshirt_received1",
    "receive_note1": "receive_note1",
    "tshirt_size1": "tshirt_size1",
    "tshirt_color1": "tshirt_color1",
    "tshirt_design1": "tshirt_design1",
    "tshirt_size2": "tshirt_size2",
    "tshirt_money2": "tshirt_money2",
    "tshirt_received2": "tshirt_received2",
    "receive_note2": "receive_note2",
    "tshirt_color2": "tshirt_color2",
    "tshirt_design2": "tshirt_design2",
    "indicator1": "indicator1",
    "indicator2": "indicator2",
    "general_note": "general_note",
    "accept_terms_cond": "accept_terms_cond",
    "status": "status",
    "sms_or_email": "sms_or_email",
    "book_email": "book_email",
    "report1_given_out": "report1_given_out",
    "account_given_out": "account_given_out",
    "certificate_printed": "certificate_printed",
    "report2_given_out": "report2_given_out",
    "social": "social",
    "activity_report_given_out": "activity_report_given_out",
    "photo_url": "photo",
}

# Student attribute <- legacy attribute, warning field name
DATE_FIELDS = [
    ("date_of_birth", "child_birthdate", "DateOfBirth"),
    ("home_time", "home_time", "HomeTime"),
    ("start_classes", "start_classes", "StartClasses"),
    ("tshirt_money_date1", "tshirt_money_date1", "TshirtMoneyDate1"),
    ("tshirt_rec_date1", "tshirt_rec_date1", "TshirtRecDate1"),
    ("tshirt_money_date2", "tshirt_money_date2", "TshirtMoneyDate2"),
    ("tshirt_rec_date2", "tshirt_rec_date2", "TshirtRecDate2"),
    ("school_close", "school_close", "SchoolClose"),
    ("legacy_created", "created", "LegacyCreated"),
    ("submitted", "submitted", "Submitted"),
    ("legacy_updated", "updated", "LegacyUpdated"),
    ("photo_updated", "photo_updated", "PhotoUpdated"),
]


def extract_family_info(record: LegacyChildRecord) -> Optional[FamilyInfo]:
    """Build family details when the child carries a family code"""
    family_name = normalize_string(record.family)
    if family_name is None:
        return None

    address_parts = [part.strip() for part in (record.address1, record.address2, record.code)
                     if part is not None and part.strip()]

    return FamilyInfo(
        family_name=family_name,
        primary_contact_name=first_non_blank(
            record.account_person_name, record.mother_name, record.father_name) or "",
        phone=first_non_blank(record.account_person_cellphone, record.mother_cell, record.father_cell),
        email=first_non_blank(record.account_person_email, record.mother_email, record.father_email),
        address=", ".join(address_parts) if address_parts else None,
    )


class StudentDataMapper(BaseDataMapper[LegacyChildRecord, StudentMappingData]):
    """Maps legacy children, resolving school names and class group codes to store ids"""

    entity_label = "Student"

    def map(self, record: LegacyChildRecord) -> MappingResult[StudentMappingData]:
        reference = normalize_string(record.reference)
        if reference is None:
            return MappingResult.fail("Reference", "Student has no Reference - skipping import.")

        warnings: List[MappingWarning] = []

        school_name = normalize_string(record.school_name)
        school_id = self._resolve(warnings, self.context.school_ids_by_name, school_name,
                                  "SchoolId", "School")

        class_group_code = normalize_string(record.class_group)
        class_group_id = self._resolve(warnings, self.context.class_group_ids_by_code, class_group_code,
                                       "ClassGroupId", "ClassGroup")

        dates = {attr: self._parse_date(warnings, field, getattr(record, source))
                 for attr, source, field in DATE_FIELDS}

        charge = parse_decimal(record.charge)
        if charge is None and normalize_string(record.charge) is not None:
            warnings.append(MappingWarning(
                "Charge", f"Could not parse charge '{record.charge}'.", record.charge, None))

        student = Student(
            reference=reference,
            school_id=school_id,
            class_group_id=class_group_id,
            charge=charge,
            print_id_card=parse_bool(record.print_id_card),
            cnt=parse_float(record.cnt),
            online_entry=parse_int(record.online_entry),
            legacy_id=reference,
            is_active=True,
            **{attr: normalize_string(getattr(record, source)) for attr, source in PLAIN_FIELDS.items()},
            **dates,
        )

        return MappingResult.ok(StudentMappingData(student, extract_family_info(record)), warnings)

    def _resolve(self, warnings: List[MappingWarning], lookup, key: Optional[str], field: str,
                 label: str) -> Optional[int]:
        if key is None or lookup is None:
            return None
        if key in lookup:
            return lookup[key]
        warnings.append(MappingWarning(field, f"{label} '{key}' not found in database.", key, None))
        return None

    def _parse_date(self, warnings: List[MappingWarning], field: str, value: Optional[str]) -> Optional[datetime]:
        parsed = parse_date(value)
        if parsed is None and normalize_string(value) is not None:
            warnings.append(MappingWarning(field, f"Could not parse date '{value}'.", value, None))
        return parsed
