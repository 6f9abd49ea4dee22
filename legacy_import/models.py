"""
Domain entities produced by the mappers and written to the destination store
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from decimal import Decimal
from enum import IntEnum
from typing import Any, Dict, Optional


class DayOfWeek(IntEnum):
    """Weekday numbering used by the scheduling tables (Sunday = 0)"""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class Entity:
    """Row conversion shared by all entities"""

    def to_row(self, include_id: bool = False) -> Dict[str, Any]:
        row = asdict(self)
        if not include_id or row.get("id") is None:
            row.pop("id", None)
        return row


@dataclass
class School(Entity):
    name: str = ""
    id: Optional[int] = None
    short_name: Optional[str] = None
    truck_id: Optional[int] = None
    price: Optional[Decimal] = None
    fee_description: Optional[str] = None
    formula: Optional[Decimal] = None
    visit_day: Optional[str] = None
    visit_sequence: Optional[str] = None
    contact_person: Optional[str] = None
    contact_cell: Optional[str] = None
    telephone: Optional[str] = None
    fax: Optional[str] = None
    email: Optional[str] = None
    circulars_email: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    headmaster: Optional[str] = None
    headmaster_cell: Optional[str] = None
    money_message: Optional[str] = None
    print_invoice: bool = False
    language: Optional[str] = None
    import_flag: bool = False
    afterschool1_name: Optional[str] = None
    afterschool1_contact: Optional[str] = None
    afterschool2_name: Optional[str] = None
    afterschool2_contact: Optional[str] = None
    safe_notes: Optional[str] = None
    web_page: Optional[str] = None
    kcow_web_page_link: Optional[str] = None
    legacy_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


@dataclass
class ClassGroup(Entity):
    name: str = ""
    school_id: int = 0
    id: Optional[int] = None
    day_truck: Optional[str] = None
    description: Optional[str] = None
    truck_id: Optional[int] = None
    day_of_week: DayOfWeek = DayOfWeek.MONDAY
    start_time: time = time(8, 0)
    end_time: time = time(9, 0)
    sequence: int = 1
    evaluate: bool = False
    notes: Optional[str] = None
    import_flag: bool = False
    group_message: Optional[str] = None
    send_certificates: Optional[str] = None
    money_message: Optional[str] = None
    ixl: Optional[str] = None
    legacy_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def to_row(self, include_id: bool = False) -> Dict[str, Any]:
        row = super().to_row(include_id)
        row["day_of_week"] = int(self.day_of_week)
        return row


@dataclass
class Activity(Entity):
    id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    folder: Optional[str] = None
    grade_level: Optional[str] = None
    icon: Optional[str] = None
    legacy_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


@dataclass
class Student(Entity):
    reference: str = ""
    id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    gender: Optional[str] = None
    language: Optional[str] = None
    account_person_name: Optional[str] = None
    account_person_surname: Optional[str] = None
    account_person_id_number: Optional[str] = None
    account_person_cellphone: Optional[str] = None
    account_person_office: Optional[str] = None
    account_person_home: Optional[str] = None
    account_person_email: Optional[str] = None
    relation: Optional[str] = None
    mother_name: Optional[str] = None
    mother_surname: Optional[str] = None
    mother_office: Optional[str] = None
    mother_cell: Optional[str] = None
    mother_home: Optional[str] = None
    mother_email: Optional[str] = None
    father_name: Optional[str] = None
    father_surname: Optional[str] = None
    father_office: Optional[str] = None
    father_cell: Optional[str] = None
    father_home: Optional[str] = None
    father_email: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    postal_code: Optional[str] = None
    school_name: Optional[str] = None
    school_id: Optional[int] = None
    class_group_code: Optional[str] = None
    class_group_id: Optional[int] = None
    grade: Optional[str] = None
    teacher: Optional[str] = None
    attending_kcow_at: Optional[str] = None
    aftercare: Optional[str] = None
    extra: Optional[str] = None
    home_time: Optional[datetime] = None
    start_classes: Optional[datetime] = None
    terms: Optional[str] = None
    seat: Optional[str] = None
    truck: Optional[str] = None
    family: Optional[str] = None
    sequence: Optional[str] = None
    financial_code: Optional[str] = None
    charge: Optional[Decimal] = None
    deposit: Optional[str] = None
    pay_date: Optional[str] = None
    tshirt_code: Optional[str] = None
    tshirt_money1: Optional[str] = None
    tshirt_money_date1: Optional[datetime] = None
    tshirt_received1: Optional[str] = None
    tshirt_rec_date1: Optional[datetime] = None
    receive_note1: Optional[str] = None
    tshirt_size1: Optional[str] = None
    tshirt_color1: Optional[str] = None
    tshirt_design1: Optional[str] = None
    tshirt_size2: Optional[str] = None
    tshirt_money2: Optional[str] = None
    tshirt_money_date2: Optional[datetime] = None
    tshirt_received2: Optional[str] = None
    tshirt_rec_date2: Optional[datetime] = None
    receive_note2: Optional[str] = None
    tshirt_color2: Optional[str] = None
    tshirt_design2: Optional[str] = None
    indicator1: Optional[str] = None
    indicator2: Optional[str] = None
    general_note: Optional[str] = None
    print_id_card: bool = False
    accept_terms_cond: Optional[str] = None
    status: Optional[str] = None
    sms_or_email: Optional[str] = None
    school_close: Optional[datetime] = None
    cnt: Optional[float] = None
    online_entry: Optional[int] = None
    legacy_created: Optional[datetime] = None
    submitted: Optional[datetime] = None
    legacy_updated: Optional[datetime] = None
    book_email: Optional[str] = None
    report1_given_out: Optional[str] = None
    account_given_out: Optional[str] = None
    certificate_printed: Optional[str] = None
    report2_given_out: Optional[str] = None
    social: Optional[str] = None
    activity_report_given_out: Optional[str] = None
    photo_url: Optional[str] = None
    photo_updated: Optional[datetime] = None
    legacy_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


@dataclass
class Family(Entity):
    family_name: str = ""
    id: Optional[int] = None
    primary_contact_name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class FamilyInfo:
    """Family details lifted from a child record; persisted by the import service"""
    family_name: str
    primary_contact_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


@dataclass
class StudentMappingData:
    student: Student
    family_info: Optional[FamilyInfo] = None
