"""
Legacy record shapes
One immutable snapshot per XML element, fields exactly as exported by the Access database
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LegacySchoolRecord:
    """One <School> element"""
    school_id: int
    short_school: Optional[str] = None
    trok: Optional[int] = None
    price: Optional[float] = None
    formula_description: Optional[str] = None
    formula: Optional[float] = None
    sequence: Optional[str] = None
    day: Optional[str] = None
    school_description: Optional[str] = None
    contact_person: Optional[str] = None
    email_address: Optional[str] = None
    contact_cell: Optional[str] = None
    telephone: Optional[str] = None
    fax: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    headmaster: Optional[str] = None
    headmaster_cell: Optional[str] = None
    money_message: Optional[str] = None
    print_invoice: bool = False
    taal: Optional[str] = None
    import_flag: bool = False
    web_page: Optional[str] = None
    naskool1_name: Optional[str] = None
    naskool1_contact: Optional[str] = None
    naskool2_name: Optional[str] = None
    naskool2_contact: Optional[str] = None
    kluis: Optional[str] = None
    omsendbriewe: Optional[str] = None
    kcow_web_page_link: Optional[str] = None


@dataclass(frozen=True)
class LegacyClassGroupRecord:
    """One <Class_x0020_Group> element"""
    class_group: str
    school_id: int
    day_truck: Optional[str] = None
    description: Optional[str] = None
    end_time: Optional[str] = None
    day_id: Optional[str] = None
    start_time: Optional[str] = None
    evaluate: bool = False
    note: Optional[str] = None
    import_flag: bool = False
    sequence: Optional[str] = None
    group_message: Optional[str] = None
    send_certificates: Optional[str] = None
    money_message: Optional[str] = None
    ixl: Optional[str] = None


@dataclass(frozen=True)
class LegacyActivityRecord:
    """One <Activity> element; icon is kept as the raw base64 text"""
    activity_id: int
    program: Optional[str] = None
    program_name: Optional[str] = None
    educational_focus: Optional[str] = None
    folder: Optional[str] = None
    grade: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class LegacyChildRecord:
    """One <Children> element"""
    reference: str
    child_name: Optional[str] = None
    child_surname: Optional[str] = None
    child_birthdate: Optional[str] = None
    sex: Optional[str] = None
    language: Optional[str] = None
    account_person_name: Optional[str] = None
    account_person_surname: Optional[str] = None
    account_person_idnumber: Optional[str] = None
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
    code: Optional[str] = None
    school_name: Optional[str] = None
    class_group: Optional[str] = None
    grade: Optional[str] = None
    teacher: Optional[str] = None
    attending_kcow_at: Optional[str] = None
    aftercare: Optional[str] = None
    extra: Optional[str] = None
    home_time: Optional[str] = None
    start_classes: Optional[str] = None
    terms: Optional[str] = None
    seat: Optional[str] = None
    truck: Optional[str] = None
    family: Optional[str] = None
    sequence: Optional[str] = None
    financial_code: Optional[str] = None
    charge: Optional[str] = None
    deposit: Optional[str] = None
    pay_date: Optional[str] = None
    tshirt_code: Optional[str] = None
    tshirt_money1: Optional[str] = None
    tshirt_money_date1: Optional[str] = None
    tshirt_received1: Optional[str] = None
    tshirt_rec_date1: Optional[str] = None
    receive_note1: Optional[str] = None
    tshirt_size1: Optional[str] = None
    tshirt_color1: Optional[str] = None
    tshirt_design1: Optional[str] = None
    tshirt_size2: Optional[str] = None
    tshirt_money2: Optional[str] = None
    tshirt_money_date2: Optional[str] = None
    tshirt_received2: Optional[str] = None
    tshirt_rec_date2: Optional[str] = None
    receive_note2: Optional[str] = None
    tshirt_color2: Optional[str] = None
    tshirt_design2: Optional[str] = None
    indicator1: Optional[str] = None
    indicator2: Optional[str] = None
    general_note: Optional[str] = None
    print_id_card: Optional[str] = None
    accept_terms_cond: Optional[str] = None
    status: Optional[str] = None
    sms_or_email: Optional[str] = None
    school_close: Optional[str] = None
    cnt: Optional[str] = None
    online_entry: Optional[str] = None
    created: Optional[str] = None
    submitted: Optional[str] = None
    updated: Optional[str] = None
    book_email: Optional[str] = None
    report1_given_out: Optional[str] = None
    account_given_out: Optional[str] = None
    certificate_printed: Optional[str] = None
    report2_given_out: Optional[str] = None
    social: Optional[str] = None
    activity_report_given_out: Optional[str] = None
    photo: Optional[str] = None
    photo_updated: Optional[str] = None
