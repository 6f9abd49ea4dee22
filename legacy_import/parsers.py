"""
Legacy XML parsers
Reads the Access XML exports, validates them against their XSD and produces typed legacy records.
Schema violations and bad values are collected as ParseError entries; only a structurally
broken document yields no records.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, List, Optional, TypeVar, Union

import lxml.etree as ET

from .records import (
    LegacyActivityRecord,
    LegacyChildRecord,
    LegacyClassGroupRecord,
    LegacySchoolRecord,
)
from .utils import normalize_string

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


@dataclass
class ParseError:
    """A schema, syntax or value problem attributed to a source file"""
    source: str
    message: str
    line: Optional[int] = None
    position: Optional[int] = None

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.source}:{self.line}: {self.message}"
        return f"{self.source}: {self.message}"


@dataclass
class ParseResult(Generic[T]):
    records: List[T] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


def create_safe_xml_parser() -> ET.XMLParser:
    """Parser with entity resolution and network access disabled"""
    return ET.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


class _ElementReader:
    """Reads child values of one record element and reports bad values"""

    def __init__(self, element, source: str, errors: List[ParseError]):
        self.element = element
        self.source = source
        self.errors = errors

    def raw(self, name: str) -> Optional[str]:
        for child in self.element:
            if isinstance(child.tag, str) and ET.QName(child).localname == name:
                return child.text if child.text is not None else ""
        return None

    def text(self, name: str) -> Optional[str]:
        return normalize_string(self.raw(name))

    def _error(self, message: str):
        self.errors.append(ParseError(self.source, message, line=self.element.sourceline))

    def required_int(self, name: str, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
        value = self.text(name)
        if value is None:
            self._error(f"{name} is required.")
            return 0
        result = self._to_int(name, value, minimum, maximum)
        return result if result is not None else 0

    def optional_int(self, name: str, minimum: Optional[int] = None, maximum: Optional[int] = None) -> Optional[int]:
        value = self.text(name)
        if value is None:
            return None
        return self._to_int(name, value, minimum, maximum)

    def _to_int(self, name: str, value: str, minimum: Optional[int], maximum: Optional[int]) -> Optional[int]:
        try:
            result = int(value)
        except ValueError:
            self._error(f"Invalid {name} value: '{value}'.")
            return None
        if (minimum is not None and result < minimum) or (maximum is not None and result > maximum):
            self._error(f"Invalid {name} value: '{value}'.")
            return None
        return result

    def optional_float(self, name: str) -> Optional[float]:
        value = self.text(name)
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            self._error(f"Invalid {name} value: '{value}'.")
            return None

    def required_bool(self, name: str) -> bool:
        value = self.text(name)
        if value is None:
            self._error(f"{name} is required.")
            return False
        result = _to_bool(value)
        if result is None:
            self._error(f"Invalid {name} value: '{value}'.")
            return False
        return result

    def optional_bool(self, name: str, default: bool = False) -> bool:
        value = self.text(name)
        if value is None:
            return default
        result = _to_bool(value)
        return default if result is None else result


def _to_bool(value: str) -> Optional[bool]:
    normalized = value.strip().lower()
    if normalized in ("1", "true"):
        return True
    if normalized in ("0", "false"):
        return False
    return None


class LegacyXmlParser:
    """Parses the four legacy entity files"""

    def parse_schools(self, xml_path: PathLike, xsd_path: PathLike) -> ParseResult[LegacySchoolRecord]:
        """Parse School.xml"""
        return self._parse(xml_path, xsd_path, "School", self._read_school)

    def parse_class_groups(self, xml_path: PathLike, xsd_path: PathLike) -> ParseResult[LegacyClassGroupRecord]:
        """Parse Class Group.xml"""
        return self._parse(xml_path, xsd_path, "Class_x0020_Group", self._read_class_group)

    def parse_activities(self, xml_path: PathLike, xsd_path: PathLike) -> ParseResult[LegacyActivityRecord]:
        """Parse Activity.xml"""
        return self._parse(xml_path, xsd_path, "Activity", self._read_activity)

    def parse_children(self, xml_path: PathLike, xsd_path: PathLike) -> ParseResult[LegacyChildRecord]:
        """Parse Children.xml"""
        return self._parse(xml_path, xsd_path, "Children", self._read_child)

    def _parse(self, xml_path: PathLike, xsd_path: PathLike, element_name: str,
               read: Callable[[_ElementReader], T]) -> ParseResult[T]:
        result: ParseResult[T] = ParseResult()
        source = str(xml_path)

        root = self._load_document(Path(xml_path), Path(xsd_path), result.errors)
        if root is None:
            return result

        for element in root:
            if not isinstance(element.tag, str) or ET.QName(element).localname != element_name:
                continue
            result.records.append(read(_ElementReader(element, source, result.errors)))

        logger.info(f"Parsed {len(result.records)} {element_name} records from {source} "
                    f"({len(result.errors)} errors)")
        return result

    def _load_document(self, xml_path: Path, xsd_path: Path, errors: List[ParseError]):
        """Load and validate a document; returns the root element or None when unreadable"""
        if not xml_path.is_file():
            errors.append(ParseError(str(xml_path), f"File not found: {xml_path}"))
            return None

        schema = None
        if not xsd_path.is_file():
            errors.append(ParseError(str(xsd_path), f"File not found: {xsd_path}"))
        else:
            try:
                schema = ET.XMLSchema(ET.parse(str(xsd_path), create_safe_xml_parser()))
            except (ET.XMLSyntaxError, ET.XMLSchemaParseError) as e:
                errors.append(ParseError(str(xsd_path), f"Invalid schema: {e}"))

        try:
            document = ET.parse(str(xml_path), create_safe_xml_parser())
        except ET.XMLSyntaxError as e:
            line, position = e.position if e.position else (None, None)
            errors.append(ParseError(str(xml_path), e.msg, line=line, position=position))
            return None

        if schema is not None and not schema.validate(document):
            for entry in schema.error_log:
                errors.append(ParseError(str(xml_path), entry.message, line=entry.line, position=entry.column))

        return document.getroot()

    def _read_school(self, r: _ElementReader) -> LegacySchoolRecord:
        return LegacySchoolRecord(
            school_id=r.required_int("School_x0020_Id"),
            short_school=r.text("Short_x0020_School"),
            trok=r.optional_int("Trok", 0, 255),
            price=r.optional_float("Price"),
            formula_description=r.text("F_x0020_Descr"),
            formula=r.optional_float("Formula"),
            sequence=r.text("Sequence"),
            day=r.text("Day"),
            school_description=r.text("School_x0020_Description"),
            contact_person=r.text("ContactPerson"),
            email_address=r.text("E-mail_x0020_adress"),
            contact_cell=r.text("ContactCell"),
            telephone=r.text("Telephone"),
            fax=r.text("Fax"),
            address1=r.text("Address1"),
            address2=r.text("Address2"),
            headmaster=r.text("Headmaster"),
            headmaster_cell=r.text("HeadmasterCell"),
            money_message=r.text("MoneyMessage"),
            print_invoice=r.required_bool("Print"),
            taal=r.text("Taal"),
            import_flag=r.required_bool("Import"),
            web_page=r.text("web_x0020_page"),
            naskool1_name=r.text("Naskool1_x0020_Name"),
            naskool1_contact=r.text("Naskool1_x0020_Contact"),
            naskool2_name=r.text("Naskool2_x0020_Name"),
            naskool2_contact=r.text("Naskool2_x0020_Contact"),
            kluis=r.text("Kluis"),
            omsendbriewe=r.text("omsendbriewe"),
            kcow_web_page_link=r.text("KcowWebPageLink"),
        )

    def _read_class_group(self, r: _ElementReader) -> LegacyClassGroupRecord:
        return LegacyClassGroupRecord(
            class_group=r.text("Class_x0020_Group") or "",
            school_id=r.required_int("School_x0020_Id", -32768, 32767),
            day_truck=r.text("DayTruck"),
            description=r.text("Description"),
            end_time=r.text("End_x0020_Time"),
            day_id=r.text("DayId"),
            start_time=r.text("Start_x0020_Time"),
            evaluate=r.optional_bool("Evaluate"),
            note=r.text("Note"),
            import_flag=r.optional_bool("Import"),
            sequence=r.text("Sequence"),
            group_message=r.text("GroupMessage"),
            send_certificates=r.text("Send_x0020_Certificates"),
            money_message=r.text("Money_x0020_Message"),
            ixl=r.text("IXL"),
        )

    def _read_activity(self, r: _ElementReader) -> LegacyActivityRecord:
        return LegacyActivityRecord(
            activity_id=r.required_int("ActivityID"),
            program=r.text("Program"),
            program_name=r.text("ProgramName"),
            educational_focus=r.text("Educational_x0020_Focus"),
            folder=r.text("Folder"),
            grade=r.text("Grade"),
            icon=r.raw("Icon"),
        )

    def _read_child(self, r: _ElementReader) -> LegacyChildRecord:
        values = {name: r.text(element) for name, element in CHILD_ELEMENTS.items()}
        return LegacyChildRecord(reference=r.text("Reference") or "", **values)


# LegacyChildRecord field -> exported element name
CHILD_ELEMENTS = {
    "child_name": "Child_x0020_Name",
    "child_surname": "Child_x0020_Surname",
    "child_birthdate": "Child_x0020_birthdate",
    "sex": "Sex",
    "language": "Language",
    "account_person_name": "Account_x0020_Person_x0020_Name",
    "account_person_surname": "Account_x0020_Person_x0020_Surname",
    "account_person_idnumber": "Account_x0020_Person_x0020_Idnumber",
    "account_person_cellphone": "Account_x0020_Person_x0020_Cellphone",
    "account_person_office": "Account_x0020_Person_x0020_Office",
    "account_person_home": "Account_x0020_Person_x0020_Home",
    "account_person_email": "Account_x0020_Person_x0020_Email",
    "relation": "Relation",
    "mother_name": "Mother_x0020_Name",
    "mother_surname": "Mother_x0020_Surname",
    "mother_office": "Mother_x0020_Office",
    "mother_cell": "Mother_x0020_Cell",
    "mother_home": "Mother_x0020_Home",
    "mother_email": "Mother_x0020_Email",
    "father_name": "Father_x0020_Name",
    "father_surname": "Father_x0020_Surname",
    "father_office": "Father_x0020_Office",
    "father_cell": "Father_x0020_Cell",
    "father_home": "Father_x0020_Home",
    "father_email": "Father_x0020_Email",
    "address1": "Address1",
    "address2": "Address2",
    "code": "Code",
    "school_name": "School_x0020_Name",
    "class_group": "Class_x0020_Group",
    "grade": "Grade",
    "teacher": "Teacher",
    "attending_kcow_at": "Attending_x0020_KCOW_x0020_at",
    "aftercare": "Aftercare",
    "extra": "Extra",
    "home_time": "Home_x0020_Time",
    "start_classes": "Start_x0020_Classes",
    "terms": "Terms",
    "seat": "Seat",
    "truck": "Truck",
    "family": "Family",
    "sequence": "Sequence",
    "financial_code": "Financial_x0020_Code",
    "charge": "Charge",
    "deposit": "Deposit",
    "pay_date": "PayDate",
    "tshirt_code": "Tshirt_x0020_Code",
    "tshirt_money1": "Tshirt_x0020_Money_x0020_1",
    "tshirt_money_date1": "Tshirt_x0020_MoneyDate_x0020_1",
    "tshirt_received1": "Tshirt_x0020_Received_x0020_1",
    "tshirt_rec_date1": "Tshirt_x0020_RecDate_x0020_1",
    "receive_note1": "Receive_x0020_Note_x0020_1",
    "tshirt_size1": "TshirtSize1",
    "tshirt_color1": "TshirtColor1",
    "tshirt_design1": "TshirtDesign1",
    "tshirt_size2": "TshirtSize2",
    "tshirt_money2": "Tshirt_x0020_Money_x0020_2",
    "tshirt_money_date2": "Tshirt_x0020_MoneyDate_x0020_2",
    "tshirt_received2": "Tshirt_x0020_Received_x0020_2",
    "tshirt_rec_date2": "Tshirt_x0020_RecDate_x0020_2",
    "receive_note2": "Receive_x0020_Note_x0020_2",
    "tshirt_color2": "TshirtColor2",
    "tshirt_design2": "TshirtDesign2",
    "indicator1": "Indicator_x0020_1",
    "indicator2": "Indicator_x0020_2",
    "general_note": "General_x0020_Note",
    "print_id_card": "Print_x0020_Id_x0020_Card",
    "accept_terms_cond": "AcceptTermsCond",
    "status": "Status",
    "sms_or_email": "SmsOrEmail",
    "school_close": "SchoolClose",
    "cnt": "Cnt",
    "online_entry": "OnlineEntry",
    "created": "Created",
    "submitted": "Submitted",
    "updated": "Updated",
    "book_email": "BookEmail",
    "report1_given_out": "Report1GivenOut",
    "account_given_out": "AccountGivenOut",
    "certificate_printed": "CertificatePrinted",
    "report2_given_out": "Report2GivenOut",
    "social": "Social",
    "activity_report_given_out": "ActivityReportGivenOut",
    "photo": "Photo",
    "photo_updated": "PhotoUpdated",
}
