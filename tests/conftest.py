"""
Test configuration and fixtures for import tests
"""

import base64
import os
from pathlib import Path
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

import pytest
import pytest_asyncio

# Set test environment
os.environ.setdefault("DRY_RUN", "False")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("IMPORT_ENFORCE_FOREIGN_KEYS", "True")

from legacy_import.config import ENTITY_FILES  # noqa: E402
from legacy_import.db_utils import DatabaseManager  # noqa: E402
from legacy_import.parsers import CHILD_ELEMENTS  # noqa: E402

# Record element and typed child elements per family; untyped children are strings
FAMILY_LAYOUT = {
    "schools": ("School", {
        "School_x0020_Id": "xsd:int", "Short_x0020_School": None, "Trok": "xsd:unsignedByte",
        "Price": "xsd:double", "F_x0020_Descr": None, "Formula": "xsd:double", "Sequence": None,
        "Day": None, "School_x0020_Description": None, "ContactPerson": None,
        "E-mail_x0020_adress": None, "ContactCell": None, "Telephone": None, "Fax": None,
        "Address1": None, "Address2": None, "Headmaster": None, "HeadmasterCell": None,
        "MoneyMessage": None, "Print": "xsd:boolean", "Taal": None, "Import": "xsd:boolean",
        "web_x0020_page": None, "Naskool1_x0020_Name": None, "Naskool1_x0020_Contact": None,
        "Naskool2_x0020_Name": None, "Naskool2_x0020_Contact": None, "Kluis": None,
        "omsendbriewe": None, "KcowWebPageLink": None,
    }),
    "class_groups": ("Class_x0020_Group", {
        "Class_x0020_Group": None, "School_x0020_Id": "xsd:short", "DayTruck": None,
        "Description": None, "End_x0020_Time": None, "DayId": None, "Start_x0020_Time": None,
        "Evaluate": "xsd:boolean", "Note": None, "Import": "xsd:boolean", "Sequence": None,
        "GroupMessage": None, "Send_x0020_Certificates": None, "Money_x0020_Message": None, "IXL": None,
    }),
    "activities": ("Activity", {
        "ActivityID": "xsd:int", "Program": None, "ProgramName": None,
        "Educational_x0020_Focus": None, "Folder": None, "Grade": None, "Icon": "xsd:base64Binary",
    }),
    "students": ("Children", dict({"Reference": None}, **{name: None for name in CHILD_ELEMENTS.values()})),
}

# Smallest PNG header, enough for signature detection
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_ICON = base64.b64encode(PNG_BYTES).decode("ascii")


def build_xsd(family: str) -> str:
    element, children = FAMILY_LAYOUT[family]
    declarations = "\n".join(
        f'          <xsd:element name="{name}" type="{xsd_type or "xsd:string"}"/>'
        for name, xsd_type in children.items()
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<xsd:schema xmlns:xsd="http://www.w3.org/2001/XMLSchema">
  <xsd:element name="dataroot">
    <xsd:complexType>
      <xsd:sequence>
        <xsd:element ref="{element}" minOccurs="0" maxOccurs="unbounded"/>
      </xsd:sequence>
      <xsd:attribute name="generated" type="xsd:string"/>
    </xsd:complexType>
  </xsd:element>
  <xsd:element name="{element}">
    <xsd:complexType>
      <xsd:choice minOccurs="0" maxOccurs="unbounded">
{declarations}
      </xsd:choice>
    </xsd:complexType>
  </xsd:element>
</xsd:schema>
"""


def build_xml(family: str, records: List[Dict[str, str]]) -> str:
    element, _ = FAMILY_LAYOUT[family]
    body = []
    for record in records:
        children = "".join(f"<{name}>{escape(str(value))}</{name}>" for name, value in record.items())
        body.append(f"  <{element}>{children}</{element}>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<dataroot generated="2024-01-15T10:00:00">\n'
        + "\n".join(body)
        + "\n</dataroot>\n"
    )


def write_family(root: Path, family: str, records: Optional[List[Dict[str, str]]] = None,
                 xml_text: Optional[str] = None) -> Path:
    """Write one family's XML and XSD into the export folder; returns the XML path"""
    folder, xml_name, xsd_name = ENTITY_FILES[family]
    target = root / folder
    target.mkdir(parents=True, exist_ok=True)
    (target / xsd_name).write_text(build_xsd(family), encoding="utf-8")
    xml_path = target / xml_name
    xml_path.write_text(xml_text if xml_text is not None else build_xml(family, records or []), encoding="utf-8")
    return xml_path


SCHOOL_RECORDS = [
    {"School_x0020_Id": "1", "Short_x0020_School": "Noord", "Trok": "3", "Price": "150.5",
     "School_x0020_Description": "Laerskool Noord", "ContactPerson": "Mrs Botha",
     "E-mail_x0020_adress": "noord@example.com", "Print": "1", "Import": "1", "Taal": "Afr"},
    {"School_x0020_Id": "2", "Short_x0020_School": "Suid", "Print": "0", "Import": "1"},
]

CLASS_GROUP_RECORDS = [
    {"Class_x0020_Group": "1A", "School_x0020_Id": "1", "DayId": "2", "Start_x0020_Time": "08:00",
     "End_x0020_Time": "09:30", "Import": "1", "Sequence": "2"},
    {"Class_x0020_Group": "2B", "School_x0020_Id": "2", "Description": "Grade 2 Blue", "Import": "1"},
    {"Class_x0020_Group": "3C", "School_x0020_Id": "1", "Import": "0"},
    {"Class_x0020_Group": "9Z", "School_x0020_Id": "99", "Import": "1"},
]

ACTIVITY_RECORDS = [
    {"ActivityID": "1", "Program": "ART", "ProgramName": "Art Club", "Grade": "R-3", "Icon": PNG_ICON},
    {"ActivityID": "2", "Program": "SCI", "ProgramName": "Science", "Folder": "science"},
]

CHILD_RECORDS = [
    {"Reference": "C001", "Child_x0020_Name": "Anna", "Child_x0020_Surname": "Smith",
     "Child_x0020_birthdate": "2015-03-04T00:00:00", "School_x0020_Name": "Laerskool Noord",
     "Class_x0020_Group": "1A", "Family": "Smith", "Mother_x0020_Name": "Jane Smith",
     "Mother_x0020_Cell": "0821234567", "Charge": "250.00"},
    {"Reference": "C002", "Child_x0020_Name": "Ben", "Child_x0020_Surname": "Smith",
     "School_x0020_Name": "Laerskool Noord", "Family": "Smith", "Father_x0020_Name": "John Smith"},
    {"Reference": "C003", "Child_x0020_Name": "Cara", "Child_x0020_Surname": "Jones",
     "School_x0020_Name": "Unknown School", "Family": "Jones", "Account_x0020_Person_x0020_Name": "Pat Jones"},
    {"Child_x0020_Name": "No", "Child_x0020_Surname": "Reference"},
]


@pytest.fixture
def legacy_export(tmp_path):
    """A complete legacy export folder with all four families"""
    root = tmp_path / "legacy"
    write_family(root, "schools", SCHOOL_RECORDS)
    write_family(root, "class_groups", CLASS_GROUP_RECORDS)
    write_family(root, "activities", ACTIVITY_RECORDS)
    write_family(root, "students", CHILD_RECORDS)
    return root


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'import.db'}"


@pytest_asyncio.fixture
async def db(database_url):
    """DatabaseManager bound to a fresh SQLite file with the import tables created"""
    manager = DatabaseManager(database_url)
    engine = await manager.connect_async()
    await manager.create_schema(engine)
    yield manager
    await manager.close_connections()


@pytest_asyncio.fixture
async def engine(db):
    return await db.connect_async()
