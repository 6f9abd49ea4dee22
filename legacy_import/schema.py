"""
Destination store tables
Only the tables the legacy import reads or writes are described here.
"""

import datetime as dt
import decimal
import typing

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
)

from .models import Student

metadata = MetaData()


def _lifecycle_columns():
    return [
        Column("legacy_id", String(255), index=True),
        Column("is_active", Boolean, nullable=False, default=True),
        Column("created_at", DateTime, nullable=False),
        Column("updated_at", DateTime),
    ]


trucks = Table(
    "trucks",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("registration_number", String(50)),
    Column("status", String(50)),
    Column("notes", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime),
)

schools = Table(
    "schools",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(255), nullable=False),
    Column("short_name", String(255)),
    Column("truck_id", Integer, ForeignKey("trucks.id")),
    Column("price", Numeric(18, 4)),
    Column("fee_description", String(255)),
    Column("formula", Numeric(18, 4)),
    Column("visit_day", String(255)),
    Column("visit_sequence", String(255)),
    Column("contact_person", String(255)),
    Column("contact_cell", String(255)),
    Column("telephone", String(255)),
    Column("fax", String(255)),
    Column("email", String(255)),
    Column("circulars_email", String(255)),
    Column("address", String(255)),
    Column("address2", String(255)),
    Column("headmaster", String(255)),
    Column("headmaster_cell", String(255)),
    Column("money_message", String(255)),
    Column("print_invoice", Boolean, nullable=False, default=False),
    Column("language", String(255)),
    Column("import_flag", Boolean, nullable=False, default=False),
    Column("afterschool1_name", String(255)),
    Column("afterschool1_contact", String(255)),
    Column("afterschool2_name", String(255)),
    Column("afterschool2_contact", String(255)),
    Column("safe_notes", String(255)),
    Column("web_page", String(255)),
    Column("kcow_web_page_link", String(255)),
    *_lifecycle_columns(),
)

class_groups = Table(
    "class_groups",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False),
    Column("school_id", Integer, ForeignKey("schools.id"), nullable=False),
    Column("day_truck", String(255)),
    Column("description", String(255)),
    Column("truck_id", Integer, ForeignKey("trucks.id")),
    Column("day_of_week", Integer, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("sequence", Integer, nullable=False, default=1),
    Column("evaluate", Boolean, nullable=False, default=False),
    Column("notes", Text),
    Column("import_flag", Boolean, nullable=False, default=False),
    Column("group_message", Text),
    Column("send_certificates", String(255)),
    Column("money_message", Text),
    Column("ixl", String(255)),
    *_lifecycle_columns(),
)

activities = Table(
    "activities",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("code", String(255)),
    Column("name", String(255)),
    Column("description", Text),
    Column("folder", String(255)),
    Column("grade_level", String(255)),
    Column("icon", Text),
    *_lifecycle_columns(),
)

families = Table(
    "families",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("family_name", String(255), nullable=False, index=True),
    Column("primary_contact_name", String(255), nullable=False),
    Column("phone", String(255)),
    Column("email", String(255)),
    Column("address", Text),
    Column("notes", Text),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime),
)

_STUDENT_COLUMN_TYPES = {
    str: Text,
    int: Integer,
    float: Float,
    bool: Boolean,
    dt.datetime: DateTime,
    decimal.Decimal: lambda: Numeric(18, 4),
}

_STUDENT_SPECIAL = {"id", "legacy_id", "is_active", "created_at", "updated_at",
                    "reference", "school_id", "class_group_id"}


def _student_columns():
    """One column per Student attribute, typed from the dataclass annotations"""
    columns = [
        Column("id", Integer, primary_key=True),
        Column("reference", String(255), nullable=False),
        Column("school_id", Integer, ForeignKey("schools.id")),
        Column("class_group_id", Integer, ForeignKey("class_groups.id")),
    ]
    for name, hint in typing.get_type_hints(Student).items():
        if name in _STUDENT_SPECIAL:
            continue
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        python_type = args[0] if args else hint
        columns.append(Column(name, _STUDENT_COLUMN_TYPES[python_type]()))
    return columns + _lifecycle_columns()


students = Table("students", metadata, *_student_columns())

student_families = Table(
    "student_families",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("student_id", Integer, ForeignKey("students.id"), nullable=False),
    Column("family_id", Integer, ForeignKey("families.id"), nullable=False),
    Column("relationship_type", String(50), nullable=False),
    UniqueConstraint("student_id", "family_id", name="uq_student_family"),
)

# Tables the import may address by name
ALLOWED_TABLES = {
    "trucks": trucks,
    "schools": schools,
    "class_groups": class_groups,
    "activities": activities,
    "students": students,
    "families": families,
    "student_families": student_families,
}


def get_table(name: str) -> Table:
    """Resolve a whitelisted table by name"""
    if name not in ALLOWED_TABLES:
        raise ValueError(f"Table '{name}' is not an import table")
    return ALLOWED_TABLES[name]
