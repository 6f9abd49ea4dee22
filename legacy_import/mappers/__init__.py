from .base import (
    MappingError,
    MappingResult,
    MappingWarning,
    SKIP_FIELD,
    ValidationContext,
)
from .activity_mapper import ActivityDataMapper, strip_ole_wrapper
from .class_group_mapper import ClassGroupDataMapper
from .school_mapper import SchoolDataMapper
from .student_mapper import StudentDataMapper, extract_family_info

__all__ = [
    "ActivityDataMapper",
    "ClassGroupDataMapper",
    "MappingError",
    "MappingResult",
    "MappingWarning",
    "SKIP_FIELD",
    "SchoolDataMapper",
    "StudentDataMapper",
    "ValidationContext",
    "extract_family_info",
    "strip_ole_wrapper",
]
