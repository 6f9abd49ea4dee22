"""
Class group mapping
Legacy Class Group element -> ClassGroup entity.
Records flagged Import=false are skipped; a missing name, an unknown school or a bad
time range rejects the record.
"""

import logging
from datetime import time
from typing import List

from ..config import DEFAULT_VALUES
from ..models import ClassGroup, DayOfWeek
from ..records import LegacyClassGroupRecord
from ..utils import first_non_blank, normalize_string, parse_int, parse_time
from .base import BaseDataMapper, MappingResult, MappingWarning

logger = logging.getLogger(__name__)

DEFAULT_START_TIME = time.fromisoformat(DEFAULT_VALUES["class_group_start_time"])
DEFAULT_END_TIME = time.fromisoformat(DEFAULT_VALUES["class_group_end_time"])


class ClassGroupDataMapper(BaseDataMapper[LegacyClassGroupRecord, ClassGroup]):
    """Maps legacy class groups, checking the school and truck references"""

    entity_label = "Class Group"

    def map(self, record: LegacyClassGroupRecord) -> MappingResult[ClassGroup]:
        if not record.import_flag:
            return MappingResult.skipped("Import flag is false")

        name = first_non_blank(record.description, record.class_group) or ""
        if not name:
            return MappingResult.fail("Name", "Class Group is missing a description and name.")

        valid_schools = self.context.valid_school_ids
        if valid_schools is not None and record.school_id not in valid_schools:
            return MappingResult.fail("SchoolId", f"Class Group references invalid SchoolId {record.school_id}.")

        warnings: List[MappingWarning] = []

        day_of_week = DayOfWeek.MONDAY
        if normalize_string(record.day_id) is not None:
            day_number = parse_int(record.day_id)
            if day_number is not None and 1 <= day_number <= 5:
                day_of_week = DayOfWeek(day_number)
            else:
                warnings.append(MappingWarning(
                    "DayId", f"Invalid DayId '{record.day_id}'. Defaulting to Monday.", record.day_id, "1"))

        sequence = parse_int(record.sequence)
        if sequence is None or sequence <= 0:
            sequence = DEFAULT_VALUES["class_group_sequence"]

        start_time = None
        if normalize_string(record.start_time) is not None:
            start_time = parse_time(record.start_time)
            if start_time is None:
                return MappingResult.fail("StartTime", f"Invalid Start Time '{record.start_time}'.", warnings)

        end_time = None
        if normalize_string(record.end_time) is not None:
            end_time = parse_time(record.end_time)
            if end_time is None:
                return MappingResult.fail("EndTime", f"Invalid End Time '{record.end_time}'.", warnings)

        if start_time is not None and end_time is not None and end_time <= start_time:
            return MappingResult.fail("EndTime", "End Time must be after Start Time.", warnings)

        truck_id = self._check_truck(warnings, parse_int(record.day_truck), "Class Group")

        class_group = ClassGroup(
            name=self._truncate(warnings, record.class_group, "Name", name),
            day_truck=normalize_string(record.day_truck),
            description=self._truncate(warnings, record.class_group, "Description",
                                       normalize_string(record.description)),
            school_id=record.school_id,
            truck_id=truck_id,
            day_of_week=day_of_week,
            start_time=start_time if start_time is not None else DEFAULT_START_TIME,
            end_time=end_time if end_time is not None else DEFAULT_END_TIME,
            sequence=sequence,
            evaluate=record.evaluate,
            notes=normalize_string(record.note),
            import_flag=record.import_flag,
            group_message=normalize_string(record.group_message),
            send_certificates=normalize_string(record.send_certificates),
            money_message=normalize_string(record.money_message),
            ixl=normalize_string(record.ixl),
            legacy_id=normalize_string(record.class_group),
            is_active=True,
        )
        return MappingResult.ok(class_group, warnings)
