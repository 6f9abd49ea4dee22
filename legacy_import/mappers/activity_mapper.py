"""
Activity mapping
Legacy Activity element -> Activity entity, including repair of icons exported inside an
OLE object container.
"""

import base64
import binascii
import logging
from typing import List, Optional, Tuple

from ..config import ICON_SCAN_LIMIT
from ..models import Activity
from ..records import LegacyActivityRecord
from ..utils import normalize_string
from .base import BaseDataMapper, MappingResult, MappingWarning

logger = logging.getLogger(__name__)

JPEG_SIGNATURE = b"\xff\xd8"
PNG_SIGNATURE = b"\x89\x50"
BMP_SIGNATURE = b"\x42\x4d"
JPEG_EMBEDDED_SIGNATURE = b"\xff\xd8\xff"

LARGE_ICON_LENGTH = 100_000


class IconRepairError(ValueError):
    """Icon text is not valid base64"""


def has_image_signature(data: bytes) -> bool:
    return data.startswith(JPEG_SIGNATURE) or data.startswith(PNG_SIGNATURE) or data.startswith(BMP_SIGNATURE)


def strip_ole_wrapper(icon_base64: str) -> Tuple[str, bool]:
    """
    Remove an OLE container from a base64 icon.
    Returns the (possibly re-encoded) base64 text and whether a usable image was found.
    Raises IconRepairError when the text cannot be decoded.
    """
    try:
        data = base64.b64decode("".join(icon_base64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise IconRepairError(str(e)) from e

    if has_image_signature(data):
        return icon_base64, True

    for offset in range(1, min(len(data) - 1, ICON_SCAN_LIMIT)):
        if data[offset:offset + 2] == BMP_SIGNATURE:
            return base64.b64encode(data[offset:]).decode("ascii"), True

    for offset in range(1, min(len(data) - 2, ICON_SCAN_LIMIT)):
        if data[offset:offset + 3] == JPEG_EMBEDDED_SIGNATURE:
            return base64.b64encode(data[offset:]).decode("ascii"), True

    return icon_base64, False


class ActivityDataMapper(BaseDataMapper[LegacyActivityRecord, Activity]):
    """Maps legacy activities; string columns are capped and icons repaired"""

    entity_label = "Activity"

    def map(self, record: LegacyActivityRecord) -> MappingResult[Activity]:
        warnings: List[MappingWarning] = []
        activity_id = record.activity_id

        activity = Activity(
            id=activity_id,
            code=self._truncate(warnings, activity_id, "Code", normalize_string(record.program)),
            name=self._truncate(warnings, activity_id, "Name", normalize_string(record.program_name)),
            description=normalize_string(record.educational_focus),
            folder=self._truncate(warnings, activity_id, "Folder", normalize_string(record.folder)),
            grade_level=self._truncate(warnings, activity_id, "GradeLevel", normalize_string(record.grade)),
            icon=self._map_icon(warnings, activity_id, record.icon),
            legacy_id=str(activity_id),
            is_active=True,
        )
        return MappingResult.ok(activity, warnings)

    def _map_icon(self, warnings: List[MappingWarning], activity_id: int, icon: Optional[str]) -> Optional[str]:
        if icon is None or not icon.strip():
            return None

        if len(icon) > LARGE_ICON_LENGTH:
            warnings.append(MappingWarning(
                "Icon", f"Activity {activity_id}: Icon data is large ({len(icon) // 1024} KB)."))

        try:
            repaired, recognised = strip_ole_wrapper(icon)
        except IconRepairError:
            warnings.append(MappingWarning(
                "Icon", f"Activity {activity_id}: Icon is not valid base64 and was dropped.", None, None))
            return None

        if not recognised:
            warnings.append(MappingWarning(
                "Icon",
                f"Activity {activity_id}: No image signature found in the first {ICON_SCAN_LIMIT} bytes "
                f"of the icon. Kept as exported."))
        elif repaired != icon:
            logger.debug(f"Activity {activity_id}: removed OLE wrapper from icon")
        return repaired
