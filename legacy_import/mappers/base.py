"""
Mapping result types and the shared mapper base class
"""

import logging
from dataclasses import dataclass
from itertools import chain
from typing import Any, FrozenSet, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from ..config import MAX_FIELD_LENGTH
from ..utils import truncate

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

SKIP_FIELD = "_skip"


@dataclass(frozen=True)
class MappingWarning:
    """Non-fatal transformation applied while mapping a record"""
    field: str
    message: str
    original_value: Optional[str] = None
    mapped_value: Optional[str] = None


@dataclass(frozen=True)
class MappingError:
    """Reason a record was rejected"""
    field: str
    message: str


@dataclass(frozen=True)
class MappingResult(Generic[T]):
    """
    Outcome of mapping one record (or a batch of records).
    success is derived: data present and no errors.
    """
    data: Optional[T] = None
    warnings: Tuple[MappingWarning, ...] = ()
    errors: Tuple[MappingError, ...] = ()

    @property
    def success(self) -> bool:
        return self.data is not None and not self.errors

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def is_skipped(self) -> bool:
        return self.data is None and not self.errors and any(w.field == SKIP_FIELD for w in self.warnings)

    @classmethod
    def ok(cls, data: T, warnings: Iterable[MappingWarning] = ()) -> "MappingResult[T]":
        return cls(data=data, warnings=tuple(warnings))

    @classmethod
    def fail(cls, field: str, message: str, warnings: Iterable[MappingWarning] = ()) -> "MappingResult[T]":
        return cls(warnings=tuple(warnings), errors=(MappingError(field, message),))

    @classmethod
    def skipped(cls, reason: str) -> "MappingResult[T]":
        return cls(warnings=(MappingWarning(SKIP_FIELD, reason),))

    @classmethod
    def combine(cls, results: Iterable["MappingResult[Any]"]) -> "MappingResult[List[Any]]":
        """Fold per-record results into one batch result"""
        results = list(results)
        return cls(
            data=[r.data for r in results if r.success],
            warnings=tuple(chain.from_iterable(r.warnings for r in results)),
            errors=tuple(chain.from_iterable(r.errors for r in results)),
        )


@dataclass(frozen=True)
class ValidationContext:
    """
    Foreign key sets used by the mappers.
    None disables the corresponding check; an empty collection validates and rejects everything.
    """
    valid_truck_ids: Optional[FrozenSet[int]] = None
    valid_school_ids: Optional[FrozenSet[int]] = None
    school_ids_by_name: Optional[Mapping[str, int]] = None
    class_group_ids_by_code: Optional[Mapping[str, int]] = None


class BaseDataMapper(Generic[R, T]):
    """Maps one legacy record type to one entity type"""

    entity_label = "Record"

    def __init__(self, context: Optional[ValidationContext] = None):
        self.context = context or ValidationContext()

    def map(self, record: R) -> MappingResult[T]:
        raise NotImplementedError

    def map_many(self, records: Iterable[R]) -> MappingResult[List[T]]:
        """Map every record independently; batch success means no record was rejected"""
        return MappingResult.combine(self.map(record) for record in records)

    def _truncate(self, warnings: List[MappingWarning], record_id: Any, field: str,
                  value: Optional[str]) -> Optional[str]:
        result, original_length = truncate(value, MAX_FIELD_LENGTH)
        if original_length is not None:
            warnings.append(MappingWarning(
                field,
                f"{self.entity_label} {record_id}: {field} truncated from {original_length} "
                f"to {MAX_FIELD_LENGTH} characters.",
                str(original_length),
                str(MAX_FIELD_LENGTH)))
        return result

    def _check_truck(self, warnings: List[MappingWarning], truck_id: Optional[int], owner: str) -> Optional[int]:
        """Null out a truck reference missing from the valid truck set"""
        valid = self.context.valid_truck_ids
        if truck_id is None or valid is None or truck_id in valid:
            return truck_id
        warnings.append(MappingWarning(
            "TruckId",
            f"{owner} references invalid TruckId {truck_id}. Truck will be set to null.",
            str(truck_id),
            None))
        return None
