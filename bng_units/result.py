"""
bng_units/result.py

Outcome of evaluating one record: either the computed record or the list of
reasons it was rejected. Bad input is reported, never raised, so callers
can show every problem with a row at once.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class FailureCategory(str, Enum):
    FIELD = "field"            # shape of the input (types, picklists, negatives)
    CATALOG = "catalog"        # identity / condition not known to the catalog
    RULE = "rule"              # metric business rules
    TRADING = "trading"        # enhancement trading rules


@dataclass(frozen=True)
class ValidationFailure:
    rule: str
    message: str
    category: FailureCategory = FailureCategory.RULE
    field: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.field}]" if self.field else ""
        return f"{self.rule}{where}: {self.message}"


class EvaluationError(ValueError):
    """Raised by EvaluationResult.unwrap() when the record failed validation."""

    def __init__(self, failures: Tuple[ValidationFailure, ...]):
        self.failures = tuple(failures)
        super().__init__("; ".join(str(f) for f in self.failures))


@dataclass(frozen=True)
class EvaluationResult(Generic[T]):
    record: Optional[T] = None
    failures: Tuple[ValidationFailure, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls, record: T) -> "EvaluationResult[T]":
        return cls(record=record)

    @classmethod
    def failure(cls, failures) -> "EvaluationResult[Any]":
        failures = tuple(failures)
        if not failures:
            raise ValueError("A failed result needs at least one failure")
        return cls(record=None, failures=failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def rules(self) -> Tuple[str, ...]:
        """Rule labels of the failures, in the order they were found."""
        return tuple(f.rule for f in self.failures)

    def unwrap(self) -> T:
        if self.failures:
            raise EvaluationError(self.failures)
        return self.record
