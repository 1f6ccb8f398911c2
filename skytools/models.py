from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Tuple
import re

_DECIMAL_RE = re.compile(r"^\s*[+-]?\d*\.\d+\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")


@dataclass(frozen=True)
class Term:
    """A grading period. Two terms are equal when their codes match."""

    term_code: str
    term_name: str = field(compare=False)

    def __str__(self):
        return f"{self.term_code} : {self.term_name}"


class GridBox:
    """Root of every classified gradebook cell.

    Only GradeBox and AssignmentsListSmaller lead to another page.
    """

    clickable: ClassVar[bool] = False


@dataclass(frozen=True)
class TeacherIDBox(GridBox):
    """Course header; usually marks the start of a new course section."""

    teacher_name: str
    course_name: str
    time_period: str

    def __str__(self):
        return f"{self.teacher_name}:{self.course_name}:{self.time_period}"


class GradeTextBox(GridBox):
    term: Term


@dataclass(frozen=True)
class LessInfoBox(GradeTextBox):
    """Unclickable behavior or letter grade."""

    behavior: str
    term: Term

    def __str__(self):
        return f"{self.term}:{self.behavior}"


@dataclass(frozen=True)
class GradeBox(GradeTextBox):
    course_number: str
    term: Term
    grade: str
    student_id: Optional[str] = None

    clickable: ClassVar[bool] = True

    def __str__(self):
        return (
            f"{self.term} for {self.grade} for course # {self.course_number} "
            f"for student {self.student_id}"
        )


class AssignmentsGridBox(GridBox):
    attributes: Mapping[str, Optional[str]]

    def __post_init__(self):
        # read-only view, insertion order kept
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def assignment_label(self) -> Optional[str]:
        values = list(self.attributes.values())
        if len(values) < 2:
            return None
        return values[1]

    def int_grade(self) -> Optional[str]:
        for value in self.attributes.values():
            if value is not None and _INTEGER_RE.match(value):
                return value
        return None

    def decimal_grade(self) -> Optional[str]:
        for value in self.attributes.values():
            if value is not None and _DECIMAL_RE.match(value):
                return value
        return self.int_grade()


@dataclass(frozen=True)
class Assignment(AssignmentsGridBox):
    student_id: Optional[str]
    assignment_id: Optional[str]
    gb_id: Optional[str]
    assignment_name: str
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class CategoryHeader(AssignmentsGridBox):
    cat_name: str
    weight: Optional[str] = None
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class AssignmentsListSmaller(GridBox):
    """Consecutive assignments of one grade-detail block."""

    assignments: Tuple[Assignment, ...] = ()

    clickable: ClassVar[bool] = True

    def __post_init__(self):
        object.__setattr__(self, "assignments", tuple(self.assignments))


@dataclass(frozen=True)
class AssignmentInfoBox:
    info_name: str
    info: Optional[str] = None

    def ui_message(self) -> str:
        return f"{self.info_name} {self.info or ''}"


@dataclass(frozen=True)
class SkywardSearchState:
    state_name: str
    state_id: str


@dataclass(frozen=True)
class SkywardDistrict:
    district_name: str = field(compare=False)
    district_link: str
