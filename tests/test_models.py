import dataclasses

import pytest

from skytools.models import (
    Assignment,
    AssignmentInfoBox,
    AssignmentsListSmaller,
    CategoryHeader,
    GradeBox,
    GridBox,
    LessInfoBox,
    SkywardDistrict,
    TeacherIDBox,
    Term,
)


def test_term_equality_uses_code_only():
    first = Term("S1", "Semester 1")
    second = Term("S1", "First semester")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1
    assert Term("S1", "Semester 1") != Term("S2", "Semester 1")
    assert str(first) == "S1 : Semester 1"


def test_term_is_immutable():
    term = Term("Q1", "Quarter 1")

    with pytest.raises(dataclasses.FrozenInstanceError):
        term.term_code = "Q2"


def test_clickable_is_fixed_per_variant():
    term = Term("Q1", "Quarter 1")

    assert GridBox.clickable is False
    assert TeacherIDBox("Smith", "ALGEBRA I", "Period 1").clickable is False
    assert LessInfoBox("A", term).clickable is False
    assert GradeBox("MATH101", term, "92", "555").clickable is True
    assert AssignmentsListSmaller().clickable is True
    assert "clickable" not in [f.name for f in dataclasses.fields(GradeBox)]


def test_box_string_forms():
    term = Term("Q1", "Quarter 1")

    assert str(TeacherIDBox("Smith", "ALGEBRA I", "Period 1")) == "Smith:ALGEBRA I:Period 1"
    assert str(LessInfoBox("A", term)) == "Q1 : Quarter 1:A"
    assert str(GradeBox("MATH101", term, "92", "555")) == (
        "Q1 : Quarter 1 for 92 for course # MATH101 for student 555"
    )


def test_assignment_grade_helpers():
    assignment = Assignment(
        "1", "2", "3", "HW 1", {"term": "S1", "grade": "85", "score": "42.5"}
    )

    assert assignment.assignment_label() == "85"
    assert assignment.int_grade() == "85"
    assert assignment.decimal_grade() == "42.5"


def test_assignment_grade_helpers_without_grade():
    assignment = Assignment("1", "2", "3", "HW 1", {"term": "S1", "grade": None})

    assert assignment.int_grade() is None
    assert assignment.decimal_grade() is None


def test_category_header_defaults():
    header = CategoryHeader("Homework")

    assert header.weight is None
    assert header.attributes == {}
    assert header.clickable is False


def test_assignment_info_box_ui_message():
    assert AssignmentInfoBox("Due Date", "9/3/19").ui_message() == "Due Date 9/3/19"
    assert AssignmentInfoBox("Points").ui_message() == "Points "


def test_district_equality_uses_link_only():
    first = SkywardDistrict("Plano ISD", "https://example.test/plano")
    second = SkywardDistrict("Plano", "https://example.test/plano")

    assert first == second
    assert hash(first) == hash(second)
    assert first != SkywardDistrict("Plano ISD", "https://example.test/other")


def test_assignment_records_are_hashable_and_read_only():
    source = {"term": "S1", "grade": "85"}
    assignment = Assignment("1", "2", "3", "HW 1", source)
    header = CategoryHeader("Homework", "40%", {"weight": "40%"})
    group = AssignmentsListSmaller([assignment])

    source["grade"] = "0"

    assert assignment.attributes == {"term": "S1", "grade": "85"}
    assert hash(assignment) == hash(Assignment("1", "2", "3", "HW 1", {}))
    assert isinstance(hash(header), int)
    assert group.assignments == (assignment,)
    assert isinstance(hash(group), int)
    with pytest.raises(TypeError):
        header.attributes["weight"] = "50%"
    with pytest.raises(dataclasses.FrozenInstanceError):
        group.assignments = ()
