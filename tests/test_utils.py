import json

from skytools.models import (
    Assignment,
    AssignmentsListSmaller,
    GradeBox,
    LessInfoBox,
    Term,
)
from skytools.utils import print_table, to_csv, to_json


def test_to_json_tags_grid_boxes_with_type():
    boxes = [GradeBox("MATH101", Term("S1", "Semester 1"), "92", "555")]

    data = json.loads(to_json(boxes))

    assert data == [
        {
            "type": "GradeBox",
            "course_number": "MATH101",
            "term": {"term_code": "S1", "term_name": "Semester 1"},
            "grade": "92",
            "student_id": "555",
        }
    ]


def test_to_json_leaves_terms_untagged():
    data = json.loads(to_json([Term("Q1", "Quarter 1")]))

    assert data == [{"term_code": "Q1", "term_name": "Quarter 1"}]


def test_to_csv_renders_terms_inline():
    text = to_csv([LessInfoBox("A", Term("Q1", "Quarter 1"))])

    lines = text.strip().splitlines()
    assert lines[0] == "type,behavior,term"
    assert lines[1] == "LessInfoBox,A,Q1 : Quarter 1"


def test_print_table_merges_headers_across_box_types():
    term = Term("Q1", "Quarter 1")
    table = print_table([LessInfoBox("A", term), GradeBox("MATH101", term, "92")])

    header = table.splitlines()[0]
    assert [part.strip() for part in header.split("|")] == [
        "type",
        "behavior",
        "term",
        "course_number",
        "grade",
        "student_id",
    ]
    assert "Q1 : Quarter 1" in table


def test_print_table_empty_list():
    assert print_table([]) == ""


def test_to_json_expands_assignment_groups():
    assignment = Assignment("1", "2", "3", "HW 1", {"term": "S1", "grade": "85"})

    data = json.loads(to_json([AssignmentsListSmaller([assignment])]))

    assert data == [
        {
            "type": "AssignmentsListSmaller",
            "assignments": [
                {
                    "type": "Assignment",
                    "student_id": "1",
                    "assignment_id": "2",
                    "gb_id": "3",
                    "assignment_name": "HW 1",
                    "attributes": {"term": "S1", "grade": "85"},
                }
            ],
        }
    ]
