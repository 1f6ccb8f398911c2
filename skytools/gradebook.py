"""Gradebook fetching and extraction helpers.

The gradebook page carries its grid as a JSON blob inside
``<script data-rel="sff">``. Every cell of that blob holds its own HTML
fragment, which is parsed again and classified by the marker elements,
data attributes and text it contains.
"""

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

import json
import logging
import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from skytools.errors import MalformedDocument, SessionExpired
from skytools.models import (
    Assignment,
    AssignmentsListSmaller,
    GradeBox,
    GridBox,
    LessInfoBox,
    TeacherIDBox,
    Term,
)

logger = logging.getLogger(__name__)

GRADEBOOK_PATH = "sfgradebook001.w"
SESSION_EXPIRED_MARKER = "Your session has expired and you have been logged out."
PAYLOAD_MARKER = (
    "sff.sv('sf_gridObjects',$.extend((sff.getValue('sf_gridObjects') "
)
PAYLOAD_SUFFIX_LENGTH = 5
HEADER_TAIL_LENGTH = 4

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_DANGLING_TAG_RE = re.compile(r"<[^>]*$")
_HEADER_TAG_RE = re.compile(r"<th\b", re.IGNORECASE)


class GradebookPayload(NamedTuple):
    header_cells: List[Dict[str, Any]]
    body_rows: List[Dict[str, Any]]
    raw_html: str


def _parse_fragment(html: Optional[str]) -> BeautifulSoup:
    # cells holding plain text such as "notes.txt" are still fragments
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        return BeautifulSoup(html or "", "lxml")


def _cell_html(cell: Any) -> str:
    if not isinstance(cell, dict):
        raise MalformedDocument(f"Expected a cell object, got {type(cell).__name__}")
    value = cell.get("h")
    return "" if value is None else str(value)


def _row_cells(row: Any) -> List[Any]:
    cells = row.get("c") if isinstance(row, dict) else None
    if not isinstance(cells, list):
        raise MalformedDocument("Gradebook row has no cell list")
    return cells


def did_session_expire(html: str) -> bool:
    return SESSION_EXPIRED_MARKER in (html or "")


def locate_payload(html: str) -> GradebookPayload:
    """Find the gridbox script of a gradebook page and decode its JSON body."""
    soup = BeautifulSoup(html or "", "lxml")
    script = soup.find("script", attrs={"data-rel": "sff"})
    if script is None:
        raise MalformedDocument("Gradebook payload script not found")
    text = script.string or ""
    marker_index = text.find(PAYLOAD_MARKER)
    if marker_index == -1:
        raise MalformedDocument("Gradebook payload marker not found")

    body = text[marker_index + len(PAYLOAD_MARKER) : len(text) - PAYLOAD_SUFFIX_LENGTH]
    # outer key is the grid's client-side name, only the value matters
    body = body[body.find(":") + 1 :]
    try:
        decoded = json.loads(body)
    except ValueError as exc:
        raise MalformedDocument("Gradebook payload is not valid JSON") from exc

    try:
        header_cells = decoded["th"]["r"][0]["c"]
        body_rows = decoded["tb"]["r"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedDocument("Gradebook payload has an unexpected shape") from exc
    if not isinstance(header_cells, list) or not isinstance(body_rows, list):
        raise MalformedDocument("Gradebook payload has an unexpected shape")

    logger.debug(
        f"Decoded gradebook payload: {len(header_cells)} header cells, "
        f"{len(body_rows)} body rows"
    )
    return GradebookPayload(header_cells, body_rows, html)


def init_gradebook(html: str) -> GradebookPayload:
    if did_session_expire(html):
        logger.warning("Gradebook page reports an expired session")
        raise SessionExpired("Session Expired")
    return locate_payload(html)


def _repair_header_html(html: str) -> str:
    # header cells arrive as <th ...>label</th>; re-tag them as anchors
    trimmed = html[: max(len(html) - HEADER_TAIL_LENGTH, 0)]
    trimmed = _DANGLING_TAG_RE.sub("", trimmed)
    return _HEADER_TAG_RE.sub("<a", trimmed, count=1) + "</a>"


def get_terms(header_cells: List[Dict[str, Any]]) -> List[Term]:
    terms: List[Term] = []
    for cell in header_cells:
        fragment = _parse_fragment(_repair_header_html(_cell_html(cell)))
        anchor = fragment.find("a")
        if anchor is None:
            continue
        tooltip = anchor.get("tooltip")
        if tooltip is None:
            continue
        terms.append(Term(anchor.get_text().strip(), tooltip))
    return terms


def _bracketed(text: str) -> Optional[str]:
    start = text.find("(")
    end = text.find(")")
    if start == -1 or end < start:
        return None
    return text[start + 1 : end]


def _last_integer(cells: List[Any]) -> Optional[str]:
    grade = None
    for cell in cells:
        text = _parse_fragment(_cell_html(cell)).get_text()
        if _INTEGER_RE.match(text):
            grade = str(int(text))
    return grade


class _ScanContext:
    def __init__(self, terms: List[Term], raw_html: str):
        self.terms = terms
        self.raw_html = raw_html
        self._page = None

    @property
    def page(self) -> BeautifulSoup:
        if self._page is None:
            self._page = BeautifulSoup(self.raw_html or "", "lxml")
        return self._page


class _AssignmentGroup:
    """Collects consecutive assignments into one AssignmentsListSmaller."""

    def __init__(self):
        self.current: Optional[List[Assignment]] = None

    def add(self, assignment: Assignment, entries: List[Any]) -> None:
        if self.current is None:
            self.current = []
            entries.append(self.current)
        self.current.append(assignment)

    def close(self) -> None:
        self.current = None

    @staticmethod
    def freeze(entries: List[Any]) -> List[GridBox]:
        return [
            AssignmentsListSmaller(tuple(entry)) if isinstance(entry, list) else entry
            for entry in entries
        ]


Match = Optional[Tuple[GridBox, int]]


def _match_assignment(
    context: _ScanContext, cells: List[Any], index: int, fragment: BeautifulSoup
) -> Match:
    info = fragment.find(id="showAssignmentInfo")
    if info is None:
        return None
    following = cells[index + 1 :]
    spans = fragment.find_all("span")
    label = spans[0].get_text() if spans else ""
    anchor = fragment.find("a")
    assignment = Assignment(
        info.get("data-sid"),
        info.get("data-aid"),
        info.get("data-gid"),
        anchor.get_text().strip() if anchor is not None else "",
        {"term": _bracketed(label), "grade": _last_integer(following)},
    )
    return assignment, len(following)


def _match_grade(
    context: _ScanContext, cells: List[Any], index: int, fragment: BeautifulSoup
) -> Match:
    info = fragment.find(id="showGradeInfo")
    if info is None:
        return None
    box = GradeBox(
        info.get("data-cni"),
        Term(info.get("data-lit"), info.get("data-bkt")),
        info.get_text().strip(),
        info.get("data-sid"),
    )
    return box, 0


def _match_cell_id(
    context: _ScanContext, cells: List[Any], index: int, fragment: BeautifulSoup
) -> Match:
    cell_id = cells[index].get("cId")
    if cell_id is None:
        return None
    element = context.page.find(id=cell_id)
    if element is None:
        raise MalformedDocument(f"Course cell {cell_id!r} not found in page")
    first_child = element.find(True, recursive=False)
    columns = first_child.find_all("td") if first_child is not None else []
    if len(columns) < 4:
        raise MalformedDocument(f"Course cell {cell_id!r} has too few columns")
    box = TeacherIDBox(
        teacher_name=columns[3].get_text().strip(),
        course_name=columns[2].get_text().strip(),
        time_period=columns[1].get_text().strip(),
    )
    return box, 0


def _match_text(
    context: _ScanContext, cells: List[Any], index: int, fragment: BeautifulSoup
) -> Match:
    text = fragment.get_text().strip()
    if not text:
        return None
    # term columns sit one to the left of grade columns
    position = index - 1
    if position < 0 or position >= len(context.terms):
        raise MalformedDocument(
            f"Text cell at column {index} has no matching term column"
        )
    return LessInfoBox(text, context.terms[position]), 0


Rule = Callable[[_ScanContext, List[Any], int, BeautifulSoup], Match]

RULES: Tuple[Rule, ...] = (
    _match_assignment,
    _match_grade,
    _match_cell_id,
    _match_text,
)


def _classify(
    context: _ScanContext, cells: List[Any], index: int, fragment: BeautifulSoup
) -> Match:
    for rule in RULES:
        match = rule(context, cells, index, fragment)
        if match is not None:
            return match
    return None


def get_grid_boxes(
    body_rows: List[Dict[str, Any]], terms: List[Term], raw_html: str
) -> List[GridBox]:
    """Classify every body cell, in page order.

    Rules are tried in ``RULES`` order and the first match wins. Cells no
    rule recognises are skipped. An assignment consumes the rest of its row,
    because its grade is rendered in one of the cells after it.
    """
    context = _ScanContext(terms, raw_html)
    group = _AssignmentGroup()
    entries: List[Any] = []
    for row in body_rows:
        cells = _row_cells(row)
        index = 0
        while index < len(cells):
            fragment = _parse_fragment(_cell_html(cells[index]))
            match = _classify(context, cells, index, fragment)
            if match is None:
                index += 1
                continue
            box, consumed = match
            if isinstance(box, Assignment):
                group.add(box, entries)
            else:
                group.close()
                entries.append(box)
            index += 1 + consumed
    boxes = group.freeze(entries)
    logger.debug(f"Classified {len(boxes)} grid boxes from {len(body_rows)} rows")
    return boxes


def parse_gradebook(html: str) -> Tuple[List[Term], List[GridBox]]:
    payload = init_gradebook(html)
    terms = get_terms(payload.header_cells)
    boxes = get_grid_boxes(payload.body_rows, terms, payload.raw_html)
    return terms, boxes


def get_gradebook(client) -> GradebookPayload:
    response = client.post(GRADEBOOK_PATH)
    response.encoding = "utf-8"
    html = response.text or ""
    logger.info(f"Fetched gradebook page ({len(html)} characters)")
    return init_gradebook(html)
