import csv
import json
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from io import StringIO

from skytools.models import GridBox


def _to_plain(value):
    if is_dataclass(value) and not isinstance(value, type):
        data = {item.name: _to_plain(getattr(value, item.name)) for item in fields(value)}
        if isinstance(value, GridBox):
            # grid boxes of different kinds share one listing
            data = {"type": type(value).__name__, **data}
        return data
    if isinstance(value, Mapping):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return value


def _normalize_data(data):
    if is_dataclass(data) and not isinstance(data, type):
        return _to_plain(data)
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, (list, tuple)):
        normalized = []
        for item in data:
            if isinstance(item, Mapping) or (
                is_dataclass(item) and not isinstance(item, type)
            ):
                normalized.append(_to_plain(item))
            else:
                normalized.append(str(item))
        return normalized
    return str(data)


def _cell_text(value):
    if value is None:
        return ""
    if isinstance(value, dict) and "term_code" in value:
        return f"{value['term_code']} : {value['term_name']}"
    return str(value)


def _infer_headers(rows):
    headers = []
    seen = set()
    for row in rows:
        for key in row.keys():
            if key not in seen:
                headers.append(key)
                seen.add(key)
    return headers


def to_json(data):
    normalized = _normalize_data(data)
    return json.dumps(normalized, indent=2)


def to_csv(data):
    normalized = _normalize_data(data)
    if not isinstance(normalized, list):
        return str(normalized)
    if not normalized:
        return ""
    if not all(isinstance(item, dict) for item in normalized):
        return str(normalized)

    headers = _infer_headers(normalized)
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, extrasaction="ignore")
    writer.writeheader()
    for row in normalized:
        writer.writerow({key: _cell_text(value) for key, value in row.items()})
    return buffer.getvalue()


def print_table(data):
    normalized = _normalize_data(data)
    if not isinstance(normalized, list):
        return str(normalized)
    if not normalized:
        return ""
    if not all(isinstance(item, dict) for item in normalized):
        return str(normalized)

    headers = _infer_headers(normalized)
    rows = []
    for row in normalized:
        rows.append(
            [_cell_text(row.get(header)) for header in headers]
        )

    widths = [len(str(header)) for header in headers]
    for row in rows:
        for index, value in enumerate(row):
            if len(value) > widths[index]:
                widths[index] = len(value)

    header_line = " | ".join(
        str(header).ljust(widths[index]) for index, header in enumerate(headers)
    )
    separator_line = "-+-".join("-" * widths[index] for index in range(len(headers)))
    row_lines = [
        " | ".join(value.ljust(widths[index]) for index, value in enumerate(row))
        for row in rows
    ]
    return "\n".join([header_line, separator_line] + row_lines)
