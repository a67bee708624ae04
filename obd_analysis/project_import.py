"""Parse project import files (CSV, Excel, PDF) into normalised records.

Three parsers turn raw upload bytes into a list of loosely-keyed dicts;
:func:`normalize_project_records` then maps the many header spellings seen
in the wild onto a single :class:`ProjectRecord` shape.

==================  ===============================================
Field               Accepted source keys
==================  ===============================================
name                ``name``, ``Name``, ``PROJECT_NAME``
description         ``description``, ``Description``,
                    ``PROJECT_DESCRIPTION``
status              ``status``, ``Status`` (``Active``/``Inactive``)
manager             ``manager``, ``Manager``, ``PROJECT_MANAGER``
==================  ===============================================

PDF files carry no header row, so their text lines are consumed four at a
time in the order name, description, status, manager.
"""

from __future__ import annotations

import io
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import PurePath
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

import fitz  # PyMuPDF
import pandas as pd

FileType = Literal["csv", "excel", "pdf"]

SUPPORTED_FILE_TYPES: tuple[str, ...] = ("csv", "excel", "pdf")

PROJECT_STATUSES: tuple[str, ...] = ("Active", "Inactive")

DEFAULT_MANAGER = "System Import"

PDF_FIELD_ORDER: tuple[str, ...] = ("name", "description", "status", "manager")

_EXTENSION_TYPES: Dict[str, FileType] = {
    ".csv": "csv",
    ".xlsx": "excel",
    ".xls": "excel",
    ".pdf": "pdf",
}

_NAME_KEYS = ("name", "Name", "PROJECT_NAME")
_DESCRIPTION_KEYS = ("description", "Description", "PROJECT_DESCRIPTION")
_STATUS_KEYS = ("status", "Status")
_MANAGER_KEYS = ("manager", "Manager", "PROJECT_MANAGER")

TEMPLATE_CSV = (
    "name,description,status,manager\n"
    "Harrier 2024,New Harrier model for 2024,Active,John Doe\n"
    "Nexon EV,Electric version of Nexon,Active,Jane Smith\n"
    "Altroz Turbo,Turbocharged version of Altroz,Active,Bob Johnson\n"
    "Safari Hybrid,Hybrid version of Safari,Inactive,Alice Brown\n"
)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class UnsupportedFileTypeError(ValueError):
    """Raised when an upload is not one of :data:`SUPPORTED_FILE_TYPES`."""


class ProjectFileParseError(ValueError):
    """Raised when an upload cannot be parsed as its declared type."""


# ---------------------------------------------------------------------------
# Output dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectRecord:
    """A single normalised project row ready for insertion."""

    name: str
    description: str
    status: str
    manager: str
    created_date: date

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# File type detection
# ---------------------------------------------------------------------------


def resolve_file_type(
    declared: Optional[str], filename: Optional[str] = None,
) -> FileType:
    """Return the effective file type for an upload.

    An explicit *declared* type wins; otherwise the extension of
    *filename* is used.

    Raises:
        UnsupportedFileTypeError: If neither source yields a known type.
    """
    if declared:
        value = declared.strip().lower()
        if value in SUPPORTED_FILE_TYPES:
            return value  # type: ignore[return-value]
        raise UnsupportedFileTypeError(f"Unsupported file type: {declared}")

    if filename:
        suffix = PurePath(filename).suffix.lower()
        if suffix in _EXTENSION_TYPES:
            return _EXTENSION_TYPES[suffix]

    raise UnsupportedFileTypeError("Unsupported file type")


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def _frame_to_records(frame: pd.DataFrame) -> List[Dict[str, str]]:
    frame = frame.fillna("")
    frame.columns = [str(c).strip() for c in frame.columns]
    return frame.to_dict(orient="records")


def parse_csv(content: bytes) -> List[Dict[str, str]]:
    """Parse CSV bytes with a header row into a list of dicts."""
    try:
        frame = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ProjectFileParseError("Failed to parse CSV file") from exc
    return _frame_to_records(frame)


def parse_excel(content: bytes) -> List[Dict[str, str]]:
    """Parse the first worksheet of an Excel workbook into a list of dicts."""
    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str)
    except Exception as exc:
        raise ProjectFileParseError("Failed to parse Excel file") from exc
    return _frame_to_records(frame)


def extract_pdf_lines(content: bytes) -> List[str]:
    """Return the non-blank text lines of every page of a PDF document."""
    try:
        doc = fitz.open(stream=content, filetype="pdf")
    except Exception as exc:
        raise ProjectFileParseError("Failed to parse PDF file") from exc

    lines: List[str] = []
    try:
        for page in doc:
            text = page.get_text("text")
            lines.extend(line.strip() for line in text.splitlines() if line.strip())
    finally:
        doc.close()
    return lines


def parse_pdf(content: bytes) -> List[Dict[str, str]]:
    """Group PDF text lines into records of :data:`PDF_FIELD_ORDER` fields.

    A trailing partial group is kept as its own record.
    """
    lines = extract_pdf_lines(content)
    width = len(PDF_FIELD_ORDER)
    records: List[Dict[str, str]] = []
    for start in range(0, len(lines), width):
        chunk = lines[start:start + width]
        records.append(dict(zip(PDF_FIELD_ORDER, chunk)))
    return records


_PARSERS = {
    "csv": parse_csv,
    "excel": parse_excel,
    "pdf": parse_pdf,
}


def parse_project_file(content: bytes, file_type: str) -> List[Dict[str, str]]:
    """Dispatch *content* to the parser for *file_type*."""
    parser = _PARSERS.get(file_type)
    if parser is None:
        raise UnsupportedFileTypeError(f"Unsupported file type: {file_type}")
    return parser(content)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def _first_value(item: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value = item.get(key)
        if value is None:
            continue
        text = str(value)
        if text:
            return text
    return ""


def normalize_project_record(
    item: Mapping[str, Any], today: date,
) -> Optional[ProjectRecord]:
    """Normalise one parsed row, or return ``None`` if it has no name."""
    name = _first_value(item, _NAME_KEYS).strip()
    if not name:
        return None

    status = _first_value(item, _STATUS_KEYS) or "Active"
    if status not in PROJECT_STATUSES:
        status = "Active"

    manager = _first_value(item, _MANAGER_KEYS).strip() or DEFAULT_MANAGER

    return ProjectRecord(
        name=name,
        description=_first_value(item, _DESCRIPTION_KEYS).strip(),
        status=status,
        manager=manager,
        created_date=today,
    )


def normalize_project_records(
    items: Sequence[Mapping[str, Any]], today: Optional[date] = None,
) -> List[ProjectRecord]:
    """Normalise parsed rows, dropping those without a project name."""
    today = today or date.today()
    records = []
    for item in items:
        record = normalize_project_record(item, today)
        if record is not None:
            records.append(record)
    return records


def load_project_file(
    content: bytes, file_type: str, today: Optional[date] = None,
) -> List[ProjectRecord]:
    """Parse and normalise an uploaded project file in one step."""
    return normalize_project_records(parse_project_file(content, file_type), today)
