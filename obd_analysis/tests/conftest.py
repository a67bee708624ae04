"""Shared pytest fixtures for obd_analysis tests."""

from __future__ import annotations

import io
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import fitz  # PyMuPDF
import pandas as pd
import pytest

_PROJECT_ROWS: List[Dict[str, str]] = [
    {"name": "Harrier 2024", "description": "New Harrier", "status": "Active", "manager": "John Doe"},
    {"name": "Safari Hybrid", "description": "Hybrid Safari", "status": "Inactive", "manager": "Alice Brown"},
]


def _pdf_from_lines(lines: List[str]) -> bytes:
    """Render one text line per row on a single A4 page."""
    doc = fitz.open()
    try:
        page = doc.new_page()
        y = 72
        for line in lines:
            page.insert_text((72, y), line, fontsize=11)
            y += 20
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture()
def project_rows() -> List[Dict[str, str]]:
    return [dict(row) for row in _PROJECT_ROWS]


@pytest.fixture()
def project_csv_bytes() -> bytes:
    return (
        "name,description,status,manager\n"
        "Harrier 2024,New Harrier,Active,John Doe\n"
        "\n"
        "Safari Hybrid,Hybrid Safari,Inactive,Alice Brown\n"
    ).encode("utf-8")


@pytest.fixture()
def project_excel_bytes() -> bytes:
    frame = pd.DataFrame(
        [
            {"PROJECT_NAME": "Nexon EV", "PROJECT_DESCRIPTION": "Electric Nexon",
             "Status": "Active", "PROJECT_MANAGER": "Jane Smith"},
            {"PROJECT_NAME": "Altroz Turbo", "PROJECT_DESCRIPTION": None,
             "Status": "Paused", "PROJECT_MANAGER": None},
        ]
    )
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


@pytest.fixture()
def project_pdf_bytes() -> bytes:
    return _pdf_from_lines([
        "Harrier 2024",
        "New Harrier",
        "Active",
        "John Doe",
        "Tiago CNG",
        "CNG variant",
    ])


@pytest.fixture()
def make_history():
    """Factory for ``{data_type, value, timestamp}`` rows one minute apart."""

    def _make(data_type: str, values: List[Any], start: Optional[datetime] = None):
        start = start or datetime(2024, 3, 1, 8, 0, 0)
        return [
            {
                "data_type": data_type,
                "value": value,
                "timestamp": start + timedelta(minutes=i),
            }
            for i, value in enumerate(values)
        ]

    return _make
