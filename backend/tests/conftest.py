"""Shared fixtures: timesheet rows and decoded records."""

from datetime import date, datetime
from pathlib import Path
import sys

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kintai_compliance.models.master_data import CalendarType
from kintai_compliance.models.schemas import AttendanceRecord
from kintai_compliance.services.row_decoder import ColumnIndex, MIN_COLUMNS

TODAY = date(2025, 2, 1)

DEFAULT_ROW = {
    "employee_id": "E001",
    "employee_name": "山田太郎",
    "department": "開発部",
    "position": "エンジニア",
    "date": "2025-01-15",
    "day_of_week": "水",
    "calendar_type": "平日",
    "application_content": "",
    "clock_in": "2025-01-15 09:00",
    "clock_out": "2025-01-15 18:00",
    "break_time": "1:00",
    "actual_work": "8:00",
    "scheduled_work": "7:45",
    "statutory_overtime": "0:00",
    "remarks": "",
}


def build_row(**fields):
    """61 列的出勤簿行，字段名对应 ColumnIndex（小写）"""
    values = {**DEFAULT_ROW, **fields}
    row = [None] * MIN_COLUMNS
    for name, value in values.items():
        row[getattr(ColumnIndex, name.upper())] = value
    return row


def build_record(**fields):
    values = {
        "employee_id": "E001",
        "employee_name": "山田太郎",
        "department": "開発部",
        "date": date(2025, 1, 15),
        "calendar_type": CalendarType.WEEKDAY,
        "clock_in": datetime(2025, 1, 15, 9, 0),
        "clock_out": datetime(2025, 1, 15, 18, 0),
        "break_minutes": 60,
        "actual_work_minutes": 480,
    }
    values.update(fields)
    return AttendanceRecord(**values)


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def today():
    return TODAY
