"""Tests for decoding fixed-position timesheet rows."""

from datetime import date, datetime, time, timedelta
from pathlib import Path
import sys

import pandas as pd
import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kintai_compliance.models.master_data import CalendarType
from kintai_compliance.services.row_decoder import (
    ColumnContractError,
    RowDecodeError,
    decode_row,
    decode_rows,
    parse_calendar_type,
    parse_date,
    parse_datetime,
    parse_duration_minutes,
    parse_scheduled_start,
    parse_scheduled_start_from_sheet,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("7:30", 450),
        ("0:00", 0),
        ("12:05", 725),
        ("-0:30", -30),
        ("1:00:00", 60),
        ("abc", 0),
        ("7.5", 0),
        ("", 0),
        (None, 0),
        (timedelta(hours=2, minutes=15), 135),
        (time(1, 45), 105),
        (0.5, 720),
    ],
)
def test_parse_duration_minutes(value, expected):
    assert parse_duration_minutes(value) == expected


def test_parse_date_accepts_common_shapes():
    assert parse_date("2025-01-15") == date(2025, 1, 15)
    assert parse_date("2025/1/5") == date(2025, 1, 5)
    assert parse_date("1/15/25") == date(2025, 1, 15)
    assert parse_date(45672) == date(2025, 1, 15)
    assert parse_date(datetime(2025, 1, 15, 9, 0)) == date(2025, 1, 15)
    assert parse_date("2025-02-30") is None
    assert parse_date("") is None
    assert parse_date(pd.Timestamp("2025-01-15")) == date(2025, 1, 15)
    assert parse_date(45672.7) == date(2025, 1, 15)
    assert parse_date("2025-01-15 09:00") == date(2025, 1, 15)
    assert parse_date("15日") is None


def test_parse_datetime_requires_time_of_day():
    assert parse_datetime("2025-01-15 09:05") == datetime(2025, 1, 15, 9, 5)
    assert parse_datetime("1/15/2025 18:30") == datetime(2025, 1, 15, 18, 30)
    # 出社列有时存放排班文字
    assert parse_datetime("900-1730/1200-1300") is None
    assert parse_datetime("2025-01-15") is None
    assert parse_datetime(None) is None


def test_parse_datetime_other_cell_types():
    assert parse_datetime(45672.375) == datetime(2025, 1, 15, 9, 0)
    assert parse_datetime(pd.Timestamp("2025-01-15 18:30")) == datetime(2025, 1, 15, 18, 30)
    assert parse_datetime("2025/1/15 9:05") == datetime(2025, 1, 15, 9, 5)
    assert parse_datetime(time(8, 30)).time() == time(8, 30)
    # 只有日期没有时刻的单元格不是打卡
    assert parse_datetime(date(2025, 1, 15)) is None
    assert parse_datetime(True) is None


def test_parse_calendar_type():
    assert parse_calendar_type("平日") == CalendarType.WEEKDAY
    assert parse_calendar_type("法定休") == CalendarType.STATUTORY_HOLIDAY
    assert parse_calendar_type("法定外") == CalendarType.NON_STATUTORY_HOLIDAY
    assert parse_calendar_type("8時～") == CalendarType.WEEKDAY
    assert parse_calendar_type("祝日") == CalendarType.NON_STATUTORY_HOLIDAY


def test_parse_scheduled_start():
    assert parse_scheduled_start("830-1700/1200-1300/7.75/5") == (8, 30)
    assert parse_scheduled_start("残業終了,900-1730/1200-1300/7.75/5") == (9, 0)
    assert parse_scheduled_start("有休") is None
    assert parse_scheduled_start_from_sheet("KDDI_日勤_800-1630～930-1800") == (8, 0)
    assert parse_scheduled_start_from_sheet("常駐_9:00-17:30") == (9, 0)
    assert parse_scheduled_start_from_sheet("本社") is None


def test_decode_row_maps_fixed_columns(make_row):
    row = make_row(
        statutory_overtime="1:30",
        cumulative_statutory_overtime="12:00",
        weekly_overtime="0:45",
        night_work="0:20",
        remarks="  客先訪問  ",
    )
    record = decode_row(row, "本社", 3)

    assert record.employee_id == "E001"
    assert record.employee_name == "山田太郎"
    assert record.department == "開発部"
    assert record.date == date(2025, 1, 15)
    assert record.calendar_type == CalendarType.WEEKDAY
    assert record.clock_in == datetime(2025, 1, 15, 9, 0)
    assert record.clock_out == datetime(2025, 1, 15, 18, 0)
    assert record.break_minutes == 60
    assert record.actual_work_minutes == 480
    assert record.scheduled_work_minutes == 465
    assert record.statutory_overtime_minutes == 90
    assert record.cumulative_statutory_overtime_minutes == 720
    assert record.weekly_overtime_minutes == 45
    assert record.night_work_minutes == 20
    assert record.remarks == "客先訪問"
    assert record.sheet_name == "本社"
    assert not record.late_flag
    assert not record.early_start_flag
    assert not record.holiday_work_flag


def test_decode_row_numeric_employee_id_is_normalised(make_row):
    record = decode_row(make_row(employee_id=1001.0))
    assert record.employee_id == "1001"


def test_decode_row_tolerates_passthrough_columns(make_row):
    row = make_row()
    for idx in (13, 20, 37, 43, 47, 59):
        row[idx] = "payroll-specific"
    row.extend(["extra", 123])

    assert decode_row(row).employee_id == "E001"


def test_decode_row_rejects_short_rows(make_row):
    with pytest.raises(ColumnContractError) as exc_info:
        decode_row(make_row()[:60], "本社", 7)

    assert exc_info.value.row_number == 7
    assert exc_info.value.column_count == 60


@pytest.mark.parametrize("field", ["employee_id", "date"])
def test_decode_row_requires_identity_fields(make_row, field):
    with pytest.raises(RowDecodeError):
        decode_row(make_row(**{field: ""}))


def test_decode_rows_skips_and_counts(make_row):
    header = ["社員番号"] + [f"col{i}" for i in range(1, 61)]
    rows = [
        header,
        make_row(),
        [None] * 61,
        make_row(employee_id=None),
        make_row(date="not a date"),
        make_row(date="2025-01-16", clock_in="2025-01-16 09:00", clock_out="2025-01-16 18:00"),
    ]

    records, skipped = decode_rows(rows, "本社")

    assert [r.date for r in records] == [date(2025, 1, 15), date(2025, 1, 16)]
    assert skipped == 2


def test_decode_rows_short_row_is_fatal(make_row):
    with pytest.raises(ColumnContractError):
        decode_rows([make_row(), ["E002", "佐藤", "営業部"]], "本社")


def test_late_flag_from_late_minutes(make_row):
    record = decode_row(make_row(late_minutes="0:15", clock_in="2025-01-15 09:15"))
    assert record.late_flag
    assert record.late_minutes == 15


def test_eight_oclock_sheet_hour_late_is_ignored(make_row):
    row = make_row(late_minutes="1:00", clock_in="2025-01-15 09:00")

    on_eight_sheet = decode_row(row, "KDDI_日勤_800-1630～930-1800")
    elsewhere = decode_row(row, "本社")

    assert not on_eight_sheet.late_flag
    assert on_eight_sheet.late_minutes == 0
    assert elsewhere.late_flag


def test_early_start_uses_schedule_from_application(make_row):
    early = decode_row(make_row(clock_in="2025-01-15 08:30"))
    scheduled = decode_row(make_row(
        clock_in="2025-01-15 08:30",
        application_content="830-1700/1200-1300/7.75/5",
    ))
    from_sheet = decode_row(make_row(clock_in="2025-01-15 08:00"), "KDDI_日勤_800-1630")

    assert early.early_start_flag
    assert not scheduled.early_start_flag
    assert not from_sheet.early_start_flag


def test_early_start_declaration_column(make_row):
    record = decode_row(make_row(clock_in="2025-01-15 08:00", early_start_flag="1"))
    assert record.early_start_flag
    assert record.early_start_declared


def test_holiday_work_flag(make_row):
    holiday = decode_row(make_row(calendar_type="法定休"))
    substitute = decode_row(make_row(calendar_type="法定外", application_content="振替出勤"))
    no_punch = decode_row(make_row(calendar_type="法定休", clock_in=None, clock_out=None))

    assert holiday.holiday_work_flag
    assert not substitute.holiday_work_flag
    assert not no_punch.holiday_work_flag


def test_decode_rows_short_blank_row_is_fatal(make_row):
    with pytest.raises(ColumnContractError) as exc_info:
        decode_rows([make_row(), [None] * 10], "本社")

    assert exc_info.value.row_number == 2
    assert exc_info.value.column_count == 10
