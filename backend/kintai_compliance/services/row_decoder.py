"""
出勤簿行解码
把已解码的表格行（61 列固定位置）转换为 AttendanceRecord
"""
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from kintai_compliance.models.master_data import (
    CalendarType,
    STANDARD_WORK_START,
    SUBSTITUTE_WORK_KEYWORDS,
    has_application_keyword,
)
from kintai_compliance.models.schemas import AttendanceRecord
from kintai_compliance.utils.logger import get_logger

logger = get_logger("row_decoder")


class ColumnIndex:
    """出勤簿列位置（0 起始）"""
    EMPLOYEE_ID = 0
    EMPLOYEE_NAME = 1
    DEPARTMENT = 2
    POSITION = 3
    DATE = 4
    DAY_OF_WEEK = 5
    CALENDAR_TYPE = 6
    APPLICATION_CONTENT = 7
    CLOCK_IN = 8
    EARLY_START_FLAG = 9
    CLOCK_OUT = 10
    COMPUTED_START = 11
    COMPUTED_END = 12
    ALTX_OVERTIME_IN = 16
    ALTX_OVERTIME_OUT = 17
    PRIVATE_OUT_TIME = 28
    PRIVATE_RETURN_TIME = 29
    BREAK_TIME = 36
    NIGHT_BREAK_CORRECTION = 38
    ACTUAL_WORK = 39
    SCHEDULED_PLUS_ACTUAL = 40
    WEEKLY_OVERTIME = 41
    SCHEDULED_WORK = 42
    STATUTORY_OVERTIME = 44
    NIGHT_WORK = 45
    LATE_MINUTES = 49
    EARLY_LEAVE_MINUTES = 50
    CUMULATIVE_STATUTORY_OVERTIME = 58
    REMARKS = 60


MIN_COLUMNS = ColumnIndex.REMARKS + 1
HEADER_EMPLOYEE_ID = "社員番号"

EXCEL_EPOCH = datetime(1899, 12, 30)
EXCEL_ORIGIN = "1899-12-30"

_DURATION_RE = re.compile(r"^(-)?(\d+):(\d{1,2})(?::\d{1,2})?$")
# 只接受以日期开头的文字（YYYY-MM-DD、YYYY/M/D、M/D/YY），时刻部分可选
_DATE_TEXT_RE = re.compile(
    r"^(?P<date>\d{4}[-/]\d{1,2}[-/]\d{1,2}|\d{1,2}/\d{1,2}/\d{2,4})"
    r"(?:[ T]+(?P<time>\d{1,2}:\d{2}))?"
)
_TIMED_CALENDAR_RE = re.compile(r"^\d+時")
_SCHEDULE_IN_APPLICATION_RE = re.compile(r"(?:^|,)\s*(\d{3,4})-\d{3,4}")
_SCHEDULE_IN_SHEET_RE = re.compile(r"[_-](\d{3,4})-\d{3,4}")
_SCHEDULE_COLON_IN_SHEET_RE = re.compile(r"[_-](\d{1,2}):(\d{2})-\d{1,2}:\d{2}")
_EIGHT_OCLOCK_SHEET_RE = re.compile(r"[_-]800[-_～]|[_-]8:00[-_～]|_8時")


class ColumnContractError(ValueError):
    """行的列数少于出勤簿格式要求，整次分析无法继续"""

    def __init__(self, sheet_name: str, row_number: int, column_count: int):
        self.sheet_name = sheet_name
        self.row_number = row_number
        self.column_count = column_count
        super().__init__(
            f"シート「{sheet_name}」の{row_number}行目は{column_count}列しかありません"
            f"（{MIN_COLUMNS}列以上が必要です）"
        )


class RowDecodeError(ValueError):
    """单行缺少必需字段，该行跳过"""


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return isinstance(value, str) and not value.strip()


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_duration_minutes(value: Any) -> int:
    """
    把 "H:MM" 形式的时长转换为分钟数，保留负号
    解析失败时返回 0，不中断整行解码
    """
    if _is_blank(value):
        return 0
    if isinstance(value, timedelta):
        return int(round(value.total_seconds() / 60))
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, datetime):
        # Excel 把超过 24 小时的时长存成 1900-01-xx 的日期时间
        delta = value - EXCEL_EPOCH
        return int(round(delta.total_seconds() / 60))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Excel 时长序列值以“天”为单位
        return int(round(value * 24 * 60))

    match = _DURATION_RE.match(str(value).strip())
    if not match:
        logger.debug(f"无法解析的时长单元格，按 0 处理: {value!r}")
        return 0
    sign, hours, minutes = match.groups()
    total = int(hours) * 60 + int(minutes)
    return -total if sign else total


def _to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """交给 pandas 转换，NaT 视为无法解析"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0:
            return None
        # Excel 序列值：整数部分是日期，小数部分是时刻
        timestamp = pd.to_datetime(value, unit="D", origin=EXCEL_ORIGIN, errors="coerce")
        if pd.isna(timestamp):
            return None
        return timestamp.round("s")
    if not isinstance(value, (str, date)):
        return None
    timestamp = pd.to_datetime(value, errors="coerce")
    if pd.isna(timestamp):
        return None
    return timestamp


def parse_date(value: Any) -> Optional[date]:
    """解析日期单元格，支持字符串、日期对象和 Excel 序列值"""
    if _is_blank(value):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = int(value)
    elif isinstance(value, str):
        match = _DATE_TEXT_RE.match(value.strip())
        if not match:
            return None
        value = match.group("date")

    timestamp = _to_timestamp(value)
    return timestamp.date() if timestamp is not None else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """解析“日期+HH:MM”形式的打卡时刻，日程文字等非时刻内容返回 None"""
    if _is_blank(value):
        return None
    if isinstance(value, time):
        # 只有时刻的单元格，日期部分无意义
        return datetime.combine(EXCEL_EPOCH.date(), value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return None
    if isinstance(value, str):
        match = _DATE_TEXT_RE.match(value.strip())
        if not match or match.group("time") is None:
            return None
        value = f"{match.group('date')} {match.group('time')}"

    timestamp = _to_timestamp(value)
    return timestamp.to_pydatetime() if timestamp is not None else None


def parse_calendar_type(value: str) -> CalendarType:
    """解析日历类型，“8時～”之类的时段日历视为工作日"""
    if value == "平日":
        return CalendarType.WEEKDAY
    if value == "法定休":
        return CalendarType.STATUTORY_HOLIDAY
    if value == "法定外":
        return CalendarType.NON_STATUTORY_HOLIDAY
    if _TIMED_CALENDAR_RE.match(value):
        return CalendarType.WEEKDAY
    return CalendarType.NON_STATUTORY_HOLIDAY


def _hhmm_to_tuple(digits: str) -> Optional[Tuple[int, int]]:
    if len(digits) == 3:
        hour, minute = int(digits[0]), int(digits[1:])
    else:
        hour, minute = int(digits[:2]), int(digits[2:])
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return hour, minute
    return None


def parse_scheduled_start(application_content: str) -> Optional[Tuple[int, int]]:
    """
    从申请内容中提取始业时刻
    "830-1700/1200-1300/7.75/5" -> (8, 30)
    "残業終了,900-1730/1200-1300/7.75/5" -> (9, 0)
    """
    if not application_content:
        return None
    match = _SCHEDULE_IN_APPLICATION_RE.search(application_content)
    if not match:
        return None
    return _hhmm_to_tuple(match.group(1))


def parse_scheduled_start_from_sheet(sheet_name: str) -> Optional[Tuple[int, int]]:
    """
    从工作表名中提取始业时刻
    "KDDI_日勤_800-1630～930-1800" -> (8, 0)，"常駐_9:00-17:30" -> (9, 0)
    """
    if not sheet_name:
        return None
    match = _SCHEDULE_IN_SHEET_RE.search(sheet_name)
    if match:
        parsed = _hhmm_to_tuple(match.group(1))
        if parsed:
            return parsed
    match = _SCHEDULE_COLON_IN_SHEET_RE.search(sheet_name)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if 0 <= hour <= 23 and 0 <= minute <= 59:
            return hour, minute
    return None


def is_eight_oclock_sheet(sheet_name: str) -> bool:
    return bool(sheet_name) and bool(_EIGHT_OCLOCK_SHEET_RE.search(sheet_name))


def _resolve_late_minutes(
    late_minutes: int,
    sheet_name: str,
    raw_clock_in: Optional[datetime],
    effective_clock_in: Optional[datetime],
) -> int:
    """
    8 点日历的工作表上，未设置 9 点排班的员工 9 点到岗会被记为迟到 60 分钟，
    实际排班就是 9 点，这种迟到不计
    """
    if late_minutes != 60 or not is_eight_oclock_sheet(sheet_name):
        return late_minutes
    # 出社列存的是排班文字（解析不出时刻）时说明排班已正确设置
    if raw_clock_in is None:
        return late_minutes
    if effective_clock_in is None or effective_clock_in.hour != 9:
        return late_minutes
    return 0


def _is_early_start(
    calendar_type: CalendarType,
    clock_in: Optional[datetime],
    application_content: str,
    sheet_name: str,
) -> bool:
    if calendar_type != CalendarType.WEEKDAY or clock_in is None:
        return False
    scheduled = (
        parse_scheduled_start(application_content)
        or parse_scheduled_start_from_sheet(sheet_name)
        or STANDARD_WORK_START
    )
    return (clock_in.hour, clock_in.minute) < scheduled


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index]


def decode_row(row: Sequence[Any], sheet_name: str = "", row_number: int = 0) -> AttendanceRecord:
    """
    解码单行

    Raises:
        ColumnContractError: 列数不足（整次分析终止）
        RowDecodeError: 缺少社员番号或日期（该行跳过）
    """
    if len(row) < MIN_COLUMNS:
        raise ColumnContractError(sheet_name, row_number, len(row))

    employee_id = _text(_cell(row, ColumnIndex.EMPLOYEE_ID))
    if not employee_id or employee_id == HEADER_EMPLOYEE_ID:
        raise RowDecodeError(f"{sheet_name}:{row_number} 社員番号なし")

    record_date = parse_date(_cell(row, ColumnIndex.DATE))
    if record_date is None:
        raise RowDecodeError(f"{sheet_name}:{row_number} 日付なし")

    calendar_raw = _text(_cell(row, ColumnIndex.CALENDAR_TYPE))
    calendar_type = parse_calendar_type(calendar_raw)
    application_content = _text(_cell(row, ColumnIndex.APPLICATION_CONTENT))

    clock_in = parse_datetime(_cell(row, ColumnIndex.CLOCK_IN))
    clock_out = parse_datetime(_cell(row, ColumnIndex.CLOCK_OUT))
    computed_start = parse_datetime(_cell(row, ColumnIndex.COMPUTED_START))
    computed_end = parse_datetime(_cell(row, ColumnIndex.COMPUTED_END))
    effective_clock_in = computed_start or clock_in

    late_minutes = _resolve_late_minutes(
        parse_duration_minutes(_cell(row, ColumnIndex.LATE_MINUTES)),
        sheet_name,
        clock_in,
        effective_clock_in,
    )
    early_leave_minutes = parse_duration_minutes(_cell(row, ColumnIndex.EARLY_LEAVE_MINUTES))

    holiday_work_flag = (
        calendar_type != CalendarType.WEEKDAY
        and effective_clock_in is not None
        and not has_application_keyword(application_content, SUBSTITUTE_WORK_KEYWORDS)
    )

    return AttendanceRecord(
        employee_id=employee_id,
        employee_name=_text(_cell(row, ColumnIndex.EMPLOYEE_NAME)),
        department=_text(_cell(row, ColumnIndex.DEPARTMENT)),
        position=_text(_cell(row, ColumnIndex.POSITION)),
        date=record_date,
        day_of_week=_text(_cell(row, ColumnIndex.DAY_OF_WEEK)),
        calendar_type=calendar_type,
        calendar_raw=calendar_raw,
        application_content=application_content,
        clock_in=clock_in,
        clock_out=clock_out,
        computed_start=computed_start,
        computed_end=computed_end,
        altx_overtime_in=parse_datetime(_cell(row, ColumnIndex.ALTX_OVERTIME_IN)),
        altx_overtime_out=parse_datetime(_cell(row, ColumnIndex.ALTX_OVERTIME_OUT)),
        private_out_time=parse_datetime(_cell(row, ColumnIndex.PRIVATE_OUT_TIME)),
        private_return_time=parse_datetime(_cell(row, ColumnIndex.PRIVATE_RETURN_TIME)),
        break_minutes=parse_duration_minutes(_cell(row, ColumnIndex.BREAK_TIME)),
        night_break_correction_minutes=parse_duration_minutes(
            _cell(row, ColumnIndex.NIGHT_BREAK_CORRECTION)
        ),
        actual_work_minutes=parse_duration_minutes(_cell(row, ColumnIndex.ACTUAL_WORK)),
        scheduled_plus_actual_minutes=parse_duration_minutes(
            _cell(row, ColumnIndex.SCHEDULED_PLUS_ACTUAL)
        ),
        scheduled_work_minutes=parse_duration_minutes(_cell(row, ColumnIndex.SCHEDULED_WORK)),
        statutory_overtime_minutes=parse_duration_minutes(
            _cell(row, ColumnIndex.STATUTORY_OVERTIME)
        ),
        weekly_overtime_minutes=parse_duration_minutes(_cell(row, ColumnIndex.WEEKLY_OVERTIME)),
        cumulative_statutory_overtime_minutes=parse_duration_minutes(
            _cell(row, ColumnIndex.CUMULATIVE_STATUTORY_OVERTIME)
        ),
        night_work_minutes=parse_duration_minutes(_cell(row, ColumnIndex.NIGHT_WORK)),
        late_minutes=late_minutes,
        early_leave_minutes=early_leave_minutes,
        late_flag=late_minutes > 0,
        early_leave_flag=early_leave_minutes > 0,
        early_start_flag=_is_early_start(
            calendar_type, effective_clock_in, application_content, sheet_name
        ),
        early_start_declared=_text(_cell(row, ColumnIndex.EARLY_START_FLAG)) == "1",
        holiday_work_flag=holiday_work_flag,
        remarks=_text(_cell(row, ColumnIndex.REMARKS)),
        sheet_name=sheet_name,
    )


def decode_rows(
    rows: Iterable[Sequence[Any]],
    sheet_name: str = "",
) -> Tuple[List[AttendanceRecord], int]:
    """
    批量解码一个工作表的行

    列数不足（包括全空行）抛出 ColumnContractError；全空行和表头行直接忽略；缺少必需字段的行跳过并计数

    Returns:
        (解码成功的记录, 跳过的行数)
    """
    records: List[AttendanceRecord] = []
    skipped = 0

    for row_number, row in enumerate(rows, start=1):
        if len(row) < MIN_COLUMNS:
            raise ColumnContractError(sheet_name, row_number, len(row))
        if all(_is_blank(cell) for cell in row):
            continue
        # 表头行（每个工作表开头或分页处重复出现）
        if _text(row[0]) == HEADER_EMPLOYEE_ID:
            continue
        try:
            records.append(decode_row(row, sheet_name, row_number))
        except RowDecodeError as e:
            skipped += 1
            logger.debug(f"跳过行: {e}")

    logger.info(f"工作表「{sheet_name}」解码完成: 记录 {len(records)} 条, 跳过 {skipped} 行")
    if skipped:
        logger.warning(f"工作表「{sheet_name}」有 {skipped} 行缺少社員番号或日付，已跳过")
    return records, skipped
