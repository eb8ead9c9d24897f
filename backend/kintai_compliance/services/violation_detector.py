"""
违规检测
对每条 AttendanceRecord 独立评估固定规则集，输出零到多条 Violation
"""
import re
from datetime import date
from typing import Callable, List, Optional

from kintai_compliance.models.master_data import (
    ALTX_REMARKS_REASON,
    BREAK_MODIFICATION_KEYWORDS,
    BREAK_THRESHOLD_6H_MINUTES,
    BREAK_THRESHOLD_8H_MINUTES,
    CalendarType,
    EARLY_LEAVE_APPLICATION_KEYWORDS,
    EARLY_START_APPLICATION_KEYWORDS,
    FLEXTIME_APPLICATION_KEYWORDS,
    FLEXTIME_EXACT_KEYWORDS,
    HALF_DAY_APPLICATION_KEYWORDS,
    HOURLY_LEAVE_KEYWORDS,
    LATE_APPLICATION_KEYWORDS,
    LEAVE_FULL_DAY_KEYWORDS,
    LEAVE_HALF_DAY_KEYWORDS,
    LeaveType,
    NIGHT_WORK_THRESHOLD_MINUTES,
    REMARKS_REQUIRED_KEYWORDS,
    REQUIRED_BREAK_6H,
    REQUIRED_BREAK_8H,
    TRAIN_DELAY_APPLICATION_KEYWORDS,
    ViolationType,
    has_application_keyword,
    has_exact_application_keyword,
)
from kintai_compliance.models.schemas import AnalysisOptions, AttendanceRecord, Violation
from kintai_compliance.utils.logger import get_logger

logger = get_logger("violation_detector")

# 备注格式校验器：合格返回 None，不合格返回警告文字
RemarksValidator = Callable[[str], Optional[str]]

MIN_REMARKS_LENGTH = 5
_BRACKETED_REMARKS_RE = re.compile(r"^【([^】]+)】\s*(.+)$")


def default_remarks_validator(remarks: str) -> Optional[str]:
    """
    默认备注格式校验

    「【事由】詳細」形式要求事由与详细均非空；其他写法至少 5 个字符
    """
    text = remarks.strip()
    if not text:
        return None
    if text.startswith("【"):
        match = _BRACKETED_REMARKS_RE.match(text)
        if match and match.group(1).strip() and match.group(2).strip():
            return None
        return f"備考「{text}」が「【事由】＋【詳細】」形式になっていません"
    if len(text) < MIN_REMARKS_LENGTH:
        return f"備考「{text}」が短すぎます"
    return None


def determine_leave_type(application_content: str) -> LeaveType:
    """判定休假类型，半休优先于全休"""
    if not application_content:
        return LeaveType.NONE

    if has_application_keyword(application_content, LEAVE_HALF_DAY_KEYWORDS):
        if "午前" in application_content or "AM" in application_content:
            return LeaveType.HALF_DAY_AM
        if "午後" in application_content or "PM" in application_content:
            return LeaveType.HALF_DAY_PM
        return LeaveType.HALF_DAY_AM

    # 时间有休不是全天休假，仍然需要打卡
    content = application_content
    for keyword in HOURLY_LEAVE_KEYWORDS:
        content = content.replace(keyword, "")
    if has_application_keyword(content, LEAVE_FULL_DAY_KEYWORDS):
        return LeaveType.FULL_DAY

    return LeaveType.NONE


def required_break_minutes(actual_work_minutes: int) -> int:
    """劳动基准法规定的休息时间：6 小时以上 45 分钟，8 小时以上 60 分钟"""
    if actual_work_minutes >= BREAK_THRESHOLD_8H_MINUTES:
        return REQUIRED_BREAK_8H
    if actual_work_minutes >= BREAK_THRESHOLD_6H_MINUTES:
        return REQUIRED_BREAK_6H
    return 0


def format_minutes(minutes: int) -> str:
    """分钟数 -> "H:MM" """
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours}:{mins:02d}"


def is_evaluated(record_date: date, today: date, include_today: bool) -> bool:
    """
    记录是否在评估窗口内
    include_today=False 时当天及以后不评估（尚未下班打卡会误报）
    """
    if include_today:
        return record_date <= today
    return record_date < today


class ViolationDetector:
    """违规检测器，除评估窗口外不依赖任何外部状态"""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        remarks_validator: Optional[RemarksValidator] = None,
    ):
        self.options = options or AnalysisOptions()
        self.today = self.options.today or date.today()
        self.remarks_validator = remarks_validator or default_remarks_validator

    def in_window(self, record: AttendanceRecord) -> bool:
        return is_evaluated(record.date, self.today, self.options.include_today)

    def detect(self, record: AttendanceRecord) -> List[Violation]:
        """
        检测单条记录的违规

        Returns:
            违规列表，评估窗口外的记录返回空列表
        """
        if not self.in_window(record):
            return []

        leave_type = determine_leave_type(record.application_content)
        violations: List[Violation] = []

        def emit(violation_type: ViolationType, details: str, **extra):
            violations.append(Violation(
                employee_id=record.employee_id,
                employee_name=record.employee_name,
                department=record.department,
                date=record.date,
                type=violation_type,
                details=details,
                **extra,
            ))

        missing = self._missing_clock_details(record, leave_type)
        if missing:
            emit(ViolationType.MISSING_CLOCK, missing)

        required = required_break_minutes(record.actual_work_minutes)
        if record.break_minutes < required:
            emit(
                ViolationType.BREAK_VIOLATION,
                f"必要休憩 {required}分に対し {record.break_minutes}分",
                required_break_minutes=required,
                actual_break_minutes=record.break_minutes,
            )

        if self._late_application_missing(record):
            emit(ViolationType.LATE_APPLICATION_MISSING, f"遅刻 {format_minutes(record.late_minutes)}")

        if self._early_leave_application_missing(record):
            emit(
                ViolationType.EARLY_LEAVE_APPLICATION_MISSING,
                f"早退 {format_minutes(record.early_leave_minutes)}",
            )

        if self._early_start_application_missing(record, leave_type):
            clock_in = record.computed_start or record.clock_in
            clock_in_text = f"{clock_in.hour}:{clock_in.minute:02d}" if clock_in else ""
            emit(ViolationType.EARLY_START_APPLICATION_MISSING, f"{clock_in_text}出社")

        if self._time_leave_punch_missing(record):
            emit(ViolationType.TIME_LEAVE_PUNCH_MISSING, "私用外出/戻り未打刻")

        if self._night_break_application_missing(record, required):
            emit(
                ViolationType.NIGHT_BREAK_APPLICATION_MISSING,
                f"深夜勤務あり（深夜 {format_minutes(record.night_work_minutes)}）",
            )

        remarks_reason = self._remarks_required_reason(record)
        if remarks_reason and not record.remarks.strip():
            emit(ViolationType.REMARKS_MISSING, remarks_reason)

        if record.remarks.strip():
            warning = self.remarks_validator(record.remarks)
            if warning:
                emit(ViolationType.REMARKS_FORMAT_WARNING, warning)

        if violations:
            logger.debug(
                f"{record.employee_id} {record.date}: "
                f"{', '.join(v.type.value for v in violations)}"
            )
        return violations

    def detect_all(self, records) -> List[Violation]:
        """按输入顺序检测多条记录"""
        violations: List[Violation] = []
        for record in records:
            violations.extend(self.detect(record))
        return violations

    # ---- 各规则 ----

    @staticmethod
    def _missing_clock_details(record: AttendanceRecord, leave_type: LeaveType) -> Optional[str]:
        if record.calendar_type != CalendarType.WEEKDAY or leave_type != LeaveType.NONE:
            return None
        if not record.has_clock_in and not record.has_clock_out:
            return "出退勤時刻なし"
        if not record.has_clock_in:
            return "出社打刻なし"
        if not record.has_clock_out:
            return "退社打刻なし"
        return None

    @staticmethod
    def _late_application_missing(record: AttendanceRecord) -> bool:
        if not record.late_flag:
            return False
        content = record.application_content
        if has_application_keyword(content, LATE_APPLICATION_KEYWORDS):
            return False
        if has_application_keyword(content, TRAIN_DELAY_APPLICATION_KEYWORDS):
            return False
        if has_exact_application_keyword(content, FLEXTIME_EXACT_KEYWORDS):
            return False
        if has_application_keyword(content, FLEXTIME_APPLICATION_KEYWORDS):
            return False
        return not has_application_keyword(content, HALF_DAY_APPLICATION_KEYWORDS)

    @staticmethod
    def _early_leave_application_missing(record: AttendanceRecord) -> bool:
        if not record.early_leave_flag:
            return False
        content = record.application_content
        if has_application_keyword(content, EARLY_LEAVE_APPLICATION_KEYWORDS):
            return False
        return not has_application_keyword(content, HALF_DAY_APPLICATION_KEYWORDS)

    @staticmethod
    def _early_start_application_missing(record: AttendanceRecord, leave_type: LeaveType) -> bool:
        if not record.early_start_flag or record.early_start_declared:
            return False
        if leave_type != LeaveType.NONE:
            return False
        content = record.application_content
        if has_application_keyword(content, EARLY_START_APPLICATION_KEYWORDS):
            return False
        return not has_exact_application_keyword(content, FLEXTIME_EXACT_KEYWORDS)

    @staticmethod
    def _time_leave_punch_missing(record: AttendanceRecord) -> bool:
        if not has_application_keyword(record.application_content, HOURLY_LEAVE_KEYWORDS):
            return False
        return record.private_out_time is None or record.private_return_time is None

    @staticmethod
    def _night_break_application_missing(record: AttendanceRecord, required: int) -> bool:
        if record.night_work_minutes < NIGHT_WORK_THRESHOLD_MINUTES:
            return False
        if record.break_minutes >= required:
            return False
        if record.night_break_correction_minutes != 0:
            return False
        return not has_application_keyword(record.application_content, BREAK_MODIFICATION_KEYWORDS)

    @staticmethod
    def _remarks_required_reason(record: AttendanceRecord) -> Optional[str]:
        if record.altx_overtime_in is not None or record.altx_overtime_out is not None:
            return ALTX_REMARKS_REASON
        for keyword, reason in REMARKS_REQUIRED_KEYWORDS:
            if keyword in record.application_content:
                return reason
        return None


def detect(record: AttendanceRecord, options: Optional[AnalysisOptions] = None) -> List[Violation]:
    """单条记录的便捷入口"""
    return ViolationDetector(options).detect(record)
