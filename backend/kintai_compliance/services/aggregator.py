"""
汇总
把记录和违规折叠为员工月度汇总、部门汇总以及分析结果
"""
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from kintai_compliance.models.master_data import (
    CalendarType,
    LeaveType,
    NIGHT_WORK_END_HOUR,
    NIGHT_WORK_START_HOUR,
    TIMELY_DEPARTURE_TIME,
    UNASSIGNED_DEPARTMENT,
    UrgencyLevel,
    ViolationType,
)
from kintai_compliance.models.schemas import (
    AnalysisOptions,
    AnalysisResult,
    AnalysisSummary,
    AttendanceRecord,
    DateRange,
    DepartmentSummary,
    EmployeeMonthlySummary,
    Violation,
)
from kintai_compliance.services.application_counter import count_applications
from kintai_compliance.services.overtime_classifier import classify, select_overtime_alerts
from kintai_compliance.services.pace_forecaster import forecast, round_half_up, select_pace_alerts
from kintai_compliance.services.violation_detector import determine_leave_type, is_evaluated
from kintai_compliance.utils.logger import get_logger

logger = get_logger("aggregator")

_DEPARTMENT_COLUMNS = [
    "department",
    "employee_id",
    "total_work_days",
    "total_overtime_minutes",
    "holiday_work_days",
    "violation_count",
    "break_violation_days",
    "missing_clock_days",
]


def is_night_work(record: AttendanceRecord) -> bool:
    """22:01 以后或 0:00-4:59 下班视为深夜勤务，22:00 整点不算"""
    clock_out = record.effective_clock_out
    if clock_out is None:
        return False
    if clock_out.hour == NIGHT_WORK_START_HOUR:
        return clock_out.minute > 0
    return clock_out.hour > NIGHT_WORK_START_HOUR or clock_out.hour < NIGHT_WORK_END_HOUR


def is_timely_departure(record: AttendanceRecord, leave_type: LeaveType) -> bool:
    """
    定時退社：平日、非全休、无迟到早退，17:45（含）之前下班
    """
    if record.calendar_type != CalendarType.WEEKDAY or leave_type == LeaveType.FULL_DAY:
        return False
    if record.late_minutes != 0 or record.early_leave_minutes != 0:
        return False
    clock_out = record.effective_clock_out
    if clock_out is None:
        return False
    return (clock_out.hour, clock_out.minute) <= TIMELY_DEPARTURE_TIME


def _count_violations(violations: Sequence[Violation], violation_type: ViolationType) -> int:
    return sum(1 for v in violations if v.type == violation_type)


def group_by_employee(records: Iterable[AttendanceRecord]) -> "OrderedDict[str, List[AttendanceRecord]]":
    """按社员番号分组，保持首次出现的顺序"""
    grouped: "OrderedDict[str, List[AttendanceRecord]]" = OrderedDict()
    for record in records:
        grouped.setdefault(record.employee_id, []).append(record)
    return grouped


def build_employee_summary(
    employee_id: str,
    records: Sequence[AttendanceRecord],
    violations: Sequence[Violation],
    today: date,
    include_today: bool = False,
) -> EmployeeMonthlySummary:
    """
    构建单个员工的月度汇总

    月间工作日数按全部平日记录计数，其余计数只统计评估窗口内的记录
    """
    first = records[0]
    total_weekdays = sum(1 for r in records if r.calendar_type == CalendarType.WEEKDAY)

    passed_weekdays = 0
    total_work_days = 0
    total_work_minutes = 0
    total_overtime_minutes = 0
    holiday_work_days = 0
    late_days = 0
    early_leave_days = 0
    timely_departure_days = 0
    full_day_leave_days = 0
    half_day_leave_days = 0
    night_work_days = 0

    for record in records:
        if not is_evaluated(record.date, today, include_today):
            continue
        if record.calendar_type == CalendarType.WEEKDAY:
            passed_weekdays += 1
        if record.has_clock_in or record.has_clock_out:
            total_work_days += 1
        if record.holiday_work_flag:
            holiday_work_days += 1
        if record.late_flag:
            late_days += 1
        if record.early_leave_flag:
            early_leave_days += 1
        if is_night_work(record):
            night_work_days += 1

        leave_type = determine_leave_type(record.application_content)
        if is_timely_departure(record, leave_type):
            timely_departure_days += 1
        if leave_type == LeaveType.FULL_DAY:
            full_day_leave_days += 1
        elif leave_type in (LeaveType.HALF_DAY_AM, LeaveType.HALF_DAY_PM):
            half_day_leave_days += 1

        total_work_minutes += max(0, record.actual_work_minutes)
        total_overtime_minutes += max(0, record.statutory_overtime_minutes)

    return EmployeeMonthlySummary(
        employee_id=employee_id,
        employee_name=first.employee_name,
        department=first.department,
        position=first.position,
        sheet_name=first.sheet_name,
        total_work_days=total_work_days,
        total_work_minutes=total_work_minutes,
        total_overtime_minutes=total_overtime_minutes,
        holiday_work_days=holiday_work_days,
        late_days=late_days,
        early_leave_days=early_leave_days,
        timely_departure_days=timely_departure_days,
        missing_clock_days=_count_violations(violations, ViolationType.MISSING_CLOCK),
        break_violation_days=_count_violations(violations, ViolationType.BREAK_VIOLATION),
        early_start_violation_days=_count_violations(
            violations, ViolationType.EARLY_START_APPLICATION_MISSING
        ),
        full_day_leave_days=full_day_leave_days,
        half_day_leave_days=half_day_leave_days,
        night_work_days=night_work_days,
        passed_weekdays=passed_weekdays,
        total_weekdays_in_month=total_weekdays,
        overtime_level=classify(total_overtime_minutes),
        forecast=forecast(total_overtime_minutes, passed_weekdays, total_weekdays),
        application_counts=count_applications(records),
        violations=list(violations),
    )


def build_department_summaries(
    employee_summaries: Sequence[EmployeeMonthlySummary],
) -> List[DepartmentSummary]:
    """
    按部门汇总
    平均加班只在出勤 1 天以上的员工之间计算，没有这类员工的部门不输出
    """
    if not employee_summaries:
        return []

    df = pd.DataFrame([
        {
            "department": s.department or UNASSIGNED_DEPARTMENT,
            "employee_id": s.employee_id,
            "total_work_days": s.total_work_days,
            "total_overtime_minutes": s.total_overtime_minutes,
            "holiday_work_days": s.holiday_work_days,
            "violation_count": len(s.violations),
            "break_violation_days": s.break_violation_days,
            "missing_clock_days": s.missing_clock_days,
        }
        for s in employee_summaries
    ], columns=_DEPARTMENT_COLUMNS)

    grouped = df.groupby("department").agg({
        "employee_id": "count",
        "total_overtime_minutes": "sum",
        "holiday_work_days": "sum",
        "violation_count": "sum",
        "break_violation_days": "sum",
        "missing_clock_days": "sum",
    })

    qualifying = df[df["total_work_days"] >= 1]
    averages = qualifying.groupby("department")["total_overtime_minutes"].mean().to_dict()

    results: List[DepartmentSummary] = []
    for department, row in grouped.sort_index().iterrows():
        if department not in averages:
            logger.debug(f"部门「{department}」没有出勤员工，跳过")
            continue
        results.append(DepartmentSummary(
            department=str(department),
            employee_count=int(row["employee_id"]),
            total_overtime_minutes=int(row["total_overtime_minutes"]),
            average_overtime_minutes=round_half_up(float(averages[department])),
            holiday_work_count=int(row["holiday_work_days"]),
            total_violations=int(row["violation_count"]),
            break_violations=int(row["break_violation_days"]),
            missing_clock_count=int(row["missing_clock_days"]),
        ))
    return results


def _count_employees_with_urgency(
    summaries: Sequence[EmployeeMonthlySummary],
    urgency: UrgencyLevel,
) -> int:
    return sum(1 for s in summaries if any(v.urgency == urgency for v in s.violations))


def build_result(
    records: Sequence[AttendanceRecord],
    violations: Sequence[Violation],
    options: Optional[AnalysisOptions] = None,
    skipped_rows: int = 0,
) -> AnalysisResult:
    """
    构建分析结果

    Args:
        records: 解码后的全部记录
        violations: 违规检测结果
        options: 分析选项（today 为空时取系统日期）
        skipped_rows: 解码阶段跳过的行数
    """
    options = options or AnalysisOptions()
    today = options.today or date.today()

    violations_by_employee: Dict[str, List[Violation]] = {}
    for violation in violations:
        violations_by_employee.setdefault(violation.employee_id, []).append(violation)

    employee_summaries = [
        build_employee_summary(
            employee_id,
            employee_records,
            violations_by_employee.get(employee_id, []),
            today,
            options.include_today,
        )
        for employee_id, employee_records in group_by_employee(records).items()
    ]

    department_summaries = build_department_summaries(employee_summaries)

    # 按日期排序，同日保持员工顺序
    all_violations = sorted(
        (v for s in employee_summaries for v in s.violations),
        key=lambda v: v.date,
    )

    date_range = None
    if records:
        dates = [r.date for r in records]
        date_range = DateRange(start=min(dates), end=max(dates))

    sheet_names = list(OrderedDict.fromkeys(r.sheet_name for r in records if r.sheet_name))

    summary = AnalysisSummary(
        total_employees=len(employee_summaries),
        employees_with_issues=sum(1 for s in employee_summaries if s.violations),
        high_urgency_count=_count_employees_with_urgency(employee_summaries, UrgencyLevel.HIGH),
        medium_urgency_count=_count_employees_with_urgency(employee_summaries, UrgencyLevel.MEDIUM),
        low_urgency_count=_count_employees_with_urgency(employee_summaries, UrgencyLevel.LOW),
        analysis_date_range=date_range,
        sheet_names=sheet_names,
        skipped_rows=skipped_rows,
    )

    result = AnalysisResult(
        summary=summary,
        employee_summaries=employee_summaries,
        department_summaries=department_summaries,
        all_violations=all_violations,
        overtime_alerts=[s.employee_id for s in select_overtime_alerts(employee_summaries)],
        pace_alerts=[s.employee_id for s in select_pace_alerts(employee_summaries)],
    )

    logger.info(
        f"汇总完成: 员工 {summary.total_employees} 名, 有问题 {summary.employees_with_issues} 名, "
        f"违规 {len(all_violations)} 件, 部门 {len(department_summaries)} 个"
    )
    return result
