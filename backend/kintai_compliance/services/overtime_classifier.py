"""
36协定加班分级
"""
from typing import Iterable, List

from kintai_compliance.models.master_data import (
    ANNUAL_OVERTIME_LIMIT_HOURS,
    OVERTIME_ALERT_INFO,
    OvertimeAlertInfo,
    OvertimeAlertLevel,
)
from kintai_compliance.models.schemas import EmployeeMonthlySummary

# 从高到低排列的 (阈值分钟数, 等级)
_THRESHOLDS_DESC = sorted(
    ((info.threshold_hours * 60, level) for level, info in OVERTIME_ALERT_INFO.items()),
    key=lambda item: item[0],
    reverse=True,
)

MEDICAL_GUIDANCE_HOURS = OVERTIME_ALERT_INFO[OvertimeAlertLevel.CRITICAL].threshold_hours


def classify(overtime_minutes: int) -> OvertimeAlertLevel:
    """
    把月累计加班分钟数映射到加班等级
    取满足阈值的最高等级，恰好等于阈值时归入该等级
    """
    for threshold, level in _THRESHOLDS_DESC:
        if overtime_minutes >= threshold:
            return level
    return OvertimeAlertLevel.NORMAL


def get_alert_info(level: OvertimeAlertLevel) -> OvertimeAlertInfo:
    return OVERTIME_ALERT_INFO[level]


def annual_limit_exceeded(annual_overtime_minutes: int) -> bool:
    """年度加班是否达到 360 小时上限"""
    return annual_overtime_minutes >= ANNUAL_OVERTIME_LIMIT_HOURS * 60


def needs_medical_guidance(overtime_minutes: int) -> bool:
    """月加班超过 80 小时需要医生面谈指导"""
    return overtime_minutes > MEDICAL_GUIDANCE_HOURS * 60


def select_overtime_alerts(summaries: Iterable[EmployeeMonthlySummary]) -> List[EmployeeMonthlySummary]:
    """实际加班达到 warning 以上的员工，按加班时长降序"""
    alerts = [s for s in summaries if s.overtime_level >= OvertimeAlertLevel.WARNING]
    alerts.sort(key=lambda s: (-s.total_overtime_minutes, s.employee_id))
    return alerts
