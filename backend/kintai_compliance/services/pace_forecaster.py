"""
月末加班预测
按已过工作日比例外推月末加班时长，并重新分级
"""
from typing import Iterable, List, Optional

from kintai_compliance.models.master_data import (
    PACE_ALERT_ACTUAL_CEILING_HOURS,
    PACE_ALERT_FORECAST_FLOOR_HOURS,
)
from kintai_compliance.models.schemas import EmployeeMonthlySummary, PaceForecast
from kintai_compliance.services.overtime_classifier import classify


def round_half_up(value: float) -> int:
    # 与 round() 的银行家舍入不同，.5 一律进位
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def forecast(
    current_overtime_minutes: int,
    passed_weekdays: int,
    total_weekdays_in_month: int,
) -> Optional[PaceForecast]:
    """
    预测月末加班

    Returns:
        PaceForecast，已过工作日为 0 时无法外推，返回 None
    """
    if passed_weekdays <= 0:
        return None

    predicted = round_half_up(
        current_overtime_minutes / passed_weekdays * total_weekdays_in_month
    )
    return PaceForecast(
        current_overtime_minutes=current_overtime_minutes,
        passed_weekdays=passed_weekdays,
        total_weekdays_in_month=total_weekdays_in_month,
        predicted_overtime_minutes=predicted,
        predicted_level=classify(predicted),
    )


def is_pace_alert(pace: Optional[PaceForecast]) -> bool:
    """
    是否作为预测告警展示
    实际值已达 70 小时的员工由实际告警覆盖，不重复展示
    """
    if pace is None:
        return False
    if pace.current_overtime_minutes >= PACE_ALERT_ACTUAL_CEILING_HOURS * 60:
        return False
    return pace.predicted_overtime_minutes > PACE_ALERT_FORECAST_FLOOR_HOURS * 60


def select_pace_alerts(summaries: Iterable[EmployeeMonthlySummary]) -> List[EmployeeMonthlySummary]:
    """预测告警对象，按预测加班时长降序"""
    alerts = [s for s in summaries if is_pace_alert(s.forecast)]
    alerts.sort(key=lambda s: (-s.forecast.predicted_overtime_minutes, s.employee_id))
    return alerts
