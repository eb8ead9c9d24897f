"""
申请件数统计
按申请种类统计员工一个月内提交的申请（个人分析用）
"""
import re
from typing import Dict, Iterable, List

from kintai_compliance.models.schemas import ApplicationCounts, AttendanceRecord

# 只有排班信息的申请栏，例如 "900-1730/1200-1300/7.75/5"
_SCHEDULE_ONLY_RE = re.compile(r"^\d{3,4}-\d{3,4}/\d{3,4}-\d{3,4}/[\d.]+/\d+$")


def is_schedule_only(application_content: str) -> bool:
    if not application_content:
        return True
    return bool(_SCHEDULE_ONLY_RE.match(application_content.strip()))


def _contains(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def _match_work_applications(app: str, early_start_declared: bool) -> List[str]:
    matched = []
    if "残業" in app:
        matched.append("overtime")
    # 早出中抜け要先于早出判断
    if "早出中抜け" in app:
        matched.append("early_start_break")
    elif "早出" in app or early_start_declared:
        matched.append("early_start")
    if _contains(app, "遅刻", "早退"):
        matched.append("late_early_leave")
    if _contains(app, "電車遅延", "遅延届", "遅延申請"):
        matched.append("train_delay")
    if _contains(app, "時差出勤", "時差勤務"):
        matched.append("flextime")
    if _contains(app, "休憩修正", "休憩時間修正", "深夜休憩"):
        matched.append("break_modification")
    if "待機" in app:
        matched.append("standby")
    if "宿直" in app:
        matched.append("night_duty")
    return matched


def _match_leave_applications(app: str) -> List[str]:
    matched = []
    is_hourly = _contains(app, "有休時間", "時間有休")
    is_am = _contains(app, "午前有休", "AM有休", "午前休")
    is_pm = _contains(app, "午後有休", "PM有休", "午後休")
    if is_hourly:
        matched.append("hourly_leave")
    if is_am:
        matched.append("am_leave")
    if is_pm:
        matched.append("pm_leave")
    if _contains(app, "有休", "有給", "年休") and not (is_hourly or is_am or is_pm):
        matched.append("annual_leave")

    if _contains(app, "休出", "休日出勤"):
        matched.append("holiday_work")
    if "振替出勤" in app or ("振出" in app and "振休" not in app):
        matched.append("substitute_work")
    if _contains(app, "振替休日", "振休"):
        matched.append("substitute_holiday")
    if "代休" in app:
        matched.append("compensatory_leave")
    if "欠勤" in app:
        matched.append("absence")
    if _contains(app, "特休", "特別休暇"):
        matched.append("special_leave")
    if "生理休暇" in app:
        matched.append("menstrual_leave")

    if _contains(app, "看護休暇時間", "時間看護休暇"):
        matched.append("hourly_child_care_leave")
    elif _contains(app, "看護休暇", "子の看護"):
        matched.append("child_care_leave")
    if _contains(app, "介護休暇時間", "時間介護休暇"):
        matched.append("hourly_nursing_care_leave")
    elif "介護休暇" in app:
        matched.append("nursing_care_leave")

    if "明け休" in app:
        matched.append("post_night_leave")
    return matched


def count_applications(records: Iterable[AttendanceRecord]) -> ApplicationCounts:
    """
    统计申请件数

    一条申请栏可以同时计入多个种类；只有排班信息或空白时只看早出标记；
    都不匹配的申请计入 other
    """
    counts: Dict[str, int] = {name: 0 for name in ApplicationCounts.model_fields}

    for record in records:
        app = record.application_content
        if is_schedule_only(app):
            if record.early_start_declared:
                counts["early_start"] += 1
            continue

        matched = _match_work_applications(app, record.early_start_declared)
        matched += _match_leave_applications(app)
        for name in matched or ["other"]:
            counts[name] += 1

    return ApplicationCounts(**counts)
