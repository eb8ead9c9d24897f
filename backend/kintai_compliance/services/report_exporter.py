"""
CSV 导出
把 AnalysisResult 序列化为全字段加引号的 CSV 文本（summary / employees / violations 三段）
"""
import csv
import io
from typing import Dict, List

from kintai_compliance.models.schemas import AnalysisResult

UTF8_BOM = "\ufeff"

SECTION_SUMMARY = "[summary]"
SECTION_EMPLOYEES = "[employees]"
SECTION_VIOLATIONS = "[violations]"

SUMMARY_HEADERS = [
    "totalEmployees",
    "employeesWithIssues",
    "highUrgencyCount",
    "mediumUrgencyCount",
    "lowUrgencyCount",
    "analysisStart",
    "analysisEnd",
    "sheetNames",
]

EMPLOYEE_HEADERS = [
    "employeeId",
    "name",
    "department",
    "workDays",
    "overtimeMinutes",
    "holidayDays",
    "lateDays",
    "earlyLeaveDays",
    "violationCount",
]

VIOLATION_HEADERS = [
    "date",
    "employeeId",
    "name",
    "violationType",
    "urgency",
    "details",
]


def export_csv(result: AnalysisResult, include_bom: bool = False) -> str:
    """
    导出 CSV

    Args:
        result: 分析结果
        include_bom: 是否在开头加 UTF-8 BOM（Excel 直接打开时需要）
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\r\n")

    summary = result.summary
    date_range = summary.analysis_date_range
    writer.writerow([SECTION_SUMMARY])
    writer.writerow(SUMMARY_HEADERS)
    writer.writerow([
        summary.total_employees,
        summary.employees_with_issues,
        summary.high_urgency_count,
        summary.medium_urgency_count,
        summary.low_urgency_count,
        date_range.start.isoformat() if date_range else "",
        date_range.end.isoformat() if date_range else "",
        ";".join(summary.sheet_names),
    ])
    writer.writerow([])

    writer.writerow([SECTION_EMPLOYEES])
    writer.writerow(EMPLOYEE_HEADERS)
    for s in result.employee_summaries:
        writer.writerow([
            s.employee_id,
            s.employee_name,
            s.department,
            s.total_work_days,
            s.total_overtime_minutes,
            s.holiday_work_days,
            s.late_days,
            s.early_leave_days,
            len(s.violations),
        ])
    writer.writerow([])

    writer.writerow([SECTION_VIOLATIONS])
    writer.writerow(VIOLATION_HEADERS)
    for v in result.all_violations:
        writer.writerow([
            v.date.isoformat(),
            v.employee_id,
            v.employee_name,
            v.type.value,
            v.urgency.value,
            v.details,
        ])

    text = buffer.getvalue()
    return UTF8_BOM + text if include_bom else text


def parse_csv_sections(text: str) -> Dict[str, List[Dict[str, str]]]:
    """
    把 export_csv 的输出解析回各段的行字典
    返回 {"summary": [...], "employees": [...], "violations": [...]}
    """
    if text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM):]

    sections: Dict[str, List[Dict[str, str]]] = {}
    current = None
    headers: List[str] = []

    for row in csv.reader(io.StringIO(text)):
        if not row or all(cell == "" for cell in row):
            current = None
            continue
        if len(row) == 1 and row[0].startswith("[") and row[0].endswith("]"):
            current = row[0][1:-1]
            sections[current] = []
            headers = []
            continue
        if current is None:
            raise ValueError(f"CSV 段标记之前出现数据行: {row}")
        if not headers:
            headers = row
            continue
        sections[current].append(dict(zip(headers, row)))

    return sections
