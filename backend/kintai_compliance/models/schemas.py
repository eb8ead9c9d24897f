"""
数据模型定义
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Dict, Any, Optional
from datetime import datetime, date

from kintai_compliance.models.master_data import (
    CalendarType,
    OvertimeAlertLevel,
    UrgencyLevel,
    ViolationType,
    VIOLATION_INFO,
)


class ApiResponse(BaseModel):
    """接口返回的统一包装"""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None


class AnalysisOptions(BaseModel):
    """分析选项，today 为空时由调用方按配置时区取当天日期"""
    model_config = ConfigDict(frozen=True)

    include_today: bool = False
    today: Optional[date] = None


class AttendanceRecord(BaseModel):
    """出勤簿的一行（员工 × 日），解码后不可变"""
    model_config = ConfigDict(frozen=True)

    employee_id: str
    employee_name: str = ""
    department: str = ""
    position: str = ""
    date: date
    day_of_week: str = ""
    calendar_type: CalendarType = CalendarType.WEEKDAY
    calendar_raw: str = ""
    application_content: str = ""

    # 打卡时刻（原始列）与计算用开始/结束
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    computed_start: Optional[datetime] = None
    computed_end: Optional[datetime] = None
    altx_overtime_in: Optional[datetime] = None
    altx_overtime_out: Optional[datetime] = None
    private_out_time: Optional[datetime] = None
    private_return_time: Optional[datetime] = None

    # 时长统一为分钟
    break_minutes: int = 0
    night_break_correction_minutes: int = 0
    actual_work_minutes: int = 0
    scheduled_plus_actual_minutes: int = 0
    scheduled_work_minutes: int = 0
    statutory_overtime_minutes: int = 0
    weekly_overtime_minutes: int = 0
    cumulative_statutory_overtime_minutes: int = 0
    night_work_minutes: int = 0
    late_minutes: int = 0
    early_leave_minutes: int = 0

    late_flag: bool = False
    early_leave_flag: bool = False
    early_start_flag: bool = False
    early_start_declared: bool = False
    holiday_work_flag: bool = False

    remarks: str = ""
    sheet_name: str = ""

    @property
    def has_clock_in(self) -> bool:
        return self.clock_in is not None or self.computed_start is not None

    @property
    def has_clock_out(self) -> bool:
        return self.clock_out is not None or self.computed_end is not None

    @property
    def effective_clock_out(self) -> Optional[datetime]:
        return self.computed_end or self.clock_out


class Violation(BaseModel):
    """违规记录"""
    model_config = ConfigDict(frozen=True)

    employee_id: str
    employee_name: str
    department: str = ""
    date: date
    type: ViolationType
    details: str
    required_break_minutes: Optional[int] = None
    actual_break_minutes: Optional[int] = None

    @computed_field
    @property
    def urgency(self) -> UrgencyLevel:
        return VIOLATION_INFO[self.type].urgency

    @computed_field
    @property
    def label(self) -> str:
        return VIOLATION_INFO[self.type].label


class PaceForecast(BaseModel):
    """月末加班预测"""
    model_config = ConfigDict(frozen=True)

    current_overtime_minutes: int
    passed_weekdays: int
    total_weekdays_in_month: int
    predicted_overtime_minutes: int
    predicted_level: OvertimeAlertLevel


class ApplicationCounts(BaseModel):
    """按申请种类统计的件数（一条记录可计入多个种类）"""
    model_config = ConfigDict(frozen=True)

    # 勤务相关
    overtime: int = 0
    early_start: int = 0
    early_start_break: int = 0
    late_early_leave: int = 0
    train_delay: int = 0
    flextime: int = 0
    break_modification: int = 0
    standby: int = 0
    night_duty: int = 0
    # 休假・休日相关
    annual_leave: int = 0
    am_leave: int = 0
    pm_leave: int = 0
    hourly_leave: int = 0
    holiday_work: int = 0
    substitute_work: int = 0
    substitute_holiday: int = 0
    compensatory_leave: int = 0
    absence: int = 0
    special_leave: int = 0
    menstrual_leave: int = 0
    child_care_leave: int = 0
    hourly_child_care_leave: int = 0
    nursing_care_leave: int = 0
    hourly_nursing_care_leave: int = 0
    post_night_leave: int = 0
    # 以上都不匹配的申请
    other: int = 0


class EmployeeMonthlySummary(BaseModel):
    """员工月度汇总"""
    model_config = ConfigDict(frozen=True)

    employee_id: str
    employee_name: str
    department: str
    position: str = ""
    sheet_name: str = ""
    total_work_days: int = 0
    total_work_minutes: int = 0
    total_overtime_minutes: int = Field(default=0, ge=0)
    holiday_work_days: int = 0
    late_days: int = 0
    early_leave_days: int = 0
    timely_departure_days: int = 0
    missing_clock_days: int = 0
    break_violation_days: int = 0
    early_start_violation_days: int = 0
    full_day_leave_days: int = 0
    half_day_leave_days: int = 0
    night_work_days: int = 0
    passed_weekdays: int = 0
    total_weekdays_in_month: int = 0
    overtime_level: OvertimeAlertLevel = OvertimeAlertLevel.NORMAL
    forecast: Optional[PaceForecast] = None
    application_counts: ApplicationCounts = Field(default_factory=ApplicationCounts)
    violations: List[Violation] = Field(default_factory=list)


class DepartmentSummary(BaseModel):
    """部门汇总"""
    model_config = ConfigDict(frozen=True)

    department: str
    employee_count: int
    total_overtime_minutes: int
    average_overtime_minutes: int
    holiday_work_count: int
    total_violations: int
    break_violations: int = 0
    missing_clock_count: int = 0


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date


class AnalysisSummary(BaseModel):
    """分析总览"""
    model_config = ConfigDict(frozen=True)

    total_employees: int = 0
    employees_with_issues: int = 0
    high_urgency_count: int = 0
    medium_urgency_count: int = 0
    low_urgency_count: int = 0
    analysis_date_range: Optional[DateRange] = None
    sheet_names: List[str] = Field(default_factory=list)
    skipped_rows: int = 0


class AnalysisResult(BaseModel):
    """一次分析的完整结果，构建后不再修改"""
    model_config = ConfigDict(frozen=True)

    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    employee_summaries: List[EmployeeMonthlySummary] = Field(default_factory=list)
    department_summaries: List[DepartmentSummary] = Field(default_factory=list)
    all_violations: List[Violation] = Field(default_factory=list)
    # 员工ID列表，按严重程度排序
    overtime_alerts: List[str] = Field(default_factory=list)
    pace_alerts: List[str] = Field(default_factory=list)
