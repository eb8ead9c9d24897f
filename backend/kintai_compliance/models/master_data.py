"""
勤怠分析的静态主数据
违规类型、紧急度、36协定加班分级以及申请关键字，进程启动时初始化一次，只读使用
"""
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple, Tuple


class CalendarType(str, Enum):
    """日历类型"""
    WEEKDAY = "weekday"
    STATUTORY_HOLIDAY = "statutory_holiday"
    NON_STATUTORY_HOLIDAY = "non_statutory_holiday"


class LeaveType(str, Enum):
    """休假类型"""
    FULL_DAY = "full_day"
    HALF_DAY_AM = "half_day_am"
    HALF_DAY_PM = "half_day_pm"
    NONE = "none"


class UrgencyLevel(str, Enum):
    """紧急度"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ViolationType(str, Enum):
    """违规类型（以申请遗漏为主）"""
    MISSING_CLOCK = "missing_clock"
    BREAK_VIOLATION = "break_violation"
    LATE_APPLICATION_MISSING = "late_application_missing"
    EARLY_LEAVE_APPLICATION_MISSING = "early_leave_application_missing"
    EARLY_START_APPLICATION_MISSING = "early_start_application_missing"
    TIME_LEAVE_PUNCH_MISSING = "time_leave_punch_missing"
    NIGHT_BREAK_APPLICATION_MISSING = "night_break_application_missing"
    REMARKS_MISSING = "remarks_missing"
    REMARKS_FORMAT_WARNING = "remarks_format_warning"


class OvertimeAlertLevel(str, Enum):
    """36协定加班分级，定义顺序即严重程度顺序"""
    NORMAL = "normal"
    WARNING = "warning"
    EXCEEDED = "exceeded"
    CAUTION = "caution"
    SERIOUS = "serious"
    SEVERE = "severe"
    CRITICAL = "critical"
    ILLEGAL = "illegal"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, OvertimeAlertLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, OvertimeAlertLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, OvertimeAlertLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, OvertimeAlertLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_RANK = {level: idx for idx, level in enumerate(OvertimeAlertLevel)}


class ViolationInfo(NamedTuple):
    """违规类型的展示信息"""
    label: str
    urgency: UrgencyLevel
    possible_applications: Tuple[str, ...]
    notes: str
    example_remarks: Tuple[str, ...] = ()


class OvertimeAlertInfo(NamedTuple):
    """加班分级的展示信息"""
    threshold_hours: int
    label: str
    description: str
    action: str


# 备注栏推荐格式的示例（同时作为格式校验的一致性样例）
VALID_REMARK_EXAMPLES: Tuple[str, ...] = (
    "JR山手線遅延 20分",
    "K社ビル（水道橋）面談のため",
    "【電車遅延】JR山手線 20分",
)

VIOLATION_INFO = MappingProxyType({
    ViolationType.MISSING_CLOCK: ViolationInfo(
        label="打刻漏れ",
        urgency=UrgencyLevel.HIGH,
        possible_applications=("打刻忘れ／打刻訂正",),
        notes="【重要】この状態では月締め（出勤簿提出）ができません。打刻訂正申請を行ってください。",
    ),
    ViolationType.BREAK_VIOLATION: ViolationInfo(
        label="休憩時間違反",
        urgency=UrgencyLevel.HIGH,
        possible_applications=("休憩時間修正申請", "休憩時間追加申請"),
        notes="労働時間6時間以上で45分、8時間以上で60分の休憩が必要です。",
    ),
    ViolationType.LATE_APPLICATION_MISSING: ViolationInfo(
        label="届出漏れ（遅刻）",
        urgency=UrgencyLevel.MEDIUM,
        possible_applications=(
            "遅刻・早退申請",
            "電車遅延申請",
            "時差出勤申請（事前申請のみ）",
            "有休申請（半休・事前申請のみ）",
        ),
        notes="電車遅延の場合は「電車遅延申請」を提出し、到着時刻を跨ぐ遅延証明書の添付が必要です。",
    ),
    ViolationType.EARLY_LEAVE_APPLICATION_MISSING: ViolationInfo(
        label="届出漏れ（早退）",
        urgency=UrgencyLevel.MEDIUM,
        possible_applications=("遅刻・早退申請", "有休申請（半休・事前申請のみ）"),
        notes="早退が発生した場合は「遅刻・早退申請」を提出してください。半休は事前申請が原則です。",
    ),
    ViolationType.EARLY_START_APPLICATION_MISSING: ViolationInfo(
        label="届出漏れ（早出）",
        urgency=UrgencyLevel.MEDIUM,
        possible_applications=("早出申請", "早出フラグ入力"),
        notes="客先常駐者は出勤簿の「早出フラグ」に「1」を入力。内勤者は「早出申請」の提出・承認が必要です。",
    ),
    ViolationType.TIME_LEAVE_PUNCH_MISSING: ViolationInfo(
        label="打刻漏れ（時間有休）",
        urgency=UrgencyLevel.MEDIUM,
        possible_applications=("私用外出", "私用戻り"),
        notes="時間有休申請時は「私用外出」「私用戻り」の打刻が必須です。",
    ),
    ViolationType.NIGHT_BREAK_APPLICATION_MISSING: ViolationInfo(
        label="届出漏れ（深夜休憩）",
        urgency=UrgencyLevel.HIGH,
        possible_applications=("休憩時間修正申請（深夜休憩修正）",),
        notes="深夜（22:00-05:00）の休憩は自動計算されません。「休憩時間修正申請」で深夜休憩時間を申告してください。",
    ),
    ViolationType.REMARKS_MISSING: ViolationInfo(
        label="備考欄未入力",
        urgency=UrgencyLevel.LOW,
        possible_applications=(),
        notes="申請内容に対して備考欄の記載が必要です。「【事由】＋【詳細】」形式で記載してください。",
        example_remarks=VALID_REMARK_EXAMPLES,
    ),
    ViolationType.REMARKS_FORMAT_WARNING: ViolationInfo(
        label="備考欄フォーマット",
        urgency=UrgencyLevel.LOW,
        possible_applications=(),
        notes="備考欄は「【事由】＋【詳細】」形式での記載を推奨します。",
        example_remarks=VALID_REMARK_EXAMPLES,
    ),
})

# 阈值按小时计，按严重程度升序排列
OVERTIME_ALERT_INFO = MappingProxyType({
    OvertimeAlertLevel.NORMAL: OvertimeAlertInfo(
        0, "正常", "残業時間は正常範囲内です。", ""),
    OvertimeAlertLevel.WARNING: OvertimeAlertInfo(
        35, "注意", "月35時間を超過しています。", "上長への報告が必要です"),
    OvertimeAlertLevel.EXCEEDED: OvertimeAlertInfo(
        45, "超過", "36協定の月45時間上限を超過しています。", "特別条項の確認が必要です"),
    OvertimeAlertLevel.CAUTION: OvertimeAlertInfo(
        55, "警戒", "月55時間を超過しています。", "残業抑制指示を検討してください"),
    OvertimeAlertLevel.SERIOUS: OvertimeAlertInfo(
        65, "深刻", "月65時間を超過しています。", "残業禁止措置の検討が必要です"),
    OvertimeAlertLevel.SEVERE: OvertimeAlertInfo(
        70, "重大", "月70時間を超過しています。", "親会社への報告が必要です"),
    OvertimeAlertLevel.CRITICAL: OvertimeAlertInfo(
        80, "危険", "月80時間超は健康リスクが高まります。", "医師の面接指導を実施してください"),
    OvertimeAlertLevel.ILLEGAL: OvertimeAlertInfo(
        100, "違法", "月100時間は特別条項でも超過不可です。", "即時是正"),
})

ANNUAL_OVERTIME_LIMIT_HOURS = 360

# 预测告警：实际值已达此线的员工由实际告警覆盖
PACE_ALERT_ACTUAL_CEILING_HOURS = 70
PACE_ALERT_FORECAST_FLOOR_HOURS = 45

# 劳动基准法休息时间要求（分钟）
BREAK_THRESHOLD_6H_MINUTES = 360
BREAK_THRESHOLD_8H_MINUTES = 480
REQUIRED_BREAK_6H = 45
REQUIRED_BREAK_8H = 60

NIGHT_WORK_THRESHOLD_MINUTES = 30
NIGHT_WORK_START_HOUR = 22
NIGHT_WORK_END_HOUR = 5

STANDARD_WORK_START = (9, 0)
# 定時退社：此时刻（含）之前下班
TIMELY_DEPARTURE_TIME = (17, 45)
UNASSIGNED_DEPARTMENT = "(未設定)"

# ---- 申请关键字 ----

LEAVE_HALF_DAY_KEYWORDS = (
    "半休", "午前半休", "午後半休", "AM半休", "PM半休", "半日", "午前休", "午後休",
)

LEAVE_FULL_DAY_KEYWORDS = (
    "全休", "終日", "有休", "有給", "年休", "振休", "振替休日", "代休",
    "特休", "特別休暇", "公休", "欠勤",
    "生理休暇", "看護休暇", "子の看護", "介護休暇", "明け休",
    "育休", "産休", "慶弔休暇", "年末年始",
)

LATE_APPLICATION_KEYWORDS = ("遅刻申請", "遅刻・早退申請", "遅刻・早退", "遅刻届")
TRAIN_DELAY_APPLICATION_KEYWORDS = ("電車遅延申請", "電車遅延届")
FLEXTIME_APPLICATION_KEYWORDS = ("時差出勤申請", "時差勤務申請", "時差出勤届")
# 出勤簿中时差出勤只以“時差出勤”单独一项记录
FLEXTIME_EXACT_KEYWORDS = ("時差出勤", "時差勤務")
EARLY_LEAVE_APPLICATION_KEYWORDS = ("早退申請", "遅刻・早退申請", "遅刻・早退", "早退届")
HALF_DAY_APPLICATION_KEYWORDS = (
    "午前半休", "午後半休", "AM半休", "PM半休", "午前休", "午後休", "半休申請", "半日休暇",
)
EARLY_START_APPLICATION_KEYWORDS = ("早出申請", "早出勤務申請", "早出届")
BREAK_MODIFICATION_KEYWORDS = ("休憩時間修正", "休憩修正申請", "深夜休憩修正")
HOURLY_LEAVE_KEYWORDS = ("時間有休", "有休時間")
SUBSTITUTE_WORK_KEYWORDS = ("振替出勤", "振出")

# 需要填写备注的申请类型：关键字 -> 原因
REMARKS_REQUIRED_KEYWORDS = (
    ("直行", "直行（訪問先・業務目的の記載が必要）"),
    ("直帰", "直帰（訪問先・業務目的の記載が必要）"),
    ("遅延", "遅延（路線名・遅延時間の記載が必要）"),
    ("打刻修正", "打刻修正（理由の記載が必要）"),
    ("打刻訂正", "打刻訂正（理由の記載が必要）"),
    ("修正申請", "修正申請（理由の記載が必要）"),
    ("AltX", "AltX残業（タスク内容の記載が必要）"),
)
ALTX_REMARKS_REASON = "AltX残業（タスク内容の記載が必要）"


def has_application_keyword(application_content: str, keywords) -> bool:
    """申请内容中是否包含任一关键字（部分匹配）"""
    if not application_content:
        return False
    return any(keyword in application_content for keyword in keywords)


def has_exact_application_keyword(application_content: str, keywords) -> bool:
    """申请内容按逗号拆分后是否有与关键字完全一致的项"""
    if not application_content:
        return False
    items = [item.strip() for item in application_content.replace("、", ",").split(",")]
    return any(item in keywords for item in items)
