"""
勤怠合规分析服务
串联行解码、违规检测与汇总，一次调用产出一个 AnalysisResult
"""
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from kintai_compliance.models.schemas import AnalysisOptions, AnalysisResult, AttendanceRecord
from kintai_compliance.services.aggregator import build_result
from kintai_compliance.services.row_decoder import decode_rows
from kintai_compliance.services.violation_detector import RemarksValidator, ViolationDetector
from kintai_compliance.utils.logger import get_logger, log_performance

Row = Sequence[Any]


class AttendanceAnalysisService:
    """勤怠分析服务，每个实例只持有选项，不在多次调用之间共享结果"""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        remarks_validator: Optional[RemarksValidator] = None,
    ):
        self.options = options or AnalysisOptions()
        self.remarks_validator = remarks_validator
        self.logger = get_logger("attendance_service")

    def decode(self, rows_by_sheet: Mapping[str, Iterable[Row]]):
        """
        解码所有工作表

        Returns:
            (记录列表, 跳过行数)

        Raises:
            ColumnContractError: 任一行列数不足
        """
        records: List[AttendanceRecord] = []
        skipped = 0
        for sheet_name, rows in rows_by_sheet.items():
            sheet_records, sheet_skipped = decode_rows(rows, sheet_name)
            records.extend(sheet_records)
            skipped += sheet_skipped
        return records, skipped

    def analyze_records(
        self,
        records: Sequence[AttendanceRecord],
        skipped_rows: int = 0,
    ) -> AnalysisResult:
        """对已解码的记录执行检测与汇总"""
        start = time.perf_counter()
        detector = ViolationDetector(self.options, self.remarks_validator)
        violations = detector.detect_all(records)
        log_performance(self.logger, "detect_violations", (time.perf_counter() - start) * 1000)

        options = self.options
        if options.today is None:
            # 检测和汇总必须使用同一个“今天”
            options = options.model_copy(update={"today": detector.today})

        start = time.perf_counter()
        result = build_result(records, violations, options, skipped_rows)
        log_performance(self.logger, "aggregate", (time.perf_counter() - start) * 1000)
        return result

    def analyze_sheets(self, rows_by_sheet: Mapping[str, Iterable[Row]]) -> AnalysisResult:
        """
        分析整个工作簿（工作表名 -> 行）

        解码不出任何记录时返回全零结果，不抛异常
        """
        total_start = time.perf_counter()
        self.logger.info(
            f"📊 开始勤怠分析: 工作表 {len(rows_by_sheet)} 个, "
            f"include_today={self.options.include_today}"
        )

        start = time.perf_counter()
        records, skipped = self.decode(rows_by_sheet)
        log_performance(self.logger, "decode_rows", (time.perf_counter() - start) * 1000)

        if not records:
            self.logger.warning("没有可分析的出勤记录，返回空结果")

        result = self.analyze_records(records, skipped)
        log_performance(self.logger, "analyze_total", (time.perf_counter() - total_start) * 1000)
        self.logger.info(
            f"✅ 勤怠分析完成: 记录 {len(records)} 条, 跳过 {skipped} 行, "
            f"违规 {len(result.all_violations)} 件"
        )
        return result

    def analyze(self, rows: Iterable[Row], sheet_name: str = "") -> AnalysisResult:
        """分析单个工作表的行"""
        return self.analyze_sheets({sheet_name: rows})


def analyze(
    rows: Iterable[Row],
    options: Optional[AnalysisOptions] = None,
    sheet_name: str = "",
) -> AnalysisResult:
    """便捷入口：analyze(rows) 对同一输入总是返回相同结果"""
    return AttendanceAnalysisService(options).analyze(rows, sheet_name)
