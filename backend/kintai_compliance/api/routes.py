"""
API 路由定义
"""
import time
import uuid
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from kintai_compliance.config import settings
from kintai_compliance.models.master_data import OVERTIME_ALERT_INFO, VIOLATION_INFO
from kintai_compliance.models.schemas import AnalysisOptions, AnalysisResult, ApiResponse
from kintai_compliance.services.attendance_service import AttendanceAnalysisService
from kintai_compliance.services.excel_processor import (
    WorkbookReadError,
    WorkbookReader,
    is_allowed_filename,
)
from kintai_compliance.services.report_exporter import export_csv
from kintai_compliance.services.row_decoder import ColumnContractError
from kintai_compliance.utils.logger import RequestLogger, get_logger, log_exception

router = APIRouter()
logger = get_logger("api.routes")
request_logger = RequestLogger(logger)

CSV_FILENAME = "attendance_report.csv"


def _today() -> date:
    """按配置时区取“今天”"""
    return datetime.now(ZoneInfo(settings.analysis_timezone)).date()


def _analyze_content(content: bytes, include_today: bool) -> AnalysisResult:
    reader = WorkbookReader(content)
    rows_by_sheet = reader.load_all_sheets()
    options = AnalysisOptions(include_today=include_today, today=_today())
    return AttendanceAnalysisService(options).analyze_sheets(rows_by_sheet)


async def _run_analysis(
    request_id: str,
    endpoint: str,
    file: UploadFile,
    include_today: Optional[bool],
) -> AnalysisResult:
    """
    校验上传文件并执行分析，异常统一转换为 HTTPException
    """
    request_logger.log_request_start(request_id, endpoint, file.filename)

    if not is_allowed_filename(file.filename):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="仅支持 .xlsx 或 .xlsm 文件")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"文件大小超过上限 {settings.max_upload_size}MB",
        )
    request_logger.log_step(request_id, "upload", f"{len(content)} bytes")

    if include_today is None:
        include_today = settings.include_today

    try:
        return await run_in_threadpool(_analyze_content, content, include_today)
    except WorkbookReadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ColumnContractError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        log_exception(logger, f"分析失败: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"分析失败: {e}")


@router.get("/health")
async def health_check():
    """健康检查"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version
    }


@router.get("/attendance/overtime-levels")
async def get_overtime_levels():
    """36协定加班分级一览"""
    return [
        {
            "level": level.value,
            "thresholdHours": info.threshold_hours,
            "label": info.label,
            "description": info.description,
            "action": info.action,
        }
        for level, info in OVERTIME_ALERT_INFO.items()
    ]


@router.get("/attendance/violation-types")
async def get_violation_types():
    """违规类型一览（标签、紧急度、可提交的申请）"""
    return [
        {
            "type": violation_type.value,
            "label": info.label,
            "urgency": info.urgency.value,
            "possibleApplications": list(info.possible_applications),
            "notes": info.notes,
            "exampleRemarks": list(info.example_remarks),
        }
        for violation_type, info in VIOLATION_INFO.items()
    ]


@router.post("/attendance/analyze", response_model=ApiResponse)
async def analyze_attendance(
    file: UploadFile = File(...),
    include_today: Optional[bool] = Query(None, description="是否把当天纳入检测，未指定时使用配置值"),
):
    """
    上传出勤簿并返回分析结果
    """
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    try:
        result = await _run_analysis(request_id, "/attendance/analyze", file, include_today)
    except HTTPException as e:
        request_logger.log_request_error(request_id, (time.perf_counter() - start) * 1000, str(e.detail))
        raise

    message = f"分析完成: 员工 {result.summary.total_employees} 名, 违规 {len(result.all_violations)} 件"
    request_logger.log_request_success(request_id, (time.perf_counter() - start) * 1000, message)
    return ApiResponse(
        success=True,
        message=message,
        data=result.model_dump(mode="json"),
    )


@router.post("/attendance/export")
async def export_attendance(
    file: UploadFile = File(...),
    include_today: Optional[bool] = Query(None, description="是否把当天纳入检测，未指定时使用配置值"),
):
    """
    上传出勤簿并下载 CSV 报告（带 BOM，Excel 可直接打开）
    """
    request_id = uuid.uuid4().hex[:8]
    start = time.perf_counter()
    try:
        result = await _run_analysis(request_id, "/attendance/export", file, include_today)
    except HTTPException as e:
        request_logger.log_request_error(request_id, (time.perf_counter() - start) * 1000, str(e.detail))
        raise

    csv_text = export_csv(result, include_bom=True)
    request_logger.log_request_success(request_id, (time.perf_counter() - start) * 1000, "CSV 导出完成")
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
    )
