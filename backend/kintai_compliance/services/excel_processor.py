"""
Excel 数据读取服务
负责把上传的出勤簿工作簿读取为“工作表名 -> 行列表”，不做任何业务解释
"""
import io
import time
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from openpyxl import load_workbook

from kintai_compliance.utils.logger import get_logger

ALLOWED_EXTENSIONS = (".xlsx", ".xlsm")


class WorkbookReadError(ValueError):
    """工作簿无法读取（格式错误、文件损坏等）"""


class WorkbookReader:
    """出勤簿工作簿读取器"""

    def __init__(self, source: Union[str, bytes]):
        """
        Args:
            source: 文件路径或上传文件的字节内容
        """
        self.source = source
        self.logger = get_logger("excel_processor")
        self.sheet_widths: Dict[str, int] = {}

    def _open(self):
        if isinstance(self.source, (bytes, bytearray)):
            return io.BytesIO(self.source)
        return self.source

    def get_sheet_names(self) -> List[str]:
        """
        仅获取 Sheet 名称与列宽，避免读取全部数据导致耗时
        """
        try:
            workbook = load_workbook(
                self._open(),
                read_only=True,
                data_only=True,
                keep_links=False,
            )
        except Exception as e:
            raise WorkbookReadError(f"读取 Excel Sheet 名称失败: {e}") from e

        try:
            sheet_names = workbook.sheetnames
            for name in sheet_names:
                self.sheet_widths[name] = workbook[name].max_column or 0
        finally:
            workbook.close()
        return sheet_names

    def load_all_sheets(self) -> Dict[str, List[List[Any]]]:
        """
        加载所有 Sheet，不把第一行当表头，所有单元格保持原始类型，空单元格为 None

        Returns:
            {sheet_name: rows}
        """
        sheet_names = self.get_sheet_names()

        start = time.perf_counter()
        self.logger.info(f"开始读取 Excel 工作簿: {len(sheet_names)} 个 Sheet")
        try:
            all_sheets = pd.read_excel(
                self._open(),
                sheet_name=None,
                header=None,
                dtype=object,
                engine="openpyxl",
            )
        except Exception as e:
            raise WorkbookReadError(f"读取 Excel 文件失败: {e}") from e
        elapsed = time.perf_counter() - start

        rows_by_sheet: Dict[str, List[List[Any]]] = {}
        for name in sheet_names:
            df = all_sheets.get(name)
            if df is None or df.empty:
                rows_by_sheet[name] = []
                continue
            df = df.astype(object).where(pd.notna(df), None)
            rows_by_sheet[name] = self._pad_rows(df.values.tolist(), self.sheet_widths.get(name))

        total_rows = sum(len(rows) for rows in rows_by_sheet.values())
        self.logger.info(
            f"Excel 读取完成（{', '.join(sheet_names)}），共 {total_rows} 行，耗时 {elapsed:.2f}s"
        )
        return rows_by_sheet

    @staticmethod
    def _pad_rows(rows: List[List[Any]], width: Optional[int]) -> List[List[Any]]:
        # pandas 会丢掉末尾全空的列，按工作表的实际列宽补齐
        if not width:
            return rows
        return [row + [None] * (width - len(row)) if len(row) < width else row for row in rows]


def is_allowed_filename(filename: Optional[str]) -> bool:
    return bool(filename) and filename.lower().endswith(ALLOWED_EXTENSIONS)
