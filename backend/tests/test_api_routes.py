"""Tests for the HTTP surface using an in-memory workbook upload."""

from io import BytesIO
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kintai_compliance.config import settings
from kintai_compliance.main import app
from kintai_compliance.services.report_exporter import UTF8_BOM, parse_csv_sections

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HEADER = ["社員番号", "氏名", "部門", "役職", "日付"] + [f"項目{i}" for i in range(5, 61)]


def workbook_bytes(sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def upload(make_row):
    content = workbook_bytes({
        "本社": [
            HEADER,
            make_row(),
            make_row(employee_id="E002", employee_name="佐藤花子", clock_out=None),
            make_row(employee_id="E003", employee_name="鈴木一郎", department="営業部",
                     actual_work="9:00", break_time="0:30"),
        ],
    })
    return {"file": ("kintai_202501.xlsx", content, XLSX_MIME)}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_overtime_levels(client):
    levels = client.get("/api/attendance/overtime-levels").json()

    assert [item["level"] for item in levels] == [
        "normal", "warning", "exceeded", "caution", "serious", "severe", "critical", "illegal",
    ]
    assert levels[-1]["action"] == "即時是正"


def test_violation_types(client):
    types = client.get("/api/attendance/violation-types").json()

    assert len(types) == 9
    urgency = {item["type"]: item["urgency"] for item in types}
    assert urgency["missing_clock"] == "high"
    assert urgency["late_application_missing"] == "medium"
    assert urgency["remarks_format_warning"] == "low"


def test_analyze_upload(client, upload):
    response = client.post("/api/attendance/analyze", files=upload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["summary"]["total_employees"] == 3
    assert data["summary"]["sheet_names"] == ["本社"]
    assert data["summary"]["skipped_rows"] == 0
    types = sorted(v["type"] for v in data["all_violations"])
    assert types == ["break_violation", "missing_clock"]
    assert all(v["urgency"] == "high" for v in data["all_violations"])


def test_export_upload(client, upload):
    response = client.post("/api/attendance/export", files=upload)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    text = response.content.decode("utf-8")
    assert text.startswith(UTF8_BOM)
    sections = parse_csv_sections(text)
    assert len(sections["employees"]) == 3
    assert len(sections["violations"]) == 2


def test_rejects_wrong_extension(client):
    response = client.post(
        "/api/attendance/analyze",
        files={"file": ("kintai.csv", b"a,b,c", "text/csv")},
    )

    assert response.status_code == 400


def test_rejects_unreadable_workbook(client):
    response = client.post(
        "/api/attendance/analyze",
        files={"file": ("kintai.xlsx", b"not a zip file", XLSX_MIME)},
    )

    assert response.status_code == 400


def test_rejects_short_rows(client):
    content = workbook_bytes({"本社": [["E001", "山田太郎", "開発部", "", "2025-01-15"]]})

    response = client.post(
        "/api/attendance/analyze",
        files={"file": ("kintai.xlsx", content, XLSX_MIME)},
    )

    assert response.status_code == 422
    assert "61" in response.json()["detail"]


def test_rejects_oversized_upload(client, upload, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size", 0)

    response = client.post("/api/attendance/analyze", files=upload)

    assert response.status_code == 413
