"""
FastAPI 主应用入口
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kintai_compliance.config import settings
from kintai_compliance.api.routes import router

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="勤怠コンプライアンス分析（出勤簿の申請漏れ検出・36協定残業アラート）",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api", tags=["attendance"])


@app.get("/")
async def root():
    """根路径"""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "kintai_compliance.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
