"""
HTTP status server.
Liveness, connectivity, spending summary and workbook download.
"""

from datetime import datetime

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse

from groupledger.orchestrator.context import AppContext
from groupledger.utils.logger import get_logger

logger = get_logger()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def create_app(context: AppContext) -> FastAPI:
    """Build the status app bound to one application context."""
    app = FastAPI(
        title="GroupLedger Status API",
        description="Liveness and workbook download for the chat spending tracker",
        version="1.0.0"
    )

    @app.get("/")
    async def root():
        """Service information."""
        return {
            "message": "GroupLedger chat spending tracker",
            "status": "running",
            "connected": context.connected,
            "endpoints": {
                "GET /health": "Health check",
                "GET /summary": "Spending summary",
                "GET /download": "Download the spending workbook"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "message": "GroupLedger is running",
            "connected": context.connected,
            "timestamp": datetime.now().isoformat()
        }

    @app.get("/summary")
    async def spending_summary():
        summary = context.store.summary()
        return {"summary": summary.to_dict() if summary else None}

    @app.get("/download")
    async def download_workbook():
        """Download the workbook as last persisted."""
        path = context.store.path
        if not path.exists():
            raise HTTPException(status_code=404, detail="Workbook has not been written yet")

        logger.info(f"Serving workbook download: {path}")
        return FileResponse(path=str(path), filename=path.name, media_type=XLSX_MEDIA_TYPE)

    return app
