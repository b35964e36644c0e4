from fastapi import APIRouter, Request
from sqlalchemy import text

from dca_simulator.infrastructure.db import database

router = APIRouter()


@router.get("")
async def health(request: Request):
    db_status = "disconnected"
    db_error = None
    try:
        if database.engine is None:
            db_status = "not_initialized"
        else:
            async with database.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            db_status = "connected"
    except Exception as exc:
        db_status = "error"
        db_error = str(exc)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "DCA Simulator",
        "evaluator": "ready" if getattr(request.app.state, "portfolio_evaluator", None) else "not_loaded",
        "database": db_status,
        "database_error": db_error,
    }
