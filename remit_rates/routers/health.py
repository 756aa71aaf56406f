import sqlite3

from fastapi import APIRouter, Depends, Request

from remit_rates.db.dal import Database

router = APIRouter(tags=["health"])


def get_db(request: Request) -> Database:
    return Database(request.app.state.settings.db_path)


@router.get("/health", summary="Liveness and database reachability")
async def health(db: Database = Depends(get_db)):
    try:
        db_ok = db.ping()
    except sqlite3.Error:
        db_ok = False
    return {"status": "ok" if db_ok else "degraded", "database": db_ok}
