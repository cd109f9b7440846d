from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from nebula.core.database import get_db
from nebula.models.log_entry import LogEntry, LogLevel
from nebula.repositories.log_repository import LogRepository
from nebula.schemas.log_entry import LogEntryResponse

router = APIRouter()


@router.get("/", response_model=list[LogEntryResponse], summary="List log entries")
async def list_logs(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    level: LogLevel | None = None,
    scope: str | None = None,
    db: Session = Depends(get_db),
) -> list[LogEntry]:
    """List log entries, newest first. ``scope`` matches by prefix."""
    repo = LogRepository(db)
    level_value = level.value if level else None
    response.headers["X-Total-Count"] = str(repo.count(level=level_value, scope=scope))
    return repo.get_all(skip=skip, limit=limit, level=level_value, scope=scope)


@router.delete("/", status_code=204, summary="Clear log entries")
async def clear_logs(db: Session = Depends(get_db)) -> None:
    LogRepository(db).delete_all()
