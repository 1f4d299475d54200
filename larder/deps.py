"""FastAPI dependencies for the Larder API.

Provides:
- Database session dependency
- Current user resolution from the X-User-Id header
- Matching job queue
- Translation of failed service results into HTTP errors
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .db import get_db
from .jobs.queue import JobQueue, RedisJobQueue
from .models import User
from .services.results import ServiceResult


def get_current_user(
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> User:
    """Resolve the owner of the request.

    Authentication happens upstream; the gateway forwards the user id.

    Raises:
        HTTPException 401 if the header is missing
        HTTPException 404 if the header does not name an existing user
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header required")

    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"User '{x_user_id}' not found")

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User '{x_user_id}' not found")
    return user


def get_job_queue() -> JobQueue:
    return RedisJobQueue()


def raise_for_result(result: ServiceResult, conflict_errors: tuple[str, ...] = ()) -> None:
    if result.success:
        return
    if any(error in conflict_errors for error in result.errors):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.errors)
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.errors)
