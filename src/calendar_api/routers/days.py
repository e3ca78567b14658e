from __future__ import annotations

import re
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..repositories import ReminderRepository, get_repository
from ..schemas import DayOut, ReminderOut
from ..utils import parse_day

router = APIRouter(
    prefix="/api/v1/days",
    tags=["days"],
)

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _get_repo(repo: ReminderRepository = Depends(get_repository)) -> ReminderRepository:
    return repo


def _validated_day(day: str) -> str:
    try:
        return parse_day(day).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="day must be an ISO8601 date 'YYYY-MM-DD'")


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[DayOut],
    summary="List Days",
    description=(
        "List every day that has at least one reminder, ordered by day.\n\n"
        "Query parameters:\n"
        "- month: optional 'YYYY-MM' restricting the result to one month"
    ),
    responses={
        200: {"description": "Days retrieved successfully"},
        400: {"description": "Invalid month parameter"},
    },
)
def list_days(
    month: Optional[str] = Query(None, description="Restrict to one month, 'YYYY-MM'"),
    repo: ReminderRepository = Depends(_get_repo),
) -> List[DayOut]:
    """
    List non-empty days for grid rendering.
    """
    if month is not None and not _MONTH_RE.match(month.strip()):
        raise HTTPException(status_code=400, detail="month must be 'YYYY-MM'")
    days = repo.list_days(month.strip() if month else None)
    return [
        DayOut(day=k, reminders=[ReminderOut.from_entity(r) for r in v])
        for k, v in days.items()
    ]


# PUBLIC_INTERFACE
@router.get(
    "/{day}",
    response_model=DayOut,
    summary="Get Day",
    description="List the reminders of one day ordered by time. A day without reminders returns an empty list.",
    responses={
        200: {"description": "Day retrieved"},
        400: {"description": "Invalid day"},
    },
)
def get_day(day: str, repo: ReminderRepository = Depends(_get_repo)) -> DayOut:
    """
    Reminders of a single day.
    """
    key = _validated_day(day)
    return DayOut(day=key, reminders=[ReminderOut.from_entity(r) for r in repo.list_day(key)])


# PUBLIC_INTERFACE
@router.delete(
    "/{day}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear Day",
    description="Remove every reminder of one day. Clearing an empty day is a no-op.",
    responses={
        204: {"description": "Day cleared"},
        400: {"description": "Invalid day"},
    },
)
def clear_day(day: str, repo: ReminderRepository = Depends(_get_repo)) -> Response:
    """
    Clear all reminders of a day.
    """
    repo.clear_day(_validated_day(day))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
