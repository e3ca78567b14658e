from __future__ import annotations

from fastapi import APIRouter, Depends

from ..repositories import ReminderRepository, get_repository
from ..schemas import DayOut, MonthAnchorIn, MonthOut, ReminderOut
from ..utils import month_grid, shift_month

router = APIRouter(
    prefix="/api/v1/month",
    tags=["month"],
)


def _get_repo(repo: ReminderRepository = Depends(get_repository)) -> ReminderRepository:
    return repo


def _month_view(repo: ReminderRepository) -> MonthOut:
    anchor = repo.month_anchor
    weeks = month_grid(anchor)
    days = repo.list_days(anchor[:7])
    return MonthOut(
        month_start=anchor,
        weeks=[
            [
                None if d is None else DayOut(
                    day=d.isoformat(),
                    reminders=[ReminderOut.from_entity(r) for r in days.get(d.isoformat(), [])],
                )
                for d in week
            ]
            for week in weeks
        ],
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=MonthOut,
    summary="Get Month",
    description="The displayed month anchor and its Sunday-first grid with each day's reminders.",
)
def get_month(repo: ReminderRepository = Depends(_get_repo)) -> MonthOut:
    return _month_view(repo)


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=MonthOut,
    summary="Set Month",
    description="Display the month containing the given date. The anchor is stored as the first of that month.",
)
def set_month(payload: MonthAnchorIn, repo: ReminderRepository = Depends(_get_repo)) -> MonthOut:
    repo.set_month_anchor(payload.month_start)
    return _month_view(repo)


# PUBLIC_INTERFACE
@router.post(
    "/next",
    response_model=MonthOut,
    summary="Next Month",
    description="Move the displayed month one month forward.",
)
def next_month(repo: ReminderRepository = Depends(_get_repo)) -> MonthOut:
    repo.set_month_anchor(shift_month(repo.month_anchor, 1))
    return _month_view(repo)


# PUBLIC_INTERFACE
@router.post(
    "/previous",
    response_model=MonthOut,
    summary="Previous Month",
    description="Move the displayed month one month back.",
)
def previous_month(repo: ReminderRepository = Depends(_get_repo)) -> MonthOut:
    repo.set_month_anchor(shift_month(repo.month_anchor, -1))
    return _month_view(repo)
