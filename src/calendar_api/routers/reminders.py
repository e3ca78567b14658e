from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..editor import EditSequencer, ReminderEditor, StaleEditError, get_sequencer
from ..repositories import ReminderRepository, get_repository
from ..schemas import ReminderIn, ReminderOut
from ..weather import WeatherSummary

router = APIRouter(
    prefix="/api/v1/reminders",
    tags=["reminders"],
)


def _get_repo(repo: ReminderRepository = Depends(get_repository)) -> ReminderRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
def get_weather_summary(request: Request) -> WeatherSummary:
    """
    Weather pipeline bound to the application's shared HTTP client.
    """
    return WeatherSummary.from_client(request.app.state.http_client)


def _get_editor(
    repo: ReminderRepository = Depends(_get_repo),
    weather: WeatherSummary = Depends(get_weather_summary),
    sequencer: EditSequencer = Depends(get_sequencer),
) -> ReminderEditor:
    return ReminderEditor(repo, weather, sequencer)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=ReminderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Reminder",
    description=(
        "Create a reminder. The weather for its city, day and hour is looked up once; "
        "when no forecast is available the reminder is still saved with weather null."
    ),
    responses={
        201: {"description": "Reminder created successfully"},
        422: {"description": "Validation error"},
    },
)
async def create_reminder(payload: ReminderIn, editor: ReminderEditor = Depends(_get_editor)) -> ReminderOut:
    """
    Create a new reminder.
    """
    created = await editor.create(payload)
    return ReminderOut.from_entity(created)


# PUBLIC_INTERFACE
@router.get(
    "/{reminder_id}",
    response_model=ReminderOut,
    summary="Get Reminder",
    description="Get a single reminder by ID.",
    responses={
        200: {"description": "Reminder found"},
        404: {"description": "Reminder not found"},
    },
)
def get_reminder(reminder_id: str, repo: ReminderRepository = Depends(_get_repo)) -> ReminderOut:
    """
    Retrieve a single reminder by its ID.
    """
    item = repo.get(reminder_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    return ReminderOut.from_entity(item)


# PUBLIC_INTERFACE
@router.put(
    "/{reminder_id}",
    response_model=ReminderOut,
    summary="Replace Reminder",
    description=(
        "Replace an existing reminder. Weather is resolved again for the new city, day and hour. "
        "Changing the date moves the reminder to its new day."
    ),
    responses={
        200: {"description": "Reminder updated"},
        404: {"description": "Reminder not found"},
        409: {"description": "A newer edit of this reminder superseded this one"},
    },
)
async def put_reminder(
    reminder_id: str,
    payload: ReminderIn,
    editor: ReminderEditor = Depends(_get_editor),
) -> ReminderOut:
    """
    Full update (replace) of a reminder.
    """
    try:
        updated = await editor.replace(reminder_id, payload)
    except StaleEditError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Reminder was changed by a newer edit",
        )
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    return ReminderOut.from_entity(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{reminder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Reminder",
    description="Delete a reminder by ID. Deleting an unknown ID is a no-op.",
    responses={
        204: {"description": "Reminder deleted (or was already absent)"},
    },
)
def delete_reminder(reminder_id: str, repo: ReminderRepository = Depends(_get_repo)) -> Response:
    """
    Delete a reminder. Always returns 204.
    """
    repo.delete(reminder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
