"""
Events API endpoints for scheduling events.

Provides endpoints for:
- Listing events (all, or for one profile) ordered by start
- Getting event details rendered for a viewer timezone
- Creating events from local wall-clock times
- Partially updating events with editor attribution
- Deleting events
- Reading an event's audit history

Design:
- Uses dependency injection for services
- Every service error kind maps to its own status and detail.code:
    400 MISSING_TITLE / MISSING_PROFILES / INVALID_TIMEZONE /
        INVALID_RANGE / PAST_END / INVALID_LOCAL_TIME
    404 NOT_FOUND
    409 CONFLICT
  Request bodies that fail schema validation are rejected with 422
- All endpoints use GUID format (evt_xxx) for identifiers
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.engine import TimeZoneConverter, get_converter
from backend.src.schemas.audit import AuditEntryResponse
from backend.src.schemas.event import EventCreate, EventResponse, EventUpdate
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_event_service(
    db: Session = Depends(get_db),
    converter: TimeZoneConverter = Depends(get_converter),
) -> EventService:
    """Create EventService instance with database session."""
    return EventService(db=db, converter=converter)


def error_detail(error: ServiceError) -> Dict[str, Any]:
    """Build the HTTPException detail payload for a service error."""
    detail: Dict[str, Any] = {"code": error.code, "message": str(error)}
    if isinstance(error, ValidationError) and error.field:
        detail["field"] = error.field
    if isinstance(error, ConflictError):
        detail["expected_version"] = error.expected_version
        detail["actual_version"] = error.actual_version
    return detail


VIEWER_TIMEZONE_QUERY = Query(
    default=None,
    description="IANA timezone to render local times in (default: event timezone)",
)


# ============================================================================
# Query Endpoints
# ============================================================================


@router.get(
    "",
    response_model=List[EventResponse],
    summary="List events",
    description="List all events ordered by start",
)
async def list_events(
    viewer_timezone: Optional[str] = VIEWER_TIMEZONE_QUERY,
    event_service: EventService = Depends(get_event_service),
) -> List[EventResponse]:
    """
    List all events ordered by start instant.

    Query Parameters:
        viewer_timezone: Render local times in this zone

    Returns:
        List of events
    """
    try:
        events = event_service.list()
        return [
            EventResponse(**event_service.build_event_response(e, viewer_timezone))
            for e in events
        ]

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events",
        )


@router.get(
    "/profile/{profile_guid}",
    response_model=List[EventResponse],
    summary="List events for a profile",
    description="List the events a profile belongs to, ordered by start",
)
async def list_profile_events(
    profile_guid: str,
    viewer_timezone: Optional[str] = VIEWER_TIMEZONE_QUERY,
    event_service: EventService = Depends(get_event_service),
) -> List[EventResponse]:
    """
    List events for one profile.

    Path Parameters:
        profile_guid: Profile GUID (prf_xxx format)

    Returns:
        List of events (empty when the profile has none or no longer exists)
    """
    try:
        events = event_service.list_by_profile(profile_guid)
        return [
            EventResponse(**event_service.build_event_response(e, viewer_timezone))
            for e in events
        ]

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error listing events for profile {profile_guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events",
        )


@router.get(
    "/{guid}",
    response_model=EventResponse,
    summary="Get event details",
)
async def get_event(
    guid: str,
    viewer_timezone: Optional[str] = VIEWER_TIMEZONE_QUERY,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Get a single event with its audit history.

    Path Parameters:
        guid: Event GUID (evt_xxx format)

    Raises:
        400: Invalid viewer timezone
        404: Event not found

    Example:
        GET /api/events/evt_xxx?viewer_timezone=Europe/Paris
    """
    try:
        event = event_service.get_by_guid(guid)
        return EventResponse(**event_service.build_event_response(event, viewer_timezone))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error getting event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get event",
        )


@router.get(
    "/{guid}/history",
    response_model=List[AuditEntryResponse],
    summary="Get event history",
    description="Audit entries of an event in chronological order",
)
async def get_event_history(
    guid: str,
    viewer_timezone: Optional[str] = VIEWER_TIMEZONE_QUERY,
    event_service: EventService = Depends(get_event_service),
) -> List[AuditEntryResponse]:
    """
    Get an event's audit history.

    Path Parameters:
        guid: Event GUID (evt_xxx format)

    Raises:
        400: Invalid viewer timezone
        404: Event not found
    """
    try:
        return [
            AuditEntryResponse(**entry)
            for entry in event_service.get_history(guid, viewer_timezone)
        ]

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error getting history for event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get event history",
        )


# ============================================================================
# Mutation Endpoints
# ============================================================================


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new event",
)
async def create_event(
    event_data: EventCreate,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Create a new event.

    Request Body:
        title: Event title (required)
        profiles: Profile GUIDs (at least one)
        timezone: IANA timezone of start/end
        start: Local start date/time
        end: Local end date/time (after start, not in the past)
        description: Optional description
        created_by: Creator profile GUID

    Returns:
        Created event (201 Created)

    Raises:
        400: Event rule violated (detail.code names the rule)
        422: Malformed request body

    Example:
        POST /api/events
        {
          "title": "Standup",
          "profiles": ["prf_xxx"],
          "timezone": "America/New_York",
          "start": "2024-06-01T09:00",
          "end": "2024-06-01T09:15"
        }
    """
    try:
        event = event_service.create(
            title=event_data.title,
            profiles=event_data.profiles,
            timezone=event_data.timezone,
            start=event_data.start,
            end=event_data.end,
            created_by=event_data.created_by,
            description=event_data.description,
        )
        return EventResponse(**event_service.build_event_response(event))

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except ConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error creating event: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event",
        )


@router.put(
    "/{guid}",
    response_model=EventResponse,
    summary="Update an event",
    description="Partially update an event; only fields present in the body are considered",
)
async def update_event(
    guid: str,
    event_data: EventUpdate,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Update an existing event.

    Path Parameters:
        guid: Event GUID (evt_xxx format)

    Request Body:
        Any of title, description, profiles, timezone, start, end
        updated_by: Editor profile GUID
        user_timezone: Editor timezone (default: UTC)

    Returns:
        Updated event with its audit history

    Raises:
        400: Event rule violated
        404: Event not found
        409: Event was modified concurrently
        422: Malformed request body

    Example:
        PUT /api/events/evt_xxx
        {
          "timezone": "Europe/Paris",
          "start": "2024-06-01T15:00",
          "updated_by": "prf_xxx",
          "user_timezone": "Europe/London"
        }
    """
    try:
        event = event_service.update(
            guid=guid,
            updated_by=event_data.updated_by,
            user_timezone=event_data.user_timezone,
            **event_data.field_updates()
        )
        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except ConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_detail(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error updating event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event",
        )


@router.delete(
    "/{guid}",
    status_code=status.HTTP_200_OK,
    summary="Delete an event",
)
async def delete_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> Dict[str, str]:
    """
    Delete an event together with its audit history.

    Raises:
        404: Event not found (including already deleted)
    """
    try:
        event_service.delete(guid)
        return {"message": "Event deleted successfully", "guid": guid}

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error deleting event {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete event",
        )
