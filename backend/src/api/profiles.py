"""
Profiles API endpoints.

Provides endpoints for:
- Listing profiles (newest first)
- Getting a profile
- Creating a profile
- Changing a profile's timezone
- Deleting a profile (events keep their references)

All endpoints use GUID format (prf_xxx) for identifiers.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.src.api.events import error_detail
from backend.src.db.database import get_db
from backend.src.engine import TimeZoneConverter, get_converter
from backend.src.schemas.profile import ProfileCreate, ProfileResponse, ProfileTimezoneUpdate
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.profile_service import ProfileService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"],
)


def get_profile_service(
    db: Session = Depends(get_db),
    converter: TimeZoneConverter = Depends(get_converter),
) -> ProfileService:
    """Create ProfileService instance with database session."""
    return ProfileService(db=db, converter=converter)


@router.get(
    "",
    response_model=List[ProfileResponse],
    summary="List profiles",
)
async def list_profiles(
    profile_service: ProfileService = Depends(get_profile_service),
) -> List[ProfileResponse]:
    """List all profiles, newest first."""
    try:
        return [ProfileResponse.model_validate(p) for p in profile_service.list()]

    except Exception as e:
        logger.error(f"Error listing profiles: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list profiles",
        )


@router.get(
    "/{guid}",
    response_model=ProfileResponse,
    summary="Get a profile",
)
async def get_profile(
    guid: str,
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Get a profile by GUID.

    Raises:
        404: Profile not found
    """
    try:
        return ProfileResponse.model_validate(profile_service.get_by_guid(guid))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error getting profile {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get profile",
        )


@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a profile",
)
async def create_profile(
    profile_data: ProfileCreate,
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Create a profile.

    Request Body:
        name: Display name (required)
        timezone: IANA timezone (default: UTC)

    Raises:
        400: Missing name or invalid timezone
    """
    try:
        profile = profile_service.create(name=profile_data.name, timezone=profile_data.timezone)
        return ProfileResponse.model_validate(profile)

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error creating profile: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create profile",
        )


@router.patch(
    "/{guid}/timezone",
    response_model=ProfileResponse,
    summary="Change a profile's timezone",
    description="Stored event instants are not affected",
)
async def update_profile_timezone(
    guid: str,
    timezone_data: ProfileTimezoneUpdate,
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Change a profile's timezone.

    Raises:
        400: Invalid timezone
        404: Profile not found
    """
    try:
        profile = profile_service.update_timezone(guid, timezone_data.timezone)
        return ProfileResponse.model_validate(profile)

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
        logger.error(f"Error updating timezone for profile {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile timezone",
        )


@router.delete(
    "/{guid}",
    status_code=status.HTTP_200_OK,
    summary="Delete a profile",
)
async def delete_profile(
    guid: str,
    profile_service: ProfileService = Depends(get_profile_service),
) -> Dict[str, str]:
    """
    Delete a profile. Events and audit entries referencing it are kept.

    Raises:
        404: Profile not found
    """
    try:
        profile_service.delete(guid)
        return {"message": "Profile deleted successfully", "guid": guid}

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(e),
        )

    except Exception as e:
        logger.error(f"Error deleting profile {guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete profile",
        )
