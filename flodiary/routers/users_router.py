from fastapi import APIRouter, Depends

from ..application.services.auth_service import AuthService
from ..application.services.profile_service import ProfileService
from ..application.services.tracker_service import TrackerService
from ..domain.records import AppMetadataUpdate
from ..domain.user import ProfileUpdate, User
from ..exceptions import create_success_response
from ..schemas.common import dump_model
from ..schemas.users import PasswordChangeRequest
from .deps import get_auth_service, get_current_user, get_profile_service, get_tracker_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return create_success_response({"user": current_user.to_dict()})


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = await profiles.update_profile(current_user, payload.provided())
    return create_success_response({"message": "Profile updated successfully", "user": user.to_dict()})


@router.put("/password")
async def change_password(
    payload: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.change_password(current_user, payload.current_password, payload.new_password)
    return create_success_response({"message": "Password updated successfully"})


@router.put("/app-metadata")
async def update_app_metadata(
    payload: AppMetadataUpdate,
    current_user: User = Depends(get_current_user),
    tracker: TrackerService = Depends(get_tracker_service),
):
    metadata = await tracker.update_app_metadata(current_user, payload)
    return create_success_response({"appMetadata": dump_model(metadata)})
