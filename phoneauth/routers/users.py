"""Current user: read and edit the profile behind a bearer token."""
from fastapi import APIRouter, Depends

from phoneauth.schemas.auth import CurrentUserResponse, ProfileUpdate, ProfileUpdateResponse, UserResponse
from phoneauth.dependencies import get_current_user, get_store
from phoneauth.models.user import User
from phoneauth.services.profile import update_profile
from phoneauth.services.store import CredentialStore

router = APIRouter(prefix="/api", tags=["user"])


@router.get("/user", response_model=CurrentUserResponse)
def me(current_user: User = Depends(get_current_user)):
    return CurrentUserResponse(user=UserResponse.model_validate(current_user))


@router.put("/user", response_model=ProfileUpdateResponse)
def update_me(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_store),
):
    user = update_profile(store, current_user.id, name=data.name, email=str(data.email))
    return ProfileUpdateResponse(user=UserResponse.model_validate(user))
