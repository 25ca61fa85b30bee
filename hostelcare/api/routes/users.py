from __future__ import annotations

from fastapi import APIRouter

from hostelcare.api.schemas import UserModel
from hostelcare.dependencies.auth import AdminUser, CurrentUser
from hostelcare.dependencies.services import UserDirectoryDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserModel)
async def get_me(user: CurrentUser) -> UserModel:
    return UserModel.model_validate(user)


@router.get("/wardens", response_model=list[UserModel], summary="Wardens available for assignment")
async def list_wardens(directory: UserDirectoryDep, _: AdminUser) -> list[UserModel]:
    wardens = await directory.list_wardens()
    return [UserModel.model_validate(warden) for warden in wardens]
