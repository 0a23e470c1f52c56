import logging
from fastapi import APIRouter, HTTPException, status
from app.schemas.response import SuccessResponse
from app.schemas.user import UserCreateRequest, UserUpdateRequest, UserResponse
from app.services.user_service import create_user, get_user_by_id, list_users, update_user, soft_delete_user
from uuid import UUID

router = APIRouter()
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("uvicorn")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_user_endpoint(request_data: UserCreateRequest, actor_id: str = "system"):
    """
    Creates a user. The welcome email is queued in the outbox and sent asynchronously.
    """
    try:
        user = await create_user(
            actor_id=actor_id,
            name=request_data.name,
            email=request_data.email,
            role=request_data.role,
            org_id=request_data.org_id,
        )
        log.info(f"User {user.id} created by {actor_id}.")
        return SuccessResponse(data=UserResponse.from_model(user).model_dump(mode="json"))
    except ValueError as e:
        log.error(f"Value error creating user: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Error creating user: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create user.")


@router.get("/", response_model=SuccessResponse)
async def list_users_endpoint(include_deleted: bool = False):
    """Lists users, newest first. Soft-deleted users only with include_deleted=true."""
    try:
        users = await list_users(include_deleted=include_deleted)
        data = [UserResponse.from_model(u).model_dump(mode="json") for u in users]
        return SuccessResponse(data=data)
    except Exception as e:
        log.error(f"Error listing users: {e}")
        raise HTTPException(status_code=500, detail="Server failed to list users.")


@router.patch("/{user_id}", response_model=SuccessResponse)
async def update_user_endpoint(user_id: UUID, payload: UserUpdateRequest, actor_id: str = "system"):
    try:
        if not await get_user_by_id(user_id):
            raise HTTPException(status_code=404, detail="User not found")

        user = await update_user(actor_id, user_id, name=payload.name, role=payload.role)
        return SuccessResponse(data=UserResponse.from_model(user).model_dump(mode="json"))
    except HTTPException:
        raise
    except ValueError as e:
        log.error(f"Value error updating user {user_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Error updating user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update user.")


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user_endpoint(user_id: UUID, actor_id: str = "system"):
    """Soft-deletes the user; the record is kept with a deletion timestamp."""
    try:
        if not await get_user_by_id(user_id):
            raise HTTPException(status_code=404, detail="User not found")

        user = await soft_delete_user(actor_id, user_id)
        return SuccessResponse(data=UserResponse.from_model(user).model_dump(mode="json"))
    except HTTPException:
        raise
    except ValueError as e:
        log.error(f"Value error deleting user {user_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Error deleting user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to delete user.")
