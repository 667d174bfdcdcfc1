from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from notekeeper.models.auth import Credentials, RegisteredOut, TokenResponse
from notekeeper.storage.users_store import UsersStore
from notekeeper.utils.auth_hash import hash_password, verify_password
from notekeeper.utils.jwt_auth import issue_token

router = APIRouter(prefix="/auth", tags=["auth"])


def get_users(request: Request) -> UsersStore:
    return request.app.state.users_store


@router.post("/register", response_model=RegisteredOut, status_code=status.HTTP_201_CREATED)
def register(req: Credentials, users: UsersStore = Depends(get_users)) -> RegisteredOut:
    if users.get(req.user_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")

    # never store the plaintext
    record = users.register(req.user_id, hash_password(req.password))
    return RegisteredOut(user_id=record.user_id, registered_at=record.registered_at)


@router.post("/login", response_model=TokenResponse)
def login(req: Credentials, users: UsersStore = Depends(get_users)) -> TokenResponse:
    record = users.get(req.user_id)
    if record is None or not verify_password(req.password, record.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return TokenResponse(access_token=issue_token(req.user_id))
