"""Authentication routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from commercial_intel.action.dependencies import (
    DirectoryUser,
    authenticate,
    create_jwt,
    get_identity,
    get_user_directory,
)
from commercial_intel.analytics.access_policy import Identity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


def _identity_dict(identity: Identity) -> dict:
    return {
        "username": identity.username,
        "role": identity.role.value,
        "display_name": identity.display_name,
        "rep_name": identity.rep_name,
    }


@router.post("/auth/login")
async def login_user(
    req: LoginRequest,
    directory: dict[str, DirectoryUser] = Depends(get_user_directory),
) -> dict:
    """Login and receive a signed token."""
    identity = authenticate(directory, req.username, req.password)
    if identity is None:
        logger.info("Rejected login for %s", req.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return {
        "status": "logged_in",
        "token": create_jwt(identity),
        "user": _identity_dict(identity),
    }


@router.get("/auth/me")
async def get_me(identity: Identity = Depends(get_identity)) -> dict:
    return _identity_dict(identity)
