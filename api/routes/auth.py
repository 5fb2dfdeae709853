"""
api/routes/auth.py -- Account signup and login endpoints.

Routes:
  POST /signup  -- create an account; returns the insert result
  POST /login   -- check credentials; returns a bearer token and public user view

Both routes are public. Protected routes live in api/routes/tasks.py and
authenticate with the token /login issues.

Signup validation (email syntax, password length >= 6) happens in the
SignupRequest model, so a malformed body is rejected with 400 before any
store method is called.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import IntegrityError

from api.models import InsertResultResponse, LoginRequest, LoginResponse, PublicUser, SignupRequest, SignupResponse
from auth.models import User
from auth.store import UserStore
from auth.tokens import check_credentials, create_access_token, hash_password
from core.errors import ConflictError

logger = logging.getLogger("taskserver.api.auth")

router = APIRouter()


@router.post("/signup", response_model=SignupResponse)
def signup(request: Request, body: SignupRequest) -> SignupResponse:
    """Register a new account.

    The existence check gives the common case a clear answer; the UNIQUE
    constraint on users.email settles the race where two signups for the same
    address pass the check concurrently.
    """
    user_store: UserStore = request.app.state.user_store

    if user_store.get_by_email(body.email) is not None:
        raise ConflictError("User already exists")

    new_user = User(name=body.name, email=body.email, hashed_password=hash_password(body.password))
    try:
        result = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise ConflictError("User already exists") from exc

    logger.info("User %d signed up", result.inserted_id)
    return SignupResponse(message="Signup successful", result=InsertResultResponse.from_result(result))


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> LoginResponse:
    """Exchange email and password for a signed access token.

    Unknown email and wrong password are both 401, with distinct messages.
    """
    user_store: UserStore = request.app.state.user_store
    user = check_credentials(user_store, body.email, body.password)

    token = create_access_token(user.id, user.email)
    return LoginResponse(
        message="Login successful",
        token=token,
        user=PublicUser(email=user.email, name=user.name),
    )
