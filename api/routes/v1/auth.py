"""
api/routes/v1/auth.py -- Account and session REST endpoints.

Routes:
  POST  /api/auth/register         -- create a local account; returns tokens
  POST  /api/auth/login            -- email/password login; returns tokens
  POST  /api/auth/google           -- sign in with a Google ID token; returns tokens
  POST  /api/auth/refresh          -- exchange a refresh token for a new pair
  GET   /api/auth/me               -- current user (requires auth)
  PATCH /api/auth/profile          -- update name/avatar (requires auth)
  PATCH /api/auth/change-password  -- change local password (requires auth)

Security:
  register, login and google are limited to AUTH_RATE_LIMIT per client address.
  @limiter.limit goes directly under @router.post so the router registers the
  limited wrapper; SlowAPIMiddleware skips routes that carry their own limit.
  authenticate_user() provides timing equalization -- use it, never inline.
  Login failures return one generic message for unknown email and wrong password.
  Cache-Control: no-store on every response that carries tokens.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import auth_limit, limiter
from api.models import (
    AuthData,
    ChangePasswordRequest,
    DataResponse,
    GoogleAuthRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UserData,
    UserOut,
)
from auth.dependencies import get_identity
from auth.google import GoogleTokenVerifier
from auth.models import Identity, User
from auth.store import UserStore
from auth.tokens import authenticate_user, decode_refresh_token, hash_password, issue_token_pair, verify_password
from core.errors import AuthInvalidError, ConflictError, NotFoundError, ValidationFailedError
from core.models import ProfilePatch

# Auth policy:
# - POST  /auth/register, /auth/login, /auth/google: public, rate limited
# - POST  /auth/refresh:                             public -- the refresh token is the credential
# - GET   /auth/me, PATCH /auth/profile, PATCH /auth/change-password: requires auth (get_identity)
router = APIRouter()


def _auth_payload(user: User) -> AuthData:
    tokens = issue_token_pair(user)
    return AuthData(user=UserOut.from_domain(user), **tokens)


def _current_user(request: Request, identity: Identity) -> User:
    user = request.app.state.user_store.get_by_id(identity.id)
    if user is None:
        raise NotFoundError("User not found")
    return user


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=DataResponse[AuthData], status_code=201)
@limiter.limit(auth_limit)
def register(request: Request, response: Response, body: RegisterRequest) -> DataResponse[AuthData]:
    """Create a local account. Email addresses are unique (case-insensitive)."""
    user_store: UserStore = request.app.state.user_store
    email = body.email.lower()
    if user_store.get_by_email(email) is not None:
        raise ConflictError("User with this email already exists")

    user_id = user_store.create_user(
        User(name=body.name, email=email, hashed_password=hash_password(body.password), email_verified=True)
    )
    user = user_store.get_by_id(user_id)
    response.headers["Cache-Control"] = "no-store"
    return DataResponse(message="User registered successfully", data=_auth_payload(user))


@router.post("/auth/login", response_model=DataResponse[AuthData])
@limiter.limit(auth_limit)
def login(request: Request, response: Response, body: LoginRequest) -> DataResponse[AuthData]:
    """Authenticate with email and password.

    Uses authenticate_user() which includes timing equalization. Do NOT
    inline get_by_email() + verify_password() -- that re-introduces the
    timing attack.
    """
    user = authenticate_user(request.app.state.user_store, body.email, body.password)
    if user is None:
        raise AuthInvalidError("Invalid email or password")
    response.headers["Cache-Control"] = "no-store"
    return DataResponse(message="Login successful", data=_auth_payload(user))


@router.post("/auth/google", response_model=DataResponse[AuthData])
@limiter.limit(auth_limit)
def google_sign_in(request: Request, response: Response, body: GoogleAuthRequest) -> DataResponse[AuthData]:
    """Sign in (or sign up) with a Google ID token.

    Matching is by verified email:
      - no account: create a Google-only account (no local password)
      - account without a Google link: attach google_id, take the Google
        avatar if one was supplied
      - already linked: sign in as-is
    """
    verifier: GoogleTokenVerifier = request.app.state.google_verifier
    profile = verifier.verify(body.token)

    user_store: UserStore = request.app.state.user_store
    email = profile.email.lower()
    user = user_store.get_by_email(email)
    if user is None:
        user_id = user_store.create_user(
            User(
                name=profile.name or "Google User",
                email=email,
                avatar=profile.picture,
                google_id=profile.sub,
                email_verified=True,
            )
        )
        user = user_store.get_by_id(user_id)
    elif not user.google_id:
        user_store.link_google(user.id, profile.sub, avatar=profile.picture)
        user = user_store.get_by_id(user.id)

    response.headers["Cache-Control"] = "no-store"
    return DataResponse(message="Google authentication successful", data=_auth_payload(user))


@router.post("/auth/refresh", response_model=DataResponse[TokenPair])
def refresh(request: Request, response: Response, body: RefreshRequest) -> DataResponse[TokenPair]:
    """Issue a fresh access/refresh pair. The user must still exist."""
    payload = decode_refresh_token(body.refresh_token)
    if payload is None:
        raise AuthInvalidError("Invalid refresh token")
    user = request.app.state.user_store.get_by_id(int(payload["user_id"]))
    if user is None:
        raise AuthInvalidError("Invalid refresh token")
    response.headers["Cache-Control"] = "no-store"
    return DataResponse(message="Tokens refreshed successfully", data=TokenPair(**issue_token_pair(user)))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=DataResponse[UserData])
def me(request: Request, identity: Identity = Depends(get_identity)) -> DataResponse[UserData]:
    """Return the currently authenticated user."""
    return DataResponse(data=UserData(user=UserOut.from_domain(_current_user(request, identity))))


@router.patch("/auth/profile", response_model=DataResponse[UserData])
def update_profile(
    request: Request,
    body: ProfileUpdate,
    identity: Identity = Depends(get_identity),
) -> DataResponse[UserData]:
    """Update name and/or avatar. Omitted fields are left alone; avatar may be cleared with null."""
    patch = ProfilePatch(**body.model_dump(exclude_unset=True))
    user_store: UserStore = request.app.state.user_store
    user_store.update_user(identity.id, **patch.changes())
    return DataResponse(
        message="Profile updated successfully",
        data=UserData(user=UserOut.from_domain(_current_user(request, identity))),
    )


@router.patch("/auth/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_identity),
) -> MessageResponse:
    """Change the local password. Google-only accounts have none to change."""
    user = _current_user(request, identity)
    if user.hashed_password is None:
        raise ValidationFailedError("Current password is required")
    if not verify_password(body.current_password, user.hashed_password):
        raise ValidationFailedError("Current password is incorrect")
    request.app.state.user_store.update_user(user.id, hashed_password=hash_password(body.new_password))
    return MessageResponse(message="Password changed successfully")
