"""
Authentication API routes - sign-up, email verification, sign-in,
sign-out and the current identity.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.dependencies import get_auth_events, get_session_context
from academic_quality.serializers import serialize_faculty, serialize_profile
from academic_quality.services import auth_service
from academic_quality.services.auth_service import AuthEventStream
from academic_quality.services.identity import SessionContext

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str


class SignUpResponse(BaseModel):
    status: str
    user_id: str
    email: str


class VerifyRequest(BaseModel):
    token: str


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: dict


def describe_context(context: SessionContext) -> dict:
    """The resolved identity as the client sees it."""
    return {
        "user_id": context.identity_id,
        "email": context.profile.email if context.profile else None,
        "role": context.role.value if context.role else None,
        "profile": serialize_profile(context.profile),
        "faculty_profile": serialize_faculty(context.faculty_profile) if context.faculty_profile else None,
        "menu": [item._asdict() for item in context.menu],
    }


@router.post("/api/auth/sign-up", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
def sign_up(request: SignUpRequest, db: Session = Depends(get_db)):
    """Register a new identity. With verification enabled it stays pending until confirmed."""
    result = auth_service.sign_up(db, request.email, request.password,
                                  request.first_name, request.last_name)
    return SignUpResponse(status=result.status, user_id=str(result.identity.id),
                          email=result.identity.email)


@router.post("/api/auth/verify")
def verify(request: VerifyRequest, db: Session = Depends(get_db)):
    identity = auth_service.verify_email(db, request.token)
    return {"status": "confirmed", "user_id": str(identity.id)}


@router.post("/api/auth/sign-in", response_model=SignInResponse)
def sign_in(request: SignInRequest, db: Session = Depends(get_db),
            events: AuthEventStream = Depends(get_auth_events)):
    """Open a session; the returned context is resolved from the SIGNED_IN event."""
    context = SessionContext()
    unsubscribe = context.bind(events, db)
    try:
        result = auth_service.sign_in(db, request.email, request.password, events=events)
    finally:
        unsubscribe()

    return SignInResponse(access_token=result.access_token, expires_at=result.expires_at,
                          user=describe_context(context))


@router.post("/api/auth/sign-out")
def sign_out(context: SessionContext = Depends(get_session_context),
             db: Session = Depends(get_db),
             events: AuthEventStream = Depends(get_auth_events)):
    unsubscribe = context.bind(events, db)
    try:
        auth_service.sign_out(db, context.session, events=events)
    finally:
        unsubscribe()
    return {"message": "Signed out"}


@router.get("/api/auth/me")
def me(context: SessionContext = Depends(get_session_context)):
    return describe_context(context)
