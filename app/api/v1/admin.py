from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging
import time

from ...core.database import get_db, get_redis
from ...core.security import (
    verify_admin_password, create_admin_token, AuthenticationError,
    Token, TokenPayload
)
from ...api.deps import get_admin_token, rate_limit_check, revoked_token_key
from ...services.catalog_service import CatalogService
from ...schemas.admin import AdminLogin, AdminSession
from ...schemas.catalog import LocationResponse, ProviderCreate, AdminProviderResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.post("/login", response_model=Token)
async def login(
    login_data: AdminLogin,
    _: None = Depends(rate_limit_check)
):
    """Exchange the shared admin password for a session token."""
    if not verify_admin_password(login_data.password):
        logger.warning("Failed admin login attempt")
        raise AuthenticationError("Invalid password")

    return create_admin_token()

@router.post("/logout")
async def logout(
    token_payload: TokenPayload = Depends(get_admin_token),
    redis_client = Depends(get_redis)
):
    """Revoke the current session token until it would have expired."""
    ttl = max(int(token_payload.exp - time.time()), 1) if token_payload.exp else 3600
    redis_client.setex(revoked_token_key(token_payload.jti), ttl, 1)

    return {"message": "Successfully logged out"}

@router.get("/session", response_model=AdminSession)
async def session(_: TokenPayload = Depends(get_admin_token)):
    """Check whether the presented token is still a valid admin session."""
    return AdminSession(authenticated=True)

@router.get("/locations", response_model=List[LocationResponse])
async def list_locations(
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_token)
):
    return CatalogService(db).list_locations()

@router.get("/providers", response_model=List[AdminProviderResponse])
async def list_providers(
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_token)
):
    """List all providers with their location."""
    return CatalogService(db).list_providers()

@router.post("/providers", response_model=AdminProviderResponse, status_code=status.HTTP_201_CREATED)
async def create_provider(
    provider_data: ProviderCreate,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_token)
):
    """Add a provider at an existing location."""
    provider = CatalogService(db).create_provider(provider_data)
    return AdminProviderResponse.model_validate(provider)

@router.delete("/providers/{provider_id}")
async def delete_provider(
    provider_id: str,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_token)
):
    CatalogService(db).delete_provider(provider_id)

    return {"message": "Provider deleted successfully"}
