from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...services.catalog_service import CatalogService
from ...schemas.catalog import LocationResponse, ProviderResponse

router = APIRouter(prefix="/locations", tags=["Locations"])

@router.get("", response_model=List[LocationResponse])
async def list_locations(db: Session = Depends(get_db)):
    """Locations offered in the location picker, by name."""
    return CatalogService(db).list_locations()

@router.get("/{location_id}/providers", response_model=List[ProviderResponse])
async def list_location_providers(
    location_id: str,
    db: Session = Depends(get_db)
):
    """Providers practicing at a location, by name."""
    catalog = CatalogService(db)
    catalog.get_location(location_id)
    return catalog.list_providers(location_id)
