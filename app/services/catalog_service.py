from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..models.location import Location
from ..models.provider import Provider
from ..schemas.catalog import ProviderCreate
from ..core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

class CatalogService:
    """Locations and providers, for both the booking flow and the admin panel."""

    def __init__(self, db: Session):
        self.db = db

    def list_locations(self) -> List[Location]:
        return self.db.query(Location).order_by(Location.name).all()

    def get_location(self, location_id: str) -> Location:
        location = self.db.query(Location).filter(Location.id == location_id).first()
        if not location:
            raise NotFoundError("Location not found")
        return location

    def list_providers(self, location_id: Optional[str] = None) -> List[Provider]:
        """Providers ordered by name, optionally limited to one location."""
        query = self.db.query(Provider).options(joinedload(Provider.location))
        if location_id:
            query = query.filter(Provider.location_id == location_id)
        return query.order_by(Provider.name).all()

    def create_provider(self, provider_data: ProviderCreate) -> Provider:
        location = self.get_location(provider_data.location_id)

        provider = Provider(
            name=provider_data.name.strip(),
            location_id=location.id
        )

        self.db.add(provider)
        self.db.commit()
        self.db.refresh(provider)

        logger.info(f"Added provider {provider.name} at {location.name}")
        return provider

    def delete_provider(self, provider_id: str) -> None:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found")

        try:
            self.db.delete(provider)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Error deleting provider {provider_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Provider has bookings and cannot be deleted"
            )

        logger.info(f"Deleted provider {provider_id}")
