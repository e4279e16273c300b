"""Property domain service."""

from typing import Optional

from propledger.database.base import Database
from propledger.domain.entities import Property, PropertyStatus
from propledger.domain.errors import NotFoundError, ValidationError, property_not_found


class PropertyService:
    """Service for managing properties."""

    def __init__(self, db: Database):
        """Initialize property service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_property(
        self,
        name: str,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        purchase_price_cents: Optional[int] = None,
    ) -> int:
        """Create a property.

        Args:
            name: Unique property name
            status: Property status
            purchase_price_cents: Optional purchase price, used for yield on cost

        Returns:
            Property ID

        Raises:
            ValidationError: If the name is empty or the price is negative
            ConflictError: If a property with that name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Property name is required", reason="missing_name")
        if purchase_price_cents is not None and purchase_price_cents < 0:
            raise ValidationError("Purchase price cannot be negative", reason="invalid_amount")
        return self.db.create_property(
            name=name,
            status=PropertyStatus(status),
            purchase_price_cents=purchase_price_cents,
        )

    def get_property(self, property_id: int) -> Property:
        """Get property by ID.

        Raises:
            NotFoundError: If the property doesn't exist
        """
        prop = self.db.get_property(property_id)
        if prop is None:
            raise NotFoundError(property_not_found(property_id), reason="property_not_found")
        return prop

    def list_properties(self, status: Optional[PropertyStatus] = None) -> list[Property]:
        return self.db.list_properties(status=status)
