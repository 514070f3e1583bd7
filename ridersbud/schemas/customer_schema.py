"""Customer and garage vehicle models."""

from typing import Optional

from pydantic import Field

from ridersbud.schemas.base_schema import StoredModel


class Vehicle(StoredModel):
    make: str
    model: str
    year: int
    plate_number: str
    image_url: str = ""
    is_primary: bool = False
    vin: Optional[str] = None
    mileage: Optional[int] = None
    insurance_provider: Optional[str] = None
    insurance_policy_number: Optional[str] = None


class Customer(StoredModel):
    """Customer account with the vehicles in their garage."""
    id: str
    name: str
    email: str
    phone: str = ""
    vehicles: list[Vehicle] = Field(default_factory=list)
    picture: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    favorite_mechanic_ids: list[str] = Field(default_factory=list)

    def primary_vehicle(self) -> Optional[Vehicle]:
        """Primary vehicle, falling back to the first one in the garage."""
        for vehicle in self.vehicles:
            if vehicle.is_primary:
                return vehicle
        return self.vehicles[0] if self.vehicles else None

    def find_vehicle(self, plate_number: str) -> Optional[Vehicle]:
        for vehicle in self.vehicles:
            if vehicle.plate_number == plate_number:
                return vehicle
        return None
