from typing import List, Optional, Union

from pydantic import BaseModel, Field


class Property(BaseModel):
    id: Union[int, str]
    title: str = ""
    price: float = 0.0
    location: str = ""
    address: str = ""
    city: str = ""
    description: str = ""
    property_type: str = ""
    listing_type: str = ""
    bedrooms: int = 0
    bathrooms: int = 0
    square_feet: Optional[float] = None
    image_url: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": 17,
                "title": "Family home in Phakalane",
                "price": 1850000.0,
                "location": "Phakalane, Gaborone",
                "address": "Plot 4521, Phakalane",
                "city": "Gaborone",
                "description": "Four bedroom house with borehole and solar geyser",
                "property_type": "house",
                "listing_type": "agent",
                "bedrooms": 4,
                "bathrooms": 2,
                "square_feet": 2400.0,
                "image_url": "https://cdn.example.com/p/17.jpg",
                "features": ["borehole", "solar geyser"],
                "latitude": -24.5946,
                "longitude": 25.9569,
            }
        }
