from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt


class DeliveryArea(BaseModel):
    type: str = Field(..., description='Polygon-family geometry type, e.g. "Polygon"')
    coordinates: list[list[list[StrictFloat]]] = Field(
        ...,
        description="Linear rings of [longitude, latitude] pairs",
    )


class Restaurant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    name: str = ""
    url: str = ""
    image_url: str = ""
    address: str = ""
    open: StrictBool = False
    tags: list[str] = Field(default_factory=list)
    food_tags: list[str] = Field(default_factory=list)
    price: StrictInt = 0
    rating: StrictInt = 0
    delivery_area: DeliveryArea | None = None

    def to_document(self) -> dict[str, Any]:
        """Return the engine document body for this restaurant."""
        return self.model_dump(exclude_none=True)


class SearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurants: list[Restaurant] = Field(default_factory=list, alias="Restaurants")
