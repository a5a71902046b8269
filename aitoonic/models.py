"""Catalog entities."""

import logging
from typing import Any
from typing import List
from typing import Literal
from typing import Optional
from typing import Union

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import model_validator

logger = logging.getLogger(__name__)


class CatalogModel(BaseModel):
    """Base model that treats null fields as absent so defaults apply."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Category(CatalogModel):
    id: Optional[str] = None
    name: str = ""
    description: str = ""


class Feature(CatalogModel):
    title: str = ""
    description: str = ""


class UseCase(CatalogModel):
    title: str = ""
    description: str = ""


class PricingPlan(CatalogModel):
    plan: str = ""
    price: str = ""
    features: List[str] = Field(default_factory=list)


class Tool(CatalogModel):
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    url: str = ""
    category_id: str = ""
    image_url: str = ""
    favicon_url: Optional[str] = None
    features: List[Feature] = Field(default_factory=list)
    use_cases: List[UseCase] = Field(default_factory=list, alias="useCases")
    pricing: List[PricingPlan] = Field(default_factory=list)


PricingType = Literal["free", "freemium", "paid"]


class Agent(CatalogModel):
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    capabilities: List[str] = Field(default_factory=list)
    api_endpoint: str = ""
    pricing_type: PricingType = "free"
    status: str = "active"
    image_url: str = ""
    is_available_24_7: bool = False
    has_fast_response: bool = False
    is_secure: bool = False
    user_count: int = Field(default=0, ge=0)


ResultType = Literal["tool", "agent", "category"]


class SearchResult(BaseModel):
    """One ranked hit; transient, rebuilt for every query."""

    type: ResultType
    item: Union[Tool, Agent, Category]

    @property
    def name(self) -> str:
        return self.item.name


MODEL_BY_COLLECTION = {
    "tools": Tool,
    "agents": Agent,
    "categories": Category,
}


def parse_rows(collection: str, rows: List[dict]) -> list:
    """Validate raw store rows into the collection's model, skipping rows that do not fit."""
    model = MODEL_BY_COLLECTION[collection]
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning(f"Skipping invalid {collection} row {row_id!r}: {e.error_count()} validation error(s)")
    return parsed
