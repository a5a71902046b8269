"""Admin-side create, update and delete of catalog entries."""

import logging
from typing import Any
from typing import Dict
from typing import List

from aitoonic.data_store import CatalogStore
from aitoonic.models import MODEL_BY_COLLECTION

logger = logging.getLogger(__name__)

SECTIONS = ("tools", "categories", "agents")
DEFAULT_AGENT_IMAGE = "https://i.imgur.com/NXyUxX7.png"
TOOL_ONLY_KEYS = ("features", "useCases", "use_cases", "pricing")


def _check_section(section: str) -> None:
    if section not in SECTIONS:
        raise ValueError(f"Unknown section {section!r}; expected one of {SECTIONS}")


def prepare_for_save(section: str, item: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in the defaults each section needs and validate the result.

    Raises pydantic.ValidationError when the item does not fit the section's model.
    """
    _check_section(section)
    prepared = dict(item)

    if section == "tools":
        if "use_cases" in prepared and "useCases" not in prepared:
            prepared["useCases"] = prepared.pop("use_cases")
        prepared["features"] = prepared.get("features") or []
        prepared["useCases"] = prepared.get("useCases") or []
        prepared["pricing"] = prepared.get("pricing") or []
    elif section == "agents":
        for key in TOOL_ONLY_KEYS:
            prepared.pop(key, None)
        prepared["capabilities"] = prepared.get("capabilities") or []
        prepared["status"] = prepared.get("status") or "active"
        prepared["pricing_type"] = prepared.get("pricing_type") or "free"
        prepared["image_url"] = prepared.get("image_url") or DEFAULT_AGENT_IMAGE
        prepared["is_available_24_7"] = prepared.get("is_available_24_7") or False
        prepared["user_count"] = prepared.get("user_count") or 0
        prepared["has_fast_response"] = prepared.get("has_fast_response") or False
        prepared["is_secure"] = prepared.get("is_secure") or False

    model = MODEL_BY_COLLECTION[section]
    return model.model_validate(prepared).model_dump(by_alias=True, exclude_none=True)


def save_item(store: CatalogStore, section: str, item: Dict[str, Any]) -> Dict[str, Any]:
    """Update the row when the item has an id, insert it otherwise."""
    prepared = prepare_for_save(section, item)
    item_id = prepared.get("id")
    if item_id:
        saved = store.update(section, item_id, prepared)
        logger.info(f"Item updated successfully: {section}/{item_id}")
    else:
        prepared.pop("id", None)
        saved = store.insert(section, prepared)
        logger.info(f"Item created successfully: {section}/{saved['id']}")
    return saved


def delete_item(store: CatalogStore, section: str, item_id: str) -> None:
    _check_section(section)
    store.delete(section, item_id)
    logger.info(f"Item deleted successfully: {section}/{item_id}")


def _sort_value(item: Dict[str, Any], sort_field: str) -> str:
    value = item.get(sort_field)
    return "" if value is None else str(value).lower()


def filter_items(
    items: List[Dict[str, Any]],
    search_term: str = "",
    sort_field: str = "name",
    direction: str = "asc",
) -> List[Dict[str, Any]]:
    """Rows whose name or description contains the term, sorted on one field."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")
    term = (search_term or "").lower()
    matching = [
        item
        for item in items
        if term in (item.get("name") or "").lower() or term in (item.get("description") or "").lower()
    ]
    return sorted(matching, key=lambda item: _sort_value(item, sort_field), reverse=direction == "desc")
