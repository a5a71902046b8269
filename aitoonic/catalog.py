"""Catalog lookups used by the public pages."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from dataclasses import field
from typing import List
from typing import Optional
from typing import Tuple
from typing import Type

from pydantic import ValidationError

from aitoonic.data_store import CatalogStore
from aitoonic.data_store import eq
from aitoonic.data_store import neq
from aitoonic.errors import FetchError
from aitoonic.errors import NotFoundError
from aitoonic.models import Agent
from aitoonic.models import Category
from aitoonic.models import CatalogModel
from aitoonic.models import Tool
from aitoonic.models import parse_rows
from aitoonic.seo import slug_to_name

logger = logging.getLogger(__name__)


@dataclass
class CatalogSnapshot:
    """Read-only copy of all three collections, used by home and search."""

    tools: List[Tool] = field(default_factory=list)
    agents: List[Agent] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.tools or self.agents or self.categories)


def load_snapshot(store: CatalogStore) -> CatalogSnapshot:
    return CatalogSnapshot(
        tools=parse_rows("tools", store.select_all("tools")),
        agents=parse_rows("agents", store.select_all("agents")),
        categories=parse_rows("categories", store.select_all("categories")),
    )


# Simple global cache
_snapshot: Optional[CatalogSnapshot] = None


def get_snapshot(store: CatalogStore) -> CatalogSnapshot:
    """Get the cached snapshot, loading it on first use."""
    global _snapshot
    if _snapshot is None:
        logger.info("Snapshot empty, loading catalog from storage")
        _snapshot = load_snapshot(store)
        logger.info(
            f"Loaded {len(_snapshot.tools)} tools, {len(_snapshot.agents)} agents, "
            f"{len(_snapshot.categories)} categories into cache"
        )
    return _snapshot


async def refresh_snapshot(store: CatalogStore) -> None:
    """Background task to refresh the snapshot; a failed refresh keeps the old one."""
    global _snapshot
    logger.info("Starting background catalog refresh")
    try:
        fresh = await asyncio.to_thread(load_snapshot, store)
    except Exception as e:
        logger.error(f"Background catalog refresh failed: {e}")
        return
    _snapshot = fresh
    logger.info(f"Background refresh complete, cached {len(fresh.tools)} tools")


def clear_snapshot() -> None:
    global _snapshot
    _snapshot = None


def pick_featured(tools: List[Tool], count: int = 4, rng: Optional[random.Random] = None) -> List[Tool]:
    """Random selection of tools for the home page."""
    rng = rng or random.Random()
    return rng.sample(list(tools), min(count, len(tools)))


def newest_tools(tools: List[Tool], count: int = 3) -> List[Tool]:
    return list(tools[:count])


def home_agents(agents: List[Agent], count: int = 3) -> List[Agent]:
    return list(agents[:count])


def _validate(model: Type[CatalogModel], row: dict):
    try:
        return model.model_validate(row)
    except ValidationError as e:
        raise FetchError(f"Stored {model.__name__} {row.get('id')!r} is invalid: {e.error_count()} error(s)") from e


def find_category(store: CatalogStore, slug: str) -> Category:
    """Category whose name equals the slug with hyphens read as spaces, ignoring case."""
    row = store.select_one("categories", "name", "ilike", slug_to_name(slug))
    return _validate(Category, row)


def find_tool(store: CatalogStore, slug: str) -> Tuple[Tool, Category]:
    """Tool by slug together with its category; a tool without a category is not found."""
    row = store.select_one("tools", "name", "ilike", slug_to_name(slug))
    tool = _validate(Tool, row)
    try:
        category_row = store.select_one("categories", "id", "eq", tool.category_id)
    except NotFoundError:
        logger.warning(f"Tool {tool.name!r} references missing category {tool.category_id!r}")
        raise NotFoundError("tools", "name", slug_to_name(slug))
    return tool, _validate(Category, category_row)


def find_agent(store: CatalogStore, slug: str) -> Agent:
    return _validate(Agent, store.select_one("agents", "name", "ilike", slug_to_name(slug)))


def similar_tools(store: CatalogStore, tool: Tool, limit: int = 4) -> List[Tool]:
    """Other tools from the same category."""
    rows = store.select_range("tools", 0, limit, [eq("category_id", tool.category_id), neq("id", tool.id)])
    return parse_rows("tools", rows)
