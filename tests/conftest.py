"""Shared fixtures: a local-storage catalog written to a temporary directory."""

import json

import pytest

from aitoonic.catalog import clear_snapshot
from aitoonic.data_store import CatalogStore
from aitoonic.data_store import reset_store
from aitoonic.storage import LocalBackend

CATEGORIES = [
    {"id": "c-writing", "name": "Writing", "description": "Tools that write for you"},
    {"id": "c-sales", "name": "Sales", "description": "Close more deals"},
    {"id": "c-image", "name": "Image Generation", "description": None},
]

TOOLS = [
    {
        "id": "t-sales",
        "name": "Sales Assistant",
        "description": "Drafts outreach emails",
        "url": "https://sales.example.com",
        "category_id": "c-sales",
        "image_url": "",
    },
    {"id": "t-chatbot", "name": "Chatbot", "description": "A bot", "url": "", "category_id": "c-writing"},
    {"id": "t-chat", "name": "Chat", "description": "Talk to it", "url": "", "category_id": "c-writing"},
    {"id": "t-chatter", "name": "Chatter", "description": "Social posts", "url": "", "category_id": "c-writing"},
    {
        "id": "t-jasper",
        "name": "Jasper Writer",
        "description": "Long-form copy with a chat interface",
        "url": "https://jasper.example.com",
        "category_id": "c-writing",
        "image_url": "https://img.example.com/jasper.png",
        "favicon_url": "https://img.example.com/jasper.ico",
        "features": [
            {"title": "Templates", "description": "50+ templates"},
            {"title": "Brand voice", "description": "Learns your tone"},
        ],
        "useCases": [{"title": "Blogging", "description": "Draft posts"}],
        "pricing": [
            {"plan": "Creator", "price": "$39/month", "features": ["1 seat", "Brand voice"]},
            {"plan": "Free", "price": "Free", "features": []},
        ],
    },
]

AGENTS = [
    {
        "id": "a-sales",
        "name": "Sales Bot",
        "description": "Qualifies leads around the clock",
        "capabilities": ["Lead scoring", "Email follow-up"],
        "api_endpoint": "https://api.example.com/sales",
        "pricing_type": "freemium",
        "status": "active",
        "image_url": "",
        "is_available_24_7": True,
        "has_fast_response": True,
        "is_secure": False,
        "user_count": 12000,
    },
    {
        "id": "a-support",
        "name": "Support Agent",
        "description": "Answers tickets",
        "capabilities": ["Chat support", "Ticket routing"],
        "pricing_type": "paid",
    },
]


def write_collection(data_dir, collection, items):
    (data_dir / f"{collection}.json").write_text(json.dumps({"items": items, "last_updated": ""}))


def bulk_tools(count, category_id="c-writing"):
    return [
        {"id": f"bulk-{i}", "name": f"Bulk Tool {i}", "description": "", "category_id": category_id}
        for i in range(1, count + 1)
    ]


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Local storage backend seeded with the sample catalog."""
    monkeypatch.setenv("AITOONIC_STORAGE_BACKEND", "local")
    monkeypatch.setenv("AITOONIC_LOCAL_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("BASE_PATH", raising=False)
    monkeypatch.delenv("SITE_URL", raising=False)
    reset_store()
    clear_snapshot()

    write_collection(tmp_path, "categories", CATEGORIES)
    write_collection(tmp_path, "tools", TOOLS)
    write_collection(tmp_path, "agents", AGENTS)
    yield tmp_path

    reset_store()
    clear_snapshot()


@pytest.fixture
def store(data_dir):
    return CatalogStore(LocalBackend(data_dir))
