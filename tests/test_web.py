"""Tests for web routes."""

import re

import pytest
from starlette.testclient import TestClient

from aitoonic import web

from .conftest import AGENTS
from .conftest import bulk_tools
from .conftest import write_collection

HX = {"HX-Request": "true"}


@pytest.fixture
def client(data_dir):
    web.listings.clear()
    with TestClient(web.app, raise_server_exceptions=False) as client:
        yield client
    web.listings.clear()


def _tool_links(html):
    return re.findall(r'href="/ai/([^"]+)"', html)


class TestHome:
    def test_homepage_returns_200(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Discover AI Tools" in response.text
        assert 'id="search-input"' in response.text
        assert "Sales Bot" in response.text

    def test_homepage_survives_broken_catalog(self, client, data_dir):
        (data_dir / "tools.json").write_text("not json")
        response = client.get("/")
        assert response.status_code == 200
        assert "The catalog is temporarily unavailable." in response.text

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestSearch:
    def test_groups_results_by_type(self, client):
        response = client.get("/search", params={"q": "sales"}, headers=HX)
        assert response.status_code == 200
        html = response.text
        assert html.index("Tools") < html.index("Agents") < html.index("Categories")
        assert 'href="/ai/sales-assistant"' in html
        assert 'href="/ai-agent/sales-bot"' in html
        assert 'href="/category/sales"' in html

    def test_blank_query_gives_empty_panel(self, client):
        response = client.get("/search", params={"q": "   "}, headers=HX)
        assert response.status_code == 200
        assert 'id="search-results"' in response.text
        assert "result-group" not in response.text

    def test_details_are_not_searched(self, client):
        response = client.get("/search", params={"q": "interface"}, headers=HX)
        assert "result-group" not in response.text


class TestCategoryListing:
    def test_category_page_lists_its_tools(self, client):
        response = client.get("/category/writing")
        assert response.status_code == 200
        assert _tool_links(response.text) == ["chatbot", "chat", "chatter", "jasper-writer"]
        assert "Load More Tools" not in response.text

    def test_all_tools(self, client):
        response = client.get("/category/all")
        assert response.status_code == 200
        assert len(_tool_links(response.text)) == 5

    def test_unknown_category_is_404(self, client):
        response = client.get("/category/music")
        assert response.status_code == 404
        assert "Category Not Found" in response.text

    def test_load_more_appends_next_page(self, client, data_dir):
        write_collection(data_dir, "tools", bulk_tools(20))
        first = client.get("/category/all")
        assert len(_tool_links(first.text)) == 15
        assert "Load More Tools" in first.text

        more = client.get("/category/all/more", params={"page": 2}, headers=HX)
        assert more.status_code == 200
        assert _tool_links(more.text) == [f"bulk-tool-{i}" for i in range(16, 21)]
        assert 'hx-swap-oob="true"' in more.text
        assert "Load More Tools" not in more.text

    def test_repeated_click_is_ignored(self, client, data_dir):
        write_collection(data_dir, "tools", bulk_tools(20))
        client.get("/category/all")
        assert client.get("/category/all/more", params={"page": 2}, headers=HX).status_code == 200
        assert client.get("/category/all/more", params={"page": 2}, headers=HX).status_code == 204

    def test_broken_store_shows_notice(self, client, data_dir):
        (data_dir / "tools.json").write_text("not json")
        response = client.get("/category/all")
        assert response.status_code == 200
        assert "load this list right now." in response.text


class TestDetailPages:
    def test_tool_page(self, client):
        response = client.get("/ai/jasper-writer")
        assert response.status_code == 200
        html = response.text
        assert html.index("Templates") < html.index("Brand voice")
        assert "Key Features" in html
        assert "$39/month" in html
        assert "Similar Tools" in html
        assert 'href="/ai/chat"' in html
        assert 'href="/ai/jasper-writer"' not in html.split("Similar Tools", 1)[1]
        assert "application/ld+json" in html

    def test_unknown_tool_is_404(self, client):
        response = client.get("/ai/nothing-here")
        assert response.status_code == 404
        assert "Tool Not Found" in response.text

    def test_agent_listing_and_page(self, client):
        listing = client.get("/ai-agent")
        assert listing.status_code == 200
        assert 'href="/ai-agent/sales-bot"' in listing.text

        response = client.get("/ai-agent/sales-bot")
        assert response.status_code == 200
        assert "12,000+ users" in response.text
        assert "Pricing: Freemium" in response.text

    def test_unknown_agent_is_404(self, client):
        response = client.get("/ai-agent/nobody")
        assert response.status_code == 404
        assert "Agent Not Found" in response.text


class TestInvalidStoredRows:
    @pytest.fixture
    def bad_agent(self, data_dir):
        rows = [{"id": "a-mega", "name": "Mega Agent", "pricing_type": "enterprise"}] + AGENTS
        write_collection(data_dir, "agents", rows)

    def test_home_and_search_skip_the_bad_row(self, client, bad_agent):
        home = client.get("/")
        assert home.status_code == 200
        assert "Sales Bot" in home.text
        assert "Mega Agent" not in home.text

        response = client.get("/search", params={"q": "sales"}, headers=HX)
        assert response.status_code == 200
        assert 'href="/ai-agent/sales-bot"' in response.text

    def test_agent_listing_shows_the_valid_agents(self, client, bad_agent):
        response = client.get("/ai-agent")
        assert response.status_code == 200
        assert 'href="/ai-agent/sales-bot"' in response.text
        assert 'href="/ai-agent/support-agent"' in response.text
        assert "load this list right now" not in response.text

    def test_bad_agent_page_is_unavailable(self, client, bad_agent):
        response = client.get("/ai-agent/mega-agent")
        assert response.status_code == 503
        assert "Temporarily unavailable" in response.text
