import asyncio
import json
import logging
import uuid
from typing import Callable
from typing import Optional

from fasthtml.common import H1
from fasthtml.common import H2
from fasthtml.common import H3
from fasthtml.common import H4
from fasthtml.common import A
from fasthtml.common import Body
from fasthtml.common import Button
from fasthtml.common import Div
from fasthtml.common import Head
from fasthtml.common import Html
from fasthtml.common import Img
from fasthtml.common import Input
from fasthtml.common import Li
from fasthtml.common import Meta
from fasthtml.common import P
from fasthtml.common import Script
from fasthtml.common import Section
from fasthtml.common import Span
from fasthtml.common import Style
from fasthtml.common import Ul
from fasthtml.common import to_xml
from fasthtml.fastapp import fast_app
from starlette.responses import HTMLResponse
from starlette.responses import JSONResponse
from starlette.responses import Response

from aitoonic.catalog import CatalogSnapshot
from aitoonic.catalog import find_agent
from aitoonic.catalog import find_category
from aitoonic.catalog import find_tool
from aitoonic.catalog import get_snapshot
from aitoonic.catalog import home_agents
from aitoonic.catalog import newest_tools
from aitoonic.catalog import pick_featured
from aitoonic.catalog import refresh_snapshot
from aitoonic.catalog import similar_tools
from aitoonic.config import AGENT_PLACEHOLDER_IMAGE
from aitoonic.config import SITE_NAME
from aitoonic.config import TOOL_PLACEHOLDER_IMAGE
from aitoonic.config import agents_page_size
from aitoonic.config import base_path
from aitoonic.config import listing_cache_size
from aitoonic.config import log_level
from aitoonic.config import site_url
from aitoonic.config import tools_page_size
from aitoonic.config import web_port
from aitoonic.data_store import eq
from aitoonic.data_store import get_store
from aitoonic.errors import FetchError
from aitoonic.errors import NotFoundError
from aitoonic.logging_config import setup_logging
from aitoonic.pagination import ControllerRegistry
from aitoonic.pagination import PaginatedFetchController
from aitoonic.pagination import store_fetcher
from aitoonic.search import GROUP_TITLES
from aitoonic.search import group_results
from aitoonic.search import result_href
from aitoonic.search import search
from aitoonic.seo import generate_agent_schema
from aitoonic.seo import generate_breadcrumb_list
from aitoonic.seo import generate_category_schema
from aitoonic.seo import generate_meta_description
from aitoonic.seo import generate_tool_schema
from aitoonic.seo import name_slug
from aitoonic.seo import seo_head

setup_logging(log_level())

logger = logging.getLogger(__name__)

HTMX_SRC = "https://unpkg.com/htmx.org@2.0.4"

# Per-session "load more" state
listings = ControllerRegistry(max_size=listing_cache_size())
_background_tasks: set = set()


def url(path: str) -> str:
    """Prefix path with BASE_PATH for subdirectory deployment"""
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base_path()}{path}"


def _session_id(session) -> str:
    sid = session.get("sid")
    if not sid:
        sid = uuid.uuid4().hex
        session["sid"] = sid
    return sid


def _schedule_refresh() -> None:
    task = asyncio.create_task(refresh_snapshot(get_store()))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


site_styles = Style(
    """
    :root { --gold: #d4af37; --dark: #0f0f1a; --card: #1a1a2e; --line: #2a2a40; --muted: #9ca3af; }
    body { background: var(--dark); color: #f3f4f6; font-family: system-ui, sans-serif; margin: 0; }
    a { color: inherit; text-decoration: none; }
    .main-window { max-width: 1200px; margin: 0 auto; padding: 2rem 1rem; }
    .site-nav { display: flex; gap: 1.5rem; padding: 1rem 0; border-bottom: 1px solid var(--line); }
    .site-nav a:hover, .breadcrumbs a:hover { color: var(--gold); }
    .brand { font-weight: 700; color: var(--gold); margin-right: auto; }
    .breadcrumbs { color: var(--muted); font-size: 0.9rem; margin: 1rem 0 2rem; }
    .hero { text-align: center; padding: 4rem 0; }
    .hero h1, .page-title { color: var(--gold); }
    #search-container { position: relative; max-width: 640px; margin: 0 auto; }
    #search-input { width: 100%; padding: 1rem 1.5rem; border-radius: 999px; border: 1px solid var(--line);
        background: var(--card); color: #fff; font-size: 1.1rem; }
    .search-results { position: absolute; left: 0; right: 0; margin-top: 0.5rem; background: var(--card);
        border: 1px solid var(--line); border-radius: 1rem; max-height: 60vh;
        overflow-y: auto; text-align: left; z-index: 50; }
    .search-results:empty { display: none; }
    .result-group h3 { margin: 0; padding: 0.5rem 1rem; font-size: 0.85rem; color: var(--muted);
        background: var(--line); }
    .result { display: block; padding: 0.75rem 1rem; }
    .result:hover { background: rgba(255, 255, 255, 0.05); }
    .result h4 { margin: 0; }
    .result p { margin: 0.25rem 0 0; color: var(--muted); font-size: 0.85rem; }
    .grid { display: grid; gap: 1.5rem; grid-template-columns: repeat(auto-fill, minmax(260px, 1fr)); }
    .card { display: block; background: var(--card); border: 1px solid var(--line); border-radius: 1rem;
        overflow: hidden; }
    .card:hover { border-color: var(--gold); }
    .card-image img { width: 100%; aspect-ratio: 16 / 9; object-fit: cover; }
    .card-body { padding: 1rem 1.25rem; }
    .card-body p { color: var(--muted); }
    .card-link { color: var(--gold); }
    .badges { display: flex; flex-wrap: wrap; gap: 0.5rem; font-size: 0.8rem; }
    .badge { border: 1px solid var(--line); border-radius: 999px; padding: 0.1rem 0.6rem; }
    #load-more { text-align: center; margin: 2rem 0; }
    .cta-button, #load-more button { background: var(--gold); color: var(--dark); border: none; border-radius: 0.5rem;
        padding: 0.75rem 2rem; font-weight: 700; cursor: pointer; display: inline-block; }
    .notice { border: 1px solid #b91c1c; background: rgba(185, 28, 28, 0.15); padding: 0.75rem 1rem;
        border-radius: 0.5rem; }
    .plans { display: grid; gap: 1rem; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); }
    .plan { background: var(--card); border: 1px solid var(--line); border-radius: 1rem; padding: 1rem; }
    .plan .price { color: var(--gold); font-size: 1.5rem; font-weight: 700; }
    """
)


def render_page(head: list, *content, status_code: int = 200):
    """Full HTML document with the site chrome."""
    document = Html(
        Head(
            Meta(charset="utf-8"),
            *head,
            Script(src=HTMX_SRC),
            site_styles,
        ),
        Body(
            Div(
                Div(
                    A(SITE_NAME, href=url("/"), _class="brand"),
                    A("Categories", href=url("/categories")),
                    A("All Tools", href=url("/category/all")),
                    A("AI Agents", href=url("/ai-agent")),
                    _class="site-nav",
                ),
                *content,
                _class="main-window",
            )
        ),
    )
    if status_code != 200:
        return HTMLResponse(to_xml(document), status_code=status_code)
    return document


def notice(message: str):
    return Div(P(message), _class="notice", role="alert")


def not_found_page(title: str, message: str, back_href: str, back_label: str):
    return render_page(
        seo_head(title, description=message, noindex=True),
        H1(title, _class="page-title"),
        P(message),
        A(back_label, href=url(back_href), _class="cta-button"),
        status_code=404,
    )


def unavailable_page(message: str):
    return render_page(
        seo_head(f"Temporarily unavailable | {SITE_NAME}", noindex=True),
        H1("Temporarily unavailable", _class="page-title"),
        notice(message),
        status_code=503,
    )


# Components
def tool_card(tool):
    return A(
        Div(Img(src=tool.image_url or TOOL_PLACEHOLDER_IMAGE, alt=tool.name, loading="lazy"), _class="card-image"),
        Div(
            H3(tool.name),
            P(tool.description),
            Span("Explore Tool →", _class="card-link"),
            _class="card-body",
        ),
        href=url(f"/ai/{name_slug(tool.name)}"),
        _class="card",
    )


def agent_badges(agent):
    badges = []
    if agent.is_available_24_7:
        badges.append(Span("24/7", _class="badge"))
    if agent.user_count > 0:
        badges.append(Span(f"{agent.user_count:,}+ users", _class="badge"))
    if agent.has_fast_response:
        badges.append(Span("Fast", _class="badge"))
    if agent.is_secure:
        badges.append(Span("Secure", _class="badge"))
    return Div(*badges, _class="badges")


def agent_card(agent):
    return A(
        Div(Img(src=agent.image_url or AGENT_PLACEHOLDER_IMAGE, alt=agent.name, loading="lazy"), _class="card-image"),
        Div(H3(agent.name), P(agent.description), agent_badges(agent), _class="card-body"),
        href=url(f"/ai-agent/{name_slug(agent.name)}"),
        _class="card",
    )


def category_card(category):
    return A(
        Div(
            H3(category.name),
            P(category.description),
            Span("Browse Tools →", _class="card-link"),
            _class="card-body",
        ),
        href=url(f"/category/{name_slug(category.name)}"),
        _class="card",
    )


def search_results_panel(results=()):
    """Dropdown under the search box; empty (and hidden) when there are no hits."""
    groups = group_results(results)
    sections = []
    for result_type, hits in groups.items():
        sections.append(
            Div(
                H3(GROUP_TITLES[result_type]),
                *[
                    A(H4(hit.name), P(hit.item.description), href=url(result_href(hit)), _class="result")
                    for hit in hits
                ],
                _class="result-group",
            )
        )
    return Div(*sections, id="search-results", _class="search-results")


def search_box():
    return Div(
        Input(
            type="search",
            name="q",
            id="search-input",
            placeholder="Search AI tools...",
            autocomplete="off",
            hx_get=url("/search"),
            hx_trigger="input changed delay:200ms, search",
            hx_target="#search-results",
            hx_swap="outerHTML",
        ),
        search_results_panel(),
        id="search-container",
    )


def load_more_control(
    more_path: str,
    next_page: int,
    has_more: bool,
    label: str,
    error: Optional[str] = None,
    oob: bool = False,
):
    """The "Load more" button; an out-of-band swap replaces it after each page."""
    children = []
    if error:
        children.append(notice(error))
    if has_more or error:
        children.append(
            Button(
                "Try again" if error else label,
                hx_get=url(f"{more_path}?page={next_page}"),
                hx_target="#listing-grid",
                hx_swap="beforeend",
            )
        )
    attrs = {"hx_swap_oob": "true"} if oob else {}
    return Div(*children, id="load-more", **attrs)


def listing_section(controller: PaginatedFetchController, render_item: Callable, more_path: str, label: str):
    return Section(
        Div(*[render_item(item) for item in controller.items], id="listing-grid", _class="grid"),
        load_more_control(more_path, controller.current_page + 1, controller.has_more, label),
    )


async def open_listing(session, key: str, fetcher, page_size: int):
    """Start a listing from page 1 for this session, replacing any earlier state."""
    controller = listings.create((_session_id(session), key), fetcher, page_size)
    error = None
    try:
        await controller.reset()
    except FetchError as e:
        logger.error(f"Failed to load {key}: {e}")
        error = "We couldn't load this list right now."
    return controller, error


async def more_of_listing(
    session,
    key: str,
    make_fetcher: Callable,
    page_size: int,
    page: int,
    render_item: Callable,
    more_path: str,
    label: str,
):
    """Render the next page of a listing as cards plus a replacement button."""
    page = max(page, 2)
    sid = _session_id(session)
    controller = listings.get((sid, key))
    if controller is not None and controller.current_page >= page:
        # Duplicate click for a page this session already received
        return Response(status_code=204)
    try:
        if controller is None or controller.current_page != page - 1:
            # Session state lost or out of step with the browser; serve the requested page directly
            controller = listings.create((sid, key), await make_fetcher(), page_size)
            start = 0
            await controller.load(page)
        else:
            start = len(controller.items)
            if not await controller.advance():
                return Response(status_code=204)
    except NotFoundError:
        return load_more_control(more_path, page, False, label, oob=True)
    except FetchError as e:
        logger.error(f"Failed to load page {page} of {key}: {e}")
        return load_more_control(more_path, page, False, label, error="Couldn't load more. Try again.", oob=True)

    new_items = controller.items[start:]
    return (
        *[render_item(item) for item in new_items],
        load_more_control(more_path, controller.current_page + 1, controller.has_more, label, oob=True),
    )


# App setup
app, rt = fast_app()


@rt("/")
async def home():
    store = get_store()
    try:
        snapshot = await asyncio.to_thread(get_snapshot, store)
        error = None
    except FetchError as e:
        logger.error(f"Failed to load catalog for home page: {e}")
        snapshot = CatalogSnapshot()
        error = "The catalog is temporarily unavailable."

    _schedule_refresh()

    sections = [
        Section(
            H1("Discover AI Tools"),
            P("Find and compare the best AI tools for your needs"),
            search_box(),
            _class="hero",
        )
    ]
    if error:
        sections.append(notice(error))
    sections += [
        Section(H2("Browse by Category"), Div(*[category_card(c) for c in snapshot.categories], _class="grid")),
        Section(H2("Featured Tools"), Div(*[tool_card(t) for t in pick_featured(snapshot.tools)], _class="grid")),
        Section(
            H2("New Tools"),
            A("View All Tools →", href=url("/category/all"), _class="card-link"),
            Div(*[tool_card(t) for t in newest_tools(snapshot.tools)], _class="grid"),
        ),
        Section(
            H2("AI Agents"),
            A("View All Agents →", href=url("/ai-agent"), _class="card-link"),
            Div(*[agent_card(a) for a in home_agents(snapshot.agents)], _class="grid"),
        ),
    ]
    return render_page(seo_head(f"{SITE_NAME} - Discover the Best AI Tools & Agents", path="/"), *sections)


@rt("/search")
async def search_fragment(q: str = ""):
    """Grouped search hits for the dropdown."""
    if not q.strip():
        return search_results_panel()
    try:
        snapshot = await asyncio.to_thread(get_snapshot, get_store())
    except FetchError as e:
        logger.error(f"Search unavailable: {e}")
        return Div(notice("Search is unavailable right now."), id="search-results", _class="search-results")
    return search_results_panel(search(q, snapshot.tools, snapshot.agents, snapshot.categories))


@rt("/categories")
async def categories_page():
    try:
        snapshot = await asyncio.to_thread(get_snapshot, get_store())
    except FetchError as e:
        logger.error(f"Failed to load categories: {e}")
        return unavailable_page("Categories could not be loaded. Please try again.")
    return render_page(
        seo_head(f"AI Tool Categories | {SITE_NAME}", path="/categories"),
        Div(A("Home", href=url("/")), " › ", Span("Categories"), _class="breadcrumbs"),
        H1("Categories", _class="page-title"),
        Div(
            A(
                Div(H3("All Tools"), P("Every tool in the directory"), _class="card-body"),
                href=url("/category/all"),
                _class="card",
            ),
            *[category_card(c) for c in snapshot.categories],
            _class="grid",
        ),
    )


async def _category_fetcher(name: str):
    """Fetcher for the tools of ``name`` ("all" for every tool), plus the category."""
    store = get_store()
    if name == "all":
        return None, store_fetcher(store, "tools")
    category = await asyncio.to_thread(find_category, store, name)
    return category, store_fetcher(store, "tools", [eq("category_id", category.id)])


@rt("/category/{name}/more")
async def category_more(name: str, session, page: int = 2):
    async def make_fetcher():
        _, fetcher = await _category_fetcher(name)
        return fetcher

    return await more_of_listing(
        session,
        f"tools:{name}",
        make_fetcher,
        tools_page_size(),
        page,
        tool_card,
        f"/category/{name}/more",
        "Load More Tools",
    )


@rt("/category/{name}")
async def category_page(name: str, session):
    try:
        category, fetcher = await _category_fetcher(name)
    except NotFoundError:
        return not_found_page(
            "Category Not Found",
            f"No category found: {name}",
            "/categories",
            "Back to Categories",
        )
    except FetchError as e:
        logger.error(f"Failed to look up category {name}: {e}")
        return unavailable_page("This category could not be loaded. Please try again.")

    controller, error = await open_listing(session, f"tools:{name}", fetcher, tools_page_size())

    crumbs = [A("Home", href=url("/")), " › ", A("Categories", href=url("/categories"))]
    if category:
        crumbs += [" › ", Span(category.name)]
        head = seo_head(
            f"{category.name} AI Tools | {SITE_NAME}",
            description=category.description or f"The best {category.name} AI tools",
            schema=generate_category_schema(category, controller.items),
            path=f"/category/{name}",
        )
    else:
        head = seo_head(f"All AI Tools | {SITE_NAME}", path="/category/all")

    return render_page(
        head,
        Div(*crumbs, _class="breadcrumbs"),
        H1(category.name if category else "All Tools", _class="page-title"),
        P(category.description) if category and category.description else None,
        notice(error) if error else None,
        listing_section(controller, tool_card, f"/category/{name}/more", "Load More Tools"),
    )


@rt("/ai/{slug}")
async def tool_page(slug: str):
    """Tool detail page"""
    store = get_store()
    try:
        tool, category = await asyncio.to_thread(find_tool, store, slug)
        similar = await asyncio.to_thread(similar_tools, store, tool)
    except NotFoundError:
        return not_found_page(
            "Tool Not Found",
            "The tool you're looking for doesn't exist or has been removed.",
            "/categories",
            "Back to Categories",
        )
    except FetchError as e:
        logger.error(f"Failed to load tool {slug}: {e}")
        return unavailable_page("This tool could not be loaded. Please try again.")

    category_slug = name_slug(category.name)
    breadcrumbs = generate_breadcrumb_list(
        [
            {"name": "Home", "url": ""},
            {"name": category.name, "url": f"category/{category_slug}"},
            {"name": tool.name, "url": f"ai/{slug}"},
        ],
        site_url(),
    )

    blocks = [H2("Overview"), P(tool.description)]
    if tool.features:
        blocks += [H2("Key Features"), Ul(*[Li(H4(f.title), P(f.description)) for f in tool.features])]
    if tool.use_cases:
        blocks += [H2("Use Cases"), Ul(*[Li(H4(u.title), P(u.description)) for u in tool.use_cases])]
    if tool.pricing:
        blocks += [
            H2("Pricing"),
            Div(
                *[
                    Div(
                        H3(plan.plan),
                        Div(plan.price, _class="price"),
                        Ul(*[Li(feature) for feature in plan.features]),
                        _class="plan",
                    )
                    for plan in tool.pricing
                ],
                _class="plans",
            ),
        ]

    return render_page(
        seo_head(
            f"{tool.name} | {SITE_NAME}",
            description=generate_meta_description(tool.name, tool.description),
            image=tool.image_url or TOOL_PLACEHOLDER_IMAGE,
            page_type="product",
            schema=generate_tool_schema(tool, category),
            path=f"/ai/{slug}",
        )
        + [Script(json.dumps(breadcrumbs), type="application/ld+json")],
        Div(
            A("Home", href=url("/")),
            " › ",
            A(category.name, href=url(f"/category/{category_slug}")),
            " › ",
            Span(tool.name),
            _class="breadcrumbs",
        ),
        Div(
            Img(src=tool.favicon_url, alt="", width="32", height="32") if tool.favicon_url else None,
            H1(tool.name, _class="page-title"),
        ),
        A("Visit Website", href=tool.url, target="_blank", rel="noopener", _class="cta-button") if tool.url else None,
        *blocks,
        Section(H2("Similar Tools"), Div(*[tool_card(t) for t in similar], _class="grid")) if similar else None,
    )


@rt("/ai-agent/more")
async def agents_more(session, page: int = 2):
    async def make_fetcher():
        return store_fetcher(get_store(), "agents")

    return await more_of_listing(
        session, "agents", make_fetcher, agents_page_size(), page, agent_card, "/ai-agent/more", "Load More Agents"
    )


@rt("/ai-agent")
async def agents_page(session):
    controller, error = await open_listing(session, "agents", store_fetcher(get_store(), "agents"), agents_page_size())
    return render_page(
        seo_head(f"AI Agents | {SITE_NAME}", path="/ai-agent"),
        Div(A("Home", href=url("/")), " › ", Span("AI Agents"), _class="breadcrumbs"),
        H1("AI Agents", _class="page-title"),
        notice(error) if error else None,
        listing_section(controller, agent_card, "/ai-agent/more", "Load More Agents"),
    )


@rt("/ai-agent/{slug}")
async def agent_page(slug: str):
    try:
        agent = await asyncio.to_thread(find_agent, get_store(), slug)
    except NotFoundError:
        return not_found_page(
            "Agent Not Found",
            "The agent you're looking for doesn't exist or has been removed.",
            "/ai-agent",
            "Back to AI Agents",
        )
    except FetchError as e:
        logger.error(f"Failed to load agent {slug}: {e}")
        return unavailable_page("This agent could not be loaded. Please try again.")

    return render_page(
        seo_head(
            f"{agent.name} | {SITE_NAME}",
            description=generate_meta_description(agent.name, agent.description),
            image=agent.image_url or AGENT_PLACEHOLDER_IMAGE,
            page_type="product",
            schema=generate_agent_schema(agent),
            path=f"/ai-agent/{slug}",
        ),
        Div(
            A("Home", href=url("/")),
            " › ",
            A("AI Agents", href=url("/ai-agent")),
            " › ",
            Span(agent.name),
            _class="breadcrumbs",
        ),
        H1(agent.name, _class="page-title"),
        agent_badges(agent),
        P(agent.description),
        Section(H2("Capabilities"), Ul(*[Li(cap) for cap in agent.capabilities])) if agent.capabilities else None,
        Ul(
            Li(f"Pricing: {agent.pricing_type.capitalize()}"),
            Li(f"Status: {agent.status}"),
            Li(f"API endpoint: {agent.api_endpoint}") if agent.api_endpoint else None,
        ),
    )


@rt("/health")
def health():
    return JSONResponse({"status": "ok"})


# For direct script execution
if __name__ == "__main__":
    import uvicorn

    port = web_port()
    print(f"Starting server on port {port}")
    uvicorn.run("aitoonic.web:app", host="0.0.0.0", port=port, reload=True)
