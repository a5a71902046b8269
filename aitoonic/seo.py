"""SEO helpers: slugs, meta tags and JSON-LD structured data."""

import json
import re
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from fasthtml.common import Link
from fasthtml.common import Meta
from fasthtml.common import Script
from fasthtml.common import Title

from aitoonic.config import DEFAULT_DESCRIPTION
from aitoonic.config import DEFAULT_IMAGE
from aitoonic.config import SITE_NAME
from aitoonic.config import site_url

PREFETCH_HOSTS = ("fonts.googleapis.com", "images.unsplash.com", "i.imgur.com")


def name_slug(name: str) -> str:
    """URL slug used for every catalog link: lower-case, whitespace runs become hyphens."""
    return re.sub(r"\s+", "-", (name or "").lower())


def slug_to_name(slug: str) -> str:
    """Inverse of name_slug for case-insensitive name lookups."""
    return (slug or "").replace("-", " ")


def generate_meta_description(name: str, description: str, max_length: int = 160) -> str:
    """Generate SEO-optimized meta description."""
    if not description:
        return f"Complete guide to {name}. Features, pricing, and how to get started."

    clean_desc = description.strip()
    if len(clean_desc) <= max_length:
        return clean_desc

    # Truncate at sentence boundary
    sentences = clean_desc.split(". ")
    result = sentences[0]

    if len(result) > max_length - 3:
        return result[: max_length - 3] + "..."

    for sentence in sentences[1:]:
        if len(result + ". " + sentence) <= max_length - 3:
            result += ". " + sentence
        else:
            break

    if not result.endswith("."):
        result += "..."

    return result


def generate_breadcrumb_list(path_segments: List[Dict[str, str]], base_url: str) -> Dict:
    """
    Generate JSON-LD breadcrumb structured data.

    Args:
        path_segments: List of {"name": "Display Name", "url": "relative/path"}
        base_url: Base URL for the site
    """
    items = []

    for i, segment in enumerate(path_segments, 1):
        items.append(
            {
                "@type": "ListItem",
                "position": i,
                "name": segment["name"],
                "item": f"{base_url.rstrip('/')}/{segment['url'].lstrip('/')}",
            }
        )

    return {"@context": "https://schema.org", "@type": "BreadcrumbList", "itemListElement": items}


def _price_value(price: str) -> Optional[str]:
    """Pull a numeric price out of strings like "$20/month" or "Free"."""
    if not price:
        return None
    if price.strip().lower() == "free":
        return "0"
    match = re.search(r"\d+(?:\.\d+)?", price.replace(",", ""))
    return match.group(0) if match else None


def generate_tool_schema(tool, category=None, base_url: Optional[str] = None) -> Dict:
    """SoftwareApplication JSON-LD for a tool page."""
    base_url = base_url or site_url()
    tool_url = f"{base_url}/ai/{name_slug(tool.name)}"

    schema = {
        "@context": "https://schema.org",
        "@type": "SoftwareApplication",
        "name": tool.name,
        "description": tool.description,
        "url": tool_url,
        "applicationCategory": category.name if category else "Software",
        "operatingSystem": "Web Browser",
    }
    if tool.image_url:
        schema["image"] = tool.image_url

    offers = []
    for plan in tool.pricing:
        offer = {"@type": "Offer", "name": plan.plan, "url": tool_url, "priceCurrency": "USD"}
        value = _price_value(plan.price)
        if value is not None:
            offer["price"] = value
        offers.append(offer)
    if offers:
        schema["offers"] = offers

    if tool.features:
        schema["featureList"] = [feature.title for feature in tool.features]

    return schema


def generate_agent_schema(agent, base_url: Optional[str] = None) -> Dict:
    base_url = base_url or site_url()
    schema = {
        "@context": "https://schema.org",
        "@type": "SoftwareApplication",
        "name": agent.name,
        "description": agent.description,
        "url": f"{base_url}/ai-agent/{name_slug(agent.name)}",
        "applicationCategory": "AI Agent",
        "operatingSystem": "Web Browser",
        "offers": {
            "@type": "Offer",
            "priceCurrency": "USD",
            "description": agent.pricing_type,
        },
    }
    if agent.pricing_type == "free":
        schema["offers"]["price"] = "0"
    if agent.capabilities:
        schema["featureList"] = list(agent.capabilities)
    return schema


def generate_category_schema(category, tools: Sequence, base_url: Optional[str] = None) -> Dict:
    """CollectionPage JSON-LD listing the tools shown on a category page."""
    base_url = base_url or site_url()
    return {
        "@context": "https://schema.org",
        "@type": "CollectionPage",
        "name": f"{category.name} AI Tools",
        "description": category.description,
        "url": f"{base_url}/category/{name_slug(category.name)}",
        "mainEntity": {
            "@type": "ItemList",
            "numberOfItems": len(tools),
            "itemListElement": [
                {
                    "@type": "ListItem",
                    "position": i,
                    "name": tool.name,
                    "url": f"{base_url}/ai/{name_slug(tool.name)}",
                }
                for i, tool in enumerate(tools, 1)
            ],
        },
    }


def website_schema() -> Dict:
    return {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "name": SITE_NAME,
        "url": site_url(),
        "description": DEFAULT_DESCRIPTION,
    }


def seo_head(
    title: str,
    description: str = DEFAULT_DESCRIPTION,
    image: str = DEFAULT_IMAGE,
    page_type: str = "website",
    schema: Optional[Dict] = None,
    noindex: bool = False,
    canonical: Optional[str] = None,
    alternate_languages: Iterable[Tuple[str, str]] = (),
    path: str = "/",
) -> list:
    """Head elements for a page: meta, Open Graph, Twitter, canonical and JSON-LD."""
    current_url = f"{site_url()}{path}"
    canonical_url = canonical or current_url
    full_schema = [website_schema(), schema] if schema else [website_schema()]

    head = [
        Title(title),
        Meta(name="description", content=description),
        Meta(name="viewport", content="width=device-width, initial-scale=1.0"),
    ]
    if noindex:
        head.append(Meta(name="robots", content="noindex, nofollow"))

    head += [
        Meta(property="og:title", content=title),
        Meta(property="og:description", content=description),
        Meta(property="og:image", content=image),
        Meta(property="og:url", content=current_url),
        Meta(property="og:type", content=page_type),
        Meta(name="twitter:card", content="summary_large_image"),
        Meta(name="twitter:title", content=title),
        Meta(name="twitter:description", content=description),
        Meta(name="twitter:image", content=image),
        Link(rel="canonical", href=canonical_url),
    ]

    for lang, lang_url in alternate_languages:
        head.append(Link(rel="alternate", hreflang=lang, href=lang_url))
    head.append(Link(rel="alternate", hreflang="x-default", href=canonical_url))

    for host in PREFETCH_HOSTS:
        head.append(Link(rel="dns-prefetch", href=f"//{host}"))
    for host in PREFETCH_HOSTS:
        head.append(Link(rel="preconnect", href=f"https://{host}", crossorigin="anonymous"))

    head.append(Script(json.dumps(full_schema), type="application/ld+json"))
    return head
