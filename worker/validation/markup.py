"""Independent re-derivation of page facts from raw markup.

The crawler and content analyzer are external; these facts are computed
here with BeautifulSoup so the reconciler has a second opinion to compare
against.
"""

import json
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

# Tags whose text is never visible page content
_NON_CONTENT_TAGS = ("script", "style", "noscript", "template", "svg")


@dataclass
class MarkupFacts:
    """Facts re-derived from the raw HTML."""

    title: str | None = None
    has_meta_description: bool = False
    has_canonical: bool = False
    robots_meta: str | None = None
    word_count: int = 0
    h1_count: int = 0
    h2_count: int = 0
    json_ld_valid: int = 0
    json_ld_invalid: int = 0
    html_lower: str = ""
    webmaster_tags: dict[str, bool] = field(default_factory=dict)

    @property
    def json_ld_total(self) -> int:
        return self.json_ld_valid + self.json_ld_invalid

    @property
    def has_noindex(self) -> bool:
        return "noindex" in (self.robots_meta or "")

    def contains(self, pattern: str) -> bool:
        return pattern.lower() in self.html_lower


def _is_valid_json_ld(raw: str) -> bool:
    try:
        parsed = json.loads(raw)
    except ValueError:
        return False
    items = parsed if isinstance(parsed, list) else [parsed]
    return bool(items) and all(
        isinstance(item, dict) and ("@type" in item or "@graph" in item) for item in items
    )


def derive_markup_facts(html: str) -> MarkupFacts:
    """
    Re-derive checkable facts from raw HTML.

    Args:
        html: Raw page markup

    Returns:
        MarkupFacts for comparison against the crawler's output
    """
    soup = BeautifulSoup(html, "html.parser")
    facts = MarkupFacts(html_lower=html.lower())

    if soup.title is not None:
        facts.title = soup.title.get_text(strip=True) or None

    for meta in soup.find_all("meta"):
        name = (meta.get("name") or "").lower()
        if name == "description" and meta.get("content"):
            facts.has_meta_description = True
        elif name == "robots":
            facts.robots_meta = (meta.get("content") or "").lower()
        elif name == "google-site-verification":
            facts.webmaster_tags["google"] = True
        elif name == "msvalidate.01":
            facts.webmaster_tags["bing"] = True
        elif name == "yandex-verification":
            facts.webmaster_tags["yandex"] = True

    for link in soup.find_all("link"):
        rel = link.get("rel") or []
        if "canonical" in [r.lower() for r in rel] and link.get("href"):
            facts.has_canonical = True
            break

    facts.h1_count = len(soup.find_all("h1"))
    facts.h2_count = len(soup.find_all("h2"))

    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        if _is_valid_json_ld(script.string or script.get_text()):
            facts.json_ld_valid += 1
        else:
            facts.json_ld_invalid += 1

    body = soup.body or soup
    for tag in body.find_all(_NON_CONTENT_TAGS):
        tag.decompose()
    facts.word_count = len(body.get_text(separator=" ").split())

    return facts
