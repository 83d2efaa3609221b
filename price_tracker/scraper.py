"""Per-retailer price extraction from product page HTML.

Each retailer gets a `PriceExtractor` describing where its page keeps the
price, title and main image.  `get_extractor(url)` picks one by host name.
Extraction never tries to repair a page: a missing or non-numeric price
element raises ExtractionError.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .errors import ExtractionError

logger = logging.getLogger(__name__)


@dataclass
class ProductInfo:
    url: str
    title: str
    price: float
    image_url: str


_NUMBER_RE = re.compile(r"\d+(\.\d*)?")


def parse_price(text: Optional[str], strip: str = "") -> float:
    """Parse a displayed price such as ``"1,299."`` into a float.

    Thousands separators, whitespace and any characters in `strip`
    (currency symbols) are removed; whatever remains must be a plain
    non-negative number.
    """
    if text is None:
        raise ExtractionError("price text is missing")
    t = str(text).replace(",", "")
    for ch in strip:
        t = t.replace(ch, "")
    t = "".join(t.split())
    if not t:
        raise ExtractionError("price text is empty")
    if not _NUMBER_RE.fullmatch(t):
        raise ExtractionError(f"price text is not numeric: {text!r}")
    return float(t)


class PriceExtractor:
    """CSS-selector based extractor for one retailer's product pages."""

    name = "generic"
    price_selector = ""
    title_selector = ""
    image_selector = ""
    currency_symbols = ""

    def _soup(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "html.parser")

    def _price_from_soup(self, soup: BeautifulSoup) -> float:
        el = soup.select_one(self.price_selector)
        if el is None:
            raise ExtractionError(
                f"{self.name}: price element {self.price_selector!r} not found"
            )
        return parse_price(el.get_text(strip=True), strip=self.currency_symbols)

    def extract_price(self, html: str) -> float:
        return self._price_from_soup(self._soup(html))

    def extract_product(self, html: str, url: str) -> ProductInfo:
        """Price is required; title and image are best effort."""
        soup = self._soup(html)
        price = self._price_from_soup(soup)

        title = ""
        if self.title_selector:
            title_el = soup.select_one(self.title_selector)
            if title_el is not None:
                title = title_el.get_text(strip=True)

        image_url = ""
        if self.image_selector:
            img_el = soup.select_one(self.image_selector)
            src = img_el.get("src") if img_el is not None else None
            if src:
                image_url = urljoin(url, src)

        return ProductInfo(url=url, title=title, price=price, image_url=image_url)


class AmazonExtractor(PriceExtractor):
    name = "amazon"
    price_selector = "span.a-price-whole"
    title_selector = "div#centerCol span#productTitle"
    image_selector = "div.imgTagWrapper img"


class FlipkartExtractor(PriceExtractor):
    name = "flipkart"
    price_selector = "div._30jeq3._16Jk6d"
    title_selector = "span.B_NuCI"
    image_selector = "div._396cs4._2amPTt img"
    currency_symbols = "₹"


_DEFAULT_EXTRACTOR: PriceExtractor = AmazonExtractor()

# Keyed by the registrable part of the host, e.g. "amazon" matches amazon.in.
_REGISTRY: Dict[str, PriceExtractor] = {
    "amazon": _DEFAULT_EXTRACTOR,
    "flipkart": FlipkartExtractor(),
}


def register_extractor(domain: str, extractor: PriceExtractor) -> None:
    _REGISTRY[domain.lower()] = extractor


def get_extractor(url: str) -> PriceExtractor:
    """Return the extractor for `url`'s retailer (Amazon when unknown)."""
    host = (urlparse(url).hostname or "").lower()
    labels = host.split(".")
    for domain, extractor in _REGISTRY.items():
        if domain in labels or host == domain or host.endswith("." + domain):
            return extractor
    logger.debug("No extractor registered for host %r; using %s", host, _DEFAULT_EXTRACTOR.name)
    return _DEFAULT_EXTRACTOR


__all__ = [
    "ProductInfo",
    "PriceExtractor",
    "AmazonExtractor",
    "FlipkartExtractor",
    "parse_price",
    "register_extractor",
    "get_extractor",
]
