"""
Card Catalog Client

Looks up cards and their printings in the Scryfall catalog:
- Exact name search with a single unquoted fallback search on 404
- Paged retrieval of every printing of a card
- Cooperative request throttling (10 requests/second)

Transient failures are not retried here; they surface as typed errors.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Protocol

import httpx
from loguru import logger

from cardsense.config import Settings, get_settings
from cardsense.errors import CatalogNotFound, NetworkFailure, NoCandidatesFound, RateLimited


@dataclass(frozen=True)
class CardRecord:
    """
    Catalog entry as returned by a name search.

    Scryfall answers searches with one representative printing, so the
    print-level fields describe that printing.
    """

    id: str
    name: str
    oracle_id: Optional[str] = None
    type_line: Optional[str] = None
    mana_cost: Optional[str] = None
    power: Optional[str] = None
    toughness: Optional[str] = None
    oracle_text: Optional[str] = None

    # Representative printing
    set_code: Optional[str] = None
    set_name: Optional[str] = None
    collector_number: Optional[str] = None
    rarity: Optional[str] = None
    artist: Optional[str] = None

    # Where to find every printing
    prints_search_uri: Optional[str] = None
    scryfall_uri: Optional[str] = None

    @classmethod
    def from_scryfall(cls, data: dict) -> "CardRecord":
        """Build from a Scryfall card object."""
        face = (data.get("card_faces") or [{}])[0]
        return cls(
            id=data["id"],
            name=data["name"],
            oracle_id=data.get("oracle_id") or face.get("oracle_id"),
            type_line=data.get("type_line") or face.get("type_line"),
            mana_cost=data.get("mana_cost") or face.get("mana_cost"),
            power=data.get("power") or face.get("power"),
            toughness=data.get("toughness") or face.get("toughness"),
            oracle_text=data.get("oracle_text") or face.get("oracle_text"),
            set_code=data.get("set"),
            set_name=data.get("set_name"),
            collector_number=data.get("collector_number"),
            rarity=data.get("rarity"),
            artist=data.get("artist") or face.get("artist"),
            prints_search_uri=data.get("prints_search_uri"),
            scryfall_uri=data.get("scryfall_uri"),
        )


def _price(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _release_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class EditionRecord:
    """One printing of a card. Snapshot taken at lookup time."""

    id: str
    name: str
    set_code: str
    set_name: str = ""
    collector_number: str = ""
    released_at: Optional[date] = None
    rarity: str = ""
    border_color: str = ""
    frame: str = ""

    # Finishes and treatments
    foil: bool = False
    nonfoil: bool = True
    promo: bool = False
    digital: bool = False
    full_art: bool = False
    textless: bool = False
    oversized: bool = False

    # currency -> amount; None when the catalog has no observation
    prices: dict[str, Optional[float]] = field(default_factory=dict, hash=False)

    artist: Optional[str] = None
    image_url: Optional[str] = None
    small_image_url: Optional[str] = None
    set_icon_url: Optional[str] = None
    scryfall_uri: Optional[str] = None
    tcgplayer_id: Optional[int] = None

    @property
    def release_year(self) -> Optional[int]:
        return self.released_at.year if self.released_at else None

    @property
    def borderless(self) -> bool:
        return self.border_color == "borderless"

    @property
    def best_usd_price(self) -> Optional[float]:
        """Nonfoil USD price, falling back to foil."""
        usd = self.prices.get("usd")
        if usd is not None:
            return usd
        return self.prices.get("usd_foil")

    @classmethod
    def from_scryfall(cls, data: dict) -> "EditionRecord":
        """Build from a Scryfall card object."""
        images = data.get("image_uris") or (data.get("card_faces") or [{}])[0].get("image_uris") or {}
        prices = data.get("prices") or {}
        set_code = data.get("set", "")

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            set_code=set_code.upper(),
            set_name=data.get("set_name", ""),
            collector_number=data.get("collector_number", ""),
            released_at=_release_date(data.get("released_at")),
            rarity=data.get("rarity", ""),
            border_color=data.get("border_color", ""),
            frame=data.get("frame", ""),
            foil=bool(data.get("foil")),
            nonfoil=bool(data.get("nonfoil", True)),
            promo=bool(data.get("promo")),
            digital=bool(data.get("digital")),
            full_art=bool(data.get("full_art")),
            textless=bool(data.get("textless")),
            oversized=bool(data.get("oversized")),
            prices={
                "usd": _price(prices.get("usd")),
                "usd_foil": _price(prices.get("usd_foil")),
                "eur": _price(prices.get("eur")),
                "eur_foil": _price(prices.get("eur_foil")),
                "tix": _price(prices.get("tix")),
            },
            artist=data.get("artist"),
            image_url=images.get("normal"),
            small_image_url=images.get("small"),
            set_icon_url=f"https://svgs.scryfall.io/sets/{set_code}.svg" if data.get("set_uri") else None,
            scryfall_uri=data.get("scryfall_uri"),
            tcgplayer_id=data.get("tcgplayer_id"),
        )


class CatalogClient(Protocol):
    """What the identification service needs from a catalog."""

    async def search(self, name: str) -> list[CardRecord]: ...

    async def prints(self, card: CardRecord) -> list[EditionRecord]: ...


class RequestThrottle:
    """
    Enforces a minimum interval between outbound requests.

    Requests are expected one at a time; the lock only keeps overlapping
    callers from sharing a slot.
    """

    def __init__(self, interval_seconds: float):
        self.interval = interval_seconds
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.interval:
                    await asyncio.sleep(self.interval - elapsed)
            self._last_request = time.monotonic()


class ScryfallClient:
    """
    Client for the Scryfall API.

    Rate limit: 10 requests/second, enforced with RequestThrottle.

    Usage:
        async with ScryfallClient() as client:
            cards = await client.search("Lightning Bolt")
            editions = await client.prints(cards[0])
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        request_interval_ms: Optional[int] = None,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Catalog root URL
            timeout: Per-request timeout in seconds
            request_interval_ms: Minimum gap between requests
            user_agent: User-Agent header sent with every request
            client: Pre-built httpx client (tests, connection sharing)
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.catalog_timeout_seconds
        interval_ms = (
            request_interval_ms if request_interval_ms is not None else settings.request_interval_ms
        )
        self.throttle = RequestThrottle(interval_ms / 1000.0)
        self.headers = {
            "Accept": "application/json;q=0.9,*/*;q=0.8",
            "User-Agent": user_agent or settings.user_agent,
        }
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=self.headers)
        return self._client

    async def _request(self, url: str, params: Optional[dict] = None) -> dict:
        """
        Throttled GET returning decoded JSON.

        Raises:
            CatalogNotFound: 404
            RateLimited: 429
            NetworkFailure: Transport errors and any other non-2xx status
        """
        await self.throttle.wait()
        client = await self._get_client()
        if not url.startswith("http"):
            url = f"{self.base_url}{url}"

        logger.debug(f"Catalog request: {url} {params or ''}")
        try:
            response = await client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as e:
            logger.error(f"Catalog transport error for {url}: {e}")
            raise NetworkFailure(str(e)) from e

        if response.status_code == 404:
            raise CatalogNotFound(url)
        if response.status_code == 429:
            logger.error("Catalog rate limit exceeded")
            raise RateLimited(response.text[:200])
        if response.status_code >= 500:
            logger.error(f"Catalog server error {response.status_code}")
            raise NetworkFailure(
                f"Catalog server error {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code != 200:
            logger.error(f"Catalog API error {response.status_code}: {response.text[:200]}")
            raise NetworkFailure(
                f"API error {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Catalog returned invalid JSON for {url}")
            raise NetworkFailure(
                f"Invalid JSON from catalog: {e}",
                status_code=response.status_code,
            ) from e

    async def named(self, name: str, fuzzy: bool = False) -> CardRecord:
        """
        Single-card lookup by name.

        Args:
            name: Card name
            fuzzy: Use the catalog's fuzzy matching instead of exact

        Returns:
            Matching CardRecord
        """
        mode = "fuzzy" if fuzzy else "exact"
        data = await self._request("/cards/named", params={mode: name})
        return CardRecord.from_scryfall(data)

    async def search(self, name: str) -> list[CardRecord]:
        """
        Find catalog entries for a card name.

        Tries an exact-name search first. A 404 or an empty result triggers
        exactly one unquoted search, which can list several candidates for
        the ranker, before giving up.

        Args:
            name: Card name guess

        Returns:
            Candidate CardRecords in catalog order

        Raises:
            NoCandidatesFound: Nothing matched, including the fuzzy fallback
        """
        cards = await self._search_cards(f'!"{name}"')
        if cards:
            logger.info(f"Found {len(cards)} exact matches for '{name}'")
            return cards

        logger.warning(f"No exact match for '{name}', trying fuzzy search")
        cards = await self._search_cards(name)
        if not cards:
            raise NoCandidatesFound(name)

        logger.info(f"Fuzzy search found {len(cards)} candidates for '{name}'")
        return cards

    async def _search_cards(self, query: str) -> list[CardRecord]:
        """One page of a card search; 404 means no results."""
        try:
            data = await self._request(
                "/cards/search",
                params={"q": query, "unique": "cards", "order": "name"},
            )
        except CatalogNotFound:
            return []
        return [CardRecord.from_scryfall(item) for item in data.get("data", [])]

    async def prints(self, card: CardRecord) -> list[EditionRecord]:
        """
        Every printing of a card, oldest first.

        Follows pagination until the catalog reports no more pages. A 404
        means the catalog has no printings and yields an empty list.
        """
        if card.oracle_id:
            url = "/cards/search"
            params: Optional[dict] = {
                "q": f"oracleid:{card.oracle_id}",
                "order": "released",
                "dir": "asc",
                "unique": "prints",
            }
        elif card.prints_search_uri:
            url, params = card.prints_search_uri, None
        else:
            url = "/cards/search"
            params = {"q": f'!"{card.name}"', "order": "released", "dir": "asc", "unique": "prints"}

        editions: list[EditionRecord] = []
        next_url: Optional[str] = url
        while next_url:
            try:
                page = await self._request(next_url, params=params)
            except CatalogNotFound:
                logger.warning(f"No printings listed for '{card.name}'")
                break

            editions.extend(EditionRecord.from_scryfall(item) for item in page.get("data", []))
            next_url = page.get("next_page") if page.get("has_more") else None
            # next_page already carries the query string
            params = None

        logger.info(f"Found {len(editions)} printings of '{card.name}'")
        return editions

    async def close(self):
        """Close HTTP client."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
