"""
Pytest configuration and fixtures for CardSense tests.
"""

import sys
from datetime import date
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardsense.config import Settings
from cardsense.identification.catalog import CardRecord, EditionRecord


# =============================================================================
# Test Settings
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        catalog_base_url="https://api.scryfall.test",
        catalog_timeout_seconds=2.0,
        request_interval_ms=0,
        user_agent="CardSense-Test/1.0",
        cache_ttl_hours=24,
        ocr_confidence_threshold=60,
    )


# =============================================================================
# Recognized Text Fixtures
# =============================================================================

@pytest.fixture
def lightning_bolt_text() -> str:
    """Recognized text of a Magic 2010 Lightning Bolt."""
    return (
        "Lightning Bolt {R}\n"
        "Instant\n"
        "Lightning Bolt deals 3 damage to any target.\n"
        "Illus. Christopher Moeller\n"
        "146/249 [M10] Common\n"
        "TM & © 2009 Wizards of the Coast"
    )


@pytest.fixture
def creature_text() -> str:
    """Recognized text of a creature card with a token reference."""
    return (
        "Grizzly Bears {1}{G}\n"
        "Creature — Bear\n"
        "When this enters, create a 1/1 green Squirrel creature token.\n"
        "2/2\n"
        "Illus. Jeff A. Menges\n"
        "#12"
    )


# =============================================================================
# Catalog Data Fixtures
# =============================================================================

@pytest.fixture
def scryfall_card_data() -> dict:
    """Scryfall card object as returned by /cards/search."""
    return {
        "object": "card",
        "id": "e3285e6b-3e79-4d7c-bf96-d920f973b80d",
        "oracle_id": "4457ed35-7c10-48c8-9776-456485fdf070",
        "name": "Lightning Bolt",
        "mana_cost": "{R}",
        "type_line": "Instant",
        "oracle_text": "Lightning Bolt deals 3 damage to any target.",
        "set": "m10",
        "set_name": "Magic 2010",
        "collector_number": "146",
        "rarity": "common",
        "artist": "Christopher Moeller",
        "released_at": "2009-07-17",
        "border_color": "black",
        "frame": "2003",
        "foil": True,
        "nonfoil": True,
        "promo": False,
        "digital": False,
        "full_art": False,
        "textless": False,
        "oversized": False,
        "prices": {"usd": "2.15", "usd_foil": "24.99", "eur": "1.80", "eur_foil": None, "tix": "0.02"},
        "image_uris": {
            "small": "https://cards.scryfall.io/small/front/e/3/e3285e6b.jpg",
            "normal": "https://cards.scryfall.io/normal/front/e/3/e3285e6b.jpg",
        },
        "set_uri": "https://api.scryfall.com/sets/m10",
        "prints_search_uri": "https://api.scryfall.com/cards/search?order=released&q=oracleid%3A4457ed35&unique=prints",
        "scryfall_uri": "https://scryfall.com/card/m10/146/lightning-bolt",
        "tcgplayer_id": 33459,
    }


@pytest.fixture
def scryfall_print_data(scryfall_card_data) -> list[dict]:
    """Three printings of Lightning Bolt, oldest first."""
    alpha = dict(
        scryfall_card_data,
        id="lea-bolt",
        set="lea",
        set_name="Limited Edition Alpha",
        collector_number="161",
        released_at="1993-08-05",
        frame="1993",
        foil=False,
        prices={"usd": "450.00", "usd_foil": None, "eur": None, "eur_foil": None, "tix": None},
    )
    promo = dict(
        scryfall_card_data,
        id="promo-bolt",
        set="pf23",
        set_name="Promo Pack",
        collector_number="7",
        rarity="rare",
        released_at="2023-11-17",
        frame="2015",
        border_color="borderless",
        promo=True,
        full_art=True,
        nonfoil=False,
        prices={"usd": None, "usd_foil": "6.00", "eur": None, "eur_foil": None, "tix": None},
    )
    return [alpha, scryfall_card_data, promo]


@pytest.fixture
def card_record(scryfall_card_data) -> CardRecord:
    return CardRecord.from_scryfall(scryfall_card_data)


def make_edition(edition_id: str = "ed", **overrides) -> EditionRecord:
    """EditionRecord with neutral defaults."""
    values = dict(
        id=edition_id,
        name="Test Card",
        set_code="TST",
        set_name=f"Set {edition_id}",
        collector_number="1",
        released_at=date(2000, 1, 1),
        rarity="",
        border_color="black",
        frame="2003",
        prices={},
    )
    values.update(overrides)
    return EditionRecord(**values)


@pytest.fixture
def edition_factory():
    """Factory for EditionRecords."""
    return make_edition


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def sample_card_image() -> np.ndarray:
    """Synthetic BGR card image."""
    pixels = np.full((680, 488, 3), 200, dtype=np.uint8)
    pixels[30:80, 30:450] = (40, 40, 40)  # name bar
    return pixels


@pytest.fixture
def tesseract_output() -> dict:
    """pytesseract image_to_data output in DICT form."""
    return {
        "text": ["", "Lightning", "Bolt", "{R}", "Instant", "smudge"],
        "conf": [-1, 92, 88, 75, 90, 30],
        "block_num": [0, 1, 1, 1, 2, 2],
        "par_num": [0, 1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 1, 1, 1],
    }
