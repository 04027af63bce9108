"""
Identify cards from sample recognized text.

Runs the IdentificationService against the live Scryfall catalog using
typical OCR output, including degraded text.

Usage:
    python scripts/identify_card.py
    python scripts/identify_card.py "Lightning Bolt {R}" "Serra Angel {3}{W}{W}"
"""

import asyncio
import sys

from dotenv import load_dotenv

# Load env vars
load_dotenv()

from cardsense.errors import CardSenseException
from cardsense.identification.service import IdentificationService
from cardsense.logging_config import configure_logging
from cardsense.ocr.recognition import RawRecognition

SAMPLE_TEXTS = [
    "Lightning Bolt {R}\nInstant\n146/249 [M10] Common\n© 2009 Wizards",  # Clean
    "Lightn1ng B0lt {R}\nlnstant",  # Digit/letter confusions
    "Serra Angle {3}{W}{W}\nCreature — Angel\n4/4",  # Typo, fuzzy fallback
    "Llanowar Elves {G}\n2/1\nIllus. Anson Maddocks",  # Wrong P/T in text
]


async def main(texts: list[str]):
    configure_logging()
    print("Initializing Identification Service...")
    service = IdentificationService()

    print("\n--- Running Identification ---\n")

    try:
        for text in texts:
            print(f"Text: {text!r}")
            try:
                result = await service.identify(RawRecognition.from_text(text, confidence=80))
                match = result.match_result
                print(f"✅ Found: {match.candidate.name} ({match.quality_label}, {match.match_quality:.2f})")
                print(f"   {len(result.editions)} printings, {result.disambiguation.suggestion}")
                for ranked in result.editions[:3]:
                    tags = ", ".join(ranked.display_tags)
                    print(f"   - {ranked.edition.set_name}: {ranked.display_price} {tags}")
            except CardSenseException as e:
                print(f"❌ {e.code}: {e.detail or e.message}")
            print("-" * 30)
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or SAMPLE_TEXTS))
