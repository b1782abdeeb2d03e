"""Simple entrypoint to walk through a Casual styling session locally."""

import json
import sys

from wardrobe_app.app import OutfitEngineApp
from wardrobe_app.config import EngineConfig

DEMO_USER = "demo-user"
DEMO_WARDROBE = [
    {"url": "https://example.com/grey-tee", "type": "top", "brand": "Basics", "size": "M",
     "rgbValues": {"red": 150, "green": 150, "blue": 150}},
    {"url": "https://example.com/red-tee", "type": "top", "brand": "Loud", "size": "M",
     "rgbValues": {"red": 240, "green": 20, "blue": 20}},
    {"url": "https://example.com/white-shirt", "type": "top", "brand": "Basics", "size": "M",
     "rgbValues": {"red": 230, "green": 230, "blue": 230}},
    {"url": "https://example.com/chinos", "type": "bottom", "brand": "Basics", "size": "32",
     "rgbValues": {"red": 160, "green": 150, "blue": 140}},
    {"url": "https://example.com/black-jeans", "type": "bottom", "brand": "Denim Co", "size": "32",
     "rgbValues": {"red": 20, "green": 20, "blue": 25}},
    {"url": "https://example.com/blue-jeans", "type": "bottom", "brand": "Denim Co", "size": "32",
     "rgbValues": {"red": 40, "green": 60, "blue": 160}},
    {"url": "https://example.com/grey-trainers", "type": "shoes", "brand": "Runner", "size": "9",
     "rgbValues": {"red": 140, "green": 140, "blue": 145}},
    {"url": "https://example.com/black-boots", "type": "shoes", "brand": "Stomp", "size": "9",
     "rgbValues": {"red": 10, "green": 10, "blue": 10}},
    {"url": "https://example.com/yellow-sneakers", "type": "shoes", "brand": "Pop", "size": "9",
     "rgbValues": {"red": 250, "green": 230, "blue": 20}},
]


def main(style: str = "Casual") -> None:
    app = OutfitEngineApp(EngineConfig(database_path="data/demo.db"))
    app.import_items(DEMO_USER, DEMO_WARDROBE)
    response = app.start_session(DEMO_USER, style)
    print(json.dumps(response, indent=2))
    if response.get("status") == "ok":
        session = app.session(response["session_id"])
        print(json.dumps(session.next_outfit(), indent=2))


if __name__ == "__main__":
    main(*sys.argv[1:2])
