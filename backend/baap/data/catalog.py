"""Default destination catalog and price tables for the catalog itinerary generator.

Prices are IDR. Destination costs are per person; nightly rates are per room.
"""

from baap.services.guarantee.models import Destination

NIGHTLY_RATES: dict[str, float] = {
    "budget": 250_000,
    "moderate": 650_000,
    "luxury": 1_800_000,
}

# accommodation tier -> (local transport mode, daily cost, priced per traveler)
LOCAL_TRANSPORT: dict[str, tuple[str, float, bool]] = {
    "budget": ("public_transport", 40_000, True),
    "moderate": ("taxi", 200_000, False),
    "luxury": ("private_car", 750_000, False),
}

TRAVELERS_PER_ROOM = 2
DAY_START_MINUTES = 8 * 60
VISIT_BUFFER_MINUTES = 30


def _dest(id, name, category, city, lat, lng, duration, cost, rating, tags) -> Destination:
    return Destination(
        id=id,
        name=name,
        category=category,
        location=f"{name}, {city}",
        city=city,
        coordinates=(lat, lng),
        duration=duration,
        estimated_cost=cost,
        rating=rating,
        tags=list(tags),
    )


DEFAULT_CATALOG: list[Destination] = [
    # Jakarta
    _dest("jkt-monas", "Monas", "landmark", "Jakarta", -6.1754, 106.8272, 90, 20_000, 4.5, ["history", "culture", "landmark"]),
    _dest("jkt-kota-tua", "Kota Tua", "heritage", "Jakarta", -6.1352, 106.8133, 120, 10_000, 4.4, ["history", "culture", "photography"]),
    _dest("jkt-museum-nasional", "Museum Nasional", "museum", "Jakarta", -6.1763, 106.8222, 120, 15_000, 4.6, ["history", "culture", "museum"]),
    _dest("jkt-ancol", "Ancol Dreamland", "park", "Jakarta", -6.1225, 106.8331, 240, 250_000, 4.3, ["family", "water", "entertainment"]),
    _dest("jkt-sabang", "Jalan Sabang", "culinary", "Jakarta", -6.1850, 106.8267, 90, 75_000, 4.3, ["culinary", "street_food", "nightlife"]),
    # Bandung
    _dest("bdg-kawah-putih", "Kawah Putih", "nature", "Bandung", -7.1662, 107.4021, 180, 75_000, 4.6, ["nature", "hiking", "photography"]),
    _dest("bdg-tangkuban", "Tangkuban Perahu", "nature", "Bandung", -6.7596, 107.6098, 180, 30_000, 4.5, ["nature", "adventure", "hiking"]),
    _dest("bdg-braga", "Jalan Braga", "heritage", "Bandung", -6.9175, 107.6094, 90, 50_000, 4.4, ["history", "culinary", "shopping"]),
    _dest("bdg-saung-udjo", "Saung Angklung Udjo", "performance", "Bandung", -6.8977, 107.6551, 120, 120_000, 4.7, ["culture", "music", "family"]),
    # Yogyakarta
    _dest("yog-borobudur", "Borobudur", "temple", "Yogyakarta", -7.6079, 110.2038, 180, 375_000, 4.8, ["history", "culture", "temple"]),
    _dest("yog-prambanan", "Prambanan", "temple", "Yogyakarta", -7.7520, 110.4915, 150, 350_000, 4.7, ["history", "culture", "temple"]),
    _dest("yog-kraton", "Kraton Yogyakarta", "heritage", "Yogyakarta", -7.8053, 110.3642, 90, 15_000, 4.5, ["history", "culture"]),
    _dest("yog-malioboro", "Malioboro", "shopping", "Yogyakarta", -7.7926, 110.3658, 120, 60_000, 4.4, ["shopping", "street_food", "culinary"]),
    _dest("yog-merapi", "Merapi Lava Tour", "adventure", "Yogyakarta", -7.5407, 110.4457, 180, 400_000, 4.6, ["adventure", "nature", "extreme"]),
    # Bali
    _dest("bali-uluwatu", "Uluwatu Temple", "temple", "Bali", -8.8291, 115.0849, 120, 50_000, 4.7, ["culture", "temple", "sunset"]),
    _dest("bali-tegallalang", "Tegallalang Rice Terrace", "nature", "Bali", -8.4312, 115.2793, 120, 25_000, 4.5, ["nature", "photography", "hiking"]),
    _dest("bali-ubud-monkey", "Ubud Monkey Forest", "nature", "Bali", -8.5188, 115.2585, 90, 80_000, 4.5, ["nature", "family"]),
    _dest("bali-rafting", "Ayung River Rafting", "adventure", "Bali", -8.4856, 115.2395, 180, 450_000, 4.6, ["adventure", "water"]),
    _dest("bali-jimbaran", "Jimbaran Seafood", "culinary", "Bali", -8.7750, 115.1611, 120, 250_000, 4.4, ["culinary", "sunset", "beach"]),
]
