"""
Utilitaire de peuplement (démo / dev), hors chemin applicatif.

Usage:
    python -m reshoe.seed --seller <uuid> [--seller <uuid> ...] [--pending]

- Crée le singleton settings s'il manque (valeurs par défaut)
- Insère un petit catalogue de démonstration pour chaque vendeur donné (approuvé par défaut)
Les vendeurs doivent déjà exister dans Supabase Auth et dans la table users.
"""
import argparse
import logging
from typing import Dict, List

from reshoe.listings import repository as listings_repository
from reshoe.listings.models import ListingCreate, ListingStatus
from reshoe.platform_settings import service as settings_service
from reshoe.utils.validators import is_uuid

logger = logging.getLogger(__name__)

DEMO_LISTINGS: List[Dict] = [
    {
        "title": "Air Max 90 Infrared",
        "brand": "Nike",
        "size": 9,
        "condition": "like-new",
        "price": 7499,
        "description": "Portées deux fois, boîte d'origine incluse.",
        "images": ["https://images.unsplash.com/photo-1542291026-7eec264c27ff"],
        "category": "men",
    },
    {
        "title": "Stan Smith blanches",
        "brand": "Adidas",
        "size": 6.5,
        "condition": "good",
        "price": 3200,
        "description": "Légères marques sur la semelle, lacets neufs.",
        "images": ["https://images.unsplash.com/photo-1549298916-b41d501d3772"],
        "category": "women",
    },
    {
        "title": "Chuck Taylor 70 Hi",
        "brand": "Converse",
        "size": 4,
        "condition": "fair",
        "price": 1800,
        "description": "Toile un peu décolorée, aucune déchirure.",
        "images": ["https://images.unsplash.com/photo-1463100099107-aa0980c362e6"],
        "category": "kids",
    },
]


def seed(seller_ids: List[str], status: ListingStatus = ListingStatus.APPROVED) -> int:
    settings = settings_service.get_settings()
    logger.info("settings ready commission_rate=%s", settings.get("commission_rate"))
    created = 0
    for seller_id in seller_ids:
        for raw in DEMO_LISTINGS:
            data = ListingCreate(**raw).model_dump(mode="json")
            data.update({"seller_id": seller_id, "status": status.value, "rejection_reason": "", "views": 0})
            listings_repository.insert_listing(data)
            created += 1
    return created


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="python -m reshoe.seed", description="Peuple une base ReShoe de démo")
    parser.add_argument("--seller", action="append", default=[], help="id (uuid) d'un vendeur existant")
    parser.add_argument("--pending", action="store_true", help="crée les annonces en pending-approval")
    args = parser.parse_args(argv)

    invalid = [s for s in args.seller if not is_uuid(s)]
    if invalid:
        parser.error(f"ids vendeur invalides: {', '.join(invalid)}")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    status = ListingStatus.PENDING_APPROVAL if args.pending else ListingStatus.APPROVED
    count = seed(args.seller, status)
    logger.info("seed done listings=%s", count)


if __name__ == "__main__":
    main()
