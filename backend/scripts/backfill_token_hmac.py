"""
Complète la colonne token_hmac des liens famille créés avant son introduction.

Usage (depuis backend/) : python -m scripts.backfill_token_hmac
Doit être lancé avec le même SESSION_SECRET que celui ayant chiffré les jetons.
"""

import logging
import sys

from app.database import session_scope
from app.services.family_link_service import backfill_token_hmac

logger = logging.getLogger("backfill_token_hmac")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s : %(message)s")

    try:
        with session_scope() as db:
            updated, total = backfill_token_hmac(db)
    except Exception as exc:
        logger.error("Backfill interrompu : %s", exc)
        return 1

    logger.info("Terminé : %d/%d lien(s) mis à jour", updated, total)
    return 0


if __name__ == "__main__":
    sys.exit(main())
