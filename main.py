"""
main.py
-------
Entry point for the parcel tracker.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Walk a demo client's parcels through their lifecycle.
"""

from config import DEMO_CLIENT_ID
from db.connection import close_pool, init_pool
from db.init_db import create_tables
from services.parcel_service import ParcelService
from utils.logger import get_logger

logger = get_logger(__name__)


def main() -> None:
    """Register, edit, advance and delete parcels, then list what is left."""
    init_pool()
    try:
        create_tables()
        service = ParcelService()

        parcel = service.register(DEMO_CLIENT_ID, "Pskov, Voennaya street, 53")
        service.change_address(parcel.number, "Saratov, Verkhnyaya street, 15")
        service.next_status(parcel.number)
        print(service.repo.get(parcel.number))

        # Still registered, so this one can go.
        spare = service.register(DEMO_CLIENT_ID, "Pskov, Voennaya street, 53")
        if service.delete(spare.number):
            logger.info(f"Removed parcel #{spare.number}")

        for p in service.client_parcels(DEMO_CLIENT_ID):
            print(p)
    finally:
        close_pool()


if __name__ == "__main__":
    main()
