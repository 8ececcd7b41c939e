"""
services/parcel_service.py
--------------------------
Business logic for the parcel lifecycle.
Decides the order of status transitions; the repository stores any status.
"""

from datetime import datetime, timezone
from typing import Optional

from models.parcel import (
    PARCEL_STATUS_DELIVERED,
    PARCEL_STATUS_REGISTERED,
    PARCEL_STATUS_SENT,
    Parcel,
)
from repositories.parcel_repo import ParcelRepository
from utils.logger import get_logger

logger = get_logger(__name__)

# Delivered is terminal and has no entry.
NEXT_STATUS = {
    PARCEL_STATUS_REGISTERED: PARCEL_STATUS_SENT,
    PARCEL_STATUS_SENT: PARCEL_STATUS_DELIVERED,
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ParcelService:
    """
    Handles the parcel lifecycle on top of ParcelRepository.

    Workflow:
        1. register() creates a parcel in 'registered' status.
        2. change_address() / delete() work only while registered.
        3. next_status() moves registered -> sent -> delivered.
    """

    def __init__(self, repo: Optional[ParcelRepository] = None):
        self.repo = repo or ParcelRepository()

    def register(self, client: int, address: str) -> Parcel:
        """
        Register a new parcel for a client.

        Returns:
            The stored Parcel with its number populated.
        """
        parcel = Parcel(
            client=client,
            status=PARCEL_STATUS_REGISTERED,
            address=address,
            created_at=_utc_now(),
        )
        parcel.number = self.repo.add(parcel)
        logger.info(
            f"New parcel #{parcel.number} to {parcel.address} from client {client} "
            f"registered at {parcel.created_at}"
        )
        return parcel

    def client_parcels(self, client: int) -> list[Parcel]:
        """All parcels of a client."""
        return self.repo.get_by_client(client)

    def next_status(self, number: int) -> Optional[str]:
        """
        Advance a parcel to its next status.

        Returns:
            The new status, or None if the parcel is delivered (or carries a
            status outside the known lifecycle) and was left unchanged.

        Raises:
            ParcelNotFoundError: If the parcel does not exist.
        """
        parcel = self.repo.get(number)
        next_status = NEXT_STATUS.get(parcel.status)
        if next_status is None:
            logger.info(f"Parcel #{number} stays {parcel.status!r}: no next status")
            return None

        self.repo.set_status(number, next_status)
        logger.info(f"Parcel #{number}: {parcel.status} -> {next_status}")
        return next_status

    def change_address(self, number: int, address: str) -> bool:
        """Change the address; False when the parcel is missing or no longer registered."""
        return self.repo.set_address(number, address)

    def delete(self, number: int) -> bool:
        """Delete the parcel; False when it is missing or no longer registered."""
        return self.repo.delete(number)
