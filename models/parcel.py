"""
models/parcel.py
----------------
Domain model for parcels (shipment records).
"""

from dataclasses import dataclass
from typing import Optional

# Known status values. The data layer stores any string; only
# PARCEL_STATUS_REGISTERED is checked by the guarded writes.
PARCEL_STATUS_REGISTERED = "registered"
PARCEL_STATUS_SENT = "sent"
PARCEL_STATUS_DELIVERED = "delivered"


@dataclass
class Parcel:
    """
    Represents a single tracked parcel.

    Attributes:
        client: External client identifier (owner of the parcel).
        status: Lifecycle state, e.g. 'registered', 'sent', 'delivered'.
        address: Delivery address; editable only while registered.
        created_at: RFC3339 timestamp string set at registration.
        number: Database primary key (None for new records).
    """
    client: int
    status: str
    address: str
    created_at: str
    number: Optional[int] = None

    def __str__(self) -> str:
        number = f"#{self.number}" if self.number is not None else "(unsaved)"
        return (
            f"Parcel {number} to {self.address} from client {self.client}, "
            f"registered {self.created_at}, status {self.status}"
        )
