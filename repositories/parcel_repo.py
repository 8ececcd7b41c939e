"""
repositories/parcel_repo.py
---------------------------
Data access layer for parcels.
All SQL queries related to the `parcel` table live here.

Address changes and deletions are guarded inside the statement itself
(``... AND status = 'registered'``), so the check and the write happen
atomically in the store. When the guard or the number matches no row the
write still succeeds; the boolean result tells the caller whether a row
was affected.
"""

from db.connection import DB_ERRORS, get_connection, release_connection
from models.parcel import PARCEL_STATUS_REGISTERED, Parcel
from repositories.errors import ParcelNotFoundError, StoreError
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "number, client, status, address, created_at"


class ParcelRepository:
    """Repository for CRUD operations on the parcel table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, parcel: Parcel) -> int:
        """
        Insert a new parcel. ``parcel.number`` is ignored.

        Args:
            parcel: The Parcel to persist.

        Returns:
            The number assigned by the store.

        Raises:
            StoreError: If the insert fails.
        """
        sql = """
            INSERT INTO parcel (client, status, address, created_at)
            VALUES (%s, %s, %s, %s)
            RETURNING number;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (parcel.client, parcel.status, parcel.address, parcel.created_at))
                number = cur.fetchone()[0]
            conn.commit()
            logger.info(f"Added parcel #{number} for client {parcel.client}")
            return number
        except DB_ERRORS as e:
            conn.rollback()
            logger.error(f"Failed to add parcel for client {parcel.client}: {e}")
            raise StoreError(f"failed to add parcel: {e}") from e
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get(self, number: int) -> Parcel:
        """
        Fetch a single parcel by number.

        Raises:
            ParcelNotFoundError: If no row has this number.
            StoreError: If the query fails or the row cannot be mapped.
        """
        sql = f"SELECT {_COLUMNS} FROM parcel WHERE number = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (number,))
                row = cur.fetchone()
        except DB_ERRORS as e:
            conn.rollback()
            logger.error(f"Failed to get parcel #{number}: {e}")
            raise StoreError(f"failed to get parcel {number}: {e}") from e
        finally:
            release_connection(conn)

        if row is None:
            raise ParcelNotFoundError(number)
        return self._row_to_parcel(row)

    def get_by_client(self, client: int) -> list[Parcel]:
        """
        Fetch every parcel of a client, in no particular order.

        Returns:
            A list of Parcel objects, empty when the client has none.

        Raises:
            StoreError: If the query fails or any row cannot be mapped.
        """
        sql = f"SELECT {_COLUMNS} FROM parcel WHERE client = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (client,))
                rows = cur.fetchall()
        except DB_ERRORS as e:
            conn.rollback()
            logger.error(f"Failed to get parcels of client {client}: {e}")
            raise StoreError(f"failed to get parcels of client {client}: {e}") from e
        finally:
            release_connection(conn)

        return [self._row_to_parcel(r) for r in rows]

    # ── UPDATE ────────────────────────────────────────────

    def set_status(self, number: int, status: str) -> bool:
        """
        Overwrite the status of a parcel, whatever its current status.

        Returns:
            True if a row was updated, False if the number does not exist.
        """
        sql = "UPDATE parcel SET status = %s WHERE number = %s;"
        return self._write(sql, (status, number), f"set status of parcel #{number} to {status!r}")

    def set_address(self, number: int, address: str) -> bool:
        """
        Change the address of a parcel that is still registered.

        Returns:
            True if the address was changed, False if the parcel does not
            exist or is no longer registered.
        """
        sql = "UPDATE parcel SET address = %s WHERE number = %s AND status = %s;"
        return self._write(
            sql,
            (address, number, PARCEL_STATUS_REGISTERED),
            f"set address of parcel #{number}",
        )

    # ── DELETE ────────────────────────────────────────────

    def delete(self, number: int) -> bool:
        """
        Delete a parcel that is still registered.

        Returns:
            True if a row was deleted, False if the parcel does not exist
            or is no longer registered.
        """
        sql = "DELETE FROM parcel WHERE number = %s AND status = %s;"
        return self._write(sql, (number, PARCEL_STATUS_REGISTERED), f"delete parcel #{number}")

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _write(sql: str, params: tuple, action: str) -> bool:
        """Run one UPDATE/DELETE, commit, and report whether any row was affected."""
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                affected = cur.rowcount > 0
            conn.commit()
            if affected:
                logger.info(f"Done: {action}")
            else:
                logger.info(f"No row matched: {action}")
            return affected
        except DB_ERRORS as e:
            conn.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"failed to {action}: {e}") from e
        finally:
            release_connection(conn)

    @staticmethod
    def _row_to_parcel(row: tuple) -> Parcel:
        """Convert a database row tuple to a Parcel domain object."""
        try:
            return Parcel(
                number=int(row[0]),
                client=int(row[1]),
                status=row[2],
                address=row[3],
                created_at=row[4],
            )
        except (IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed parcel row {row!r}: {e}")
            raise StoreError(f"malformed parcel row: {e}") from e
