"""Ephemeral OTP record storage."""

import asyncio
import dataclasses
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from loguru import logger

from .models import OTPRecord


class OTPStore(ABC):
    """
    Time-bounded OTP record set.

    An external TTL-capable store can replace the in-memory one behind this
    interface without touching the OTP service.
    """

    @abstractmethod
    async def put(self, record: OTPRecord) -> None:
        """Insert or overwrite the record under ``record.identifier``."""

    @abstractmethod
    async def get(self, identifier: str) -> Optional[OTPRecord]:
        """Return a copy of the record, or None."""

    @abstractmethod
    async def find_active_by_phone(self, phone_number: str) -> Optional[str]:
        """Identifier of the most recently issued unconsumed record for a phone number."""

    @abstractmethod
    async def mark_consumed(self, identifier: str) -> bool:
        """
        Atomically flip ``consumed`` to True.

        Returns:
            False when the record is missing or was already consumed
        """

    @abstractmethod
    async def delete(self, identifier: str) -> bool:
        """Remove a record; True if it existed."""

    @abstractmethod
    async def sweep_expired(self, now: datetime) -> int:
        """Remove every record with ``expires_at < now`` and return how many were removed."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all records."""

    @abstractmethod
    async def size(self) -> int:
        """Number of stored records."""


class InMemoryOTPStore(OTPStore):
    """
    Dict-backed store serialized by a single asyncio lock.

    Never persisted: a restart loses outstanding codes, which users simply
    re-request. Phone lookup is a linear scan, acceptable at OTP volumes.
    """

    def __init__(self) -> None:
        self._records: Dict[str, OTPRecord] = {}
        self._lock = asyncio.Lock()
        self._sequence = 0

    async def put(self, record: OTPRecord) -> None:
        async with self._lock:
            self._sequence += 1
            stored = dataclasses.replace(record, sequence=self._sequence)
            self._records[record.identifier] = stored
            record.sequence = stored.sequence

    async def get(self, identifier: str) -> Optional[OTPRecord]:
        async with self._lock:
            record = self._records.get(identifier)
            return dataclasses.replace(record) if record else None

    async def find_active_by_phone(self, phone_number: str) -> Optional[str]:
        async with self._lock:
            candidates = [
                r
                for r in self._records.values()
                if r.phone_number == phone_number and not r.consumed
            ]
            if not candidates:
                return None
            latest = max(candidates, key=lambda r: (r.issued_at, r.sequence))
            return latest.identifier

    async def mark_consumed(self, identifier: str) -> bool:
        async with self._lock:
            record = self._records.get(identifier)
            if record is None or record.consumed:
                return False
            record.consumed = True
            return True

    async def delete(self, identifier: str) -> bool:
        async with self._lock:
            return self._records.pop(identifier, None) is not None

    async def sweep_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [key for key, r in self._records.items() if r.expires_at < now]
            for key in expired:
                del self._records[key]

        if expired:
            logger.debug(f"Swept {len(expired)} expired OTP records")
        return len(expired)

    async def clear(self) -> None:
        async with self._lock:
            self._records.clear()

    async def size(self) -> int:
        async with self._lock:
            return len(self._records)
