"""Collaborator interfaces consumed by the aggregation core."""

from typing import Protocol

from .types import AccountInfo, ChainSnapshot


class ChainSnapshotSource(Protocol):
    async def get_snapshot(self) -> ChainSnapshot | None: ...


class IdentityLookup(Protocol):
    """Resolves account ids to identity / nickname / index info."""

    @property
    def has_identity(self) -> bool: ...

    async def get_account_info(self, account_id: str) -> AccountInfo | None: ...


class AddressBook(Protocol):
    async def get_name(self, account_id: str) -> str | None: ...


class FavoritesStore(Protocol):
    async def get(self, key: str) -> list[str]: ...

    async def toggle(self, key: str, account_id: str) -> list[str]: ...


class ReplicaLookup(Protocol):
    def is_ready(self) -> bool: ...

    async def find_replicas(self, file_cid: str) -> int: ...


class Notifier(Protocol):
    def queue_action(self, message: str, status: str = "error") -> None: ...
