"""Staking overview: turns chain snapshots into validator table rows."""

import logging
from typing import Callable, Iterable

from ..core.config import get_settings
from ..core.interfaces import AddressBook, ChainSnapshotSource, FavoritesStore, IdentityLookup
from ..core.reactive import Derived, Source, assign
from ..core.types import (
    AccountInfo,
    ChainSnapshot,
    ElectionPartition,
    ExposureRecord,
    FilteredAccount,
    NominatorIndex,
    StakeSummary,
    ValidatorPrefs,
    ValidatorRow,
)
from ..data.snapshots import SnapshotIdentityLookup
from .election import partition_accounts
from .exposure import StakeSummaryCell, expand_exposure
from .nominators import extract_nominators, is_nominating
from .visibility import check_visibility

logger = logging.getLogger(__name__)


class AccountInputs:
    """Independently resolving per-account query results."""

    def __init__(self, account_id: str):
        self.exposure: Source[ExposureRecord] = Source(name=f"exposure:{account_id}")
        self.prefs: Source[ValidatorPrefs] = Source(name=f"prefs:{account_id}")
        self.stake_limit: Source[int] = Source(name=f"limit:{account_id}")
        self.controller: Source[str] = Source(name=f"controller:{account_id}")


class StakingOverview:
    """Orchestrates snapshot, favorites, identity and filter inputs.

    Each derived structure is recomputed wholesale whenever one of its
    inputs changes:

    - ``partition``: snapshot, favorites
    - ``nominated_by``: snapshot (guarantor nominations)
    - ``active_rows`` / ``waiting_rows``: partition, stakes, nominated_by,
      filter text, account info, address book
    """

    def __init__(
        self,
        source: ChainSnapshotSource | None = None,
        favorites_store: FavoritesStore | None = None,
        identity: IdentityLookup | None = None,
        address_book: AddressBook | None = None,
        own_accounts: Iterable[str] = (),
        on_nominators: Callable[[str, list[str]], None] | None = None,
    ):
        self.source = source
        self.favorites_store = favorites_store
        self.identity = identity
        self.address_book_store = address_book
        self.own_accounts = frozenset(own_accounts)
        self.favorites_key = get_settings().favorites_key
        self._on_nominators = on_nominators

        self.snapshot: Source[ChainSnapshot] = Source(name="snapshot")
        self.favorites: Source[list[str]] = Source([], name="favorites")
        self.filter_text: Source[str] = Source("", name="filter")
        self.account_info: Source[dict[str, AccountInfo]] = Source({}, name="account_info")
        self.address_book: Source[dict[str, str]] = Source({}, name="address_book")
        self.stakes: Source[dict[str, StakeSummary]] = Source({}, name="stakes")

        self._inputs: dict[str, AccountInputs] = {}
        self._stake_cells: dict[str, StakeSummaryCell] = {}

        self.partition: Derived[ElectionPartition] = Derived(
            self._partition, [self.snapshot, self.favorites], name="partition"
        )
        self.nominated_by: Derived[NominatorIndex] = Derived(
            lambda snapshot: extract_nominators(snapshot.nominations),
            [self.snapshot],
            name="nominated_by",
        )
        row_inputs = [
            self.partition,
            self.snapshot,
            self.stakes,
            self.filter_text,
            self.account_info,
            self.address_book,
        ]
        self.active_rows: Derived[tuple[ValidatorRow, ...]] = Derived(
            self._build_active_rows, row_inputs, name="active_rows"
        )
        self.waiting_rows: Derived[tuple[ValidatorRow, ...]] = Derived(
            self._build_waiting_rows,
            [*row_inputs, self.nominated_by],
            name="waiting_rows",
        )

    # Input events

    def set_snapshot(self, snapshot: ChainSnapshot) -> None:
        """Publish a new snapshot together with its stake summaries.

        Raises:
            ArithmeticUnderflow: if any exposure has own stake above total;
                the overview keeps showing the previous snapshot
        """
        self._check_exposures(snapshot)
        stakes = self._sync_accounts(snapshot)
        assign((self.snapshot, snapshot), (self.stakes, stakes))

    def set_filter(self, text: str) -> None:
        self.filter_text.set(text)

    def set_favorites(self, favorites: Iterable[str]) -> None:
        self.favorites.set(list(favorites))

    async def refresh(self) -> ChainSnapshot | None:
        """Pull a new snapshot from the source and push it through."""
        if self.source is None:
            return None
        snapshot = await self.source.get_snapshot()
        if snapshot is None:
            logger.warning("No staking snapshot available, keeping previous view")
            return None
        self.set_snapshot(snapshot)
        return snapshot

    async def reload(self) -> ChainSnapshot | None:
        """Refresh the snapshot, then the identity and address book names
        the filter matches on.

        Identity info shipped with the snapshot is used unless a dedicated
        lookup was injected.
        """
        snapshot = await self.refresh()
        if snapshot is None:
            return None
        if self.identity is None or isinstance(self.identity, SnapshotIdentityLookup):
            self.identity = SnapshotIdentityLookup(snapshot)
        await self.load_identities()
        await self.load_address_book()
        return snapshot

    async def load_favorites(self) -> list[str]:
        if self.favorites_store is None:
            return []
        favorites = await self.favorites_store.get(self.favorites_key)
        self.set_favorites(favorites)
        return favorites

    async def toggle_favorite(self, account_id: str) -> list[str]:
        if self.favorites_store is None:
            current = set(self.favorites.value or [])
            favorites = [a for a in self.favorites.value or [] if a != account_id]
            if account_id not in current:
                favorites.append(account_id)
        else:
            favorites = await self.favorites_store.toggle(self.favorites_key, account_id)
        self.set_favorites(favorites)
        return favorites

    async def load_identities(self) -> dict[str, AccountInfo]:
        """Resolve identity info for the active validators."""
        partition = self.partition.value
        if self.identity is None or partition is None:
            return {}

        infos: dict[str, AccountInfo] = {}
        for account in partition.validators:
            info = await self.identity.get_account_info(account.account_id)
            if info is not None:
                infos[account.account_id] = info
        self.account_info.set(infos)
        return infos

    async def load_address_book(self, account_ids: Iterable[str] | None = None) -> dict[str, str]:
        if self.address_book_store is None:
            return {}
        if account_ids is None:
            snapshot = self.snapshot.value
            account_ids = self._universe(snapshot) if snapshot else []

        names: dict[str, str] = {}
        for account_id in account_ids:
            name = await self.address_book_store.get_name(account_id)
            if name:
                names[account_id] = name
        self.address_book.set(names)
        return names

    # Derivations

    @staticmethod
    def _universe(snapshot: ChainSnapshot) -> list[str]:
        seen: dict[str, None] = {}
        for account_id in [*snapshot.validators, *snapshot.next_elected, *(snapshot.waiting or [])]:
            seen.setdefault(account_id, None)
        return list(seen)

    @staticmethod
    def _partition(snapshot: ChainSnapshot, favorites: list[str]) -> ElectionPartition:
        return partition_accounts(
            snapshot.next_elected, snapshot.validators, snapshot.waiting, favorites
        )

    def _check_exposures(self, snapshot: ChainSnapshot) -> None:
        for account_id in self._universe(snapshot):
            data = snapshot.accounts.get(account_id)
            if data is not None and data.exposure is not None:
                expand_exposure(data.exposure, data.prefs, data.stake_limit, account_id)

    def _sync_accounts(self, snapshot: ChainSnapshot) -> dict[str, StakeSummary]:
        """Push per-account query results into their cells and collect the
        resolved stake summaries for the current account universe."""
        universe = self._universe(snapshot)
        current = set(universe)
        for account_id in [a for a in self._inputs if a not in current]:
            del self._inputs[account_id]
            del self._stake_cells[account_id]

        for account_id in universe:
            inputs = self._inputs.get(account_id)
            if inputs is None:
                inputs = self._inputs[account_id] = AccountInputs(account_id)
                self._stake_cells[account_id] = StakeSummaryCell(
                    account_id,
                    inputs.exposure,
                    inputs.prefs,
                    inputs.stake_limit,
                    inputs.controller,
                    on_nominators=self._nominators_reporter(account_id),
                )
            data = snapshot.accounts.get(account_id)
            assign(
                (inputs.exposure, data.exposure if data else None),
                (inputs.prefs, data.prefs if data else None),
                (inputs.stake_limit, data.stake_limit if data else None),
                (inputs.controller, data.controller if data else None),
            )

        return {
            account_id: self._stake_cells[account_id].value
            for account_id in universe
            if self._stake_cells[account_id].value is not None
        }

    def _nominators_reporter(self, account_id: str) -> Callable[[list[str]], None] | None:
        if self._on_nominators is None:
            return None
        callback = self._on_nominators

        def report(nominators: list[str]) -> None:
            callback(account_id, nominators)

        return report

    def _make_row(
        self,
        account: FilteredAccount,
        is_main: bool,
        snapshot: ChainSnapshot,
        stakes: dict[str, StakeSummary],
        filter_text: str,
        account_info: dict[str, AccountInfo],
        address_book: dict[str, str],
        nominated_by: NominatorIndex | None,
    ) -> ValidatorRow:
        address = account.account_id
        nominators = tuple(nominated_by.get(address, [])) if nominated_by is not None else None
        if is_main:
            highlighted = address in snapshot.last_block_authors
        else:
            highlighted = is_nominating(address, nominators, self.own_accounts)

        # The lookup service always knows the account id, even without identity
        info = account_info.get(address)
        if info is None:
            info = AccountInfo(account_id=address)
        elif info.account_id is None:
            info = info.model_copy(update={"account_id": address})

        return ValidatorRow(
            account_id=address,
            is_elected=account.is_elected,
            is_favorite=account.is_favorite,
            is_main=is_main,
            is_visible=check_visibility(
                address,
                filter_text,
                info,
                has_identity=self.identity.has_identity if self.identity else False,
                address_book=address_book,
            ),
            is_highlighted=highlighted,
            summary=stakes.get(address),
            nominated_by=nominators,
            points=snapshot.era_points.get(address),
            last_block=snapshot.last_blocks.get(address),
        )

    def _build_active_rows(
        self,
        partition: ElectionPartition,
        snapshot: ChainSnapshot,
        stakes: dict[str, StakeSummary],
        filter_text: str,
        account_info: dict[str, AccountInfo],
        address_book: dict[str, str],
    ) -> tuple[ValidatorRow, ...]:
        return tuple(
            self._make_row(
                account, True, snapshot, stakes, filter_text, account_info, address_book, None
            )
            for account in partition.validators
        )

    def _build_waiting_rows(
        self,
        partition: ElectionPartition,
        snapshot: ChainSnapshot,
        stakes: dict[str, StakeSummary],
        filter_text: str,
        account_info: dict[str, AccountInfo],
        address_book: dict[str, str],
        nominated_by: NominatorIndex,
    ) -> tuple[ValidatorRow, ...]:
        # Elected-but-not-validating accounts are listed ahead of candidates
        return tuple(
            self._make_row(
                account,
                False,
                snapshot,
                stakes,
                filter_text,
                account_info,
                address_book,
                nominated_by,
            )
            for account in (*partition.elected, *partition.waiting)
        )

    # Views

    def visible_rows(self, waiting: bool = False) -> list[ValidatorRow]:
        rows = (self.waiting_rows if waiting else self.active_rows).value or ()
        return [row for row in rows if row.is_visible]
