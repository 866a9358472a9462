"""Data models for the staking explorer and watch list."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# validator id -> [(nominator id, 1-based rank in the nominator's targets)]
NominatorIndex = dict[str, list[tuple[str, int]]]


class IndividualExposure(BaseModel):
    """Stake a single guarantor has behind a validator."""

    model_config = ConfigDict(frozen=True)

    who: str
    value: int


class ExposureRecord(BaseModel):
    """Chain-reported stake backing a validator."""

    model_config = ConfigDict(frozen=True)

    total: int
    own: int
    others: list[IndividualExposure] = Field(default_factory=list)


class ValidatorPrefs(BaseModel):
    """Validator preferences (guarantee fee is per-billion)."""

    model_config = ConfigDict(frozen=True)

    guarantee_fee: int | None = None


class AccountStakingData(BaseModel):
    """Per-account query results; every field resolves independently."""

    exposure: ExposureRecord | None = None
    prefs: ValidatorPrefs | None = None
    stake_limit: int | None = None
    controller: str | None = None


class Nomination(BaseModel):
    """A guarantor and its ordered target list (None if it has none)."""

    model_config = ConfigDict(frozen=True)

    nominator_id: str
    targets: list[str] | None = None


class Identity(BaseModel):
    """On-chain identity fields used for display and filtering."""

    model_config = ConfigDict(frozen=True)

    display: str | None = None
    display_parent: str | None = None


class AccountInfo(BaseModel):
    """Derived account info from the identity lookup service."""

    model_config = ConfigDict(frozen=True)

    account_id: str | None = None
    account_index: str | None = None
    identity: Identity | None = None
    nickname: str | None = None


class ChainSnapshot(BaseModel):
    """A full staking snapshot as delivered by the chain source."""

    next_elected: list[str] = Field(default_factory=list)
    validators: list[str] = Field(default_factory=list)
    waiting: list[str] | None = None
    accounts: dict[str, AccountStakingData] = Field(default_factory=dict)
    nominations: list[Nomination] = Field(default_factory=list)
    era_points: dict[str, str] = Field(default_factory=dict)
    last_blocks: dict[str, str] = Field(default_factory=dict)
    last_block_authors: list[str] = Field(default_factory=list)
    # Whether the chain runs an identity module (changes filter semantics)
    has_identity: bool = False
    accounts_info: dict[str, AccountInfo] = Field(default_factory=dict)


class StakeSummary(BaseModel):
    """Expanded stake figures for one validator row."""

    model_config = ConfigDict(frozen=True)

    guarantee_fee: str | None = None
    nominators: tuple[tuple[str, int], ...] = ()
    stake_total: int
    stake_own: int
    stake_other: int
    stake_limit: int | None = None


class FilteredAccount(BaseModel):
    """An account tagged with its election and favorite status."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    is_elected: bool
    is_favorite: bool


class ElectionPartition(BaseModel):
    """Disjoint, favorites-first account lists for one snapshot."""

    model_config = ConfigDict(frozen=True)

    validators: tuple[FilteredAccount, ...] = ()
    elected: tuple[FilteredAccount, ...] = ()
    waiting: tuple[FilteredAccount, ...] = ()


class ValidatorRow(BaseModel):
    """A re-renderable row for the validators / waiting tables."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    is_elected: bool
    is_favorite: bool
    is_main: bool
    is_visible: bool = True
    is_highlighted: bool = False
    summary: StakeSummary | None = None
    nominated_by: tuple[tuple[str, int], ...] | None = None
    points: str | None = None
    last_block: str | None = None

    @property
    def stake_total(self) -> int | None:
        return self.summary.stake_total if self.summary else None

    @property
    def stake_own(self) -> int | None:
        return self.summary.stake_own if self.summary else None

    @property
    def stake_other(self) -> int | None:
        return self.summary.stake_other if self.summary else None

    @property
    def stake_limit(self) -> int | None:
        return self.summary.stake_limit if self.summary else None

    @property
    def nominator_count(self) -> int | None:
        return len(self.nominated_by) if self.nominated_by is not None else None

    @property
    def era_points(self) -> int | None:
        if self.points is None:
            return None
        try:
            return int(self.points.replace(",", ""))
        except ValueError:
            return None


class SortState(BaseModel):
    """Current sort column and direction."""

    model_config = ConfigDict(frozen=True)

    by: str | None = None
    ascending: bool = True


class WatchSortKey(str, Enum):
    """Sortable columns of the watch list."""

    FILE_CID = "file_cid"
    FILE_SIZE = "file_size"
    START_TIME = "start_time"
    EXPIRE_TIME = "expire_time"
    CONFIRMED_REPLICAS = "confirmed_replicas"
    GLOBAL_REPLICAS = "global_replicas"
    FILE_STATUS = "file_status"


class ValidatorSortKey(str, Enum):
    """Sortable columns of the validator tables."""

    ACCOUNT_ID = "account_id"
    STAKE_TOTAL = "stake_total"
    STAKE_OWN = "stake_own"
    STAKE_OTHER = "stake_other"
    STAKE_LIMIT = "stake_limit"
    NOMINATOR_COUNT = "nominator_count"
    ERA_POINTS = "era_points"


class WatchItem(BaseModel):
    """A tracked storage-market deal; only global_replicas changes in place."""

    model_config = ConfigDict(validate_assignment=True)

    file_cid: str
    file_size: int = 0
    start_time: int = 0
    expire_time: int = 0
    confirmed_replicas: int = 0
    global_replicas: int | None = None
    file_status: str = "pending"


class StakingLedger(BaseModel):
    """Ledger entry of a stash (only the fields the dashboard reads)."""

    model_config = ConfigDict(frozen=True)

    stash: str
    total: int = 0


class StakerState(BaseModel):
    """One of the user's own stashes."""

    model_config = ConfigDict(frozen=True)

    stash_id: str
    controller_id: str | None = None
    is_own_controller: bool = False
    is_stash_validating: bool = False
    is_stash_nominating: bool = False
    staking_ledger: StakingLedger | None = None


class StashOverview(BaseModel):
    """Own stashes table: bonded total plus ordered stashes."""

    model_config = ConfigDict(frozen=True)

    bonded_total: int = 0
    stashes: tuple[StakerState, ...] = ()


class ControllerCheck(BaseModel):
    """Result of validating a stash/controller pairing."""

    model_config = ConfigDict(frozen=True)

    error: str | None = None
    is_fatal: bool = False
