"""Expand raw validator exposure into display-ready stake figures."""

import logging
from typing import Callable

from ..core.config import get_settings
from ..core.errors import ArithmeticUnderflow
from ..core.reactive import Cell, Derived
from ..core.types import ExposureRecord, StakeSummary, ValidatorPrefs

logger = logging.getLogger(__name__)


def format_guarantee_fee(fee: int | None) -> str | None:
    """Render a per-billion guarantee fee as a percentage, e.g. ``"5.00%"``.

    Absent prefs give no display; a zero fee still renders as ``"0.00%"``.
    """
    if fee is None:
        return None
    divisor = get_settings().commission_percent_divisor
    return f"{fee / divisor:.2f}%"


def encode_guarantee_fee(percent: int | None) -> str:
    """Convert a 0-100 percentage into the per-billion chain value."""
    settings = get_settings()
    commission = (percent or 0) * settings.commission_percent_divisor
    if commission <= 0:
        return "0"
    return str(min(commission, settings.commission_scale))


def expand_exposure(
    exposure: ExposureRecord,
    prefs: ValidatorPrefs | None,
    stake_limit: int | None,
    account_id: str | None = None,
) -> StakeSummary:
    """Derive the stake summary for one validator.

    ``stake_other`` is always ``total - own``; the individual guarantor
    stakes are not summed because the chain may round them.

    Raises:
        ArithmeticUnderflow: if own stake exceeds total stake
    """
    if exposure.own > exposure.total:
        err = ArithmeticUnderflow(account_id, exposure.total, exposure.own)
        logger.error(str(err))
        raise err

    return StakeSummary(
        guarantee_fee=format_guarantee_fee(prefs.guarantee_fee if prefs else None),
        nominators=tuple((other.who, other.value) for other in exposure.others),
        stake_total=exposure.total,
        stake_own=exposure.own,
        stake_other=exposure.total - exposure.own,
        stake_limit=stake_limit,
    )


class StakeSummaryCell(Derived[StakeSummary]):
    """Stake summary that appears once exposure, prefs, limit and controller
    have all resolved, and is recomputed whenever any of them changes."""

    def __init__(
        self,
        account_id: str,
        exposure: Cell[ExposureRecord],
        prefs: Cell[ValidatorPrefs],
        stake_limit: Cell[int],
        controller: Cell[str],
        on_nominators: Callable[[list[str]], None] | None = None,
    ):
        self.account_id = account_id
        self._on_nominators = on_nominators
        self._reported: list[str] | None = None
        super().__init__(
            self._expand,
            [exposure, prefs, stake_limit, controller],
            name=f"stake:{account_id}",
        )

    def _expand(
        self,
        exposure: ExposureRecord,
        prefs: ValidatorPrefs,
        stake_limit: int,
        _controller: str,
    ) -> StakeSummary:
        summary = expand_exposure(exposure, prefs, stake_limit, self.account_id)
        nominators = [other.who for other in exposure.others]
        if self._on_nominators and nominators != self._reported:
            self._reported = nominators
            self._on_nominators(nominators)
        return summary
