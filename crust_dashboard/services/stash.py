"""Own-stash summary and stash/controller pairing checks."""

from typing import Sequence

from ..core.types import ControllerCheck, StakerState, StashOverview

STASH_ALREADY_BONDED = (
    "A stash account should not map to another controller. "
    "This selected stash already controlled by {bonded_id}"
)
CONTROLLER_MANAGES_STASH = (
    "A controller account should not be set to manages multiple stashes. "
    "The selected controller is already controlling {stash_id}"
)
SAME_STASH_AND_CONTROLLER = (
    "Distinct stash and controller accounts are recommended to ensure fund "
    "security. You will be allowed to make the transaction, but take care to "
    "not tie up all funds, only use a portion of the available funds during "
    "this period."
)


def _role_order(stash: StakerState) -> int:
    if stash.is_stash_validating:
        return 1
    if stash.is_stash_nominating:
        return 5
    return 99


def summarize_stashes(own_stashes: Sequence[StakerState]) -> StashOverview:
    """Bonded total over own stashes plus the list of self-controlled ones,
    validators first, then guarantors, then the rest."""
    own_ids = {s.stash_id for s in own_stashes}
    bonded_total = sum(
        s.staking_ledger.total
        for s in own_stashes
        if s.staking_ledger is not None and s.staking_ledger.stash in own_ids
    )
    stashes = sorted(
        (s for s in own_stashes if s.is_own_controller),
        key=_role_order,
    )
    return StashOverview(bonded_total=bonded_total, stashes=tuple(stashes))


def validate_controller(
    account_id: str | None,
    controller_id: str | None,
    stash_bonded_id: str | None = None,
    controller_stash_id: str | None = None,
    default_controller: str | None = None,
) -> ControllerCheck:
    """Check a stash/controller pairing before bonding.

    A stash may act as its own controller, but it may only be controlled by
    one controller account and a controller may only manage one stash.
    Returns an empty check when the controller is the current default.
    """
    if default_controller is not None and default_controller == controller_id:
        return ControllerCheck()

    if stash_bonded_id:
        return ControllerCheck(
            error=STASH_ALREADY_BONDED.format(bonded_id=stash_bonded_id),
            is_fatal=True,
        )
    if controller_stash_id:
        return ControllerCheck(
            error=CONTROLLER_MANAGES_STASH.format(stash_id=controller_stash_id),
            is_fatal=True,
        )
    if controller_id is not None and controller_id == account_id:
        return ControllerCheck(error=SAME_STASH_AND_CONTROLLER)
    return ControllerCheck()
