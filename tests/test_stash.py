from crust_dashboard.core.types import StakerState, StakingLedger
from crust_dashboard.services.stash import summarize_stashes, validate_controller


def test_summarize_stashes_orders_by_role():
    stashes = [
        StakerState(stash_id="S1", is_own_controller=True,
                    staking_ledger=StakingLedger(stash="S1", total=100)),
        StakerState(stash_id="S2", is_own_controller=True, is_stash_nominating=True,
                    staking_ledger=StakingLedger(stash="S2", total=50)),
        StakerState(stash_id="S3", is_own_controller=False, is_stash_validating=True,
                    staking_ledger=StakingLedger(stash="S3", total=25)),
        StakerState(stash_id="S4", is_own_controller=True, is_stash_validating=True,
                    staking_ledger=StakingLedger(stash="X9", total=1000)),
        StakerState(stash_id="S5", is_own_controller=True),
    ]

    overview = summarize_stashes(stashes)

    assert overview.bonded_total == 175
    assert [s.stash_id for s in overview.stashes] == ["S4", "S2", "S1", "S5"]


def test_summarize_no_stashes():
    overview = summarize_stashes([])
    assert overview.bonded_total == 0
    assert overview.stashes == ()


def test_validate_controller_rules():
    assert validate_controller("S", "C").error is None

    bonded = validate_controller("S", "C", stash_bonded_id="C0")
    assert bonded.is_fatal is True
    assert "C0" in bonded.error

    managing = validate_controller("S", "C", controller_stash_id="S0")
    assert managing.is_fatal is True
    assert "S0" in managing.error

    same = validate_controller("S", "S")
    assert same.is_fatal is False
    assert same.error.startswith("Distinct stash and controller")


def test_default_controller_skips_checks():
    check = validate_controller("S", "C", stash_bonded_id="C", default_controller="C")
    assert check.error is None
    assert check.is_fatal is False
