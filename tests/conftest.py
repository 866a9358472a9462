import sys
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so `import crust_dashboard` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crust_dashboard.core.types import (  # noqa: E402
    AccountInfo,
    AccountStakingData,
    ChainSnapshot,
    ExposureRecord,
    Identity,
    IndividualExposure,
    Nomination,
    ValidatorPrefs,
)


def make_account(total: int, own: int, fee: int | None = 50_000_000, others=()) -> AccountStakingData:
    return AccountStakingData(
        exposure=ExposureRecord(
            total=total,
            own=own,
            others=[IndividualExposure(who=w, value=v) for w, v in others],
        ),
        prefs=ValidatorPrefs(guarantee_fee=fee),
        stake_limit=total * 2,
        controller=f"ctrl-{total}",
    )


@pytest.fixture
def snapshot() -> ChainSnapshot:
    return ChainSnapshot(
        next_elected=["V1", "V2", "E1"],
        validators=["V1", "V2", "V3"],
        waiting=["V1", "W1", "W2", "E1"],
        accounts={
            "V1": make_account(1000, 400, others=[("N1", 300), ("N2", 300)]),
            "V2": make_account(2000, 2000),
            "V3": make_account(500, 100, fee=None),
            "E1": make_account(800, 800),
            "W1": make_account(300, 300),
        },
        nominations=[
            Nomination(nominator_id="N1", targets=["W1", "V1"]),
            Nomination(nominator_id="N2", targets=None),
            Nomination(nominator_id="N3", targets=["W1"]),
        ],
        era_points={"V1": "120", "V2": "80"},
        last_blocks={"V1": "1,024"},
        last_block_authors=["V2"],
        has_identity=True,
        accounts_info={
            "V1": AccountInfo(account_index="F7Hs", identity=Identity(display="Alice Node")),
            "V2": AccountInfo(identity=Identity(display="bob", display_parent="BobCorp")),
        },
    )
