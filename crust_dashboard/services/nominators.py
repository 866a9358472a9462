"""Invert guarantor nominations into a per-validator index."""

from typing import Iterable, Sequence

from ..core.types import Nomination, NominatorIndex


def extract_nominators(nominations: Iterable[Nomination]) -> NominatorIndex:
    """Map each validator to the guarantors that named it, with their rank.

    Rank is the 1-based position of the validator in the guarantor's target
    list. Guarantors without a recorded nomination contribute nothing; if a
    target list repeats a validator only the first position counts.
    """
    mapped: NominatorIndex = {}

    for nomination in nominations:
        if nomination.targets is None:
            continue

        seen: set[str] = set()
        for index, validator_id in enumerate(nomination.targets):
            if validator_id in seen:
                continue
            seen.add(validator_id)
            mapped.setdefault(validator_id, []).append(
                (nomination.nominator_id, index + 1)
            )

    return mapped


def is_nominating(
    address: str,
    nominated_by: Sequence[tuple[str, int]] | None,
    own_accounts: Iterable[str],
) -> bool:
    """True if the account or any of its guarantors is one of ours."""
    own = set(own_accounts)
    return address in own or any(
        nominator_id in own for nominator_id, _ in nominated_by or ()
    )
