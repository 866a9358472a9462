"""Partition accounts into validators, elected and waiting lists."""

from typing import Iterable, Sequence

from ..core.types import ElectionPartition, FilteredAccount


def filter_accounts(
    accounts: Sequence[str] | None,
    elected: Iterable[str],
    favorites: Iterable[str],
    without: Iterable[str],
) -> tuple[FilteredAccount, ...]:
    """Tag accounts with elected/favorite flags, dropping ``without``.

    Favorites come first; ``sorted`` is stable so the relative input order is
    kept within each group and unchanged inputs never reorder.
    """
    elected_set = set(elected)
    favorite_set = set(favorites)
    excluded = set(without)

    tagged = [
        FilteredAccount(
            account_id=account_id,
            is_elected=account_id in elected_set,
            is_favorite=account_id in favorite_set,
        )
        for account_id in accounts or ()
        if account_id not in excluded
    ]
    return tuple(sorted(tagged, key=lambda account: not account.is_favorite))


def partition_accounts(
    next_elected: Sequence[str],
    validators: Sequence[str],
    waiting: Sequence[str] | None,
    favorites: Iterable[str],
) -> ElectionPartition:
    """Split the account universe into three disjoint, favorites-first lists."""
    favorites = list(favorites)
    return ElectionPartition(
        validators=filter_accounts(validators, next_elected, favorites, []),
        elected=filter_accounts(next_elected, next_elected, favorites, validators),
        waiting=filter_accounts(waiting, [], favorites, next_elected),
    )
