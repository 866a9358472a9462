"""Free-text row filter over account id, index, identity and local names."""

from typing import Mapping

from ..core.types import AccountInfo


def _contains_lower(value: str | None, filter_lower: str) -> bool:
    return bool(value) and filter_lower in value.lower()


def check_visibility(
    address: str,
    filter_name: str,
    account_info: AccountInfo | None = None,
    has_identity: bool = False,
    address_book: Mapping[str, str] | None = None,
) -> bool:
    """Decide whether an account row matches the filter text.

    Checks run in priority order and stop at the first match:
    account id / index (case-sensitive), then identity display names when the
    chain has an identity module, else the nickname. The local address book
    name is the fallback when nothing else matched.
    """
    if not filter_name:
        return True

    filter_lower = filter_name.lower()
    is_visible = False

    if account_info:
        account_id = account_info.account_id
        account_index = account_info.account_index
        if (account_id and filter_name in account_id) or (
            account_index and filter_name in account_index
        ):
            is_visible = True
        elif has_identity:
            identity = account_info.identity
            is_visible = identity is not None and (
                _contains_lower(identity.display, filter_lower)
                or _contains_lower(identity.display_parent, filter_lower)
            )
        elif account_info.nickname:
            is_visible = _contains_lower(account_info.nickname, filter_lower)

    if not is_visible:
        name = (address_book or {}).get(address)
        is_visible = _contains_lower(name, filter_lower)

    return is_visible
