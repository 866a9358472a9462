"""Domain errors raised by the aggregation core."""


class DashboardError(Exception):
    """Base class for dashboard errors."""


class ArithmeticUnderflow(DashboardError, ArithmeticError):
    """Own stake reported larger than total stake for a validator."""

    def __init__(self, account_id: str | None, total: int, own: int):
        self.account_id = account_id
        self.total = total
        self.own = own
        super().__init__(
            f"Exposure for {account_id or '<unknown>'} has own stake {own} "
            f"greater than total stake {total}"
        )


class UnknownSortKey(DashboardError, ValueError):
    """Sort requested on a field the list does not expose."""
