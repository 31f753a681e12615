from __future__ import annotations

from typing import Any


class VaultError(Exception):
    """Base error for every rejected vault/protocol operation.

    ``args_detail`` carries the offending arguments so callers can assert on
    the cause rather than on the message text.
    """

    def __init__(self, message: str | None = None, **args_detail: Any):
        self.args_detail = args_detail
        if message is None:
            detail = ", ".join(f"{k}={v!r}" for k, v in args_detail.items())
            message = f"{self.__class__.__name__}({detail})"
        super().__init__(message)


class InvalidEntry(VaultError):
    """Operation attempted on a zero/empty quantity or an out-of-bounds value."""


class InsufficientBalance(VaultError):
    """Claim, withdrawal or transfer attempted with nothing (or too little) held."""


class ZeroAddress(VaultError):
    """A required address argument is the null sentinel."""


class Unauthorized(VaultError):
    def __init__(self, account: str, role: str):
        self.account = account
        self.role = role
        super().__init__(
            f"Unauthorized: {account} lacks {role}", account=account, role=role
        )


class InvalidPositionState(InvalidEntry):
    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Position is {actual}, expected {expected}",
            expected=expected,
            actual=actual,
        )


class InvalidPoolId(VaultError):
    def __init__(self, pool_id: int):
        self.pool_id = pool_id
        super().__init__(f"Invalid pool id {pool_id}", pool_id=pool_id)


class InvalidInput(VaultError):
    def __init__(self, field: str, value: Any = None):
        self.field = field
        super().__init__(f"Invalid input for {field}: {value!r}", field=field)
