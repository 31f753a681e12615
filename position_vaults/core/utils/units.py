from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from position_vaults.core.constants import MAX_PERCENTAGE


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_erc20_raw(amount_tokens: str | int | float | Decimal, decimals: int) -> int:
    try:
        amt = _to_decimal(amount_tokens)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount_tokens}") from exc
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    scale = Decimal(10) ** int(decimals)
    return int((amt * scale).to_integral_value(rounding=ROUND_DOWN))


def from_erc20_raw(amount: int, decimals: int) -> Decimal:
    return Decimal(int(amount)) / (Decimal(10) ** int(decimals))


def percent_to_ppm(percent: str | int | float | Decimal) -> int:
    """``"25"`` / ``25`` / ``"25%"`` -> 250_000."""
    raw = str(percent).strip().rstrip("%")
    try:
        pct = _to_decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid percentage: {percent}") from exc
    if pct < 0 or pct > 100:
        raise ValueError(f"Percentage must be within [0, 100], got {percent}")
    return int((pct * MAX_PERCENTAGE / 100).to_integral_value(rounding=ROUND_DOWN))


def mul_div(amount: int, numerator: int, denominator: int) -> int:
    """Integer multiply-then-divide, floored. Dust stays with the caller."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (int(amount) * int(numerator)) // int(denominator)


def ppm_of(amount: int, ppm: int) -> int:
    return mul_div(amount, ppm, MAX_PERCENTAGE)


def parse_erc20_funds(specs: Iterable[str]) -> list[tuple[str, str, str]]:
    """Parse ``SYMBOL:wallet_label:amount`` funding specs (amount in whole tokens)."""
    balances: list[tuple[str, str, str]] = []
    for spec in specs:
        parts = [p.strip() for p in str(spec).split(":")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid ERC20 funds spec: {spec}")
        symbol, wallet, amount = parts
        balances.append((symbol, wallet, amount))
    return balances
