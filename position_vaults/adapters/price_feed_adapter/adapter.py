from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address

from position_vaults.core.adapters.BaseAdapter import BaseAdapter, require_owner
from position_vaults.core.chain import LocalChain, atomic
from position_vaults.core.constants import DEFAULT_ORACLE_DECIMALS
from position_vaults.core.errors import InvalidEntry


@dataclass
class PriceFeedState:
    owner: str
    answer: int
    updated_round: int = 1


class PriceFeedAdapter(BaseAdapter):
    """Chainlink-style aggregator answering with a fixed-point integer price.

    The vault mints ``net_amount * latest_answer()`` shares while its position
    is closed, so the answer is used as-is (no rescaling by ``decimals``).
    """

    adapter_type: str = "PRICE_FEED"

    def __init__(
        self,
        chain: LocalChain,
        description: str,
        answer: int,
        owner: str,
        decimals: int = DEFAULT_ORACLE_DECIMALS,
        config: dict[str, Any] | None = None,
    ):
        super().__init__(f"feed:{description}", chain, config)
        if answer <= 0:
            raise InvalidEntry(answer=answer)
        self.description = description
        self.decimals = int(decimals)
        self.state = PriceFeedState(owner=to_checksum_address(owner), answer=answer)

    def latest_answer(self) -> int:
        return self.state.answer

    def latest_round_data(self) -> tuple[int, int]:
        return self.state.updated_round, self.state.answer

    @atomic
    @require_owner
    def set_answer(self, caller: str, answer: int) -> None:
        if answer <= 0:
            raise InvalidEntry(answer=answer)
        self.state.answer = answer
        self.state.updated_round += 1
        self.logger.info(f"{self.description} answer -> {answer}")
