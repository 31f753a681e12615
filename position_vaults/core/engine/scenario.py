"""Scripted runs against a local deployment.

A scenario file (YAML or JSON) lists funding specs and a sequence of steps.
Accounts are labels (``alice``, ``receiver``...); ``admin`` and ``manager``
are the deployment's own. Amounts are whole tokens, percentages accept
``"25%"`` / ``25``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from position_vaults.adapters.vault_adapter.adapter import VaultAdapter
from position_vaults.core.engine.deployment import LocalProtocol, deploy_local_protocol
from position_vaults.core.errors import VaultError
from position_vaults.core.utils.units import parse_erc20_funds, percent_to_ppm

# Whole-token amounts and percentages; YAML may give them as numbers
Amount = str | int | float


class StepBase(BaseModel):
    account: str = "manager"


class DepositStep(StepBase):
    op: Literal["deposit"]
    amount: Amount


class WithdrawStep(StepBase):
    op: Literal["withdraw"]


class AddLiquidityStep(StepBase):
    op: Literal["add_liquidity"]
    tick_lower: int | None = None  # None: full range
    tick_upper: int | None = None


class RemoveLiquidityStep(StepBase):
    op: Literal["remove_liquidity"]


class UpdatePositionStep(StepBase):
    op: Literal["update_position"]
    tick_lower: int
    tick_upper: int


class ReAddLiquidityStep(StepBase):
    op: Literal["re_add_liquidity"]


class HarvestStep(StepBase):
    op: Literal["harvest"]


class DonateFeesStep(StepBase):
    """Simulated trading fees paid into the pool (funded on the fly)."""

    op: Literal["donate_fees"]
    amount0: Amount = "0"
    amount1: Amount = "0"


class DepositRewardsStep(StepBase):
    op: Literal["deposit_rewards"]
    amount: Amount
    fund: bool = True


class DistributeRewardsStep(StepBase):
    op: Literal["distribute_rewards"]
    min_acceptable: Amount = "0"


class CollectRewardsStep(StepBase):
    op: Literal["collect_rewards"]


class SetReceiverDataStep(StepBase):
    op: Literal["set_receiver_data"]
    receiver: str
    percentage: Amount
    payout_token: str | None = None  # token symbol


class SetExclusiveManagerStep(StepBase):
    op: Literal["set_exclusive_manager_data"]
    account: str = "admin"
    manager: str
    percentage: Amount


class SetFeeStep(StepBase):
    op: Literal["set_fee"]
    account: str = "admin"
    percentage: Amount
    recipient: str


Step = Annotated[
    DepositStep
    | WithdrawStep
    | AddLiquidityStep
    | RemoveLiquidityStep
    | UpdatePositionStep
    | ReAddLiquidityStep
    | HarvestStep
    | DonateFeesStep
    | DepositRewardsStep
    | DistributeRewardsStep
    | CollectRewardsStep
    | SetReceiverDataStep
    | SetExclusiveManagerStep
    | SetFeeStep,
    Field(discriminator="op"),
]


class Scenario(BaseModel):
    name: str = "scenario"
    funds: list[str] = Field(default_factory=list)
    vault_config: dict[str, Any] = Field(default_factory=dict)
    # optional reward routing applied before the steps run
    receiver: str | None = None
    receiver_percentage: Amount | None = None
    exclusive_manager: str | None = None
    exclusive_manager_percentage: Amount | None = None
    steps: list[Step] = Field(default_factory=list)

    @field_validator("funds")
    @classmethod
    def validate_funds(cls, v: list[str]) -> list[str]:
        parse_erc20_funds(v)
        return v


def load_scenario(path: str | Path) -> Scenario:
    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"scenario must be a mapping: {path}")
    return Scenario(**data)


class ScenarioRunner:
    def __init__(self, scenario: Scenario):
        self.scenario = scenario
        self.deployment: LocalProtocol = deploy_local_protocol(
            scenario.name, vault_config=scenario.vault_config or None
        )
        self.adapter = VaultAdapter(self.deployment.vault)

    def _raw(self, symbol: str, amount: Amount) -> int:
        return self.deployment.token(symbol).to_raw(amount)

    def _run_step(self, step: Step) -> tuple[bool, Any]:
        d = self.deployment
        a = self.adapter
        who = d.actor(step.account)
        match step:
            case DepositStep():
                return a.deposit(who, self._raw("USDT", step.amount))
            case WithdrawStep():
                return a.withdraw(who)
            case AddLiquidityStep():
                lower, upper = d.full_range
                return a.add_liquidity(
                    who,
                    lower if step.tick_lower is None else step.tick_lower,
                    upper if step.tick_upper is None else step.tick_upper,
                )
            case RemoveLiquidityStep():
                return a.remove_liquidity(who)
            case UpdatePositionStep():
                return a.update_position(who, step.tick_lower, step.tick_upper)
            case ReAddLiquidityStep():
                return a.re_add_liquidity(who)
            case HarvestStep():
                return a.harvest(who)
            case DonateFeesStep():
                amount0 = d.pool.token0.to_raw(step.amount0)
                amount1 = d.pool.token1.to_raw(step.amount1)
                if amount0:
                    d.fund(who, amount0, d.pool.token0)
                if amount1:
                    d.fund(who, amount1, d.pool.token1)
                try:
                    d.pool.donate_fees(who, amount0, amount1)
                except VaultError as exc:
                    return False, str(exc)
                return True, None
            case DepositRewardsStep():
                amount = self._raw("USDT", step.amount)
                if step.fund:
                    d.fund(who, amount)
                return a.deposit_rewards(who, amount)
            case DistributeRewardsStep():
                payout = d.protocol.reward_distributor.receiver_data(d.vault.address)
                symbol = "USDT"
                if payout.payout_token is not None:
                    symbol = d.pool.token(payout.payout_token).symbol
                return a.distribute_rewards(who, self._raw(symbol, step.min_acceptable))
            case CollectRewardsStep():
                return a.collect_rewards(who)
            case SetReceiverDataStep():
                payout_token = None
                if step.payout_token:
                    payout_token = d.token(step.payout_token).address
                return a.set_receiver_data(
                    who,
                    d.actor(step.receiver),
                    percent_to_ppm(step.percentage),
                    payout_token,
                )
            case SetExclusiveManagerStep():
                return a.set_exclusive_manager_data(
                    who, d.actor(step.manager), percent_to_ppm(step.percentage)
                )
            case SetFeeStep():
                return a.set_fee(
                    who, percent_to_ppm(step.percentage), d.actor(step.recipient)
                )
        raise ValueError(f"Unsupported step: {step!r}")

    def run(self) -> dict[str, Any]:
        d = self.deployment
        for symbol, label, amount in parse_erc20_funds(self.scenario.funds):
            token = d.token(symbol)
            d.fund(d.actor(label), token.to_raw(amount), token)
        self._apply_reward_routing()

        steps: list[dict[str, Any]] = []
        for index, step in enumerate(self.scenario.steps):
            ok, result = self._run_step(step)
            steps.append(
                {
                    "index": index,
                    "op": step.op,
                    "account": step.account,
                    "ok": ok,
                    "result": result,
                }
            )

        return {
            "name": self.scenario.name,
            "vault": d.vault.address,
            "steps": steps,
            "status": self.adapter.get_status(),
            "accounts": self._accounts(),
            "retained": d.protocol.reward_distributor.retained(d.vault.address),
            "locked": d.vault.locked_rewards(),
            "events": [
                {"type": type(e).__name__, **e.model_dump(exclude={"type"})}
                for e in d.chain.events
            ],
        }

    def _apply_reward_routing(self) -> None:
        d = self.deployment
        s = self.scenario
        if s.receiver:
            d.vault.set_receiver_data(
                d.manager, d.actor(s.receiver), percent_to_ppm(s.receiver_percentage or 0)
            )
        if s.exclusive_manager:
            d.protocol.set_exclusive_manager_data(
                d.admin,
                d.vault.address,
                d.actor(s.exclusive_manager),
                percent_to_ppm(s.exclusive_manager_percentage or 0),
            )

    def _accounts(self) -> dict[str, dict[str, int]]:
        d = self.deployment
        return {
            label: {
                "USDT": d.usdt.balance_of(address),
                "ASTER": d.aster.balance_of(address),
                "shares": d.vault.balance_of(address),
                "claimable": d.vault.claimable(address),
            }
            for label, address in sorted(d.actors.items())
        }


def run_scenario(scenario: Scenario) -> dict[str, Any]:
    return ScenarioRunner(scenario).run()
