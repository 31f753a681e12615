"""In-memory execution environment shared by every vault/protocol component.

``LocalChain`` plays the role a node plays for the deployed contracts:

* allocates deterministic checksum addresses and resolves them back to
  components,
* keeps the ordered event log,
* runs each public operation as one all-or-nothing unit of work.

Every component keeps *all* of its mutable data on a single ``state``
attribute. A snapshot deep-copies those states (plus the event log) and a
revert puts the copies back, the same contract as an ``evm_snapshot`` /
``evm_revert`` pair on a dev node.
"""

from __future__ import annotations

import copy
import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol, TypeVar

from eth_utils import keccak, to_checksum_address
from loguru import logger

from position_vaults.core.adapters.models import EventBase
from position_vaults.core.constants import ZERO_ADDRESS
from position_vaults.core.errors import InvalidInput, ZeroAddress

E = TypeVar("E", bound=EventBase)


class Stateful(Protocol):
    address: str
    state: Any


class LocalChain:
    def __init__(self, name: str = "local"):
        self.name = name
        self.logger = logger.bind(chain=name)
        self.events: list[EventBase] = []
        self.tx_index = 0
        # deployment counter, never rolled back (like an account nonce)
        self.nonce = 0
        self._components: dict[str, Stateful] = {}
        self._snapshots: dict[int, tuple[dict[str, Any], int, int]] = {}
        self._next_snapshot_id = 0
        self._depth = 0

    # ── addresses ────────────────────────────────────────────────────────────

    def new_address(self, label: str) -> str:
        digest = keccak(text=f"{self.name}:{label}")
        return to_checksum_address(digest[-20:])

    def register(self, component: Stateful, label: str) -> str:
        address = self.new_address(label)
        if address in self._components:
            raise ValueError(f"label {label!r} already registered on {self.name}")
        self._components[address] = component
        self.nonce += 1
        self.logger.debug(f"Registered {type(component).__name__} at {address}")
        return address

    def resolve(self, address: str) -> Any:
        if not address or address.lower() == ZERO_ADDRESS:
            raise ZeroAddress(address=address)
        component = self._components.get(to_checksum_address(address))
        if component is None:
            raise InvalidInput("address", address)
        return component

    def is_deployed(self, address: str) -> bool:
        return to_checksum_address(address) in self._components

    # ── events ───────────────────────────────────────────────────────────────

    def emit(self, emitter: str, event: EventBase) -> EventBase:
        event.emitter = emitter
        event.tx_index = self.tx_index
        self.events.append(event)
        self.logger.debug(f"{event.__class__.__name__} {event.model_dump()}")
        return event

    def events_of(self, event_type: type[E]) -> list[E]:
        return [e for e in self.events if isinstance(e, event_type)]

    # ── snapshots ────────────────────────────────────────────────────────────

    def snapshot(self) -> int:
        snapshot_id = self._next_snapshot_id
        self._next_snapshot_id += 1
        states = {
            address: copy.deepcopy(component.state)
            for address, component in self._components.items()
        }
        self._snapshots[snapshot_id] = (states, len(self.events), self.tx_index)
        return snapshot_id

    def revert(self, snapshot_id: int) -> None:
        if snapshot_id not in self._snapshots:
            raise InvalidInput("snapshot_id", snapshot_id)
        states, n_events, tx_index = self._snapshots[snapshot_id]
        for address, state in states.items():
            self._components[address].state = state
        # components deployed after the snapshot are left in place but unreferenced
        del self.events[n_events:]
        self.tx_index = tx_index
        for sid in [s for s in self._snapshots if s >= snapshot_id]:
            del self._snapshots[sid]

    def discard(self, snapshot_id: int) -> None:
        self._snapshots.pop(snapshot_id, None)

    @contextmanager
    def transaction(self, label: str = "") -> Iterator[None]:
        if self._depth:
            # nested calls join the outermost unit of work
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot_id = self.snapshot()
        self._depth = 1
        self.tx_index += 1
        try:
            yield
        except Exception as exc:
            self.revert(snapshot_id)
            self.logger.warning(f"Reverted {label or 'transaction'}: {exc}")
            raise
        else:
            self.discard(snapshot_id)
        finally:
            self._depth = 0


def atomic(fn: Callable) -> Callable:
    """Run a component method as a single unit of work on ``self.chain``."""

    @functools.wraps(fn)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        with self.chain.transaction(f"{type(self).__name__}.{fn.__name__}"):
            return fn(self, *args, **kwargs)

    return wrapper
