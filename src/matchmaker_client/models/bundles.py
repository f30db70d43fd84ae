"""Outbound request models: bundles, private transactions, simulation overrides."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

# Seconds; applied by the service when a simulation does not send one.
DEFAULT_SIM_TIMEOUT = 5

# Seconds added to the parent timestamp for the simulated block.
SLOT_SECONDS = 12


@dataclass(frozen=True)
class HintPreferences:
    """Which data categories may be shared with searchers.

    ``None`` means "use the service default", which is not the same as False.
    """

    calldata: bool | None = None
    contract_address: bool | None = None
    function_selector: bool | None = None
    logs: bool | None = None


@dataclass(frozen=True)
class HashEntry:
    """Reference to a transaction already seen on the event stream."""

    hash: str


@dataclass(frozen=True)
class TxEntry:
    """Signed raw transaction plus revert tolerance."""

    tx: str
    can_revert: bool


@dataclass(frozen=True)
class NestedBundleEntry:
    """A bundle embedded in another bundle's body."""

    bundle: BundleParams


BodyEntry = Union[HashEntry, TxEntry, NestedBundleEntry]


@dataclass(frozen=True)
class Inclusion:
    block: int
    max_block: int | None = None


@dataclass(frozen=True)
class Refund:
    body_idx: int
    percent: int


@dataclass(frozen=True)
class RefundConfig:
    address: str
    percent: int


@dataclass(frozen=True)
class Validity:
    refund: tuple[Refund, ...] = ()
    refund_config: tuple[RefundConfig, ...] = ()


@dataclass(frozen=True)
class Privacy:
    hints: HintPreferences | None = None
    builders: tuple[str, ...] | None = None


@dataclass(frozen=True)
class Metadata:
    origin_id: str | None = None


@dataclass(frozen=True)
class BundleParams:
    """Parameters of ``mev_sendBundle`` / ``mev_simBundle``.

    Body order is significant: it is the in-block transaction order.
    """

    inclusion: Inclusion
    body: tuple[BodyEntry, ...]
    version: str | None = None
    validity: Validity | None = None
    privacy: Privacy | None = None
    metadata: Metadata | None = None


@dataclass(frozen=True)
class TransactionOptions:
    """Options for ``eth_sendPrivateTransaction``."""

    hints: HintPreferences | None = None
    max_block_number: int | None = None
    builders: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ParentBlock:
    """Header fields of the block a simulation builds on."""

    number: int
    timestamp: int
    coinbase: str
    gas_limit: int
    base_fee_per_gas: int
    hash: str | None = None


@dataclass(frozen=True)
class SimBundleOptions:
    """Overrides for the simulated block context.

    Omitted fields are derived by the service from ``parent_block`` (latest
    block when that is omitted too).
    """

    parent_block: int | str | None = None
    block_number: int | None = None
    coinbase: str | None = None
    timestamp: int | None = None
    gas_limit: int | None = None
    base_fee: int | None = None
    timeout: int | None = None

    def with_parent_defaults(self, parent: ParentBlock) -> SimBundleOptions:
        """Fill every omitted override the way the service derives it from ``parent``."""
        return replace(
            self,
            parent_block=self.parent_block if self.parent_block is not None else parent.number,
            block_number=self.block_number if self.block_number is not None else parent.number + 1,
            coinbase=self.coinbase if self.coinbase is not None else parent.coinbase,
            timestamp=(
                self.timestamp if self.timestamp is not None
                else parent.timestamp + SLOT_SECONDS
            ),
            gas_limit=self.gas_limit if self.gas_limit is not None else parent.gas_limit,
            base_fee=self.base_fee if self.base_fee is not None else parent.base_fee_per_gas,
            timeout=self.timeout if self.timeout is not None else DEFAULT_SIM_TIMEOUT,
        )
