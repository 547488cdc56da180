"""Value objects exchanged with the minter.

Inbound commands and events, outbound instructions, and the plain records
copied between the stores and the allocation handler. Nothing here touches the
database.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union


@dataclass(frozen=True)
class ContractRef:
    """Address and code hash of an external component."""

    address: str
    code_hash: str

    def to_json(self) -> dict[str, str]:
        return {"address": self.address, "code_hash": self.code_hash}


@dataclass(frozen=True)
class Trait:
    """Single metadata attribute.

    Attributes
    ----------
    value : str
        Trait value, always stored as text.
    trait_type : Optional[str]
        Name of the trait, e.g. ``"Wins"``.
    display_type : Optional[str]
        Hint for how marketplaces should render the value.
    max_value : Optional[str]
        Upper bound for numeric traits.
    """

    value: str
    trait_type: Optional[str] = None
    display_type: Optional[str] = None
    max_value: Optional[str] = None

    def to_json(self) -> dict[str, Optional[str]]:
        return {
            "display_type": self.display_type,
            "trait_type": self.trait_type,
            "value": self.value,
            "max_value": self.max_value,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Trait":
        return cls(
            value=str(data["value"]),
            trait_type=data.get("trait_type"),
            display_type=data.get("display_type"),
            max_value=data.get("max_value"),
        )


def _traits_to_json(traits: Optional[Sequence[Trait]]) -> Optional[list[dict]]:
    if traits is None:
        return None
    return [t.to_json() for t in traits]


def _traits_from_json(data: Optional[Sequence[dict]]) -> Optional[tuple[Trait, ...]]:
    if data is None:
        return None
    return tuple(Trait.from_json(item) for item in data)


@dataclass(frozen=True)
class ItemRecord:
    """Preloaded item waiting in the inventory pool.

    Attributes
    ----------
    item_id : str
        Stable identifier handed to the issuance component as the token id.
    img_url : str
        Primary media reference.
    attributes, priv_attributes, hidden_attributes : Optional[tuple[Trait, ...]]
        Optional descriptive attributes kept with the record.
    """

    item_id: str
    img_url: str
    attributes: Optional[tuple[Trait, ...]] = None
    priv_attributes: Optional[tuple[Trait, ...]] = None
    hidden_attributes: Optional[tuple[Trait, ...]] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "img_url": self.img_url,
            "attributes": _traits_to_json(self.attributes),
            "priv_attributes": _traits_to_json(self.priv_attributes),
            "hidden_attributes": _traits_to_json(self.hidden_attributes),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ItemRecord":
        return cls(
            item_id=str(data["id"]),
            img_url=str(data["img_url"]),
            attributes=_traits_from_json(data.get("attributes")),
            priv_attributes=_traits_from_json(data.get("priv_attributes")),
            hidden_attributes=_traits_from_json(data.get("hidden_attributes")),
        )


@dataclass(frozen=True)
class RevenueShare:
    """Revenue recipient; ``percentage`` has four implied decimals (1_000_000 == 100%)."""

    address: str
    percentage: int


@dataclass(frozen=True)
class ExecutionContext:
    """Public context supplied by the host for every request.

    Attributes
    ----------
    caller : str
        Identity that sent the command or event.
    block_height : int
        Height of the block executing the request.
    block_time : int
        Block timestamp in seconds.
    contract_address : str
        Address of this minter.
    contract_code_hash : str
        Code hash of this minter, announced to the payment asset at init.
    """

    caller: str
    block_height: int = 0
    block_time: int = 0
    contract_address: str = ""
    contract_code_hash: str = ""


# -------- inbound commands --------


@dataclass(frozen=True)
class InitializeMinter:
    payment_asset: ContractRef
    entropy: str
    unit_price: int
    max_per_request: int
    admin: Optional[str] = None
    allow_list: tuple[str, ...] = ()
    revenue_split: tuple[RevenueShare, ...] = ()


@dataclass(frozen=True)
class UpdateSaleMode:
    allow_list_enabled: bool
    public_enabled: bool
    unit_price: Optional[int] = None
    max_per_request: Optional[int] = None


@dataclass(frozen=True)
class SetIssuanceTarget:
    contract: ContractRef


@dataclass(frozen=True)
class ChangeAdministrator:
    admin: str


@dataclass(frozen=True)
class PreloadItems:
    items: tuple[ItemRecord, ...]


@dataclass(frozen=True)
class UpdateMetadataEditors:
    addresses: tuple[str, ...]


@dataclass(frozen=True)
class PaymentNotification:
    """Transfer notification forwarded by the payment asset.

    ``payer`` is the requester: it is checked against the allow list, mixed
    into the draw entropy and set as owner of every allocated item.
    """

    sender: str
    payer: str
    amount: int
    msg: bytes


Command = Union[
    UpdateSaleMode,
    SetIssuanceTarget,
    ChangeAdministrator,
    PreloadItems,
    UpdateMetadataEditors,
    PaymentNotification,
]


def encode_mint_request(count: int) -> bytes:
    """Build the payload a requester attaches to its payment transfer."""
    body = json.dumps({"mint_nfts": {"count": count}}).encode("utf-8")
    return base64.b64encode(body)


# -------- outbound instructions --------


@dataclass(frozen=True)
class HiddenAttribute:
    name: str
    value: str

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class MintEntry:
    """One item of a batch issuance instruction."""

    token_id: str
    owner: str
    public_metadata: dict[str, Any]
    private_metadata: dict[str, Any]
    hidden_attributes: tuple[HiddenAttribute, ...]

    def to_json(self) -> dict[str, Any]:
        return {
            "token_id": self.token_id,
            "owner": self.owner,
            "public_metadata": self.public_metadata,
            "private_metadata": self.private_metadata,
            "hidden_attributes": [a.to_json() for a in self.hidden_attributes],
        }


@dataclass(frozen=True)
class BatchMintInstruction:
    contract: ContractRef
    mints: tuple[MintEntry, ...]

    def to_json(self) -> dict[str, Any]:
        return {"batch_mint_nft": {"mints": [m.to_json() for m in self.mints]}}


@dataclass(frozen=True)
class RegisterReceiveInstruction:
    """Ask the payment asset to notify ``code_hash`` of incoming transfers."""

    contract: ContractRef
    code_hash: str

    def to_json(self) -> dict[str, Any]:
        return {"register_receive": {"code_hash": self.code_hash}}


Instruction = Union[BatchMintInstruction, RegisterReceiveInstruction]


@dataclass
class HandleResult:
    """Outcome of a successfully handled request."""

    action: str
    messages: list[Instruction] = field(default_factory=list)
    status: str = "success"

    def to_json(self) -> dict[str, Any]:
        return {self.action: {"status": self.status}}


@dataclass(frozen=True)
class MinterStatus:
    """Read-only snapshot returned by the status query."""

    admin: str
    payment_asset: ContractRef
    issuance_target: Optional[ContractRef]
    unit_price: int
    max_per_request: int
    allow_list_enabled: bool
    public_enabled: bool
    total_issued: Optional[int]
    remaining: int
    total_loaded: int

    def to_json(self) -> dict[str, Any]:
        return {
            "admin": self.admin,
            "payment_asset": self.payment_asset.to_json(),
            "issuance_target": (
                self.issuance_target.to_json() if self.issuance_target else None
            ),
            "unit_price": str(self.unit_price),
            "max_per_request": self.max_per_request,
            "allow_list_enabled": self.allow_list_enabled,
            "public_enabled": self.public_enabled,
            "total_issued": self.total_issued,
            "remaining": self.remaining,
            "total_loaded": self.total_loaded,
        }
