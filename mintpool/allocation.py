"""Allocation of preloaded items in exchange for an exact payment."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session

from .draw.engine import DrawEngine, InventoryStaging
from .draw.entropy import derive_seed
from .errors import (
    AlreadyClaimed,
    CapExceeded,
    InsufficientInventory,
    InvalidRequest,
    InventoryExhausted,
    MintingDisabled,
    NotConfigured,
    NotEligible,
    PaymentMismatch,
    Unauthorized,
)
from .messages import (
    BatchMintInstruction,
    ContractRef,
    ExecutionContext,
    HandleResult,
    HiddenAttribute,
    ItemRecord,
    MintEntry,
    PaymentNotification,
)
from .models import AllowListEntry, AllowListStatus, MinterConfig, PrngSeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataTemplate:
    """Fixed metadata attached to every allocated item.

    Attributes
    ----------
    name_prefix : str
        Prepended to the item identifier to form the display name.
    counter_traits : tuple[str, ...]
        Public numeric traits, all starting at ``"0"``.
    category : str
        Value of the private ``Category`` trait.
    secondary_trait : str
        Name of the hidden attribute carrying the secondary random value.
    media_file_type, media_extension : str
        Describe the media reference of the item.
    """

    name_prefix: str = "Mintpool Item #"
    counter_traits: tuple[str, ...] = ("Wins", "Loses")
    category: str = "Genesis"
    secondary_trait: str = "speed"
    media_file_type: str = "image"
    media_extension: str = "gif"

    def _media(self, record: ItemRecord) -> list[dict]:
        return [
            {
                "file_type": self.media_file_type,
                "extension": self.media_extension,
                "authentication": {"key": "", "user": ""},
                "url": record.img_url,
            }
        ]

    def _section(self, name: str, attributes: list[dict], record: ItemRecord) -> dict:
        return {
            "token_uri": None,
            "extension": {
                "name": name,
                "attributes": attributes,
                "media": self._media(record),
            },
        }

    def build(self, record: ItemRecord, owner: str, secondary: int) -> MintEntry:
        name = f"{self.name_prefix}{record.item_id}"
        public = [
            {"display_type": None, "trait_type": t, "value": "0", "max_value": None}
            for t in self.counter_traits
        ]
        private = [
            {
                "display_type": None,
                "trait_type": "Category",
                "value": self.category,
                "max_value": None,
            }
        ]
        return MintEntry(
            token_id=record.item_id,
            owner=owner,
            public_metadata=self._section(name, public, record),
            private_metadata=self._section(name, private, record),
            hidden_attributes=(HiddenAttribute(self.secondary_trait, str(secondary)),),
        )


DEFAULT_TEMPLATE = MetadataTemplate()


def decode_mint_request(msg: Union[bytes, str]) -> int:
    """Return the item count requested by a payment payload.

    The payload is base64-encoded JSON of the form
    ``{"mint_nfts": {"count": N}}`` with ``N >= 1``.
    """
    try:
        raw = base64.b64decode(msg, validate=True)
        body = json.loads(raw)
        count = body["mint_nfts"]["count"]
    except (binascii.Error, ValueError, KeyError, TypeError) as exc:
        raise InvalidRequest(f"Receive handler not found: {exc}") from exc

    if not isinstance(count, int) or isinstance(count, bool) or count < 1:
        raise InvalidRequest("count must be a positive integer")
    return count


class AllocationHandler:
    """Runs one allocation request against the minter state.

    All checks run before any state changes. Draws go through an
    :class:`InventoryStaging` view that is only committed once every draw in
    the batch has succeeded.
    """

    def __init__(
        self,
        session: Session,
        *,
        template: Optional[MetadataTemplate] = None,
    ) -> None:
        self._session = session
        self._template = template or DEFAULT_TEMPLATE

    def handle(
        self, env: ExecutionContext, notification: PaymentNotification
    ) -> HandleResult:
        """Handle a payment notification forwarded by the payment asset.

        Parameters
        ----------
        env : ExecutionContext
            Host context. ``env.caller`` must be the configured payment asset.
        notification : PaymentNotification
            Transfer details; ``payer`` is the requester.

        Returns
        -------
        HandleResult
            Result carrying one :class:`BatchMintInstruction`.
        """
        config = MinterConfig.load(self._session)
        if env.caller != config.payment_asset_address:
            raise Unauthorized("Invalid token sent!")
        count = decode_mint_request(notification.msg)
        return self.allocate(
            env,
            requester=notification.payer,
            amount=notification.amount,
            count=count,
        )

    def allocate(
        self,
        env: ExecutionContext,
        *,
        requester: str,
        amount: int,
        count: int,
    ) -> HandleResult:
        """Allocate ``count`` items to ``requester`` for ``amount``.

        Raises
        ------
        InvalidRequest
            If ``count`` is not a positive integer. Nothing is checked or
            written in that case.

        Notes
        -----
        The request goes through these states, stopping at the first failure:

        1. Configuration check (target set, inventory, cap, sale mode).
        2. Exact payment check.
        3. Allow-list admission, when allow-list mode is active.
        4. ``count`` draws with batch indices ``1..count``.
        5. Commit of staged writes and emission of the batch instruction.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidRequest("count must be a positive integer")

        config = MinterConfig.load(self._session)
        staging = InventoryStaging(self._session)

        target = self._check_config(config, staging.remaining, count)
        self._check_payment(config, amount, count)
        entry = self._check_admission(config, requester)

        secret = PrngSeed.load(self._session)
        engine = DrawEngine(staging)
        mints: list[MintEntry] = []
        for index in range(1, count + 1):
            seed = derive_seed(
                secret,
                block_height=env.block_height,
                block_time=env.block_time,
                requester=requester,
                index=index,
            )
            drawn = engine.draw(seed)
            mints.append(self._template.build(drawn.record, requester, drawn.secondary))

        staging.commit()
        if entry is not None:
            entry.mark_used()
        self._session.flush()

        logger.info(
            "Allocated %d items to %s, %d remaining", count, requester, staging.remaining
        )
        return HandleResult(
            action="mint_nfts",
            messages=[BatchMintInstruction(contract=target, mints=tuple(mints))],
        )

    @staticmethod
    def _check_config(
        config: MinterConfig, remaining: int, count: int
    ) -> ContractRef:
        target = config.issuance_target
        if target is None:
            raise NotConfigured("No NFT contract set")
        if remaining == 0:
            raise InventoryExhausted("All tokens have been minted")
        if count > remaining:
            raise InsufficientInventory(
                f"Not enough tokens left for this request: {count} > {remaining}"
            )
        if count > config.max_per_request:
            raise CapExceeded(
                f"Requested mint count is too high, max is {config.max_per_request}"
            )
        if not config.minting_enabled:
            raise MintingDisabled("Mint is not enabled!")
        return target

    @staticmethod
    def _check_payment(config: MinterConfig, amount: int, count: int) -> None:
        expected = config.unit_price * count
        if amount != expected:
            raise PaymentMismatch(
                f"Incorrect amount of tokens received {amount} != {expected}"
            )

    def _check_admission(
        self, config: MinterConfig, requester: str
    ) -> Optional[AllowListEntry]:
        """Return the allow-list entry to consume, if any.

        Public mode lets unlisted and already-used identities through; the
        entry is only consumed while it is still unused.
        """
        if not config.allow_list_enabled:
            return None

        entry = self._session.get(AllowListEntry, requester)
        status = entry.state if entry is not None else AllowListStatus.UNLISTED

        if status is AllowListStatus.ELIGIBLE_UNUSED:
            return entry
        if config.public_enabled:
            return None
        if status is AllowListStatus.ELIGIBLE_USED:
            raise AlreadyClaimed(
                "Allow-list only: this address already used its allocation"
            )
        raise NotEligible("Allow-list only: this address is not eligible")


__all__ = [
    "AllocationHandler",
    "DEFAULT_TEMPLATE",
    "MetadataTemplate",
    "decode_mint_request",
]
