import logging
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.orm import Session

from .allocation import AllocationHandler, MetadataTemplate
from .draw.entropy import hash_entropy
from .errors import InvalidRequest, PreconditionFailed
from .messages import (
    ChangeAdministrator,
    Command,
    ContractRef,
    ExecutionContext,
    HandleResult,
    InitializeMinter,
    ItemRecord,
    MinterStatus,
    PaymentNotification,
    PreloadItems,
    RegisterReceiveInstruction,
    SetIssuanceTarget,
    UpdateMetadataEditors,
    UpdateSaleMode,
)
from .models import (
    AllowListEntry,
    InventoryCounter,
    MinterConfig,
    PrngSeed,
)

if TYPE_CHECKING:
    from .issuance.api import IssuanceClient

logger = logging.getLogger(__name__)


def initialize_minter(
    session: Session,
    env: ExecutionContext,
    msg: InitializeMinter,
) -> HandleResult:
    """Create the minter state and ask the payment asset to notify it.

    The workflow performs these steps:

    1. Store the configuration with both sale modes disabled and no issuance
       target. The administrator defaults to ``env.caller``.
    2. Hash ``msg.entropy`` into the persistent PRNG secret.
    3. Create zeroed inventory counters.
    4. Register an unused allow-list entry per listed identity.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    env : ExecutionContext
        Host context of the initialization request.
    msg : InitializeMinter
        Initial settings.

    Returns
    -------
    HandleResult
        Result carrying a :class:`RegisterReceiveInstruction` addressed to the
        payment asset.

    Raises
    ------
    PreconditionFailed
        If the minter has already been initialized.
    InvalidRequest
        If the price, cap or revenue split is out of range.
    """
    if MinterConfig.get(session) is not None:
        raise PreconditionFailed("Minter is already initialized")
    if msg.unit_price < 0:
        raise InvalidRequest("unit_price must be non-negative")
    if msg.max_per_request < 1:
        raise InvalidRequest("max_per_request must be at least 1")

    config = MinterConfig(
        id=MinterConfig.SINGLETON_ID,
        admin=msg.admin or env.caller,
        payment_asset_address=msg.payment_asset.address,
        payment_asset_code_hash=msg.payment_asset.code_hash,
        issuance_address=None,
        issuance_code_hash=None,
        unit_price=msg.unit_price,
        max_per_request=msg.max_per_request,
        allow_list_enabled=False,
        public_enabled=False,
    )
    config.replace_revenue_splits(msg.revenue_split)
    session.add(config)
    session.add(PrngSeed(id=PrngSeed.SINGLETON_ID, seed=hash_entropy(msg.entropy)))
    session.add(
        InventoryCounter(id=InventoryCounter.SINGLETON_ID, total_loaded=0, remaining=0)
    )
    added = AllowListEntry.register(session, msg.allow_list)
    session.flush()

    logger.info("Minter initialized for admin %s with %d allow-list entries", config.admin, added)
    return HandleResult(
        action="init",
        messages=[
            RegisterReceiveInstruction(
                contract=msg.payment_asset, code_hash=env.contract_code_hash
            )
        ],
    )


def update_sale_mode(
    session: Session,
    env: ExecutionContext,
    allow_list_enabled: bool,
    public_enabled: bool,
    unit_price: Optional[int] = None,
    max_per_request: Optional[int] = None,
) -> HandleResult:
    """Overwrite both sale-mode flags and optionally the price and cap."""
    config = MinterConfig.load(session)
    config.require_admin(env.caller)
    config.update_sale_mode(
        allow_list_enabled,
        public_enabled,
        unit_price=unit_price,
        max_per_request=max_per_request,
    )
    session.flush()
    logger.info(
        "Sale mode updated: allow_list=%s public=%s", allow_list_enabled, public_enabled
    )
    return HandleResult(action="update_mint")


def set_issuance_target(
    session: Session, env: ExecutionContext, contract: ContractRef
) -> HandleResult:
    """Point the minter at the issuance component. Both sale modes must be off."""
    config = MinterConfig.load(session)
    config.require_admin(env.caller)
    config.set_issuance_target(contract)
    session.flush()
    logger.info("Issuance target set to %s", contract.address)
    return HandleResult(action="add_nft_contract")


def change_administrator(
    session: Session, env: ExecutionContext, admin: str
) -> HandleResult:
    """Hand administrative control to ``admin``."""
    config = MinterConfig.load(session)
    config.require_admin(env.caller)
    config.admin = admin
    session.flush()
    logger.info("Administrator changed to %s", admin)
    return HandleResult(action="change_admin")


def preload_items(
    session: Session, env: ExecutionContext, items: Sequence[ItemRecord]
) -> HandleResult:
    """Append ``items`` to the inventory pool.

    Raises
    ------
    Unauthorized
        If the caller is not the administrator.
    PreconditionFailed
        If any item has already been drawn.
    """
    config = MinterConfig.load(session)
    config.require_admin(env.caller)
    counter = InventoryCounter.load(session)
    slots = counter.preload(session, items)
    session.flush()
    logger.info("Preloaded %d items, %d in inventory", len(slots), counter.total_loaded)
    return HandleResult(action="load_metadata")


def update_metadata_editors(
    session: Session, env: ExecutionContext, addresses: Sequence[str]
) -> HandleResult:
    """Replace the whole list of identities allowed to edit item metadata."""
    config = MinterConfig.load(session)
    config.require_admin(env.caller)
    config.replace_metadata_editors(addresses)
    session.flush()
    logger.info("Metadata editors replaced: %d entries", len(config.metadata_editors))
    return HandleResult(action="update_change_metadata_permited_addresses")


def receive_payment(
    session: Session,
    env: ExecutionContext,
    notification: PaymentNotification,
    *,
    template: Optional[MetadataTemplate] = None,
) -> HandleResult:
    """Allocate items for a payment notification.

    This function essentially wraps :class:`AllocationHandler`.
    """
    handler = AllocationHandler(session, template=template)
    return handler.handle(env, notification)


def dispatch(
    session: Session,
    env: ExecutionContext,
    command: Command,
    *,
    client: Optional["IssuanceClient"] = None,
) -> HandleResult:
    """Route ``command`` to its handler.

    When ``client`` is given, the outbound instructions of a successful
    request are delivered through it before returning.
    """
    logger.debug("Dispatching %s from %s", type(command).__name__, env.caller)
    if isinstance(command, PaymentNotification):
        result = receive_payment(session, env, command)
    elif isinstance(command, UpdateSaleMode):
        result = update_sale_mode(
            session,
            env,
            command.allow_list_enabled,
            command.public_enabled,
            unit_price=command.unit_price,
            max_per_request=command.max_per_request,
        )
    elif isinstance(command, SetIssuanceTarget):
        result = set_issuance_target(session, env, command.contract)
    elif isinstance(command, ChangeAdministrator):
        result = change_administrator(session, env, command.admin)
    elif isinstance(command, PreloadItems):
        result = preload_items(session, env, command.items)
    elif isinstance(command, UpdateMetadataEditors):
        result = update_metadata_editors(session, env, command.addresses)
    else:
        raise InvalidRequest(f"Unsupported command: {type(command).__name__}")

    if client is not None and result.messages:
        client.deliver(result.messages)
    return result


def query_status(
    session: Session, *, client: Optional["IssuanceClient"] = None
) -> MinterStatus:
    """Return a read-only snapshot of the minter.

    ``total_issued`` is asked from the issuance component; it is ``None`` while
    no issuance target is set. If ``client`` is not provided, a default
    :class:`~mintpool.issuance.api.IssuanceClient` is created.
    """
    config = MinterConfig.load(session)
    counter = InventoryCounter.load(session)

    target = config.issuance_target
    total_issued: Optional[int] = None
    if target is not None:
        if client is None:
            from .issuance.api import IssuanceClient

            client = IssuanceClient()
        total_issued = client.num_tokens(target)

    return MinterStatus(
        admin=config.admin,
        payment_asset=config.payment_asset,
        issuance_target=target,
        unit_price=config.unit_price,
        max_per_request=config.max_per_request,
        allow_list_enabled=config.allow_list_enabled,
        public_enabled=config.public_enabled,
        total_issued=total_issued,
        remaining=counter.remaining,
        total_loaded=counter.total_loaded,
    )
