import unittest
from typing import Any

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from mintpool.errors import InvalidRequest, PreconditionFailed, Unauthorized
from mintpool.issuance.api import IssuanceClient
from mintpool.messages import (
    BatchMintInstruction,
    ChangeAdministrator,
    ContractRef,
    ExecutionContext,
    InitializeMinter,
    ItemRecord,
    PaymentNotification,
    PreloadItems,
    RegisterReceiveInstruction,
    RevenueShare,
    SetIssuanceTarget,
    UpdateMetadataEditors,
    UpdateSaleMode,
    encode_mint_request,
)
from mintpool.models import (
    AllowListEntry,
    Base,
    InventoryCounter,
    ItemSlot,
    MinterConfig,
    PrngSeed,
)
from mintpool.draw import hash_entropy
from mintpool.workflows import dispatch, initialize_minter, query_status

ADMIN = "admin"
PAYMENT = ContractRef("payment-asset", "payment-hash")
ISSUER = ContractRef("issuer", "issuer-hash")


class DummyClient(IssuanceClient):
    def __init__(self, issued: int = 0):
        self.issued = issued
        self.delivered: list[Any] = []
        self.queried: list[ContractRef] = []

    def deliver(self, messages):
        self.delivered.extend(messages)
        return [{"status": "ok"} for _ in messages]

    def num_tokens(self, contract: ContractRef) -> int:
        self.queried.append(contract)
        return self.issued


class InitializeMinterTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.env = ExecutionContext(caller="deployer", contract_code_hash="minter-hash")

    def tearDown(self):
        self.engine.dispose()

    def _msg(self, **overrides) -> InitializeMinter:
        values: dict[str, Any] = dict(
            payment_asset=PAYMENT,
            entropy="seed words",
            unit_price=5,
            max_per_request=2,
            allow_list=("alice", "bob", "alice"),
            revenue_split=(RevenueShare("treasury", 1_000_000),),
        )
        values.update(overrides)
        return InitializeMinter(**values)

    def test_initialize_creates_state_and_registration(self):
        with self.Session.begin() as session:
            result = initialize_minter(session, self.env, self._msg())

        (instruction,) = result.messages
        self.assertIsInstance(instruction, RegisterReceiveInstruction)
        self.assertEqual(instruction.contract, PAYMENT)
        self.assertEqual(instruction.code_hash, "minter-hash")

        with self.Session() as session:
            config = MinterConfig.load(session)
            self.assertEqual(config.admin, "deployer")
            self.assertFalse(config.allow_list_enabled)
            self.assertFalse(config.public_enabled)
            self.assertIsNone(config.issuance_target)
            self.assertEqual(config.metadata_editors, [])
            self.assertEqual(PrngSeed.load(session), hash_entropy("seed words"))
            counter = InventoryCounter.load(session)
            self.assertEqual((counter.total_loaded, counter.remaining), (0, 0))
            addresses = session.scalars(select(AllowListEntry.address)).all()
            self.assertEqual(sorted(addresses), ["alice", "bob"])

    def test_explicit_admin_overrides_caller(self):
        with self.Session.begin() as session:
            initialize_minter(session, self.env, self._msg(admin="owner"))
        with self.Session() as session:
            self.assertEqual(MinterConfig.load(session).admin, "owner")

    def test_initialize_twice_fails(self):
        with self.Session.begin() as session:
            initialize_minter(session, self.env, self._msg())
        with self.Session.begin() as session:
            with self.assertRaises(PreconditionFailed):
                initialize_minter(session, self.env, self._msg())

    def test_invalid_settings_are_rejected(self):
        bad = [
            dict(unit_price=-1),
            dict(max_per_request=0),
            dict(revenue_split=(RevenueShare("a", 700_000), RevenueShare("b", 400_000))),
        ]
        for overrides in bad:
            with self.subTest(overrides=overrides):
                with self.Session() as session:
                    with self.assertRaises(InvalidRequest):
                        initialize_minter(session, self.env, self._msg(**overrides))
                    session.rollback()


class AdminCommandTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.admin_env = ExecutionContext(caller=ADMIN)
        with self.Session.begin() as session:
            initialize_minter(
                session,
                self.admin_env,
                InitializeMinter(
                    payment_asset=PAYMENT,
                    entropy="admin tests",
                    unit_price=3,
                    max_per_request=4,
                ),
            )

    def tearDown(self):
        self.engine.dispose()

    def _dispatch(self, command, caller: str = ADMIN, **kwargs):
        with self.Session.begin() as session:
            return dispatch(session, ExecutionContext(caller=caller), command, **kwargs)

    def test_admin_commands_reject_other_callers(self):
        commands = [
            UpdateSaleMode(True, True),
            SetIssuanceTarget(ISSUER),
            ChangeAdministrator("mallory"),
            PreloadItems((ItemRecord("1", "ipfs://1"),)),
            UpdateMetadataEditors(("mallory",)),
        ]
        for command in commands:
            with self.subTest(command=type(command).__name__):
                with self.assertRaises(Unauthorized):
                    self._dispatch(command, caller="mallory")

        with self.Session() as session:
            config = MinterConfig.load(session)
            self.assertEqual(config.admin, ADMIN)
            self.assertFalse(config.minting_enabled)
            self.assertEqual(InventoryCounter.load(session).total_loaded, 0)

    def test_update_sale_mode_result(self):
        result = self._dispatch(UpdateSaleMode(True, False, unit_price=9))
        self.assertEqual(result.to_json(), {"update_mint": {"status": "success"}})
        with self.Session() as session:
            config = MinterConfig.load(session)
            self.assertEqual((config.allow_list_enabled, config.public_enabled), (True, False))
            self.assertEqual(config.unit_price, 9)
            self.assertEqual(config.max_per_request, 4)

    def test_issuance_target_locked_while_selling(self):
        self._dispatch(UpdateSaleMode(False, True))
        with self.assertRaises(PreconditionFailed):
            self._dispatch(SetIssuanceTarget(ISSUER))

        self._dispatch(UpdateSaleMode(False, False))
        self._dispatch(SetIssuanceTarget(ISSUER))
        with self.Session() as session:
            self.assertEqual(MinterConfig.load(session).issuance_target, ISSUER)

    def test_change_administrator_hands_over_control(self):
        self._dispatch(ChangeAdministrator("successor"))
        with self.assertRaises(Unauthorized):
            self._dispatch(UpdateSaleMode(True, True))
        self._dispatch(UpdateSaleMode(True, True), caller="successor")

    def test_preload_blocked_once_drawing_started(self):
        self._dispatch(PreloadItems(tuple(ItemRecord(str(n), f"ipfs://{n}") for n in range(1, 4))))
        self._dispatch(PreloadItems((ItemRecord("4", "ipfs://4"),)))
        self._dispatch(SetIssuanceTarget(ISSUER))
        self._dispatch(UpdateSaleMode(False, True))

        self._dispatch(
            PaymentNotification("bob", "bob", 3, encode_mint_request(1)),
            caller=PAYMENT.address,
        )
        with self.assertRaises(PreconditionFailed):
            self._dispatch(PreloadItems((ItemRecord("5", "ipfs://5"),)))

        with self.Session() as session:
            counter = InventoryCounter.load(session)
            self.assertEqual((counter.total_loaded, counter.remaining), (4, 3))

    def test_preload_from_json_payload(self):
        payload = [
            {
                "id": "11",
                "img_url": "ipfs://11",
                "attributes": [
                    {"display_type": None, "trait_type": "Shell", "value": "gold", "max_value": None}
                ],
                "priv_attributes": None,
                "hidden_attributes": [
                    {"display_type": "number", "trait_type": "Luck", "value": "7", "max_value": "10"}
                ],
            },
            {
                "id": 12,
                "img_url": "ipfs://12",
            },
        ]
        items = tuple(ItemRecord.from_json(entry) for entry in payload)
        self._dispatch(PreloadItems(items))

        with self.Session() as session:
            first = ItemSlot.load(session, 1).to_record()
            second = ItemSlot.load(session, 2).to_record()
        self.assertEqual(first.to_json(), payload[0])
        self.assertEqual(first.hidden_attributes[0].max_value, "10")
        self.assertEqual(second.item_id, "12")
        self.assertIsNone(second.attributes)

    def test_update_metadata_editors_replaces_list(self):
        self._dispatch(UpdateMetadataEditors(("a", "b", "a")))
        self._dispatch(UpdateMetadataEditors(("b", "c")))
        with self.Session() as session:
            config = MinterConfig.load(session)
            self.assertEqual(sorted(e.address for e in config.metadata_editors), ["b", "c"])

    def test_dispatch_delivers_outbound_instructions(self):
        self._dispatch(PreloadItems((ItemRecord("1", "ipfs://1"),)))
        self._dispatch(SetIssuanceTarget(ISSUER))
        self._dispatch(UpdateSaleMode(False, True))

        client = DummyClient()
        result = self._dispatch(
            PaymentNotification("bob", "bob", 3, encode_mint_request(1)),
            caller=PAYMENT.address,
            client=client,
        )
        self.assertEqual(client.delivered, result.messages)
        self.assertIsInstance(client.delivered[0], BatchMintInstruction)

        # nothing to deliver for admin commands
        self._dispatch(UpdateSaleMode(False, False), client=client)
        self.assertEqual(len(client.delivered), 1)

    def test_dispatch_rejects_unknown_command(self):
        with self.assertRaises(InvalidRequest):
            self._dispatch(object())


class QueryStatusTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        env = ExecutionContext(caller=ADMIN)
        with self.Session.begin() as session:
            initialize_minter(
                session,
                env,
                InitializeMinter(
                    payment_asset=PAYMENT,
                    entropy="status",
                    unit_price=7,
                    max_per_request=2,
                ),
            )
            dispatch(session, env, PreloadItems((ItemRecord("1", "a"), ItemRecord("2", "b"))))

    def tearDown(self):
        self.engine.dispose()

    def test_status_before_issuance_target(self):
        client = DummyClient(issued=99)
        with self.Session() as session:
            status = query_status(session, client=client)
        self.assertIsNone(status.issuance_target)
        self.assertIsNone(status.total_issued)
        self.assertEqual(client.queried, [])
        self.assertEqual((status.remaining, status.total_loaded), (2, 2))

    def test_status_reports_issued_count(self):
        with self.Session.begin() as session:
            dispatch(session, ExecutionContext(caller=ADMIN), SetIssuanceTarget(ISSUER))
            dispatch(session, ExecutionContext(caller=ADMIN), UpdateSaleMode(True, False))

        client = DummyClient(issued=12)
        with self.Session() as session:
            status = query_status(session, client=client)

        self.assertEqual(client.queried, [ISSUER])
        self.assertEqual(status.total_issued, 12)
        data = status.to_json()
        self.assertEqual(data["admin"], ADMIN)
        self.assertEqual(data["issuance_target"], ISSUER.to_json())
        self.assertEqual(data["unit_price"], "7")
        self.assertEqual(data["max_per_request"], 2)
        self.assertTrue(data["allow_list_enabled"])
        self.assertFalse(data["public_enabled"])
        self.assertEqual(data["remaining"], 2)


if __name__ == "__main__":
    unittest.main()
