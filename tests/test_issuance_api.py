import os
import unittest
from unittest.mock import patch

from mintpool.issuance.api import IssuanceClient
from mintpool.issuance.utils import gateway_base_url, get_jwt_token
from mintpool.messages import (
    BatchMintInstruction,
    ContractRef,
    HiddenAttribute,
    MintEntry,
    RegisterReceiveInstruction,
)

ISSUER = ContractRef("issuer-addr", "issuer-hash")


class DummyResponse:
    def __init__(self, json_data=None, content: bytes = b""):
        self._json = json_data
        if json_data is not None and not content:
            import json as _json

            content = _json.dumps(json_data).encode()
        self.content = content

    def json(self):
        return self._json

    def raise_for_status(self):
        pass


class DummySession:
    def __init__(self, response: DummyResponse):
        self.response = response
        self.calls = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "json": json,
                "timeout": timeout,
            }
        )
        return self.response


class TestIssuanceClient(unittest.TestCase):
    def _client(self, mock_open_session, response: DummyResponse):
        session = DummySession(response)
        mock_open_session.return_value = (session, "csrf-token")
        return IssuanceClient(base_fqdn="gateway.example.com"), session

    @patch("mintpool.issuance.api.open_session")
    @patch("mintpool.issuance.api.load_dotenv")
    def test_requires_fqdn(self, mock_load_dotenv, mock_open_session):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                IssuanceClient()
        mock_open_session.assert_not_called()

    @patch("mintpool.issuance.api.get_jwt_token", return_value="jwt-token")
    @patch("mintpool.issuance.api.open_session")
    def test_init_sets_base_url_and_tokens(self, mock_open_session, mock_get_jwt):
        client, _ = self._client(mock_open_session, DummyResponse(json_data={}))
        self.assertEqual(client.base_url, "https://gateway.example.com")
        self.assertEqual(client.csrf, "csrf-token")
        self.assertEqual(client.jwt, "jwt-token")
        mock_open_session.assert_called_once_with("https://gateway.example.com")
        mock_get_jwt.assert_called_once_with(client.session, "https://gateway.example.com")

    @patch("mintpool.issuance.api.get_jwt_token", return_value="jwt-token")
    @patch("mintpool.issuance.api.open_session")
    def test_execute_posts_with_csrf(self, mock_open_session, mock_get_jwt):
        client, session = self._client(
            mock_open_session, DummyResponse(json_data={"ok": True})
        )
        result = client.execute(ISSUER, {"ping": {}})

        self.assertEqual(result, {"ok": True})
        (call,) = session.calls
        self.assertEqual(call["method"], "POST")
        self.assertEqual(
            call["url"],
            "https://gateway.example.com/api/v1/contracts/issuer-addr/execute",
        )
        self.assertEqual(call["json"], {"code_hash": "issuer-hash", "msg": {"ping": {}}})
        self.assertEqual(call["headers"]["X-CSRFTOKEN"], "csrf-token")
        self.assertEqual(call["headers"]["Authorization"], "Bearer jwt-token")
        self.assertEqual(call["timeout"], 45)

    @patch("mintpool.issuance.api.get_jwt_token", return_value="jwt-token")
    @patch("mintpool.issuance.api.open_session")
    def test_num_tokens_reads_count(self, mock_open_session, mock_get_jwt):
        client, session = self._client(
            mock_open_session, DummyResponse(json_data={"num_tokens": {"count": 17}})
        )
        self.assertEqual(client.num_tokens(ISSUER), 17)
        (call,) = session.calls
        self.assertTrue(call["url"].endswith("/issuer-addr/query"))
        self.assertEqual(call["json"]["msg"], {"num_tokens": {}})
        self.assertNotIn("X-CSRFTOKEN", call["headers"])

        session.response = DummyResponse(json_data=["unexpected"])
        with self.assertRaises(RuntimeError):
            client.num_tokens(ISSUER)

    @patch("mintpool.issuance.api.get_jwt_token", return_value="jwt-token")
    @patch("mintpool.issuance.api.open_session")
    def test_deliver_routes_each_instruction(self, mock_open_session, mock_get_jwt):
        client, session = self._client(mock_open_session, DummyResponse())
        mint = MintEntry(
            token_id="7",
            owner="bob",
            public_metadata={"token_uri": None, "extension": {"name": "Item #7"}},
            private_metadata={"token_uri": None, "extension": {}},
            hidden_attributes=(HiddenAttribute("speed", "42"),),
        )
        messages = [
            RegisterReceiveInstruction(ContractRef("asset", "asset-hash"), "minter-hash"),
            BatchMintInstruction(ISSUER, (mint,)),
        ]

        responses = client.deliver(messages)

        self.assertEqual(responses, [None, None])
        register, batch = session.calls
        self.assertTrue(register["url"].endswith("/contracts/asset/execute"))
        self.assertEqual(register["json"]["msg"], messages[0].to_json())
        self.assertTrue(batch["url"].endswith("/contracts/issuer-addr/execute"))
        (sent,) = batch["json"]["msg"]["batch_mint_nft"]["mints"]
        self.assertEqual(sent["token_id"], "7")
        self.assertEqual(sent["owner"], "bob")

    @patch("mintpool.issuance.api.get_jwt_token", return_value="jwt-token")
    @patch("mintpool.issuance.api.open_session")
    def test_deliver_rejects_unknown_instruction(self, mock_open_session, mock_get_jwt):
        client, session = self._client(mock_open_session, DummyResponse())
        with self.assertRaises(TypeError):
            client.deliver([{"transfer": {}}])
        self.assertEqual(session.calls, [])

    @patch("mintpool.issuance.api.get_jwt_token")
    @patch("mintpool.issuance.api.open_session")
    def test_init_reports_session_error(self, mock_open_session, mock_get_jwt):
        mock_open_session.side_effect = RuntimeError("network unreachable")
        with self.assertRaises(RuntimeError) as ctx:
            IssuanceClient(base_fqdn="gateway.example.com")
        self.assertIn("network unreachable", str(ctx.exception))
        mock_get_jwt.assert_not_called()


class TestGatewayHelpers(unittest.TestCase):
    def test_base_url_prefers_argument_over_environment(self):
        with patch.dict(os.environ, {"ISSUANCE_BASE_FQDN": "env.example.com"}):
            self.assertEqual(gateway_base_url(), "https://env.example.com")
            self.assertEqual(gateway_base_url("arg.example.com"), "https://arg.example.com")

    def test_jwt_requires_credentials(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(RuntimeError):
                get_jwt_token(DummySession(DummyResponse()), "https://gateway.example.com")


if __name__ == "__main__":
    unittest.main()
