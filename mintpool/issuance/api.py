import logging
from urllib.parse import urljoin
from dotenv import load_dotenv
from typing import Any, Iterable, Optional, Mapping

from .utils import gateway_base_url, get_jwt_token, open_session
from ..messages import (
    BatchMintInstruction,
    ContractRef,
    Instruction,
    RegisterReceiveInstruction,
)

logger = logging.getLogger(__name__)


class IssuanceClient:
    """HTTP gateway to the external components the minter talks to.

    Outbound instructions produced by the minter are executed against the
    addressed contract, and the issuance component is queried for the number
    of items issued so far.
    """

    def __init__(self, base_fqdn: Optional[str] = None, timeout: int = 45):
        load_dotenv()
        self.base_url = gateway_base_url(base_fqdn)
        self.session, self.csrf = open_session(self.base_url)
        self.jwt = get_jwt_token(self.session, self.base_url)
        self.timeout = timeout

    # -------- headers --------
    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.jwt}"}

    @property
    def auth_csrf_headers(self) -> Mapping[str, str]:
        return {**self.auth_headers, "X-CSRFTOKEN": self.csrf}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.auth_headers,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def execute(self, contract: ContractRef, msg: dict) -> Any:
        """Send ``msg`` to ``contract``."""
        return self._request(
            "POST",
            f"/api/v1/contracts/{contract.address}/execute",
            headers=self.auth_csrf_headers,
            json={"code_hash": contract.code_hash, "msg": msg},
        )

    def query(self, contract: ContractRef, msg: dict) -> Any:
        return self._request(
            "POST",
            f"/api/v1/contracts/{contract.address}/query",
            json={"code_hash": contract.code_hash, "msg": msg},
        )

    def batch_mint(self, instruction: BatchMintInstruction) -> Any:
        logger.debug(
            "Sending batch mint of %d items to %s",
            len(instruction.mints),
            instruction.contract.address,
        )
        return self.execute(instruction.contract, instruction.to_json())

    def register_receive(self, instruction: RegisterReceiveInstruction) -> Any:
        return self.execute(instruction.contract, instruction.to_json())

    def deliver(self, messages: Iterable[Instruction]) -> list[Any]:
        """Execute every outbound instruction in order and collect the responses."""
        responses = []
        for message in messages:
            if isinstance(message, BatchMintInstruction):
                responses.append(self.batch_mint(message))
            elif isinstance(message, RegisterReceiveInstruction):
                responses.append(self.register_receive(message))
            else:
                raise TypeError(f"Unsupported instruction: {message!r}")
        return responses

    def num_tokens(self, contract: ContractRef) -> int:
        """Return how many items the issuance component has minted."""
        response = self.query(contract, {"num_tokens": {}})
        if not isinstance(response, dict):
            raise RuntimeError(f"Unexpected num_tokens response: {response!r}")
        return int(response["num_tokens"]["count"])
