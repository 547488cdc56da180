import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

JWT_PATH = "/api/v1/auth/jwt-token"


def gateway_base_url(base_fqdn: Optional[str] = None) -> str:
    """Return ``https://<fqdn>`` for the issuance gateway.

    Raises
    ------
    ValueError
        If neither ``base_fqdn`` nor ``ISSUANCE_BASE_FQDN`` is set.
    """
    fqdn = base_fqdn or os.getenv("ISSUANCE_BASE_FQDN")
    if not fqdn:
        raise ValueError("Environment variable 'ISSUANCE_BASE_FQDN' is not set")
    return f"https://{fqdn}".rstrip("/")


def open_session(base_url: str) -> tuple[requests.Session, str]:
    """Open a session against the gateway and pick up its CSRF cookie.

    Raises
    ------
    RuntimeError
        If the gateway is unreachable or hands out no CSRF token. The original
        error is chained.
    """
    session = requests.Session()
    try:
        response = session.get(base_url)
        response.raise_for_status()
        csrf_token = response.cookies.get("csrftoken") or session.cookies.get("csrftoken")
        if not csrf_token:
            raise RuntimeError("Server did not return a CSRF token")
    except Exception as e:
        session.close()
        logger.critical("Could not open issuance gateway session: %s", e)
        raise RuntimeError(f"Failed to establish session: {e}") from e

    # Cookie values stay out of the logs.
    logger.debug("Gateway session open with %d cookies", len(session.cookies))
    return session, csrf_token


def get_jwt_token(session: requests.Session, base_url: str) -> str:
    """Log in with ``ISSUANCE_ADMIN_USERNAME``/``ISSUANCE_ADMIN_PASSWORD``.

    Returns
    -------
    str
        The ``access`` token from the login response.

    Raises
    ------
    RuntimeError
        If the credentials are not configured.
    requests.HTTPError
        If the gateway rejects the login.
    """
    username = os.getenv("ISSUANCE_ADMIN_USERNAME")
    password = os.getenv("ISSUANCE_ADMIN_PASSWORD")
    if not username or not password:
        raise RuntimeError("Issuance gateway credentials are not configured")

    logger.debug("Requesting JWT for gateway user %s", username)
    response = session.post(
        base_url + JWT_PATH, json={"username": username, "password": password}
    )
    response.raise_for_status()
    return response.json()["access"]
