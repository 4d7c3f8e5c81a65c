"""Bearer credential for the remote store."""

import logging

logger = logging.getLogger(__name__)


class TokenProvider:
    """Supplies the credential attached to remote store requests.

    Starts from the configured token (if any) and is replaced by the most
    recent bearer token seen on an incoming API request.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token.strip() if token and token.strip() else None

    def remember(self, token: str | None) -> None:
        if token and token.strip() and token.strip() != self._token:
            self._token = token.strip()
            logger.debug("Remote store credential updated from request")

    def get_credential(self) -> str | None:
        return self._token
