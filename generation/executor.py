"""
Request executor with single-shot credential recovery.

Every remote call goes through RequestExecutor.execute. A 404 /
"entity not found" failure usually means the selected key belongs to a
project without access; when the host can re-select a credential the
operation is retried exactly once on a fresh client.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from google import genai

from .credentials import CredentialGate

T = TypeVar("T")

_NOT_FOUND_PATTERN = re.compile(r"not found|404", re.IGNORECASE)


@dataclass(frozen=True)
class BoundClient:
    """A service client together with the credential it was built with"""
    client: Any
    credential: Optional[str]


ClientFactory = Callable[[Optional[str]], Any]


def default_client_factory(credential: Optional[str]) -> genai.Client:
    if credential:
        return genai.Client(api_key=credential)
    # Let the SDK resolve GOOGLE_API_KEY / GEMINI_API_KEY itself
    return genai.Client()


def is_entity_not_found(error: BaseException) -> bool:
    """True for failures recoverable by re-selecting the credential"""

    for attr in ("code", "status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and value == 404:
            return True

    message = getattr(error, "message", None) or str(error)
    return bool(message and _NOT_FOUND_PATTERN.search(str(message)))


class RequestExecutor:
    """Runs remote operations against a client bound to the current credential"""

    def __init__(self, gate: Optional[CredentialGate] = None, client_factory: Optional[ClientFactory] = None):
        self.gate = gate or CredentialGate()
        self.client_factory = client_factory or default_client_factory
        self.logger = logging.getLogger(self.__class__.__name__)

    async def bind(self) -> BoundClient:
        """Build a fresh client for the credential selected right now"""
        credential = await self.gate.credential()
        return BoundClient(client=self.client_factory(credential), credential=credential)

    async def execute(self, operation: Callable[[BoundClient], Awaitable[T]]) -> T:
        bound = await self.bind()
        try:
            return await operation(bound)
        except Exception as e:
            not_found = e
            if not is_entity_not_found(e):
                raise
            if not self.gate.can_request_selection:
                self.logger.error(f"Entity not found and no credential selector available: {e}")
                raise

            self.logger.warning(f"Entity not found (404), prompting for credential re-selection: {e}")

        try:
            await self.gate.request_selection()
        except Exception as e:
            raise e from not_found

        retry_bound = await self.bind()
        # A second failure propagates; recovery is attempted once per call
        return await operation(retry_bound)
