"""
Credential gate.

The host environment may offer an interactive way to pick an access
credential. Both capabilities are optional: without a host the gate is
always ready and re-selection is a no-op.
"""

import asyncio
import getpass
import inspect
import logging
from typing import Optional, Protocol

from config import settings as default_settings


class CredentialHost(Protocol):
    """Host integration; any subset of these methods may be provided, each sync or async"""

    def has_selected_credential(self) -> bool:
        ...

    def open_credential_selector(self) -> None:
        ...

    def selected_credential(self) -> Optional[str]:
        ...


async def _call(method):
    result = method()
    if inspect.isawaitable(result):
        result = await result
    return result


class CredentialGate:
    """Tracks whether a usable credential is selected and re-selects on demand"""

    def __init__(self, host: Optional[CredentialHost] = None, fallback_credential: Optional[str] = None):
        self.host = host
        self.fallback_credential = (
            fallback_credential if fallback_credential is not None else default_settings.google_api_key
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def can_request_selection(self) -> bool:
        return callable(getattr(self.host, "open_credential_selector", None))

    async def is_ready(self) -> bool:
        check = getattr(self.host, "has_selected_credential", None)
        if not callable(check):
            # Assume the credential was configured out of band
            return True
        return bool(await _call(check))

    async def request_selection(self) -> None:
        if not self.can_request_selection:
            self.logger.debug("No interactive credential selector available")
            return
        self.logger.info("Opening credential selector")
        await _call(self.host.open_credential_selector)

    async def credential(self) -> Optional[str]:
        """Credential to bind the next client to; re-read after every selection"""
        getter = getattr(self.host, "selected_credential", None)
        if callable(getter):
            selected = await _call(getter)
            if selected:
                return selected
        return self.fallback_credential


class ConsoleCredentialHost:
    """Interactive host for terminal sessions: re-selection prompts for a key"""

    def __init__(self, initial_credential: Optional[str] = None, prompt: str = "Google API key: "):
        self._credential = initial_credential
        self.prompt = prompt
        self.logger = logging.getLogger(self.__class__.__name__)

    def has_selected_credential(self) -> bool:
        return bool(self._credential)

    async def open_credential_selector(self) -> None:
        entered = await asyncio.to_thread(getpass.getpass, self.prompt)
        entered = entered.strip()
        if entered:
            self._credential = entered
            self.logger.info("New API key selected")
        else:
            self.logger.warning("Empty API key entered, keeping previous selection")

    def selected_credential(self) -> Optional[str]:
        return self._credential
