import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .errors import BundleIncompleteError
from .models import AssetBundle, PublishResult, Script


class BasePublisher(ABC):
    """Abstract base class for publish targets"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    async def publish(self, script: Script, bundle: AssetBundle) -> PublishResult:
        if not bundle.is_ready:
            raise BundleIncompleteError(kind.value for kind in bundle.missing)
        return await self._publish(script, bundle)

    @abstractmethod
    async def _publish(self, script: Script, bundle: AssetBundle) -> PublishResult:
        """Upload the finished bundle - must be implemented by publishers"""
        pass


class SimulatedPublisher(BasePublisher):
    """Stands in for a YouTube upload: waits, then reports success"""

    def __init__(self, delay: float = 3.0, channel: Optional[str] = "StoryStream"):
        super().__init__()
        self.delay = delay
        self.channel = channel

    async def _publish(self, script: Script, bundle: AssetBundle) -> PublishResult:
        self.logger.info(f"Uploading '{script.title}' to {self.channel} (simulated)")
        await asyncio.sleep(self.delay)
        return PublishResult(
            success=True,
            message=f"Your video has been compiled and uploaded to the {self.channel} channel.",
        )
