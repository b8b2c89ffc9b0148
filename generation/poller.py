import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .errors import MissingPayloadError, PollTimeoutError


def extract_video_uri(job: Any) -> Optional[str]:
    """First generated-video download reference of a finished job"""

    response = getattr(job, "response", None) or getattr(job, "result", None)
    videos = getattr(response, "generated_videos", None) or []
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None)


class JobPoller:
    """
    Drives a long-running job to completion by re-querying its status
    on a fixed interval.
    """

    def __init__(
        self,
        interval: float = 5.0,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.interval = interval
        self.max_attempts = max_attempts or None
        self.sleep = sleep
        self.logger = logging.getLogger(self.__class__.__name__)

    async def wait(self, job: Any, refresh: Callable[[Any], Awaitable[Any]]) -> Any:
        """
        Poll until the job reports done

        Args:
            job: Handle returned by job creation
            refresh: Status query, bound to the client that created the job

        Returns:
            The finished job handle
        """
        start_time = time.time()
        attempts = 0

        while not getattr(job, "done", False):
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise PollTimeoutError(attempts, time.time() - start_time)

            await self.sleep(self.interval)
            job = await refresh(job)
            attempts += 1
            self.logger.info(f"Job status query {attempts}: done={bool(getattr(job, 'done', False))}")

        self.logger.info(f"Job finished after {attempts} status queries ({time.time() - start_time:.1f}s)")
        return job

    async def wait_for_video(self, job: Any, refresh: Callable[[Any], Awaitable[Any]]) -> str:
        """Poll a video job and return its download reference"""

        job = await self.wait(job, refresh)
        uri = extract_video_uri(job)
        if not uri:
            error = getattr(job, "error", None)
            raise MissingPayloadError("video", str(error) if error else None)
        return uri
