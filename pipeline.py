"""
StoryStream pipeline: find a story, rewrite it as a script, generate the
voiceover / background video / thumbnail, then publish.

A Pipeline instance holds one session. Each asset kind runs in its own
task with its own loading/error state, so the three can be triggered
independently and cancelled when the user navigates away.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from config import Settings, settings as default_settings
from generation.errors import GenerationError, PipelineStateError
from generation.models import (
    AssetBundle,
    AssetKind,
    MediaAsset,
    OperationResult,
    PipelineStep,
    PublishResult,
    Script,
    Story,
    Tone,
)
from generation.publisher import BasePublisher, SimulatedPublisher
from generation.service import NO_RESULTS_TEXT, SCRIPT_FAILED_TEXT, GenerationService

ProgressCallback = Callable[[str, float], None]


class Pipeline:
    def __init__(
        self,
        service: Optional[GenerationService] = None,
        publisher: Optional[BasePublisher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.service = service or GenerationService(settings=self.settings)
        self.publisher = publisher or SimulatedPublisher(delay=self.settings.publish_delay)
        self.logger = logging.getLogger(self.__class__.__name__)
        self._tasks: Dict[AssetKind, asyncio.Task] = {}
        self._reset_state()

    def _reset_state(self):
        self.step = PipelineStep.SEARCH
        self.topic: Optional[str] = None
        self.story: Optional[Story] = None
        self.script: Optional[Script] = None
        self.script_confirmed = False
        self.bundle = AssetBundle()
        self.publish_result: Optional[PublishResult] = None

    # ---- Step 1: search ----

    async def find_stories(self, topic: str) -> OperationResult:
        start_time = time.time()
        self.topic = topic
        try:
            text = await self.service.find_stories(topic)
        except Exception as e:
            self.logger.error(f"Story search failed: {e}")
            return OperationResult(status="failed", error_message=str(e), generation_time=time.time() - start_time)

        status = "empty" if text == NO_RESULTS_TEXT else "ok"
        return OperationResult(status=status, value=text, generation_time=time.time() - start_time)

    def select_story(self, topic: str, raw_text: str) -> Story:
        if not raw_text or raw_text == NO_RESULTS_TEXT:
            raise PipelineStateError("No search results to use")

        # Work started for the previous selection must not outlive it
        self.cancel_all()
        story = Story.from_search(topic, raw_text)
        self.topic = topic
        self.story = story
        self.script = None
        self.script_confirmed = False
        self.step = PipelineStep.SCRIPT
        self.logger.info(f"Selected {story.id}: {story.title}")
        return story

    # ---- Step 2: script ----

    async def write_script(self, tone: Union[Tone, str, None] = None) -> OperationResult:
        if self.story is None:
            raise PipelineStateError("Select a story before writing a script")

        tone = Tone(tone or self.settings.default_tone)
        start_time = time.time()
        try:
            text = await self.service.write_script(self.story.summary, tone)
        except Exception as e:
            self.logger.error(f"Script generation failed: {e}")
            return OperationResult(status="failed", error_message=str(e), generation_time=time.time() - start_time)

        if text == SCRIPT_FAILED_TEXT:
            return OperationResult(status="empty", value=text, generation_time=time.time() - start_time)

        self.script = Script(content=text, tone=tone)
        self.script_confirmed = False
        return OperationResult(status="ok", value=self.script, generation_time=time.time() - start_time)

    def edit_script(self, content: str) -> Script:
        if self.script is None:
            raise PipelineStateError("No script draft to edit")
        if self.script_confirmed:
            raise PipelineStateError("Script already confirmed")

        self.script = Script(title=self.script.title, content=content, tone=self.script.tone)
        return self.script

    def confirm_script(self) -> Script:
        if self.script is None:
            raise PipelineStateError("No script draft to confirm")

        self.script_confirmed = True
        self.cancel_all()
        self.bundle = AssetBundle()
        self.step = PipelineStep.ASSETS
        return self.script

    # ---- Step 3: assets ----

    async def _produce(self, kind: AssetKind) -> MediaAsset:
        if kind is AssetKind.AUDIO:
            return await self.service.generate_voiceover(self.script.content)

        if kind is AssetKind.VIDEO:
            # Video needs a paid project key; ask for one up front
            gate = self.service.executor.gate
            if not await gate.is_ready():
                await gate.request_selection()
            return await self.service.generate_background_video(self.script.content)

        return await self.service.generate_thumbnail(self.topic or (self.story.title if self.story else ""))

    async def generate_asset(self, kind: Union[AssetKind, str]) -> OperationResult:
        kind = AssetKind(kind)
        if self.script is None or not self.script_confirmed:
            raise PipelineStateError("Confirm a script before generating assets")

        # Results land in the bundle this run started with, never a newer one
        bundle = self.bundle
        bundle.mark_loading(kind)
        start_time = time.time()
        try:
            asset = await self._produce(kind)
        except asyncio.CancelledError:
            bundle.mark_cancelled(kind)
            self.logger.info(f"{kind.value} generation cancelled")
            raise
        except Exception as e:
            bundle.mark_failed(kind, str(e))
            self.logger.error(f"{kind.value} generation failed: {e}")
            return OperationResult(status="failed", error_message=str(e), generation_time=time.time() - start_time)

        bundle.set_asset(kind, asset)
        self.logger.info(f"{kind.value} ready; bundle complete: {bundle.is_ready}")
        return OperationResult(status="ok", value=asset, generation_time=time.time() - start_time)

    def start_asset(self, kind: Union[AssetKind, str]) -> asyncio.Task:
        """Run one asset generation in the background; a running task is reused"""
        kind = AssetKind(kind)
        task = self._tasks.get(kind)
        if task is not None and not task.done():
            return task

        task = asyncio.ensure_future(self.generate_asset(kind))
        self._tasks[kind] = task
        task.add_done_callback(lambda t, k=kind: self._forget_task(k, t))
        return task

    def _forget_task(self, kind: AssetKind, task: asyncio.Task):
        if self._tasks.get(kind) is task:
            del self._tasks[kind]

    def cancel_asset(self, kind: Union[AssetKind, str]) -> bool:
        kind = AssetKind(kind)
        task = self._tasks.get(kind)
        if task is None or task.done():
            return False
        task.cancel()
        # A task still unwinding its cancellation is never handed out again
        del self._tasks[kind]
        return True

    def cancel_all(self) -> int:
        return sum(1 for kind in list(self._tasks) if self.cancel_asset(kind))

    # ---- navigation ----

    def back(self) -> PipelineStep:
        if self.step == PipelineStep.ASSETS:
            self.cancel_all()
            self.script_confirmed = False
            self.step = PipelineStep.SCRIPT
        elif self.step == PipelineStep.SCRIPT:
            self.step = PipelineStep.SEARCH
        return self.step

    def reset(self):
        self.cancel_all()
        self._reset_state()

    # ---- Step 4: publish ----

    async def publish(self) -> PublishResult:
        if self.script is None or not self.script_confirmed:
            raise PipelineStateError("Confirm a script before publishing")

        result = await self.publisher.publish(self.script, self.bundle)
        self.publish_result = result
        self.step = PipelineStep.UPLOAD
        return result

    # ---- one-shot driver ----

    async def run(
        self,
        topic: str,
        tone: Union[Tone, str, None] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Run every step for one topic

        Args:
            topic: Search topic
            tone: Script tone (settings.default_tone when omitted)
            progress_callback: Called with (message, fraction) at each step

        Returns:
            Dict with "status" ("success" or "failed") and the session artifacts
        """
        start_time = time.time()

        def report(message: str, fraction: float):
            self.logger.info(message)
            if progress_callback:
                progress_callback(message, fraction)

        try:
            report("Searching for stories", 0.05)
            found = await self.find_stories(topic)
            if not found.success:
                raise GenerationError(found.error_message or NO_RESULTS_TEXT)
            self.select_story(topic, found.value)

            report("Writing script", 0.25)
            written = await self.write_script(tone)
            if not written.success:
                raise GenerationError(written.error_message or SCRIPT_FAILED_TEXT)
            self.confirm_script()

            report("Generating voiceover, background video and thumbnail", 0.45)
            results = await asyncio.gather(*(self.start_asset(kind) for kind in AssetKind))
            failures = [
                f"{kind.value}: {result.error_message}"
                for kind, result in zip(AssetKind, results)
                if not result.success
            ]
            if failures:
                raise GenerationError("Asset generation failed (" + "; ".join(failures) + ")")

            report("Publishing", 0.9)
            published = await self.publish()
            report("Done", 1.0)

            return {
                "status": "success",
                **self._artifacts(),
                "publish_result": published,
                "generation_time": time.time() - start_time,
            }

        except Exception as e:
            self.logger.error(f"Pipeline failed: {e}")
            return {
                "status": "failed",
                "error": str(e),
                **self._artifacts(),
                "generation_time": time.time() - start_time,
            }

    def _artifacts(self) -> Dict[str, Any]:
        return {
            "story": self.story,
            "script": self.script,
            "assets": {kind.value: self.bundle.get(kind) for kind in AssetKind},
        }
