import asyncio
import logging
import time
from typing import Any, List, Optional, Tuple, Union

import requests
from google.genai import types

from config import Settings, settings as default_settings

from . import codec
from .credentials import CredentialGate
from .executor import BoundClient, RequestExecutor
from .errors import MissingPayloadError
from .models import AssetKind, GenerationRequest, MediaAsset, Tone
from .poller import JobPoller

NO_RESULTS_TEXT = "No results found."
SCRIPT_FAILED_TEXT = "Failed to generate script."


def _inline_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _first_inline_data(response: Any) -> Optional[Any]:
    for part in _inline_parts(response):
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and getattr(inline_data, "data", None):
            return inline_data
    return None


def _payload_bytes(data: Union[str, bytes]) -> bytes:
    # The SDK decodes inline blobs already; raw REST payloads arrive as base64 text
    if isinstance(data, str):
        return codec.decode(data)
    return bytes(data)


class GenerationService:
    """
    Generation operations against the Gemini API: story discovery, script
    rewriting, voiceover, thumbnail and background video.
    """

    DISCOVERY_PROMPT = """Search reddit.com for interesting threads or stories related to: "{topic}".
Summarize 3 distinct potential stories found.
For each story, provide the Thread Title, a Summary of the plot/content, and the URL if available.
Format the output clearly with separators so I can parse it easily."""

    SCRIPT_PROMPT = """Act as a professional YouTube scriptwriter.
Take the following raw story/content and rewrite it into a short, engaging video script (approx 60-90 seconds spoken).
If the content contains multiple stories or summaries, pick the single most interesting one to focus on.

Tone: {tone} (Make it hook the viewer immediately).
Style: Conversational, human-written, storytelling format.

Original Content:
{content}

Output the spoken narration text ONLY. Do not include scene descriptions, visual cues, or character names. Just the raw text to be spoken."""

    THUMBNAIL_PROMPT = (
        "A youtube video thumbnail for a story about {topic}. "
        "High contrast, shocking, catchy, 4k resolution, hyper realistic."
    )

    VIDEO_PROMPT = (
        'Create a cinematic, atmospheric 5-second video loop that represents the mood of this '
        'story snippet: "{snippet}...". No text overlay. High quality.'
    )

    def __init__(
        self,
        executor: Optional[RequestExecutor] = None,
        poller: Optional[JobPoller] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.executor = executor or RequestExecutor(
            CredentialGate(fallback_credential=self.settings.google_api_key)
        )
        self.poller = poller or JobPoller(
            interval=self.settings.video_poll_interval,
            max_attempts=self.settings.video_poll_max_attempts,
        )
        self.logger = logging.getLogger(self.__class__.__name__)

    async def _generate_content(self, request: GenerationRequest) -> Any:
        async def _call(bound: BoundClient):
            return await bound.client.aio.models.generate_content(
                model=request.model,
                contents=request.contents,
                config=request.config,
            )

        return await self.executor.execute(_call)

    async def find_stories(self, topic: str) -> str:
        """Grounded search for candidate stories; raw text for the user to review"""

        self.logger.info(f"Searching stories for topic: {topic}")
        request = GenerationRequest(
            model=self.settings.discovery_model,
            contents=self.DISCOVERY_PROMPT.format(topic=topic),
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )
        response = await self._generate_content(request)

        text = getattr(response, "text", None)
        if not text:
            self.logger.warning("Discovery returned no text")
            return NO_RESULTS_TEXT
        return text

    async def write_script(self, content: str, tone: Union[Tone, str]) -> str:
        """Rewrite source material as spoken-only narration in the given tone"""

        tone = Tone(tone)
        self.logger.info(f"Writing script with {self.settings.script_model} (tone: {tone.value})")
        request = GenerationRequest(
            model=self.settings.script_model,
            contents=self.SCRIPT_PROMPT.format(tone=tone.value, content=content),
            config=types.GenerateContentConfig(
                thinking_config=types.ThinkingConfig(thinking_budget=self.settings.script_thinking_budget),
            ),
        )
        response = await self._generate_content(request)

        text = getattr(response, "text", None)
        if not text:
            self.logger.warning("Script generation returned no text")
            return SCRIPT_FAILED_TEXT
        return text

    async def generate_voiceover(self, text: str) -> MediaAsset:
        """Synthesize narration audio and wrap the PCM payload as WAV"""

        start_time = time.time()
        self.logger.info(f"Generating voiceover ({len(text)} chars) with voice {self.settings.tts_voice_name}")
        request = GenerationRequest(
            model=self.settings.tts_model,
            contents=[types.Content(role="user", parts=[types.Part(text=text)])],
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=self.settings.tts_voice_name,
                        )
                    )
                ),
            ),
        )
        response = await self._generate_content(request)

        inline_data = _first_inline_data(response)
        if inline_data is None:
            raise MissingPayloadError("audio")

        pcm = _payload_bytes(inline_data.data)
        asset = codec.to_playable_container(
            pcm,
            sample_rate=self.settings.tts_sample_rate,
            channels=self.settings.tts_channels,
            bit_depth=self.settings.tts_bit_depth,
        )
        self.logger.info(
            f"Voiceover ready in {time.time() - start_time:.2f}s: {asset.size_bytes} bytes"
            + (f", {asset.duration_seconds:.2f}s" if asset.duration_seconds is not None else "")
        )
        return asset

    async def generate_thumbnail(self, topic: str) -> MediaAsset:
        """Generate a thumbnail image; the inline image is returned as a data URL"""

        self.logger.info(f"Generating thumbnail for topic: {topic}")
        request = GenerationRequest(
            model=self.settings.image_model,
            contents=[types.Content(role="user", parts=[types.Part(text=self.THUMBNAIL_PROMPT.format(topic=topic))])],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                image_config=types.ImageConfig(aspect_ratio=self.settings.image_aspect_ratio),
            ),
        )
        response = await self._generate_content(request)

        inline_data = _first_inline_data(response)
        if inline_data is None:
            raise MissingPayloadError("image")

        mime_type = getattr(inline_data, "mime_type", None) or "image/png"
        asset = MediaAsset.from_bytes(AssetKind.THUMBNAIL, _payload_bytes(inline_data.data), mime_type)
        self.logger.info(f"Thumbnail ready: {asset.size_bytes} bytes ({mime_type})")
        return asset

    def build_video_prompt(self, snippet: str) -> str:
        return self.VIDEO_PROMPT.format(snippet=snippet[:self.settings.video_snippet_chars])

    async def generate_background_video(self, snippet: str) -> MediaAsset:
        """Start a video job, poll it to completion and download the result"""

        start_time = time.time()
        request = GenerationRequest(
            model=self.settings.video_model,
            contents=self.build_video_prompt(snippet),
            config=types.GenerateVideosConfig(
                number_of_videos=self.settings.video_count,
                resolution=self.settings.video_resolution,
                aspect_ratio=self.settings.video_aspect_ratio,
            ),
        )

        async def _start(bound: BoundClient) -> Tuple[BoundClient, Any]:
            job = await bound.client.aio.models.generate_videos(
                model=request.model,
                prompt=request.contents,
                config=request.config,
            )
            return bound, job

        self.logger.info(f"Starting video job with {request.model}")
        # Job handles are only valid on the client that created them
        bound, job = await self.executor.execute(_start)

        uri = await self.poller.wait_for_video(job, bound.client.aio.operations.get)
        self.logger.info("Video job finished, downloading result")

        data, mime_type = await asyncio.to_thread(self._download, uri, bound.credential)
        asset = MediaAsset.from_bytes(AssetKind.VIDEO, data, mime_type, source_uri=uri)
        self.logger.info(f"Video ready in {time.time() - start_time:.2f}s: {asset.size_bytes} bytes")
        return asset

    def _download(self, uri: str, credential: Optional[str]) -> Tuple[bytes, str]:
        params = {"key": credential} if credential else None
        response = requests.get(uri, params=params, timeout=self.settings.download_timeout)
        response.raise_for_status()

        mime_type = (response.headers.get("Content-Type") or "video/mp4").split(";")[0].strip()
        return response.content, mime_type
