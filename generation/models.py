import base64
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, Dict, Any, List, Literal

from pydantic import BaseModel, Field


def story_id_for(content: str) -> str:
    """Derive a deterministic story id from its text (32-bit rolling hash over UTF-16 units)"""

    h = 0
    units = content.encode("utf-16-le")
    for i in range(0, len(units), 2):
        code_unit = units[i] | (units[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF

    if h >= 0x80000000:
        h -= 0x100000000

    return f"story-{abs(h):x}"


class Tone(str, Enum):
    """Script tones offered to the user; the value is quoted verbatim in the prompt"""
    SUSPENSEFUL = "engaging and suspenseful"
    HUMOROUS = "humorous and witty"
    DRAMATIC = "dramatic and emotional"
    ENERGETIC = "fast-paced and energetic"


class AssetKind(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    THUMBNAIL = "thumbnail"


class PipelineStep(IntEnum):
    SEARCH = 0
    SCRIPT = 1
    ASSETS = 2
    UPLOAD = 3


class Story(BaseModel):
    """A discovered story chosen as source material"""
    id: str
    title: str
    summary: str
    original_source: str = "Reddit (via Google Search)"
    selected: bool = True

    class Config:
        frozen = True

    @classmethod
    def from_search(cls, topic: str, raw_text: str) -> "Story":
        return cls(
            id=story_id_for(raw_text),
            title=f"Search Result for: {topic}",
            summary=raw_text,
        )


class Script(BaseModel):
    """Spoken narration ready for voiceover"""
    title: str = "New Video"
    content: str
    tone: Tone

    class Config:
        frozen = True


class GenerationRequest(BaseModel):
    """One remote generation call: model id, content payload and call config"""
    model: str
    contents: Any
    config: Optional[Any] = None

    class Config:
        frozen = True
        arbitrary_types_allowed = True


class MediaAsset(BaseModel):
    """Generated media with an embeddable data URL"""
    kind: AssetKind
    mime_type: str
    data: bytes
    url: str
    duration_seconds: Optional[float] = None
    source_uri: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def from_bytes(cls, kind: AssetKind, data: bytes, mime_type: str, **kwargs) -> "MediaAsset":
        encoded = base64.b64encode(data).decode("ascii")
        return cls(
            kind=kind,
            mime_type=mime_type,
            data=data,
            url=f"data:{mime_type};base64,{encoded}",
            **kwargs
        )

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class AssetSlot(BaseModel):
    """Loading/error state of one asset kind"""
    status: Literal["idle", "loading", "ready", "failed", "cancelled"] = "idle"
    asset: Optional[MediaAsset] = None
    error_message: Optional[str] = None


class AssetBundle(BaseModel):
    """The three assets for one script; each kind is tracked independently"""
    slots: Dict[AssetKind, AssetSlot] = Field(
        default_factory=lambda: {kind: AssetSlot() for kind in AssetKind}
    )

    def get(self, kind: AssetKind) -> Optional[MediaAsset]:
        return self.slots[AssetKind(kind)].asset

    def mark_loading(self, kind: AssetKind):
        slot = self.slots[AssetKind(kind)]
        slot.status = "loading"
        slot.error_message = None

    def set_asset(self, kind: AssetKind, asset: MediaAsset):
        slot = self.slots[AssetKind(kind)]
        slot.status = "ready"
        slot.asset = asset
        slot.error_message = None

    def mark_failed(self, kind: AssetKind, error_message: str):
        # A previously generated asset is kept
        slot = self.slots[AssetKind(kind)]
        slot.status = "ready" if slot.asset is not None else "failed"
        slot.error_message = error_message

    def mark_cancelled(self, kind: AssetKind):
        slot = self.slots[AssetKind(kind)]
        slot.status = "ready" if slot.asset is not None else "cancelled"

    @property
    def missing(self) -> List[AssetKind]:
        return [kind for kind, slot in self.slots.items() if slot.asset is None]

    @property
    def is_ready(self) -> bool:
        return not self.missing


class OperationResult(BaseModel):
    """Uniform outcome of a pipeline operation"""
    status: Literal["ok", "empty", "failed", "cancelled"]
    value: Optional[Any] = None
    error_message: Optional[str] = None

    # Metadata
    generation_time: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.status == "ok"


class PublishResult(BaseModel):
    """Result of the publish step"""
    success: bool
    url: Optional[str] = None
    message: str = ""
    published_at: datetime = Field(default_factory=datetime.now)
