"""Failures raised by the generation core.

Remote-service failures are the SDK's own ``google.genai.errors.APIError``
family and are propagated unchanged; the classes here cover what the
core itself detects.
"""

from typing import Iterable, Optional


class GenerationError(Exception):
    """Base class for all generation-core failures"""


class MissingPayloadError(GenerationError):
    """The remote call succeeded but the expected payload was absent"""

    MESSAGES = {
        "audio": "No audio generated",
        "image": "No image generated",
        "video": "Video generation failed",
    }

    def __init__(self, kind: str, detail: Optional[str] = None):
        self.kind = kind
        message = self.MESSAGES.get(kind, f"No {kind} generated")
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PollTimeoutError(GenerationError):
    """A long-running job did not finish within the configured ceiling"""

    def __init__(self, attempts: int, elapsed: float):
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Job still running after {attempts} status queries ({elapsed:.1f}s)"
        )


class BundleIncompleteError(GenerationError):
    """Publish was requested before every asset kind was generated"""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Asset bundle incomplete, missing: {', '.join(self.missing)}")


class PipelineStateError(GenerationError):
    """A pipeline step was invoked out of order"""
