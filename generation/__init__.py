"""
Generation core for the StoryStream pipeline

This module contains components for:
- Story discovery and script rewriting with Gemini (grounded search)
- Voiceover synthesis (PCM wrapped as WAV), thumbnails and Veo background video
- Credential re-selection on "entity not found" failures, retried once
"""

from .credentials import CredentialGate, ConsoleCredentialHost
from .executor import RequestExecutor, BoundClient, is_entity_not_found
from .poller import JobPoller
from .service import GenerationService

__all__ = [
    'CredentialGate',
    'ConsoleCredentialHost',
    'RequestExecutor',
    'BoundClient',
    'is_entity_not_found',
    'JobPoller',
    'GenerationService',
]
