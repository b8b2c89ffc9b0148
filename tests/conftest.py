import base64
from types import SimpleNamespace

import pytest

from config import Settings


class FakeAPIError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


def text_response(text):
    return SimpleNamespace(text=text, candidates=[])


def inline_response(data, mime_type="application/octet-stream"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    content = SimpleNamespace(parts=[SimpleNamespace(text="caption", inline_data=None), part])
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=content)])


def empty_candidates_response():
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[]))])


def video_job(done=False, uri=None, name="operations/video-1"):
    response = None
    if uri is not None:
        response = SimpleNamespace(generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri))])
    elif done:
        response = SimpleNamespace(generated_videos=[])
    return SimpleNamespace(name=name, done=done, response=response, error=None)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _next(queue):
    item = queue.pop(0)
    if isinstance(item, BaseException):
        raise item
    return item


class FakeModels:
    def __init__(self, responses=None, video_responses=None):
        self.responses = list(responses or [])
        self.video_responses = list(video_responses or [])
        self.calls = []
        self.video_calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        return _next(self.responses)

    async def generate_videos(self, model, prompt, config=None):
        self.video_calls.append(SimpleNamespace(model=model, prompt=prompt, config=config))
        return _next(self.video_responses)


class FakeOperations:
    def __init__(self, statuses=None):
        self.statuses = list(statuses or [])
        self.calls = []

    async def get(self, operation, config=None):
        self.calls.append(operation)
        return _next(self.statuses)


class FakeClient:
    def __init__(self, credential=None, responses=None, video_responses=None, statuses=None):
        self.credential = credential
        self.models = FakeModels(responses, video_responses)
        self.operations = FakeOperations(statuses)
        self.aio = SimpleNamespace(models=self.models, operations=self.operations)


class FakeClientFactory:
    """Hands out prepared clients in order and records the credential each was built with"""

    def __init__(self, *clients):
        self.clients = list(clients)
        self.credentials = []

    def __call__(self, credential):
        self.credentials.append(credential)
        client = self.clients.pop(0)
        client.credential = credential
        return client


class FakeHost:
    def __init__(self, *credentials, ready=True):
        self._pending = list(credentials[1:])
        self.current = credentials[0] if credentials else None
        self.ready = ready
        self.selections = 0

    def has_selected_credential(self):
        return self.ready

    async def open_credential_selector(self):
        self.selections += 1
        self.ready = True
        if self._pending:
            self.current = self._pending.pop(0)

    def selected_credential(self):
        return self.current


@pytest.fixture
def test_settings():
    return Settings(
        google_api_key="env-key",
        video_poll_interval=0,
        video_poll_max_attempts=10,
        publish_delay=0,
    )
