"""Shared pytest fixtures for all tests."""

import asyncio

import pytest

from cli.config import Config
from common.types import Category, LocalFile, RemoteFileRecord, UploadResult


class FakeTimer:
    """Timer handle recorded by FakeScheduler."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Stands in for loop.call_later so tests fire timers explicitly."""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if not t.cancelled]

    def fire_all(self):
        timers, self.timers = self.active, []
        for timer in timers:
            timer.callback()


class FakeDirectory:
    """
    In-memory directory client with controllable outcomes.

    upload_outcomes maps file name to an UploadResult or an exception;
    upload_gates / list_gate / save_gate hold calls until the event is set.
    """

    def __init__(self):
        self.configured = True
        self.files: list[RemoteFileRecord] = []
        self.order: list[str] = []
        self.categories: list[Category] = []
        self.upload_outcomes = {}
        self.upload_gates: dict[str, asyncio.Event] = {}
        self.progress_steps = [10, 50, 100]
        self.list_gate: asyncio.Event | None = None
        self.save_gate: asyncio.Event | None = None
        self.list_error: Exception | None = None
        self.order_error: Exception | None = None
        self.save_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.health_error: Exception | None = None
        self.calls = []
        self.active_uploads = 0
        self.max_active_uploads = 0

    def is_configured(self):
        return self.configured

    async def list_files(self):
        self.calls.append(("list_files",))
        files = list(self.files)
        gate = self.list_gate
        if gate is not None:
            await gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return files

    async def delete_file(self, key):
        self.calls.append(("delete_file", key))
        if self.delete_error is not None:
            raise self.delete_error
        self.files = [f for f in self.files if f.key != key]
        return True

    async def upload_one(self, file, categories, on_progress=None):
        self.calls.append(("upload_one", file.name, tuple(categories)))
        self.active_uploads += 1
        self.max_active_uploads = max(self.max_active_uploads, self.active_uploads)
        try:
            for value in self.progress_steps[:-1]:
                if on_progress:
                    on_progress(value)
            gate = self.upload_gates.get(file.name)
            if gate is not None:
                await gate.wait()
            outcome = self.upload_outcomes.get(file.name)
            if isinstance(outcome, Exception):
                raise outcome
            if on_progress:
                on_progress(self.progress_steps[-1])
            return outcome or UploadResult(key=f"uploads/{file.name}", url=f"https://cdn.test/{file.name}")
        finally:
            self.active_uploads -= 1

    async def get_persisted_order(self):
        self.calls.append(("get_persisted_order",))
        if self.order_error is not None:
            raise self.order_error
        return list(self.order)

    async def save_persisted_order(self, keys):
        self.calls.append(("save_persisted_order", list(keys)))
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.save_error is not None:
            raise self.save_error
        self.order = list(keys)
        return True

    async def list_categories(self):
        self.calls.append(("list_categories",))
        return list(self.categories)

    async def create_category(self, title):
        self.calls.append(("create_category", title))
        category = Category(id=f"cat-{len(self.categories) + 1}", title=title)
        self.categories.append(category)
        return category

    async def delete_category(self, category_id):
        self.calls.append(("delete_category", category_id))
        self.categories = [c for c in self.categories if c.id != category_id]
        return True

    async def save_category_order(self, category_ids):
        self.calls.append(("save_category_order", list(category_ids)))
        by_id = {c.id: c for c in self.categories}
        self.categories = [by_id[i] for i in category_ids]
        return True

    async def check_health(self):
        if self.health_error is not None:
            raise self.health_error
        return {"status": "ok"}

    def call_names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .gallery-uploader directory
    """
    config_dir = tmp_path / '.gallery-uploader'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, monkeypatch):
    """
    Create temporary config instance with an endpoint and key set.

    Returns:
        Config instance with temp config file
    """
    monkeypatch.delenv("GALLERY_API_URL", raising=False)
    monkeypatch.delenv("GALLERY_API_KEY", raising=False)
    config = Config(temp_config_dir / 'config.json')
    config.data['api_url'] = 'http://localhost:8787'
    config.set_api_key('test-upload-key')
    return config


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def image_files(tmp_path):
    """
    Create sample image files for upload tests.

    Returns:
        List of LocalFile for one.jpg, two.png, three.jpg
    """
    files = []
    for name in ('one.jpg', 'two.png', 'three.jpg'):
        path = tmp_path / name
        path.write_bytes(b'\x89fake-image-' + name.encode())
        files.append(LocalFile.from_path(path))
    return files


@pytest.fixture
def make_record():
    """Factory for RemoteFileRecord with sensible defaults."""
    def _make(key, immutable=False, categories=()):
        url = f"https://cdn.test/{key}"
        return RemoteFileRecord(
            key=key,
            url=url,
            thumbnail_url=url,
            size=None if immutable else 1024,
            categories=tuple(categories),
            is_immutable=immutable,
        )
    return _make
