"""Shared fixtures: an in-memory wiki served through httpx.MockTransport."""

from __future__ import annotations

import collections
import dataclasses
from pathlib import Path
from typing import Iterable, Optional

import httpx
import pytest

from glossary_crawler import Config

BASE_URL = "https://wiki.example.org"


def article_html(
    title: str,
    paragraphs: Iterable[str] = (),
    links: Iterable[str] = (),
    extra: str = "",
    content: bool = True,
) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    anchors = "".join(f'<li><a href="{href}">link</a></li>' for href in links)
    heading = f'<h1 id="firstHeading">{title}</h1>' if title is not None else ""
    region = f'<div id="mw-content-text">{extra}{body}<ul>{anchors}</ul></div>' if content else body
    return (
        "<html><head><title>wiki</title></head><body>"
        f'<a href="/wiki/Sidebar_Link">sidebar</a>{heading}{region}'
        "</body></html>"
    )


class FakeWiki:
    """Serves a dict of path -> html and counts every request per path."""

    def __init__(self) -> None:
        self.pages: dict[str, str] = {}
        self.failing: dict[str, int] = {}
        self.hits: collections.Counter[str] = collections.Counter()
        self.user_agents: list[str] = []

    def add(self, path: str, markup: str) -> "FakeWiki":
        self.pages[path] = markup
        return self

    def fail(self, path: str, status: int = 500) -> "FakeWiki":
        self.failing[path] = status
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.hits[path] += 1
        self.user_agents.append(request.headers.get("User-Agent", ""))
        if path in self.failing:
            return httpx.Response(self.failing[path], text="boom")
        if path not in self.pages:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=self.pages[path], headers={"Content-Type": "text/html"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(workdir: Optional[Path] = None, **overrides) -> Config:
        root = workdir or tmp_path
        base = Config(
            base_url=BASE_URL,
            seed_paths=("/wiki/Hub",),
            output_path=str(root / "glossary.tsv"),
            progress_path=str(root / "glossary_progress.txt"),
            max_entries=100,
            max_retries=2,
            retry_base_delay=0.0,
            concurrency=5,
            delay=0.0,
            timeout=5,
        )
        return dataclasses.replace(base, **overrides)

    return _make
