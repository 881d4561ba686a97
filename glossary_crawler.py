# glossary_crawler.py
#!/usr/bin/env python3
"""
Async lore-wiki glossary crawler.

Starting from one or more hub pages on a single MediaWiki-style site, the
crawler follows article links, pulls a short cleaned summary (the first few
prose paragraphs) out of every article and appends unique
``Title<TAB>Description`` rows to a TSV file as it goes.

How it works
------------
- Links are resolved to site paths and passed through a deny-list filter
  (namespace prefixes, media suffixes, keywords) before they are queued.
- A frontier backed by a visited set guarantees every URL is queued once.
- Pages are processed in batches of ``concurrency`` coroutines; the next batch
  is drawn once the whole previous batch has finished.
- Fetches are retried with linearly growing backoff (attempt * base delay).
- Descriptions are deduplicated by their normalized text, which also catches
  redirect pages that show the same article under another title.
- Every persisted entry appends its path to a progress log. On restart the log
  (and the rows already in the TSV) are replayed so nothing is fetched or
  written twice.
"""

from __future__ import annotations

import argparse
import asyncio
import collections
import copy
import dataclasses
import hashlib
import logging
import re
import sys
import threading
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional
from urllib.parse import urlsplit

import httpx
import tldextract
import yaml
from bs4 import BeautifulSoup
from bs4.element import Tag
from slugify import slugify


# --------------------------- Configuration --------------------------------- #


DEFAULT_BASE_URL = "https://wh40k.lexicanum.com"
DEFAULT_HUB_PAGE = "/wiki/Warhammer_40k_-_Lexicanum:List_of_Categories"
DEFAULT_USER_AGENT = "WH-Glossary-Bot/3.7"

IGNORED_URL_PREFIXES: tuple[str, ...] = (
    "/wiki/File:",
    "/wiki/Talk:",
    "/wiki/Help:",
    "/wiki/MediaWiki:",
    "/wiki/Special:",
    "/wiki/Template:",
    "/wiki/Lexicanum:",
    "/wiki/Category:Images",
)

IGNORED_URL_SUFFIXES: tuple[str, ...] = (
    "(List)",
    "(Novel)",
    "(Novella)",
    "(Short_Story)",
    "(Audio_Drama)",
    "(Game)",
    "(Rulebook)",
    "(Animation)",
    "(Disambiguation)",
)

# Matched anywhere in the path; catches rulebooks and other media pages.
IGNORED_URL_KEYWORDS: tuple[str, ...] = (
    "(RPG_series)",
    "Rulebook",
    "Heresy",
    "Anthology",
    "Game_Master",
    "Player%27s_Guide",
    "Core_Manual",
    "Compendium",
    "Index",
    "Army_List",
    "(Audio_Book)",
    "Novel_Series",
    "_Journal_",
    "_Magazine",
    "Inferno",
    "Imperium_",
    "List_of_",
    "Known_Members_of_",
    "Known_Vessels_of_",
    "Tabletop",
    "Edition",
    "Main_Page",
)

NON_PROSE_SELECTORS: tuple[str, ...] = (
    "table[class*=metadata]",
    "blockquote",
    "div[class*=infobox]",
    "div#toc",
)


def _as_tuple(value, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _opt_str(value) -> Optional[str]:
    return str(value) if value else None


@dataclasses.dataclass(frozen=True)
class Config:
    base_url: str = DEFAULT_BASE_URL
    seed_paths: tuple[str, ...] = (DEFAULT_HUB_PAGE,)
    output_path: Optional[str] = None  # defaults to <site-slug>.tsv
    progress_path: Optional[str] = None  # defaults to <site-slug>_progress.txt
    skip_log_path: Optional[str] = None  # fetched-but-rejected URLs, off when unset
    log_file: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    max_entries: int = 25000  # safety cap so the crawl can't run forever
    max_paragraphs: int = 3
    max_retries: int = 3
    retry_base_delay: float = 0.5  # seconds, multiplied by the attempt number
    concurrency: int = 10
    delay: float = 0.1  # politeness delay before each fetch
    timeout: int = 20  # seconds per request
    article_prefix: str = "/wiki/"
    ignored_prefixes: tuple[str, ...] = IGNORED_URL_PREFIXES
    ignored_suffixes: tuple[str, ...] = IGNORED_URL_SUFFIXES
    ignored_keywords: tuple[str, ...] = IGNORED_URL_KEYWORDS
    content_selector: str = "div#mw-content-text"
    title_selector: str = "h1#firstHeading"
    strip_selectors: tuple[str, ...] = NON_PROSE_SELECTORS
    excluded_title_prefixes: tuple[str, ...] = ("Category:",)
    excluded_titles: tuple[str, ...] = ("Warhammer 40,000",)

    @staticmethod
    def from_yaml(path: Path) -> "Config":
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return Config(
            base_url=str(data.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
            seed_paths=_as_tuple(data.get("seed_paths"), (DEFAULT_HUB_PAGE,)),
            output_path=_opt_str(data.get("output_path")),
            progress_path=_opt_str(data.get("progress_path")),
            skip_log_path=_opt_str(data.get("skip_log_path")),
            log_file=_opt_str(data.get("log_file")),
            user_agent=data.get("user_agent", DEFAULT_USER_AGENT),
            max_entries=int(data.get("max_entries", 25000)),
            max_paragraphs=int(data.get("max_paragraphs", 3)),
            max_retries=int(data.get("max_retries", 3)),
            retry_base_delay=float(data.get("retry_base_delay", 0.5)),
            concurrency=int(data.get("concurrency", 10)),
            delay=float(data.get("delay", 0.1)),
            timeout=int(data.get("timeout", 20)),
            article_prefix=data.get("article_prefix", "/wiki/"),
            ignored_prefixes=_as_tuple(data.get("ignored_prefixes"), IGNORED_URL_PREFIXES),
            ignored_suffixes=_as_tuple(data.get("ignored_suffixes"), IGNORED_URL_SUFFIXES),
            ignored_keywords=_as_tuple(data.get("ignored_keywords"), IGNORED_URL_KEYWORDS),
            content_selector=data.get("content_selector", "div#mw-content-text"),
            title_selector=data.get("title_selector", "h1#firstHeading"),
            strip_selectors=_as_tuple(data.get("strip_selectors"), NON_PROSE_SELECTORS),
            excluded_title_prefixes=_as_tuple(data.get("excluded_title_prefixes"), ("Category:",)),
            excluded_titles=_as_tuple(data.get("excluded_titles"), ("Warhammer 40,000",)),
        )

    def output_file(self, site_slug: str) -> Path:
        return Path(self.output_path) if self.output_path else Path(f"{site_slug}.tsv")

    def progress_file(self, site_slug: str) -> Path:
        return Path(self.progress_path) if self.progress_path else Path(f"{site_slug}_progress.txt")


# ----------------------------- Utilities ----------------------------------- #


# Bundled suffix list only; never hits the network.
_tld_extract = tldextract.TLDExtract(suffix_list_urls=())


def sha1_short(s: str) -> str:
    return hashlib.sha1(s.encode("utf-8", errors="ignore")).hexdigest()[:10]


def file_safe_slug(text: str, maxlen: int = 80) -> str:
    s = slugify(text, max_length=maxlen, allow_unicode=False).strip("-_.")
    return s or sha1_short(text)


def derive_site_slug(site_url: str) -> str:
    netloc = urlsplit(site_url).netloc or site_url
    ext = _tld_extract(site_url)
    base = f"{ext.domain}.{ext.suffix}" if ext.domain and ext.suffix else netloc
    return file_safe_slug(base, maxlen=80)


def ensure_parent(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)


def to_site_path(href: str, base_url: str) -> Optional[str]:
    """
    Reduce a link to a path on the crawled site, or None if it points elsewhere.

    Root-relative hrefs are kept as-is, absolute links on the same origin lose
    their scheme and host, and fragments are dropped. Percent-encoding is left
    untouched because the deny-lists match the encoded form.
    """
    href = (href or "").strip()
    if not href:
        return None
    parts = urlsplit(href)
    if parts.scheme or parts.netloc:
        if parts.scheme not in ("", "http", "https"):
            return None
        if parts.netloc.lower() != urlsplit(base_url).netloc.lower():
            return None
    elif not href.startswith("/"):
        return None
    path = parts.path
    if not path:
        return None
    if parts.query:
        path = f"{path}?{parts.query}"
    return path


# ----------------------------- Logging ------------------------------------- #


LOG_FORMAT = "%(asctime)s %(levelname)s [%(site)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logger(site_slug: str, log_file: Optional[Path] = None) -> logging.LoggerAdapter:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logger = logging.getLogger("glossary_crawler")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    ch = logging.StreamHandler(stream=sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)
    if log_file:
        ensure_parent(log_file)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    return logging.LoggerAdapter(logger, extra={"site": site_slug})


def get_site_logger(site_slug: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logging.getLogger(f"glossary_crawler.{site_slug}"), extra={"site": site_slug})


# ------------------------------ Link Filter -------------------------------- #


@dataclasses.dataclass(frozen=True)
class LinkFilter:
    """Deny-list predicate over site paths. Case-sensitive, first match wins."""

    article_prefix: str = "/wiki/"
    prefixes: tuple[str, ...] = IGNORED_URL_PREFIXES
    suffixes: tuple[str, ...] = IGNORED_URL_SUFFIXES
    keywords: tuple[str, ...] = IGNORED_URL_KEYWORDS

    @staticmethod
    def from_config(cfg: Config) -> "LinkFilter":
        return LinkFilter(
            article_prefix=cfg.article_prefix,
            prefixes=cfg.ignored_prefixes,
            suffixes=cfg.ignored_suffixes,
            keywords=cfg.ignored_keywords,
        )

    def rejection_reason(self, path: str) -> Optional[str]:
        if not path.startswith(self.article_prefix):
            return "shape"
        if any(path.startswith(p) for p in self.prefixes):
            return "prefix"
        if any(path.endswith(s) for s in self.suffixes):
            return "suffix"
        if any(k in path for k in self.keywords):
            return "keyword"
        return None

    def accept(self, path: str) -> bool:
        return self.rejection_reason(path) is None


# -------------------------- Frontier & Dedup Store ------------------------- #


class DedupStore:
    """
    Visited-or-queued URLs and already emitted descriptions.

    Both sets only grow. Every method is an atomic check-and-insert guarded by
    a lock that is never held across I/O, so it is safe to share between
    coroutines and threads alike.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._visited: set[str] = set()
        self._descriptions: set[str] = set()

    def mark_visited(self, url: str) -> bool:
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            return True

    def try_seen_description(self, text: str) -> bool:
        with self._lock:
            if text in self._descriptions:
                return False
            self._descriptions.add(text)
            return True

    def seed_descriptions(self, texts: Iterable[str]) -> None:
        with self._lock:
            self._descriptions.update(texts)


class Frontier:
    """FIFO of URLs still to fetch. A URL enters the queue at most once per process."""

    def __init__(self, store: Optional[DedupStore] = None) -> None:
        self.store = store if store is not None else DedupStore()
        self._lock = threading.Lock()
        self._queue: collections.deque[str] = collections.deque()

    def try_enqueue(self, url: str) -> bool:
        # mark_visited is the atomic gate: only the caller that reserved the URL appends it.
        if not self.store.mark_visited(url):
            return False
        with self._lock:
            self._queue.append(url)
        return True

    def dequeue(self) -> Optional[str]:
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def drain(self, n: int) -> list[str]:
        with self._lock:
            batch: list[str] = []
            while self._queue and len(batch) < n:
                batch.append(self._queue.popleft())
            return batch

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)


# --------------------------------- Fetcher --------------------------------- #


@dataclasses.dataclass
class FetchResult:
    url: str
    text: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.text is not None


class Fetcher:
    """
    GET with a fixed attempt ceiling and linear backoff.

    After failed attempt k the fetcher sleeps ``k * base_delay`` before trying
    again; there is no sleep after the final attempt. Transport errors,
    timeouts and any status >= 400 count as failures. The outcome is always a
    :class:`FetchResult`, never an exception.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        logger: logging.LoggerAdapter,
        max_retries: int = 3,
        base_delay: float = 0.5,
        timeout: float = 20,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.logger = logger
        self.max_retries = max(1, max_retries)
        self.base_delay = max(0.0, base_delay)
        self.timeout = timeout
        self._sleep = sleep

    async def fetch(self, url: str) -> FetchResult:
        status: Optional[int] = None
        error: Optional[str] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self.client.get(url, timeout=self.timeout, follow_redirects=True)
                status = resp.status_code
                if resp.status_code >= 400:
                    raise httpx.HTTPStatusError(
                        f"HTTP {resp.status_code}", request=resp.request, response=resp
                    )
                return FetchResult(url=url, text=resp.text, status_code=status, attempts=attempt)
            except httpx.HTTPError as e:
                error = str(e) or e.__class__.__name__
                if attempt < self.max_retries:
                    wait = attempt * self.base_delay
                    self.logger.warning(f"Attempt {attempt} failed for {url}: {error}. Retrying in {wait:.1f}s")
                    await self._sleep(wait)
        self.logger.error(f"Couldn't get {url} after {self.max_retries} tries, skipping it.")
        return FetchResult(url=url, status_code=status, error=error, attempts=self.max_retries)


# ------------------------------- HTML Parsing ------------------------------ #


FOOTNOTE_RE = re.compile(r"\[\d+\]")
WHITESPACE_RE = re.compile(r"\s+")


class Page:
    """A fetched document: select nodes by CSS, read text/attributes, remove nodes."""

    def __init__(self, url: str, markup: str) -> None:
        self.url = url
        self.soup = BeautifulSoup(markup, "lxml")

    def select(self, css: str, root: Optional[Tag] = None) -> list[Tag]:
        return list((self.soup if root is None else root).select(css))

    def select_one(self, css: str, root: Optional[Tag] = None) -> Optional[Tag]:
        return (self.soup if root is None else root).select_one(css)

    @staticmethod
    def attr(node: Tag, name: str) -> str:
        value = node.get(name, "")
        if isinstance(value, list):
            return " ".join(value)
        return value or ""

    @staticmethod
    def text(node: Tag) -> str:
        return node.get_text()

    @staticmethod
    def remove(node: Tag) -> None:
        node.extract()


@dataclasses.dataclass(frozen=True)
class Entry:
    title: str
    description: str
    url: str


def clean_description(text: str) -> str:
    """Normalize parsed paragraph text. Entities are already decoded by the parser."""
    # Tabs would break the TSV sink.
    text = text.replace("\t", " ")
    text = FOOTNOTE_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def clean_title(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def extract_description(
    page: Page,
    *,
    content_selector: str = "div#mw-content-text",
    strip_selectors: Iterable[str] = NON_PROSE_SELECTORS,
    max_paragraphs: int = 3,
) -> str:
    """First ``max_paragraphs`` prose paragraphs of the content region, cleaned. Empty if none."""
    content = page.select_one(content_selector)
    if content is None:
        return ""
    content = copy.copy(content)

    for css in strip_selectors:
        for node in page.select(css, root=content):
            page.remove(node)

    paragraphs = [p for p in page.select("p", root=content) if page.text(p).strip()]
    if not paragraphs:
        return ""
    text = " ".join(page.text(p) for p in paragraphs[:max_paragraphs])
    return clean_description(text)


def extract_entry(
    page: Page,
    *,
    content_selector: str = "div#mw-content-text",
    title_selector: str = "h1#firstHeading",
    strip_selectors: Iterable[str] = NON_PROSE_SELECTORS,
    max_paragraphs: int = 3,
    excluded_title_prefixes: Iterable[str] = ("Category:",),
    excluded_titles: Iterable[str] = ("Warhammer 40,000",),
) -> Optional[Entry]:
    description = extract_description(
        page,
        content_selector=content_selector,
        strip_selectors=strip_selectors,
        max_paragraphs=max_paragraphs,
    )
    if not description:
        return None

    title_node = page.select_one(title_selector)
    if title_node is None:
        return None
    title = clean_title(page.text(title_node))
    if not title:
        return None

    # Category listings and the wiki root are not glossary material.
    if any(title.startswith(p) for p in excluded_title_prefixes) or title in set(excluded_titles):
        return None

    return Entry(title=title, description=description, url=page.url)


def collect_links(page: Page, content_selector: str = "div#mw-content-text") -> list[str]:
    content = page.select_one(content_selector)
    if content is None:
        return []
    return [page.attr(a, "href") for a in page.select("a[href]", root=content)]


# ------------------------------- Persistence ------------------------------- #


class GlossaryWriter:
    """Append-only TSV sink plus the progress log used to resume a crawl."""

    HEADER = "Title\tDescription\n"

    def __init__(
        self,
        base_url: str,
        output_path: Path,
        progress_path: Path,
        skip_log_path: Optional[Path] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.output_path = output_path
        self.progress_path = progress_path
        self.skip_log_path = skip_log_path
        self._lock = threading.Lock()

    def site_path(self, url: str) -> str:
        return url[len(self.base_url):] if url.startswith(self.base_url) else url

    def ensure_header(self) -> bool:
        """Write the header line only when the sink doesn't exist yet."""
        with self._lock:
            if self.output_path.exists():
                return False
            ensure_parent(self.output_path)
            with self.output_path.open("w", encoding="utf-8", newline="\n") as f:
                f.write(self.HEADER)
            return True

    def persist(self, entry: Entry) -> None:
        row = f"{entry.title}\t{entry.description}\n"
        with self._lock:
            ensure_parent(self.output_path)
            ensure_parent(self.progress_path)
            with self.output_path.open("a", encoding="utf-8", newline="\n") as f:
                f.write(row)
            with self.progress_path.open("a", encoding="utf-8", newline="\n") as f:
                f.write(self.site_path(entry.url) + "\n")

    def record_skipped(self, url: str) -> None:
        if not self.skip_log_path:
            return
        with self._lock:
            ensure_parent(self.skip_log_path)
            with self.skip_log_path.open("a", encoding="utf-8", newline="\n") as f:
                f.write(self.site_path(url) + "\n")

    def _read_paths(self, path: Optional[Path]) -> set[str]:
        if not path or not path.exists():
            return set()
        urls: set[str] = set()
        for line in path.read_text(encoding="utf-8").split("\n"):
            line = line.strip()
            if line:
                urls.add(self.base_url + line)
        return urls

    def load_progress(self) -> set[str]:
        return self._read_paths(self.progress_path)

    def load_skipped(self) -> set[str]:
        return self._read_paths(self.skip_log_path)

    def load_descriptions(self) -> set[str]:
        if not self.output_path.exists():
            return set()
        descriptions: set[str] = set()
        lines = self.output_path.read_text(encoding="utf-8").split("\n")
        for i, line in enumerate(lines):
            if i == 0 and line + "\n" == self.HEADER:
                continue
            parts = line.split("\t", 1)
            if len(parts) == 2 and parts[1]:
                descriptions.add(parts[1])
        return descriptions


# ------------------------------ Crawler ------------------------------------ #


@dataclasses.dataclass
class CrawlStats:
    reloaded: int = 0
    fetched: int = 0
    failed: int = 0
    accepted: int = 0
    duplicates: int = 0
    empty: int = 0


class GlossaryCrawler:
    """Batched crawl of a single wiki, from seed hub pages to TSV rows."""

    def __init__(
        self,
        cfg: Config,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.LoggerAdapter] = None,
        frontier: Optional[Frontier] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.cfg = cfg
        self.base_url = cfg.base_url.rstrip("/")
        self.site_slug = derive_site_slug(self.base_url)
        self.logger = logger or get_site_logger(self.site_slug)

        self.link_filter = LinkFilter.from_config(cfg)
        self.frontier = frontier if frontier is not None else Frontier()
        self.store = self.frontier.store
        self.writer = GlossaryWriter(
            self.base_url,
            cfg.output_file(self.site_slug),
            cfg.progress_file(self.site_slug),
            Path(cfg.skip_log_path) if cfg.skip_log_path else None,
        )
        self.stats = CrawlStats()

        self._transport = transport
        self._sleep = sleep

    @property
    def entries_total(self) -> int:
        return self.stats.reloaded + self.stats.accepted

    # --------------------------- Public API -------------------------------- #

    async def run(self) -> CrawlStats:
        self.logger.info(f"Starting crawl: {self.base_url}")
        self.writer.ensure_header()
        self._load_progress()

        headers = {
            "User-Agent": self.cfg.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=max(self.cfg.concurrency, 10))
        timeout = httpx.Timeout(self.cfg.timeout)

        async with httpx.AsyncClient(
            headers=headers, limits=limits, timeout=timeout, follow_redirects=True, transport=self._transport
        ) as client:
            fetcher = Fetcher(
                client,
                logger=self.logger,
                max_retries=self.cfg.max_retries,
                base_delay=self.cfg.retry_base_delay,
                timeout=self.cfg.timeout,
                sleep=self._sleep,
            )

            self.logger.info("Finding starting links from the seed page(s)...")
            for seed in self.cfg.seed_paths:
                await self._seed_from(fetcher, seed)
            self.logger.info(f"Seeding done. Found {len(self.frontier)} link(s) to start with.")

            while len(self.frontier) and self.entries_total < self.cfg.max_entries:
                batch = self.frontier.drain(max(1, self.cfg.concurrency))
                await asyncio.gather(*(self._worker_safe(fetcher, url) for url in batch))
                self.logger.info(
                    f"To-do: {len(self.frontier)} | Done: {self.entries_total}/{self.cfg.max_entries}"
                )

        self.logger.info(
            f"Completed: {self.stats.accepted} new entr(y/ies) saved to {self.writer.output_path} "
            f"({self.stats.duplicates} duplicate(s), {self.stats.empty} without content, "
            f"{self.stats.failed} failed fetch(es))"
        )
        return self.stats

    def enqueue_link(self, href: str) -> bool:
        path = to_site_path(href, self.base_url)
        if path is None:
            return False
        if not self.link_filter.accept(path):
            return False
        return self.frontier.try_enqueue(self.base_url + path)

    # --------------------------- Internal ---------------------------------- #

    def _load_progress(self) -> None:
        done = self.writer.load_progress()
        for url in done:
            self.store.mark_visited(url)
        self.stats.reloaded = len(done)

        skipped = self.writer.load_skipped()
        for url in skipped:
            self.store.mark_visited(url)

        descriptions = self.writer.load_descriptions()
        self.store.seed_descriptions(descriptions)

        if done or skipped:
            self.logger.info(
                f"Loaded {len(done)} URL(s) from last time"
                + (f" and {len(skipped)} skipped URL(s)" if skipped else "")
            )

    def _resolve_seed(self, seed: str) -> Optional[str]:
        path = to_site_path(seed, self.base_url)
        return self.base_url + path if path else None

    async def _seed_from(self, fetcher: Fetcher, seed: str) -> None:
        url = self._resolve_seed(seed)
        if url is None:
            self.logger.warning(f"Ignoring seed outside {self.base_url}: {seed}")
            return
        # Hub pages only provide links; reserve them so they are never extracted.
        self.store.mark_visited(url)
        self.logger.info(f"Grabbing links from: {url}")
        result = await fetcher.fetch(url)
        if not result.ok:
            self.logger.warning(f"Could not fetch seed page {url}: {result.error}")
            return
        page = Page(url, result.text)
        added = sum(1 for href in collect_links(page, self.cfg.content_selector) if self.enqueue_link(href))
        self.logger.info(f"Queued {added} link(s) from {url}")

    async def _worker_safe(self, fetcher: Fetcher, url: str) -> None:
        try:
            await self._process_url(fetcher, url)
        except Exception as e:
            self.logger.exception(f"Unhandled error processing {url}: {e}")

    async def _process_url(self, fetcher: Fetcher, url: str) -> None:
        if self.cfg.delay > 0:
            await self._sleep(self.cfg.delay)

        result = await fetcher.fetch(url)
        if not result.ok:
            self.stats.failed += 1
            return
        self.stats.fetched += 1

        page = Page(url, result.text)
        for href in collect_links(page, self.cfg.content_selector):
            self.enqueue_link(href)

        entry = extract_entry(
            page,
            content_selector=self.cfg.content_selector,
            title_selector=self.cfg.title_selector,
            strip_selectors=self.cfg.strip_selectors,
            max_paragraphs=self.cfg.max_paragraphs,
            excluded_title_prefixes=self.cfg.excluded_title_prefixes,
            excluded_titles=self.cfg.excluded_titles,
        )
        if entry is None:
            self.stats.empty += 1
            self.logger.debug(f"Nothing to extract from {url}")
            self.writer.record_skipped(url)
            return

        # Left unlogged so a later run with a higher cap still picks it up.
        if self.entries_total >= self.cfg.max_entries:
            return

        if not self.store.try_seen_description(entry.description):
            self.stats.duplicates += 1
            self.logger.debug(f"Duplicate description, skipping {url} ({entry.title})")
            self.writer.record_skipped(url)
            return

        self.writer.persist(entry)
        self.stats.accepted += 1
        self.logger.info(f"Added: {entry.title}")


# ------------------------------- CLI --------------------------------------- #


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crawl a lore wiki into a Title/Description TSV glossary.")
    parser.add_argument(
        "--config", "-c", type=Path, default=None, help="Path to YAML configuration file (defaults built in)."
    )
    return parser.parse_args(argv)


async def main_async(cfg: Config) -> CrawlStats:
    site_slug = derive_site_slug(cfg.base_url)
    logger = setup_logger(site_slug, Path(cfg.log_file) if cfg.log_file else None)
    crawler = GlossaryCrawler(cfg, logger=logger)
    stats = await crawler.run()
    logger.info(f"All done! Dictionary saved to {crawler.writer.output_path}")
    return stats


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = parse_args(argv)
    cfg = Config.from_yaml(args.config) if args.config else Config()
    try:
        asyncio.run(main_async(cfg))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
