"""Frontier and dedup store: check-and-insert semantics under concurrency."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from glossary_crawler import DedupStore, Frontier


def test_try_enqueue_only_once():
    frontier = Frontier()
    assert frontier.try_enqueue("https://x/wiki/A") is True
    assert frontier.try_enqueue("https://x/wiki/A") is False
    assert len(frontier) == 1


def test_dequeued_url_is_never_requeued():
    frontier = Frontier()
    frontier.try_enqueue("https://x/wiki/A")
    assert frontier.dequeue() == "https://x/wiki/A"
    assert frontier.dequeue() is None
    assert frontier.try_enqueue("https://x/wiki/A") is False
    assert len(frontier) == 0


def test_fifo_order_and_drain():
    frontier = Frontier()
    for name in "ABCDE":
        frontier.try_enqueue(f"https://x/wiki/{name}")
    assert frontier.dequeue() == "https://x/wiki/A"
    assert frontier.drain(3) == ["https://x/wiki/B", "https://x/wiki/C", "https://x/wiki/D"]
    assert frontier.drain(3) == ["https://x/wiki/E"]
    assert frontier.drain(3) == []


def test_reloaded_urls_block_enqueue():
    store = DedupStore()
    assert store.mark_visited("https://x/wiki/Done")
    frontier = Frontier(store)
    assert frontier.try_enqueue("https://x/wiki/Done") is False
    assert len(frontier) == 0


def test_seen_description_check_and_insert():
    store = DedupStore()
    assert store.try_seen_description("The Emperor protects.") is True
    assert store.try_seen_description("The Emperor protects.") is False
    store.seed_descriptions(["Loaded from last run."])
    assert store.try_seen_description("Loaded from last run.") is False


@pytest.mark.parametrize("workers", [4, 16])
def test_concurrent_enqueue_inserts_each_url_once(workers):
    frontier = Frontier()
    urls = [f"https://x/wiki/Page_{i}" for i in range(200)]

    def enqueue_all(_):
        return sum(1 for url in urls if frontier.try_enqueue(url))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        inserted = list(pool.map(enqueue_all, range(workers)))

    assert sum(inserted) == len(urls)
    assert len(frontier) == len(urls)
    assert sorted(frontier.drain(1000)) == sorted(urls)


def test_concurrent_seen_description_admits_one_winner():
    store = DedupStore()
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.try_seen_description("same text"), range(64)))
    assert results.count(True) == 1
