import asyncio
from collections import Counter

from logwatch import Mode, WatchConfig, watch
from logwatch.core.models import BlockWindow, EventLog

config = WatchConfig(
    endpoint="https://bsc-rpc.publicnode.com",
    address="0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c",  # WBNB
    mode=Mode.POLL,
    start_block=40_000_000,
    page_size=50,
    timeout_s=30,
)

topic_counts: Counter[str] = Counter()


def count_topics(window: BlockWindow, logs: list[EventLog]) -> None:
    topic_counts.update(ev.topics[0] for ev in logs if ev.topics)
    print(f"{window}: {len(logs)} logs")


async def main():
    # Ten windows of 50 blocks, then print the most frequent event signatures
    result = await watch(config, on_batch=count_topics, max_iterations=10)
    print(f"next offset: {result.next_offset}")
    for topic0, n in topic_counts.most_common(5):
        print(n, topic0)


asyncio.run(main())
