"""A named collection of strategies and running feeds through them."""

from __future__ import annotations

from typing import Iterable, Iterator

from .database import Database, Feed, Fetch
from .strategy import Strategy, run_strategy


class StrategyNotFoundError(LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f'Could not find strategy "{name}"')
        self.name = name


class NoSuchFeedError(LookupError):
    def __init__(self, feed_id: int) -> None:
        super().__init__(f'Could not find feed with id "{feed_id}"')
        self.feed_id = feed_id


class StrategyList:
    """Strategies looked up by name."""

    def __init__(self, strategies: Iterable[Strategy] = ()) -> None:
        self._strategies: list[Strategy] = list(strategies)

    def add(self, strategy: Strategy) -> None:
        self._strategies.append(strategy)

    def get_by_name(self, name: str) -> Strategy:
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        raise StrategyNotFoundError(name)

    def names(self) -> list[str]:
        return [strategy.name for strategy in self._strategies]

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)

    def __repr__(self) -> str:
        return f"StrategyList(names={self.names()!r})"

    async def run(self, db: Database, feed: Feed) -> Fetch:
        """Fetch a feed with the strategy it names."""
        strategy = self.get_by_name(feed.strategy)
        return await run_strategy(db, feed, strategy)

    async def run_id(self, feed_id: int, db: Database) -> Fetch:
        """Fetch the feed with the given id."""
        feed = db.get_feed(feed_id)
        if feed is None:
            raise NoSuchFeedError(feed_id)
        return await self.run(db, feed)