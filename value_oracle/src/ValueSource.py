"""ValueSource: Providers of the value committed on-chain.

A value source takes no input and asynchronously produces a number or raises
:class:`SourceFetchFailed`. Two families exist:

- :class:`PriceSource` binds an HTTP price fetcher to one trading pair.
- :class:`RandomValueSource` draws an integer from a closed range. It is a
  generator, not a measurement, so it is never averaged with anything else.

.. code-block:: python

    >>> source = PriceSource(get_fetcher("coinbase"), "btc", "usd")
    >>> source.name
    'coinbase'
    >>> RandomValueSource(min_value=1, max_value=6).is_generator
    True
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .fetchers import BaseFetcher

DEFAULT_MIN_VALUE = 1
DEFAULT_MAX_VALUE = 1_000_000


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one fetch attempt.

    Exactly one of ``value`` and ``error`` is set.

    :ivar source: Source name.
    :ivar value: Fetched value on success.
    :ivar error: Failure reason on failure.
    """

    source: str
    value: float | int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the fetch produced a value."""
        return self.error is None and self.value is not None

    @classmethod
    def ok(cls, source: str, value: float | int) -> SourceResult:
        return cls(source=source, value=value)

    @classmethod
    def failed(cls, source: str, error: str) -> SourceResult:
        return cls(source=source, error=error)


class ValueSource(ABC):
    """Abstract value provider.

    :cvar is_generator: True for sources that produce rather than measure a
        value; such a source must be the only one in a run.
    """

    is_generator: ClassVar[bool] = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in logs and results."""

    @property
    def is_available(self) -> bool:
        """Check if the source can be queried (e.g. has its credential)."""
        return True

    @abstractmethod
    async def fetch(self) -> float | int:
        """Produce a value.

        :returns: The value.
        :raises SourceFetchFailed: If no value could be produced.
        """


class PriceSource(ValueSource):
    """A price fetcher bound to a single trading pair.

    :ivar fetcher: Underlying HTTP fetcher.
    :ivar base: Base currency symbol (lowercase).
    :ivar quote: Quote currency symbol (lowercase).
    """

    def __init__(self, fetcher: BaseFetcher, base: str, quote: str) -> None:
        self.fetcher = fetcher
        self.base = base.lower()
        self.quote = quote.lower()

    @property
    def name(self) -> str:
        return self.fetcher.name

    @property
    def is_available(self) -> bool:
        """A source that needs an API key is unavailable without one."""
        return not self.fetcher.requires_api_key or self.fetcher.has_api_key

    async def fetch(self) -> float:
        return await self.fetcher.fetch(self.base, self.quote)

    def __repr__(self) -> str:
        return f"PriceSource({self.name!r}, {self.base!r}, {self.quote!r})"


class RandomValueSource(ValueSource):
    """Uniform random integer generator over the closed range [min, max].

    :ivar min_value: Inclusive lower bound.
    :ivar max_value: Inclusive upper bound.
    """

    is_generator = True

    def __init__(
        self,
        min_value: int = DEFAULT_MIN_VALUE,
        max_value: int = DEFAULT_MAX_VALUE,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the generator.

        :param min_value: Inclusive lower bound (default: 1).
        :param max_value: Inclusive upper bound (default: 1_000_000).
        :param rng: Optional random number generator, for reproducible runs.
        :raises ValueError: If the range is empty.
        """
        if min_value > max_value:
            raise ValueError(
                f"min_value ({min_value}) must not exceed max_value ({max_value})"
            )
        self.min_value = min_value
        self.max_value = max_value
        self._rng = rng or random.SystemRandom()

    @property
    def name(self) -> str:
        return "random"

    async def fetch(self) -> int:
        return self._rng.randint(self.min_value, self.max_value)

    def __repr__(self) -> str:
        return f"RandomValueSource({self.min_value}, {self.max_value})"
