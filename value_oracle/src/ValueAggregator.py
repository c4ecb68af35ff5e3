"""ValueAggregator: Fault-isolated multi-source fetch and mean aggregation.

Algorithm:
    1. Skip sources that are unavailable (e.g. missing API key), without I/O
    2. Fetch all remaining sources concurrently, each with its own timeout
    3. Record every outcome as a SourceResult, in input order
    4. Return the arithmetic mean of the successful values
    5. Raise NoSourcesAvailable if nothing succeeded

A generator source (random value) bypasses steps 3-4: its value is used as is.

.. code-block:: python

    >>> results = [SourceResult.ok("coinmarketcap", 65010.0),
    ...            SourceResult.ok("coingecko", 64990.0)]
    >>> ValueAggregator.aggregate(results).value
    65000.0
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from statistics import fmean

from .exceptions import NoSourcesAvailable, SourceFetchFailed
from .ValueSource import SourceResult, ValueSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalValue:
    """The single value derived from one or more sources.

    :ivar value: Mean of the successful results, or the generated value.
    :ivar sources: Names of the sources that contributed.
    :ivar failed: Dict mapping failed source names to failure reasons.
    :ivar skipped: Names of sources skipped before any request.
    """

    value: float | int
    sources: tuple[str, ...]
    failed: dict[str, str] = field(default_factory=dict)
    skipped: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        """Number of sources used in the value."""
        return len(self.sources)


class ValueAggregator:
    """Queries value sources with per-source failure isolation.

    :ivar fetch_timeout: Timeout for a single source fetch in seconds.
    """

    def __init__(self, fetch_timeout: float = 10.0) -> None:
        """Initialize the aggregator.

        :param fetch_timeout: Timeout per source fetch (default: 10.0).
        :raises ValueError: If the timeout is not positive.
        """
        if fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        self.fetch_timeout = fetch_timeout

    async def fetch_all(self, sources: Sequence[ValueSource]) -> CanonicalValue:
        """Fetch from all sources and derive the canonical value.

        :param sources: Ordered value sources.
        :returns: CanonicalValue built from the successful results.
        :raises ValueError: If a generator is combined with other sources.
        :raises NoSourcesAvailable: If no source produced a value.
        """
        generators = [s for s in sources if s.is_generator]
        if generators and len(sources) > 1:
            raise ValueError(
                f"Generator source {generators[0].name!r} must be the only source"
            )
        if generators:
            return await self._generate(generators[0])

        results, skipped = await self.collect(sources)
        canonical = self.aggregate(results, skipped=skipped)

        logger.info(
            f"Aggregated value {canonical.value} "
            f"(mean of {canonical.count} source(s): {', '.join(canonical.sources)})"
        )
        if canonical.failed:
            logger.info(f"Excluded failed sources: {sorted(canonical.failed)}")
        return canonical

    async def collect(
        self, sources: Sequence[ValueSource]
    ) -> tuple[list[SourceResult], list[str]]:
        """Fetch every available source concurrently.

        :param sources: Ordered value sources.
        :returns: Tuple of (results in input order, skipped source names).
        """
        active: list[ValueSource] = []
        skipped: list[str] = []
        for source in sources:
            if source.is_available:
                active.append(source)
            else:
                logger.info(f"[{source.name}] Skipped: credential not configured")
                skipped.append(source.name)

        results = await asyncio.gather(*(self._fetch_one(s) for s in active))
        return list(results), skipped

    async def _fetch_one(self, source: ValueSource) -> SourceResult:
        """Fetch a single source, turning any failure into a SourceResult.

        :param source: Source to query.
        :returns: Successful or failed SourceResult.
        """
        try:
            value = await asyncio.wait_for(source.fetch(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            reason = f"timeout after {self.fetch_timeout}s"
        except SourceFetchFailed as e:
            reason = str(e) or type(e).__name__
        except Exception as e:  # Misbehaving source must not sink the run
            reason = f"{type(e).__name__}: {e}"
        else:
            if _is_valid_number(value):
                logger.info(f"[{source.name}] Fetched {value}")
                return SourceResult.ok(source.name, value)
            reason = f"not a finite number: {value!r}"

        logger.warning(f"[{source.name}] Fetch failed: {reason}")
        return SourceResult.failed(source.name, reason)

    async def _generate(self, source: ValueSource) -> CanonicalValue:
        """Draw the value of a generator source.

        :param source: Generator source.
        :returns: CanonicalValue holding the generated value unchanged.
        :raises NoSourcesAvailable: If the generator failed.
        """
        result = await self._fetch_one(source)
        if not result.success:
            raise NoSourcesAvailable(
                f"Generator {source.name!r} failed: {result.error}",
                failures={source.name: result.error or "unknown"},
            )
        assert result.value is not None
        logger.info(f"Generated value: {result.value}")
        return CanonicalValue(value=result.value, sources=(source.name,))

    @staticmethod
    def aggregate(
        results: Sequence[SourceResult], *, skipped: Sequence[str] = ()
    ) -> CanonicalValue:
        """Reduce source results to their arithmetic mean.

        The mean is computed with correctly rounded summation, so the order of
        the results does not affect the value.

        :param results: Source results, successful or failed.
        :param skipped: Names of sources skipped before fetching.
        :returns: CanonicalValue over the successful results.
        :raises NoSourcesAvailable: If no result is successful.
        """
        succeeded = [r for r in results if r.success]
        failed = {r.source: r.error or "unknown" for r in results if not r.success}

        if not succeeded:
            raise NoSourcesAvailable(
                f"No sources available: {len(failed)} failed, "
                f"{len(skipped)} skipped",
                failures=failed,
            )

        values = [r.value for r in succeeded]
        value = values[0] if len(values) == 1 else fmean(values)

        return CanonicalValue(
            value=value,
            sources=tuple(r.source for r in succeeded),
            failed=failed,
            skipped=tuple(skipped),
        )


def _is_valid_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)
