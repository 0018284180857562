"""
Batched, failure-tolerant detail enrichment.

A primary listing is augmented with optional secondary describe calls
(tags, lifecycle rules, encryption, ...). Each secondary call produces an
EnrichmentOutcome:

- value:   the fetch succeeded and its result is applied to the item
- absent:  the facet is not configured; the field keeps its default
- failure: a genuine error; enrichment stops for that one item

Items are processed in fixed-width batches. Every item of a batch runs
concurrently and the next batch starts only after the whole batch is done,
which bounds in-flight vendor requests to the batch width.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

import structlog

from app.shared.adapters.aws_errors import ErrorClassifier, aws_error_code, never
from app.shared.core.exceptions import AdapterError
from app.shared.core.ops_metrics import ENRICHMENT_OUTCOMES_TOTAL

logger = structlog.get_logger()

T = TypeVar("T")
U = TypeVar("U")

DEFAULT_BATCH_SIZE = 5


class OutcomeKind(str, Enum):
    VALUE = "value"
    ABSENT = "absent"
    FAILURE = "failure"


@dataclass(frozen=True)
class EnrichmentOutcome(Generic[U]):
    kind: OutcomeKind
    value: Optional[U] = None
    error: Optional[BaseException] = None

    @classmethod
    def of(cls, value: U) -> "EnrichmentOutcome[U]":
        return cls(OutcomeKind.VALUE, value=value)

    @classmethod
    def absent(cls) -> "EnrichmentOutcome[U]":
        return cls(OutcomeKind.ABSENT)

    @classmethod
    def failure(cls, error: BaseException) -> "EnrichmentOutcome[U]":
        return cls(OutcomeKind.FAILURE, error=error)

    @property
    def is_value(self) -> bool:
        return self.kind is OutcomeKind.VALUE

    @property
    def is_absent(self) -> bool:
        return self.kind is OutcomeKind.ABSENT

    @property
    def is_failure(self) -> bool:
        return self.kind is OutcomeKind.FAILURE


@dataclass(frozen=True)
class Enrichment(Generic[T, U]):
    """
    One optional facet of an item.

    `apply` returns the updated item; `is_absent` decides which errors mean
    "not configured" for this particular facet.
    """

    name: str
    fetch: Callable[[T], Awaitable[U]]
    apply: Callable[[T, U], T]
    is_absent: ErrorClassifier = never


@dataclass(frozen=True)
class EnrichmentFailure:
    index: int
    feature: str
    error: BaseException


@dataclass
class EnrichmentResult(Generic[T]):
    items: list[T]
    failures: list[EnrichmentFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """Raise AdapterError for the first failed facet, if any."""
        if not self.failures:
            return
        failure = self.failures[0]
        error_code = aws_error_code(failure.error) or type(failure.error).__name__
        raise AdapterError(
            f"AWS {failure.feature} failed: {error_code}",
            details={"operation": failure.feature, "aws_error_code": error_code},
        ) from failure.error


async def fetch_outcome(
    feature: str,
    fetch: Callable[[], Awaitable[U]],
    is_absent: ErrorClassifier = never,
) -> EnrichmentOutcome[U]:
    """Run one secondary fetch and classify its result."""
    try:
        value = await fetch()
    except Exception as e:
        if is_absent(e):
            ENRICHMENT_OUTCOMES_TOTAL.labels(feature=feature, outcome="absent").inc()
            logger.debug(
                "enrichment_feature_absent",
                feature=feature,
                error_code=aws_error_code(e),
            )
            return EnrichmentOutcome.absent()
        ENRICHMENT_OUTCOMES_TOTAL.labels(feature=feature, outcome="failure").inc()
        return EnrichmentOutcome.failure(e)
    ENRICHMENT_OUTCOMES_TOTAL.labels(feature=feature, outcome="value").inc()
    return EnrichmentOutcome.of(value)


def partition(items: Sequence[T], size: int) -> list[Sequence[T]]:
    if size < 1:
        raise ValueError("batch_size must be >= 1")
    return [items[start : start + size] for start in range(0, len(items), size)]


class DetailEnricher:
    """Applies secondary fetches to items in barrier-synchronised batches."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.batch_size = batch_size

    async def enrich(
        self,
        items: Sequence[T],
        enrichments: Sequence[Enrichment[T, Any]],
        *,
        batch_size: int | None = None,
        require_complete: bool = False,
    ) -> EnrichmentResult[T]:
        """
        Return the items in input order with every successful facet applied.

        A failure stops the remaining fetches for that item only. The item is
        kept with whatever was already applied, unless `require_complete` is
        set, in which case it is dropped from the result.
        """
        width = self.batch_size if batch_size is None else batch_size
        enriched: list[T] = []
        failures: list[EnrichmentFailure] = []

        offset = 0
        for batch in partition(items, width):
            results = await asyncio.gather(
                *(self._enrich_item(item, enrichments) for item in batch)
            )
            for position, (item, failure) in enumerate(results):
                if failure is not None:
                    feature, error = failure
                    failures.append(
                        EnrichmentFailure(
                            index=offset + position, feature=feature, error=error
                        )
                    )
                    if require_complete:
                        continue
                enriched.append(item)
            offset += len(batch)

        return EnrichmentResult(items=enriched, failures=failures)

    async def run_in_batches(
        self,
        items: Sequence[T],
        fetch: Callable[[T], Awaitable[U]],
        *,
        feature: str,
        batch_size: int | None = None,
        is_absent: ErrorClassifier = never,
    ) -> list[EnrichmentOutcome[U]]:
        """
        Run one fetch per item in batches and return outcomes in input order.
        Used where each item needs its full per-item detail.
        """
        width = self.batch_size if batch_size is None else batch_size
        outcomes: list[EnrichmentOutcome[U]] = []
        for batch in partition(items, width):
            outcomes.extend(
                await asyncio.gather(
                    *(
                        fetch_outcome(feature, _bind(fetch, item), is_absent)
                        for item in batch
                    )
                )
            )
        for item, outcome in zip(items, outcomes):
            if outcome.is_failure:
                logger.warning(
                    "enrichment_item_failed",
                    feature=feature,
                    item=str(item),
                    error=str(outcome.error),
                    error_code=aws_error_code(outcome.error)
                    if outcome.error is not None
                    else None,
                )
        return outcomes

    async def _enrich_item(
        self, item: T, enrichments: Sequence[Enrichment[T, Any]]
    ) -> tuple[T, Optional[tuple[str, BaseException]]]:
        # Facets of one item run sequentially so a batch never exceeds its width.
        for enrichment in enrichments:
            outcome = await fetch_outcome(
                enrichment.name, _bind(enrichment.fetch, item), enrichment.is_absent
            )
            if outcome.error is not None:
                logger.warning(
                    "enrichment_failed",
                    feature=enrichment.name,
                    error=str(outcome.error),
                    error_code=aws_error_code(outcome.error),
                )
                return item, (enrichment.name, outcome.error)
            if outcome.is_value:
                item = enrichment.apply(item, outcome.value)
        return item, None


def _bind(fetch: Callable[[T], Awaitable[U]], item: T) -> Callable[[], Awaitable[U]]:
    return lambda: fetch(item)
