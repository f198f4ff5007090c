"""Concurrent fetch of recent enquiry rows from both stores."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Final

from linkwise.domain.errors import QueryError
from linkwise.domain.model import StoreSource, WarningLog

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from linkwise.domain.ports import Row, StoreAdapter

log = logging.getLogger(__name__)

ENQUIRY_TABLE: Final[str] = "enquiries"
DEFAULT_FETCH_LIMIT: Final[int] = 1000
DEFAULT_FETCH_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True, slots=True)
class EnquiryFetchRequest:
    """Parameters describing which enquiry rows to fetch from each store."""

    limit: int | None = DEFAULT_FETCH_LIMIT
    start: datetime | None = None
    end: datetime | None = None


@dataclass(slots=True)
class EnquiryFetchResult:
    rows: dict[StoreSource, list[Row]] = field(default_factory=dict[StoreSource, "list[Row]"])
    warnings: WarningLog = field(default_factory=WarningLog)

    @property
    def legacy(self) -> list[Row]:
        return self.rows.get(StoreSource.LEGACY, [])

    @property
    def current(self) -> list[Row]:
        return self.rows.get(StoreSource.CURRENT, [])


def fetch_enquiries(
    stores: Mapping[StoreSource, StoreAdapter],
    request: EnquiryFetchRequest,
    *,
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> EnquiryFetchResult:
    """Fetch enquiries from every store at once.

    A store that fails or times out contributes no rows and one warning; the
    other store's rows are still returned.
    """

    return asyncio.run(_fetch_async(stores, request, timeout_seconds=timeout_seconds))


async def _fetch_async(
    stores: Mapping[StoreSource, StoreAdapter],
    request: EnquiryFetchRequest,
    *,
    timeout_seconds: float,
) -> EnquiryFetchResult:
    sources = list(stores)
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(
        max_workers=max(len(sources), 1), thread_name_prefix="linkwise-fetch"
    )
    try:
        outcomes = await asyncio.gather(
            *(
                asyncio.wait_for(
                    loop.run_in_executor(
                        executor,
                        partial(
                            stores[source].fetch,
                            ENQUIRY_TABLE,
                            start=request.start,
                            end=request.end,
                            limit=request.limit,
                        ),
                    ),
                    timeout=timeout_seconds,
                )
                for source in sources
            ),
            return_exceptions=True,
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    result = EnquiryFetchResult()
    for source, outcome in zip(sources, outcomes, strict=True):
        if isinstance(outcome, QueryError):
            log.warning("Fetching %s enquiries failed: %s", source, outcome)
            result.warnings.add(str(source), str(outcome))
            rows: list[Row] = []
        elif isinstance(outcome, TimeoutError):
            log.warning("Fetching %s enquiries timed out after %.1fs", source, timeout_seconds)
            result.warnings.add(str(source), f"timed out after {timeout_seconds:.1f}s")
            rows = []
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            rows = list(outcome)
        log.info("Fetched %d %s enquiry row(s)", len(rows), source)
        result.rows[source] = rows
    return result


__all__ = [
    "ENQUIRY_TABLE",
    "EnquiryFetchRequest",
    "EnquiryFetchResult",
    "fetch_enquiries",
]
