"""Application services wiring stores, configuration and the core algorithms."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from linkwise.config.expansion import get_expansion_limits
from linkwise.domain.closure.expand import resolve_entity_closure
from linkwise.domain.enquiries import EnquiryFetchRequest, fetch_enquiries
from linkwise.domain.reconciliation import reconcile
from linkwise.domain.time_windows import apply_time_window

if TYPE_CHECKING:
    from collections.abc import Mapping

    from linkwise.config.expansion import ExpansionLimits
    from linkwise.domain.closure.expand import ExpansionResult
    from linkwise.domain.model import LookupWarning, StoreSource
    from linkwise.domain.ports import StoreAdapter
    from linkwise.domain.reconciliation import ReconciliationResult
    from linkwise.domain.time_windows import TimeWindow

log = getLogger(__name__)


class StoreProvider(Protocol):
    """Anything that hands out the adapters for both stores, e.g. ``StoreContext``."""

    def stores(self) -> Mapping[StoreSource, StoreAdapter]: ...


@dataclass(frozen=True, slots=True)
class EnquiryReconciliation:
    result: ReconciliationResult
    warnings: tuple[LookupWarning, ...] = ()


def reconcile_enquiries(
    context: StoreProvider,
    request: EnquiryFetchRequest | None = None,
    *,
    window: TimeWindow | None = None,
) -> EnquiryReconciliation:
    """Fetch recent enquiries from both stores and reconcile them."""

    effective_request = request or EnquiryFetchRequest()
    if window is not None:
        effective_request = apply_time_window(effective_request, window)
    log.info(
        "Starting reconciliation: limit=%s, window=%s",
        effective_request.limit,
        window or "unbounded",
    )
    fetched = fetch_enquiries(context.stores(), effective_request)
    result = reconcile(fetched.legacy, fetched.current)
    return EnquiryReconciliation(result=result, warnings=tuple(fetched.warnings))


def lookup_entity(
    context: StoreProvider,
    seed: str,
    limits: ExpansionLimits | None = None,
) -> ExpansionResult:
    """Resolve everything linked to ``seed`` across both stores."""

    effective_limits = limits or get_expansion_limits()
    log.info("Starting lookup for %r", seed)
    return resolve_entity_closure(
        seed,
        tuple(context.stores().values()),
        limits=effective_limits,
    )
