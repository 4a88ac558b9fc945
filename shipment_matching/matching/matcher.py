"""
Shipment Matcher Module.

Orchestrates the full matching pipeline for one billing record:
1. Extract identifiers
2. Plan lookups for every strategy
3. Run all lookups concurrently (filters applied inside each lookup)
4. Merge candidates per shipment
5. Score, rank and classify
6. Record an audit entry

The matcher holds no per-request state, so one instance can serve many
threads at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any

from shipment_matching.audit import AuditLogger, NullAuditLogger
from shipment_matching.config import Settings, get_settings
from shipment_matching.domain.models import BillingRecord, MatchResult, MatchStatus
from shipment_matching.exceptions import (
    AuditLogError,
    InvalidBillingRecordError,
    MatchTimeoutError,
    ShipmentMatchingError,
    StoreQueryError,
    StoreUnavailableError,
)
from shipment_matching.matching.filters import (
    CarrierFilter,
    ScopeFilter,
    ShipmentFilter,
    build_filters,
)
from shipment_matching.matching.identifiers import extract_identifiers
from shipment_matching.matching.merge import CandidateMerger
from shipment_matching.matching.ranking import build_result
from shipment_matching.matching.scoring import score_candidate
from shipment_matching.matching.strategies import (
    LookupOptions,
    LookupStrategy,
    LookupTask,
    default_strategies,
    plan_lookups,
)
from shipment_matching.store.base import ShipmentStore
from shipment_matching.utils.parallel import execute_parallel
from shipment_matching.utils.stats import ExecutionStats

logger = logging.getLogger(__name__)

BillingInput = BillingRecord | Mapping[str, Any]


@dataclass
class InvoiceMatchReport:
    """Results of matching every line item of one invoice."""

    results: list[MatchResult | None]  # Input order; None where the line failed
    errors: dict[int, str] = field(default_factory=dict)  # Line index -> error message
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def requires_review(self) -> bool:
        """True if any line needs a human decision (or could not be matched at all)."""
        return bool(self.errors) or self.stats.get("require_review", 0) > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "results": [r.to_dict() if r else None for r in self.results],
            "errors": {str(k): v for k, v in self.errors.items()},
            "stats": self.stats,
            "requiresReview": self.requires_review,
        }


def _coerce_billing_record(billing_record: BillingInput | None) -> BillingRecord:
    if billing_record is None:
        raise InvalidBillingRecordError("Missing billing record")
    if isinstance(billing_record, BillingRecord):
        return billing_record
    return BillingRecord.from_dict(billing_record)


def _coerce_carrier_filter(carrier_filter: CarrierFilter | str | None) -> CarrierFilter | None:
    if carrier_filter is None or isinstance(carrier_filter, CarrierFilter):
        return carrier_filter
    name = str(carrier_filter).strip()
    return CarrierFilter(name) if name else None


class ShipmentMatcher:
    """
    Main matching orchestrator.

    Configurable pipeline with pluggable strategies and audit sink.
    """

    def __init__(
        self,
        store: ShipmentStore,
        settings: Settings | None = None,
        audit_logger: AuditLogger | None = None,
        strategies: Sequence[LookupStrategy] | None = None,
    ):
        """
        Initialize matcher.

        Args:
            store: Shipment store to query
            settings: Settings (default: get_settings())
            audit_logger: Audit sink (default: NullAuditLogger)
            strategies: Lookup strategies (default: all four)
        """
        self.store = store
        self.settings = settings or get_settings()
        self.audit_logger = audit_logger or NullAuditLogger()
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.options = LookupOptions.from_settings(self.settings)

    def match(
        self,
        billing_record: BillingInput,
        caller_scope: ScopeFilter,
        carrier_filter: CarrierFilter | str | None = None,
        *,
        caller_id: str | None = None,
        timeout: float | None = None,
    ) -> MatchResult:
        """
        Match one billing record to shipments.

        Args:
            billing_record: BillingRecord or invoice-parser dict
            caller_scope: Organizations the caller may see
            carrier_filter: Optional carrier restriction (CarrierFilter or name)
            caller_id: Principal recorded in the audit entry
            timeout: Deadline in seconds for all lookups (default: settings)

        Returns:
            MatchResult (NO_MATCH is a normal result)

        Raises:
            InvalidBillingRecordError: If the billing record is unusable
            StoreUnavailableError: If the store cannot be reached
            MatchTimeoutError: If lookups do not finish before the deadline
        """
        result, _ = self.match_with_stats(
            billing_record,
            caller_scope,
            carrier_filter,
            caller_id=caller_id,
            timeout=timeout,
        )
        return result

    def match_with_stats(
        self,
        billing_record: BillingInput,
        caller_scope: ScopeFilter,
        carrier_filter: CarrierFilter | str | None = None,
        *,
        caller_id: str | None = None,
        timeout: float | None = None,
    ) -> tuple[MatchResult, dict[str, int]]:
        """
        Match and return detailed lookup statistics.

        Returns:
            Tuple of (result, stats_dict)
        """
        record = _coerce_billing_record(billing_record)
        carrier = _coerce_carrier_filter(carrier_filter)
        filters = build_filters(caller_scope, carrier)

        # 1. Extract
        identifiers = extract_identifiers(record, self.settings.platform_id_prefix)
        logger.debug(
            f"Identifiers for {record.shipment_id or '<no id>'}: "
            f"platform={identifiers.platform_ids} tracking={identifiers.tracking_numbers} "
            f"reference={identifiers.reference_numbers} date={identifiers.ship_date} "
            f"amount={identifiers.amount}"
        )

        # 2. Plan
        if identifiers.is_empty:
            logger.debug(f"Nothing to look up for {record.shipment_id or '<no id>'}")
            tasks = []
        else:
            tasks = plan_lookups(identifiers, self.strategies, self.options)
        stats = ExecutionStats(
            lookups_planned=len(tasks),
            lookups_failed=0,
            raw_candidates=0,
            rejected_scope=0,
            rejected_carrier=0,
            merged_candidates=0,
        )

        # 3-4. Fan out, merge
        merger = CandidateMerger()
        self._run_lookups(tasks, filters, merger, stats, timeout)
        merged = merger.candidates()
        stats.increment("merged_candidates", len(merged))

        # 5. Score, rank, classify
        result = build_result(
            record,
            [score_candidate(candidate, record) for candidate in merged],
            carrier_filtered=carrier is not None,
            detected_carrier=carrier.carrier_name if carrier else "",
        )

        # 6. Audit
        self._record_audit(result, caller_id)

        logger.info(
            f"Matched {record.shipment_id or '<no id>'}: {result.status.value} "
            f"({result.confidence:.4f}, {len(result.candidates)} candidates, "
            f"{stats['lookups_failed']}/{stats['lookups_planned']} lookups failed)"
        )
        return result, stats.to_dict()

    def _run_lookups(
        self,
        tasks: list[LookupTask],
        filters: Sequence[ShipmentFilter],
        merger: CandidateMerger,
        stats: ExecutionStats,
        timeout: float | None,
    ) -> None:
        """
        Run lookup tasks on a bounded pool; the calling thread merges results.

        A failed lookup is logged and contributes nothing. An unreachable
        store or an expired deadline aborts the whole match.
        """
        if not tasks:
            return

        deadline = timeout if timeout is not None else self.settings.match_timeout_seconds
        executor = ThreadPoolExecutor(
            max_workers=min(self.settings.lookup_max_workers, len(tasks)),
            thread_name_prefix="shipment-lookup",
        )
        try:
            futures = {executor.submit(task.run, self.store, filters, stats): task for task in tasks}
            try:
                for future in as_completed(futures, timeout=deadline):
                    task = futures[future]
                    try:
                        merger.add_all(future.result())
                    except StoreUnavailableError:
                        raise
                    except StoreQueryError as e:
                        stats.increment("lookups_failed")
                        logger.warning(f"⚠ Lookup {task.label} failed: {e}")
                    except Exception as e:
                        stats.increment("lookups_failed")
                        logger.warning(f"⚠ Lookup {task.label} failed unexpectedly: {e!r}")
            except FuturesTimeoutError as e:
                pending = sum(1 for f in futures if not f.done())
                raise MatchTimeoutError(
                    f"Match deadline of {deadline}s expired with {pending} lookups pending"
                ) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _record_audit(self, result: MatchResult, caller_id: str | None) -> None:
        try:
            self.audit_logger.record(result, caller_id)
        except AuditLogError as e:
            logger.warning(f"⚠ Failed to log match attempt: {e}")
        except Exception as e:
            logger.warning(f"⚠ Failed to log match attempt: {e!r}")

    def match_invoice(
        self,
        billing_records: Iterable[BillingInput],
        caller_scope: ScopeFilter,
        carrier_filter: CarrierFilter | str | None = None,
        *,
        caller_id: str | None = None,
        timeout: float | None = None,
        show_progress: bool = False,
    ) -> InvoiceMatchReport:
        """
        Match every line item of an invoice.

        Lines are matched in parallel (invoice_max_workers). A line that
        fails with a matching error is reported in `errors`; other lines
        are unaffected.

        Returns:
            InvoiceMatchReport with results in input order
        """
        lines = list(enumerate(billing_records))
        stats = ExecutionStats(
            total=len(lines),
            **{status.value: 0 for status in MatchStatus},
            require_review=0,
            auto_applicable=0,
            failed=0,
        )

        def match_line(line: tuple[int, BillingInput]) -> MatchResult:
            return self.match(
                line[1], caller_scope, carrier_filter, caller_id=caller_id, timeout=timeout
            )

        def on_error(line: tuple[int, BillingInput], error: Exception) -> None:
            logger.warning(f"⚠ Line {line[0]} could not be matched: {error}")

        outcomes = execute_parallel(
            lines,
            match_line,
            max_workers=self.settings.invoice_max_workers,
            desc="Matching invoice",
            unit="line",
            show_progress=show_progress,
            error_handler=on_error,
            stats=stats,
        )

        results: list[MatchResult | None] = []
        errors: dict[int, str] = {}
        for (index, _), result, error in outcomes:
            if error is not None:
                if not isinstance(error, ShipmentMatchingError):
                    raise error
                errors[index] = str(error)
                results.append(None)
                continue
            results.append(result)
            stats.increment(result.status.value)
            if result.review_required:
                stats.increment("require_review")
            if result.status == MatchStatus.EXCELLENT:
                stats.increment("auto_applicable")

        return InvoiceMatchReport(results=results, errors=errors, stats=stats.to_dict())
