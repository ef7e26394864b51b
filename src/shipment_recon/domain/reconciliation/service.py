"""
Reconciliation engine.

Control flow for one batch:
1. Validate configuration (no network call on failure)
2. Obtain the Order-System token (cached across batches)
3. Resolve identifiers to order references with one batched search
4. Log in to the Trace-System and trace the batch with one call
5. Fetch Order-System detail per resolved identifier, bounded concurrency
6. Merge everything into one result per identifier, in input order

Order-System session and resolver failures abort the batch. Trace-System
failures only downgrade each trace side to "not attempted".
"""

from typing import Dict, List, Optional, Sequence

from shipment_recon.config.settings import Settings, get_settings
from shipment_recon.errors import AuthError, ConfigError, UpstreamError
from shipment_recon.io.connectors.order_system import OrderSystemClient
from shipment_recon.io.connectors.trace_system import TraceSystemClient
from shipment_recon.utils.logging import bind_context, get_logger

from .concurrency import ConcurrencyLimiter
from .detail_gatherer import DetailGatherer
from .identifiers import LookupMode
from .merger import ReconciliationMerger
from .models import ReconciliationResult, TraceRecord
from .resolver import IdentifierResolver
from .session_store import SessionStore
from .trace_gatherer import TraceGatherer

logger = get_logger(__name__)


class ReconciliationService:
    """Runs dual-backend reconciliation for one identifier batch at a time."""

    def __init__(
        self,
        settings: Settings,
        session_store: SessionStore,
        resolver: IdentifierResolver,
        detail_gatherer: DetailGatherer,
        trace_gatherer: TraceGatherer,
        merger: Optional[ReconciliationMerger] = None,
    ) -> None:
        self.settings = settings
        self.session_store = session_store
        self.resolver = resolver
        self.detail_gatherer = detail_gatherer
        self.trace_gatherer = trace_gatherer
        self.merger = merger or ReconciliationMerger()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ReconciliationService":
        """Wire the engine with real upstream clients."""
        settings = settings or get_settings()
        order_client = OrderSystemClient(
            settings.order_system_base_url,
            company_id=settings.order_system_company_id,
            client_id=settings.order_system_client,
            timeout=settings.request_timeout,
            retry_max=settings.retry_max,
        )
        trace_client = TraceSystemClient(
            settings.trace_system_base_url,
            timeout=settings.request_timeout,
            retry_max=settings.retry_max,
        )
        session_store = SessionStore(settings, order_client, trace_client)
        return cls(
            settings=settings,
            session_store=session_store,
            resolver=IdentifierResolver(session_store, order_client),
            detail_gatherer=DetailGatherer(
                order_client, ConcurrencyLimiter(settings.detail_concurrency)
            ),
            trace_gatherer=TraceGatherer(trace_client),
        )

    def _check_configuration(self) -> None:
        missing = self.settings.missing_credentials()
        if missing:
            logger.error("reconcile.config_missing", missing=missing)
            details = "; ".join(
                f"{backend}: {', '.join(names)}" for backend, names in missing.items()
            )
            raise ConfigError(f"Missing required credentials ({details})")

    def _trace(
        self, mode: LookupMode, identifiers: Sequence[str]
    ) -> Optional[Dict[str, TraceRecord]]:
        """Trace the batch; None means the lookup could not be attempted."""
        if not self.settings.trace_enabled:
            logger.info("reconcile.trace_disabled")
            return None
        try:
            session = self.session_store.login_trace_system()
            return self.trace_gatherer.trace_batch(session, mode, identifiers)
        except (AuthError, UpstreamError) as e:
            logger.warning("reconcile.trace_unavailable", error=str(e))
            return None

    def reconcile(
        self, mode: LookupMode, identifiers: Sequence[str]
    ) -> List[ReconciliationResult]:
        """
        Reconcile a batch of identifiers across both upstream systems.

        Args:
            mode: Tracking-number or pickup-number lookup
            identifiers: Ordered, unique, non-empty identifiers (at most the
                configured batch size)

        Returns:
            One ReconciliationResult per identifier, in input order

        Raises:
            ValueError: Batch larger than the configured limit
            ConfigError: Required credentials missing
            AuthError: Order-System login unusable
            UpstreamError: Order-System search failed
        """
        mode = LookupMode(mode)
        identifiers = list(identifiers)
        if not identifiers:
            return []
        if len(identifiers) > self.settings.max_batch_size:
            raise ValueError(
                f"Batch of {len(identifiers)} exceeds the limit of "
                f"{self.settings.max_batch_size}"
            )

        self._check_configuration()

        log = bind_context(mode=mode.value, batch_size=len(identifiers))
        log.info("reconcile.started")

        token = self.session_store.get_order_token()
        resolved = self.resolver.resolve(mode, identifiers)
        traced = self._trace(mode, identifiers)
        details = self.detail_gatherer.gather(token, identifiers, resolved)

        results = self.merger.merge(identifiers, resolved, details, traced)

        log.info(
            "reconcile.completed",
            resolved=len(resolved),
            order_ok=sum(1 for r in results if r.order.ok),
            trace_attempted=traced is not None,
            trace_found=sum(1 for r in results if r.trace.ok),
        )
        return results


def reconcile(
    mode: LookupMode,
    identifiers: Sequence[str],
    service: Optional[ReconciliationService] = None,
) -> List[ReconciliationResult]:
    """Convenience entry point using a service wired from settings."""
    service = service or ReconciliationService.from_settings()
    return service.reconcile(mode, identifiers)
