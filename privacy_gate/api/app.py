"""
Privacy Gate API — FastAPI endpoints.

A thin diagnostic surface over the gate:
- Consent decision and synthetic id for the calling request
- Vendor list cache status
"""

from datetime import timedelta
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from privacy_gate.api.signals import signals_from_request
from privacy_gate.config import Settings, get_settings
from privacy_gate.constants import (
    COOKIE_MAX_AGE,
    COOKIE_SYNTHETIC_ID,
    HEADER_SYNTHETIC_FRESH,
    HEADER_SYNTHETIC_TRUSTED_SERVER,
    HEADER_X_CONSENT_ADVERTISING,
)
from privacy_gate.consent.extraction import TcfDecoder
from privacy_gate.errors import PrivacyGateError
from privacy_gate.gate.kernel import PrivacyGate
from privacy_gate.models.consent import AdvertisingConsentLevel, PurposeGroup
from privacy_gate.models.identity import RequestSignals
from privacy_gate.monitoring.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
)
from privacy_gate.vendor_list.cache import VendorListCache

logger = structlog.get_logger(__name__)


# --- Application Factory ---

def create_app(
    settings: Optional[Settings] = None,
    decoder: Optional[TcfDecoder] = None,
    vendor_list_cache: Optional[VendorListCache] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Privacy Gate API",
        description="TCF consent evaluation and synthetic identity resolution",
        version="0.1.0",
    )

    cache = vendor_list_cache or VendorListCache(
        refresh_interval=timedelta(days=settings.consent.vendor_list_refresh_days),
        retry_interval=timedelta(minutes=settings.consent.vendor_list_retry_minutes),
    )
    gate = PrivacyGate.from_settings(
        settings, decoder=decoder, vendor_list_cache=cache
    )

    # Store components on app state for access in endpoints
    app.state.settings = settings
    app.state.vendor_list_cache = cache
    app.state.gate = gate

    @app.middleware("http")
    async def request_log_context(request: Request, call_next):
        clear_request_context()
        bind_request_context(method=request.method, path=request.url.path)
        return await call_next(request)

    @app.exception_handler(PrivacyGateError)
    def handle_privacy_gate_error(request: Request, exc: PrivacyGateError):
        logger.error(
            "privacy_gate_error",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    # === CONSENT + IDENTITY ===

    @app.get("/privacy/decision")
    def get_decision(
        response: Response,
        signals: RequestSignals = Depends(signals_from_request),
        purposes: Optional[List[int]] = Query(default=None),
    ):
        """Gate the calling request; defaults to device-access consent (purpose 1)."""
        requested = tuple(purposes) if purposes else PurposeGroup.DEVICE_ACCESS
        decision = gate.evaluate(signals, requested)

        response.headers[HEADER_X_CONSENT_ADVERTISING] = (
            "true"
            if decision.advertising_level.at_least(AdvertisingConsentLevel.BASIC_ONLY)
            else "false"
        )
        if decision.allowed:
            response.headers[HEADER_SYNTHETIC_FRESH] = decision.fresh_id
            response.headers[HEADER_SYNTHETIC_TRUSTED_SERVER] = decision.synthetic_id
            # Only persist the stable id with device-access consent
            if decision.device_access:
                response.set_cookie(
                    COOKIE_SYNTHETIC_ID,
                    decision.synthetic_id,
                    max_age=COOKIE_MAX_AGE,
                    path="/",
                    domain=settings.publisher.cookie_domain,
                    secure=True,
                    samesite="lax",
                )
        response.headers["cache-control"] = "no-store, private"

        return decision.model_dump(mode="json", exclude={"tc_string"})

    # === VENDOR LIST ===

    @app.get("/privacy/vendor-list")
    def vendor_list_status():
        """Current Global Vendor List snapshot metadata."""
        snapshot = cache.snapshot
        loaded_at = cache.loaded_at
        return {
            "loaded": snapshot is not None,
            "version": snapshot.version if snapshot else None,
            "vendors": len(snapshot.vendors) if snapshot else 0,
            "loaded_at": loaded_at.isoformat() if loaded_at else None,
            "stale": cache.is_stale(),
            "refresh_in_progress": cache.refresh_in_progress,
        }

    return app
