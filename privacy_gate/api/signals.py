"""Request signal extraction — the named-cookie and named-header lookups."""

from fastapi import Request

from privacy_gate.models.identity import RequestSignals


def signals_from_request(request: Request) -> RequestSignals:
    """Collect headers, cookies and the client address from an incoming request."""
    return RequestSignals(
        headers=dict(request.headers),
        cookies=dict(request.cookies),
        client_ip=request.client.host if request.client else None,
    )
