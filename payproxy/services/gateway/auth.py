"""Shared-secret gate in front of every proxy route."""

import hmac

from fastapi import Request
from fastapi.responses import JSONResponse

from payproxy.common.logging import logger
from payproxy.common.metrics import auth_decisions_total
from payproxy.common.startup import mask_secret


API_KEY_HEADER = "x-api-key"
PUBLIC_PATHS = frozenset({"/health"})


class CredentialGate:
    """Compares the presented `X-API-Key` against the configured proxy secret."""

    def __init__(self, api_key: str, service_name: str) -> None:
        self._expected = api_key.encode("utf-8")
        self.service_name = service_name

    def allows(self, presented: str | None) -> bool:
        if not presented:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), self._expected)

    def check(self, presented: str | None, path: str) -> bool:
        """Decide one attempt and record its outcome without the full secret."""

        allowed = self.allows(presented)
        outcome = "allow" if allowed else "deny"
        auth_decisions_total.labels(service=self.service_name, outcome=outcome).inc()
        if allowed:
            logger.info("api key accepted path=%s key=%s", path, mask_secret(presented))
        else:
            logger.warning("api key rejected path=%s key=%s", path, mask_secret(presented))
        return allowed


def unauthorized_response() -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


def credential_gate_middleware(gate: CredentialGate):
    """Build HTTP middleware that rejects unauthenticated calls before routing."""

    async def enforce_api_key(request: Request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)
        if not gate.check(request.headers.get(API_KEY_HEADER), request.url.path):
            return unauthorized_response()
        return await call_next(request)

    return enforce_api_key
