"""HTTP client for the remote encounter generation service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Protocol

import httpx
from pydantic import ValidationError

from .errors import GenerationRejected, GenerationTimeout, GenerationTransportError
from .schemas import EncounterRequest, ServiceEnvelope

logger = logging.getLogger(__name__)


class EncounterGenerator(Protocol):
    async def generate(self, request: EncounterRequest) -> Any:
        """Return the raw payload for ``request`` or raise a ``GenerationError``."""


class GenerationClient:
    """Send one validated request per call and classify every failure.

    Each call is bounded by the variant's deadline: the single-iteration
    combat generator gets 120 seconds, the multi-iteration generators 300.
    Nothing is retried here.
    """

    def __init__(
        self,
        server_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        deadlines: Mapping[str, float] | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self._transport = transport
        self._deadlines = dict(deadlines or {})

    def deadline_for(self, request: EncounterRequest) -> float:
        return self._deadlines.get(request.variant, request.deadline_s)

    async def generate(self, request: EncounterRequest) -> Any:
        deadline_s = self.deadline_for(request)
        logger.info("Generating %s encounter (deadline %ss)", request.variant, deadline_s)
        try:
            payload = await asyncio.wait_for(self._post(request, deadline_s), timeout=deadline_s)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Generation of %s encounter timed out after %ss", request.variant, deadline_s)
            raise GenerationTimeout(variant=request.variant, deadline_s=deadline_s) from exc
        except (GenerationTransportError, GenerationRejected) as exc:
            logger.warning("Generation of %s encounter failed: %s", request.variant, exc)
            raise
        logger.info("Generated %s encounter", request.variant)
        return payload

    async def _post(self, request: EncounterRequest, deadline_s: float) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.server_url,
                transport=self._transport,
                timeout=deadline_s,
            ) as client:
                response = await client.post(
                    request.endpoint,
                    json=request.to_wire(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException:
            raise
        except httpx.HTTPError as exc:
            raise GenerationTransportError(f"Could not reach generation service: {exc}") from exc

        if not response.is_success:
            raise GenerationTransportError(
                f"Server error: {response.status_code} {response.reason_phrase}".rstrip(),
                status=response.status_code,
            )
        return read_envelope(response)


def read_envelope(response: httpx.Response) -> Any:
    """Unwrap the service envelope, returning its payload unchanged."""
    try:
        envelope = ServiceEnvelope.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise GenerationTransportError(
            f"Malformed response from generation service (status {response.status_code})",
            status=response.status_code,
        ) from exc

    if not envelope.success:
        raise GenerationRejected(envelope.error or "Unknown error")
    if envelope.payload is None:
        raise GenerationRejected("Service reported success without a payload")
    return envelope.payload
