"""Dispatches catalog operations to a transport.

The dispatcher is the single entry point used by callers (the tool API,
the CLI, choreography sequences). It validates arguments against the
operation's schema, builds the wire command for the active transport,
sends it, and wraps the outcome in an envelope. It never raises.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from eyebridge.catalog import Operation, UnknownOperationError, get_operation, list_operations
from eyebridge.domain.models import Envelope, Failure, FailureKind
from eyebridge.envelope import build_envelope, failure_envelope
from eyebridge.transport.base import Transport

logger = logging.getLogger(__name__)


def format_validation_error(exc: ValidationError) -> str:
    """Condense pydantic errors into one line, e.g. ``openness: Input should be ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


class Dispatcher:
    """Validates, maps and sends operations over one transport.

    Example usage::

        dispatcher = Dispatcher(transport)
        envelope = await dispatcher.call("moveEyes", {"horizontal": 90, "vertical": 90})
        print(envelope.text, envelope.is_error)
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def transport(self) -> Transport:
        return self._transport

    def available_operations(self) -> list[Operation]:
        """Operations the active transport can carry."""
        return list_operations(self._transport.kind)  # type: ignore[arg-type]

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> Envelope:
        """Run one operation and return its envelope."""
        try:
            operation = get_operation(name)
        except UnknownOperationError as exc:
            logger.warning("%s", exc)
            return failure_envelope(str(exc))

        try:
            args = operation.validate_arguments(arguments)
        except ValidationError as exc:
            detail = format_validation_error(exc)
            logger.warning("Rejected %s%s: %s", name, arguments or {}, detail)
            return failure_envelope(f"Invalid arguments for {name}: {detail}")

        kind = self._transport.kind
        if not operation.supports(kind):  # type: ignore[arg-type]
            logger.warning("%s is not available on the %s transport", name, kind)
            return failure_envelope(f"{name} is not supported by the {kind} transport")

        command = operation.to_wire(args, kind)  # type: ignore[arg-type]
        logger.info("%s(%s) -> %s", name, args.model_dump(mode="json"), command)
        try:
            result = await self._transport.send(command)
        except Exception as exc:
            logger.exception("Transport raised while sending %s", name)
            result = Failure(reason=f"unexpected transport error: {exc}", kind=FailureKind.WRITE_FAILURE)

        envelope = build_envelope(name, args, result)
        if envelope.is_error:
            logger.warning("%s failed: %s", name, envelope.text)
        return envelope
