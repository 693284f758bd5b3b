"""Builds the caller-facing envelope for each dispatched operation."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel

from eyebridge.catalog.operations import format_number
from eyebridge.domain.models import DispatchResult, Envelope, Failure

SUCCESS_TEMPLATES: dict[str, Callable[[Any], str]] = {
    "moveEyes": lambda a: f"Eyes moved to position: horizontal={a.horizontal}, vertical={a.vertical}",
    "setEyelids": lambda a: f"Eyelids set to {format_number(a.openness)}% open",
    "blink": lambda a: "Triggered blink animation",
    "lookAt": lambda a: f"Eyes looking {a.target.value}",
    "randomMovement": lambda a: f"Random eye movements {'enabled' if a.enable else 'disabled'}",
    "setAutoBlink": lambda a: f"Auto-blink {'enabled' if a.enable else 'disabled'}",
}


def build_envelope(operation: str, arguments: BaseModel, result: DispatchResult) -> Envelope:
    """Wrap a dispatch result into the uniform caller envelope."""
    if isinstance(result, Failure):
        return failure_envelope(f"Failed to send command: {result.reason}")

    template = SUCCESS_TEMPLATES.get(operation)
    text = template(arguments) if template else f"{operation} sent"
    return Envelope.text_only(text)


def failure_envelope(text: str) -> Envelope:
    return Envelope.text_only(text, is_error=True)
