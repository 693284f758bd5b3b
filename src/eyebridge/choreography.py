"""Eye poses used around a conversation, plus the hardware self-test.

A pose is a fixed sequence of catalog calls. Steps run strictly one after
another: each call is awaited before the next is issued so the eyes move
in the intended order. A failing step is logged and the sequence carries
on, so a single dropped command never leaves the caller stuck mid-pose.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eyebridge.dispatcher import Dispatcher
from eyebridge.domain.models import Envelope

logger = logging.getLogger(__name__)


class EyePose(str, enum.Enum):
    """Conversation phases the eyes can express."""

    IDLE = "idle"
    LISTENING = "listening"
    THINKING = "thinking"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class Step(BaseModel):
    """One operation call within a sequence."""

    model_config = ConfigDict(frozen=True)

    operation: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    pause_after: float = Field(default=0.0, ge=0, description="Seconds to wait after the call")
    description: str = ""


POSES: dict[EyePose, tuple[Step, ...]] = {
    EyePose.IDLE: (
        Step(operation="randomMovement", arguments={"enable": True}),
        Step(operation="setEyelids", arguments={"openness": 80}),
    ),
    EyePose.LISTENING: (
        Step(operation="randomMovement", arguments={"enable": False}),
        Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 110}),
        Step(operation="setEyelids", arguments={"openness": 60}),
    ),
    EyePose.THINKING: (
        Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 70}),
        Step(operation="setEyelids", arguments={"openness": 100}),
    ),
    EyePose.PROCESSING: (
        Step(operation="lookAt", arguments={"target": "center"}),
        Step(operation="blink", pause_after=0.15),
        Step(operation="blink"),
        Step(operation="setEyelids", arguments={"openness": 75}),
    ),
    EyePose.SPEAKING: (
        Step(operation="lookAt", arguments={"target": "center"}),
        Step(operation="setEyelids", arguments={"openness": 75}),
    ),
}

# Servo sweep in raw positions; directions are named from the observer's side
SELF_TEST: tuple[Step, ...] = (
    Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 90}, pause_after=1.0, description="Center eyes"),
    Step(operation="setEyelids", arguments={"openness": 100}, pause_after=1.0, description="Fully open eyelids"),
    Step(operation="blink", pause_after=1.0, description="Trigger blink"),
    Step(operation="moveEyes", arguments={"horizontal": 40, "vertical": 90}, pause_after=1.5, description="Look left"),
    Step(operation="moveEyes", arguments={"horizontal": 140, "vertical": 90}, pause_after=1.5, description="Look right"),
    Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 40}, pause_after=1.5, description="Look up"),
    Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 140}, pause_after=1.5, description="Look down"),
    Step(operation="moveEyes", arguments={"horizontal": 90, "vertical": 90}, pause_after=1.0, description="Center eyes again"),
    Step(operation="setEyelids", arguments={"openness": 50}, pause_after=1.5, description="Half-open eyelids"),
    Step(operation="setEyelids", arguments={"openness": 100}, pause_after=1.0, description="Fully open eyelids"),
    Step(operation="randomMovement", arguments={"enable": False}, pause_after=0.5, description="Disable random movement"),
    Step(operation="randomMovement", arguments={"enable": True}, pause_after=0.5, description="Enable random movement"),
)


async def run_sequence(dispatcher: Dispatcher, steps: tuple[Step, ...] | list[Step]) -> list[Envelope]:
    """Run steps in order, returning one envelope per step."""
    envelopes: list[Envelope] = []
    for index, step in enumerate(steps, start=1):
        if step.description:
            logger.info("[%d/%d] %s", index, len(steps), step.description)
        envelope = await dispatcher.call(step.operation, step.arguments)
        if envelope.is_error:
            logger.warning("Step %s failed: %s", step.operation, envelope.text)
        envelopes.append(envelope)
        if step.pause_after:
            await asyncio.sleep(step.pause_after)
    return envelopes


async def apply_pose(dispatcher: Dispatcher, pose: EyePose | str) -> list[Envelope]:
    """Move the eyes into one of the conversation poses."""
    pose = EyePose(pose)
    logger.info("[Pose] %s", pose.value)
    return await run_sequence(dispatcher, POSES[pose])


async def run_self_test(dispatcher: Dispatcher) -> list[Envelope]:
    logger.info("=== Starting self-test sequence ===")
    envelopes = await run_sequence(dispatcher, SELF_TEST)
    failed = sum(1 for e in envelopes if e.is_error)
    logger.info("=== Self-test completed: %d/%d steps succeeded ===", len(envelopes) - failed, len(envelopes))
    return envelopes
