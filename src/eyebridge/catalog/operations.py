"""The fixed catalog of eye-control operations.

Each operation pairs a Pydantic argument schema with pure mapping
functions that turn validated arguments into a wire command for the
serial firmware and/or the HTTP controller. The catalog is static: there
is no runtime registration.
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from eyebridge.domain.models import (
    POSITIONS,
    SERVO_MAX,
    SERVO_MIN,
    Direction,
    HttpQuery,
    SerialLine,
)


TransportKind = Literal["serial", "http"]


# ---------------------------------------------------------------------------
# Argument schemas
# ---------------------------------------------------------------------------


class NoArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class MoveEyesArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    horizontal: int = Field(strict=True, ge=SERVO_MIN, le=SERVO_MAX, description="Horizontal position (0-180)")
    vertical: int = Field(strict=True, ge=SERVO_MIN, le=SERVO_MAX, description="Vertical position (0-180)")


class SetEyelidsArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    openness: float = Field(strict=True, ge=0, le=100, description="Eyelid openness percentage (0-100)")


class LookAtArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    target: Direction = Field(description="Direction to look (left, right, up, down, center)")


class ToggleArgs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enable: StrictBool = Field(description="Enable (true) or disable (false)")


# ---------------------------------------------------------------------------
# Wire formatting helpers
# ---------------------------------------------------------------------------


def format_number(value: float) -> str:
    """Render a number the way the firmware parses it.

    Integral values drop the decimal point (``50.0`` -> ``"50"``) so that
    integer-only parsers on the microcontroller accept them.
    """
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _flag(enable: bool) -> str:
    return "1" if enable else "0"


def _move_serial(args: MoveEyesArgs) -> SerialLine:
    return SerialLine(line=f"MOVE {args.horizontal} {args.vertical}")


def _move_http(args: MoveEyesArgs) -> HttpQuery:
    return HttpQuery(
        path="move",
        params=(("h", str(args.horizontal)), ("v", str(args.vertical))),
    )


def resolve_direction(target: Direction) -> MoveEyesArgs:
    """Translate a symbolic direction into servo coordinates."""
    horizontal, vertical = POSITIONS[Direction(target)]
    return MoveEyesArgs(horizontal=horizontal, vertical=vertical)


# ---------------------------------------------------------------------------
# Operation model
# ---------------------------------------------------------------------------


class Operation(BaseModel):
    """A named, schema-validated operation and its wire mappings.

    ``to_serial`` / ``to_http`` are None when the operation is not
    available on that transport.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    arguments: type[BaseModel] = Field(description="Pydantic schema for the operation's inputs")
    to_serial: Callable[[Any], SerialLine] | None = None
    to_http: Callable[[Any], HttpQuery] | None = None

    def supports(self, kind: TransportKind) -> bool:
        if kind == "serial":
            return self.to_serial is not None
        return self.to_http is not None

    def validate_arguments(self, raw: dict[str, Any] | None) -> BaseModel:
        """Validate raw caller arguments.

        Raises:
            pydantic.ValidationError: If the arguments do not match the schema.
        """
        return self.arguments.model_validate(raw or {})

    def to_wire(self, args: BaseModel, kind: TransportKind) -> SerialLine | HttpQuery:
        """Build the wire command for validated arguments.

        Raises:
            ValueError: If the operation has no mapping for ``kind``.
        """
        mapper = self.to_serial if kind == "serial" else self.to_http
        if mapper is None:
            raise ValueError(f"{self.name} is not supported by the {kind} transport")
        return mapper(args)

    def input_schema(self) -> dict[str, Any]:
        return self.arguments.model_json_schema()


# ---------------------------------------------------------------------------
# The catalog
# ---------------------------------------------------------------------------


def _look_serial(args: LookAtArgs) -> SerialLine:
    return _move_serial(resolve_direction(args.target))


def _look_http(args: LookAtArgs) -> HttpQuery:
    return _move_http(resolve_direction(args.target))


MOVE_EYES = Operation(
    name="moveEyes",
    description="Move both eyes to an absolute servo position",
    arguments=MoveEyesArgs,
    to_serial=_move_serial,
    to_http=_move_http,
)

SET_EYELIDS = Operation(
    name="setEyelids",
    description="Set how far the eyelids are open, as a percentage",
    arguments=SetEyelidsArgs,
    to_serial=lambda a: SerialLine(line=f"EYELIDS {format_number(a.openness)}"),
    to_http=lambda a: HttpQuery(path="eyelids", params=(("openness", format_number(a.openness)),)),
)

BLINK = Operation(
    name="blink",
    description="Trigger a single blink animation",
    arguments=NoArgs,
    to_serial=lambda a: SerialLine(line="BLINK"),
    to_http=lambda a: HttpQuery(path="blink"),
)

LOOK_AT = Operation(
    name="lookAt",
    description="Look in a predefined direction (left, right, up, down, center)",
    arguments=LookAtArgs,
    to_serial=_look_serial,
    to_http=_look_http,
)

RANDOM_MOVEMENT = Operation(
    name="randomMovement",
    description="Enable or disable random eye movements",
    arguments=ToggleArgs,
    to_serial=lambda a: SerialLine(line=f"RANDOM {_flag(a.enable)}"),
    to_http=lambda a: HttpQuery(path="random", params=(("enable", _flag(a.enable)),)),
)

SET_AUTO_BLINK = Operation(
    name="setAutoBlink",
    description="Enable or disable automatic blinking",
    arguments=ToggleArgs,
    to_http=lambda a: HttpQuery(path="autoblink", params=(("enable", _flag(a.enable)),)),
)

CATALOG: dict[str, Operation] = {
    op.name: op
    for op in (MOVE_EYES, SET_EYELIDS, BLINK, LOOK_AT, RANDOM_MOVEMENT, SET_AUTO_BLINK)
}


class UnknownOperationError(KeyError):
    """Raised when an operation name is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown operation: {self.name}"


def get_operation(name: str) -> Operation:
    """Look up an operation by name.

    Raises:
        UnknownOperationError: If no operation has that name.
    """
    try:
        return CATALOG[name]
    except KeyError:
        raise UnknownOperationError(name) from None


def list_operations(kind: TransportKind | None = None) -> list[Operation]:
    """Return the operations in catalog order, optionally filtered by transport."""
    return [op for op in CATALOG.values() if kind is None or op.supports(kind)]
