from __future__ import annotations

import dataclasses
import hashlib
import json
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Literal

from usecase_kernel.kernel.model import Actor, Step
from usecase_kernel.kernel.position import Position

SignatureMode = Literal["type_only", "type_and_identity", "hash"]


@dataclass(frozen=True, slots=True)
class MessageSignature:
    # MessageSignature captures type + optional identity/hash.
    type_name: str
    identity: str | None
    hash: str | None


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    # ErrorInfo records a failed reaction.
    type: str
    message: str
    where: str
    stack: str | None = None


@dataclass(frozen=True, slots=True)
class ReactionRecord:
    # One executed (or failed) step reaction.
    trace_id: str
    runner: str
    use_case: str
    flow: str | None
    step_name: str
    actor: str | None
    t_enter: datetime
    t_exit: datetime
    duration_ms: float
    msg_in: MessageSignature | None
    msg_out: MessageSignature | None
    position_before: str | None
    position_after: str | None
    status: Literal["ok", "error"]
    error: ErrorInfo | None


@dataclass(frozen=True, slots=True)
class ReactionSpan:
    # Internal handle used between reaction enter/exit.
    trace_id: str
    step: Step
    actor: str | None
    msg_in: MessageSignature | None
    position_before: str | None
    t_enter: datetime


class TraceRecorder:
    # TraceRecorder builds ReactionRecord entries and keeps them on an in-memory tape.
    def __init__(self, *, runner_name: str = "runner", signature_mode: SignatureMode = "type_only") -> None:
        self._runner_name = runner_name
        self._signature_mode = signature_mode
        self.tape: list[ReactionRecord] = []

    def begin(
        self,
        *,
        trace_id: str,
        step: Step,
        actor: Actor | None,
        msg_in: object | None,
        position: Position,
    ) -> ReactionSpan:
        # Automatic steps react to no message, so their input signature is absent.
        return ReactionSpan(
            trace_id=trace_id,
            step=step,
            actor=None if actor is None else actor.name,
            msg_in=None if step.is_automatic else self._signature(msg_in),
            position_before=position.describe(),
            t_enter=datetime.now(tz=UTC),
        )

    def finish(
        self,
        *,
        span: ReactionSpan,
        msg_out: object | None,
        position: Position,
        status: Literal["ok", "error"],
        error: ErrorInfo | None,
    ) -> ReactionRecord:
        t_exit = datetime.now(tz=UTC)
        step = span.step
        record = ReactionRecord(
            trace_id=span.trace_id,
            runner=self._runner_name,
            use_case=step.use_case.name,
            flow=None if step.flow is None else step.flow.name,
            step_name=step.name,
            actor=span.actor,
            t_enter=span.t_enter,
            t_exit=t_exit,
            duration_ms=(t_exit - span.t_enter).total_seconds() * 1000.0,
            msg_in=span.msg_in,
            msg_out=None if msg_out is None else self._signature(msg_out),
            position_before=span.position_before,
            position_after=position.describe(),
            status=status,
            error=error,
        )
        self.tape.append(record)
        return record

    def _signature(self, msg: object) -> MessageSignature:
        type_name = type(msg).__name__
        identity = None
        digest = None
        if self._signature_mode in {"type_and_identity", "hash"}:
            identity = _extract_identity(msg)
        if self._signature_mode == "hash":
            digest = _hash_message(msg)
        return MessageSignature(type_name=type_name, identity=identity, hash=digest)


def error_info(exc: BaseException, step: Step) -> ErrorInfo:
    return ErrorInfo(type=type(exc).__name__, message=str(exc), where=step.qualified_name)


def _extract_identity(msg: object) -> str | None:
    # Identity prefers "id"/"uuid" attributes or keys; fallback to None.
    if isinstance(msg, dict):
        for key in ("id", "uuid"):
            if key in msg:
                return str(msg[key])
        return None
    for attr in ("id", "uuid"):
        if hasattr(msg, attr):
            return str(getattr(msg, attr))
    return None


def _message_snapshot(msg: object) -> object:
    # Canonical snapshot supports dataclasses, dicts, and objects with __dict__.
    if dataclasses.is_dataclass(msg) and not isinstance(msg, type):
        return dataclasses.asdict(msg)
    if isinstance(msg, dict):
        return msg
    if isinstance(msg, BaseException):
        return {"type": type(msg).__name__, "args": [str(arg) for arg in msg.args]}
    if hasattr(msg, "__dict__"):
        return dict(vars(msg))
    return {"value": str(msg)}


def _hash_message(msg: object) -> str:
    # Hashing uses a deterministic JSON representation.
    snapshot = _message_snapshot(msg)
    encoded = json.dumps(snapshot, sort_keys=True, separators=(",", ":"), default=json_default)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def json_default(obj: object) -> str:
    # Shared by message hashing and the JSON trace sinks.
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    return str(obj)
