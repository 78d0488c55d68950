from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import IO, Any, Iterator, Optional

decision_id: ContextVar[str] = ContextVar("decision_id", default="")
decision_vin: ContextVar[str] = ContextVar("decision_vin", default="")


@contextmanager
def decision_scope(vin: Optional[str] = None) -> Iterator[str]:
    """Tag every record logged inside the block with a fresh decision id and the vehicle VIN."""
    id_token = decision_id.set(uuid.uuid4().hex[:12])
    vin_token = decision_vin.set(vin or "")
    try:
        yield decision_id.get()
    finally:
        decision_vin.reset(vin_token)
        decision_id.reset(id_token)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "decision_id": decision_id.get(""),
        }
        vin = decision_vin.get("")
        if vin:
            entry["vin"] = vin
        data = getattr(record, "extra_data", None)
        if data:
            # Top-level copy of the decision outcome.
            if "is_eligible" in data:
                entry["eligible"] = bool(data["is_eligible"])
            entry["data"] = data
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DecisionTextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-8s [%(name)s] %(decision)s%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        did = decision_id.get("")
        vin = decision_vin.get("")
        tag = " ".join(part for part in (did, vin) if part)
        record.decision = f"<{tag}> " if tag else ""
        return super().format(record)


def configure_logging(level: str = "INFO", fmt: str = "json", stream: Optional[IO[str]] = None) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else DecisionTextFormatter())
    root.addHandler(handler)
