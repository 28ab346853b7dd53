"""Custom errors with tracking IDs."""

import uuid

from utils.clock import format_timestamp


class SimulatorError(Exception):
    """Base error with unique ID and timestamp for tracking."""

    def __init__(self, message, context=None, cause=None):
        super().__init__(message)
        self.error_id = uuid.uuid4().hex[:16]
        self.timestamp = format_timestamp()
        self.context = context or {}
        self.cause = cause

    def __str__(self):
        return f"[{self.error_id}] {super().__str__()}"

    def to_dict(self):
        return {"id": self.error_id, "timestamp": self.timestamp,
                "error": Exception.__str__(self), "context": self.context}


class ConfigError(SimulatorError):
    """Invalid or unreadable configuration."""

    def __init__(self, message, key=None, **kwargs):
        context = kwargs.pop("context", {})
        if key:
            context["key"] = key
        super().__init__(message, context=context, **kwargs)


class InputError(SimulatorError):
    """Input event naming a variable the simulation does not expose."""

    def __init__(self, message, variable=None, **kwargs):
        context = kwargs.pop("context", {})
        if variable is not None:
            context["variable"] = variable
        super().__init__(message, context=context, **kwargs)
