"""
Shared behaviour for the per-operation option dataclasses.
"""

from dataclasses import asdict, fields, replace
from typing import Any, Dict, Optional

from .errors import InvalidArgumentError


class OptionsMixin:
    """to_dict/from_dict plus keyword coercion for option dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]):
        return cls.coerce(None, **d)

    @classmethod
    def field_names(cls):
        return {f.name for f in fields(cls)}

    @classmethod
    def coerce(cls, options: Optional[Any] = None, **overrides):
        """
        Build a validated instance from an existing one, a dict, or keywords.

        Keywords override fields of ``options``; unknown keywords are an
        error rather than being silently dropped.
        """
        if options is None:
            base = {}
        elif isinstance(options, cls):
            base = None
        elif isinstance(options, dict):
            base = dict(options)
        else:
            raise InvalidArgumentError(
                f"options must be {cls.__name__} or dict, got {type(options).__name__}")

        if base is not None:
            overrides = {**base, **overrides}
            options = None

        unknown = set(overrides) - cls.field_names()
        if unknown:
            raise InvalidArgumentError(
                f"unknown {cls.__name__} field(s): {', '.join(sorted(unknown))}")

        if options is None:
            return cls(**overrides)
        return replace(options, **overrides) if overrides else options
