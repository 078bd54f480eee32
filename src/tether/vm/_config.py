"""Evaluator settings."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEBUG_ENV = "TETHER_DEBUG"
MAX_DEPTH_ENV = "TETHER_MAX_DEPTH"
MAX_CALL_DEPTH_ENV = "TETHER_MAX_CALL_DEPTH"


class EvalConfig(BaseModel):
    """Settings read once when an evaluator is built.

    Attributes
    ----------
    debug : bool
        Let faults raised while constructing channels, sequences and type
        aliases escape as raw Python exceptions instead of converting them
        to ``ConstructionError``.
    max_depth : int
        Maximum expression nesting depth within one function body (or the
        top-level tree); deeper trees raise ``RecursionDepthError``.
    max_call_depth : int
        Maximum number of nested script function calls; a call past it
        raises ``RecursionDepthError``.  Each call starts its body at
        nesting depth zero.
    """

    debug: bool = False
    max_depth: int = Field(default=100, ge=1)
    max_call_depth: int = Field(default=200, ge=1)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EvalConfig:
        env = os.environ if environ is None else environ
        values: dict[str, object] = {"debug": bool(env.get(DEBUG_ENV, ""))}
        if env.get(MAX_DEPTH_ENV):
            values["max_depth"] = env[MAX_DEPTH_ENV]
        if env.get(MAX_CALL_DEPTH_ENV):
            values["max_call_depth"] = env[MAX_CALL_DEPTH_ENV]
        return cls.model_validate(values)
