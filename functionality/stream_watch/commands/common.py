from __future__ import annotations

"""Shared context for StreamScout slash commands."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SharedContext:
    """Configuration the commands need at invocation time."""

    # Self-assignable roles: the notification role names, casefolded
    role_names: frozenset[str]
