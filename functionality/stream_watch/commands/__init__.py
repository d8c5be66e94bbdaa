from __future__ import annotations

"""Command registration package for StreamScout.

Exposes a single `register_commands(client, config)` that sets up all slash
commands from their modules.
"""

from typing import List

import lightbulb

from ..config import WatchConfig
from .common import SharedContext


def register_commands(client: lightbulb.Client, config: WatchConfig) -> List[str]:
    """Register all StreamScout commands on a Lightbulb client and return names."""
    shared = SharedContext(
        role_names=frozenset(n.casefold() for n in config.role_names.values() if n),
    )

    names: List[str] = []

    from .rank import register as reg_rank

    names.append(reg_rank(client, shared))
    return names
