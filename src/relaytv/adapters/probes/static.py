"""In-memory probe for demos and tests."""

from __future__ import annotations

from typing import Mapping


class StaticProbe:
    """Answers from a fixed mapping of source name to reference (or None)."""

    def __init__(self, live: Mapping[str, str | None] | None = None):
        self.live: dict[str, str | None] = dict(live or {})
        self.calls: list[str] = []

    def set_live(self, source_name: str, reference_id: str | None) -> None:
        self.live[source_name] = reference_id

    async def probe(self, source_name: str) -> str | None:
        self.calls.append(source_name)
        return self.live.get(source_name)
