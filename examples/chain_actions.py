#!/usr/bin/env python3
"""Chain flow actions over a text file using a local Ollama server.

Demonstrates:
- Building a FlowOrchestrator from config and the Ollama backend
- Selecting actions and setting parameters by display value
- Reading the committed document and history afterwards

Usage:
    python examples/chain_actions.py <path-to-txt-file>
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from redraft.config import load_config
from redraft.flow import ActionId, FlowOrchestrator, FlowServices
from redraft.services import OllamaServices


async def run(text: str) -> None:
    config = load_config(profile="balanced")

    async with OllamaServices.from_config(config) as services:
        await services.check_ready()
        flow = FlowOrchestrator.from_config(FlowServices.from_backend(services), config)
        flow.set_document(text)

        flow.select_action(ActionId.GRAMMAR)
        await flow.apply()

        flow.select_action(ActionId.HUMANIZE)
        flow.set_parameter("tone", "Friendly")
        flow.set_parameter("level", 60)
        await flow.apply()

        flow.select_action(ActionId.DETECT)
        await flow.apply()

    print(flow.get_document())
    print()
    for entry in flow.get_history():
        print(f"{entry.sequence_number}. {entry.action_label}")


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python examples/chain_actions.py <path-to-txt-file>")
        sys.exit(1)

    input_path = Path(sys.argv[1])
    if not input_path.exists():
        print(f"File not found: {input_path}")
        sys.exit(1)

    asyncio.run(run(input_path.read_text(encoding="utf-8")))


if __name__ == "__main__":
    main()
