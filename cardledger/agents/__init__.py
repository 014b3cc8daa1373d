"""AI agents package."""

from cardledger.agents.ai_agents import AdvisorAgent, ReceiptAgent

__all__ = [
    "AdvisorAgent",
    "ReceiptAgent",
]
