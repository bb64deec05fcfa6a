"""Contract for the conversational advice collaborator.

The provider is opaque: it receives the user's prompt plus a context block
and returns free text. The only thing read back out of a reply is the
``ACTION_REQUIRED:`` prefix, which means the provider needs to be set up
again before it can answer.
"""
import json
import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from budgetflow.aggregation import Summary
from budgetflow.constants import ACTION_REQUIRED_PREFIX
from budgetflow.domain import Transaction

logger = logging.getLogger(__name__)

EMPTY_REPLY = "I processed your request but couldn't formulate a text response. Please try rephrasing."


class AdviceProvider(Protocol):
    def generate(self, prompt: str, context: str) -> str:
        ...


@dataclass(frozen=True)
class AdviceReply:
    text: str
    needs_reconfiguration: bool = False


def build_advice_context(trans: Iterable[Transaction], summary: Summary) -> str:
    items = [
        {
            "name": t.name,
            "amount": t.actual_amount,
            "type": t.type.value,
            "category": t.category or "N/A",
            "date": t.date,
        }
        for t in trans
    ]
    return "\n".join([
        "Current Financial Snapshot:",
        f"- Total Income: {summary.total_income:.2f}",
        f"- Total Savings: {summary.total_savings:.2f}",
        f"- Total Expenses: {summary.total_expenses:.2f}",
        f"- Variable Expenses (included in total): {summary.variable_expenses:.2f}",
        f"- Net Balance: {summary.balance:.2f}",
        "",
        "Detailed Transaction List:",
        json.dumps(items, indent=2),
    ])


def interpret_reply(text: str) -> AdviceReply:
    if text.startswith(ACTION_REQUIRED_PREFIX):
        return AdviceReply(text[len(ACTION_REQUIRED_PREFIX):].strip(), True)
    return AdviceReply(text)


def ask_advisor(provider: AdviceProvider, prompt: str, trans: Iterable[Transaction], summary: Summary) -> AdviceReply:
    context = build_advice_context(trans, summary)
    try:
        text = provider.generate(prompt, context)
    except Exception as e:
        logger.warning("Advice provider failed: %s", e)
        return AdviceReply(f"Sorry, I encountered an error: {e}. Please try again in a moment.")
    if not text:
        return AdviceReply(EMPTY_REPLY)
    return interpret_reply(text)
