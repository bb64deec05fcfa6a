import json

from budgetflow.advice import EMPTY_REPLY, AdviceReply, ask_advisor, build_advice_context, interpret_reply
from budgetflow.aggregation import summarize
from budgetflow.domain import Transaction, TransactionType

TRANS = (
    Transaction("t1", "Salary", 0, 3000, TransactionType.INCOME, "Salary", "2024-03-01"),
    Transaction("t2", "Lunch", 0, 12.5, TransactionType.EXPENSE, "", "2024-03-04"),
)


class StubProvider:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, prompt, context):
        self.calls.append((prompt, context))
        if self.error:
            raise self.error
        return self.reply


def test_context_carries_summary_and_items():
    context = build_advice_context(TRANS, summarize(TRANS))
    assert "- Total Income: 3000.00" in context
    assert "- Variable Expenses (included in total): 12.50" in context
    assert "- Net Balance: 2987.50" in context
    listing = json.loads(context.split("Detailed Transaction List:\n", 1)[1])
    assert listing[1] == {"name": "Lunch", "amount": 12.5, "type": "EXPENSE", "category": "N/A", "date": "2024-03-04"}


def test_interpret_reply_sentinel():
    assert interpret_reply("Spend less on lunch.") == AdviceReply("Spend less on lunch.", False)
    reply = interpret_reply("ACTION_REQUIRED: Select a key with billing enabled.")
    assert reply.needs_reconfiguration
    assert reply.text == "Select a key with billing enabled."


def test_ask_advisor_passes_prompt_and_context():
    provider = StubProvider("ACTION_REQUIRED: reconnect")
    reply = ask_advisor(provider, "Where does my money go?", TRANS, summarize(TRANS))
    assert reply.needs_reconfiguration
    prompt, context = provider.calls[0]
    assert prompt == "Where does my money go?"
    assert "Lunch" in context


def test_ask_advisor_wraps_failures():
    reply = ask_advisor(StubProvider(error=RuntimeError("quota")), "hi", TRANS, summarize(TRANS))
    assert reply.text == "Sorry, I encountered an error: quota. Please try again in a moment."
    assert not reply.needs_reconfiguration
    assert ask_advisor(StubProvider(""), "hi", TRANS, summarize(TRANS)).text == EMPTY_REPLY
