import logging
from dataclasses import replace
from functools import reduce
from typing import Iterable, Optional

from budgetflow.domain import Account, Transaction, TransactionType, new_id
from budgetflow.functional import Either, Left, Maybe, Right, Some, first

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NOTICE = "Cannot delete the default account."


def _apply(balance: float, t: Transaction, acc_id: str) -> float:
    if t.account_id == acc_id:
        balance = balance + t.actual_amount if t.type == TransactionType.INCOME else balance - t.actual_amount
    if t.type == TransactionType.TRANSFER and t.to_account_id == acc_id:
        balance += t.actual_amount
    return balance


def account_balance(account: Account, trans: Iterable[Transaction]) -> float:
    """Lifetime balance: opening balance folded over the whole ledger, never a period subset.

    Income adds, everything else subtracts; a transfer also credits its destination account.
    """
    return reduce(lambda bal, t: _apply(bal, t, account.id), trans, account.initial_balance)


def account_balances(accounts: Iterable[Account], trans: Iterable[Transaction]) -> dict[str, float]:
    trans = tuple(trans)
    return {a.id: account_balance(a, trans) for a in accounts}


def net_worth(accounts: Iterable[Account], trans: Iterable[Transaction]) -> float:
    return sum(account_balances(accounts, trans).values())


def default_account(accounts: Iterable[Account]) -> Maybe[Account]:
    accounts = tuple(accounts)
    found = first(accounts, lambda a: a.is_default)
    if found.is_none() and accounts:
        return Some(accounts[0])
    return found


def default_account_id(accounts: Iterable[Account]) -> Optional[str]:
    return default_account(accounts).map(lambda a: a.id).get_or_else(None)


def normalize_default(accounts: tuple[Account, ...]) -> tuple[Account, ...]:
    """Exactly one default among a non-empty account set; the first flagged one wins."""
    if not accounts:
        return accounts
    keep = default_account(accounts).map(lambda a: a.id).get_or_else(accounts[0].id)
    return tuple(replace(a, is_default=a.id == keep) for a in accounts)


def set_default_account(accounts: tuple[Account, ...], acc_id: str) -> tuple[Account, ...]:
    if not any(a.id == acc_id for a in accounts):
        return accounts
    return tuple(replace(a, is_default=a.id == acc_id) for a in accounts)


def add_account(accounts: tuple[Account, ...], account: Account) -> tuple[Account, ...]:
    account = replace(account, id=account.id or new_id("acc"), is_default=not accounts)
    return accounts + (account,)


def update_account(accounts: tuple[Account, ...], account: Account) -> tuple[Account, ...]:
    return tuple(
        replace(account, id=a.id, is_default=a.is_default) if a.id == account.id else a
        for a in accounts
    )


def delete_account(
    accounts: tuple[Account, ...], trans: tuple[Transaction, ...], acc_id: str
) -> Either[str, tuple[tuple[Account, ...], tuple[Transaction, ...]]]:
    target = first(accounts, lambda a: a.id == acc_id)
    if target.is_none():
        return Left(f"Account {acc_id} does not exist.")
    if target.get_or_else(None).is_default:
        logger.warning("Refusing to delete default account %s", acc_id)
        return Left(DEFAULT_ACCOUNT_NOTICE)

    remaining = tuple(a for a in accounts if a.id != acc_id)
    unassigned = tuple(
        replace(
            t,
            account_id=None if t.account_id == acc_id else t.account_id,
            to_account_id=None if t.to_account_id == acc_id else t.to_account_id,
        )
        if acc_id in (t.account_id, t.to_account_id) else t
        for t in trans
    )
    return Right((remaining, unassigned))


def assign_default_account(trans: tuple[Transaction, ...], accounts: Iterable[Account]) -> tuple[Transaction, ...]:
    fallback = default_account_id(accounts)
    if fallback is None or all(t.account_id for t in trans):
        return trans
    return tuple(t if t.account_id else replace(t, account_id=fallback) for t in trans)
