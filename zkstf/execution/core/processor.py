# MIT License
# Copyright (c) 2025 Hashborn

"""
Transaction Processor

Applies a single balance transfer to a ledger. Every check runs before the
first mutation, so a transaction either lands completely (sender debited by
value + fee, sender nonce + 1, recipient credited by value) or leaves the
ledger untouched.
"""

import logging

from .ledger import Ledger
from ...protocol.types.tx import Transaction
from ...protocol.types.common import ArithmeticOverflow, InsufficientBalance, InvalidNonce
from ...protocol.config.params import U64_MAX, U256_MAX

logger = logging.getLogger(__name__)


def checked_add(a: int, b: int, limit: int = U256_MAX) -> int:
    result = a + b
    if result > limit:
        raise ArithmeticOverflow(f"{a} + {b} exceeds {limit.bit_length()}-bit range")
    return result


def checked_mul(a: int, b: int, limit: int = U256_MAX) -> int:
    result = a * b
    if result > limit:
        raise ArithmeticOverflow(f"{a} * {b} exceeds {limit.bit_length()}-bit range")
    return result


class TransactionProcessor:

    def __init__(self, enforce_nonce: bool = False):
        """
        Args:
            enforce_nonce: Reject transactions whose nonce differs from the
                sender's on-ledger nonce. Off by default: the nonce is carried
                but not validated.
        """
        self.enforce_nonce = enforce_nonce

    def apply(self, ledger: Ledger, tx: Transaction) -> int:
        """
        Applies `tx` to `ledger` in place. Raises ExecutionError on failure.

        Returns:
            Fee charged to the sender (gas_limit * gas_price)
        """
        # 1. Resolve both parties
        sender = ledger.require_account(tx.from_address)
        recipient = ledger.require_account(tx.to_address)

        if self.enforce_nonce and tx.nonce != sender.nonce:
            raise InvalidNonce(f"Invalid nonce: expected {sender.nonce}, got {tx.nonce}")

        # 2. Fee & total cost
        fee = checked_mul(tx.gas_limit, tx.gas_price)
        total_cost = checked_add(tx.value, fee)

        if sender.balance < total_cost:
            raise InsufficientBalance(f"Insufficient balance: have {sender.balance}, need {total_cost}")

        # 3. Post-state, fully computed and range checked before mutating
        sender_balance = sender.balance - total_cost
        sender_nonce = checked_add(sender.nonce, 1, U64_MAX)
        self_transfer = sender.address == recipient.address
        if self_transfer:
            sender_balance = checked_add(sender_balance, tx.value)
        else:
            recipient_balance = checked_add(recipient.balance, tx.value)

        # 4. Commit
        sender.balance = sender_balance
        sender.nonce = sender_nonce
        if not self_transfer:
            recipient.balance = recipient_balance

        logger.debug(
            f"Applied tx 0x{tx.from_address.hex()[:8]}.. -> 0x{tx.to_address.hex()[:8]}.. "
            f"value={tx.value} fee={fee}"
        )
        return fee
