from typing import Dict, Iterable, Iterator, List, Optional
import logging
from pydantic import ValidationError
from .commitment import compute_state_root
from ...protocol.types.account import Account, LedgerSnapshot
from ...protocol.types.common import AccountNotFound, CommitmentScheme, DecodeError, DuplicateAccount
from ...protocol.config.params import ExecutorConfig

logger = logging.getLogger(__name__)

class Ledger:
    """
    Ordered account sequence for one invocation.

    Insertion order is the canonical order and feeds directly into the
    state root, so accounts are never re-sorted.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None):
        self._accounts: List[Account] = []
        # address -> position in self._accounts
        self._index: Dict[bytes, int] = {}
        for acc in accounts or []:
            self.add_account(acc)

    def add_account(self, account: Account):
        if account.address in self._index:
            raise DuplicateAccount(f"Duplicate account 0x{account.address.hex()}")
        self._index[account.address] = len(self._accounts)
        self._accounts.append(account)

    def get_account(self, address: bytes) -> Optional[Account]:
        idx = self._index.get(address)
        if idx is None:
            return None
        return self._accounts[idx]

    def require_account(self, address: bytes) -> Account:
        acc = self.get_account(address)
        if acc is None:
            raise AccountNotFound(f"Account 0x{address.hex()} not found")
        return acc

    def index_of(self, address: bytes) -> int:
        """Position of the account in canonical order."""
        idx = self._index.get(address)
        if idx is None:
            raise AccountNotFound(f"Account 0x{address.hex()} not found")
        return idx

    def __contains__(self, address: bytes) -> bool:
        return address in self._index

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts)

    @property
    def accounts(self) -> List[Account]:
        return list(self._accounts)

    def clone(self) -> 'Ledger':
        """Creates an independent copy (accounts are deep copied)."""
        return Ledger(acc.model_copy(deep=True) for acc in self._accounts)

    def compute_state_root(self, scheme: CommitmentScheme = CommitmentScheme.FLAT) -> bytes:
        return compute_state_root(self._accounts, scheme)

    def to_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(accounts=[acc.model_copy(deep=True) for acc in self._accounts])

    @staticmethod
    def from_snapshot(snapshot: LedgerSnapshot) -> 'Ledger':
        return Ledger(acc.model_copy(deep=True) for acc in snapshot.accounts)

    @staticmethod
    def genesis(config: ExecutorConfig) -> 'Ledger':
        """Placeholder seed: one funded account from the profile."""
        logger.debug(f"Seeding genesis ledger for profile {config.profile_id}")
        return Ledger([Account(address=config.genesis_address, balance=config.genesis_balance)])


def load_snapshot_file(path: str) -> Ledger:
    """Loads a JSON snapshot ({"accounts": [...]}) written by the host."""
    with open(path, "rb") as f:
        raw = f.read()
    try:
        snapshot = LedgerSnapshot.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid snapshot file {path}: {e.errors()[0]['msg']}") from e
    logger.info(f"Loaded snapshot {path} with {len(snapshot.accounts)} accounts")
    return Ledger.from_snapshot(snapshot)
