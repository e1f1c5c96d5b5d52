# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional
from ..types.common import FailurePolicy, CommitmentScheme, WireFormat

# Integer widths
U64_MAX = 2**64 - 1
U256_MAX = 2**256 - 1

# Fixed-width field sizes (bytes)
ADDRESS_LENGTH = 20
HASH_LENGTH = 32

ZERO_ADDRESS = b"\x00" * ADDRESS_LENGTH
ZERO_HASH = b"\x00" * HASH_LENGTH

# Placeholder seed ledger: a single funded account at the zero address
GENESIS_BALANCE = 1_000_000

PROFILE_ENV_VAR = "ZKSTF_PROFILE"
DEFAULT_PROFILE = "default"


class ExecutorConfig:
    def __init__(self,
                 profile_id: str,
                 failure_policy: FailurePolicy = FailurePolicy.ABORT,
                 commitment_scheme: CommitmentScheme = CommitmentScheme.FLAT,
                 wire_format: WireFormat = WireFormat.JSON,
                 # Replay protection (off: nonce is carried but not checked)
                 enforce_nonce: bool = False,
                 # Claimed prior root is advisory unless this is set
                 reject_root_mismatch: bool = False,
                 max_tx_per_batch: Optional[int] = None,
                 genesis_address: bytes = ZERO_ADDRESS,
                 genesis_balance: int = GENESIS_BALANCE):
        self.profile_id = profile_id
        self.failure_policy = FailurePolicy(failure_policy)
        self.commitment_scheme = CommitmentScheme(commitment_scheme)
        self.wire_format = WireFormat(wire_format)
        self.enforce_nonce = enforce_nonce
        self.reject_root_mismatch = reject_root_mismatch
        self.max_tx_per_batch = max_tx_per_batch
        self.genesis_address = genesis_address
        self.genesis_balance = genesis_balance

    def to_dict(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "failure_policy": self.failure_policy.value,
            "commitment_scheme": self.commitment_scheme.value,
            "wire_format": self.wire_format.value,
            "enforce_nonce": self.enforce_nonce,
            "reject_root_mismatch": self.reject_root_mismatch,
            "max_tx_per_batch": self.max_tx_per_batch,
            "genesis_address": "0x" + self.genesis_address.hex(),
            "genesis_balance": self.genesis_balance,
        }


PROFILES: Dict[str, ExecutorConfig] = {
    "default": ExecutorConfig(profile_id="default"),
    "strict": ExecutorConfig(
        profile_id="strict",
        enforce_nonce=True,
        reject_root_mismatch=True,
        max_tx_per_batch=1000,
    ),
    "lenient": ExecutorConfig(
        profile_id="lenient",
        failure_policy=FailurePolicy.SKIP_AND_RECORD,
    ),
}


def get_profile(name: Optional[str] = None) -> ExecutorConfig:
    """
    Resolves a profile by name, falling back to $ZKSTF_PROFILE, then 'default'.

    The environment is read on every call, never at import.
    """
    name = name or os.environ.get(PROFILE_ENV_VAR) or DEFAULT_PROFILE
    if name not in PROFILES:
        raise ValueError(f"Unknown profile '{name}' (known: {', '.join(sorted(PROFILES))})")
    return PROFILES[name]
