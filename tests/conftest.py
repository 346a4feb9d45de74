"""
conftest.py - Shared pytest fixtures for charms tests

Provides common fixtures used across unit and conformance tests:
- Deterministic identities (B32, TxId, UtxoId)
- Token, NFT and custom-tag apps
- A transaction builder for tagged inputs/outputs
"""

import pytest
from typing import Any, List, Optional

from charms import (
    App, B32, TxId, UtxoId,
    Transaction, tx_input, tx_output,
    TOKEN, NFT,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def b32(n: int) -> B32:
    """Deterministic B32 whose bytes are all n."""
    return B32(bytes([n]) * 32)


def txid(n: int) -> TxId:
    """Deterministic TxId whose bytes are all n."""
    return TxId(bytes([n]) * 32)


def build_tx(app: App, ins: List[Optional[Any]], outs: List[Optional[Any]]) -> Transaction:
    """
    Build a transaction where each entry is the value attached to app,
    or None for a UTXO without state for app.
    """
    return Transaction(
        ins=tuple(
            tx_input(UtxoId(txid(0xAA), i), None if value is None else {app: value})
            for i, value in enumerate(ins)
        ),
        outs=tuple(
            tx_output(None if value is None else {app: value})
            for value in outs
        ),
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def token_app():
    """Fungible token app."""
    return App(TOKEN, b32(1), b32(2))


@pytest.fixture
def nft_app():
    """Non-fungible item app."""
    return App(NFT, b32(3), b32(4))


@pytest.fixture
def other_app():
    """App with a non-reserved tag."""
    return App("c", b32(5), b32(6))


@pytest.fixture
def make_tx():
    """Transaction builder: make_tx(app, [in values], [out values])."""
    return build_tx
