"""
charms - App-scoped assets on UTXO transactions

Data model and validation predicates for fungible tokens and non-fungible
items attached to transaction outputs.

Usage:
    from charms import App, B32, TOKEN, Transaction, token_amounts_balanced

    app = App(TOKEN, B32(identity_bytes), B32(vk_bytes))
    tx = Transaction.from_json('''{
        "ins":  [{"utxo_id": "<txid>:0", "charms": {"<app>": 10}},
                 {"utxo_id": "<txid>:1", "charms": {"<app>": 5}}],
        "outs": [{"<app>": 15}]
    }''')

    token_amounts_balanced(app, tx)   # True
"""

# Core types
from .core import (
    App,
    B32,
    TxId,
    UtxoId,
    TOKEN,
    NFT,
    B32_LENGTH,
    UTXO_ID_LENGTH,
    MAX_OUTPUT_INDEX,
    MAX_TOKEN_AMOUNT,
    CharmsError,
    InvalidLength,
    InvalidEncoding,
    InvalidApp,
    DecodeError,
    DeserializeError,
    InvalidData,
    MalformedTransaction,
    TokenAmountError,
)

# Data
from .data import Data

# Transactions
from .transaction import (
    Charms,
    Input,
    Output,
    Transaction,
    tx_input,
    tx_output,
)

# Predicates
from .validation import (
    is_simple_transfer,
    token_amounts_balanced,
    nft_state_preserved,
    token_amount,
    sum_token_amount,
    app_state_multiset,
)

__all__ = [
    # Core
    'App', 'B32', 'TxId', 'UtxoId',
    'TOKEN', 'NFT',
    'B32_LENGTH', 'UTXO_ID_LENGTH', 'MAX_OUTPUT_INDEX', 'MAX_TOKEN_AMOUNT',
    # Errors
    'CharmsError', 'InvalidLength', 'InvalidEncoding', 'InvalidApp',
    'DecodeError', 'DeserializeError', 'InvalidData',
    'MalformedTransaction', 'TokenAmountError',
    # Data
    'Data',
    # Transactions
    'Charms', 'Input', 'Output', 'Transaction', 'tx_input', 'tx_output',
    # Predicates
    'is_simple_transfer', 'token_amounts_balanced', 'nft_state_preserved',
    'token_amount', 'sum_token_amount', 'app_state_multiset',
]

__version__ = '0.1.0'
