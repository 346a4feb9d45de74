"""
Validation predicates for app state carried by a transaction.

Three checks, from weakest to strongest content inspection:
1. is_simple_transfer: app presence is conserved (same number of tagged inputs and outputs)
2. token_amounts_balanced: total token amount is conserved
3. nft_state_preserved: a singleton item is carried forward unchanged

All predicates are pure functions of (app, tx). They never raise: malformed
attached data is evidence of an invalid transaction and yields False. The
reason for a rejection is logged at DEBUG level.
"""

from __future__ import annotations
from collections import Counter
import logging
from typing import Iterable, Tuple

from .core import (
    App,
    MAX_TOKEN_AMOUNT,
    DeserializeError,
    TokenAmountError,
)
from .data import Data
from .transaction import Transaction

logger = logging.getLogger(__name__)


# ============================================================================
# HELPERS
# ============================================================================

def token_amount(data: Data) -> int:
    """
    Decode the token amount carried by one Data entry.

    The structured value must be a non-negative integer no larger than
    MAX_TOKEN_AMOUNT. Booleans and floats are not amounts, even 10.0.

    Raises:
        TokenAmountError: if the entry does not carry a valid amount.
    """
    try:
        value = data.value()
    except DeserializeError as e:
        raise TokenAmountError(f"token amount not decodable: {e}") from e
    if isinstance(value, bool) or not isinstance(value, int):
        raise TokenAmountError(f"token amount must be an integer, got {value!r}")
    if value < 0:
        raise TokenAmountError(f"token amount must be non-negative, got {value}")
    if value > MAX_TOKEN_AMOUNT:
        raise TokenAmountError(f"token amount exceeds {MAX_TOKEN_AMOUNT}: {value}")
    return value


def sum_token_amount(datas: Iterable[Data]) -> int:
    """
    Sum token amounts, rejecting any sum that overflows an unsigned 64-bit value.

    Raises:
        TokenAmountError: on an invalid entry or overflow.
    """
    total = 0
    for data in datas:
        total += token_amount(data)
        if total > MAX_TOKEN_AMOUNT:
            raise TokenAmountError(f"token amount sum overflows {MAX_TOKEN_AMOUNT}")
    return total


def app_state_multiset(datas: Iterable[Data]) -> Counter:
    """Return the multiset of non-empty Data entries."""
    return Counter(data for data in datas if not data.is_empty())


# ============================================================================
# CHECKS
# ============================================================================
#
# Each check returns (ok, reason, args). The reason is a logging format
# string; it is only rendered with args when the rejection is logged.

Result = Tuple[bool, str, tuple]

_ACCEPTED: Result = (True, "", ())


def _check_simple_transfer(app: App, tx: Transaction) -> Result:
    n_in = sum(app_state_multiset(tx.input_data(app)).values())
    n_out = sum(app_state_multiset(tx.output_data(app)).values())
    if n_in != n_out:
        return False, "%d tagged inputs vs %d tagged outputs", (n_in, n_out)
    return _ACCEPTED


def _check_token_amounts(app: App, tx: Transaction) -> Result:
    try:
        amount_in = sum_token_amount(tx.input_data(app))
        amount_out = sum_token_amount(tx.output_data(app))
    except TokenAmountError as e:
        return False, "%s", (e,)
    if amount_in != amount_out:
        return False, "inputs carry %d, outputs carry %d", (amount_in, amount_out)
    return _ACCEPTED


def _check_nft_state(app: App, tx: Transaction) -> Result:
    states_in = tx.input_data(app)
    states_out = tx.output_data(app)
    if len(states_in) != 1 or len(states_out) != 1:
        return (
            False,
            "expected exactly one state in and out, got %d in, %d out",
            (len(states_in), len(states_out)),
        )
    # Canonical encoding makes byte equality the structured-value equality.
    if states_in[0] != states_out[0]:
        return False, "state changed: %r -> %r", (states_in[0], states_out[0])
    return _ACCEPTED


def _log_result(name: str, app: App, result: Result) -> bool:
    ok, reason, args = result
    if not ok:
        logger.debug("%s(%s) rejected: " + reason, name, app, *args)
    return ok


# ============================================================================
# PREDICATES
# ============================================================================

def is_simple_transfer(app: App, tx: Transaction) -> bool:
    """
    True iff the transaction neither creates nor destroys the app's presence.

    Counts the inputs and outputs carrying state for app; the contents of the
    attached Data are not inspected. Vacuously true when neither side carries it.
    """
    return _log_result("is_simple_transfer", app, _check_simple_transfer(app, tx))


def token_amounts_balanced(app: App, tx: Transaction) -> bool:
    """
    True iff the total token amount for app is equal across inputs and outputs.

    Every entry attached to app must carry a valid amount (see token_amount);
    an invalid entry or an overflowing sum makes the transaction unbalanced.
    Zero-amount entries count like any other.
    """
    return _log_result("token_amounts_balanced", app, _check_token_amounts(app, tx))


def nft_state_preserved(app: App, tx: Transaction) -> bool:
    """
    True iff exactly one input and one output carry state for app, and the
    output state equals the input state.
    """
    return _log_result("nft_state_preserved", app, _check_nft_state(app, tx))
