"""
Conservation Conformance Tests

INVARIANTS: For an app a and transaction tx,

    is_simple_transfer(a, tx)     ⟺ |tagged ins| = |tagged outs|
    token_amounts_balanced(a, tx) ⟺ all amounts valid ∧ Σ ins = Σ outs ≤ 2^64 - 1
    nft_state_preserved(a, tx)    ⟺ |tagged ins| = |tagged outs| = 1 ∧ state_in = state_out

Transfers redistribute but never create or destroy an app's presence,
supply, or unique state. The predicates are total: they answer False for
malformed attached data and never raise.

These tests use property-based testing over arbitrary transactions.
"""

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from charms import (
    App, B32, TxId, UtxoId, Data, Transaction, tx_input, tx_output,
    TOKEN, NFT, MAX_TOKEN_AMOUNT,
    is_simple_transfer, token_amounts_balanced, nft_state_preserved,
)
from charms.data import MIN_DATA_INT, MAX_DATA_INT


TOKEN_APP = App(TOKEN, B32(b"\x01" * 32), B32(b"\x02" * 32))
NFT_APP = App(NFT, B32(b"\x03" * 32), B32(b"\x04" * 32))
OTHER_APP = App("c", B32(b"\x05" * 32), B32(b"\x06" * 32))


# =============================================================================
# STRATEGIES
# =============================================================================

amounts = st.integers(min_value=0, max_value=MAX_TOKEN_AMOUNT)
small_amounts = st.integers(min_value=0, max_value=10**12)

any_values = st.recursive(
    st.none()
    | st.booleans()
    | st.integers(min_value=MIN_DATA_INT, max_value=MAX_DATA_INT)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=10),
    lambda children: st.lists(children, max_size=3)
    | st.dictionaries(st.text(max_size=5), children, max_size=3),
    max_leaves=8,
)

# Top-level None is how the builder marks a UTXO without state.
states = any_values.filter(lambda v: v is not None)


def build(app: App, ins, outs, noise: bool = False) -> Transaction:
    """
    Build a transaction with one UTXO per entry; None means no state for app.
    With noise, every UTXO also carries state for an unrelated app.
    """
    def charms(value):
        found = {} if value is None else {app: value}
        if noise:
            found[OTHER_APP] = "noise"
        return found

    return Transaction(
        ins=tuple(
            tx_input(UtxoId(TxId(b"\xaa" * 32), i), charms(value))
            for i, value in enumerate(ins)
        ),
        outs=tuple(tx_output(charms(value)) for value in outs),
    )


@st.composite
def split(draw, total: int):
    """Split total into a list of non-negative parts that sum to it."""
    n = draw(st.integers(min_value=1, max_value=5))
    cuts = sorted(draw(st.lists(st.integers(min_value=0, max_value=total), min_size=n - 1, max_size=n - 1)))
    bounds = [0] + cuts + [total]
    return [b - a for a, b in zip(bounds, bounds[1:])]


def interleave(draw, values):
    """Insert untagged UTXOs (None) at random positions."""
    result = list(values)
    for _ in range(draw(st.integers(min_value=0, max_value=3))):
        result.insert(draw(st.integers(min_value=0, max_value=len(result))), None)
    return result


# =============================================================================
# PRESENCE CONSERVATION
# =============================================================================

class TestPresenceConservation:
    """is_simple_transfer depends only on tagged counts."""

    @given(
        st.lists(st.one_of(st.none(), any_values), max_size=6),
        st.lists(st.one_of(st.none(), any_values), max_size=6),
        st.booleans(),
    )
    def test_counts_decide(self, ins, outs, noise):
        tx = build(TOKEN_APP, ins, outs, noise)
        n_in = sum(1 for v in ins if v is not None)
        n_out = sum(1 for v in outs if v is not None)
        assert is_simple_transfer(TOKEN_APP, tx) == (n_in == n_out)

    @given(st.integers(min_value=0, max_value=5), st.data())
    def test_equal_counts_pass(self, n, data):
        ins = interleave(data.draw, data.draw(st.lists(states, min_size=n, max_size=n)))
        outs = interleave(data.draw, data.draw(st.lists(states, min_size=n, max_size=n)))
        assert is_simple_transfer(NFT_APP, build(NFT_APP, ins, outs))


# =============================================================================
# AMOUNT CONSERVATION
# =============================================================================

class TestAmountConservation:
    """token_amounts_balanced is exact conservation of total supply."""

    @given(st.data())
    def test_redistribution_balances(self, data):
        total = data.draw(amounts)
        ins = interleave(data.draw, data.draw(split(total)))
        outs = interleave(data.draw, data.draw(split(total)))
        tx = build(TOKEN_APP, ins, outs, noise=data.draw(st.booleans()))
        assert token_amounts_balanced(TOKEN_APP, tx)

    @given(st.lists(small_amounts, max_size=5), st.lists(small_amounts, max_size=5))
    def test_matches_sum(self, ins, outs):
        tx = build(TOKEN_APP, ins, outs)
        assert token_amounts_balanced(TOKEN_APP, tx) == (sum(ins) == sum(outs))

    @given(st.lists(amounts, min_size=1, max_size=5), st.lists(amounts, min_size=1, max_size=5))
    def test_overflow_never_balances(self, ins, outs):
        tx = build(TOKEN_APP, ins, outs)
        if sum(ins) > MAX_TOKEN_AMOUNT or sum(outs) > MAX_TOKEN_AMOUNT:
            assert not token_amounts_balanced(TOKEN_APP, tx)
        else:
            assert token_amounts_balanced(TOKEN_APP, tx) == (sum(ins) == sum(outs))

    @given(st.data())
    def test_invalid_entry_never_balances(self, data):
        total = data.draw(small_amounts)
        ins = data.draw(split(total))
        outs = data.draw(split(total))
        bad = data.draw(states.filter(
            lambda v: isinstance(v, bool) or not isinstance(v, int) or v < 0
        ))
        target = data.draw(st.sampled_from([ins, outs]))
        target.insert(data.draw(st.integers(min_value=0, max_value=len(target))), bad)
        assert not token_amounts_balanced(TOKEN_APP, build(TOKEN_APP, ins, outs))

    @given(st.lists(st.one_of(st.none(), any_values), max_size=5),
           st.lists(st.one_of(st.none(), any_values), max_size=5))
    def test_total(self, ins, outs):
        """Never raises, whatever is attached."""
        assert token_amounts_balanced(TOKEN_APP, build(TOKEN_APP, ins, outs)) in (True, False)


# =============================================================================
# SINGLETON STATE CONSERVATION
# =============================================================================

class TestSingletonState:
    """nft_state_preserved requires one state in, the same state out."""

    @given(states, st.data())
    def test_carry_forward(self, state, data):
        ins = interleave(data.draw, [state])
        outs = interleave(data.draw, [state])
        tx = build(NFT_APP, ins, outs, noise=data.draw(st.booleans()))
        assert nft_state_preserved(NFT_APP, tx)

    @given(states, states)
    def test_mutation_rejected(self, before, after):
        assume(Data(before) != Data(after))
        assert not nft_state_preserved(NFT_APP, build(NFT_APP, [before], [after]))

    @settings(max_examples=50)
    @given(
        st.lists(st.one_of(st.none(), any_values), max_size=5),
        st.lists(st.one_of(st.none(), any_values), max_size=5),
    )
    def test_cardinality(self, ins, outs):
        tagged_in = [v for v in ins if v is not None]
        tagged_out = [v for v in outs if v is not None]
        assume(len(tagged_in) != 1 or len(tagged_out) != 1)
        assert not nft_state_preserved(NFT_APP, build(NFT_APP, ins, outs))

    @given(states, st.integers(min_value=2, max_value=4))
    def test_duplication_rejected(self, state, copies):
        tx = build(NFT_APP, [state], [state] * copies)
        assert not nft_state_preserved(NFT_APP, tx)
        assert not is_simple_transfer(NFT_APP, tx)
