"""
Transaction aggregate: spent inputs, reference inputs and created outputs.

Each input references a prior output by UtxoId; inputs and outputs may carry
a mapping from App to Data. An app has an entry on a UTXO only when it has
state there. Order of inputs and outputs is significant.

Document form (stdlib json compatible):

    {
        "ins":  [{"utxo_id": "<txid>:<index>", "charms": {"<app>": <value>}}],
        "refs": [{"utxo_id": "<txid>:<index>", "charms": {"<app>": <value>}}],
        "outs": [{"<app>": <value>}]
    }

"refs" is optional and "charms" is optional on each input.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .core import (
    App,
    CharmsError,
    MalformedTransaction,
    UtxoId,
)
from .data import Data

logger = logging.getLogger(__name__)


# App -> Data mapping for one UTXO.
Charms = Dict[App, Data]

_TX_KEYS = frozenset({"ins", "outs", "refs"})
_INPUT_KEYS = frozenset({"utxo_id", "charms"})


def _freeze_charms(charms: Optional[Mapping[App, Data]]) -> Tuple[Tuple[App, Data], ...]:
    """
    Convert an App -> Data mapping to its frozen representation.

    Empty Data entries are dropped: an app with no state has no entry.

    Returns:
        Tuple of (app, data) pairs, sorted by app for determinism
    """
    if not charms:
        return ()
    frozen = []
    for app, data in charms.items():
        if not isinstance(app, App):
            raise TypeError(f"charms keys must be App, got {type(app).__name__}")
        if not isinstance(data, Data):
            data = Data(data)
        if not data.is_empty():
            frozen.append((app, data))
    return tuple(sorted(frozen, key=lambda pair: pair[0]))


@dataclass(frozen=True, slots=True)
class Input:
    """
    A spent (or referenced) prior output and the app state it carries.

    Attributes:
        utxo_id: The output being spent.
        _frozen_charms: Internal frozen App -> Data mapping.
    """
    utxo_id: UtxoId
    _frozen_charms: Tuple[Tuple[App, Data], ...] = field(default_factory=tuple)

    @property
    def charms(self) -> Charms:
        """Return the App -> Data mapping as a new dict."""
        return dict(self._frozen_charms)

    def get(self, app: App) -> Optional[Data]:
        for key, data in self._frozen_charms:
            if key == app:
                return data
        return None


@dataclass(frozen=True, slots=True)
class Output:
    """A created output and the app state attached to it."""
    _frozen_charms: Tuple[Tuple[App, Data], ...] = field(default_factory=tuple)

    @property
    def charms(self) -> Charms:
        """Return the App -> Data mapping as a new dict."""
        return dict(self._frozen_charms)

    def get(self, app: App) -> Optional[Data]:
        for key, data in self._frozen_charms:
            if key == app:
                return data
        return None


def tx_input(utxo_id: UtxoId, charms: Optional[Mapping[App, Any]] = None) -> Input:
    """
    Create a transaction input.

    Args:
        utxo_id: The output being spent.
        charms: Optional App -> Data mapping (plain values are wrapped in Data).
    """
    return Input(utxo_id=utxo_id, _frozen_charms=_freeze_charms(charms))


def tx_output(charms: Optional[Mapping[App, Any]] = None) -> Output:
    """Create a transaction output carrying the given App -> Data mapping."""
    return Output(_frozen_charms=_freeze_charms(charms))


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An immutable transaction: the unit the validation predicates operate on.

    Attributes:
        ins: Spent inputs, in order.
        outs: Created outputs, in order (output index is the position).
        refs: Reference inputs. They are read but not spent and never take
              part in conservation checks.

    A UtxoId may appear at most once across ins and refs.
    """
    ins: Tuple[Input, ...]
    outs: Tuple[Output, ...]
    refs: Tuple[Input, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'ins', tuple(self.ins))
        object.__setattr__(self, 'outs', tuple(self.outs))
        object.__setattr__(self, 'refs', tuple(self.refs))
        for item in self.ins + self.refs:
            if not isinstance(item, Input):
                raise MalformedTransaction(f"inputs must be Input, got {type(item).__name__}")
        for item in self.outs:
            if not isinstance(item, Output):
                raise MalformedTransaction(f"outputs must be Output, got {type(item).__name__}")
        seen = set()
        for item in self.ins + self.refs:
            if item.utxo_id in seen:
                raise MalformedTransaction(f"duplicate input: {item.utxo_id}")
            seen.add(item.utxo_id)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def input_count(self) -> int:
        return len(self.ins)

    @property
    def output_count(self) -> int:
        return len(self.outs)

    def input_data(self, app: App) -> List[Data]:
        """Data attached to app across inputs, in input order, skipping inputs without it."""
        return [data for data in (i.get(app) for i in self.ins) if data is not None]

    def output_data(self, app: App) -> List[Data]:
        """Data attached to app across outputs, in output order, skipping outputs without it."""
        return [data for data in (o.get(app) for o in self.outs) if data is not None]

    def apps(self) -> List[App]:
        """Return the sorted list of apps with state on any input or output."""
        found = set()
        for item in self.ins + self.outs:
            found.update(app for app, _ in item._frozen_charms)
        return sorted(found)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_simple_transfer(self, app: App) -> bool:
        from .validation import is_simple_transfer
        return is_simple_transfer(app, self)

    def token_amounts_balanced(self, app: App) -> bool:
        from .validation import token_amounts_balanced
        return token_amounts_balanced(app, self)

    def nft_state_preserved(self, app: App) -> bool:
        from .validation import nft_state_preserved
        return nft_state_preserved(app, self)

    # ------------------------------------------------------------------
    # Document form
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, doc: Any) -> Transaction:
        """
        Build a Transaction from its document form.

        Raises:
            MalformedTransaction: on any schema violation; the underlying
                                  parse error is chained as the cause.
        """
        if not isinstance(doc, dict):
            raise MalformedTransaction(f"transaction must be an object, got {type(doc).__name__}")
        unknown = set(doc) - _TX_KEYS
        if unknown:
            raise MalformedTransaction(f"unknown transaction keys: {sorted(unknown)}")
        for key in ("ins", "outs"):
            if key not in doc:
                raise MalformedTransaction(f"transaction is missing '{key}'")

        ins = tuple(
            _parse_input(item, f"ins[{i}]") for i, item in enumerate(_parse_list(doc["ins"], "ins"))
        )
        refs = tuple(
            _parse_input(item, f"refs[{i}]") for i, item in enumerate(_parse_list(doc.get("refs", []), "refs"))
        )
        outs = tuple(
            tx_output(_parse_charms(item, f"outs[{i}]")) for i, item in enumerate(_parse_list(doc["outs"], "outs"))
        )
        tx = cls(ins=ins, outs=outs, refs=refs)
        logger.debug("parsed transaction: %d ins, %d refs, %d outs", len(ins), len(refs), len(outs))
        return tx

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the document form.

        "refs" is emitted only when the transaction has reference inputs.

        Raises:
            DeserializeError: if attached Data holds an opaque payload.
        """
        doc: Dict[str, Any] = {
            "ins": [_dump_input(i) for i in self.ins],
            "outs": [_dump_charms(o._frozen_charms) for o in self.outs],
        }
        if self.refs:
            doc["refs"] = [_dump_input(r) for r in self.refs]
        return doc

    @classmethod
    def from_json(cls, text: str) -> Transaction:
        try:
            doc = json.loads(text)
        except (json.JSONDecodeError, TypeError, RecursionError) as e:
            raise MalformedTransaction(f"invalid Transaction JSON: {e}") from e
        return cls.from_dict(doc)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def __repr__(self) -> str:
        return f"Transaction({len(self.ins)} ins, {len(self.refs)} refs, {len(self.outs)} outs)"


# ============================================================================
# DOCUMENT PARSING
# ============================================================================

def _parse_list(value: Any, where: str) -> list:
    if not isinstance(value, list):
        raise MalformedTransaction(f"{where}: expected an array, got {type(value).__name__}")
    return value


def _parse_charms(value: Any, where: str) -> Charms:
    if not isinstance(value, dict):
        raise MalformedTransaction(f"{where}: expected an object, got {type(value).__name__}")
    charms: Charms = {}
    for key, item in value.items():
        try:
            charms[App.from_str(key)] = item if isinstance(item, Data) else Data(item)
        except CharmsError as e:
            raise MalformedTransaction(f"{where}: {e}") from e
    return charms


def _parse_input(value: Any, where: str) -> Input:
    if not isinstance(value, dict):
        raise MalformedTransaction(f"{where}: expected an object, got {type(value).__name__}")
    unknown = set(value) - _INPUT_KEYS
    if unknown:
        raise MalformedTransaction(f"{where}: unknown keys: {sorted(unknown)}")
    if "utxo_id" not in value:
        raise MalformedTransaction(f"{where}: missing 'utxo_id'")
    try:
        utxo_id = UtxoId.from_str(value["utxo_id"])
    except CharmsError as e:
        raise MalformedTransaction(f"{where}: {e}") from e
    return tx_input(utxo_id, _parse_charms(value.get("charms", {}), f"{where}.charms"))


def _dump_charms(frozen: Tuple[Tuple[App, Data], ...]) -> Dict[str, Any]:
    return {str(app): data.value() for app, data in frozen}


def _dump_input(item: Input) -> Dict[str, Any]:
    return {"utxo_id": str(item.utxo_id), "charms": _dump_charms(item._frozen_charms)}
