"""
In-memory state store for indicator instances.

Each (instance, symbol, timeframe) key owns one mutable slot, a plain dict the
indicator reads and writes through ``load_state`` / ``save_state``. Clearing a
slot is how the host signals that the stored state is no longer valid.
"""

from dataclasses import dataclass
from typing import Dict, List, MutableMapping, Optional

from rsicraft.models import EngineState
from rsicraft.utils.exceptions import CorruptStateError
from rsicraft.utils.logger import get_logger

_STATE_FIELDS = ("avgGain", "avgLoss", "lastTimestamp", "period")

logger = get_logger("rsicraft.state_store")


@dataclass(frozen=True)
class StateKey:
    """Identifies the state slot of one indicator instance on one chart."""
    instance_id: str
    symbol: str
    timeframe: str


def load_state(slot: MutableMapping) -> Optional[EngineState]:
    """
    Read the engine state held in ``slot``.

    An empty slot, or one holding a malformed blob, yields None so the engine
    reseeds.
    """
    if not slot:
        return None
    try:
        return EngineState.from_dict(dict(slot))
    except CorruptStateError as e:
        logger.warning(f"Discarding corrupt indicator state: {e}")
        return None


def save_state(slot: MutableMapping, state: Optional[EngineState]) -> None:
    """Write ``state`` into ``slot``; None leaves the slot untouched."""
    if state is None:
        return
    for name in _STATE_FIELDS:
        slot.pop(name, None)
    slot.update(state.to_dict())


class StateStore:
    """
    Keyed collection of state slots.

    Slots never leak across keys; dropping an instance removes every slot it
    owns.
    """

    def __init__(self):
        self._slots: Dict[StateKey, Dict] = {}

    def slot(self, key: StateKey) -> Dict:
        """The mutable slot for ``key``, created empty on first access."""
        return self._slots.setdefault(key, {})

    def load(self, key: StateKey) -> Optional[EngineState]:
        slot = self._slots.get(key)
        if slot is None:
            return None
        return load_state(slot)

    def save(self, key: StateKey, state: Optional[EngineState]) -> None:
        save_state(self.slot(key), state)

    def clear(self, key: StateKey) -> None:
        """Empty the slot for ``key`` (forces a reseed on the next run)."""
        slot = self._slots.get(key)
        if slot is not None:
            slot.clear()
            logger.debug(f"Cleared state for {key}")

    def drop_instance(self, instance_id: str) -> int:
        """
        Destroy every slot owned by ``instance_id``.

        Returns:
            Number of slots removed
        """
        doomed = [key for key in self._slots if key.instance_id == instance_id]
        for key in doomed:
            del self._slots[key]
        if doomed:
            logger.debug(f"Dropped {len(doomed)} state slot(s) of instance {instance_id}")
        return len(doomed)

    def keys(self, instance_id: Optional[str] = None) -> List[StateKey]:
        if instance_id is None:
            return list(self._slots)
        return [key for key in self._slots if key.instance_id == instance_id]

    def __contains__(self, key: StateKey) -> bool:
        return key in self._slots

    def __len__(self) -> int:
        return len(self._slots)
