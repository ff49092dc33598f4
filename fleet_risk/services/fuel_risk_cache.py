"""
Fuel Risk Cache

Per-vehicle FuelRiskResult cache, owned by whoever holds the lifetime of
a vehicle detail view and passed in explicitly. Entries are idempotent
recomputations, so writes are last-writer-wins with no locking.
"""

from typing import Dict, Optional

from fleet_risk.models import FuelRiskResult


class FuelRiskCache:
    def __init__(self):
        self._entries: Dict[str, FuelRiskResult] = {}

    def get(self, vehicle_id: str) -> Optional[FuelRiskResult]:
        return self._entries.get(vehicle_id)

    def set(self, vehicle_id: str, result: FuelRiskResult) -> None:
        self._entries[vehicle_id] = result

    def invalidate(self, vehicle_id: str) -> None:
        self._entries.pop(vehicle_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, vehicle_id: str) -> bool:
        return vehicle_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
