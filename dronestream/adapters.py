"""Server-side implementations of the domain's notifier and repository."""

from __future__ import annotations

import copy
import logging

from .domain import AlertNotifier, AlertTransition, Drone, DroneRepository

log = logging.getLogger(__name__)


class ConsoleAlertNotifier(AlertNotifier):
    """Logs each alert transition as a warning."""

    def notify(self, drone_id: str, transitions: list[AlertTransition]) -> None:
        for transition in transitions:
            state = "ENTERED" if transition.entered else "CLEARED"
            log.warning(
                "[ALERT] drone=%s type=%s state=%s",
                drone_id,
                transition.type.name,
                state,
            )


class InMemoryDroneRepository(DroneRepository):
    """Keeps drones in a dictionary.

    Not locked: it is meant to be used from a single processing thread.
    Drones are handed out as copies, so changes take effect only on ``save``.
    """

    def __init__(self) -> None:
        self._drones: dict[str, Drone] = {}

    def find_by_id(self, drone_id: str) -> Drone | None:
        drone = self._drones.get(drone_id)
        return None if drone is None else copy.deepcopy(drone)

    def save(self, drone: Drone) -> None:
        self._drones[drone.drone_id] = copy.deepcopy(drone)

    def __len__(self) -> int:
        return len(self._drones)