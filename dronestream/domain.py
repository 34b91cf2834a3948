"""Domain model: telemetry, drones, alert policy and the processing use case."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

DEFAULT_ALTITUDE_LIMIT = 120.0
DEFAULT_SPEED_LIMIT = 50.0


@dataclass(frozen=True, slots=True)
class Telemetry:
    """One telemetry sample reported by a drone."""

    drone_id: str
    latitude: float
    longitude: float
    altitude: float
    speed: float
    timestamp: int


@dataclass(frozen=True, slots=True)
class AlertPolicy:
    """Thresholds above which a drone is considered in alert."""

    altitude_limit: float = DEFAULT_ALTITUDE_LIMIT
    speed_limit: float = DEFAULT_SPEED_LIMIT


class AlertType(Enum):
    """Kinds of alert a drone can be in."""

    ALTITUDE = 0
    SPEED = 1


@dataclass(frozen=True, slots=True)
class AlertTransition:
    """A change of alert state: entering (True) or clearing (False) an alert."""

    type: AlertType
    entered: bool


class Drone:
    """A drone's latest known state and its active alerts."""

    def __init__(self, drone_id: str) -> None:
        self._drone_id = drone_id
        self._last_telemetry: Telemetry | None = None
        self._alert_state: set[AlertType] = set()

    @property
    def drone_id(self) -> str:
        return self._drone_id

    @property
    def alert_state(self) -> frozenset[AlertType]:
        return frozenset(self._alert_state)

    def update_from(self, telemetry: Telemetry, policy: AlertPolicy) -> list[AlertTransition]:
        """Apply a telemetry sample and return the alert transitions it caused."""
        self._last_telemetry = telemetry
        transitions: list[AlertTransition] = []
        checks = (
            (AlertType.ALTITUDE, telemetry.altitude > policy.altitude_limit),
            (AlertType.SPEED, telemetry.speed > policy.speed_limit),
        )
        for alert_type, triggered in checks:
            active = alert_type in self._alert_state
            if triggered and not active:
                self._alert_state.add(alert_type)
                transitions.append(AlertTransition(alert_type, True))
            elif not triggered and active:
                self._alert_state.discard(alert_type)
                transitions.append(AlertTransition(alert_type, False))
        return transitions

    def __repr__(self) -> str:
        alerts = sorted(a.name for a in self._alert_state)
        return f"Drone({self._drone_id!r}, alerts={alerts})"


class AlertNotifier(ABC):
    """Receives alert transitions for a drone."""

    @abstractmethod
    def notify(self, drone_id: str, transitions: list[AlertTransition]) -> None:
        """Report the transitions that happened for one drone."""


class DroneRepository(ABC):
    """Storage for drones keyed by their identifier."""

    @abstractmethod
    def find_by_id(self, drone_id: str) -> Drone | None:
        """Return the stored drone, or None if it is unknown."""

    @abstractmethod
    def save(self, drone: Drone) -> None:
        """Insert or replace a drone."""


class ProcessTelemetry:
    """Updates a drone from telemetry and notifies about alert changes."""

    def __init__(
        self,
        repository: DroneRepository,
        notifier: AlertNotifier,
        policy: AlertPolicy = AlertPolicy(),
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._policy = policy

    def execute(self, telemetry: Telemetry) -> None:
        drone = self._repository.find_by_id(telemetry.drone_id)
        if drone is None:
            drone = Drone(telemetry.drone_id)
        transitions = drone.update_from(telemetry, self._policy)
        self._repository.save(drone)
        if transitions:
            self._notifier.notify(telemetry.drone_id, transitions)