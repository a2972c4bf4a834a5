"""
World Contracts

Events, causal edges, goals and the World aggregate that owns them.

BOUNDARY ENFORCEMENT:
=====================
- All types are frozen dataclasses
- A propagation pass produces NEW Event values, never mutates old ones
- Edges and Goals are declarative input, carried through unchanged
- Malformed input raises ValueError at construction time; rejecting a bad
  world file is the loader's job, not the engine's
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import hashlib
import json

from .state import StateVector, NUMERIC_DIMENSIONS, require_mapping


class Mechanism(Enum):
    """Channel through which influence travels along an edge."""
    DIPLOMATIC = "diplomatic"
    MILITARY = "military"
    ECONOMIC = "economic"
    INFORMATIONAL = "informational"
    TECHNOLOGICAL = "technological"


def parse_date(value: Union[str, date]) -> date:
    """
    Parse an ISO calendar date.

    Full ISO datetimes are accepted and truncated to their date part.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid event date: {value!r}")
    if "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return date.fromisoformat(value)


# =============================================================================
# EVENT
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Historical occurrence node.

    ``date`` is the total-order key used by the traversal engine.
    """
    event_id: str
    title: str
    date: date
    state: StateVector = field(default_factory=StateVector)
    location: Optional[str] = None
    actors: Tuple[str, ...] = field(default_factory=tuple)
    summary: Optional[str] = None
    sources: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        if not self.event_id or not isinstance(self.event_id, str):
            raise ValueError("Event id must be a non-empty string")
        if not isinstance(self.title, str):
            raise ValueError("Event title must be a string")
        if not isinstance(self.date, date):
            object.__setattr__(self, 'date', parse_date(self.date))

    def with_state(self, state: StateVector) -> Event:
        return replace(self, state=state)

    def with_title(self, title: str) -> Event:
        return replace(self, title=title)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.event_id,
            "title": self.title,
            "date": self.date.isoformat(),
        }
        if self.location is not None:
            out["location"] = self.location
        out["actors"] = list(self.actors)
        if self.summary is not None:
            out["summary"] = self.summary
        out["state"] = self.state.to_dict()
        if self.sources is not None:
            out["sources"] = list(self.sources)
        return out

    @staticmethod
    def from_dict(data: Mapping[str, Any], event_id: Optional[str] = None) -> Event:
        require_mapping(data, f"Event {event_id!r}" if event_id is not None else "Event")
        eid = data.get("id", event_id)
        if event_id is not None and eid != event_id:
            raise ValueError(f"Event key {event_id!r} does not match id {eid!r}")
        if "title" not in data or "date" not in data:
            raise ValueError(f"Event {eid!r} is missing title or date")
        sources = data.get("sources")
        return Event(
            event_id=eid,
            title=data["title"],
            date=parse_date(data["date"]),
            state=StateVector.from_dict(data.get("state")),
            location=data.get("location"),
            actors=tuple(data.get("actors") or ()),
            summary=data.get("summary"),
            sources=tuple(sources) if sources is not None else None,
        )


# =============================================================================
# EDGE
# =============================================================================

@dataclass(frozen=True)
class Edge:
    """Directed causal link. Immutable during propagation."""
    src: str
    dst: str
    mechanism: Mechanism
    weight: float

    def __post_init__(self):
        if not self.src or not self.dst:
            raise ValueError("Edge endpoints must be non-empty")
        if not isinstance(self.mechanism, Mechanism):
            object.__setattr__(self, 'mechanism', Mechanism(self.mechanism))
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError("Edge weight must be between 0.0 and 1.0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "src": self.src,
            "dst": self.dst,
            "weight": self.weight,
            "mechanism": self.mechanism.value,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Edge:
        require_mapping(data, "Edge")
        try:
            return Edge(
                src=data["src"],
                dst=data["dst"],
                mechanism=Mechanism(data["mechanism"]),
                weight=float(data["weight"]),
            )
        except KeyError as e:
            raise ValueError(f"Edge is missing field {e.args[0]!r}") from e


# =============================================================================
# GOALS (Carried through unchanged)
# =============================================================================

class GoalDirection(Enum):
    MIN = "min"
    MAX = "max"
    CLOSE = "close"


END_BY_DATE = "end_by_date"


@dataclass(frozen=True)
class GoalMetric:
    """
    One scored objective of a Goal.

    Either a state metric (``key`` is a numeric dimension, ``target`` a
    number, ``direction`` set) or a deadline metric (``key`` is
    ``end_by_date``, ``target`` an ISO date, no direction).
    """
    key: str
    target: Union[float, str]
    weight: float
    direction: Optional[GoalDirection] = None

    def __post_init__(self):
        if self.key == END_BY_DATE:
            if self.direction is not None:
                raise ValueError("end_by_date metrics take no direction")
            parse_date(self.target)
        elif self.key in NUMERIC_DIMENSIONS:
            if self.direction is None:
                raise ValueError(f"Metric {self.key!r} requires a direction")
            if not isinstance(self.direction, GoalDirection):
                object.__setattr__(self, 'direction', GoalDirection(self.direction))
        else:
            raise ValueError(f"Unknown goal metric key: {self.key!r}")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"key": self.key, "target": self.target, "weight": self.weight}
        if self.direction is not None:
            out["direction"] = self.direction.value
        return out

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> GoalMetric:
        require_mapping(data, "Goal metric")
        direction = data.get("direction")
        return GoalMetric(
            key=data["key"],
            target=data["target"],
            weight=data["weight"],
            direction=GoalDirection(direction) if direction is not None else None,
        )


@dataclass(frozen=True)
class Goal:
    goal_id: str
    name: str
    description: str
    metrics: Tuple[GoalMetric, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.goal_id,
            "name": self.name,
            "description": self.description,
            "metrics": [m.to_dict() for m in self.metrics],
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Goal:
        require_mapping(data, "Goal")
        return Goal(
            goal_id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            metrics=tuple(GoalMetric.from_dict(m) for m in data.get("metrics", ())),
        )


# =============================================================================
# WORLD (Aggregate)
# =============================================================================

@dataclass(frozen=True)
class World:
    """
    The full graph at one point in the intervention history.

    ``nodes`` is never mutated after construction; operations that change
    state build a new mapping and a new World.
    """
    nodes: Mapping[str, Event]
    edges: Tuple[Edge, ...] = field(default_factory=tuple)
    goals: Tuple[Goal, ...] = field(default_factory=tuple)

    def __post_init__(self):
        for key, event in self.nodes.items():
            if key != event.event_id:
                raise ValueError(f"Node key {key!r} does not match event id {event.event_id!r}")

    def get(self, event_id: str) -> Optional[Event]:
        return self.nodes.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self.nodes

    def with_events(self, replacements: Mapping[str, Event]) -> World:
        """Return a new World with some events replaced. Unknown ids are ignored."""
        nodes = dict(self.nodes)
        for event_id, event in replacements.items():
            if event_id in nodes:
                nodes[event_id] = event
        return World(nodes=nodes, edges=self.edges, goals=self.goals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {eid: event.to_dict() for eid, event in self.nodes.items()},
            "edges": [edge.to_dict() for edge in self.edges],
            "goals": [goal.to_dict() for goal in self.goals],
        }

    def content_hash(self) -> str:
        """Deterministic hash of the serialized world."""
        payload = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(payload.encode('utf-8')).hexdigest()

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> World:
        if not isinstance(data, Mapping) or not isinstance(data.get("nodes"), Mapping):
            raise ValueError("World must be an object with a 'nodes' mapping")
        nodes = {
            eid: Event.from_dict(raw, event_id=eid)
            for eid, raw in data["nodes"].items()
        }
        edges = tuple(Edge.from_dict(e) for e in data.get("edges", ()))
        goals = tuple(Goal.from_dict(g) for g in data.get("goals", ()))
        return World(nodes=nodes, edges=edges, goals=goals)
