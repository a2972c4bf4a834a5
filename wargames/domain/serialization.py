import json
from pathlib import Path
from typing import Any, Union

from ..contracts.world import World


class WorldEncoder(json.JSONEncoder):
    """
    JSON encoder for the world wire format.

    Contracts serialize through their own to_dict, which already yields
    JSON primitives (ISO dates, enum values, sparse state).
    """

    def default(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def dumps_world(world: World, indent: int = 2) -> str:
    return json.dumps(world, cls=WorldEncoder, indent=indent, ensure_ascii=False)


def loads_world(text: str) -> World:
    """Parse the wire format. Raises ValueError on malformed input."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"World is not valid JSON: {e}") from e
    try:
        return World.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed world: {e}") from e


def read_world(path: Union[str, Path]) -> World:
    return loads_world(Path(path).read_text(encoding="utf-8"))


def write_world(path: Union[str, Path], world: World) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(dumps_world(world), encoding="utf-8")
    tmp.replace(target)
