"""
Deterministic Intervention Test
Verifies that identical interventions on identical Worlds produce
identical Worlds, across fresh engine instances and serialization.
"""

from pathlib import Path

from wargames import InterventionEngine, intervene
from wargames.domain.serialization import dumps_world, loads_world, read_world

WWI_PATH = Path(__file__).resolve().parents[2] / "data" / "wwi.json"

EDITS = [
    ("sarajevo", "Archduke survives assassination attempt in Sarajevo"),
    ("july_ultimatum", "Serbia accepts ultimatum, talks begin"),
    ("zimmermann_telegram", "Zimmermann Telegram intercepted and published"),
]


def test_golden_intervention_determinism():
    """Same edits in the same order give the same content hash on every run."""
    hashes = []
    for _ in range(2):
        world = read_world(WWI_PATH)
        engine = InterventionEngine()
        for event_id, text in EDITS:
            world = engine.intervene(world, event_id, text)
        hashes.append(world.content_hash())

    assert hashes[0] == hashes[1]


def test_module_level_intervene_matches_engine():
    world = read_world(WWI_PATH)
    event_id, text = EDITS[0]
    assert intervene(world, event_id, text) == InterventionEngine().intervene(world, event_id, text)


def test_serialized_world_keeps_hash():
    world = intervene(read_world(WWI_PATH), *EDITS[0])
    assert loads_world(dumps_world(world)).content_hash() == world.content_hash()
