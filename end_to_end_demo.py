"""
End-to-End Intervention Demo

Walks the complete pipeline on the bundled WWI world:
Storage (load) → Engine (intervene) → Observability → Rewriter (mock) → Storage (save)
"""

import os
import shutil
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from wargames.engine import InterventionEngine
from wargames.storage import FileWorldStore, InMemoryWorldStore
from rewriter import CascadeRewriter, apply_updates
from rewriter.providers import MockProvider

WWI_PATH = Path(__file__).resolve().parent / "data" / "wwi.json"

EDIT_ID = "sarajevo"
EDIT_TEXT = "Archduke assassinated, Austria mobilizes for invasion"


def banner(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def setup_environment() -> Path:
    """Work on a copy so the bundled world stays pristine."""
    data_dir = Path("./demo_data")
    if data_dir.exists():
        shutil.rmtree(data_dir)
    data_dir.mkdir(parents=True)
    shutil.copy(WWI_PATH, data_dir / "wwi.json")
    return data_dir


def run_load(store: FileWorldStore):
    banner("STEP 1: LOAD WORLD")
    result = store.load()
    if result.is_failure:
        print(f"Load failed: {result.error.code.name}: {result.error.message}")
        return None
    world = result.value
    print(f"Events: {len(world.nodes)} | Edges: {len(world.edges)} | Goals: {len(world.goals)}")
    return world


def run_intervention(engine: InterventionEngine, world):
    banner("STEP 2: INTERVENTION")
    outcome = engine.run(world, EDIT_ID, EDIT_TEXT)

    print(f"Edited: {EDIT_ID} -> {EDIT_TEXT!r}")
    print(f"Matches: {[(m.rule, m.keyword) for m in outcome.extraction.matches]}")
    print(f"Delta: {outcome.extraction.delta.to_dict()}")
    print(f"War escalation change at source: {outcome.escalation_change:+.3f}")
    print(f"New title: {outcome.world.nodes[EDIT_ID].title}")

    print("\nCommitted events (time order):")
    for event_id in outcome.propagation.committed:
        before = world.nodes[event_id].state.to_dict()
        after = outcome.world.nodes[event_id].state.to_dict()
        print(f"  - {event_id}")
        for dimension in sorted(set(before) | set(after)):
            if before.get(dimension) != after.get(dimension):
                print(f"      {dimension}: {before.get(dimension)} -> {after.get(dimension)}")
    return outcome


def run_observability(engine: InterventionEngine):
    banner("STEP 3: AUDIT & METRICS")
    report = engine.get_audit_report()
    print(f"Audit entries: {report['total_entries']}")
    print(f"By layer: {report['entries_by_layer']}")
    metrics = engine.get_metrics()
    print(f"Events committed: {metrics.get_latest('events_committed').value:.0f}")
    print(f"Duration: {metrics.get_latest('intervention_duration_ms').value:.2f}ms")


def run_rewriter(world):
    banner("STEP 4: CASCADE HEADLINE REWRITE (mock provider)")
    rewriter = CascadeRewriter(MockProvider())
    response = rewriter.rewrite_world(world, EDIT_ID, world.nodes[EDIT_ID].title, subtree_only=True)
    if not response.success:
        print(f"Rewrite failed: {response.error.error_code.value}: {response.error.message}")
        return world
    for update in response.updates:
        print(f"  - {update.event_id}: {update.new_text}")
    return apply_updates(world, response)


def run_save(store: FileWorldStore, world):
    banner("STEP 5: SAVE")
    written = store.save(world)
    if not written.success:
        print(f"Save failed: {written.error.message}")
        return
    print(f"Saved version {written.version_id.value} (sequence {written.version_id.sequence})")

    shadow = InMemoryWorldStore(world)
    print(f"In-memory copy hash matches: {shadow.load().value.content_hash() == world.content_hash()}")


def main():
    data_dir = setup_environment()

    try:
        store = FileWorldStore(str(data_dir / "wwi.json"))
        engine = InterventionEngine()

        world = run_load(store)
        if world is None:
            return
        outcome = run_intervention(engine, world)
        run_observability(engine)
        rewritten = run_rewriter(outcome.world)
        run_save(store, rewritten)

    finally:
        if data_dir.exists():
            shutil.rmtree(data_dir)


if __name__ == "__main__":
    main()
