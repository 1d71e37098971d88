"""Example of persisting a diff record.

This example demonstrates how to:
1. Export a diff-tracked state's history as JSON.
2. Restore it into a fresh store.
3. Keep undoing where the previous session left off.
"""

from cedar_state.store import StateStore


def run_example():
    # 1. First session
    store = StateStore()
    store.register_diff_state("doc", {"title": "Draft", "tags": []})
    store.set_diff_state("doc", {"title": "Draft", "tags": ["ideas"]}, True)
    store.accept_all_diffs("doc")
    store.set_diff_state("doc", {"title": "Final", "tags": ["ideas"]}, True)

    exported = store.export_diff_history("doc")
    print(f"Exported {len(exported)} bytes")

    # 2. Second session
    restored = StateStore()
    restored.register_state("doc", None)
    restored.import_diff_history("doc", exported)
    print("Restored value:", restored.get_cedar_state("doc"))

    # 3. Walk back through history
    while restored.undo("doc"):
        print("Undo ->", restored.get_clean_state("doc"))


if __name__ == "__main__":
    run_example()
