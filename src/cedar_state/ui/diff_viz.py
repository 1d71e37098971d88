import json
from typing import Any, Iterable, Union

from ..models.diff_state import DiffHistoryState
from ..models.patch import PatchOp, parse_patches


def _short(value: Any, limit: int = 80) -> str:
    text = json.dumps(value, default=repr)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def format_patches_markdown(patches: Iterable[Union[PatchOp, dict[str, Any]]]) -> str:
    patches = parse_patches(list(patches))
    if not patches:
        return "No pending changes."

    lines: list[str] = ["### Pending changes"]
    for p in patches:
        path = p.path or "/"
        if p.op in ("add", "replace", "test"):
            lines.append(f"- **{p.op}** `{path}` = `{_short(p.value)}`")
        elif p.op in ("move", "copy"):
            lines.append(f"- **{p.op}** `{p.from_}` -> `{path}`")
        else:
            lines.append(f"- **{p.op}** `{path}`")
    return "\n".join(lines)


def format_history_markdown(record: DiffHistoryState) -> str:
    current = record.diff_state
    status = "pending review" if current.is_diff_mode else "clean"
    lines = [
        "### Diff state",
        f"- **mode**: {record.diff_mode}",
        f"- **status**: {status}",
        f"- **history**: {len(record.history)}",
        f"- **redo**: {len(record.redo_stack)}",
        "",
        format_patches_markdown(current.patches),
    ]
    return "\n".join(lines)
