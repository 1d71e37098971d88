"""Utility functions for the Cedar state engine.

This module provides shared helper functions used across the engine, such
as structural diff computation, patch application and JSON pointer access.
"""

import copy
from typing import Any, Iterable, Union

import jsonpatch

from cedar_state.models.enums import PatchOpType
from cedar_state.models.patch import PatchOp, parse_patches, to_json_patch


def clone(value: Any) -> Any:
    """Returns a deep copy of a JSON-like value."""
    return copy.deepcopy(value)


def json_equal(a: Any, b: Any) -> bool:
    """Compares two JSON-like values structurally.

    Unlike ``==``, booleans never equal numbers and tuples compare like
    lists, matching JSON semantics.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (dict, list, tuple)) or isinstance(b, (dict, list, tuple)):
        return False
    return a == b


def escape_pointer_token(token: Union[str, int]) -> str:
    """Escapes a single JSON pointer reference token (RFC 6901)."""
    return str(token).replace("~", "~0").replace("/", "~1")


def unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def split_pointer(pointer: str) -> list[str]:
    """Splits a JSON pointer into unescaped tokens.

    Leading slashes are optional so that '/data' and 'data' are equivalent;
    the empty string and '/' both address the document root.
    """
    if not pointer or pointer == "/":
        return []
    if pointer.startswith("/"):
        pointer = pointer[1:]
    return [unescape_pointer_token(t) for t in pointer.split("/")]


def join_pointer(tokens: Iterable[Union[str, int]]) -> str:
    return "".join("/" + escape_pointer_token(t) for t in tokens)


def _step(node: Any, token: str) -> Any:
    if isinstance(node, dict):
        return node[token]
    if isinstance(node, list):
        return node[int(token)]
    raise KeyError(token)


def resolve_pointer(doc: Any, pointer: str, default: Any = None) -> Any:
    """Returns the value at a JSON pointer, or ``default`` when missing."""
    node = doc
    try:
        for token in split_pointer(pointer):
            node = _step(node, token)
    except (KeyError, IndexError, ValueError):
        return default
    return node


def compute_state_diff(
    old_state: Any, new_state: Any, path_prefix: str = ""
) -> list[PatchOp]:
    """Computes a structural diff between two JSON-like values.

    This function recursively compares two values and generates an ordered
    list of add, remove, or replace operations required to transform
    old_state into new_state. Dictionaries are compared key by key, lists
    element by element (trailing elements are added or removed), and any
    other mismatch becomes a replace at the current path.

    Args:
        old_state: The original value.
        new_state: The new value.
        path_prefix: Internal recursion helper holding the JSON pointer of
            the current location. Defaults to the document root.

    Returns:
        A list of PatchOp objects that, applied in order to old_state,
        reconstruct new_state.
    """
    if json_equal(old_state, new_state):
        return []

    if isinstance(old_state, dict) and isinstance(new_state, dict):
        diffs: list[PatchOp] = []
        for key in old_state:
            path = f"{path_prefix}/{escape_pointer_token(key)}"
            if key not in new_state:
                diffs.append(PatchOp(op=PatchOpType.REMOVE, path=path))
            else:
                diffs.extend(
                    compute_state_diff(old_state[key], new_state[key], path)
                )
        for key in new_state:
            if key not in old_state:
                path = f"{path_prefix}/{escape_pointer_token(key)}"
                diffs.append(
                    PatchOp(
                        op=PatchOpType.ADD, path=path, value=clone(new_state[key])
                    )
                )
        return diffs

    if isinstance(old_state, list) and isinstance(new_state, list):
        diffs = []
        common = min(len(old_state), len(new_state))
        for i in range(common):
            diffs.extend(
                compute_state_diff(old_state[i], new_state[i], f"{path_prefix}/{i}")
            )
        # Removals run from the end so earlier indices stay valid
        for i in range(len(old_state) - 1, common - 1, -1):
            diffs.append(PatchOp(op=PatchOpType.REMOVE, path=f"{path_prefix}/{i}"))
        for i in range(common, len(new_state)):
            diffs.append(
                PatchOp(
                    op=PatchOpType.ADD,
                    path=f"{path_prefix}/{i}",
                    value=clone(new_state[i]),
                )
            )
        return diffs

    return [
        PatchOp(op=PatchOpType.REPLACE, path=path_prefix, value=clone(new_state))
    ]


def apply_state_diff(state: Any, patches: list[Any]) -> Any:
    """Applies a patch set to a value without mutating it.

    Args:
        state: The base value.
        patches: PatchOp models or RFC 6902 dictionaries.

    Returns:
        A new value with the patches applied.

    Raises:
        jsonpatch.JsonPatchException: If an operation cannot be applied
            (including a failed 'test').
        jsonpatch.JsonPointerException: If a path does not resolve.
    """
    ops = to_json_patch(parse_patches(patches))
    if not ops:
        return clone(state)
    return jsonpatch.apply_patch(clone(state), ops, in_place=False)
