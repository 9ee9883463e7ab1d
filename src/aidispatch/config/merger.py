"""
Configuration merger for aidispatch.

Layers a YAML or environment override on top of the defaults. Provider
model lists can be extended or pruned without restating them:

    providers:
      anthropic:
        +models: [claude-3-5-sonnet]   # append
        -models: [claude-3-opus]       # remove
"""

from typing import Any

APPEND_PREFIX = "+"
REMOVE_PREFIX = "-"


def _list_op(base: dict[str, Any], key: str, items: list[Any]) -> tuple[str, list[Any]] | None:
    """Apply a '+key' / '-key' list operation. Returns None if key is not one."""
    if key.startswith(APPEND_PREFIX):
        target = key[len(APPEND_PREFIX) :]
        current = base.get(target)
        if not isinstance(current, list):
            return target, list(items)
        return target, current + [item for item in items if item not in current]

    if key.startswith(REMOVE_PREFIX):
        target = key[len(REMOVE_PREFIX) :]
        current = base.get(target)
        if not isinstance(current, list):
            return target, []
        return target, [item for item in current if item not in items]

    return None


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge override into a copy of base.

    Nested mappings merge key by key; a None value deletes the key; lists
    and scalars are replaced unless the key carries a '+' or '-' prefix.

    Args:
        base: Lower-precedence configuration.
        override: Higher-precedence configuration.

    Returns:
        The merged configuration. Neither input is modified.
    """
    merged = dict(base)

    for key, value in override.items():
        if isinstance(value, list):
            op = _list_op(merged, key, value)
            if op is not None:
                target, items = op
                merged[target] = items
                continue

        if value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def set_nested_value(config: dict[str, Any], key_path: list[str], value: Any) -> dict[str, Any]:
    """
    Set config[key_path[0]][key_path[1]]... = value in place.

    Missing or non-mapping intermediate levels are replaced by empty dicts.
    """
    *parents, leaf = key_path
    node = config
    for key in parents:
        child = node.get(key)
        if not isinstance(child, dict):
            child = node[key] = {}
        node = child

    node[leaf] = value
    return config
