"""
Generic JSON Tree Walker.

Schema-free lookups over vendor JSON. Vendor responses are parsed with the
standard `json` module into plain Python values (dict / list / str / int /
float / bool / None) and every helper here accepts any of those kinds,
returning None when the requested value is absent or of the wrong kind.

Searches are pre-order: object properties in document order (a property is
checked before its own subtree is entered), then array elements in index
order. Key matching is case-insensitive everywhere. Traversal is iterative
and never descends further than JSON_MAX_DEPTH containers, so vendor-sized
or hostile documents cannot exhaust the interpreter stack.
"""
import json
import logging
import math
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from utils.config import JSON_MAX_DEPTH

logger = logging.getLogger(__name__)

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

ROOT_PATH = "root"

KIND_CHECKS = {
    "object": lambda value: isinstance(value, dict),
    "string": lambda value: isinstance(value, str) and bool(value.strip()),
    "number": lambda value: is_number(value),
}


class JsonParseError(ValueError):
    """Raised when a vendor body is not valid JSON."""


# =============================================================================
# PARSING
# =============================================================================

def load_json(text: Union[str, bytes, None]) -> JsonValue:
    """
    Parse a vendor body.

    Raises:
        JsonParseError: If the body is empty, not JSON, or nested so deeply
            that the parser gives up
    """
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8", errors="replace")
    if not isinstance(text, str) or not text.strip():
        raise JsonParseError("Empty vendor response body")

    try:
        return json.loads(text)
    except RecursionError as e:
        raise JsonParseError("Vendor response is nested too deeply") from e
    except ValueError as e:
        raise JsonParseError(f"Invalid JSON: {e}") from e


def parse_json(text: Union[str, bytes, None]) -> Optional[JsonValue]:
    """Parse a vendor body, returning None instead of raising."""
    try:
        return load_json(text)
    except JsonParseError as e:
        logger.debug(f"Ignoring unparseable vendor body: {e}")
        return None


# =============================================================================
# KIND HELPERS
# =============================================================================

def is_number(value: Any) -> bool:
    """True for finite JSON numbers (bools, NaN and infinities are excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


def as_int(value: Any) -> Optional[int]:
    """Strict integer read: ints and integral floats only."""
    if not is_number(value):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def as_lenient_int(value: Any) -> Optional[int]:
    """Integer read that rounds floats and parses numeric strings."""
    if is_number(value):
        return int(round(value))
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def as_float(value: Any) -> Optional[float]:
    """Float read accepting finite numbers and numeric strings ("NaN", "inf" read as None)."""
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_list(value: Any) -> List[Any]:
    """Array read; anything that is not an array reads as empty."""
    return value if isinstance(value, list) else []


# =============================================================================
# DIRECT LOOKUPS
# =============================================================================

def get_property(node: Any, name: str) -> Any:
    """
    Case-insensitive property lookup on an object.

    Returns the first matching property in document order, or None when
    `node` is not an object or has no such property.
    """
    if not isinstance(node, dict):
        return None

    target = name.lower()
    for key, value in node.items():
        if key.lower() == target:
            return value
    return None


def read_path(node: Any, *segments: Union[str, int]) -> Any:
    """
    Follow a literal path of property names and array indices.

    Example:
        >>> read_path({"a": [{"B": 3}]}, "a", "0", "b")
        3
    """
    current = node
    for segment in segments:
        if isinstance(current, dict):
            current = get_property(current, str(segment))
        elif isinstance(current, list):
            index = _to_index(segment)
            if index is None or index >= len(current):
                return None
            current = current[index]
        else:
            return None

        if current is None:
            return None
    return current


def read_str(node: Any, *segments: Union[str, int]) -> Optional[str]:
    return as_str(read_path(node, *segments))


def read_int(node: Any, *segments: Union[str, int]) -> Optional[int]:
    return as_int(read_path(node, *segments))


def read_lenient_int(node: Any, *segments: Union[str, int]) -> Optional[int]:
    return as_lenient_int(read_path(node, *segments))


def read_float(node: Any, *segments: Union[str, int]) -> Optional[float]:
    return as_float(read_path(node, *segments))


def _to_index(segment: Union[str, int]) -> Optional[int]:
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment if segment >= 0 else None
    if isinstance(segment, str) and segment.isdigit():
        return int(segment)
    return None


# =============================================================================
# TREE SEARCH
# =============================================================================

def iter_entries(
    root: Any,
    max_depth: int = JSON_MAX_DEPTH,
    root_path: str = ROOT_PATH
) -> Iterator[Tuple[str, Any, str]]:
    """
    Walk every object property of a tree in pre-order.

    Yields:
        (key, value, path) for each property, where path looks like
        "root.ContainerList.List[0].Images"
    """
    if not isinstance(root, (dict, list)):
        return

    stack = [(_children(root, root_path), 1)]
    while stack:
        children, depth = stack[-1]
        entry = next(children, None)
        if entry is None:
            stack.pop()
            continue

        key, value, path = entry
        if key is not None:
            yield key, value, path

        if isinstance(value, (dict, list)) and depth < max_depth:
            stack.append((_children(value, path), depth + 1))


def _children(node: Any, path: str) -> Iterator[Tuple[Optional[str], Any, str]]:
    if isinstance(node, dict):
        return ((key, value, f"{path}.{key}") for key, value in node.items())
    return ((None, item, f"{path}[{index}]") for index, item in enumerate(node))


def find_first(
    root: Any,
    names: Union[str, Iterable[str]],
    kind: str,
    case_sensitive: bool = False
) -> Any:
    """
    Find the first property named like one of `names` whose value has `kind`.

    Args:
        root: Parsed JSON tree
        names: Candidate property name(s), matched case-insensitively unless
            `case_sensitive` is set
        kind: "object", "string" (non-blank) or "number"

    Returns:
        The matching value, or None when nothing matches
    """
    check = KIND_CHECKS[kind]
    targets = _name_set(names, case_sensitive)

    for key, value, _ in iter_entries(root):
        if (key if case_sensitive else key.lower()) in targets and check(value):
            return value
    return None


def find_first_object(
    root: Any,
    name: Union[str, Iterable[str]],
    case_sensitive: bool = False
) -> Optional[Dict[str, Any]]:
    return find_first(root, name, "object", case_sensitive)


def find_first_string(root: Any, names: Union[str, Iterable[str]]) -> Optional[str]:
    return find_first(root, names, "string")


def find_first_number(root: Any, names: Union[str, Iterable[str]]) -> Optional[float]:
    value = find_first(root, names, "number")
    return float(value) if value is not None else None


def _name_set(names: Union[str, Iterable[str]], case_sensitive: bool = False) -> set:
    if isinstance(names, str):
        names = [names]
    return {name if case_sensitive else name.lower() for name in names}
