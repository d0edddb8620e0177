"""Deep merge of structured config records.

Records are string-keyed mappings whose values are scalars, lists or nested
records. Merging walks the records left to right:

- record + record at the same key -> merged recursively
- anything else -> the later value replaces the earlier one

Lists are leaves: a later list replaces an earlier list, never element-merged.
"""

from copy import deepcopy
from typing import Any, Dict, Mapping

Record = Dict[str, Any]


def is_record(value: Any) -> bool:
    """Return True for mapping values that take part in recursive merging."""
    return isinstance(value, Mapping)


def deep_merge(*records: Mapping[str, Any]) -> Record:
    """Deep-merge records, later records overriding earlier ones.

    Args:
        *records: Zero or more mappings, lowest precedence first

    Returns:
        A new dict. Zero records yield ``{}``. Inputs are never mutated and
        the result shares no nested containers with them.

    Raises:
        TypeError: If any argument is not a mapping

    Example:
        >>> deep_merge({"db": {"host": "a", "port": 1}}, {"db": {"port": 2}})
        {'db': {'host': 'a', 'port': 2}}
    """
    output: Record = {}
    for index, record in enumerate(records):
        if not is_record(record):
            raise TypeError(
                f"deep_merge expects mappings, got {type(record).__name__} at position {index}"
            )
        _merge_into(output, record)
    return output


def _merge_into(output: Record, record: Mapping[str, Any]) -> None:
    for key, value in record.items():
        current = output.get(key)
        if is_record(current) and is_record(value):
            output[key] = deep_merge(current, value)
        elif is_record(value):
            output[key] = deep_merge(value)
        else:
            output[key] = deepcopy(value)


__all__ = ["Record", "deep_merge", "is_record"]
