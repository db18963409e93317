"""
Hook Registry — Filters and actions fired by the host media library.

Filters pass a value through every callback and return the result;
actions just notify. Callbacks run by ascending priority, then in
registration order.

## Usage

    hooks = HookRegistry()
    hooks.add_filter("get_attachment_url", rewrite, priority=99)
    url = hooks.apply_filters("get_attachment_url", url, attachment_id)
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10

# Hook names fired by LocalMediaLibrary
GENERATE_ATTACHMENT_METADATA = "generate_attachment_metadata"
ADD_ATTACHMENT = "add_attachment"
GET_ATTACHMENT_URL = "get_attachment_url"
PREPARE_ATTACHMENT_FOR_JS = "prepare_attachment_for_js"
ADMIN_NOTICES = "admin_notices"


@dataclass(order=True)
class _Registration:
    priority: int
    seq: int
    callback: Callable[..., Any] = field(compare=False)


class HookRegistry:
    """Named filter and action callbacks."""

    def __init__(self):
        self._filters: Dict[str, List[_Registration]] = {}
        self._actions: Dict[str, List[_Registration]] = {}
        self._seq = itertools.count()
        self._lock = Lock()

    def _add(self, table: Dict[str, List[_Registration]], name: str, callback, priority: int) -> None:
        with self._lock:
            entries = table.setdefault(name, [])
            entries.append(_Registration(priority, next(self._seq), callback))
            entries.sort()
        logger.debug(f"Registered hook {name} (priority {priority})")

    def add_filter(self, name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._filters, name, callback, priority)

    def add_action(self, name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._actions, name, callback, priority)

    def has_filter(self, name: str) -> bool:
        return bool(self._filters.get(name))

    def has_action(self, name: str) -> bool:
        return bool(self._actions.get(name))

    def registered(self) -> List[str]:
        """Names of every hook with at least one callback."""
        return sorted(
            {name for name, regs in self._filters.items() if regs}
            | {name for name, regs in self._actions.items() if regs}
        )

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Run `value` through every filter registered under `name`."""
        for reg in list(self._filters.get(name, [])):
            value = reg.callback(value, *args)
        return value

    def do_action(self, name: str, *args: Any) -> None:
        """Call every action registered under `name`."""
        for reg in list(self._actions.get(name, [])):
            reg.callback(*args)
