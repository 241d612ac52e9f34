"""Ordered fallback chains.

Each strategy is a named zero-argument callable. The first one that returns a
non-empty value wins; strategies that return None/"" or raise are skipped (and
logged), and the chain ends in a plain default so callers never see an error.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = tuple[str, Callable[[], Any]]


def first_available(strategies: Iterable[Strategy], default: T, label: str = "value") -> T:
    for name, strategy in strategies:
        try:
            value = strategy()
        except Exception as e:
            logger.warning("%s strategy %r failed: %s", label, name, e)
            continue
        if value is None or value == "":
            continue
        logger.debug("%s resolved by %r", label, name)
        return value
    logger.debug("%s fell back to default", label)
    return default
