"""Core API for grid plan operations.

This module provides the main interface for applying operations to a
level's geometry.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.ids import IdFactory, UuidIdFactory
from ..core.model import FloorGeometry
from .ops import get_operation
from .pipeline import commit

LOGGER = logging.getLogger(__name__)


def apply(geometry: FloorGeometry, operation: dict, ids: Optional[IdFactory] = None) -> FloorGeometry:
    """Apply an operation to a level's geometry and return the accepted result.

    Args:
        geometry: The level geometry to modify.
        operation: Dictionary describing the operation, keyed by ``op`` (or
            ``type``) plus the operation's parameters.
        ids: Id factory for entities the operation introduces. Defaults to
            uuid-based ids.

    Returns:
        A new FloorGeometry with the operation applied.

    Raises:
        ValueError: If the operation type is missing or not recognized, or
            it references an entity that does not exist.
        ConstructionError: If the requested entity cannot be built.
        OverlapRejected: If the change would make two rooms overlap.
    """
    # ``type`` names the operation only when ``op`` is absent; otherwise it is a parameter
    selector = "op" if "op" in operation else "type"
    operation_type = operation.get(selector)

    if operation_type is None:
        raise ValueError("Operation must have an 'op' or 'type' field")

    try:
        op = get_operation(operation_type)
    except KeyError:
        raise ValueError(f"Unknown operation type: {operation_type}")

    if ids is None:
        ids = UuidIdFactory()

    params = {k: v for k, v in operation.items() if k != selector}

    op.precheck(geometry, **params)
    proposed = op.apply(geometry, ids, **params)

    LOGGER.debug("Applying %s", operation_type)
    return commit(geometry, proposed, ids)


def apply_all(geometry: FloorGeometry, operations: Iterable[dict], ids: Optional[IdFactory] = None) -> FloorGeometry:
    """Apply operations in sequence, each building on the previous result.

    The first failing operation raises; nothing from the sequence is kept.
    """
    if ids is None:
        ids = UuidIdFactory()
    current = geometry
    for operation in operations:
        current = apply(current, operation, ids)
    return current
