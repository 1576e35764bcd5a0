"""
Pure operations on an auth path.

Covers the sequence model queries, the availability resolver and the
reorder controller. Nothing here performs I/O or caches results: both the
path and the connected-account set can change independently, so every
query is recomputed from its inputs.
"""

from collections.abc import Collection, Iterable, Mapping
from typing import Any

import structlog

from loginus_id.models.auth import (
    FACTOR_CATALOG,
    AuthFactor,
    AuthFactorType,
    AuthPath,
    get_factor_spec,
)

logger = structlog.get_logger(__name__)


def find_factor(path: AuthPath, factor_id: str) -> AuthFactor | None:
    """Return the factor with ``factor_id``, or None."""
    return next((f for f in path if f.id == factor_id), None)


def index_of(path: AuthPath, factor_id: str) -> int:
    """Return the position of ``factor_id`` in the path, or -1."""
    return next((i for i, f in enumerate(path) if f.id == factor_id), -1)


def contains_type(path: AuthPath, factor_type: AuthFactorType | str) -> bool:
    return any(f.type == factor_type for f in path)


def is_enabled(path: AuthPath, factor_type: AuthFactorType | str) -> bool:
    """Check if a factor of ``factor_type`` is in the path and switched on."""
    return any(f.type == factor_type and f.enabled for f in path)


def is_available(
    factor_type: AuthFactorType | str,
    connected_accounts: Collection[str],
    path: AuthPath,
) -> bool:
    """
    Check if a factor can be added to the path.

    A factor is available iff it is not already in the path, it is not a
    policy-required factor, and its connected-account precondition (if any)
    is satisfied.

    Args:
        factor_type: Candidate factor type.
        connected_accounts: Keys of external accounts the user has linked.
        path: Current auth path.

    Returns:
        True if the factor can be added. Unknown types are never available.
    """
    try:
        spec = get_factor_spec(factor_type)
    except ValueError:
        return False

    # A required factor is always already in the path, so presence covers it.
    if contains_type(path, spec.type):
        return False
    return spec.account is None or spec.account in connected_accounts


def catalog_factors(path: AuthPath, connected_accounts: Collection[str]) -> AuthPath:
    """
    Every catalog factor with ``enabled`` and ``available`` derived from inputs.

    ``enabled`` reflects presence in the path; ``available`` reflects
    :func:`is_available`.
    """
    return tuple(
        AuthFactor.from_spec(
            spec,
            enabled=contains_type(path, spec.type),
            available=is_available(spec.type, connected_accounts, path),
        )
        for spec in FACTOR_CATALOG
    )


def available_factors(path: AuthPath, connected_accounts: Collection[str]) -> AuthPath:
    """
    Catalog factors that can be added right now, in catalog order.

    Returned factors are not enabled yet; adding one switches it on.
    """
    return tuple(
        AuthFactor.from_spec(spec, enabled=False, available=True)
        for spec in FACTOR_CATALOG
        if is_available(spec.type, connected_accounts, path)
    )


def hydrate(current_path: Iterable[AuthFactor | Mapping[str, Any]]) -> AuthPath:
    """
    Build an auth path from caller-supplied factors.

    Accepts ``AuthFactor`` instances or their dict form. Later factors of a
    type already seen are dropped, keeping at most one factor per type.

    Raises:
        ValueError: If a dict entry has a missing or unknown type.
    """
    seen: set[AuthFactorType] = set()
    factors: list[AuthFactor] = []
    for item in current_path:
        factor = item if isinstance(item, AuthFactor) else AuthFactor.from_dict(item)
        if factor.type in seen:
            logger.warning("Dropping duplicate factor", factor_type=factor.type.value)
            continue
        seen.add(factor.type)
        factors.append(factor)
    return tuple(factors)


def append_factor(path: AuthPath, factor_type: AuthFactorType | str) -> AuthPath:
    """
    Append an enabled catalog factor.

    Returns ``path`` unchanged if that type is already present.
    """
    spec = get_factor_spec(factor_type)
    if contains_type(path, spec.type):
        return path
    return (*path, AuthFactor.from_spec(spec, enabled=True))


def drop_factor(path: AuthPath, factor_id: str) -> AuthPath:
    """
    Remove a factor by id.

    Returns ``path`` unchanged if the id is unknown or the factor is required.
    """
    factor = find_factor(path, factor_id)
    if factor is None or factor.required:
        return path
    return tuple(f for f in path if f.id != factor_id)


def toggle_factor(path: AuthPath, factor_id: str) -> AuthPath:
    """
    Flip ``enabled`` on a factor.

    Returns ``path`` unchanged if the id is unknown or the factor is required.
    """
    factor = find_factor(path, factor_id)
    if factor is None or factor.required:
        return path
    return tuple(f.with_enabled(not f.enabled) if f.id == factor_id else f for f in path)


def reorder(path: AuthPath, from_id: str, to_id: str) -> AuthPath:
    """
    Move factor ``from_id`` to the position currently held by ``to_id``.

    This is the only splice used for reordering, whatever the input device.
    The input tuple itself is returned when nothing may move: same ids,
    unknown ids, or a required factor on either side.

    Args:
        path: Current auth path.
        from_id: Id of the dragged factor.
        to_id: Id of the factor it was dropped on.

    Returns:
        New path with the factor moved, or ``path`` unchanged.
    """
    if from_id == to_id:
        return path

    old_index = index_of(path, from_id)
    new_index = index_of(path, to_id)
    if old_index < 0 or new_index < 0:
        return path

    if path[old_index].required or path[new_index].required:
        return path

    items = list(path)
    items.insert(new_index, items.pop(old_index))
    return tuple(items)


def move_by(path: AuthPath, factor_id: str, offset: int) -> AuthPath:
    """
    Keyboard-style move: shift a factor ``offset`` slots (negative is up).

    Resolves the neighbour at the destination slot and delegates to
    :func:`reorder`, so the same invariant check applies. Offsets that run
    past either end are clamped.
    """
    index = index_of(path, factor_id)
    if index < 0 or offset == 0 or not path:
        return path
    target = min(max(index + offset, 0), len(path) - 1)
    return reorder(path, factor_id, path[target].id)
