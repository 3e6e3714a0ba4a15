"""
Selection Propagation Engine

Each feature, in each configuration, carries two ternary channels:
    manual:    the explicit user choice
    automatic: a value forced by a neighbour's selection

Resolved status:
    mandatory (or root) -> True
    else automatic, if defined
    else manual (possibly unset)

Two families of functions live here:
    - propagate_selection() MUTATES a configuration in reaction to a
      user action (select / deselect / make mandatory)
    - derive_selection() is PURE: it estimates a feature's value from
      the current shape and stored ternaries, for loading and display

Both read the same table (FORCED_DIRECTION) so they cannot drift apart:
an enabled feature forces its ancestors on, a disabled feature forces
its whole subtree off.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional

from featuremodel.errors import StructuralError
from featuremodel.model import (
    Configuration,
    Feature,
    FeatureModel,
    FeatureSelection,
    FeatureType,
    Ternary,
)


class Direction(Enum):
    UP = "ancestors"
    DOWN = "descendants"


FORCED_DIRECTION: Dict[bool, Direction] = {
    True: Direction.UP,
    False: Direction.DOWN,
}


class SelectionClass(Enum):
    """How the editor shell should display a feature's selection."""
    NONE = ""
    MANDATORY = "mandatory"
    ENABLED = "enabled"
    DISABLED = "disabled"


def resolve_status(feature: Feature, selection: Optional[FeatureSelection]) -> Ternary:
    if feature.mandatory or feature.is_root:
        return True
    if selection is None:
        return None
    if selection.automatic is not None:
        return selection.automatic
    return selection.manual


def forced_neighbours(model: FeatureModel, feature_id: str, value: bool) -> List[str]:
    """Features whose automatic channel is overridden when `feature_id` resolves to `value`."""
    if FORCED_DIRECTION[value] is Direction.UP:
        return model.ancestor_ids(feature_id)
    return model.descendant_ids(feature_id)


# =============================================================================
# Mutating propagation
# =============================================================================

def propagate_selection(
    model: FeatureModel,
    configuration: Configuration,
    feature_id: str,
    selected: bool,
) -> List[str]:
    """
    Apply a manual (de)selection and force the affected neighbours.

    Selecting sets manual=True on the feature and automatic=True on every
    ancestor. Deselecting sets manual=False on the feature and
    automatic=False on every descendant. Prior values are overridden.

    Returns:
        Changed feature names: the feature first, then the forced neighbours

    Raises:
        FeatureNotFoundError: If the feature is unknown
        StructuralError: When deselecting the root
    """
    feature = model.get_feature(feature_id)
    if feature.is_root:
        if selected:
            return []
        raise StructuralError("cannot deselect the root feature")
    # resolve the whole affected set before writing anything
    neighbours = forced_neighbours(model, feature_id, selected)

    selection = _selection_of(configuration, feature_id)
    selection.manual = selected
    selection.automatic = None
    changed = [feature_id]
    for nid in neighbours:
        _selection_of(configuration, nid).automatic = selected
        changed.append(nid)
    return changed


def _selection_of(configuration: Configuration, feature_id: str) -> FeatureSelection:
    # lazy repair of a configuration that lost track of a feature
    return configuration.features.setdefault(feature_id, FeatureSelection())


# =============================================================================
# Pure resolution
# =============================================================================

def selection_from_parent(
    feature: Feature,
    model: FeatureModel,
    selections: Mapping[str, FeatureSelection],
) -> Ternary:
    """Value forced on a feature by its parent, if any (a disabled parent disables it)."""
    if feature.parent is None:
        return True
    parent = model.get_feature(feature.parent)
    value = resolve_status(parent, selections.get(parent.name))
    if value is not None and FORCED_DIRECTION[value] is Direction.DOWN:
        return value
    return None


def selection_from_children(
    feature: Feature,
    model: FeatureModel,
    selections: Mapping[str, FeatureSelection],
) -> Ternary:
    """Value forced on a feature by its children, if any (an enabled child enables it)."""
    for cid in feature.children:
        child = model.get_feature(cid)
        value = resolve_status(child, selections.get(cid))
        if value is not None and FORCED_DIRECTION[value] is Direction.UP:
            return value
    return None


def derive_selection(
    feature: Feature,
    model: FeatureModel,
    selections: Mapping[str, FeatureSelection],
) -> Ternary:
    by_parent = selection_from_parent(feature, model, selections)
    if by_parent is not None:
        return by_parent
    return selection_from_children(feature, model, selections)


# =============================================================================
# Selectability and display
# =============================================================================

def is_selectable(model: FeatureModel, feature_id: str) -> bool:
    """
    Only children of an AND group can be toggled on their own.

    OR/XOR children follow the group-level choice; the root is fixed.
    """
    feature = model.get_feature(feature_id)
    if feature.parent is None:
        return False
    return model.get_feature(feature.parent).type is FeatureType.AND


def selection_class(
    model: FeatureModel,
    configuration: Configuration,
    feature_id: str,
) -> SelectionClass:
    if not is_selectable(model, feature_id):
        return SelectionClass.NONE
    feature = model.get_feature(feature_id)
    if feature.mandatory:
        return SelectionClass.MANDATORY
    if resolve_status(feature, configuration.features.get(feature_id)) is True:
        return SelectionClass.ENABLED
    return SelectionClass.DISABLED
