"""
Feature Model Manager (Mutation API)

The only sanctioned way to edit a FeatureModel. Every operation keeps
the tree invariants across ALL configurations at once:

    - structural edits (create / remove / rename / retype / mandatory)
      touch the single shared tree and therefore every configuration
    - selection edits (select / deselect) touch the current
      configuration only

Every change is applied to `manager.data` in place. A caller that needs
to preserve the current state (undo timeline, speculative edits) must
call deep_copy() first and act on the copy.

KNOWN GAP:
    Constraints name features by string. They are NOT rewritten when a
    feature is renamed, nor dropped when it is removed. The analyzer
    reports such dangling references.
"""

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional

from featuremodel.configurations import ConfigurationStore
from featuremodel.errors import StructuralError
from featuremodel.expressions import LogicExpression
from featuremodel.model import (
    Configuration,
    Feature,
    FeatureModel,
    FeatureSelection,
    FeatureType,
    Ternary,
    blank_feature_model,
)
from featuremodel.propagation import (
    SelectionClass,
    derive_selection,
    is_selectable,
    propagate_selection,
    resolve_status,
    selection_class,
)
from featuremodel.settings import DEFAULT_SETTINGS, EditorSettings
from featuremodel.xml_codec import parse_feature_model, serialize_feature_model

logger = logging.getLogger(__name__)


class FeatureModelManager:
    """
    Owns one FeatureModel and the current-configuration pointer.

    Properties:
        data: The managed FeatureModel (mutated in place)
        configurations: ConfigurationStore over data.configurations
        settings: EditorSettings used for synthesized names
    """

    def __init__(self, model: FeatureModel, settings: EditorSettings = DEFAULT_SETTINGS):
        self.data = model
        self.settings = settings
        self._repair_configurations()
        self.configurations = ConfigurationStore(model.configurations)

    @classmethod
    def blank(cls, settings: EditorSettings = DEFAULT_SETTINGS) -> FeatureModelManager:
        return cls(blank_feature_model(settings), settings)

    @classmethod
    def from_xml(cls, text: str, settings: EditorSettings = DEFAULT_SETTINGS) -> FeatureModelManager:
        return cls(parse_feature_model(text), settings)

    def to_xml(self) -> str:
        return serialize_feature_model(self.data, indent=self.settings.xml_indent)

    def _repair_configurations(self) -> None:
        model = self.data
        if not model.configurations:
            name = self.settings.default_configuration_name
            logger.warning("Model has no configurations; creating %r", name)
            model.configurations[name] = Configuration(
                name=name,
                features={model.root: FeatureSelection(automatic=True)},
            )
        for config in model.configurations.values():
            stale = [fid for fid in config.features if fid not in model.features]
            for fid in stale:
                logger.warning("Dropping entry for unknown feature %r from configuration %r", fid, config.name)
                del config.features[fid]
            for fid in model.features:
                config.features.setdefault(fid, FeatureSelection())

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def configuration(self) -> Configuration:
        return self.configurations.current

    @property
    def current_configuration_name(self) -> str:
        return self.configurations.current.name

    @property
    def number_of_configurations(self) -> int:
        return len(self.configurations)

    @property
    def root_id(self) -> str:
        return self.data.root

    @property
    def root(self) -> FeatureView:
        return self.get_feature(self.data.root)

    @property
    def constraints(self) -> List[LogicExpression]:
        return self.data.constraints

    def has(self, feature_id: str) -> bool:
        return self.data.has_feature(feature_id)

    def get_feature(self, feature_id: str) -> FeatureView:
        return FeatureView(feature_id, self.data, self.configuration)

    def all_features(self) -> List[FeatureView]:
        return [FeatureView(f.name, self.data, self.configuration) for f in self.data.walk()]

    def deep_copy(self) -> FeatureModelManager:
        """Independent snapshot; the copy keeps the same current configuration."""
        fmm = FeatureModelManager(self.data.deep_copy(), self.settings)
        fmm.configurations.switch_to(self.current_configuration_name)
        return fmm

    def shallow_copy(self) -> FeatureModelManager:
        """New outer identity sharing every nested map (for change detection only)."""
        return copy.copy(self)

    # -------------------------------------------------------------------------
    # Structural edits
    # -------------------------------------------------------------------------

    def create(self, feature_id: str, parent_id: str, type: FeatureType = FeatureType.AND) -> FeatureView:
        """
        Create a new leaf feature as the last child of `parent_id`.

        Raises:
            StructuralError: If `feature_id` already exists or the parent is unknown
        """
        model = self.data
        if model.has_feature(feature_id):
            raise StructuralError(f"duplicate feature name: {feature_id}")
        if not feature_id:
            raise StructuralError("feature name cannot be empty")
        if not model.has_feature(parent_id):
            raise StructuralError(f"unknown parent feature name: {parent_id}")
        parent = model.get_feature(parent_id)
        parent.children.append(feature_id)
        model.features[feature_id] = Feature(name=feature_id, type=type, parent=parent_id)
        self.configurations.ensure_feature(feature_id)
        logger.debug("Created feature %r under %r", feature_id, parent_id)
        return self.get_feature(feature_id)

    def remove(self, feature_id: str) -> List[str]:
        """
        Remove a feature and its whole subtree, from the tree and every configuration.

        Returns:
            Names of the removed features

        Raises:
            StructuralError: When removing the root
            FeatureNotFoundError: If the feature is unknown
        """
        model = self.data
        feature = model.get_feature(feature_id)
        if feature.is_root:
            raise StructuralError("cannot remove the root feature")
        removed = [feature_id] + model.descendant_ids(feature_id)
        parent = model.get_feature(feature.parent)

        parent.children = [cid for cid in parent.children if cid != feature_id]
        for name in removed:
            del model.features[name]
            self.configurations.discard_feature(name)
        logger.debug("Removed %d feature(s) rooted at %r", len(removed), feature_id)
        return removed

    def rename(self, feature_id: str, name: str) -> FeatureView:
        """
        Rename a feature, rewriting every reference held by the tree and configurations.

        Constraints are left untouched.

        Raises:
            StructuralError: If `name` exists or the linkage is inconsistent
            FeatureNotFoundError: If the feature is unknown
        """
        model = self.data
        feature = model.get_feature(feature_id)
        if name == feature_id:
            return self.get_feature(feature_id)
        if not name:
            raise StructuralError("feature name cannot be empty")
        if model.has_feature(name):
            raise StructuralError(f'unable to rename "{feature_id}"; "{name}" already exists')
        children = [model.get_feature(cid) for cid in feature.children]
        for child in children:
            if child.parent != feature_id:
                raise StructuralError(f"inconsistent model; wrong parent: {child.name} -> {child.parent}")
        parent: Optional[Feature] = None
        if feature.parent is not None:
            parent = model.get_feature(feature.parent)
            if feature_id not in parent.children:
                raise StructuralError(f"inconsistent model; missing child: {parent.name} -> {feature_id}")

        # re-key the arena in place, keeping its order
        entries = list(model.features.items())
        model.features.clear()
        for key, value in entries:
            model.features[name if key == feature_id else key] = value
        feature.name = name
        for child in children:
            child.parent = name
        if parent is None:
            model.root = name
        else:
            parent.children = [name if cid == feature_id else cid for cid in parent.children]
        self.configurations.rename_feature(feature_id, name)
        logger.debug("Renamed feature %r to %r", feature_id, name)
        return self.get_feature(name)

    def set_feature_type(self, feature_id: str, type: FeatureType) -> List[str]:
        """
        Change a feature's group type.

        Returns the feature and its children: the children's display
        class may change, their stored ternaries do not.
        """
        feature = self.data.get_feature(feature_id)
        feature.type = type
        return [feature_id] + list(feature.children)

    def set_mandatory_status(self, feature_id: str, mandatory: bool) -> List[str]:
        return self._set_mandatory(feature_id) if mandatory else self._set_optional(feature_id)

    def _set_mandatory(self, feature_id: str) -> List[str]:
        feature = self.data.get_feature(feature_id)
        if feature.is_root:
            return []
        feature.mandatory = True
        # a mandatory feature must show as selected in every configuration
        changed = propagate_selection(self.data, self.configuration, feature_id, True)
        for config in self.configurations:
            if config is not self.configuration:
                propagate_selection(self.data, config, feature_id, True)
        logger.debug("Feature %r is now mandatory", feature_id)
        return changed

    def _set_optional(self, feature_id: str) -> List[str]:
        feature = self.data.get_feature(feature_id)
        if feature.is_root:
            raise StructuralError("root feature is always mandatory")
        feature.mandatory = False
        return [feature_id]

    # -------------------------------------------------------------------------
    # Selection edits (current configuration only)
    # -------------------------------------------------------------------------

    def is_selectable(self, feature_id: str) -> bool:
        return is_selectable(self.data, feature_id)

    def set_selection_status(self, feature_id: str, selected: bool) -> List[str]:
        changed = propagate_selection(self.data, self.configuration, feature_id, selected)
        logger.debug(
            "%s %r in %r (%d changed)",
            "Selected" if selected else "Deselected",
            feature_id,
            self.current_configuration_name,
            len(changed),
        )
        return changed

    def select(self, feature_id: str) -> List[str]:
        return self.set_selection_status(feature_id, True)

    def deselect(self, feature_id: str) -> List[str]:
        return self.set_selection_status(feature_id, False)

    def derived_selection(self, feature_id: str) -> Ternary:
        return derive_selection(self.data.get_feature(feature_id), self.data, self.configuration.features)

    # -------------------------------------------------------------------------
    # Constraints
    # -------------------------------------------------------------------------

    def add_constraint(self, expr: LogicExpression) -> FeatureModelManager:
        if not isinstance(expr, LogicExpression):
            raise TypeError(f"Unsupported constraint type: {type(expr)}")
        self.data.constraints.append(expr)
        return self

    def remove_constraint(self, index: int) -> FeatureModelManager:
        """Raises IndexError on a bad index."""
        del self.data.constraints[index]
        return self

    def non_root_feature_names(self) -> List[str]:
        root = self.root_id
        return [name for name in self.data.features if name != root]

    def cross_tree_relations(self) -> Dict[str, List[str]]:
        """
        Candidate partners of each non-root feature for a cross-tree constraint.

        A feature relates to every other non-root feature except its
        ancestors and descendants, which the tree already links.
        The relation is symmetric.
        """
        root = self.root_id
        everyone = self.non_root_feature_names()
        relations = {name: [other for other in everyone if other != name] for name in everyone}
        for name in everyone:
            for ancestor in self.data.ancestor_ids(name):
                if ancestor == root:
                    continue
                relations[name].remove(ancestor)
                relations[ancestor].remove(name)
        return relations

    # -------------------------------------------------------------------------
    # Configurations
    # -------------------------------------------------------------------------

    def switch_configuration(self, name: str) -> Configuration:
        return self.configurations.switch_to(name)

    def create_configuration(self, name: str) -> Configuration:
        return self.configurations.create(name, self.data.features)

    def duplicate_current_configuration(self, name: str) -> Configuration:
        return self.configurations.duplicate(name)

    def rename_current_configuration(self, name: str) -> Configuration:
        return self.configurations.rename_current(name)

    def remove_configuration(self, name: str) -> Configuration:
        removed = self.configurations.remove(name)
        if len(self.configurations) == 0:
            fallback = self.settings.fallback_configuration_name
            logger.info("Last configuration removed; creating %r", fallback)
            self.configurations.create(fallback, self.data.features)
            self.configurations.switch_to(fallback)
        return removed

    def remove_current_configuration(self) -> Configuration:
        return self.remove_configuration(self.current_configuration_name)

    def duplicate_configuration_map(self) -> FeatureModelManager:
        """Rebind the configuration map to a deep copy (new identity, same content)."""
        self.data.configurations = {
            name: config.deep_copy() for name, config in self.data.configurations.items()
        }
        self.configurations.rebind(self.data.configurations)
        return self


class FeatureView:
    """
    Read-only projection of one feature in one configuration.

    This is what the display layer consumes.
    """

    def __init__(self, feature_id: str, model: FeatureModel, configuration: Configuration):
        self.model = model
        self.data = model.get_feature(feature_id)
        self.configuration = configuration

    def __repr__(self) -> str:
        return f"FeatureView({self.name!r}, {self.configuration.name!r})"

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def type(self) -> FeatureType:
        return self.data.type

    @property
    def is_abstract(self) -> bool:
        return self.data.abstract

    @property
    def is_mandatory(self) -> bool:
        return self.data.mandatory

    @property
    def is_hidden(self) -> bool:
        return self.data.hidden

    @property
    def is_root(self) -> bool:
        return self.data.is_root

    @property
    def is_leaf(self) -> bool:
        return not self.data.children

    @property
    def parent_id(self) -> str:
        if self.data.parent is None:
            raise StructuralError("the root feature has no parent")
        return self.data.parent

    @property
    def parent(self) -> FeatureView:
        return FeatureView(self.parent_id, self.model, self.configuration)

    @property
    def children_ids(self) -> List[str]:
        return list(self.data.children)

    @property
    def children(self) -> List[FeatureView]:
        return [FeatureView(cid, self.model, self.configuration) for cid in self.data.children]

    def _selection(self) -> FeatureSelection:
        return self.configuration.features.get(self.data.name) or FeatureSelection()

    @property
    def manual_selection(self) -> Ternary:
        return self._selection().manual

    @property
    def automatic_selection(self) -> Ternary:
        return self._selection().automatic

    @property
    def selection_status(self) -> Ternary:
        return resolve_status(self.data, self.configuration.features.get(self.data.name))

    @property
    def is_enabled(self) -> bool:
        return self.selection_status is True

    @property
    def is_disabled(self) -> bool:
        return self.selection_status is False

    @property
    def is_selectable(self) -> bool:
        return is_selectable(self.model, self.data.name)

    @property
    def selection_class(self) -> SelectionClass:
        return selection_class(self.model, self.configuration, self.data.name)

    @property
    def derived_selection(self) -> Ternary:
        return derive_selection(self.data, self.model, self.configuration.features)

    @property
    def ancestor_ids(self) -> List[str]:
        return self.model.ancestor_ids(self.data.name)

    def descendant_ids(self, include_self: bool = False) -> List[str]:
        ids = self.model.descendant_ids(self.data.name)
        return [self.data.name] + ids if include_self else ids

    def descendants(self, include_self: bool = False) -> List[FeatureView]:
        return [FeatureView(fid, self.model, self.configuration) for fid in self.descendant_ids(include_self)]
