"""
Core Feature Model Objects

Defines the data structures of a feature-oriented product line:
    - Features (named tree nodes with a group type and flags)
    - Feature selections (the manual/automatic ternary pair)
    - Configurations (one named selection profile over all features)
    - FeatureModel (root container)

ARCHITECTURAL RULE:
    The tree is an arena keyed by feature name.
    Parent and child links are names, never object references,
    so every structural edit is a key rewrite.

    These objects hold data only. Invariant-preserving edits
    live in featuremodel.manager; propagation in featuremodel.propagation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from featuremodel.errors import FeatureNotFoundError, StructuralError
from featuremodel.expressions import LogicExpression
from featuremodel.settings import DEFAULT_SETTINGS, EditorSettings

# True, False or None (unset)
Ternary = Optional[bool]


class FeatureType(Enum):
    """
    Group type of a feature: how its children may be jointly selected.

        AND: each child is independently optional or mandatory
        OR:  at least one child
        XOR: exactly one child
    """

    AND = "and"
    OR = "or"
    XOR = "xor"


@dataclass
class Feature:
    """
    A named node of the feature tree.

    Properties:
        name:
            Globally unique identifier (e.g. "memory", "cpu@0")

        type:
            Group type governing the children

        abstract:
            Structural-only feature with no implementation behind it

        mandatory:
            Must be selected whenever the parent is.
            Only meaningful for children of an AND group.

        hidden:
            Hidden from end-user configuration views

        parent:
            Name of the parent feature; None only for the root

        children:
            Ordered names of the child features
    """

    name: str
    type: FeatureType = FeatureType.AND
    abstract: bool = False
    mandatory: bool = False
    hidden: bool = False
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def copy(self) -> "Feature":
        return Feature(
            name=self.name,
            type=self.type,
            abstract=self.abstract,
            mandatory=self.mandatory,
            hidden=self.hidden,
            parent=self.parent,
            children=list(self.children),
        )


@dataclass
class FeatureSelection:
    """
    Ternary selection state of one feature in one configuration.

    Properties:
        manual: explicit user choice
        automatic: value derived by propagation from neighbours
    """

    manual: Ternary = None
    automatic: Ternary = None

    def copy(self) -> "FeatureSelection":
        return FeatureSelection(manual=self.manual, automatic=self.automatic)


@dataclass
class Configuration:
    """
    One named, independently editable selection profile.

    Properties:
        name: Configuration identifier (e.g. "VM 1")
        features: Feature name -> FeatureSelection
    """

    name: str
    features: Dict[str, FeatureSelection] = field(default_factory=dict)

    def deep_copy(self, name: Optional[str] = None) -> "Configuration":
        return Configuration(
            name=self.name if name is None else name,
            features={fid: sel.copy() for fid, sel in self.features.items()},
        )


def blank_configuration(name: str, feature_ids: List[str]) -> Configuration:
    return Configuration(name=name, features={fid: FeatureSelection() for fid in feature_ids})


@dataclass
class FeatureModel:
    """
    Root container for a product line: tree, constraints and configurations.

    Properties:
        root:
            Name of the root feature

        features:
            Feature name -> Feature (the arena)

        constraints:
            Ordered cross-tree constraints

        configurations:
            Configuration name -> Configuration, in creation order

    INVARIANTS:
        - features form exactly one tree rooted at `root`
        - the root is mandatory
        - every configuration has an entry for every feature
          (repaired lazily by the manager)
        - constraints may name features that no longer exist
    """

    root: str
    features: Dict[str, Feature] = field(default_factory=dict)
    constraints: List[LogicExpression] = field(default_factory=list)
    configurations: Dict[str, Configuration] = field(default_factory=dict)

    def has_feature(self, feature_id: str) -> bool:
        return feature_id in self.features

    def get_feature(self, feature_id: str) -> Feature:
        """
        Retrieve a feature by name.

        Raises:
            FeatureNotFoundError: If no feature has this name
        """
        feature = self.features.get(feature_id)
        if feature is None:
            raise FeatureNotFoundError(f"unknown feature ID: {feature_id}")
        return feature

    def ancestor_ids(self, feature_id: str) -> List[str]:
        """Names of all ancestors, nearest first, ending with the root."""
        ids = []
        parent = self.get_feature(feature_id).parent
        while parent is not None:
            ids.append(parent)
            parent = self.get_feature(parent).parent
        return ids

    def descendant_ids(self, feature_id: str) -> List[str]:
        """Names of all descendants in pre-order (the feature itself excluded)."""
        ids = []
        stack = list(reversed(self.get_feature(feature_id).children))
        while stack:
            fid = stack.pop()
            ids.append(fid)
            stack.extend(reversed(self.get_feature(fid).children))
        return ids

    def walk(self) -> Iterator[Feature]:
        """Yield every feature in pre-order starting at the root."""
        yield self.get_feature(self.root)
        for fid in self.descendant_ids(self.root):
            yield self.features[fid]

    def validate_tree(self) -> None:
        """
        Check the structural invariants of the arena.

        Raises:
            StructuralError: On a missing root, dangling child, parent
                mismatch, cycle, or feature unreachable from the root
        """
        root = self.features.get(self.root)
        if root is None:
            raise StructuralError(f"root feature is missing: {self.root}")
        if root.parent is not None:
            raise StructuralError(f"root feature has a parent: {root.parent}")
        seen = {self.root}
        stack = [root]
        while stack:
            feature = stack.pop()
            for cid in feature.children:
                child = self.features.get(cid)
                if child is None:
                    raise StructuralError(f"inconsistent model; missing child: {feature.name} -> {cid}")
                if child.parent != feature.name:
                    raise StructuralError(f"inconsistent model; wrong parent: {cid} -> {child.parent}")
                if cid in seen:
                    raise StructuralError(f"inconsistent model; feature reached twice: {cid}")
                seen.add(cid)
                stack.append(child)
        orphans = set(self.features) - seen
        if orphans:
            raise StructuralError(f"features not reachable from the root: {', '.join(sorted(orphans))}")
        for name, feature in self.features.items():
            if feature.name != name:
                raise StructuralError(f"feature key does not match its name: {name} -> {feature.name}")

    def deep_copy(self) -> "FeatureModel":
        """Independent snapshot of the whole aggregate."""
        return FeatureModel(
            root=self.root,
            features={fid: f.copy() for fid, f in self.features.items()},
            # expressions are immutable, sharing them is safe
            constraints=list(self.constraints),
            configurations={name: c.deep_copy() for name, c in self.configurations.items()},
        )


def blank_feature_model(settings: EditorSettings = DEFAULT_SETTINGS) -> FeatureModel:
    """
    Template model: a single abstract, mandatory AND root and one configuration.
    """
    root = settings.root_name
    config = settings.default_configuration_name
    return FeatureModel(
        root=root,
        features={
            root: Feature(
                name=root,
                type=FeatureType.AND,
                abstract=True,
                mandatory=True,
            )
        },
        constraints=[],
        configurations={config: blank_configuration(config, [root])},
    )
