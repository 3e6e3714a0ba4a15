"""
Feature Model Analyzer: early diagnostics and inventory of feature models.

This module provides lightweight analysis of FeatureModel objects:
    - Feature inventory (groups, flags, leaves, depth)
    - Constraint complexity and dangling feature references
    - Mandatory flags that have no effect
    - Configuration completeness

IMPORTANT: This is read-only. It does NOT modify or repair the model,
and it does NOT check whether the constraints are satisfiable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from featuremodel.expressions import (
    expression_depth,
    expression_to_string,
    referenced_features,
)
from featuremodel.model import FeatureModel, FeatureType


@dataclass
class ModelReport:
    """Comprehensive analysis report for a feature model."""

    root: str
    total_features: int = 0
    total_constraints: int = 0
    total_configurations: int = 0

    # Tree shape
    group_counts: Dict[str, int] = field(default_factory=dict)
    leaf_count: int = 0
    max_depth: int = 0
    abstract_features: Set[str] = field(default_factory=set)
    mandatory_features: Set[str] = field(default_factory=set)
    hidden_features: Set[str] = field(default_factory=set)
    ineffective_mandatory: Set[str] = field(default_factory=set)  # children of OR/XOR groups

    # Constraints
    max_expression_depth: int = 0
    constrained_features: Set[str] = field(default_factory=set)
    dangling_references: Dict[int, Set[str]] = field(default_factory=dict)  # rule index -> names

    # Configurations
    missing_entries: Dict[str, Set[str]] = field(default_factory=dict)
    stale_entries: Dict[str, Set[str]] = field(default_factory=dict)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _feature_depths(model: FeatureModel) -> Dict[str, int]:
    depths = {model.root: 0}
    stack = [model.root]
    while stack:
        fid = stack.pop()
        for cid in model.features[fid].children:
            depths[cid] = depths[fid] + 1
            stack.append(cid)
    return depths


def analyze_feature_model(model: FeatureModel, max_expression_depth: Optional[int] = 4) -> ModelReport:
    """
    Perform a read-only analysis of a FeatureModel.

    Checks for:
    - Tree shape and flag usage
    - Constraints naming features that no longer exist
    - Mandatory flags outside AND groups
    - Configurations out of sync with the feature set

    Returns a ModelReport with metrics and warnings.
    """
    report = ModelReport(root=model.root)
    report.total_features = len(model.features)
    report.total_constraints = len(model.constraints)
    report.total_configurations = len(model.configurations)

    # =========================================================================
    # 1. TREE SHAPE
    # =========================================================================

    report.group_counts = {ftype.value: 0 for ftype in FeatureType}
    for feature in model.features.values():
        if feature.children:
            report.group_counts[feature.type.value] += 1
        else:
            report.leaf_count += 1
        if feature.abstract:
            report.abstract_features.add(feature.name)
        if feature.mandatory:
            report.mandatory_features.add(feature.name)
        if feature.hidden:
            report.hidden_features.add(feature.name)
        if feature.mandatory and feature.parent is not None:
            parent = model.features.get(feature.parent)
            if parent is not None and parent.type is not FeatureType.AND:
                report.ineffective_mandatory.add(feature.name)

    if model.root in model.features:
        depths = _feature_depths(model)
        report.max_depth = max(depths.values())

    # =========================================================================
    # 2. CONSTRAINTS
    # =========================================================================

    known = set(model.features)
    for index, expr in enumerate(model.constraints):
        names = referenced_features(expr)
        report.constrained_features.update(names)
        report.max_expression_depth = max(report.max_expression_depth, expression_depth(expr))
        missing = names - known
        if missing:
            report.dangling_references[index] = missing

    # =========================================================================
    # 3. CONFIGURATIONS
    # =========================================================================

    for name, config in model.configurations.items():
        present = set(config.features)
        if known - present:
            report.missing_entries[name] = known - present
        if present - known:
            report.stale_entries[name] = present - known

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    for index, missing in sorted(report.dangling_references.items()):
        rule = expression_to_string(model.constraints[index])
        report.add_warning(
            f"Constraint {index} ({rule}) references unknown features: {', '.join(sorted(missing))}"
        )

    if report.ineffective_mandatory:
        report.add_warning(
            f"Mandatory flag has no effect outside AND groups: {', '.join(sorted(report.ineffective_mandatory))}"
        )

    for name, missing in report.missing_entries.items():
        report.add_warning(
            f"Configuration {name!r} has no entry for: {', '.join(sorted(missing))}"
        )

    for name, stale in report.stale_entries.items():
        report.add_warning(
            f"Configuration {name!r} has entries for unknown features: {', '.join(sorted(stale))}"
        )

    if report.total_configurations == 0:
        report.add_warning("Model has no configurations")

    if max_expression_depth is not None and report.max_expression_depth > max_expression_depth:
        report.add_warning(
            f"High constraint complexity: max depth {report.max_expression_depth}"
        )

    return report
