#!/usr/bin/env python3
"""
Feature Model Demo: XML → Manager → Edits → Analysis → XML

Shows the full workflow:
1. Load the example device-tree model
2. Select and deselect features, watching propagation
3. Edit the tree and the constraints
4. Analyze the result
5. Serialize back to XML
"""

from featuremodel.analyzer import analyze_feature_model
from featuremodel.examples import EXAMPLE_XML
from featuremodel.expressions import ConstraintPattern, expression_to_string, pattern_to_expression
from featuremodel.manager import FeatureModelManager
from featuremodel.settings import DEFAULT_SETTINGS, configure_logging


def show_tree(fmm: FeatureModelManager) -> None:
    for view in fmm.all_features():
        depth = len(view.ancestor_ids)
        status = {True: "on", False: "off", None: "-"}[view.selection_status]
        label = view.selection_class.value or "fixed"
        print(f"   {'  ' * depth}{view.name} [{view.type.value}] {status} ({label})")


def main():
    configure_logging(DEFAULT_SETTINGS)

    print("=" * 80)
    print("FEATURE MODEL DEMO: XML → Manager → Edits → Analysis → XML")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load
    # =========================================================================
    print("\n1. LOADING XML...")
    fmm = FeatureModelManager.from_xml(EXAMPLE_XML)
    print(f"   ✓ Root: {fmm.root_id}")
    print(f"   ✓ Features: {len(fmm.all_features())}")
    print(f"   ✓ Constraints: {len(fmm.constraints)}")
    print(f"   ✓ Configurations: {fmm.number_of_configurations} (current: {fmm.current_configuration_name})")
    show_tree(fmm)

    # =========================================================================
    # STEP 2: Selection
    # =========================================================================
    print("\n2. SELECTING IN 'VM 2'...")
    fmm.switch_configuration("VM 2")
    print(f"   ✓ deselect(cpus) changed: {fmm.deselect('cpus')}")
    print(f"   ✓ select(cpu@1) changed: {fmm.select('cpu@1')}")
    show_tree(fmm)

    # =========================================================================
    # STEP 3: Edits
    # =========================================================================
    print("\n3. EDITING...")
    fmm.create("storage", fmm.root_id)
    fmm.create("nvme", "storage")
    fmm.rename("memory", "ram")
    fmm.add_constraint(pattern_to_expression(ConstraintPattern.IF_X_THEN_Y, ["nvme", "ram"]))
    fmm.duplicate_current_configuration("VM 3")
    for index, expr in enumerate(fmm.constraints):
        print(f"   ✓ Constraint {index}: {expression_to_string(expr)}")
    print(f"   ✓ Cross-tree partners of nvme: {fmm.cross_tree_relations()['nvme']}")

    # =========================================================================
    # STEP 4: Analysis
    # =========================================================================
    print("\n4. ANALYZING...")
    report = analyze_feature_model(fmm.data)
    print(f"   ✓ Groups: {report.group_counts}")
    print(f"   ✓ Leaves: {report.leaf_count}, max depth: {report.max_depth}")
    print(f"   ✓ Dangling references: {report.dangling_references}")
    if report.warnings:
        print(f"\n   Warnings ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"      - {warning}")

    # =========================================================================
    # STEP 5: Output
    # =========================================================================
    print("\n5. SERIALIZED XML:")
    print("-" * 80)
    lines = fmm.to_xml().splitlines()
    for line in lines[:20]:
        print(f"   {line}")
    if len(lines) > 20:
        print(f"   ... ({len(lines) - 20} more lines)")

    print("\n" + "=" * 80)
    print("DEMO COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
