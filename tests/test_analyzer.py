"""
Tests for the Feature Model Analyzer.

Tests verify that the analyzer correctly:
    - Inventories groups, leaves and flags
    - Detects constraints naming unknown features
    - Detects mandatory flags that have no effect
    - Reports configurations out of sync with the feature set
    - Measures constraint complexity
"""

from featuremodel.analyzer import analyze_feature_model
from featuremodel.examples import EXAMPLE_XML, build_example_vm_model
from featuremodel.expressions import logic_and, logic_implies, logic_not, logic_or
from featuremodel.manager import FeatureModelManager
from featuremodel.model import FeatureSelection, blank_feature_model
from featuremodel.xml_codec import parse_feature_model


def test_example_model_inventory():
    """Analyze R -> {M, X -> {C0, C1}}."""
    report = analyze_feature_model(build_example_vm_model())

    assert report.root == "R"
    assert report.total_features == 5
    assert report.total_constraints == 1
    assert report.total_configurations == 1
    assert report.group_counts == {"and": 1, "or": 0, "xor": 1}
    assert report.leaf_count == 3
    assert report.max_depth == 2
    assert report.abstract_features == {"R"}
    assert report.mandatory_features == {"R", "M"}
    assert report.hidden_features == set()
    assert report.constrained_features == {"X", "M"}
    assert report.max_expression_depth == 1
    assert not report.warnings


def test_parsed_model_is_clean():
    report = analyze_feature_model(parse_feature_model(EXAMPLE_XML))
    assert report.total_configurations == 2
    assert not report.missing_entries
    assert not report.stale_entries
    assert not report.warnings


def test_blank_model():
    report = analyze_feature_model(blank_feature_model())
    assert report.total_features == 1
    assert report.leaf_count == 1
    assert report.max_depth == 0
    assert not report.warnings


def test_dangling_references_after_rename():
    """Renaming a feature leaves the constraint pointing at the old name."""
    fmm = FeatureModelManager(build_example_vm_model())
    fmm.rename("M", "Memory")
    report = analyze_feature_model(fmm.data)

    assert report.dangling_references == {0: {"M"}}
    assert any("unknown features: M" in w for w in report.warnings)


def test_dangling_references_after_remove():
    fmm = FeatureModelManager(build_example_vm_model())
    fmm.add_constraint(logic_and("C0", logic_not("C1")))
    fmm.remove("X")
    report = analyze_feature_model(fmm.data)

    assert report.dangling_references == {0: {"X"}, 1: {"C0", "C1"}}


def test_ineffective_mandatory():
    """Mandatory children of OR/XOR groups are reported."""
    model = build_example_vm_model()
    model.features["C0"].mandatory = True
    report = analyze_feature_model(model)

    assert report.ineffective_mandatory == {"C0"}
    assert any("no effect" in w for w in report.warnings)


def test_configuration_sync():
    model = build_example_vm_model()
    config = model.configurations["VM 1"]
    del config.features["C1"]
    config.features["ghost"] = FeatureSelection(manual=True)
    report = analyze_feature_model(model)

    assert report.missing_entries == {"VM 1": {"C1"}}
    assert report.stale_entries == {"VM 1": {"ghost"}}
    assert len(report.warnings) == 2


def test_no_configurations():
    model = build_example_vm_model()
    model.configurations.clear()
    report = analyze_feature_model(model)
    assert "Model has no configurations" in report.warnings


def test_high_complexity():
    """Deeply nested constraints trigger a warning above the threshold."""
    model = build_example_vm_model()
    model.constraints.append(
        logic_implies("C0", logic_or("C1", logic_and("M", logic_not(logic_not("X")))))
    )
    report = analyze_feature_model(model, max_expression_depth=4)
    assert report.max_expression_depth == 5
    assert any("High constraint complexity" in w for w in report.warnings)

    relaxed = analyze_feature_model(model, max_expression_depth=None)
    assert not relaxed.warnings
