"""
Test the bundled example models.

Validates that the example builder and the example document describe
well-formed trees, and walks the selection scenario on each.
"""

from featuremodel.examples import EXAMPLE_XML, build_example_vm_model
from featuremodel.manager import FeatureModelManager


def test_example_vm_model_structure():
    model = build_example_vm_model(configuration_name="Default")
    model.validate_tree()

    assert model.root == "R"
    assert model.features["R"].children == ["M", "X"]
    assert model.features["X"].children == ["C0", "C1"]
    assert list(model.configurations) == ["Default"]
    assert set(model.configurations["Default"].features) == set(model.features)


def test_example_vm_model_is_fresh():
    first = build_example_vm_model()
    second = build_example_vm_model()
    first.features["X"].children.append("C2")
    assert second.features["X"].children == ["C0", "C1"]


def test_example_vm_scenario():
    """select(C0) enables X; deselect(X) disables X, C0 and C1."""
    fmm = FeatureModelManager(build_example_vm_model())

    assert fmm.select("C0") == ["C0", "X", "R"]
    assert fmm.get_feature("X").is_enabled

    assert fmm.deselect("X") == ["X", "C0", "C1"]
    for fid in ("X", "C0", "C1"):
        assert fmm.get_feature(fid).is_disabled
    assert fmm.get_feature("M").is_enabled


def test_example_xml_loads():
    fmm = FeatureModelManager.from_xml(EXAMPLE_XML)
    assert fmm.current_configuration_name == "VM 1"
    assert fmm.number_of_configurations == 2
    assert fmm.get_feature("cpu@1").is_disabled
    assert fmm.get_feature("memory").is_enabled
