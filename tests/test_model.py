"""
Tests for Core Feature Model Objects

These tests verify:
    - Basic object creation and defaults
    - The blank template
    - Tree navigation helpers
    - Structural validation
    - Deep copies are independent
"""

import pytest
from featuremodel.errors import FeatureNotFoundError, StructuralError
from featuremodel.examples import build_example_vm_model
from featuremodel.model import (
    Configuration,
    Feature,
    FeatureModel,
    FeatureSelection,
    FeatureType,
    blank_configuration,
    blank_feature_model,
)
from featuremodel.settings import EditorSettings


class TestFeature:
    """Test Feature objects."""

    def test_defaults(self):
        """A new feature is an optional, concrete, visible AND leaf."""
        feature = Feature(name="memory", parent="root")
        assert feature.type == FeatureType.AND
        assert not feature.abstract
        assert not feature.mandatory
        assert not feature.hidden
        assert feature.children == []
        assert not feature.is_root

    def test_copy_is_independent(self):
        """Copies do not share the child list."""
        feature = Feature(name="a", children=["b"])
        clone = feature.copy()
        clone.children.append("c")
        assert feature.children == ["b"]
        assert clone == Feature(name="a", children=["b", "c"])


class TestConfiguration:
    """Test Configuration and FeatureSelection objects."""

    def test_blank_selection(self):
        selection = FeatureSelection()
        assert selection.manual is None
        assert selection.automatic is None

    def test_blank_configuration(self):
        """Every listed feature gets a blank ternary pair."""
        config = blank_configuration("c", ["a", "b"])
        assert set(config.features) == {"a", "b"}
        assert config.features["a"] == FeatureSelection()
        assert config.features["a"] is not config.features["b"]

    def test_deep_copy_with_new_name(self):
        config = Configuration(name="c", features={"a": FeatureSelection(manual=True)})
        clone = config.deep_copy(name="d")
        clone.features["a"].manual = False
        assert clone.name == "d"
        assert config.features["a"].manual is True


class TestBlankModel:
    """Test the blank template."""

    def test_single_mandatory_root(self):
        model = blank_feature_model()
        root = model.get_feature(model.root)
        assert model.root == "Root"
        assert root.type == FeatureType.AND
        assert root.mandatory
        assert root.abstract
        assert root.is_root
        assert model.constraints == []

    def test_one_default_configuration(self):
        model = blank_feature_model()
        assert list(model.configurations) == ["Configuration1"]
        assert model.configurations["Configuration1"].features == {"Root": FeatureSelection()}

    def test_settings_names(self):
        settings = EditorSettings(root_name="Product", default_configuration_name="Default")
        model = blank_feature_model(settings)
        assert model.root == "Product"
        assert list(model.configurations) == ["Default"]


class TestNavigation:
    """Test lookups and tree walks."""

    def test_get_feature_unknown(self):
        model = build_example_vm_model()
        with pytest.raises(FeatureNotFoundError):
            model.get_feature("nope")
        with pytest.raises(LookupError):
            model.get_feature("nope")

    def test_ancestors_nearest_first(self):
        model = build_example_vm_model()
        assert model.ancestor_ids("C0") == ["X", "R"]
        assert model.ancestor_ids("R") == []

    def test_descendants_pre_order(self):
        model = build_example_vm_model()
        assert model.descendant_ids("R") == ["M", "X", "C0", "C1"]
        assert model.descendant_ids("C1") == []

    def test_walk(self):
        model = build_example_vm_model()
        assert [f.name for f in model.walk()] == ["R", "M", "X", "C0", "C1"]


class TestValidateTree:
    """Test structural invariant checks."""

    def test_valid_model(self):
        build_example_vm_model().validate_tree()
        blank_feature_model().validate_tree()

    def test_missing_child(self):
        model = build_example_vm_model()
        model.features["X"].children.append("ghost")
        with pytest.raises(StructuralError):
            model.validate_tree()

    def test_wrong_parent(self):
        model = build_example_vm_model()
        model.features["C0"].parent = "R"
        with pytest.raises(StructuralError):
            model.validate_tree()

    def test_orphan(self):
        model = build_example_vm_model()
        model.features["lost"] = Feature(name="lost", parent="R")
        with pytest.raises(StructuralError):
            model.validate_tree()

    def test_missing_root(self):
        model = FeatureModel(root="R")
        with pytest.raises(StructuralError):
            model.validate_tree()


class TestDeepCopy:
    """Snapshots must be fully independent."""

    def test_deep_copy_equal_but_independent(self):
        model = build_example_vm_model()
        snapshot = model.deep_copy()
        assert snapshot == model

        model.features["X"].children.append("C2")
        model.configurations["VM 1"].features["C0"].manual = True
        model.constraints.clear()

        assert snapshot.features["X"].children == ["C0", "C1"]
        assert snapshot.configurations["VM 1"].features["C0"].manual is None
        assert len(snapshot.constraints) == 1
