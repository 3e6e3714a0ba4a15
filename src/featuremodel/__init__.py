"""
Feature Model Engine Package

The domain engine of a feature-oriented product-line editor:
a tree of named features under AND/OR/XOR groups, cross-tree
constraints, and several named selection profiles (configurations)
sharing that one tree.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Diagram rendering or node layout
    - Undo/redo timelines
    - Interactive prompts and dialogs
    - Constraint solving (constraints are stored, never enforced)

The surrounding editor shell consumes FeatureModelManager and
FeatureView, and persists models through the XML codec.
"""

__version__ = "0.1.0"
