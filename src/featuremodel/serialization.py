"""
Snapshot helpers for feature models (FeatureModel, Configuration, LogicExpression).

Provides lossless JSON/YAML round-trip via an intermediate dict representation,
for undo timelines and debugging dumps. The XML wire format lives in
featuremodel.xml_codec; this module intentionally keeps its own structure
stable and explicit.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from featuremodel.errors import FeatureModelError, ParseError, StructuralError
from featuremodel.expressions import LogicExpression, LogicOperator, Op, Var
from featuremodel.model import (
    Configuration,
    Feature,
    FeatureModel,
    FeatureSelection,
    FeatureType,
)


def expr_to_dict(expr: LogicExpression) -> Dict[str, Any]:
    if isinstance(expr, Var):
        return {"type": "var", "name": expr.name}
    if isinstance(expr, Op):
        return {
            "type": "op",
            "operator": expr.operator.value,
            "operands": [expr_to_dict(operand) for operand in expr.operands],
        }
    raise TypeError(f"Unsupported expression type: {type(expr)}")


def expr_from_dict(d: Dict[str, Any]) -> LogicExpression:
    t = d.get("type")
    if t == "var":
        return Var(d["name"])
    if t == "op":
        op = LogicOperator(d["operator"])
        operands = tuple(expr_from_dict(operand) for operand in d.get("operands", []))
        return Op(operator=op, operands=operands)
    raise TypeError(f"Unsupported expression dict type: {t}")


def feature_to_dict(f: Feature) -> Dict[str, Any]:
    return {
        "name": f.name,
        "type": f.type.value,
        "abstract": f.abstract,
        "mandatory": f.mandatory,
        "hidden": f.hidden,
        "parent": f.parent,
        "children": list(f.children),
    }


def feature_from_dict(d: Dict[str, Any]) -> Feature:
    return Feature(
        name=d["name"],
        type=FeatureType(d.get("type", FeatureType.AND.value)),
        abstract=d.get("abstract", False),
        mandatory=d.get("mandatory", False),
        hidden=d.get("hidden", False),
        parent=d.get("parent"),
        children=list(d.get("children", [])),
    )


def configuration_to_dict(c: Configuration) -> Dict[str, Any]:
    return {
        "name": c.name,
        "features": {
            fid: {"manual": sel.manual, "automatic": sel.automatic}
            for fid, sel in c.features.items()
        },
    }


def configuration_from_dict(d: Dict[str, Any]) -> Configuration:
    return Configuration(
        name=d["name"],
        features={
            fid: FeatureSelection(manual=sel.get("manual"), automatic=sel.get("automatic"))
            for fid, sel in d.get("features", {}).items()
        },
    )


def model_to_dict(m: FeatureModel) -> Dict[str, Any]:
    return {
        "root": m.root,
        "features": [feature_to_dict(f) for f in m.features.values()],
        "constraints": [expr_to_dict(expr) for expr in m.constraints],
        "configurations": [configuration_to_dict(c) for c in m.configurations.values()],
    }


def model_from_dict(d: Dict[str, Any]) -> FeatureModel:
    """
    Rebuild a FeatureModel from its dict form.

    Raises:
        ParseError: If the dict is incomplete or does not describe a valid tree
    """
    try:
        m = FeatureModel(root=d["root"])
        m.features = {f.name: f for f in (feature_from_dict(x) for x in d.get("features", []))}
        m.constraints = [expr_from_dict(x) for x in d.get("constraints", [])]
        m.configurations = {c.name: c for c in (configuration_from_dict(x) for x in d.get("configurations", []))}
        m.validate_tree()
    except StructuralError as e:
        raise ParseError(f"invalid feature tree in snapshot: {e}") from e
    except (KeyError, TypeError, ValueError, FeatureModelError) as e:
        raise ParseError(f"invalid snapshot: {e}") from e
    return m


def model_to_json(m: FeatureModel) -> str:
    return json.dumps(model_to_dict(m), sort_keys=True)


def model_from_json(s: str) -> FeatureModel:
    d = json.loads(s)
    return model_from_dict(d)


def model_to_yaml(m: FeatureModel) -> str:
    return yaml.safe_dump(model_to_dict(m), sort_keys=False, allow_unicode=True)


def model_from_yaml(s: str) -> FeatureModel:
    d = yaml.safe_load(s)
    return model_from_dict(d)
