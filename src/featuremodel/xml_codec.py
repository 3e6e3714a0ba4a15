"""
XML codec for feature models.

Wire format (one document):

    <featureModel>
      <struct>
        <and abstract="true" mandatory="true" name="Root">
          <feature name="memory" />
          <alt name="cpus">
            <feature name="cpu@0" />
            <feature name="cpu@1" />
          </alt>
        </and>
      </struct>
      <constraints>
        <rule><imp><var>cpus</var><var>memory</var></imp></rule>
      </constraints>
      <vm_config>
        <configuration name="VM 1">
          <feature name="memory" manual="selected" automatic="undefined" />
        </configuration>
      </vm_config>
    </featureModel>

Group tags map and -> AND, or -> OR, alt -> XOR. Leaves are <feature>.
Boolean attributes are true only for the literal string "true", and are
written only when true. Childless features are written as leaves, so a
leaf's declared group type is not preserved. The root is always written
as a group tag.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Union

from featuremodel.errors import ExpressionArityError, ParseError
from featuremodel.expressions import LogicExpression, LogicOperator, Op, Var
from featuremodel.model import (
    Configuration,
    Feature,
    FeatureModel,
    FeatureSelection,
    FeatureType,
    Ternary,
)

logger = logging.getLogger(__name__)

XML_DECLARATION = "<?xml version='1.0' encoding='utf8'?>"

DOCUMENT_TAG = "featureModel"
LEAF_TAG = "feature"
VAR_TAG = "var"

GROUP_TAGS: Dict[str, FeatureType] = {
    "and": FeatureType.AND,
    "or": FeatureType.OR,
    "alt": FeatureType.XOR,
}
GROUP_TAG_FOR_TYPE: Dict[FeatureType, str] = {ftype: tag for tag, ftype in GROUP_TAGS.items()}

OPERATOR_TAGS: Dict[str, LogicOperator] = {op.value: op for op in LogicOperator}

MANUAL_VALUES: Dict[str, Ternary] = {"selected": True, "unselected": False, "undefined": None}
AUTOMATIC_VALUES: Dict[str, Ternary] = {"activated": True, "deactivated": False, "undefined": None}

_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")
_ENCODING_RE = re.compile(rb"^\s*<\?xml[^>]*encoding=[\"']([A-Za-z0-9._-]+)[\"']")


# =============================================================================
# Parser
# =============================================================================

def parse_feature_model(text: Union[str, bytes]) -> FeatureModel:
    """
    Parse an XML document into a FeatureModel.

    The result may have no configurations, or configurations with
    missing entries; FeatureModelManager repairs both on load.

    Raises:
        ParseError: On malformed XML or any structural rule violation
    """
    if isinstance(text, bytes):
        text = _decode(text)
    # the declaration names an encoding that does not apply to a str
    text = _DECLARATION_RE.sub("", text, count=1)
    try:
        document = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"malformed XML input: {e}") from e

    if document.tag != DOCUMENT_TAG:
        raise ParseError(f"there is no <{DOCUMENT_TAG}> in the XML input")
    struct = _single_section(document, "struct", required=True)
    constraints = _single_section(document, "constraints", required=True)
    vm_config = _single_section(document, "vm_config", required=False)

    features: Dict[str, Feature] = {}
    root = _parse_root(struct, features)
    model = FeatureModel(
        root=root.name,
        features=features,
        constraints=_parse_constraints(constraints),
        configurations=_parse_vm_configurations(vm_config),
    )
    logger.debug(
        "Parsed feature model: %d features, %d constraints, %d configurations",
        len(model.features),
        len(model.constraints),
        len(model.configurations),
    )
    return model


def load_feature_model(path: Union[str, Path]) -> FeatureModel:
    """
    Parse an XML file into a FeatureModel.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If parsing fails
    """
    with open(path, "rb") as f:
        content = f.read()
    return parse_feature_model(content)


def _decode(data: bytes) -> str:
    """Decode raw input using the encoding named in its declaration, UTF-8 otherwise."""
    match = _ENCODING_RE.match(data)
    # utf-8-sig also drops a leading byte order mark
    encoding = match.group(1).decode("ascii") if match else "utf-8-sig"
    try:
        return data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as e:
        raise ParseError(f"cannot decode XML input as {encoding}: {e}") from e


def _single_section(document: ET.Element, tag: str, required: bool) -> Optional[ET.Element]:
    sections = document.findall(tag)
    if len(sections) > 1:
        raise ParseError(f"there are multiple <{tag}> in the XML input")
    if not sections:
        if required:
            raise ParseError(f"there is no <{tag}> in the XML input")
        return None
    return sections[0]


def _parse_root(struct: ET.Element, features: Dict[str, Feature]) -> Feature:
    groups = [child for child in struct if child.tag in GROUP_TAGS]
    if not groups:
        raise ParseError("there is no top-level abstract feature in the XML input")
    if len(groups) > 1:
        raise ParseError("there are multiple top-level abstract features in the XML input")
    root = _parse_feature(groups[0], GROUP_TAGS[groups[0].tag], None, features)
    # the root is always mandatory, whatever the document says
    root.mandatory = True
    return root


def _parse_feature(
    element: ET.Element,
    ftype: FeatureType,
    parent: Optional[Feature],
    features: Dict[str, Feature],
) -> Feature:
    name = element.get("name")
    if not name:
        raise ParseError(f"<{element.tag}> without a name in the XML input")
    if name in features:
        raise ParseError(f"duplicate feature ID while parsing: {name}")
    feature = Feature(
        name=name,
        type=ftype,
        abstract=element.get("abstract") == "true",
        mandatory=element.get("mandatory") == "true",
        hidden=element.get("hidden") == "true",
        parent=None if parent is None else parent.name,
    )
    features[name] = feature
    for child in element:
        if child.tag in GROUP_TAGS:
            child_type = GROUP_TAGS[child.tag]
        elif child.tag == LEAF_TAG:
            child_type = FeatureType.AND
        else:
            logger.debug("Skipping <%s> inside feature %r", child.tag, name)
            continue
        feature.children.append(_parse_feature(child, child_type, feature, features).name)
    return feature


def _parse_constraints(section: ET.Element) -> List[LogicExpression]:
    constraints = []
    for child in section:
        if child.tag != "rule":
            logger.debug("Skipping <%s> inside <constraints>", child.tag)
            continue
        operands = _parse_operands(child)
        if len(operands) != 1:
            raise ParseError(f"<rule> must have exactly one operand, got {len(operands)}")
        constraints.append(operands[0])
    return constraints


def _parse_operands(element: ET.Element) -> List[LogicExpression]:
    expressions: List[LogicExpression] = []
    for child in element:
        if child.tag == VAR_TAG:
            name = (child.text or "").strip()
            if not name:
                raise ParseError("<var> without a feature name")
            expressions.append(Var(name))
        elif child.tag in OPERATOR_TAGS:
            operator = OPERATOR_TAGS[child.tag]
            operands = _parse_operands(child)
            try:
                expressions.append(Op(operator, tuple(operands)))
            except ExpressionArityError as e:
                raise ParseError(str(e)) from e
        else:
            logger.debug("Skipping <%s> inside <%s>", child.tag, element.tag)
    return expressions


def _parse_vm_configurations(section: Optional[ET.Element]) -> Dict[str, Configuration]:
    configurations: Dict[str, Configuration] = {}
    if section is None:
        return configurations
    for child in section:
        if child.tag != "configuration":
            continue
        name = child.get("name")
        if not name:
            raise ParseError("<configuration> without a name in the XML input")
        if name in configurations:
            raise ParseError(f"duplicate configuration name while parsing: {name}")
        configurations[name] = _parse_vm_configuration(child, name)
    return configurations


def _parse_vm_configuration(element: ET.Element, name: str) -> Configuration:
    config = Configuration(name=name)
    for entry in element:
        if entry.tag != LEAF_TAG:
            continue
        fid = entry.get("name")
        if not fid:
            raise ParseError(f"feature entry without a name in configuration {name!r}")
        config.features[fid] = FeatureSelection(
            manual=MANUAL_VALUES.get(entry.get("manual", ""), None),
            automatic=AUTOMATIC_VALUES.get(entry.get("automatic", ""), None),
        )
    return config


# =============================================================================
# Encoder
# =============================================================================

def _ternary_to_status(value: Ternary, values: Dict[str, Ternary]) -> str:
    for status, ternary in values.items():
        if ternary is value:
            return status
    raise ValueError(f"not a ternary value: {value!r}")


def _feature_to_element(model: FeatureModel, feature_id: str) -> ET.Element:
    feature = model.get_feature(feature_id)
    if feature.children or feature.is_root:
        tag = GROUP_TAG_FOR_TYPE[feature.type]
    else:
        tag = LEAF_TAG
    attrib = {}
    if feature.abstract:
        attrib["abstract"] = "true"
    if feature.mandatory:
        attrib["mandatory"] = "true"
    if feature.hidden:
        attrib["hidden"] = "true"
    attrib["name"] = feature.name
    element = ET.Element(tag, attrib)
    for cid in feature.children:
        element.append(_feature_to_element(model, cid))
    return element


def _expression_to_element(expr: LogicExpression) -> ET.Element:
    if isinstance(expr, Var):
        element = ET.Element(VAR_TAG)
        element.text = expr.name
        return element
    if isinstance(expr, Op):
        element = ET.Element(expr.operator.value)
        for operand in expr.operands:
            element.append(_expression_to_element(operand))
        return element
    raise TypeError(f"Unsupported expression type: {type(expr)}")


def serialize_feature_model(model: FeatureModel, indent: str = "  ") -> str:
    """Encode a FeatureModel as an XML document string."""
    document = ET.Element(DOCUMENT_TAG)
    struct = ET.SubElement(document, "struct")
    struct.append(_feature_to_element(model, model.root))

    constraints = ET.SubElement(document, "constraints")
    for expr in model.constraints:
        rule = ET.SubElement(constraints, "rule")
        rule.append(_expression_to_element(expr))

    vm_config = ET.SubElement(document, "vm_config")
    for config in model.configurations.values():
        element = ET.SubElement(vm_config, "configuration", {"name": config.name})
        for fid, selection in config.features.items():
            ET.SubElement(element, LEAF_TAG, {
                "name": fid,
                "manual": _ternary_to_status(selection.manual, MANUAL_VALUES),
                "automatic": _ternary_to_status(selection.automatic, AUTOMATIC_VALUES),
            })

    ET.indent(document, space=indent)
    return f"{XML_DECLARATION}\n{ET.tostring(document, encoding='unicode')}\n"


def save_feature_model(model: FeatureModel, filename: Union[str, Path], indent: str = "  ") -> None:
    """
    Serialize and save to file.

    Args:
        model: FeatureModel to write
        filename: Output file path (.xml extension recommended)
        indent: Indentation unit
    """
    with open(filename, "w", encoding="utf-8") as f:
        f.write(serialize_feature_model(model, indent=indent))


__all__ = [
    "parse_feature_model",
    "load_feature_model",
    "serialize_feature_model",
    "save_feature_model",
]
