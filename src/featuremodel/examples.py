"""
Example feature models for demos and tests.

build_example_vm_model():
    R (AND, abstract, mandatory)
    ├── M (mandatory)
    └── X (XOR)
        ├── C0
        └── C1

    constraint: X implies M
    one configuration, nothing selected yet

EXAMPLE_XML is a device-tree flavoured model with two configurations,
in the wire format read by featuremodel.xml_codec.
"""

from featuremodel.expressions import logic_implies
from featuremodel.model import Feature, FeatureModel, FeatureType, blank_configuration


def build_example_vm_model(configuration_name: str = "VM 1") -> FeatureModel:
    features = {
        "R": Feature(name="R", type=FeatureType.AND, abstract=True, mandatory=True, children=["M", "X"]),
        "M": Feature(name="M", mandatory=True, parent="R"),
        "X": Feature(name="X", type=FeatureType.XOR, parent="R", children=["C0", "C1"]),
        "C0": Feature(name="C0", parent="X"),
        "C1": Feature(name="C1", parent="X"),
    }
    return FeatureModel(
        root="R",
        features=features,
        constraints=[logic_implies("X", "M")],
        configurations={
            configuration_name: blank_configuration(configuration_name, list(features)),
        },
    )


EXAMPLE_XML = """\
<?xml version='1.0' encoding='utf8'?>
<featureModel>
\t<struct>
\t\t<and abstract="true" mandatory="true" name="/dts-v1/">
\t\t\t<feature name="memory" />
\t\t\t<alt name="cpus">
\t\t\t\t<feature name="cpu@0" />
\t\t\t\t<feature name="cpu@1" />
\t\t\t</alt>
\t\t</and>
\t</struct>
\t<constraints>
\t\t<rule>
\t\t\t<imp>
\t\t\t\t<var>cpus</var>
\t\t\t\t<var>memory</var>
\t\t\t</imp>
\t\t</rule>
\t</constraints>
\t<vm_config>
\t\t<configuration name="VM 1">
\t\t\t<feature name="/dts-v1/" manual="undefined" automatic="activated" />
\t\t\t<feature name="memory" manual="selected" automatic="undefined" />
\t\t\t<feature name="cpus" manual="selected" automatic="undefined" />
\t\t\t<feature name="cpu@0" manual="selected" automatic="undefined" />
\t\t\t<feature name="cpu@1" manual="unselected" automatic="undefined" />
\t\t</configuration>
\t\t<configuration name="VM 2">
\t\t\t<feature name="/dts-v1/" manual="undefined" automatic="activated" />
\t\t\t<feature name="memory" manual="selected" automatic="undefined" />
\t\t\t<feature name="cpus" manual="selected" automatic="undefined" />
\t\t\t<feature name="cpu@0" manual="unselected" automatic="undefined" />
\t\t\t<feature name="cpu@1" manual="selected" automatic="undefined" />
\t\t</configuration>
\t</vm_config>
</featureModel>
"""
