"""Generation settings passed explicitly to the builder and the emitters.

Presets mirror the two OpenAPI versions the generator ships for:
  v2: openapi-2.0.json -> OpenAPIv2.proto, openapi_v2.py (package openapi.v2)
  v3: openapi-3.0.json -> OpenAPIv3.proto, openapi_v3.py (package openapi.v3)
"""

from __future__ import annotations

from dataclasses import dataclass

# Base JSON Schema used to resolve http://json-schema.org/draft-04/schema refs
BASE_SCHEMA = "schema.json"

_VERSIONS: dict[str, dict[str, str]] = {
    "v2": {
        "input": "openapi-2.0.json",
        "filename": "OpenAPIv2",
        "package_name": "openapi.v2",
        "extension_name": "vendorExtension",
    },
    "v3": {
        "input": "openapi-3.0.json",
        "filename": "OpenAPIv3",
        "package_name": "openapi.v3",
        "extension_name": "specificationExtension",
    },
}


@dataclass(frozen=True)
class ProtoOption:
    """A file-level option of the generated .proto file."""

    name: str
    value: str
    comment: str = ""


@dataclass(frozen=True)
class GeneratorConfig:
    package_name: str
    filename: str
    pattern_names: tuple[tuple[str, str], ...]
    options: tuple[ProtoOption, ...] = ()
    license: str = ""

    @property
    def module_name(self) -> str:
        """Name of the generated Python module (openapi.v2 -> openapi_v2)."""
        return self.package_name.replace(".", "_")


def pattern_names(extension_name: str) -> tuple[tuple[str, str], ...]:
    """Return the classifier table, most specific pattern first."""
    return (
        ("^x-", extension_name),
        ("^/", "path"),
        ("^([0-9]{3})$|^(default)$", "responseCode"),
    )


def proto_options(package_name: str) -> tuple[ProtoOption, ...]:
    return (
        ProtoOption(
            name="java_multiple_files",
            value="true",
            comment=(
                "Generate Java classes directly inside the package instead of\n"
                "inside an outer class."
            ),
        ),
        ProtoOption(
            name="java_outer_classname",
            value="OpenAPIProto",
            comment=(
                "The outer classname only holds the proto descriptor; it is the\n"
                "file name in UpperCamelCase."
            ),
        ),
        ProtoOption(
            name="java_package",
            value="org." + package_name,
            comment="The Java package is the proto package with a prefix.",
        ),
        ProtoOption(
            name="objc_class_prefix",
            value="OAS",
            comment=(
                "Prefix for generated Objective-C symbols: at least three\n"
                "uppercase characters abbreviating the package name."
            ),
        ),
    )


def version_input(version: str) -> str:
    """Return the default schema file for a version preset."""
    return _VERSIONS[version]["input"]


def config_for_version(version: str, license: str = "") -> GeneratorConfig:
    """Return the GeneratorConfig preset for "v2" or "v3"."""
    try:
        preset = _VERSIONS[version]
    except KeyError:
        raise ValueError(f"unknown version {version!r}") from None
    return GeneratorConfig(
        package_name=preset["package_name"],
        filename=preset["filename"],
        pattern_names=pattern_names(preset["extension_name"]),
        options=proto_options(preset["package_name"]),
        license=license,
    )
