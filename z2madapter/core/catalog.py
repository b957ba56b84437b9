"""Static device catalog loaded from YAML definitions keyed by model id."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from z2madapter.core.errors import CatalogLoadError, CatalogValidationError, UnknownTransformError
from z2madapter.core.model import (
    ActionDescriptor,
    DeviceDescription,
    EventDescriptor,
    PropertyDescriptor,
)
from z2madapter.core.transforms import get_transform

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys.

    Only true/false resolve to booleans, so bus values such as ON/OFF stay strings.
    """


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]

UniqueKeyLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise CatalogValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedCatalog:
    descriptions: dict[str, DeviceDescription]
    warnings: tuple[str, ...]

    def lookup(self, model_id: str | None) -> DeviceDescription | None:
        if model_id is None:
            return None
        return self.descriptions.get(model_id)


def _load_schema_validator() -> Any:
    schema_text = resources.files("z2madapter.schemas").joinpath("device.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _catalog_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "z2madapter/devices", xdg_data / "z2madapter/devices"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogLoadError(f"Could not read catalog file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise CatalogValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise CatalogValidationError(f"Catalog file {path} must contain a mapping at root")
    return loaded


def _build_property(name: str, spec: dict[str, Any], *, context: str) -> PropertyDescriptor:
    minimum = spec.get("minimum")
    maximum = spec.get("maximum")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise CatalogValidationError(f"{context}.{name} has minimum greater than maximum")

    transform_name = spec.get("transform")
    to_bus = from_bus = None
    if transform_name is not None:
        try:
            transform = get_transform(transform_name)
        except UnknownTransformError as exc:
            raise CatalogValidationError(f"{context}.{name}: {exc}") from exc
        to_bus, from_bus = transform.to_bus, transform.from_bus

    return PropertyDescriptor(
        type=spec["type"],
        title=spec.get("title"),
        semantic_type=spec.get("@type"),
        unit=spec.get("unit"),
        minimum=minimum,
        maximum=maximum,
        enum=tuple(spec.get("enum", ())),
        read_only=spec.get("readOnly", False),
        value=spec.get("value"),
        transform=transform_name,
        to_bus=to_bus,
        from_bus=from_bus,
    )


def _build_description(doc: dict[str, Any], source: Path | Traversable) -> tuple[str, DeviceDescription]:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise CatalogValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    model_id = doc["model_id"]
    properties = {
        name: _build_property(name, spec, context=model_id)
        for name, spec in doc.get("properties", {}).items()
    }
    actions = {
        name: ActionDescriptor(
            title=spec.get("title"),
            description=spec.get("description"),
            input=spec.get("input"),
        )
        for name, spec in doc.get("actions", {}).items()
    }
    events = {
        name: EventDescriptor(
            source=spec.get("source"),
            title=spec.get("title"),
            description=spec.get("description"),
        )
        for name, spec in doc.get("events", {}).items()
    }
    description = DeviceDescription(
        name=doc["name"],
        type=tuple(doc.get("@type", ())),
        properties=properties,
        actions=actions,
        events=events,
    )
    return model_id, description


def _iter_packaged_paths() -> list[Traversable]:
    root = resources.files("z2madapter.devices")
    return [item for item in root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _catalog_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_catalog() -> LoadedCatalog:
    descriptions: dict[str, DeviceDescription] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_paths(), key=lambda p: p.name):
        model_id, description = _build_description(_read_yaml(path), path)
        descriptions[model_id] = description

    for path in _iter_user_paths():
        model_id, description = _build_description(_read_yaml(path), path)
        if model_id in descriptions:
            warning = f"User catalog entry '{model_id}' overrides packaged entry"
            LOGGER.warning(warning)
            warnings.append(warning)
        descriptions[model_id] = description

    return LoadedCatalog(descriptions=descriptions, warnings=tuple(warnings))
