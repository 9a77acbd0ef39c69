"""Device profile loading and validation for YAML-based hwprovider profiles."""

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

from hwprovider.core.errors import InvalidVersionFormatError, ProfileLoadError, ProfileValidationError
from hwprovider.core.model import DeviceProfile, TransactionPolicy, TransportSettings
from hwprovider.core.versioning import parse_version

_UUID_RE = re.compile(r"^[0-9a-f]{4}$|^[0-9a-f]{8}$|^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
DEFAULT_PROFILE_ID = "multiversx"
DEFAULT_HID_USAGE_PAGE = 0xFFA0
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, DeviceProfile]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("hwprovider.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "hwprovider/profiles", xdg_data / "hwprovider/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _normalize_hex_id(value: str) -> int:
    return int(value.strip().lower().removeprefix("0x"), 16)


def _normalize_uuid(value: str, *, context: str) -> str:
    normalized = value.strip().lower()
    if not _UUID_RE.match(normalized):
        raise ProfileValidationError(
            f"{context} must be a 16-bit, 32-bit, or 128-bit UUID string"
        )
    return normalized


def _normalize_thresholds(doc: dict[str, Any]) -> dict[str, str]:
    thresholds: dict[str, str] = {}
    for feature, min_version in doc["capabilities"].items():
        try:
            parse_version(min_version)
        except InvalidVersionFormatError as exc:
            raise ProfileValidationError(f"{doc['id']}.capabilities.{feature}: {exc}") from exc
        thresholds[feature] = min_version
    return thresholds


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> DeviceProfile:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    transport_doc = doc["transport"]
    ble = transport_doc["ble"]
    u2f = transport_doc.get("u2f", {})
    transport = TransportSettings(
        usb_vendor_id=_normalize_hex_id(transport_doc["usb_vendor_id"]),
        hid_usage_page=_normalize_hex_id(transport_doc["hid_usage_page"])
        if "hid_usage_page" in transport_doc
        else DEFAULT_HID_USAGE_PAGE,
        ble_service_uuid=_normalize_uuid(ble["service_uuid"], context=f"{doc['id']}.transport.ble.service_uuid"),
        ble_write_char_uuid=_normalize_uuid(
            ble["write_char_uuid"],
            context=f"{doc['id']}.transport.ble.write_char_uuid",
        ),
        ble_notify_char_uuid=_normalize_uuid(
            ble["notify_char_uuid"],
            context=f"{doc['id']}.transport.ble.notify_char_uuid",
        ),
        ble_scan_timeout_s=float(ble.get("scan_timeout_s", 5.0)),
        u2f_scramble_key=str(u2f.get("scramble_key", "")),
    )

    transaction_doc = doc.get("transaction", {})
    options_doc = transaction_doc.get("options", {})
    defaults = TransactionPolicy()
    transaction = TransactionPolicy(
        version_with_options=int(transaction_doc.get("version_with_options", defaults.version_with_options)),
        hash_sign_option=int(options_doc.get("hash_sign", defaults.hash_sign_option)),
        guarded_option=int(options_doc.get("guarded", defaults.guarded_option)),
    )
    if transaction.hash_sign_option & transaction.guarded_option:
        raise ProfileValidationError(f"{doc['id']}.transaction.options: hash_sign and guarded bits overlap")

    return DeviceProfile(
        id=doc["id"],
        name=doc["name"],
        transport=transport,
        capabilities=_normalize_thresholds(doc),
        transaction=transaction,
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("hwprovider.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, DeviceProfile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.id in profiles:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))


def pick_profile(loaded: LoadedProfiles, profile_id: str | None = None) -> DeviceProfile:
    """Pick one profile by id, defaulting to ``$HWPROVIDER_PROFILE`` or the packaged one."""
    wanted = profile_id or os.environ.get("HWPROVIDER_PROFILE") or DEFAULT_PROFILE_ID
    profile = loaded.profiles.get(wanted)
    if profile is None:
        available = ", ".join(sorted(loaded.profiles))
        raise ProfileLoadError(f"Unknown profile '{wanted}'. Available: {available}")
    return profile


def load_profile(profile_id: str | None = None) -> DeviceProfile:
    return pick_profile(load_profiles(), profile_id)
