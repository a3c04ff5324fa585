"""
Canonical Records

Vendor clients hand back nested mappings keyed however the vendor likes
("@odata.id", "HealthRollup", "service_tag", ...). This module turns them into
pydantic records with snake_case field names, dot-style access and the raw
vendor map preserved as ``adapter_data`` for identifier extraction.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, PrivateAttr


_SEPARATORS = re.compile(r"[.\-\s/#]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_REPEATED_UNDERSCORE = re.compile(r"_+")

# Vendor sub-maps flattened into top-level fields: source key -> (vendor key, field)
FLATTENED_FIELDS = {
    "Status": (
        ("Health", "health"),
        ("HealthRollup", "health_rollup"),
        ("State", "state"),
    ),
}

DEFAULT_MODEL_PREFIX = "PowerEdge"


class ComponentRecord(BaseModel):
    """
    Flat, field-named record built from a vendor map.

    Unknown vendor fields are kept as extra attributes under their canonical
    names. Missing fields read as None through get().
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=(), coerce_numbers_to_str=True)

    id: Optional[str] = None
    name: Optional[str] = None

    _adapter_data: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def adapter_data(self) -> Dict[str, Any]:
        """Raw vendor map this record was built from."""
        return self._adapter_data

    def get(self, field: str, default: Any = None) -> Any:
        value = getattr(self, field, None)
        return default if value is None else value

    def __getitem__(self, field: str) -> Any:
        return self.get(field)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CpuRecord(ComponentRecord):
    socket: int
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    speed_mhz: Optional[int] = None
    cores: Optional[int] = None
    threads: Optional[int] = None
    health: Optional[str] = None


class NicRecord(ComponentRecord):
    ports: List[ComponentRecord] = []
    pci_device: Optional[ComponentRecord] = None


class ControllerRecord(ComponentRecord):
    battery_status: Optional[str] = None
    drives: List[ComponentRecord] = []


class VolumeRecord(ComponentRecord):
    # Owning controller record, attached by the adapter that listed the volume
    controller: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"controller"})


class SystemInfo(BaseModel):
    """Canonical system identity. Absent fields are dropped from to_dict()."""

    model_config = ConfigDict(protected_namespaces=())

    service_tag: Optional[str] = None
    manufacturer: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    bmc_version: Optional[str] = None
    is_vendor_native: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def canonical_field_name(key: str) -> str:
    """
    Convert a vendor key to a canonical snake_case field name.

    "@odata.id" -> "odata_id", "HealthRollup" -> "health_rollup",
    "MACAddress" -> "mac_address". Keys already in snake_case are unchanged.
    """
    name = _SEPARATORS.sub("_", str(key).lstrip("@"))
    name = _CAMEL_BOUNDARY.sub("_", name)
    return _REPEATED_UNDERSCORE.sub("_", name).strip("_").lower()


def dig(mapping: Any, *keys: str) -> Any:
    """Nested lookup that returns None instead of failing on missing levels."""
    current = mapping
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def strip_model_prefix(model: Optional[str], prefix: str = DEFAULT_MODEL_PREFIX) -> Optional[str]:
    """Strip a vendor product-line prefix ("PowerEdge R640" -> "R640"), any casing."""
    if not model:
        return model
    return re.sub(rf"^{re.escape(prefix)}\s+", "", model, flags=re.IGNORECASE)


def promote_field(raw: Mapping, target: str, path: Sequence[str], candidates: Sequence[str]) -> Dict[str, Any]:
    """
    Copy a value from a vendor extension namespace to a top-level key.

    The first non-empty candidate under ``path`` is written to ``target`` only
    when the map does not already carry a value there. Returns a new dict.

    Args:
        raw: Vendor map (left unmodified)
        target: Top-level key to populate, e.g. "battery_status"
        path: Keys leading to the extension map, e.g. ("Oem", "Dell", "DellControllerBattery")
        candidates: Keys tried in order inside the extension map
    """
    promoted = dict(raw)
    if promoted.get(target) is not None:
        return promoted
    extension = dig(raw, *path)
    if not isinstance(extension, Mapping):
        return promoted
    for candidate in candidates:
        value = extension.get(candidate)
        if value:
            promoted[target] = value
            break
    return promoted


def normalize(
    raw: Any,
    record_cls: Type[ComponentRecord] = ComponentRecord,
    nested: Optional[Dict[str, Type[ComponentRecord]]] = None,
) -> ComponentRecord:
    """
    Build a canonical record from a vendor map.

    Keys are renamed with canonical_field_name(); on collision the first key
    wins. Sub-maps listed in FLATTENED_FIELDS fill their target fields only
    where the primary keys left them empty. Fields named in ``nested`` hold
    lists of vendor maps and are normalized recursively.

    Args:
        raw: Vendor map (an existing record is returned as-is)
        record_cls: Record type to build
        nested: Canonical field name -> record type for nested collections

    Returns:
        record_cls instance with the raw map attached as adapter_data
    """
    if isinstance(raw, ComponentRecord):
        return raw
    raw = dict(raw) if isinstance(raw, Mapping) else {}
    nested = nested or {}

    fields: Dict[str, Any] = {}
    for key, value in raw.items():
        name = canonical_field_name(key)
        if not name or name in fields:
            continue
        if name in nested:
            value = normalize_many(value, nested[name])
        fields[name] = value

    for source, targets in FLATTENED_FIELDS.items():
        sub = raw.get(source)
        if not isinstance(sub, Mapping):
            continue
        source_name = canonical_field_name(source)
        if fields.get(source_name) is sub:
            del fields[source_name]
        for vendor_key, field in targets:
            if fields.get(field) is None and sub.get(vendor_key) is not None:
                fields[field] = sub[vendor_key]

    record = record_cls(**fields)
    record._adapter_data = raw
    return record


def normalize_many(
    raws: Optional[Iterable[Any]],
    record_cls: Type[ComponentRecord] = ComponentRecord,
    nested: Optional[Dict[str, Type[ComponentRecord]]] = None,
) -> List[ComponentRecord]:
    """Normalize a vendor list; None or a non-list yields an empty list."""
    if not raws or isinstance(raws, (str, bytes, Mapping)):
        return []
    return [
        normalize(raw, record_cls, nested)
        for raw in raws
        if isinstance(raw, (Mapping, ComponentRecord))
    ]


def expand_cpu_summary(summary: Optional[Mapping]) -> List[CpuRecord]:
    """
    Expand a processor summary into one record per socket.

    Vendors that only report a socket count plus aggregate core/thread totals
    get those totals divided evenly across sockets. Clock speed is not
    derivable per socket and stays unset.

    Args:
        summary: Mapping with "count", "cores", "threads", "model",
                 "manufacturer" and "status" keys

    Returns:
        list of CpuRecord with socket numbers starting at 1
    """
    if not isinstance(summary, Mapping):
        return []
    count = summary.get("count") or 0
    if count <= 0:
        return []

    cores = summary.get("cores")
    threads = summary.get("threads")
    status = summary.get("status")
    health = status.get("Health") if isinstance(status, Mapping) else status

    records = []
    for socket in range(1, count + 1):
        record = CpuRecord(
            socket=socket,
            manufacturer=summary.get("manufacturer"),
            model=summary.get("model"),
            speed_mhz=None,
            cores=cores // count if cores else None,
            threads=threads // count if threads else None,
            health=health,
        )
        record._adapter_data = dict(summary)
        records.append(record)
    return records
