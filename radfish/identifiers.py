"""
Identifier resolution and volume/drive cross-referencing.

Controllers, drives and volumes are addressed on the BMC by vendor-native
references (Redfish "@odata.id" paths). Depending on where a record came from
the reference lives in the raw vendor map, in a normalized field, or only in
the record's opaque id, so lookups walk an explicit list of known spellings.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set

from .errors import MissingIdentifierError
from .records import ComponentRecord, dig

logger = logging.getLogger(__name__)

# Spellings of the vendor-native reference, in lookup order
REFERENCE_KEYS = ("@odata.id", "odata_id")

# Spellings of a drive's identity (normalized field first)
DRIVE_IDENTITY_KEYS = ("odata_id", "@odata.id")

# Locations of a volume's member drive references inside its raw data
VOLUME_DRIVE_PATHS = (("drives",), ("Drives",), ("Links", "Drives"))


def _first_value(mapping: Any, keys: Sequence[str]) -> Optional[str]:
    if not isinstance(mapping, Mapping):
        return None
    for key in keys:
        value = mapping.get(key)
        if value:
            return str(value)
    return None


def extract_identifier(record: Any) -> str:
    """
    Extract the vendor-native identifier of a controller (or any record).

    Resolution order:
    1. reference field in the record's preserved raw data (adapter_data)
    2. reference field read directly from a raw vendor map
    3. the opaque id already assigned to a normalized record

    Args:
        record: ComponentRecord or raw vendor map

    Returns:
        str: identifier usable in subsequent vendor client calls

    Raises:
        MissingIdentifierError: record is None or none of the sources yields
                                a non-empty value
    """
    if record is None:
        raise MissingIdentifierError("Controller required")

    identifier = None
    if isinstance(record, ComponentRecord):
        identifier = (
            _first_value(record.adapter_data, REFERENCE_KEYS)
            or record.get("odata_id")
            or record.id
        )
    elif isinstance(record, Mapping):
        identifier = _first_value(record, REFERENCE_KEYS)

    if not identifier:
        raise MissingIdentifierError("Controller identifier missing")
    return str(identifier)


def volume_drive_refs(volume: Any) -> List[str]:
    """
    Collect the drive references a volume points at.

    References may be maps carrying "@odata.id" (or "odata_id") or plain
    strings. Entries without a usable value are skipped.
    """
    raw = volume.adapter_data if isinstance(volume, ComponentRecord) else volume
    refs = None
    for path in VOLUME_DRIVE_PATHS:
        refs = dig(raw, *path)
        if refs:
            break
    if not refs and isinstance(volume, ComponentRecord):
        refs = volume.get("drives")
    if not refs or isinstance(refs, (str, bytes, Mapping)):
        return []

    ref_ids = []
    for ref in refs:
        if isinstance(ref, str):
            ref_id = ref
        elif isinstance(ref, ComponentRecord):
            ref_id = _first_value(ref.adapter_data, REFERENCE_KEYS) or ref.get("odata_id")
        else:
            ref_id = _first_value(ref, REFERENCE_KEYS)
        if ref_id:
            ref_ids.append(ref_id)
    return ref_ids


def drive_identities(drive: Any) -> Set[str]:
    """Every identity value a drive exposes across the known field spellings."""
    identities = set()
    if isinstance(drive, ComponentRecord):
        for key in DRIVE_IDENTITY_KEYS:
            value = drive.get(key) or (drive.adapter_data or {}).get(key)
            if value:
                identities.add(str(value))
    elif isinstance(drive, Mapping):
        for key in DRIVE_IDENTITY_KEYS:
            value = drive.get(key)
            if value:
                identities.add(str(value))
    else:
        value = getattr(drive, "odata_id", None)
        if value:
            identities.add(str(value))

    if len(identities) > 1:
        logger.debug(f"Drive identity variants disagree: {sorted(identities)}")
    return identities


def drives_for_volume(volume: Any, drives: Iterable[Any]) -> List[Any]:
    """
    Select the drives backing a volume.

    A drive matches when any of its identity variants equals any reference
    held by the volume (exact string equality). No match is a valid result
    and yields an empty list.

    Args:
        volume: Volume record or raw vendor map
        drives: All drives on the volume's controller (records or raw maps)

    Returns:
        list: matching entries from ``drives``, in their original order
    """
    refs = set(volume_drive_refs(volume))
    if not refs:
        return []
    return [drive for drive in drives if drive_identities(drive) & refs]
