"""Canonical design record shape and the mapping from legacy field names.

The cache core treats records as opaque; reconciliation happens here, at the
write boundary, and nowhere else.
"""

RECORD_ID_FIELD = "uid"

# legacy name -> canonical name
LEGACY_FIELDS = {
    "id": "uid",
    "name": "designName",
    "type": "designType",
    "status": "designStatus",
    "price": "designPrice",
    "size": "designSize",
    "image": "designImageUrl",
    "createdAt": "designCreatedAt",
    "updatedAt": "designUpdateAt",
    "tags": "designTags",
}


def record_id(record: dict):
    return record.get(RECORD_ID_FIELD) if isinstance(record, dict) else None


def normalize_record(raw: dict) -> dict:
    """Copy of ``raw`` with legacy fields renamed to their canonical names.

    A canonical value already present wins over its legacy fallback, and the
    fallback is dropped either way. Unknown fields pass through untouched.
    """
    record = {}
    for key, value in raw.items():
        if key not in LEGACY_FIELDS:
            record[key] = value
    for legacy, canonical in LEGACY_FIELDS.items():
        if legacy in raw and raw[legacy] is not None and record.get(canonical) is None:
            record[canonical] = raw[legacy]
    return record
