from typing import NamedTuple
from core.tokens import PRIMARY_DELIMITER, split_tokens


class AssetResolution(NamedTuple):
    names: list
    unresolved: list


def split_ids(raw) -> list[str]:
    return split_tokens(raw)


def resolve_tolerant(ids, table) -> AssetResolution:
    """Substitute display names for asset ids.

    Ids missing from ``table`` are kept verbatim and also reported in
    ``unresolved``; the asset table is often behind the risk records.
    """
    names, unresolved = [], []
    for asset_id in split_ids(ids):
        name = table.get(asset_id) if table else None
        if name:
            names.append(name)
        else:
            names.append(asset_id)
            unresolved.append(asset_id)
    return AssetResolution(names, unresolved)


def resolve(ids, table):
    """Resolve ids to names, returning the same shape the caller passed in.

    A string (or ``None``) gives a ``", "``-joined string, anything else a list.
    """
    names = resolve_tolerant(ids, table).names
    if ids is None or isinstance(ids, str):
        return PRIMARY_DELIMITER.join(names)
    return names


def build_asset_table(assets) -> dict[str, str]:
    table = {}
    for asset in assets or []:
        asset_id = str(asset.get("id") or "").strip()
        if not asset_id:
            continue
        table[asset_id] = asset.get("informationAsset") or asset.get("name") or asset_id
    return table


def normalize_asset_ids(raw) -> tuple[list[str], list]:
    """Bring a stored ``informationAsset`` value into list-of-ids form.

    Handles the comma string format, lists of ids and lists of ``{"id": ...}``
    objects. Returns ``(ids, invalid)`` with duplicates removed in first-seen
    order; entries that carry no id end up in ``invalid``.
    """
    if raw is None:
        return [], []
    if isinstance(raw, str):
        items = split_ids(raw)
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        return [], [raw]

    ids, invalid = [], []
    for item in items:
        if isinstance(item, str):
            # list entries may still hold a delimited run of ids
            values = split_ids(item)
        elif isinstance(item, dict) and item.get("id"):
            values = [str(item["id"]).strip()]
        else:
            invalid.append(item)
            continue
        for value in values:
            if value and value not in ids:
                ids.append(value)
    return ids, invalid
