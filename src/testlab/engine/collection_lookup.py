# engine/collection_lookup.py

from typing import Iterable, Optional, Sequence, Tuple

from ..schemas.collection import Collection, CollectionItem, CollectionRequest
from ..schemas.flow import Flow


def parse_reference(reference_id: str) -> Tuple[Optional[str], str]:
    """Split ``"<collection>:<itemId>"``; a bare id has no collection part."""
    if ":" in reference_id:
        collection_key, item_id = reference_id.split(":", 1)
        return collection_key or None, item_id
    return None, reference_id


def _collection_matches(collection: Collection, key: str) -> bool:
    return key in (collection.filename, collection.info.id, collection.info.name)


def find_item(items: Iterable[CollectionItem], item_id: str) -> Optional[CollectionItem]:
    """Depth-first search through nested folders."""
    for item in items:
        if item.request is not None and item_id in (item.id, item.request.id):
            return item
        if item.item:
            found = find_item(item.item, item_id)
            if found is not None:
                return found
    return None


def find_request(
    collections: Sequence[Collection], reference_id: str
) -> Optional[CollectionRequest]:
    collection_key, item_id = parse_reference(reference_id)
    candidates = (
        [c for c in collections if _collection_matches(c, collection_key)]
        if collection_key
        else list(collections)
    )
    for collection in candidates:
        item = find_item(collection.item, item_id)
        if item is not None:
            request = item.request
            if not request.name:
                request = request.model_copy(update={"name": item.name})
            return request
    return None


def find_flow(flows: Sequence[Flow], reference_id: str) -> Optional[Flow]:
    _, flow_id = parse_reference(reference_id)
    return next((f for f in flows if f.id == flow_id), None)
