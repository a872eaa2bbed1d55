import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from google.cloud.firestore_v1 import FieldFilter, Query

from ..core.config import settings
from .collections import COLLECTION_SCHEMAS
from .firestore_client import FirestoreConnection

logger = logging.getLogger(__name__)

# (field, operator, value), e.g. ('status', '==', 'new') or ('status', 'in', ['new', 'in_progress'])
Filter = Tuple[str, str, Any]
# (field, 'asc' | 'desc')
OrderBy = Tuple[str, str]


class DatabaseService:
    """
    Thin async facade over the Firestore client.

    Every call runs the blocking client operation in a worker thread bounded
    by a timeout and reports the outcome as a tuple instead of raising:
    (success, data, error) for reads and creates, (success, error) for updates.
    A missing document is a successful read returning None.
    """

    def __init__(self, connection: FirestoreConnection, timeout: Optional[float] = None):
        self.connection = connection
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    async def _run(self, label: str, operation: Callable[[], Any], timeout: Optional[float] = None) -> Any:
        limit = timeout if timeout is not None else self.timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(operation), timeout=limit)
        except asyncio.TimeoutError:
            raise TimeoutError(f"{label} timed out. Database not reachable.")

    def _validate(self, collection: str, data: Dict[str, Any]) -> Optional[str]:
        schema = COLLECTION_SCHEMAS.get(collection)
        if not schema:
            return None
        missing = [field for field in schema['required'] if data.get(field) is None]
        if missing:
            return f"Missing required fields for {collection}: {', '.join(missing)}"
        return None

    async def get_document(self, collection: str, document_id: str,
                           timeout: Optional[float] = None) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            def _get():
                return self.connection.client().collection(collection).document(document_id).get()

            snap = await self._run(f"Load {collection}/{document_id}", _get, timeout)
            if not snap.exists:
                return True, None, None
            doc = snap.to_dict() or {}
            doc['id'] = snap.id
            return True, doc, None
        except Exception as e:
            logger.error(f"Error getting document {collection}/{document_id}: {e}")
            return False, None, str(e)

    async def query_documents(self, collection: str, filters: Optional[List[Filter]] = None,
                              order_by: Optional[Sequence[OrderBy]] = None,
                              limit: Optional[int] = None) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        try:
            def _query():
                query = self.connection.client().collection(collection)
                for field, op, value in filters or []:
                    query = query.where(filter=FieldFilter(field, op, value))
                for field, direction in order_by or []:
                    query = query.order_by(
                        field,
                        direction=Query.DESCENDING if direction == 'desc' else Query.ASCENDING,
                    )
                if limit:
                    query = query.limit(limit)
                docs = []
                for snap in query.stream():
                    doc = snap.to_dict() or {}
                    doc['id'] = snap.id
                    docs.append(doc)
                return docs

            docs = await self._run(f"Query {collection}", _query)
            return True, docs, None
        except Exception as e:
            logger.error(f"Error querying {collection} with filters {filters}: {e}")
            return False, [], str(e)

    async def create_document(self, collection: str, data: Dict[str, Any], document_id: Optional[str] = None,
                              validate: bool = True) -> Tuple[bool, Optional[str], Optional[str]]:
        try:
            if validate:
                error = self._validate(collection, data)
                if error:
                    return False, None, error

            payload = {k: v for k, v in data.items() if k != 'id'}

            def _create():
                coll = self.connection.client().collection(collection)
                ref = coll.document(document_id) if document_id else coll.document()
                ref.set(payload)
                return ref.id

            doc_id = await self._run(f"Create {collection}", _create)
            return True, doc_id, None
        except Exception as e:
            logger.error(f"Error creating document in {collection}: {e}")
            return False, None, str(e)

    async def update_document(self, collection: str, document_id: str, data: Dict[str, Any],
                              validate: bool = False) -> Tuple[bool, Optional[str]]:
        """Merge the given fields into the document; fields not named are left untouched."""
        try:
            if validate:
                schema = COLLECTION_SCHEMAS.get(collection)
                unknown = [k for k in data if schema and k not in schema['fields']]
                if unknown:
                    return False, f"Unknown fields for {collection}: {', '.join(unknown)}"

            payload = {k: v for k, v in data.items() if k != 'id'}

            def _update():
                self.connection.client().collection(collection).document(document_id).set(payload, merge=True)

            await self._run(f"Update {collection}/{document_id}", _update)
            return True, None
        except Exception as e:
            logger.error(f"Error updating document {collection}/{document_id}: {e}")
            return False, str(e)
