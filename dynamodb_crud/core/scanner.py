"""
Continuation-token scanning.

scan_all drains a partition (or a whole table) page by page into one list,
keeping the order in which the store returned the rows.
"""

import logging
import threading
from typing import Callable, List, Optional

from ..models.entity import DynamicEntity
from .table_gateway import ContinuationToken, TableGateway

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[List[DynamicEntity]], None]


def scan_all(
    gateway: TableGateway,
    partition_key: Optional[str] = None,
    take_limit: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    on_progress: Optional[ProgressCallback] = None
) -> List[DynamicEntity]:
    """
    Read every entity of a partition (or table) across all pages.

    The scan stops when the store returns no continuation token, when
    ``cancel_event`` is set (checked between pages only), or once at least
    ``take_limit`` entities have been accumulated.

    Note:
        The take limit is also used as the page size, but the result is not
        truncated: it may hold up to one page more than ``take_limit``.
        Callers that need an exact top-N must slice the result themselves.

    Args:
        gateway: Table to scan
        partition_key: Partition to scan, or None for the whole table
        take_limit: Stop once this many entities have been read
        cancel_event: Polled between pages; set it to stop early
        on_progress: Called with the accumulated list after every page

    Returns:
        All entities read, in store order
    """
    entities: List[DynamicEntity] = []
    token: Optional[ContinuationToken] = None
    pages = 0

    while True:
        page = gateway.scan_page(partition_key, token, page_size=take_limit)
        pages += 1
        token = page.continuation_token
        entities.extend(page.entities)

        if on_progress is not None:
            on_progress(entities)

        if take_limit is not None and len(entities) >= take_limit:
            break
        if token is None:
            break
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Scan of {gateway.table_name} cancelled after {pages} pages")
            break

    scope = f"partition '{partition_key}'" if partition_key is not None else "all partitions"
    logger.debug(f"Scanned {len(entities)} entities from {gateway.table_name} ({scope}, {pages} pages)")
    return entities
