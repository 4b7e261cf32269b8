"""Sequential batch collection with a fixed pacing delay."""

import logging
import time
from typing import Callable, Iterable, List, Optional, TypeVar

from tqdm import tqdm

logger = logging.getLogger(__name__)

T = TypeVar('T')


def collect(
    ids: Iterable,
    build: Callable[[object], Optional[T]],
    pacing_delay: float = 1.0,
    progress_every: int = 10,
    label: str = "entities",
    sleep: Callable[[float], None] = time.sleep,
) -> List[T]:
    """Build one record per identifier, strictly one request at a time.

    The delay is waited before every build, so the first request of a batch
    is also paced against whatever request preceded the batch. A build that
    returns None (already logged by the builder) or raises is skipped; the
    batch always runs to the end of ``ids``.

    Args:
        ids: Identifiers to visit in order
        build: Record builder for one identifier
        pacing_delay: Seconds to wait before each build
        progress_every: Log a progress line every N identifiers
        label: Noun used in progress messages
        sleep: Sleep function (tests inject a no-op)

    Returns:
        Successfully built records in identifier order
    """
    ids = list(ids)
    total = len(ids)
    results: List[T] = []
    failures = 0

    for i, entity_id in enumerate(tqdm(ids, desc=f"Collecting {label}", unit=label), 1):
        if pacing_delay > 0:
            sleep(pacing_delay)

        try:
            record = build(entity_id)
        except Exception as e:
            logger.error(f"Unexpected error building {entity_id}: {e}", exc_info=True)
            record = None

        if record is None:
            failures += 1
        else:
            results.append(record)

        if progress_every and i % progress_every == 0:
            logger.info(f"Completed {i} of {total} {label}")

    logger.info(f"Collected {len(results)}/{total} {label} ({failures} failed)")
    return results
