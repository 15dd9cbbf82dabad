"""Scrape re-triggering for pages that render their inventory late."""

import asyncio
import logging
from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from inventory_relay.config import ScrapeRetryPolicy
from inventory_relay.dom.base import DomDocument
from inventory_relay.models.pydantic_models import ScrapeBatch, ScrapeSource
from inventory_relay.scrapers.base import InventoryScraper

logger = logging.getLogger(__name__)


def _is_empty(batch: ScrapeBatch) -> bool:
    return not batch.vehicles


def _final_batch(source: ScrapeSource) -> Callable[[RetryCallState], ScrapeBatch]:
    """Build the callback used once every attempt has come back empty or failed."""

    def callback(retry_state: RetryCallState) -> ScrapeBatch:
        outcome = retry_state.outcome
        if outcome is not None and not outcome.failed:
            return outcome.result()
        logger.warning(
            "Scrape of %s failed on all %d attempts: %s",
            source.value,
            retry_state.attempt_number,
            outcome.exception() if outcome is not None else "no attempt ran",
        )
        return ScrapeBatch(source=source)

    return callback


def _log_retrigger(retry_state: RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    outcome = retry_state.outcome
    if outcome is not None and outcome.failed:
        logger.warning(
            "Scrape attempt %d failed (%s), re-scraping in %.1fs",
            retry_state.attempt_number,
            outcome.exception(),
            delay,
        )
        return
    logger.info(
        "No vehicles found on attempt %d, re-scraping in %.1fs",
        retry_state.attempt_number,
        delay,
    )


async def scrape_with_retrigger(
    scraper: InventoryScraper,
    document: DomDocument,
    policy: ScrapeRetryPolicy | None = None,
) -> ScrapeBatch:
    """Scrape ``document``, re-running while the batch comes back empty.

    Attempt ``n`` runs after waiting ``policy.delays[n]`` seconds, so the
    first pass also gets a settle delay. Each attempt is independent: one
    that raises (a page torn down mid-load, say) is logged and the next
    trigger still runs. Stops at the first non-empty batch; after the last
    attempt an empty batch is returned.
    """
    policy = policy or ScrapeRetryPolicy()
    between = policy.delays[1:]
    wait = wait_chain(*(wait_fixed(delay) for delay in between)) if between else wait_none()

    await asyncio.sleep(policy.delays[0])

    retrying = AsyncRetrying(
        retry=retry_if_result(_is_empty) | retry_if_exception_type(Exception),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        before_sleep=_log_retrigger,
        retry_error_callback=_final_batch(scraper.source),
    )
    return await retrying(scraper.scrape, document)
