"""
Mentor pipeline steps. Each one is a single gateway call or a batch of
repository reads; the graph in agents.mentor_agent.graph sequences them.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import List, Optional

from agents.core.cancellation import CancellationToken, OperationCancelled, guarded
from agents.mentor_agent.store import ContentRepository
from agents.mentor_agent.types import (
    ContentItem,
    ContentRef,
    ContentSummary,
    ContentType,
    GatewayRequest,
    StepType,
    UserSession,
)
from api.utils.logger import log_request
from infra.gateway.client import GatewayClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECOMMENDATIONS = 5

# Catalog order: the order the five lists are concatenated in.
CATALOG_TYPES = (
    ContentType.MODULES,
    ContentType.NEWS,
    ContentType.TOOLS,
    ContentType.PROMPTS,
    ContentType.LEARNING_PLANS,
)


def _reraise_cancellation(result: object) -> None:
    if isinstance(result, OperationCancelled):
        raise result
    if isinstance(result, BaseException) and not isinstance(result, Exception):
        raise result


async def classify(
    gateway: GatewayClient,
    session: UserSession,
    message: str,
    *,
    cancel: Optional[CancellationToken] = None,
) -> bool:
    """True only when the whole model answer, trimmed, is "true" (any case)."""
    request = GatewayRequest(
        message=message,
        user_email=session.email,
        step_type=StepType.RECOMMENDATION_CHECK,
    )
    with log_request(logger, "classify"):
        answer = await gateway.collect(request, cancel=cancel)
    wants = answer.strip().lower() == "true"
    logger.info("classification answer=%r wants_recommendations=%s", answer[:40], wants)
    return wants


async def fetch_catalog(
    repository: ContentRepository,
    *,
    cancel: Optional[CancellationToken] = None,
) -> List[ContentSummary]:
    """
    Fresh catalog of every published item, one concurrent query per type.
    A type whose query fails contributes nothing.
    """
    with log_request(logger, "fetch_catalog"):
        results = await asyncio.gather(
            *(guarded(cancel, repository.list_published(t)) for t in CATALOG_TYPES),
            return_exceptions=True,
        )
    catalog: List[ContentSummary] = []
    for content_type, result in zip(CATALOG_TYPES, results):
        _reraise_cancellation(result)
        if isinstance(result, Exception):
            logger.warning("catalog query failed type=%s: %r", content_type.value, result)
            continue
        catalog.extend(result)
    return catalog


def parse_recommendations(raw: str, limit: int = DEFAULT_MAX_RECOMMENDATIONS) -> List[ContentRef]:
    """
    Parse the model's JSON array of {type, id}. Anything that is not a JSON
    array yields no recommendations; entries with an unknown type or no id are
    dropped. Model order is kept.
    """
    try:
        data = json.loads(raw.strip())
    except json.JSONDecodeError as e:
        logger.warning("recommendation output is not JSON (%s): %r", e, raw[:200])
        return []
    if not isinstance(data, list):
        logger.warning("recommendation output is not a JSON array: %r", raw[:200])
        return []

    refs: List[ContentRef] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        content_type = ContentType.parse(entry.get("type"))
        content_id = entry.get("id")
        if content_type is None or content_id in (None, ""):
            continue
        refs.append(ContentRef(type=content_type, id=str(content_id)))
    return refs[:limit]


async def recommend(
    gateway: GatewayClient,
    session: UserSession,
    message: str,
    catalog: List[ContentSummary],
    *,
    cancel: Optional[CancellationToken] = None,
    limit: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> List[ContentRef]:
    request = GatewayRequest(
        message=message,
        user_email=session.email,
        step_type=StepType.CONTENT_ANALYSIS,
        content_data=catalog,
    )
    with log_request(logger, "recommend"):
        raw = await gateway.collect(request, cancel=cancel)
    refs = parse_recommendations(raw, limit)
    logger.info("recommendations catalog_size=%s selected=%s", len(catalog), len(refs))
    return refs


async def resolve(
    repository: ContentRepository,
    refs: List[ContentRef],
    *,
    cancel: Optional[CancellationToken] = None,
) -> List[ContentItem]:
    """
    Full record for each ref, looked up concurrently. Lookups that fail or find
    nothing are dropped; survivors keep their position order from `refs`.
    """
    if not refs:
        return []
    with log_request(logger, "resolve"):
        results = await asyncio.gather(
            *(guarded(cancel, repository.get(ref.type, ref.id)) for ref in refs),
            return_exceptions=True,
        )
    items: List[ContentItem] = []
    for ref, result in zip(refs, results):
        _reraise_cancellation(result)
        if isinstance(result, Exception):
            logger.warning("lookup failed type=%s id=%s: %r", ref.type.value, ref.id, result)
            continue
        if result is None:
            logger.info("recommended item not found type=%s id=%s", ref.type.value, ref.id)
            continue
        items.append(result)
    return items
