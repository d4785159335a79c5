"""Remote content store client.

Async httpx implementation of the ContentService protocol against the
Tadabbur REST API (``/duas``, ``/blogs``, ``/questions``, ``/approval``,
``/users``, ``/reports``). One client serves one content collection,
matching how the API partitions items by type.

Idempotent reads (list/get/like-status) get at most one automatic retry on
UnavailableError. Mutations are sent exactly once; the caller decides
whether to re-issue them.

Example:
    async with HttpContentService("http://localhost:3001/api") as store:
        items = await store.list_public()
        status = await store.get_like_status("u1", items[0].id)
"""

from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config.settings import Settings, get_settings
from src.core.circuit_breaker import get_circuit_breaker
from src.core.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    UnavailableError,
    error_for_kind,
)
from src.models.schemas import (
    Actor,
    ApprovalStatus,
    ContentItem,
    ContentReport,
    ContentType,
    LikeCount,
    LikeStatus,
    ReportReason,
    ReportStatus,
    Role,
)
from src.monitoring.metrics import track_store_request

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

COLLECTION_PATHS: dict[ContentType, str] = {
    ContentType.DUA: "duas",
    ContentType.BLOG: "blogs",
    ContentType.QUESTION: "questions",
}

# Response envelope key for a single record / a list, per collection.
_SINGULAR_KEYS: dict[ContentType, str] = {
    ContentType.DUA: "dua",
    ContentType.BLOG: "blog",
    ContentType.QUESTION: "question",
}

ACTOR_HEADER = "X-Actor-Id"


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 409:
        return ErrorKind.CONFLICT
    if status_code == 429 or status_code >= 500:
        return ErrorKind.UNAVAILABLE
    return ErrorKind.INVALID_ARGUMENT


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data)
    return str(data)


# =============================================================================
# Payload mapping
# =============================================================================


def item_from_payload(data: dict[str, Any], content_type: ContentType) -> ContentItem:
    """Map an API record (snake_case, ``user_id``/``likes_count``) to a ContentItem."""
    fields = {
        "id": str(data["id"]),
        "content_type": data.get("content_type") or content_type,
        "owner_id": data.get("user_id") or data.get("owner_id"),
        "title": data.get("title") or data.get("question") or "",
        "purpose": data.get("purpose"),
        "body": data.get("english_meaning") or data.get("content") or data.get("body"),
        "approval_status": data.get("approval_status") or ApprovalStatus.PENDING,
        "rejection_reason": data.get("rejection_reason") or None,
        "is_verified": bool(data.get("is_verified", False)),
        # Verification is only ever granted after an approval.
        "has_been_approved": bool(data.get("has_been_approved") or data.get("is_verified")),
        "is_public": bool(data.get("is_public", False)),
        "like_count": int(data.get("likes_count", data.get("like_count", 0)) or 0),
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
    }
    return ContentItem.model_validate({k: v for k, v in fields.items() if v is not None})


def actor_from_payload(data: dict[str, Any]) -> Actor:
    fields = {
        "id": str(data["id"]),
        "name": data.get("name"),
        "email": data.get("email"),
        "role": data.get("role"),
        "is_active": data.get("is_active"),
        "joined_at": data.get("created_at") or data.get("joined_at"),
    }
    return Actor.model_validate({k: v for k, v in fields.items() if v is not None})


def report_from_payload(data: dict[str, Any]) -> ContentReport:
    """Map a report record (``reporter_id``/``content_id``) to a ContentReport."""
    fields = {
        "id": str(data["id"]),
        "reporter_id": data.get("reporter_id") or data.get("user_id"),
        "item_id": data.get("content_id") or data.get("item_id"),
        "content_type": data.get("content_type"),
        "reason": data.get("reason"),
        "description": data.get("description") or None,
        "status": data.get("status"),
        "admin_notes": data.get("admin_notes") or None,
        "reviewed_by": data.get("reviewed_by") or None,
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
    }
    return ContentReport.model_validate({k: v for k, v in fields.items() if v is not None})


# =============================================================================
# Client
# =============================================================================


class HttpContentService:
    """ContentService backed by the remote REST API.

    Args:
        base_url: API root, e.g. ``http://localhost:3001/api``
        content_type: Collection this client reads and writes
        settings: Timeouts, retry and circuit breaker settings
        token: Bearer token; defaults to settings.content_api_token
        transport: Optional httpx transport (tests use httpx.MockTransport)
        retry_wait: Base seconds between read attempts
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        content_type: ContentType = ContentType.DUA,
        settings: Optional[Settings] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait: float = 0.2,
    ):
        self._settings = settings or get_settings()
        self._base_url = (base_url or self._settings.content_api_url or "").rstrip("/")
        if not self._base_url:
            raise ConfigurationError("content API base URL is not configured", "content_api_url")

        if token is None and self._settings.content_api_token:
            token = self._settings.content_api_token.get_secret_value()

        self.content_type = content_type
        self._collection = COLLECTION_PATHS[content_type]
        self._token = token
        self._transport = transport
        self._retry_wait = retry_wait
        self._client: Optional[httpx.AsyncClient] = None
        self._breaker = get_circuit_breaker(
            "content_store",
            failure_threshold=self._settings.circuit_failure_threshold,
            recovery_timeout=self._settings.circuit_recovery_seconds,
        )

    @property
    def circuit_state(self) -> str:
        return self._breaker.state.value

    async def __aenter__(self) -> "HttpContentService":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._settings.request_timeout_seconds),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json_data: Optional[dict] = None,
        params: Optional[dict] = None,
        actor_id: Optional[str] = None,
        item_id: Optional[str] = None,
        as_actor: Optional[str] = None,
    ) -> dict[str, Any]:
        """Send one request and translate failures into ServiceErrors.

        ``actor_id`` and ``item_id`` only annotate errors and logs;
        ``as_actor`` is sent as the X-Actor-Id header for viewer-scoped calls.

        Raises:
            CircuitBreakerOpenError: When the circuit is open.
            UnavailableError: On timeouts, connection errors, 429 and 5xx.
            UnauthorizedError / NotFoundError / ConflictError /
            InvalidArgumentError: On the matching 4xx statuses.
        """
        context = {"path": path}
        if item_id is not None:
            context["item_id"] = item_id
        if actor_id is not None:
            context["actor_id"] = actor_id

        if not self._breaker.can_execute():
            recovery_time = self._breaker.time_until_recovery()
            logger.warning("content_store_circuit_open", operation=operation, **context)
            raise CircuitBreakerOpenError(self._breaker.name, recovery_time)

        client = await self._ensure_client()
        headers = {ACTOR_HEADER: as_actor} if as_actor else None

        with track_store_request(operation):
            try:
                response = await client.request(
                    method, path, json=json_data, params=params, headers=headers
                )
            except httpx.TimeoutException as e:
                await self._breaker.record_failure()
                logger.error("content_store_timeout", operation=operation, error=str(e), **context)
                raise UnavailableError(operation, f"Request timeout: {e}", {**context, "cause": str(e)})
            except httpx.RequestError as e:
                await self._breaker.record_failure()
                logger.error("content_store_request_error", operation=operation, error=str(e), **context)
                raise UnavailableError(operation, f"Request failed: {e}", {**context, "cause": str(e)})

            if response.status_code >= 400:
                kind = _kind_for_status(response.status_code)
                if kind == ErrorKind.UNAVAILABLE:
                    await self._breaker.record_failure()
                message = _error_message(response)
                logger.warning(
                    "content_store_error_response",
                    operation=operation,
                    status_code=response.status_code,
                    error=message,
                    **context,
                )
                raise error_for_kind(
                    kind,
                    operation,
                    message,
                    {**context, "status_code": response.status_code},
                )

            try:
                data = response.json() if response.content else {}
            except ValueError as e:
                await self._breaker.record_failure()
                logger.error(
                    "content_store_invalid_body",
                    operation=operation,
                    status_code=response.status_code,
                    error=str(e),
                    **context,
                )
                raise UnavailableError(
                    operation,
                    "Store response body is not JSON",
                    {**context, "status_code": response.status_code, "cause": str(e)},
                )

            await self._breaker.record_success()
            if not isinstance(data, dict):
                raise ConflictError(
                    operation,
                    "Store response is not a JSON object",
                    {**context, "payload_type": type(data).__name__},
                )
            return data

    async def _read(self, operation: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """GET with at most ``read_retry_attempts`` attempts on transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.read_retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=2),
            retry=(
                retry_if_exception_type(UnavailableError)
                & retry_if_not_exception_type(CircuitBreakerOpenError)
            ),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "content_store_read_retry",
                operation=operation,
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
            ),
        )
        async for attempt in retrying:
            with attempt:
                return await self._request(operation, "GET", path, **kwargs)
        raise AssertionError("unreachable")

    def _rows(self, operation: str, data: dict[str, Any], key: str) -> list:
        rows = data.get(key) or []
        if not isinstance(rows, list):
            raise ConflictError(
                operation,
                f"Store response field '{key}' is not a list",
                {"payload_type": type(rows).__name__},
            )
        return rows

    def _items(self, operation: str, data: dict[str, Any], key: str) -> list[ContentItem]:
        items = []
        for row in self._rows(operation, data, key):
            try:
                items.append(item_from_payload(row, self.content_type))
            except (KeyError, TypeError, ValueError) as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning("content_store_row_skipped", operation=operation, row_id=row_id, error=str(e))
        return items

    def _item(self, operation: str, data: dict[str, Any], item_id: Optional[str] = None) -> ContentItem:
        row = data.get(_SINGULAR_KEYS[self.content_type], data)
        try:
            return item_from_payload(row, self.content_type)
        except (KeyError, TypeError, ValueError) as e:
            raise ConflictError(
                operation,
                "Store returned an inconsistent item",
                {"item_id": item_id, "cause": str(e)},
            )

    def _actor(self, operation: str, data: dict[str, Any], actor_id: Optional[str] = None) -> Actor:
        row = data.get("user", data)
        try:
            return actor_from_payload(row)
        except (KeyError, TypeError, ValueError) as e:
            raise ConflictError(
                operation,
                "Store returned an inconsistent member",
                {"actor_id": actor_id, "cause": str(e)},
            )

    def _like_count(self, operation: str, data: dict[str, Any], item_id: str) -> int:
        """Read the aggregate count; a missing or invalid count is never taken as zero."""
        raw = data.get("likes_count", data.get("like_count"))
        try:
            count = int(raw)
        except (TypeError, ValueError):
            count = -1
        if count < 0 or isinstance(raw, bool):
            raise ConflictError(
                operation,
                "Store response has no valid like count",
                {"item_id": item_id, "likes_count": raw},
            )
        return count

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def list_owned(self, actor_id: str) -> list[ContentItem]:
        data = await self._read(
            "list_owned",
            f"/{self._collection}/my-{self._collection}",
            actor_id=actor_id,
            as_actor=actor_id,
        )
        return self._items("list_owned", data, self._collection)

    async def list_public(self) -> list[ContentItem]:
        data = await self._read("list_public", f"/{self._collection}")
        return [i for i in self._items("list_public", data, self._collection) if i.is_publicly_visible]

    async def list_pending(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]:
        content_type = content_type or self.content_type
        data = await self._read(
            "list_pending", "/approval/pending", params={"type": content_type.value}
        )
        return self._items("list_pending", data, "content")

    async def list_all(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]:
        content_type = content_type or self.content_type
        data = await self._read(
            "list_all", "/approval/content", params={"type": content_type.value}
        )
        return self._items("list_all", data, "content")

    async def get_item(self, item_id: str) -> ContentItem:
        data = await self._read("get_item", f"/{self._collection}/{item_id}", item_id=item_id)
        return self._item("get_item", data, item_id)

    async def create_item(
        self,
        owner_id: str,
        title: str,
        content_type: ContentType = ContentType.DUA,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: bool = False,
    ) -> ContentItem:
        payload = {"title": title, "purpose": purpose, "content": body, "is_public": is_public}
        data = await self._request(
            "create_item",
            "POST",
            f"/{COLLECTION_PATHS[content_type]}",
            json_data={k: v for k, v in payload.items() if v is not None},
            actor_id=owner_id,
            as_actor=owner_id,
        )
        return self._item("create_item", data)

    async def update_item(
        self,
        item_id: str,
        title: Optional[str] = None,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> ContentItem:
        payload = {"title": title, "purpose": purpose, "content": body, "is_public": is_public}
        data = await self._request(
            "update_item",
            "PUT",
            f"/{self._collection}/{item_id}",
            json_data={k: v for k, v in payload.items() if v is not None},
            item_id=item_id,
        )
        return self._item("update_item", data, item_id)

    async def delete_item(self, item_id: str) -> None:
        await self._request(
            "delete_item", "DELETE", f"/{self._collection}/{item_id}", item_id=item_id
        )

    # -------------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------------

    async def set_approval(
        self,
        item_id: str,
        status: ApprovalStatus,
        reason: Optional[str] = None,
    ) -> ContentItem:
        status = ApprovalStatus(status)
        action = {
            ApprovalStatus.APPROVED: "approve",
            ApprovalStatus.REJECTED: "reject",
            ApprovalStatus.PENDING: "resubmit",
        }[status]
        data = await self._request(
            "set_approval",
            "POST",
            f"/approval/{self.content_type.value}/{item_id}/{action}",
            json_data={"reason": reason} if reason else None,
            item_id=item_id,
        )
        return self._item("set_approval", data, item_id)

    async def set_verified(self, item_id: str, verified: bool) -> ContentItem:
        if verified:
            data = await self._request(
                "set_verified", "POST", f"/{self._collection}/{item_id}/verify", item_id=item_id
            )
        else:
            data = await self._request(
                "set_verified",
                "PUT",
                f"/{self._collection}/{item_id}",
                json_data={"is_verified": False},
                item_id=item_id,
            )
        return self._item("set_verified", data, item_id)

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------

    async def like(self, actor_id: str, item_id: str) -> LikeCount:
        data = await self._request(
            "like", "POST", f"/{self._collection}/{item_id}/like",
            actor_id=actor_id, as_actor=actor_id, item_id=item_id,
        )
        return LikeCount(like_count=self._like_count("like", data, item_id))

    async def unlike(self, actor_id: str, item_id: str) -> LikeCount:
        data = await self._request(
            "unlike", "DELETE", f"/{self._collection}/{item_id}/like",
            actor_id=actor_id, as_actor=actor_id, item_id=item_id,
        )
        return LikeCount(like_count=self._like_count("unlike", data, item_id))

    async def get_like_status(self, actor_id: str, item_id: str) -> LikeStatus:
        data = await self._read(
            "get_like_status", f"/{self._collection}/{item_id}/likes",
            actor_id=actor_id, as_actor=actor_id, item_id=item_id,
        )
        return LikeStatus(
            liked=bool(data.get("is_liked", data.get("liked", False))),
            like_count=self._like_count("get_like_status", data, item_id),
        )

    # -------------------------------------------------------------------------
    # Actors
    # -------------------------------------------------------------------------

    async def get_actor(self, actor_id: str) -> Actor:
        data = await self._read("get_actor", f"/users/{actor_id}", actor_id=actor_id)
        return self._actor("get_actor", data, actor_id)

    async def list_actors(self) -> list[Actor]:
        data = await self._read("list_actors", "/users", params={"limit": 100})
        actors = []
        for row in self._rows("list_actors", data, "users"):
            try:
                actors.append(actor_from_payload(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("content_store_row_skipped", operation="list_actors", error=str(e))
        return actors

    async def set_role(self, actor_id: str, role: Role) -> Actor:
        data = await self._request(
            "set_role", "PUT", f"/users/{actor_id}/role",
            json_data={"role": Role(role).value}, actor_id=actor_id,
        )
        return self._actor("set_role", data, actor_id)

    async def set_active(self, actor_id: str, is_active: bool) -> Actor:
        data = await self._request(
            "set_active", "PUT", f"/users/{actor_id}/status",
            json_data={"is_active": is_active}, actor_id=actor_id,
        )
        return self._actor("set_active", data, actor_id)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def _report(self, operation: str, data: dict[str, Any], report_id: Optional[str] = None) -> ContentReport:
        row = data.get("report", data)
        try:
            return report_from_payload(row)
        except (KeyError, TypeError, ValueError) as e:
            raise ConflictError(
                operation,
                "Store returned an inconsistent report",
                {"report_id": report_id, "cause": str(e)},
            )

    async def create_report(
        self,
        reporter_id: str,
        item_id: str,
        content_type: ContentType,
        reason: ReportReason,
        description: Optional[str] = None,
    ) -> ContentReport:
        payload = {
            "contentType": ContentType(content_type).value,
            "contentId": item_id,
            "reason": ReportReason(reason).value,
            "description": description,
        }
        data = await self._request(
            "create_report",
            "POST",
            "/reports/report",
            json_data={k: v for k, v in payload.items() if v is not None},
            actor_id=reporter_id,
            item_id=item_id,
            as_actor=reporter_id,
        )
        return self._report("create_report", data)

    async def list_reports(
        self, status: Optional[ReportStatus] = None
    ) -> list[ContentReport]:
        params: dict[str, Any] = {"limit": 100}
        if status is not None:
            params["status"] = ReportStatus(status).value
        data = await self._read("list_reports", "/reports/admin", params=params)
        reports = []
        for row in self._rows("list_reports", data, "reports"):
            try:
                reports.append(report_from_payload(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("content_store_row_skipped", operation="list_reports", error=str(e))
        return reports

    async def set_report_status(
        self,
        report_id: str,
        status: ReportStatus,
        reviewer_id: str,
        admin_notes: Optional[str] = None,
    ) -> ContentReport:
        payload = {"status": ReportStatus(status).value, "adminNotes": admin_notes}
        data = await self._request(
            "set_report_status",
            "PUT",
            f"/reports/admin/{report_id}",
            json_data={k: v for k, v in payload.items() if v is not None},
            actor_id=reviewer_id,
            as_actor=reviewer_id,
        )
        return self._report("set_report_status", data, report_id)
