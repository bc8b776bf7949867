"""Typed HTTP client for the BoxBox API plus cache query descriptors."""
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx

from boxbox.client.cache import QueryKey, keys
from boxbox.schemas.analysis import ItemAnalysis
from boxbox.schemas.box import BoxResponse, BoxWithItems, RecountResult
from boxbox.schemas.item import ItemPage, ItemResponse
from boxbox.schemas.qr import QrCodeResponse
from boxbox.schemas.user import Token, UserResponse


class ApiError(Exception):
    """A non-success reply from the API."""

    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


def _compact(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class BoxBoxClient:
    """Async wrapper over the REST endpoints.

    Pass an existing httpx.AsyncClient (e.g. one built on httpx.ASGITransport)
    or a base_url to have one created.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.http.headers["Authorization"] = f"Bearer {token}"

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "BoxBoxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        response = await self.http.request(method, url, **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except (ValueError, AttributeError):
                detail = response.text
            raise ApiError(response.status_code, detail)
        return response.json()

    # Auth

    async def register(self, email: str, password: str, name: Optional[str] = None) -> UserResponse:
        data = await self._request("POST", "/api/auth/register",
                                   json=_compact({"email": email, "password": password, "name": name}))
        return UserResponse.model_validate(data)

    async def login(self, email: str, password: str) -> Token:
        """Log in and use the returned token for subsequent calls."""
        data = await self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        token = Token.model_validate(data)
        self.set_token(token.access_token)
        return token

    # Boxes

    async def list_boxes(self, search: Optional[str] = None) -> List[BoxResponse]:
        search = search.strip() if search else None
        data = await self._request("GET", "/api/boxes", params=_compact({"search": search or None}))
        return [BoxResponse.model_validate(row) for row in data]

    async def get_box(self, box_id: str) -> BoxWithItems:
        return BoxWithItems.model_validate(await self._request("GET", f"/api/boxes/{box_id}"))

    async def create_box(self, name: str, description: str = "", color: Optional[str] = None) -> BoxResponse:
        payload = _compact({"name": name, "description": description, "color": color})
        return BoxResponse.model_validate(await self._request("POST", "/api/boxes", json=payload))

    async def update_box(self, box_id: str, **fields) -> BoxResponse:
        """Patch name, description and/or color."""
        data = await self._request("PATCH", f"/api/boxes/{box_id}", json=_compact(fields))
        return BoxResponse.model_validate(data)

    async def delete_box(self, box_id: str) -> None:
        await self._request("DELETE", f"/api/boxes/{box_id}")

    async def recount_boxes(self) -> RecountResult:
        return RecountResult.model_validate(await self._request("POST", "/api/boxes/recount"))

    # Items

    async def list_items(self, box_id: Optional[str] = None, search: Optional[str] = None) -> List[ItemResponse]:
        search = search.strip() if search else None
        data = await self._request("GET", "/api/items",
                                   params=_compact({"boxId": box_id, "search": search or None}))
        return [ItemResponse.model_validate(row) for row in data]

    async def list_items_page(
        self,
        limit: int = 20,
        cursor: Optional[str] = None,
        box_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ItemPage:
        params = _compact({"limit": limit, "cursor": cursor, "boxId": box_id, "search": search})
        return ItemPage.model_validate(await self._request("GET", "/api/items", params=params))

    async def iter_items(self, limit: int = 20, **filters) -> AsyncIterator[ItemResponse]:
        """Yield every item, following cursors until the last page."""
        cursor = None
        while True:
            page = await self.list_items_page(limit=limit, cursor=cursor, **filters)
            for item in page.items:
                yield item
            if not page.next_cursor:
                return
            cursor = page.next_cursor

    async def get_item(self, item_id: str) -> ItemResponse:
        return ItemResponse.model_validate(await self._request("GET", f"/api/items/{item_id}"))

    async def create_item(
        self,
        box_id: str,
        name: str,
        description: str = "",
        quantity: int = 1,
        image: Optional[str] = None,
    ) -> ItemResponse:
        payload = _compact({
            "boxId": box_id,
            "name": name,
            "description": description,
            "quantity": quantity,
            "image": image,
        })
        return ItemResponse.model_validate(await self._request("POST", "/api/items", json=payload))

    async def update_item(
        self,
        item_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        quantity: Optional[int] = None,
        box_id: Optional[str] = None,
    ) -> ItemResponse:
        payload = _compact({"name": name, "description": description, "quantity": quantity, "boxId": box_id})
        return ItemResponse.model_validate(await self._request("PATCH", f"/api/items/{item_id}", json=payload))

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", f"/api/items/{item_id}")

    # Analysis and labels

    async def analyze_item(self, image: str, profile: str = "fast") -> ItemAnalysis:
        data = await self._request("POST", "/api/analyze-item", json={"image": image, "profile": profile})
        return ItemAnalysis.model_validate(data)

    async def get_qr_code(self, box_id: str) -> QrCodeResponse:
        return QrCodeResponse.model_validate(await self._request("GET", f"/api/qr/{box_id}"))


@dataclass(frozen=True)
class QueryOptions:
    """A cache key plus the fetcher that fills it."""
    key: QueryKey
    fetch: Callable[[], Awaitable[Any]]
    enabled: bool = True


def boxes_query(client: BoxBoxClient) -> QueryOptions:
    return QueryOptions(keys.boxes(), client.list_boxes)


def boxes_search_query(client: BoxBoxClient, search: str) -> QueryOptions:
    return QueryOptions(
        keys.boxes_search(search),
        lambda: client.list_boxes(search=search),
        enabled=bool(search.strip()),
    )


def box_query(client: BoxBoxClient, box_id: str) -> QueryOptions:
    return QueryOptions(keys.box(box_id), lambda: client.get_box(box_id), enabled=bool(box_id))


def items_query(client: BoxBoxClient) -> QueryOptions:
    return QueryOptions(keys.items(), client.list_items)


def items_search_query(client: BoxBoxClient, search: str) -> QueryOptions:
    return QueryOptions(
        keys.items_search(search),
        lambda: client.list_items(search=search),
        enabled=bool(search.strip()),
    )


def item_query(client: BoxBoxClient, item_id: str) -> QueryOptions:
    return QueryOptions(keys.item(item_id), lambda: client.get_item(item_id), enabled=bool(item_id))
