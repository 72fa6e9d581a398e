# src/clients/materials_client.py — v1
"""Creation endpoint client: create one material per call.

File items are sent as multipart with the file body; link items as a
plain form with their resource address. A locally generated preview is
uploaded after the material exists; that second call is best effort and
never fails the item.
"""

from __future__ import annotations

import json
import logging
from contextlib import ExitStack
from typing import Any

import httpx

from matingest.core.blobs import LocalBlob
from matingest.core.errors import CreationFailed
from matingest.core.models import CreationRequest

logger = logging.getLogger(__name__)


class MaterialsClient:
    """Thin async wrapper around POST /materials."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 60.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=base_url, timeout=timeout, headers=headers,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> MaterialsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def __call__(self, request: CreationRequest) -> str:
        return await self.create(request)

    async def create(self, request: CreationRequest) -> str:
        """Create one material and return its id.

        Raises:
            CreationFailed: The endpoint answered with an error or no id.
            httpx.HTTPError: Transport failure.
        """
        form = build_form(request)
        with ExitStack() as stack:
            files = None
            if request.file is not None:
                fh = stack.enter_context(request.file.path.open("rb"))
                files = {
                    "file": (request.file.filename, fh, request.file.content_type),
                }
            response = await self._http.post("/materials", data=form, files=files)

        material_id = _material_id(response)

        if request.preview_blob is not None:
            await self._upload_preview_best_effort(material_id, request.preview_blob)
        return material_id

    async def upload_preview(self, material_id: str, blob: LocalBlob) -> None:
        with blob.path.open("rb") as fh:
            response = await self._http.post(
                f"/materials/preview/upload/{material_id}",
                files={"preview": ("preview.jpg", fh, blob.content_type)},
            )
        if response.is_error:
            raise CreationFailed(_error_message(response), response.status_code)

    async def _upload_preview_best_effort(self, material_id: str, blob: LocalBlob) -> None:
        try:
            await self.upload_preview(material_id, blob)
        except (CreationFailed, httpx.HTTPError, OSError) as exc:
            logger.warning("Preview upload failed for material %s: %s", material_id, exc)


def build_form(request: CreationRequest) -> dict[str, Any]:
    """Form fields understood by the creation endpoint."""
    form: dict[str, Any] = {
        "label": request.title,
        "description": "",
        "type": request.material_type,
        "visibility": request.visibility,
        "restriction": request.restriction,
        "tags": "",
    }
    if request.resource_address:
        form["resourceAddress"] = request.resource_address
    if request.preview_url:
        form["previewUrl"] = request.preview_url
    if request.target_course_id:
        form["targetCourseId"] = request.target_course_id
    if request.folder_id:
        form["folderId"] = request.folder_id
    if request.page_count:
        form["metaData"] = json.dumps({"pageCount": request.page_count})
    return form


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or "request failed"


def _material_id(response: httpx.Response) -> str:
    if response.is_error:
        raise CreationFailed(_error_message(response), response.status_code)
    try:
        body = response.json()
    except ValueError as exc:
        raise CreationFailed("response was not JSON", response.status_code) from exc

    data = body.get("data", body) if isinstance(body, dict) else None
    material_id = data.get("id") if isinstance(data, dict) else None
    if not material_id:
        raise CreationFailed("response carried no material id", response.status_code)
    return str(material_id)
