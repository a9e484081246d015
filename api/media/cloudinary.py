"""
Cloudinary HTTP client helpers.

Used endpoints:
- POST /v1_1/<cloud>/image/upload   -> {"secure_url": "...", "public_id": "..."}
- POST /v1_1/<cloud>/image/destroy  -> {"result": "ok" | "not found"}

Requests are signed: SHA-1 over the sorted `key=value` parameters joined with
`&`, followed by the API secret.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Any

import httpx

DEFAULT_BASE_URL = "https://api.cloudinary.com"
# Incoming transformation: automatic quality and format on every upload.
DEFAULT_TRANSFORMATION = "q_auto,f_auto"


# Media host failures are explicit and separable from other runtime errors.
class MediaError(RuntimeError):
    pass


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if params[key] is not None and params[key] != ""
    )
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class CloudinaryClient:
    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "",
        transformation: str = DEFAULT_TRANSFORMATION,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        cloud_name = (cloud_name or "").strip()
        if not cloud_name or not api_key or not api_secret:
            raise MediaError("Cloudinary credentials are incomplete.")
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.transformation = transformation
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    def _signed(self, params: dict[str, Any]) -> dict[str, str]:
        params = {k: v for k, v in params.items() if v is not None and v != ""}
        params["timestamp"] = int(time.time())
        signature = sign_params(params, self.api_secret)
        return {
            **{k: str(v) for k, v in params.items()},
            "api_key": self.api_key,
            "signature": signature,
        }

    async def _post(self, action: str, data: dict[str, str], files: dict | None = None) -> dict[str, Any]:
        path = f"/v1_1/{self.cloud_name}/image/{action}"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.post(path, data=data, files=files)
        except httpx.HTTPError as exc:
            raise MediaError(f"Cloudinary {action} request failed: {exc}") from exc

        if resp.status_code != 200:
            # Avoid dumping huge bodies; include a small snippet.
            body = resp.text[:500]
            raise MediaError(f"Cloudinary {action} failed: {resp.status_code} {body}")

        try:
            payload: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise MediaError(f"Cloudinary {action} returned invalid JSON.") from exc
        return payload

    def _upload_params(self) -> dict[str, Any]:
        return {"folder": self.folder, "transformation": self.transformation}

    @staticmethod
    def _uploaded(payload: dict[str, Any]) -> UploadedImage:
        url = payload.get("secure_url")
        public_id = payload.get("public_id")
        if not isinstance(url, str) or not url:
            raise MediaError("Cloudinary returned no secure_url.")
        return UploadedImage(url=url, public_id=str(public_id or ""))

    async def upload_bytes(
        self,
        data: bytes,
        *,
        filename: str = "upload",
        content_type: str = "application/octet-stream",
    ) -> UploadedImage:
        if not data:
            raise MediaError("Image is empty.")
        form = self._signed(self._upload_params())
        payload = await self._post(
            "upload",
            form,
            files={"file": (filename, data, content_type)},
        )
        return self._uploaded(payload)

    async def upload_url(self, url: str) -> UploadedImage:
        """
        Let Cloudinary fetch a remote image (used to migrate existing images).
        """
        url = (url or "").strip()
        if not url:
            raise MediaError("Image URL is empty.")
        form = self._signed(self._upload_params())
        form["file"] = url
        payload = await self._post("upload", form)
        return self._uploaded(payload)

    async def destroy(self, public_id: str) -> str:
        public_id = (public_id or "").strip()
        if not public_id:
            raise MediaError("public_id is empty.")
        payload = await self._post("destroy", self._signed({"public_id": public_id}))
        return str(payload.get("result") or "")
