"""
Cliente para interactuar con la API REST de Cloudinary.
"""
import hashlib
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from app.core.config import settings
from app.shared.constants.athlete_constants import MediaType
from app.shared.exceptions.domain import MediaOperationException


DESTROY_OK_RESULTS = ("ok", "not found")


@dataclass
class UploadResult:
    """Respuesta relevante de una subida."""

    url: str
    public_id: str
    bytes: Optional[int] = None
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None


def resource_type_for(media_type: str) -> str:
    return "video" if media_type == MediaType.VIDEO.value else "image"


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """
    Firma de Cloudinary: SHA-1 de los parametros ordenados
    ``k=v&k2=v2`` seguidos del secreto.
    """
    payload = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    """
    Cliente de subida y borrado de media firmado con la API key.

    ``transport`` permite inyectar un transporte httpx (tests).
    """

    def __init__(
        self,
        cloud_name: str = None,
        api_key: str = None,
        api_secret: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.timeout = timeout or settings.MEDIA_REQUEST_TIMEOUT_SECONDS
        self.base_url = f"https://api.cloudinary.com/v1_1/{self.cloud_name}"
        self._transport = transport

    def _signed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        signed = {k: v for k, v in params.items() if v not in (None, "")}
        signed["timestamp"] = int(time.time())
        signed["signature"] = sign_params(signed, self.api_secret)
        signed["api_key"] = self.api_key
        return signed

    async def _post(
        self,
        path: str,
        data: Dict[str, Any],
        public_id: str,
        files: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data=data, files=files)
        except httpx.HTTPError as e:
            logger.error(f"Error de red contra Cloudinary ({path}) para '{public_id}': {e}")
            raise MediaOperationException(f"Media provider unreachable: {e}", public_id=public_id) from e

        body = _json_object(response)
        if response.status_code >= 400:
            error = body.get("error") if body else None
            if isinstance(error, dict):
                reason = error.get("message") or response.text
            else:
                reason = error or response.text
            logger.error(f"Cloudinary respondio {response.status_code} ({path}) para '{public_id}': {reason}")
            raise MediaOperationException(
                f"Media provider error: {reason}", public_id=public_id, status=response.status_code
            )
        if body is None:
            logger.error(f"Cloudinary respondio sin JSON ({path}) para '{public_id}'")
            raise MediaOperationException(
                "Invalid response from media provider", public_id=public_id, status=response.status_code
            )
        return body

    async def upload(
        self,
        content: bytes,
        filename: str,
        folder: str,
        public_id: str,
        resource_type: str = "image",
        tags: Optional[List[str]] = None,
        context: Optional[Dict[str, str]] = None,
    ) -> UploadResult:
        """
        Sube un archivo.

        Args:
            content: Bytes del archivo
            filename: Nombre original
            folder: Carpeta de destino
            public_id: ID publico completo
            resource_type: 'image' o 'video'
            tags: Etiquetas opcionales
            context: Metadatos clave=valor (p.ej. caption)

        Raises:
            MediaOperationException: Si la subida falla
        """
        params = self._signed({
            "folder": folder,
            "public_id": public_id,
            "tags": ",".join(tags) if tags else None,
            "context": _format_context(context),
        })
        body = await self._post(
            f"{resource_type}/upload",
            data=params,
            public_id=public_id,
            files={"file": (filename, content)},
        )
        logger.info(f"Media subida a Cloudinary: {body.get('public_id', public_id)}")
        return UploadResult(
            url=body.get("secure_url") or body.get("url", ""),
            public_id=body.get("public_id", public_id),
            bytes=body.get("bytes"),
            format=body.get("format"),
            width=body.get("width"),
            height=body.get("height"),
            duration=body.get("duration"),
        )

    async def destroy(self, public_id: str, resource_type: str = "image") -> str:
        """
        Borra un archivo.

        Returns:
            str: Resultado del proveedor ('ok', 'not found', ...)
        """
        body = await self._post(
            f"{resource_type}/destroy",
            data=self._signed({"public_id": public_id, "invalidate": "true"}),
            public_id=public_id,
        )
        return body.get("result", "")

    async def update_metadata(
        self,
        public_id: str,
        resource_type: str = "image",
        tags: Optional[List[str]] = None,
        context: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Reemplaza etiquetas y/o contexto de un archivo ya subido."""
        params = self._signed({
            "public_id": public_id,
            "type": "upload",
            "tags": ",".join(tags) if tags is not None else None,
            "context": _format_context(context),
        })
        return await self._post(f"{resource_type}/explicit", data=params, public_id=public_id)


def _format_context(context: Optional[Dict[str, str]]) -> Optional[str]:
    if not context:
        return None
    return "|".join(f"{key}={value}" for key, value in context.items())


def _json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """Cuerpo JSON si es un objeto; None en cualquier otro caso."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
