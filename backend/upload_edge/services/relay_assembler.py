"""
Relay Assembler Service

Rebuilds the captured form as a new multipart payload and forwards it to
the image store's upload endpoint.
"""

import logging
from typing import BinaryIO, Dict, List, Optional, Tuple

import httpx
from starlette.concurrency import iterate_in_threadpool

from upload_edge.middleware.error_handler import RelayError
from upload_edge.models import CapturedForm

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

FileEntry = Tuple[str, Tuple[str, BinaryIO, str]]


def body_headers(encoded: httpx.Request) -> Dict[str, str]:
    """Content headers of an encoded request, to resend with a streamed body."""
    return {
        name: encoded.headers[name]
        for name in ("Content-Type", "Content-Length")
        if name in encoded.headers
    }


class RelayPayload:
    """
    Multipart payload for one relayed request.

    Holds the text values and open file handles; closing the payload
    closes every handle. Use as a context manager.
    """

    def __init__(self):
        self.data: Dict[str, List[str]] = {}
        self.files: List[FileEntry] = []

    def add_field(self, name: str, value: str) -> None:
        self.data.setdefault(name, []).append(value)

    def add_file(self, field_name: str, filename: str, handle: BinaryIO, content_type: str) -> None:
        self.files.append((field_name, (filename, handle, content_type)))

    def close(self) -> None:
        for _, (_, handle, _) in self.files:
            handle.close()

    def __enter__(self) -> "RelayPayload":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class RelayAssembler:
    """
    Bridge between the upload edge and the image store.

    Args:
        backend_url: Image store base URL (e.g. http://localhost:8080)
        upload_path: Upload endpoint path on the image store
        timeout: Timeout for the relayed request in seconds
        transport: Optional httpx transport, used to route requests in-process
    """

    def __init__(
        self,
        backend_url: str,
        upload_path: str = "/api/upload",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.backend_url = backend_url
        self.upload_path = upload_path
        self.timeout = timeout
        self.transport = transport

    @property
    def upload_url(self) -> str:
        return f"{self.backend_url.rstrip('/')}/{self.upload_path.lstrip('/')}"

    def build_payload(self, captured: CapturedForm) -> RelayPayload:
        """
        Re-append every captured field and file to a new payload.

        Repeated text values keep their order; files keep their field name,
        original filename and declared media type.

        Raises:
            RelayError: If a captured file cannot be opened
        """
        payload = RelayPayload()
        try:
            for name, values in captured.fields.items():
                for value in values:
                    payload.add_field(name, value)
                    logger.debug(f"Added field: {name} = {value}")

            for field_name, parts in captured.files.items():
                for index, part in enumerate(parts):
                    handle = open(part.temp_path, "rb")
                    payload.add_file(
                        field_name,
                        part.filename or f"file-{index}",
                        handle,
                        part.content_type or DEFAULT_CONTENT_TYPE,
                    )
                    logger.debug(
                        f"Added file: {field_name} = {part.filename} ({part.content_type})"
                    )

        except OSError as e:
            payload.close()
            raise RelayError(f"Failed to read captured file: {e}")

        return payload

    async def relay(self, captured: CapturedForm) -> dict:
        """
        POST the captured form to the image store.

        The multipart body is encoded by httpx and streamed from the thread
        pool, so reading the captured files never blocks the event loop.

        Returns:
            dict: The image store's JSON response, unmodified

        Raises:
            RelayError: On network failure, timeout, non-2xx status or a
                non-JSON response body
        """
        with self.build_payload(captured) as payload:
            logger.info(
                f"Relaying {len(payload.files)} file(s) to {self.upload_url}"
            )
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    encoded = client.build_request(
                        "POST", self.upload_url, data=payload.data, files=payload.files
                    )
                    response = await client.post(
                        self.upload_url,
                        content=iterate_in_threadpool(iter(encoded.stream)),
                        headers=body_headers(encoded),
                    )
            except httpx.HTTPError as e:
                logger.error(f"Relay to {self.upload_url} failed: {e!r}")
                raise RelayError(str(e) or type(e).__name__)

        if not response.is_success:
            logger.error(f"Backend responded with status: {response.status_code}")
            raise RelayError(f"Backend responded with status: {response.status_code}")

        try:
            return response.json()
        except ValueError:
            logger.error("Backend returned a non-JSON response")
            raise RelayError("Backend returned a non-JSON response")
