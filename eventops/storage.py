# eventops/storage.py
import logging
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

import requests
from fastapi import HTTPException
from fastapi.responses import FileResponse, RedirectResponse

from eventops.config import Settings, get_settings

log = logging.getLogger("eventops.storage")


class StorageError(Exception):
    pass


def safe_filename(filename: str) -> str:
    return filename.replace("/", "_").replace("\\", "_").strip() or "upload"


class LocalStorage:
    """
    Files live on disk:
      <root>/<department_id>/<timestamp>_<filename>
    The stored reference is that path.
    """

    def __init__(self, root):
        self.root = Path(root)

    def save(self, department_id: int, filename: str, content: bytes, content_type: str) -> str:
        dept_dir = self.root / str(department_id)
        dept_dir.mkdir(parents=True, exist_ok=True)

        stored_name = f"{datetime.utcnow().strftime('%Y%m%d%H%M%S%f')}_{safe_filename(filename)}"
        stored_path = dept_dir / stored_name
        try:
            with stored_path.open("wb") as f:
                f.write(content)
        except OSError as exc:
            raise StorageError(f"Could not write {stored_path}") from exc
        return str(stored_path)

    def response(self, document):
        file_path = Path(document.file_name)
        if not file_path.is_absolute():
            file_path = Path.cwd() / file_path

        if not file_path.exists():
            raise HTTPException(status_code=404, detail="Document file not found on server")

        return FileResponse(
            path=str(file_path),
            filename=document.name,
            media_type=document.content_type or "application/octet-stream",
        )

    def delete(self, ref: str) -> None:
        p = Path(ref)
        try:
            if p.exists():
                p.unlink()
        except OSError:
            # the row goes away regardless; an orphaned file is only logged
            log.warning("Could not delete stored file %s", ref, exc_info=True)


class RemoteBlobStorage:
    """
    Blob service reachable over HTTP: PUT <api>/<name> returns {"url": ...}.
    Fetches redirect the browser to that URL.
    """

    def __init__(self, api_url: str, token: str = "", timeout: float = 30.0):
        if not api_url:
            raise ValueError("EVENTOPS_BLOB_API_URL is required for the remote storage backend")
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self, content_type=None):
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def save(self, department_id: int, filename: str, content: bytes, content_type: str) -> str:
        target = f"{self.api_url}/{department_id}/{quote(safe_filename(filename))}"
        try:
            resp = requests.put(
                target,
                data=content,
                headers=self._headers(content_type),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            url = resp.json().get("url")
        except (requests.RequestException, ValueError) as exc:
            raise StorageError(f"Blob upload to {target} failed") from exc
        if not url:
            raise StorageError("Blob service returned no url")
        return url

    def response(self, document):
        return RedirectResponse(url=document.file_name, status_code=307)

    def delete(self, ref: str) -> None:
        try:
            resp = requests.post(
                f"{self.api_url}/delete",
                json={"urls": [ref]},
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException:
            log.warning("Could not delete blob %s", ref, exc_info=True)


def build_storage(settings: Settings):
    if settings.storage_backend == "remote":
        return RemoteBlobStorage(settings.blob_api_url, settings.blob_token)
    if settings.storage_backend != "local":
        log.warning("Unknown storage backend %r, using local", settings.storage_backend)
    return LocalStorage(settings.storage_dir)


def get_storage():
    return build_storage(get_settings())
