"""Content stores that hand items to the link-icon run and accept field updates."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional
from urllib.parse import quote

from logging_setup import get_logger
from utils.api import ContentAPI
from utils.fs import read_json, write_json_atomic


def _matches(record: Dict[str, Any], template: str, name: Optional[str]) -> bool:
    if str(record.get("template") or "").lower() != template.lower():
        return False
    return name is None or record.get("name") == name


# --- Export directory -------------------------------------------------------

@dataclass
class ExportItem:
    """One <export_root>/items/*.json record; set_field rewrites the file."""

    path: Path
    id: str
    template: str
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def get_field(self, name: str) -> Optional[str]:
        value = self.fields.get(name)
        return value if isinstance(value, str) else None

    def set_field(self, name: str, value: str) -> None:
        record = read_json(self.path)
        record.setdefault("fields", {})[name] = value
        write_json_atomic(self.path, record)
        self.fields[name] = value


class ExportContentStore:
    def __init__(self, export_root: Path) -> None:
        self.export_root = export_root
        self.items_dir = export_root / "items"
        self.unreadable: list[Path] = []
        self.log = get_logger(artifact="export-store")

    def items(self, template: str, name: Optional[str] = None) -> Iterator[ExportItem]:
        if not self.items_dir.is_dir():
            return
        # sorted for stable run order
        for path in sorted(self.items_dir.glob("*.json")):
            try:
                record = read_json(path)
            except (OSError, ValueError) as exc:
                self.unreadable.append(path)
                self.log.warning("skipping unreadable item file %s err=%s", path, exc, extra={"path": str(path)})
                continue
            if not isinstance(record, dict) or not _matches(record, template, name):
                continue
            yield ExportItem(
                path=path,
                id=str(record.get("id") or path.stem),
                template=str(record.get("template")),
                name=str(record.get("name") or ""),
                fields=dict(record.get("fields") or {}),
            )


# --- REST API ---------------------------------------------------------------

@dataclass
class ApiItem:
    api: ContentAPI
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def endpoint(self) -> str:
        return f"/items/{quote(self.id, safe='')}"

    def get_field(self, name: str) -> Optional[str]:
        value = self.fields.get(name)
        return value if isinstance(value, str) else None

    def set_field(self, name: str, value: str) -> None:
        self.api.put(self.endpoint, json={"fields": {name: value}})
        self.fields[name] = value


class ApiContentStore:
    """Items come from GET /items?template=&name= (paginated); writes go to PUT /items/{id}."""

    def __init__(self, api: ContentAPI) -> None:
        self.api = api

    def items(self, template: str, name: Optional[str] = None) -> Iterator[ApiItem]:
        params: Dict[str, Any] = {"template": template}
        if name is not None:
            params["name"] = name
        data = self.api.get("/items", params=params)
        records = data if isinstance(data, list) else []
        for record in records:
            if not isinstance(record, dict):
                continue
            item_id = record.get("id")
            if item_id is None:
                continue
            yield ApiItem(api=self.api, id=str(item_id), fields=dict(record.get("fields") or {}))


__all__ = ["ApiContentStore", "ApiItem", "ExportContentStore", "ExportItem"]
