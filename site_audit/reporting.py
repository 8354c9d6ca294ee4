"""
JSON report files and test-report attachments.

A report sink is anything with an ``attach`` method; scenarios receive it as
an argument and never look it up globally. ``AttachmentStore`` is the
in-memory sink handed out by the ``report_sink`` pytest fixture.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Protocol, Union

log = logging.getLogger(__name__)

JSON = "application/json"
TEXT = "text/plain"

PathLike = Union[str, Path]


class ReportSink(Protocol):
    def attach(
        self,
        name: str,
        *,
        body: Optional[str] = None,
        path: Optional[PathLike] = None,
        content_type: str = JSON,
    ) -> None:
        ...


@dataclass
class Attachment:
    name: str
    content_type: str
    body: Optional[str] = None
    path: Optional[Path] = None

    def read(self) -> str:
        """Body of the attachment, loading it from disk for path attachments."""
        if self.body is not None:
            return self.body
        if self.path is not None:
            return self.path.read_text(encoding="utf-8")
        return ""


@dataclass
class AttachmentStore:
    attachments: List[Attachment] = field(default_factory=list)

    def attach(self, name, *, body=None, path=None, content_type=JSON):
        if (body is None) == (path is None):
            raise ValueError("attach() needs exactly one of body or path")
        self.attachments.append(
            Attachment(
                name=name,
                content_type=content_type,
                body=body,
                path=Path(path) if path is not None else None,
            )
        )

    def names(self) -> List[str]:
        return [a.name for a in self.attachments]

    def get(self, name: str) -> Attachment:
        for attachment in self.attachments:
            if attachment.name == name:
                return attachment
        raise KeyError(name)

    def __len__(self):
        return len(self.attachments)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def ensure_directory_exists(dir_path: PathLike) -> Path:
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _write_json(file_path: PathLike, data: Any) -> Path:
    path = Path(file_path)
    path.write_text(to_json(data), encoding="utf-8")
    log.info("Wrote %s", path)
    return path


def save_report(file_path: PathLike, data: Any, sink: ReportSink, label: str) -> Path:
    """Write ``data`` as JSON to ``file_path`` and attach the same JSON inline."""
    path = _write_json(file_path, data)
    sink.attach(label, body=to_json(data), content_type=JSON)
    return path


def save_and_attach_log(file_path: PathLike, data: Any, sink: ReportSink, label: str) -> Path:
    """Write ``data`` as JSON to ``file_path`` and attach the file by path.

    The parent directory must already exist.
    """
    path = _write_json(file_path, data)
    sink.attach(label, path=path, content_type=JSON)
    return path


def attach_to_test_report(sink: ReportSink, label: str, data: Any, content_type: str = JSON) -> None:
    body = data if isinstance(data, str) else to_json(data)
    sink.attach(label, body=body, content_type=content_type)
