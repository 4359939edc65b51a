import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
import aiofiles
import aiofiles.os
from fastapi import UploadFile

from reward_points.core.config import settings
from reward_points.core.exceptions import NotFoundError, ValidationError
from reward_points.utils.helpers import project_slug

logger = logging.getLogger(__name__)


class AttachmentStorage:
    """Reward entry attachments stored under ``{UPLOAD_PATH}/{employee_id}/{project-slug}/``.

    Manifest entries are ``{"filename", "path", "size"}`` with ``path``
    relative to the upload root. Files are stored under a random prefix so
    a new upload never overwrites a file another manifest still points to.
    """

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_PATH)
        self.allowed_extensions = {ext.lower() for ext in settings.ALLOWED_EXTENSIONS}
        self.max_file_size = settings.MAX_FILE_SIZE

    def project_dir(self, employee_id: str, project_name: Optional[str]) -> Path:
        return self.upload_dir / employee_id / project_slug(project_name)

    def validate_file(self, file: UploadFile) -> int:
        """Validate extension and size, return the size in bytes"""
        if not file.filename:
            raise ValidationError("No filename provided")

        extension = Path(file.filename).suffix.lower()
        if extension not in self.allowed_extensions:
            raise ValidationError(
                f"Unsupported file type {extension or '(none)'}. Allowed: {', '.join(sorted(self.allowed_extensions))}"
            )

        file.file.seek(0, 2)  # Seek to end
        file_size = file.file.tell()
        file.file.seek(0)
        if file_size > self.max_file_size:
            raise ValidationError(f"File {file.filename} too large. Max: {self.max_file_size // (1024*1024)}MB")
        return file_size

    async def save_files(
        self, files: Iterable[UploadFile], employee_id: str, project_name: Optional[str]
    ) -> List[Dict]:
        """Store uploads for an entry and return their manifest entries"""
        files = [f for f in files if f is not None and f.filename]
        if not files:
            return []
        for file in files:
            self.validate_file(file)

        target_dir = self.project_dir(employee_id, project_name)
        await aiofiles.os.makedirs(target_dir, exist_ok=True)

        manifest, seen = [], set()
        for file in files:
            filename = Path(file.filename).name
            if filename in seen:
                continue
            seen.add(filename)
            file_path = target_dir / f"{uuid.uuid4().hex[:8]}_{filename}"
            try:
                content = await file.read()
                async with aiofiles.open(file_path, 'wb') as f:
                    await f.write(content)
            except Exception as e:
                logger.error(f"Error saving attachment {filename} for {employee_id}: {e}")
                await self.delete_files(manifest)
                raise
            manifest.append({
                "filename": filename,
                "path": file_path.relative_to(self.upload_dir).as_posix(),
                "size": len(content),
            })
            logger.info(f"Attachment stored: {file_path}")
        return manifest

    @staticmethod
    def deduplicate(manifest: Iterable[Dict]) -> List[Dict]:
        """Drop repeated filenames, keeping the first occurrence order"""
        seen = set()
        unique = []
        for item in manifest:
            if item["filename"] in seen:
                continue
            seen.add(item["filename"])
            unique.append(dict(item))
        return unique

    @classmethod
    def merge(
        cls, existing: Iterable[Dict], added: Iterable[Dict], to_delete: Iterable[str] = ()
    ) -> List[Dict]:
        """New manifest: existing entries minus ``to_delete`` filenames, then ``added``.

        An added file replaces an existing entry with the same filename.
        """
        to_delete = set(to_delete)
        added = list(added)
        replaced = {item["filename"] for item in added}
        kept = [
            item for item in existing
            if item["filename"] not in to_delete and item["filename"] not in replaced
        ]
        return cls.deduplicate(kept + added)

    async def delete_files(self, manifest: Iterable[Dict]) -> int:
        deleted = 0
        for item in manifest:
            full_path = self._safe_path(item["path"])
            if full_path is None:
                continue
            if await aiofiles.os.path.isfile(full_path):
                await aiofiles.os.remove(full_path)
                deleted += 1
                logger.info(f"Attachment deleted: {full_path}")
            else:
                logger.warning(f"Attachment not found: {full_path}")
        return deleted

    def plan_relocation(
        self,
        manifest: Iterable[Dict],
        employee_id: str,
        new_project: Optional[str],
    ) -> Tuple[List[Dict], List[Tuple[str, str]]]:
        """Manifest pointing into the new project folder, plus the (source, target) moves it needs.

        Nothing is touched on disk; :meth:`apply` performs the moves.
        """
        new_dir = self.project_dir(employee_id, new_project)
        relocated, moves = [], []
        for item in manifest:
            target = (new_dir / Path(item["path"]).name).relative_to(self.upload_dir).as_posix()
            if target != item["path"]:
                moves.append((item["path"], target))
            relocated.append({**item, "path": target})
        return relocated, moves

    async def apply(self, changes: "AttachmentChanges") -> None:
        """Carry out file work planned for a committed manifest change"""
        await self.delete_files(changes.removed)

        for source_path, target_path in changes.moves:
            source = self._safe_path(source_path)
            target = self._safe_path(target_path)
            if source is None or target is None:
                continue
            if not await aiofiles.os.path.isfile(source):
                logger.warning(f"Attachment missing during relocation: {source_path}")
                continue
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            await aiofiles.os.replace(source, target)
            logger.info(f"Attachment moved: {source_path} -> {target_path}")

        for directory in changes.vacated:
            await self.remove_dir_if_empty(directory)

    async def remove_dir_if_empty(self, directory: Path) -> bool:
        if not await aiofiles.os.path.isdir(directory):
            return False
        if await aiofiles.os.listdir(directory):
            return False
        await aiofiles.os.rmdir(directory)
        return True

    def resolve_download(self, relative_path: str) -> Path:
        """Absolute path of a stored attachment; rejects anything outside the upload root"""
        full_path = self._safe_path(relative_path)
        if full_path is None:
            raise ValidationError("Invalid attachment path")
        if not full_path.is_file():
            raise NotFoundError("Attachment not found")
        return full_path

    def _safe_path(self, relative_path: str) -> Optional[Path]:
        root = self.upload_dir.resolve()
        full_path = (root / relative_path.lstrip("/")).resolve()
        if root != full_path and root not in full_path.parents:
            logger.warning(f"Attempted access outside uploads directory: {relative_path}")
            return None
        return full_path


@dataclass
class AttachmentChanges:
    """Disk side of a manifest change, applied only after the database commit"""
    removed: List[Dict] = field(default_factory=list)
    moves: List[Tuple[str, str]] = field(default_factory=list)
    vacated: List[Path] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.removed or self.moves)
