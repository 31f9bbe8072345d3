import logging
import re
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.logging import log_event
from app.salestrack.db.models import AppVersion
from app.salestrack.repos.releases import AppVersionRepository

DEFAULT_PLATFORM = "win32"
DEFAULT_ARCHITECTURE = "x64"

logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"^\d+")


def parse_version(version: str) -> list[int]:
    parts = []
    for chunk in version.strip().lstrip("vV").split("."):
        match = _LEADING_DIGITS.match(chunk)
        parts.append(int(match.group()) if match else 0)
    return parts


def compare_versions(left: str, right: str) -> int:
    """-1, 0 or 1; missing components count as zero so ``1.2`` equals ``v1.2.0``."""
    a, b = parse_version(left), parse_version(right)
    width = max(len(a), len(b))
    a += [0] * (width - len(a))
    b += [0] * (width - len(b))
    if a > b:
        return 1
    if a < b:
        return -1
    return 0


@dataclass
class PlatformRelease:
    platform: str
    architecture: str
    download_url: str
    file_size: int = 0
    status: str = "published"
    is_critical: bool = False
    minimum_version: str | None = None


class ReleaseService:
    def __init__(self, db):
        self.db = db
        self.repo = AppVersionRepository(db)

    @staticmethod
    def platforms_from_payload(payload: dict) -> list[PlatformRelease]:
        platforms = payload.get("platforms") or []
        if platforms:
            return [
                PlatformRelease(
                    platform=item["platform"],
                    architecture=item.get("architecture") or DEFAULT_ARCHITECTURE,
                    download_url=item["download_url"],
                    file_size=item.get("file_size") or 0,
                    status=item.get("status") or "published",
                    is_critical=bool(item.get("is_critical")),
                    minimum_version=item.get("minimum_version"),
                )
                for item in platforms
            ]
        if payload.get("download_url") and payload.get("platform"):
            return [
                PlatformRelease(
                    platform=payload["platform"] or DEFAULT_PLATFORM,
                    architecture=payload.get("architecture") or DEFAULT_ARCHITECTURE,
                    download_url=payload["download_url"],
                    file_size=payload.get("file_size") or 0,
                    status="draft" if payload.get("is_draft") else "published",
                    is_critical=bool(payload.get("is_critical")),
                    minimum_version=payload.get("minimum_version"),
                )
            ]
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "Either platforms array or legacy platform data is required"},
        )

    def publish(self, payload: dict) -> list[AppVersion]:
        version = (payload.get("version") or "").strip()
        release_notes = (payload.get("release_notes") or "").strip()
        if not version or not release_notes:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "Missing required fields: version and release_notes"},
            )
        platforms = self.platforms_from_payload(payload)
        if self.repo.list_by_version(version):
            raise AppError(ErrorCatalog.RELEASE_VERSION_EXISTS, details={"version": version})

        now = datetime.utcnow()
        rows = [
            AppVersion(
                version=version,
                release_notes=release_notes,
                platform=item.platform,
                architecture=item.architecture,
                download_url=item.download_url,
                file_size=item.file_size,
                status=item.status,
                is_critical=item.is_critical,
                minimum_version=item.minimum_version,
                is_latest=item.status == "published",
                published_at=now if item.status == "published" else None,
            )
            for item in platforms
        ]
        try:
            rows = self.repo.create_many(rows)
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.RELEASE_VERSION_EXISTS, details={"version": version}) from exc
        log_event(
            logger,
            "release_published",
            version=version,
            platforms=[row.platform for row in rows],
        )
        return rows

    def check_for_updates(self, platform: str, current_version: str | None = None) -> dict:
        latest = self.repo.get_latest_published(platform)
        if latest is None:
            return {"has_update": False, "current_version": current_version or "unknown", "latest_version": None}
        is_newer = compare_versions(latest.version, current_version) > 0 if current_version else True
        return {
            "has_update": is_newer,
            "current_version": current_version or "unknown",
            "latest_version": latest if is_newer else None,
        }

    def list_releases(self, *, platform: str | None = None, status: str | None = None) -> list[AppVersion]:
        return self.repo.list(platform=platform, status=status)
