from __future__ import annotations

from sqlalchemy import select, update

from app.salestrack.db.models import AppVersion


class AppVersionRepository:
    def __init__(self, db):
        self.db = db

    def list_by_version(self, version: str):
        stmt = select(AppVersion).where(AppVersion.version == version)
        return self.db.execute(stmt).scalars().all()

    def get_latest_published(self, platform: str):
        stmt = (
            select(AppVersion)
            .where(AppVersion.platform == platform, AppVersion.status == "published")
            .order_by(AppVersion.is_latest.desc(), AppVersion.created_at.desc())
        )
        return self.db.execute(stmt).scalars().first()

    def list(self, *, platform: str | None = None, status: str | None = None):
        stmt = select(AppVersion)
        if platform:
            stmt = stmt.where(AppVersion.platform == platform)
        if status:
            stmt = stmt.where(AppVersion.status == status)
        return self.db.execute(stmt.order_by(AppVersion.created_at.desc())).scalars().all()

    def create_many(self, releases: list[AppVersion]) -> list[AppVersion]:
        latest_platforms = {release.platform for release in releases if release.is_latest}
        if latest_platforms:
            self.db.execute(
                update(AppVersion)
                .where(AppVersion.platform.in_(latest_platforms), AppVersion.is_latest.is_(True))
                .values(is_latest=False)
            )
        self.db.add_all(releases)
        self.db.commit()
        for release in releases:
            self.db.refresh(release)
        return releases
