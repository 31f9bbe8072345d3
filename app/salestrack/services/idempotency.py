import hashlib
import json
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.metrics import metrics
from app.salestrack.db.models import IdempotencyRecord
from app.salestrack.repos.idempotency import IdempotencyRepository

IDEMPOTENCY_HEADER = "Idempotency-Key"
IDEMPOTENCY_RESULT_HEADER = "X-Idempotency-Result"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict


class IdempotencyContext:
    def __init__(self, record: IdempotencyRecord, repo: IdempotencyRepository):
        self._record = record
        self._repo = repo

    def _store(self, *, state: str, status_code: int, response_body: dict) -> None:
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.state = state
        self._record.updated_at = datetime.utcnow()
        self._repo.save(self._record)

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._store(state="succeeded", status_code=status_code, response_body=response_body)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        # drop whatever the failed request left pending before persisting the outcome
        self._repo.db.rollback()
        self._store(state="failed", status_code=status_code, response_body=response_body)


class IdempotencyService:
    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        payload_bytes = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload_bytes).hexdigest()

    def start(
        self,
        *,
        organization_id: str,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        lookup = {
            "organization_id": organization_id,
            "endpoint": endpoint,
            "method": method,
            "idempotency_key": idempotency_key,
        }
        existing = self.repo.get_by_key(**lookup)
        if existing:
            return None, self._replay(existing, request_hash)

        record = IdempotencyRecord(request_hash=request_hash, state="in_progress", **lookup)
        try:
            record = self.repo.save(record)
        except IntegrityError:
            self.repo.db.rollback()
            return None, self._replay(self.repo.get_by_key(**lookup), request_hash)
        return IdempotencyContext(record, self.repo), None

    @staticmethod
    def _replay(existing: IdempotencyRecord | None, request_hash: str) -> IdempotencyReplay:
        if existing is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        if existing.request_hash != request_hash:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD)
        if existing.state == "in_progress" or existing.response_body is None or existing.status_code is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        return IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def begin_idempotent_request(request: Request, db, *, organization_id: str, payload: dict) -> JSONResponse | None:
    """Register an optional Idempotency-Key; return the stored response on replay."""
    idempotency_key = request.headers.get(IDEMPOTENCY_HEADER)
    if not idempotency_key:
        return None
    context, replay = IdempotencyService(db).start(
        organization_id=organization_id,
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=IdempotencyService.fingerprint(payload),
    )
    if replay:
        metrics.increment_idempotency_replay()
        return JSONResponse(
            status_code=replay.status_code,
            content=replay.response_body,
            headers={IDEMPOTENCY_RESULT_HEADER: ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )
    request.state.idempotency = context
    return None


def complete_idempotent_request(request: Request, *, status_code: int, response_body: dict) -> None:
    context = getattr(request.state, "idempotency", None)
    if context is not None:
        context.record_success(status_code=status_code, response_body=response_body)
