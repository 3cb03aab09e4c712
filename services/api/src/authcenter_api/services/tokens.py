"""令牌签发记录持久化。"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authcenter_api.core.security import IssuedToken
from authcenter_api.errors import TransientError
from authcenter_api.models.auth import TokenRecord

logger = logging.getLogger("authcenter_api.tokens")


def record_issued_tokens(
    db: Session,
    *,
    app_id: str | None,
    subject_kind: str,
    subject_id: int,
    tokens: list[IssuedToken],
) -> None:
    """写入令牌记录并提交，失败时回滚并抛出 `TransientError`。"""
    try:
        for issued in tokens:
            db.add(
                TokenRecord(
                    app_id=app_id,
                    subject_kind=subject_kind,
                    subject_id=subject_id,
                    jti=issued.jti,
                    token=issued.token,
                    token_type=issued.token_type,
                    expires_at=issued.expires_at,
                )
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("token record persist failed subject=%s:%s err=%s", subject_kind, subject_id, exc)
        raise TransientError("令牌记录保存失败。") from exc
