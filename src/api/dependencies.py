from fastapi import HTTPException, Request

from backend.session import ConsoleSession


def get_session(request: Request) -> ConsoleSession:
    """app.state に保持したコンソールセッションを取得する

    Raises:
        HTTPException: セッションが未生成の場合 (503)
    """
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Console session not initialized")
    return session
