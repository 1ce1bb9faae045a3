from __future__ import annotations

import os
import tempfile
from typing import Generator, Any

# 앱 import 전에 설정: 업로드 저장소를 임시 디렉터리로
os.environ.setdefault("POCKETLEDGER_ENV", "test")
os.environ.setdefault("POCKETLEDGER_STORAGE_DIR", tempfile.mkdtemp(prefix="pocketledger_storage_"))

import pytest
from sqlalchemy.orm import sessionmaker

from pocketledger.core.database import Base, get_db, make_engine
from pocketledger.main import app
from pocketledger import models
from pocketledger.services.auth_service import AuthService

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # 사용자 환경을 건드리지 않도록 임시 파일 SQLite 사용
    fd, path = tempfile.mkstemp(prefix="pocketledger_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    # 운영과 같은 FK/WAL pragma 적용
    eng = make_engine(test_db_url)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # 매 테스트마다 깨끗한 상태를 보장하기 위해 전체 초기화/시드
    # 간단 시드: demo user + 프로필, 기본 카테고리 7종, Cash 계좌
    AuthService(session).sign_up(DEMO_EMAIL, DEMO_PASSWORD, "Demo")

    try:
        yield session
    finally:
        session.close()
        # 테이블 데이터 정리 (SQLAlchemy 2.x 스타일)
        with engine.begin() as conn:
            # FK 가 켜져 있으므로 자식 테이블부터 삭제
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def demo_user(db_session) -> models.User:
    return db_session.query(models.User).filter_by(email=DEMO_EMAIL).one()


@pytest.fixture()
def auth_headers(db_session, demo_user) -> dict[str, str]:
    token = AuthService(db_session).issue_session(demo_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_client(client, auth_headers):
    client.headers.update(auth_headers)
    yield client


@pytest.fixture()
def other_user(db_session) -> models.User:
    """Second user for ownership checks."""
    user, _ = AuthService(db_session).sign_up("other@example.com", "other-password", "Other")
    return user
