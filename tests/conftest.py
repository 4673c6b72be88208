import os
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ALLOW_INSECURE_HTTP", "true")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")
os.environ.setdefault("ADMIN_TOKEN", "admin-token")
os.environ.setdefault("SIGNED_URL_SECRET", "url-secret")
os.environ.setdefault("RATE_LIMIT_LOGIN_PER_MINUTE", "1000")
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ota_server.db.base import Base
from ota_server.models import Bundle, Release
from ota_server.services.storage import LocalArtifactStore


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_release(db):
    def _make_release(
        runtime_version="1.0.0",
        path="release-1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        is_active=True,
        file_path="b1.bundle",
        file_hash="abc123",
        commit_hash=None,
        with_bundle=True,
    ) -> Release:
        release = Release(
            runtime_version=runtime_version,
            path=path,
            commit_hash=commit_hash,
            is_active=is_active,
            created_at=created_at,
            published_at=created_at,
        )
        db.add(release)
        db.flush()
        if with_bundle:
            db.add(Bundle(release_id=release.id, file_path=file_path, hash=file_hash, size=12))
        db.commit()
        db.refresh(release)
        return release

    return _make_release


@pytest.fixture
def artifact_store(tmp_path):
    return LocalArtifactStore(base_dir=str(tmp_path), base_url="http://testserver", secret="url-secret")


@pytest.fixture
def client(session_factory, artifact_store):
    from ota_server.api.deps import get_artifact_store, get_db
    from ota_server.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_artifact_store] = lambda: artifact_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": "admin-token"}
