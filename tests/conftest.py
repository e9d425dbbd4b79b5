import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep a developer .env out of the test run; config is read at import time.
os.environ["DISABLE_DOTENV"] = "1"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    `app.main` is not imported so no startup hook touches the developer database.
    """
    # Must be set before importing app.database so engine init doesn't choke on empty DATABASE_URL.
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"

    from backend.app import database as db

    engine = create_engine(
        os.environ["DATABASE_URL"],
        connect_args={"check_same_thread": False},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies and background
    # notification workers use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.services.application_status import seed_statuses

    session = TestingSessionLocal()
    try:
        seed_statuses(session)
    finally:
        session.close()

    from backend.app.api import application as application_api
    from backend.app.api import notification as notification_api
    from backend.app.api import scoring as scoring_api

    fastapi_app = FastAPI()
    fastapi_app.include_router(scoring_api.router)
    fastapi_app.include_router(application_api.router)
    fastapi_app.include_router(application_api.status_router)
    fastapi_app.include_router(notification_api.router)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app import database

    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> list[dict]:
    """Capture stage emails instead of opening an SMTP connection."""
    from backend.app.services import emailer

    sent: list[dict] = []

    def _fake_send_email(*, to_email: str, subject: str, body: str) -> None:
        sent.append({"to_email": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(emailer, "send_email", _fake_send_email)
    return sent


@pytest.fixture()
def make_user(db_session):
    """Create a user row and return (user, headers) with a bearer token for it."""
    from backend.app.models.user import User
    from backend.app.utils.jwt import create_access_token

    counter = {"n": 0}

    def _make(role: str = "hr", name: str | None = None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        token = create_access_token({"sub": str(user.id), "role": user.role, "name": user.name})
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def hr_headers(make_user) -> dict:
    _, headers = make_user("hr")
    return headers


@pytest.fixture()
def pipeline(db_session):
    """
    Factory for the job/candidate data the scoring engine reads.

    `pipeline.job(required=[...], preferred=[...])` creates a job under a new
    position with the named skills; `pipeline.candidate(skills={name: years},
    qualifications=n)` creates a candidate; `pipeline.apply(job, candidate)`
    creates the application in its initial status.
    """
    from backend.app.models.candidate import Candidate, CandidateQualification, CandidateSkill
    from backend.app.models.job import Job, JobSkill
    from backend.app.models.position import Position
    from backend.app.models.skill import Skill
    from backend.app.services.transitions import create_application

    class _Pipeline:
        def __init__(self):
            self.db = db_session
            self._n = 0

        def _next(self) -> int:
            self._n += 1
            return self._n

        def skill(self, name: str) -> Skill:
            skill = self.db.query(Skill).filter(Skill.name == name).first()
            if not skill:
                skill = Skill(name=name)
                self.db.add(skill)
                self.db.flush()
            return skill

        def position(self, title: str = "Engineer") -> Position:
            position = Position(title=title)
            self.db.add(position)
            self.db.commit()
            self.db.refresh(position)
            return position

        def job(self, *, required=(), preferred=(), title: str | None = None, position: Position | None = None) -> Job:
            position = position or self.position()
            job = Job(position_id=position.id, title=title or f"Job {self._next()}")
            self.db.add(job)
            self.db.flush()
            for name in required:
                self.db.add(JobSkill(job_id=job.id, skill_id=self.skill(name).id, required=True))
            for name in preferred:
                self.db.add(JobSkill(job_id=job.id, skill_id=self.skill(name).id, required=False))
            self.db.commit()
            self.db.refresh(job)
            return job

        def candidate(self, *, skills=None, qualifications: int = 0, user_id: int | None = None) -> Candidate:
            n = self._next()
            candidate = Candidate(full_name=f"Candidate {n}", email=f"candidate{n}@example.com", user_id=user_id)
            self.db.add(candidate)
            self.db.flush()
            for name, years in (skills or {}).items():
                self.db.add(
                    CandidateSkill(candidate_id=candidate.id, skill_id=self.skill(name).id, years_of_experience=years)
                )
            for i in range(qualifications):
                self.db.add(CandidateQualification(candidate_id=candidate.id, name=f"Degree {i + 1}"))
            self.db.commit()
            self.db.refresh(candidate)
            return candidate

        def apply(self, job: Job, candidate: Candidate):
            return create_application(self.db, job_id=job.id, candidate_id=candidate.id)

    return _Pipeline()
