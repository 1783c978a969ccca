import shutil
import tempfile
import unittest
from pathlib import Path
from uuid import uuid4

import httpx
from werkzeug.security import generate_password_hash

from platemate import create_app, db
from platemate.food_catalog import FoodServices, OpenFoodFactsClient, UsdaClient
from platemate.models import User

PASSWORD = "pass12345"


def offline_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "offline"})


def build_food_services(handler=offline_handler) -> FoodServices:
    transport = httpx.MockTransport(handler)
    return FoodServices(
        OpenFoodFactsClient(http_client=httpx.Client(transport=transport)),
        UsdaClient("test-key", http_client=httpx.Client(transport=transport)),
    )


class AppTestCase(unittest.TestCase):
    """Fresh app on a throwaway SQLite file per test case class."""

    @classmethod
    def setUpClass(cls):
        cls.work_dir = Path(tempfile.mkdtemp(prefix="platemate-tests-"))
        cls.db_file = cls.work_dir / f"platemate-{uuid4().hex}.db"
        cls.app = create_app(
            {
                "TESTING": True,
                "SECRET_KEY": "test-secret",
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_file.as_posix()}",
                "UPLOAD_FOLDER": str(cls.work_dir / "uploads"),
                "OPENAI_API_KEY": None,
            }
        )
        cls.app.extensions["platemate.food"] = build_food_services()

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        shutil.rmtree(cls.work_dir, ignore_errors=True)

    def setUp(self):
        with self.app.app_context():
            db.drop_all()
            db.create_all()
        self.client = self.app.test_client()

    def create_user(self, email: str = "user1@example.com") -> int:
        with self.app.app_context():
            user = User(email=email, password_hash=generate_password_hash(PASSWORD), first_name="Test")
            db.session.add(user)
            db.session.commit()
            return user.id

    def login(self, email: str = "user1@example.com", client=None):
        client = client or self.client
        response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        self.assertEqual(response.status_code, 200)
        return response
