import os
import sys
import tempfile
import unittest

# Ensure the flat backend/ modules are importable, before the app reads its settings
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
backend_path = os.path.join(ROOT, "backend")
if backend_path not in sys.path:
    sys.path.insert(0, backend_path)

# Module-level engine and upload dir of the app point at a throwaway location
_RUNTIME_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_RUNTIME_DIR, "app.sqlite")
os.environ["UPLOAD_DIR"] = os.path.join(_RUNTIME_DIR, "images")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ALLOW_ADMIN_REGISTRATION"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from config import settings  # noqa: E402
from database import Base, get_db  # noqa: E402
from main import app  # noqa: E402
from models.category import Category  # noqa: E402
from models.product import Product  # noqa: E402
from models.users import User  # noqa: E402
from utils.hashing import get_password_hash  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class ApiTestCase(unittest.TestCase):
    """Fresh SQLite database per test, served through the real app."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db

        # StaticFiles is bound to this directory when the app module is imported
        self.upload_dir = settings.UPLOAD_DIR

        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        self.engine.dispose()
        self.temp_dir.cleanup()

    # ---------- helpers ----------

    def create_user(self, email, password="secret", role="customer", name="Budi"):
        with self.SessionLocal() as db:
            user = User(name=name, email=email, password_hash=get_password_hash(password), role=role)
            db.add(user)
            db.commit()
            return user.id

    def create_category(self, name="Sembako"):
        with self.SessionLocal() as db:
            category = Category(name=name)
            db.add(category)
            db.commit()
            return category.id

    def create_product(self, category_id, name="Beras 5kg", price=65000.0, stock=5):
        with self.SessionLocal() as db:
            product = Product(name=name, sale_price=price, original_price=price + 5000,
                              stock_quantity=stock, category_id=category_id, image_filename="beras.png")
            db.add(product)
            db.commit()
            return product.id

    def get_product_row(self, product_id):
        with self.SessionLocal() as db:
            return db.get(Product, product_id)

    def login(self, email, password="secret"):
        return self.client.post("/api/login", json={"email": email, "password": password})

    def auth_headers(self, email, password="secret"):
        response = self.login(email, password)
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def admin_headers(self):
        self.create_user("admin@shop.co", role="admin", name="Admin")
        return self.auth_headers("admin@shop.co")

    def customer_headers(self, email="budi@x.com"):
        self.create_user(email)
        return self.auth_headers(email)
