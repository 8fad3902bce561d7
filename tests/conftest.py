import re

import pytest
from passlib.hash import pbkdf2_sha256

from canteen import create_app, db
from canteen.errors import UpstreamFailure
from canteen.models import MenuItem, User
from canteen.services.auth import issue_tokens
from canteen.services.sms import SmsGateway, SmsResult, set_sms_gateway


class FakeSmsGateway(SmsGateway):
    """Records outgoing messages, or fails every delivery."""

    provider_name = "fake"

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, phone, message):
        if self.fail:
            raise UpstreamFailure("SMS service unavailable.")
        self.sent.append((phone, message))
        return SmsResult(message_id=f"fake-{len(self.sent)}", provider=self.provider_name)

    def last_code(self, phone=None):
        for to, message in reversed(self.sent):
            if phone is None or to == phone:
                return re.search(r"code is: (\d+)", message).group(1)
        return None


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sms(app):
    gateway = FakeSmsGateway()
    set_sms_gateway(app, gateway)
    return gateway


@pytest.fixture
def failing_sms(app):
    gateway = FakeSmsGateway(fail=True)
    set_sms_gateway(app, gateway)
    return gateway


@pytest.fixture
def make_user(app):
    def _make_user(phone="9000000001", name="Test Student", password=None, role="student",
                   block=None, class_number=None, email=None):
        with app.app_context():
            user = User(
                phone=phone,
                name=name,
                role=role,
                email=email,
                password=pbkdf2_sha256.hash(password) if password else None,
                block=block,
                class_number=class_number,
                profile_completed=bool(block and class_number),
            )
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def auth_header(app):
    def _auth_header(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            access_token, _ = issue_tokens(user)
        return {"Authorization": f"Bearer {access_token}"}
    return _auth_header


@pytest.fixture
def student(make_user):
    return make_user(phone="9111111111", name="Ravi", block="B", class_number="12")


@pytest.fixture
def admin(make_user):
    return make_user(phone="9222222222", name="Admin", role="admin", password="adminpass")


@pytest.fixture
def student_headers(student, auth_header):
    return auth_header(student)


@pytest.fixture
def admin_headers(admin, auth_header):
    return auth_header(admin)


@pytest.fixture
def make_menu_item(app):
    def _make_menu_item(name="Masala Dosa", price=50.0, category="breakfast",
                        is_available=True, preparation_time=10):
        with app.app_context():
            item = MenuItem(
                name=name,
                description=f"Freshly made {name.lower()}",
                price=price,
                category=category,
                image=f"/images/{name.lower().replace(' ', '-')}.jpg",
                is_available=is_available,
                preparation_time=preparation_time,
            )
            db.session.add(item)
            db.session.commit()
            return item.id
    return _make_menu_item
