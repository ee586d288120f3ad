import pytest
from flask import Flask

from ballotbox.authentication import rbac
from ballotbox.authentication.credentials import CredentialService
from ballotbox.security.input_validator import InputValidator


@pytest.fixture
def validator():
    return InputValidator()


@pytest.mark.parametrize("profile,permission,allowed", [
    ({'role': 'super_admin'}, rbac.Permission.AUDIT, True),
    ({'role': 'admin'}, rbac.Permission.RESET, True),
    ({'role': 'admin'}, rbac.Permission.EXPORT, False),
    ({'role': 'admin', 'permissions': ['view', 'reset']}, rbac.Permission.EDIT, False),
    ({'role': 'admin', 'permissions': ['export']}, 'export', True),
    ({'role': 'unknown'}, rbac.Permission.VIEW, True),
    (None, rbac.Permission.DELETE, True),
])
def test_has_permission(profile, permission, allowed):
    assert rbac.rbac_service.has_permission(profile, permission) == allowed


def test_unknown_stored_permissions_are_ignored():
    perms = rbac.rbac_service.effective_permissions({'permissions': ['view', 'fly']})
    assert perms == [rbac.Permission.VIEW]


def _protected_app():
    app = Flask(__name__)
    app.secret_key = "test"

    @app.route("/test")
    @rbac.require_permission(rbac.Permission.RESET)
    def test_view():
        return "ok"
    return app


def test_require_permission_allows():
    app = _protected_app()
    with app.test_client() as client:
        with client.session_transaction() as sess:
            sess["admin"] = {'username': 'panitia', 'role': 'admin', 'permissions': ['reset']}
        resp = client.get("/test")
        assert resp.status_code == 200
        assert resp.data == b"ok"


def test_require_permission_denies():
    app = _protected_app()
    with app.test_client() as client:
        with client.session_transaction() as sess:
            sess["admin"] = {'username': 'viewer', 'role': 'admin', 'permissions': ['view']}
        assert client.get("/test").status_code == 403


def test_require_permission_needs_session():
    with _protected_app().test_client() as client:
        assert client.get("/test").status_code == 401


def test_plain_credentials():
    service = CredentialService()

    stored = service.make_secret('admin123')
    assert stored == 'admin123'
    assert service.verify('admin123', stored)
    assert not service.verify('admin124', stored)
    assert not service.verify(None, stored)


def test_hashed_credentials_verify_both_forms():
    service = CredentialService(hash_secrets=True)

    stored = service.make_secret('admin123')
    assert service.is_hashed(stored)
    assert service.verify('admin123', stored)
    assert not service.verify('wrong', stored)
    # Plain secrets from older data still verify
    assert service.verify('panitia123', 'panitia123')
    assert not service.verify('x', '$argon2id$not-a-hash')


def test_empty_secret_is_rejected():
    with pytest.raises(ValueError):
        CredentialService().make_secret('')


def test_sanitize_string(validator):
    assert validator.sanitize_string("<b>Hello</b>") == "Hello"
    assert validator.sanitize_string("<script>alert('x')</script>Name") == "Name"
    assert validator.sanitize_string("Tom & Jerry") == "Tom & Jerry"
    assert validator.sanitize_string("x" * 300, max_length=10) == "x" * 10
    with pytest.raises(ValueError):
        validator.sanitize_string(42)


@pytest.mark.parametrize("username,valid", [
    ("guru01", True),
    ("  guru01 ", True),
    ("admin.panitia", True),
    ("ab", False),
    ("<script>", False),
    (None, False),
])
def test_validate_username(validator, username, valid):
    assert validator.validate_username(username) == valid


def test_validate_vote_request(validator):
    assert validator.validate_vote_request({'voter_id': '3', 'candidate_id': 2}) == (3, 2)

    for bad in ({'voter_id': 1}, {'voter_id': 0, 'candidate_id': 1},
                {'voter_id': True, 'candidate_id': 1}, {'voter_id': 1.5, 'candidate_id': 1}, []):
        with pytest.raises(ValueError):
            validator.validate_vote_request(bad)


def test_validate_admin_data(validator):
    cleaned = validator.validate_admin_data({
        'username': ' operator ', 'password': 'pw', 'name': 'Op <i>One</i>',
        'permissions': [' View ', 'RESET'], 'ignored': 'x',
    })
    assert cleaned == {'username': 'operator', 'password': 'pw', 'name': 'Op One',
                       'permissions': ['view', 'reset']}

    assert validator.validate_admin_data({'email': 'a@b.c'}, partial=True) == {'email': 'a@b.c'}
    with pytest.raises(ValueError):
        validator.validate_admin_data({'username': 'operator'})
    with pytest.raises(ValueError):
        validator.validate_admin_data({'permissions': 'all'}, partial=True)
