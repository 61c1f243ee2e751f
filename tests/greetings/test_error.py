from datetime import datetime

from werkzeug.exceptions import Conflict

from greetings import TechMicroService
from greetings import entry
from greetings.config import Config


class ErrorMS(TechMicroService):

    def __init__(self, **kwargs):
        super().__init__('error', config=Config(), **kwargs)

    @entry
    def get_conflict(self):
        raise Conflict("Already greeted")

    @entry
    def get_crash(self):
        raise RuntimeError("unexpected")


class TestClass:

    def test_not_found(self):
        app = ErrorMS()
        with app.test_client() as c:
            response = c.get('/unknown')
            assert response.status_code == 404
            assert response.headers['Content-Type'] == 'application/json'
            body = response.json
            assert set(body) == {'timestamp', 'status', 'error', 'message', 'path'}
            assert body['status'] == 404
            assert body['error'] == "Not Found"
            assert body['path'] == '/unknown'
            assert datetime.fromisoformat(body['timestamp'])

    def test_http_exception(self):
        app = ErrorMS()
        with app.test_client() as c:
            response = c.get('/conflict')
            assert response.status_code == 409
            assert response.json['error'] == "Conflict"
            assert response.json['message'] == "Already greeted"

    def test_internal_error(self, caplog):
        app = ErrorMS()
        with app.test_client() as c:
            response = c.get('/crash')
            assert response.status_code == 500
            assert response.json['status'] == 500
            assert response.json['error'] == "Internal Server Error"
            assert response.json['path'] == '/crash'
        assert "unexpected" in caplog.text
