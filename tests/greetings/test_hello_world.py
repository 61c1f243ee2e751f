from flask import json

from greetings import HelloWorldMicroService
from greetings import create_app
from greetings.config import Config


class TestClass:

    def test_routes(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_request_context():
            assert '/hello-world' in app.routes

    def test_default_name(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world')
            assert response.status_code == 200
            assert response.headers['Content-Type'] == 'application/json'
            assert response.json == {'id': 1, 'content': "Hello, Stranger!"}

    def test_name(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world?name=World')
            assert response.status_code == 200
            assert response.json == {'id': 1, 'content': "Hello, World!"}

    def test_empty_name(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world?name=')
            assert response.status_code == 200
            assert response.json == {'id': 1, 'content': "Hello, !"}

    def test_unicode_name(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world', query_string={'name': "世界"})
            assert response.status_code == 200
            assert response.json['content'] == "Hello, 世界!"

    def test_json_shape(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world?name=World')
            data = json.loads(response.get_data(as_text=True))
            assert list(data) == ['id', 'content']
            assert isinstance(data['id'], int)
            assert isinstance(data['content'], str)

    def test_sequential_ids(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            ids = [c.get('/hello-world?name=World').json['id'] for _ in range(5)]
            assert ids == [1, 2, 3, 4, 5]
        assert app.greeting_service.count == 5

    def test_shared_service(self, config, greeting_service):
        greeting_service.greet()
        app = HelloWorldMicroService(greeting_service, config=config)
        with app.test_client() as c:
            assert c.get('/hello-world').json['id'] == 2

    def test_unexpected_parameter(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world?other=1')
            assert response.status_code == 422
            assert response.json['status'] == 422
        assert app.greeting_service.count == 0

    def test_multiple_names(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.get('/hello-world?name=a&name=b')
            assert response.status_code == 422
            assert "Multiple values" in response.json['message']

    def test_method_not_allowed(self, config):
        app = HelloWorldMicroService(config=config)
        with app.test_client() as c:
            response = c.post('/hello-world')
            assert response.status_code == 405
            assert response.json['error'] == "Method Not Allowed"
            assert 'GET' in response.headers['Allow']

    def test_create_app_same_port(self):
        app, management_app = create_app(Config())
        assert management_app is None
        with app.test_client() as c:
            assert c.get('/hello-world').status_code == 200
            response = c.get('/actuator/health')
            assert response.status_code == 200
            assert response.json == {'status': 'UP'}

    def test_create_app_separate_port(self):
        app, management_app = create_app(Config(server_port=8080, management_port=8081))
        assert management_app is not None
        with app.test_client() as c:
            assert c.get('/hello-world').status_code == 200
            assert c.get('/actuator/health').status_code == 404
        with management_app.test_client() as c:
            assert c.get('/actuator/health').json == {'status': 'UP'}
            assert c.get('/hello-world').status_code == 404

    def test_create_app_shared_service(self):
        app, management_app = create_app(Config(management_port=8081))
        with app.test_client() as c:
            c.get('/hello-world')
            c.get('/hello-world?name=World')
        with management_app.test_client() as c:
            assert c.get('/actuator/metrics').json == {'greetings.issued': 2}

    def test_sample(self, samples_dir):
        from app import app, management_app

        assert app.service_config.server_port == 9000
        assert management_app.service_config.management_port == 9001
        with app.test_client() as c:
            assert c.get('/hello-world?name=World').json == {'id': 1, 'content': "Hello, World!"}
