import typing as t

from .blueprint.management import DEFAULT_MANAGEMENT_PREFIX
from .blueprint.management import Management
from .config import Config
from .greeting import GreetingService
from .microservice import TechMicroService
from .microservice import entry


class HelloWorldMicroService(TechMicroService):
    DOC_MD = """
#### Hello World

Greets the caller with a uniquely identified message.

    GET /hello-world?name=World

    {"id": 1, "content": "Hello, World!"}

Without `name` parameter, the caller is greeted as `Stranger`.
"""

    def __init__(self, greeting_service: GreetingService = None, name: str = 'hello-world', **kwargs):
        super().__init__(name=name, **kwargs)
        self.greeting_service = greeting_service or GreetingService()

    @entry(path='hello-world')
    def get_hello_world(self, name: str = None):
        """Returns a new greeting.

        :param name: the name to greet ('Stranger' if not given).
        """
        greeting = self.greeting_service.greet(name)
        self.logger.debug(f"Greeting {greeting.id} issued : {greeting.content}")
        return greeting.asdict()


class ManagementMicroService(TechMicroService):
    """Microservice serving only the management endpoints of another microservice."""

    def __init__(self, target: TechMicroService, greeting_service: GreetingService = None,
                 name: str = 'management', **kwargs):
        super().__init__(name=name, config=target.service_config, **kwargs)
        management = Management(greeting_service=greeting_service, target=target)
        self.register_blueprint(management, url_prefix=DEFAULT_MANAGEMENT_PREFIX)


def create_app(config: Config = None, greeting_service: GreetingService = None) \
        -> t.Tuple[HelloWorldMicroService, t.Optional[ManagementMicroService]]:
    """Creates the hello world microservice and, if served on another port, its management microservice.

    Both microservices share the same greeting service.
    """
    config = config or Config.load()
    greeting_service = greeting_service or GreetingService()

    app = HelloWorldMicroService(greeting_service, config=config)
    if not config.separate_management:
        app.register_blueprint(Management(greeting_service=greeting_service), url_prefix=DEFAULT_MANAGEMENT_PREFIX)
        return app, None

    management_app = ManagementMicroService(app, greeting_service=greeting_service)
    return app, management_app
