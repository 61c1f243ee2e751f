import itertools
import logging
import typing as t
from functools import partial

from flask import Blueprint as FlaskBlueprint
from flask import Flask
from flask import current_app
from flask.blueprints import BlueprintSetupState
from werkzeug.datastructures import ImmutableDict

from .config import Config
from .error import register_error_handlers
from .utils import HTTP_METHODS
from .utils import add_entry_routes
from .utils import trim_underscores
from .wrappers import GreetingsRequest
from .wrappers import GreetingsResponse


#
# Decorators
#


def entry(fun: t.Callable = None, path: str = None, stage: t.Union[str, t.Iterable[str]] = None) -> t.Callable:
    """Decorator to create a microservice entry point from function name.

    :param fun: the entry function.
    :param path: route path used instead of the one computed from the function name.
    :param stage: entry defined only for this stage(s).
    """
    if fun is None:
        return partial(entry, path=path, stage=stage)

    def get_path(start):
        name_ = fun.__name__[start:]
        name_ = trim_underscores(name_)  # to allow several functions with different args
        return name_.replace('_', '/')

    name = fun.__name__.upper()
    for method in HTTP_METHODS:
        if name == method:
            computed_path = ''
            break
        if name.startswith(f'{method}_'):
            computed_path = get_path(len(f'{method}_'))
            break
    else:
        method = 'POST'
        computed_path = get_path(0)

    stage = [] if stage is None else stage

    fun.__ENTRY_METHOD = method
    fun.__ENTRY_PATH = computed_path if path is None else path.strip('/')
    fun.__ENTRY_STAGES = [stage] if isinstance(stage, str) else list(stage)

    return fun


#
# Classes
#


class Blueprint(FlaskBlueprint):
    """ Represents a blueprint, list of routes that will be added to microservice when registered.
    """

    def __init__(self, name: str = None, **kwargs):
        """Initialize a blueprint.

        :param kwargs: Other Flask blueprint parameters.
        """
        import_name = self.__class__.__name__.lower()
        super().__init__(name or import_name, import_name, **kwargs)

    @property
    def logger(self) -> logging.Logger:
        return current_app.logger

    def make_setup_state(self, app: "TechMicroService", options: t.Dict, *args) -> BlueprintSetupState:
        """Stores creation state for deferred initialization."""
        state = super().make_setup_state(app, options, *args)

        # Defer blueprint route initialization.
        if not options.get('hide_routes', False):
            func = partial(add_entry_routes, state.app, state)
            app.deferred_init_routes_functions = itertools.chain(app.deferred_init_routes_functions, (func,))

        return state


class TechMicroService(Flask):
    """Simple tech microservice.

    Entries are the methods decorated by :func:`entry`, routes are created at first use of the microservice.
    """

    def __init__(self, name: str = None, config: Config = None, **kwargs) -> None:
        """ Initialize a technical microservice.
        :param name: Name used to identify the microservice.
        :param config: Hosting configuration (loaded from the environment if not defined).
        :param kwargs: Other Flask parameters.
        """
        self.service_config = config or Config.load()

        self.default_config = ImmutableDict({
            **self.default_config,
            "FLASK_SKIP_DOTENV": True,
        })

        name = name or self.__class__.__name__.lower()
        super().__init__(import_name=name, static_folder=None, **kwargs)

        self.request_class = GreetingsRequest
        self.response_class = GreetingsResponse
        self.json.sort_keys = False
        self.logger.setLevel(self.service_config.log_level)

        self.deferred_init_routes_functions: t.Iterable[t.Callable] = []
        self._routes_initialized = False

        register_error_handlers(self)

    def app_context(self):
        """Override to initialize the microservice routes.
        """
        self.init_routes()
        return super().app_context()

    @property
    def routes(self) -> t.List[str]:
        """Returns the list of routes defined in the microservice.
        """
        self.init_routes()
        return [rule.rule for rule in self.url_map.iter_rules()]

    def init_routes(self):
        """Finalize the app initialization.
        """
        if not self._routes_initialized:
            self._routes_initialized = True
            add_entry_routes(self)
            for fun in self.deferred_init_routes_functions:
                fun()

    def __call__(self, environ: t.Dict[str, t.Any], start_response: t.Callable[[t.Any], None]):
        """Main microservice entry point.
        """
        self.init_routes()
        return self.wsgi_app(environ, start_response)
