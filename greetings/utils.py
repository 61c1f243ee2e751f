import inspect
import os
import platform
import sys
import types
import typing as t
from functools import update_wrapper
from importlib.metadata import version
from inspect import Parameter
from inspect import Signature
from inspect import signature
from pathlib import Path

import click
from flask import current_app
from flask import make_response
from werkzeug.exceptions import UnprocessableEntity

from .globals import request

if t.TYPE_CHECKING:
    from flask.blueprints import BlueprintSetupState
    from flask.sansio.scaffold import Scaffold

HTTP_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS']

DEFAULT_DEV_STAGE = "dev"
STAGE_ENV_VAR = "GREETINGS_STAGE"


def create_entry_proxy(scaffold: "Scaffold", func, func_args: t.List[str], func_kwargs: t.List[str],
                       func_generic_kwargs: t.Optional[str]):
    """Creates the view function calling an entry.

    :param scaffold: The microservice or blueprint object.
    :param func: The initial function proxied.
    :param func_args: The declared function args.
    :param func_kwargs: The declared function kwargs.
    :param func_generic_kwargs: The function generic kwargs if defined (usually **kwargs).
    """

    def proxy(**view_args):
        """
        Adds kwargs parameters to the proxied function.

        :param view_args: Request path parameters.
        """

        def check_keyword_expected(param_name):
            """Alerts when more parameters than expected are defined in request."""
            if param_name not in func_kwargs:
                _err_msg = f"TypeError: got an unexpected keyword argument '{param_name}'"
                raise UnprocessableEntity(_err_msg)

        def as_fun_params(values: dict, flat=True):
            """Set parameters as simple value or list of values if multiple defined.
           :param values: Dict of values.
           :param flat: If true, the list values of lenth 1 is return as single value.
            """
            params: t.Dict[str, t.Any] = {}
            for k, v in values.items():
                try:
                    check_keyword_expected(k)
                except UnprocessableEntity:
                    if not func_generic_kwargs:
                        raise
                params[k] = v

            # Flatten single value
            if flat:
                params = {k: v[0] if isinstance(v, list) and len(v) == 1 else v for k, v in params.items()}

            return params

        # Get keyword arguments from request parameters or body
        if func_kwargs or func_generic_kwargs:

            # Adds parameters from query parameters
            if request.method == 'GET':
                get_data = request.args.to_dict(False)
                view_args = dict(**view_args, **as_fun_params(get_data))

            # Adds parameters from body
            elif request.method in ['POST', 'PUT', 'DELETE']:
                try:
                    if request.is_form_urlencoded or request.is_multipart:
                        post_data = request.form.to_dict(False)
                        view_args = dict(**view_args, **as_fun_params(post_data))
                    elif request.is_json:
                        if request.data:
                            post_data = request.get_json()
                            if not isinstance(post_data, dict):
                                if len(func_kwargs) != 1:
                                    msg = f"If request payload is not a dict, there must be only one kwarg {type(post_data)}"
                                    raise UnprocessableEntity(msg)
                                post_data = {func_kwargs[0]: post_data}
                            view_args = {**view_args, **as_fun_params(post_data, False)}
                    else:
                        post_data = request.values.to_dict(False)
                        view_args = dict(**view_args, **as_fun_params(post_data))
                except UnprocessableEntity:
                    raise
                except Exception as e:
                    raise UnprocessableEntity(str(e))

            else:
                err_msg = f"Keyword arguments are not permitted for {request.method} method."
                raise UnprocessableEntity(err_msg)

        elif not func_args:
            if request.query_string:
                err_msg = f"TypeError: got an unexpected arguments (query: {request.query_string!r})"
                raise UnprocessableEntity(err_msg)

        view_args = as_typed_kwargs(func, view_args)
        result = current_app.ensure_sync(func)(scaffold, **view_args)

        return make_response(result) if result is not None else \
            make_response("", 204, {'content-type': 'text/plain'})

    return update_wrapper(proxy, func)


def add_entry_routes(app, state: t.Optional["BlueprintSetupState"] = None) -> None:
    """ Creates all routes for a microservice or a registered blueprint.

    :param app: the microservice.
    :param state: the blueprint setup state if the entries are defined in a blueprint.
    """
    scaffold = state.blueprint if state else app
    stage = app.service_config.stage

    for fun in entry_functions(scaffold):
        stages = get_entry_annotations(fun, '__ENTRY_STAGES')
        if stages and stage not in stages:
            continue

        method = get_entry_annotations(fun, '__ENTRY_METHOD')
        entry_path = get_entry_annotations(fun, '__ENTRY_PATH')

        # Positional parameters are path parameters, keyword ones are request parameters
        func_args = []
        func_kwargs = []
        func_generic_kwargs = None
        for index, (name, param) in enumerate(signature(fun).parameters.items()):
            if index == 0:
                continue
            if param.kind == Parameter.VAR_KEYWORD:
                func_generic_kwargs = name
            elif param.kind == Parameter.VAR_POSITIONAL:
                continue
            elif is_arg_parameter(param):
                func_args.append(name)
                entry_path = path_join(entry_path, f"<{name}>")
            else:
                func_kwargs.append(name)

        proxy = create_entry_proxy(scaffold, fun, func_args, func_kwargs, func_generic_kwargs)
        if state:
            setattr(proxy, '__ENTRY_FROM_BLUEPRINT', state.blueprint.name)
            state.add_url_rule(make_absolute(entry_path, ''), view_func=proxy, methods=[method])
        else:
            app.add_url_rule(make_absolute(entry_path, ''), view_func=proxy, methods=[method])


def entry_functions(scaffold) -> t.List[t.Callable]:
    """Returns the entry functions defined in the scaffold class, sorted by name."""
    functions = []
    for name, fun in inspect.getmembers(scaffold.__class__, inspect.isfunction):
        if getattr(fun, '__ENTRY_METHOD', None):
            functions.append(fun)
    return functions


def path_join(*args: str) -> str:
    """ Joins given arguments into an entry route.
    Slashes are stripped for each argument.
    """

    reduced = (x.lstrip('/').rstrip('/') for x in args if x)
    return str(Path('/').joinpath(*reduced))[1:]


def make_absolute(route: str, url_prefix: str) -> str:
    """Creates an absolute route.
    """
    path = Path('/')
    if url_prefix:
        path = path / url_prefix
    if route:
        path = path / route
    return str(path)


def trim_underscores(name: str) -> str:
    """Removes starting and ending _ in name.
    """
    if name:
        while name.startswith('_'):
            name = name[1:]
        while name.endswith('_'):
            name = name[:-1]
    return name


def is_arg_parameter(param: Parameter) -> bool:
    """ Checks if the parameter is an arg (not a kwarg)."""
    return param.default == inspect.Parameter.empty


def as_typed_kwargs(func: t.Callable, kwargs: dict):
    def get_typed_value(name: str, parameter_type, val):
        if isinstance(parameter_type, types.UnionType):
            for arg in t.get_args(parameter_type):
                if arg is type(None):
                    continue
                try:
                    return get_typed_value(name, arg, val)
                except UnprocessableEntity:
                    raise
                except (TypeError, ValueError):
                    pass
            raise TypeError()
        origin = t.get_origin(parameter_type)
        if origin is t.Union:
            for arg in t.get_args(parameter_type):
                if arg is not type(None):
                    return get_typed_value(name, arg, val)
            raise TypeError()
        if origin is list:
            arg = t.get_args(parameter_type)[0]
            if isinstance(val, list):
                return [arg(v) for v in val]
            return [arg(val)]
        if origin is None:
            if parameter_type is Signature.empty:
                return val
            if isinstance(val, list):
                msg = f"Multiple values for '{name}' query parameters are not allowed"
                raise UnprocessableEntity(msg)
            if issubclass(parameter_type, bool):
                return val if isinstance(val, bool) else str_to_bool(val)
            return val if isinstance(val, parameter_type) else parameter_type(val)
        return val

    typed_kwargs = {**kwargs}
    parameters = signature(func).parameters
    try:
        for name, value in kwargs.items():
            parameter = parameters.get(name)
            if parameter is not None:
                typed_kwargs[name] = get_typed_value(name, parameter.annotation, value)
    except UnprocessableEntity:
        raise
    except (TypeError, ValueError) as e:
        raise UnprocessableEntity(str(e))
    return typed_kwargs


def str_to_bool(val: str) -> bool:
    return val.lower() in ['true', '1', 'yes']


def get_app_stage():
    """Defined in the environment (dev stage by default)."""
    return os.getenv(STAGE_ENV_VAR, DEFAULT_DEV_STAGE)


def get_env_filenames(stage):
    return [".env", ".flaskenv", f".env.{stage}", f".flaskenv.{stage}"]


def get_entry_annotations(func, key, default=None):
    """Entry function is at least annotated by __ENTRY_METHOD."""
    if getattr(func, '__ENTRY_METHOD', None):
        return getattr(func, key, default)
    if getattr(func, '__wrapped__', None):
        return get_entry_annotations(func.__wrapped__, key, default)
    return default


def get_signature(func):
    """Returns the entry signature without the self parameter."""
    sig = ""
    params = inspect.signature(func).parameters
    for i, (k, p) in enumerate(params.items()):
        if i == 0:
            continue
        sp = k
        if p.annotation != Parameter.empty:
            sp = f"{sp}:{getattr(p.annotation, '__name__', str(p.annotation))}"
        if p.default != Parameter.empty:
            sp = f"{sp}={p.default}"
        sig = f"{sp}" if i == 1 else f"{sig}, {sp}"
    return f"({sig})"


def get_system_info():
    flask_version = version("flask")

    flask_info = f"flask {flask_version}"
    python_info = f"python {sys.version_info[0]}.{sys.version_info[1]}.{sys.version_info[2]}"
    platform_system = platform.system().lower()
    platform_release = platform.release()
    platform_info = f"{platform_system} {platform_release}"
    return f"{flask_info}, {python_info}, {platform_info}"


def show_stage_banner(stage: str = DEFAULT_DEV_STAGE):
    click.secho(f" * Stage: {stage}", fg="green")
