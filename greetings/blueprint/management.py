import inspect
from collections import defaultdict
from textwrap import dedent

import markdown
from flask import current_app
from flask import render_template_string
from werkzeug.exceptions import NotFound

from ..greeting import GreetingService
from ..microservice import Blueprint
from ..microservice import entry
from ..utils import get_entry_annotations
from ..utils import get_signature
from ..version import __version__

DEFAULT_MANAGEMENT_PREFIX = '/actuator'


class Management(Blueprint):
    """Management blueprint to get health and details on the microservice.

    :param greeting_service: the service for which the metrics are given.
    :param target: the microservice documented (the one containing the blueprint if not defined).
    """

    def __init__(self, greeting_service: GreetingService = None, target=None, name: str = 'management', **kwargs):
        super().__init__(name=name, **kwargs)
        self.greeting_service = greeting_service
        self.target = target

    @property
    def target_app(self):
        return self.target or current_app

    @entry
    def get(self):
        """Returns the markdown documentation associated to the microservice.
        """
        app = self.target_app
        md = getattr(app, 'doc_md', None)
        if not md:
            md = getattr(app.__class__, 'DOC_MD', None)
        if not md and app.__class__.__doc__:
            md = inspect.cleandoc(app.__class__.__doc__)
        content = markdown.markdown(md, extensions=['fenced_code']) if md else ""

        routes = dict(sorted(self.get_routes(blueprint="__all__").items()))
        bottom = render_template_string(self.routes_template, routes=routes)

        headers = {
            "Content-Type": 'text/html; charset=utf-8'
        }
        content = self.header_template + '<hr/>' + content + '<hr/>' + bottom + '\n'
        return content, 200, headers

    @entry
    def get_health(self):
        """Returns the health status of the microservice."""
        return {"status": "UP"}

    @entry
    def get_info(self):
        """Returns the name, version and stage of the microservice."""
        app = self.target_app
        return {
            "app": {
                "name": app.name,
                "version": __version__,
                "stage": app.service_config.stage,
            }
        }

    @entry
    def get_metrics(self):
        """Returns the greetings metrics."""
        issued = self.greeting_service.count if self.greeting_service else 0
        return {"greetings.issued": issued}

    @entry
    def get_routes(self, prefix: str = None, blueprint: str = None):
        """Returns the list of entrypoints with signature.

        :param prefix: Prefix path to limit the number of returned routes.
        :param blueprint: Show named blueprint routes if defined ('__all__' or blueprint name).
        """
        app = self.target_app
        if blueprint and (blueprint != '__all__' and blueprint not in app.blueprints):
            raise NotFound(f"Undefined blueprint {blueprint}")

        routes = defaultdict(dict)

        app.init_routes()
        for rule in app.url_map.iter_rules():

            # Must return only prefixed routes
            if prefix and not rule.rule.startswith(prefix):
                continue

            function_called = app.view_functions[rule.endpoint]
            from_blueprint = get_entry_annotations(function_called, '__ENTRY_FROM_BLUEPRINT')

            # Must return only blueprint routes
            if blueprint:
                if blueprint == '__all__' or from_blueprint == blueprint:
                    self.add_route_from_rule(app, routes, rule)
            elif from_blueprint is None:
                self.add_route_from_rule(app, routes, rule)

        return routes

    @staticmethod
    def add_route_from_rule(app, routes, rule):
        route = {}
        for http_method in rule.methods:
            if http_method not in ['HEAD', 'OPTIONS']:
                function_called = app.view_functions[rule.endpoint]
                route[http_method] = {
                    'signature': get_signature(function_called),
                    'endpoint': rule.endpoint,
                }

                from_blueprint = get_entry_annotations(function_called, '__ENTRY_FROM_BLUEPRINT', None)
                if from_blueprint:
                    route[http_method]['blueprint'] = from_blueprint

                doc = inspect.getdoc(function_called)
                if doc:
                    docstring = doc.replace('\n', ' ').split(':param ')
                    route[http_method]['doc'] = docstring[0].strip()
                    if len(docstring) > 1:
                        route[http_method]['params'] = docstring[1:]

        routes[rule.rule].update(route)

    @property
    def header_template(self):
        app = self.target_app
        description = f"{app.name} {__version__} (stage: {app.service_config.stage})"
        return dedent(f"""<div style=\"display:flex;justify-content:space-between;\">
            <span style=\"font-size:xx-large;font-weight:bold\">{app.__class__.__name__}</span>
            </div><div style=\"display:flex;flex-direction:row-reverse;font-size:small;margin-top:5px;\">
            {description}</div>""")

    @property
    def routes_template(self):
        return dedent(
            """<style type="text/css">ul.nobull {list-style-type: none;}</style>
            <ul class="nobull">{% for entry,route in routes.items() %}
                <li>{{ entry }} : <ul>{% for method,info in route.items() %}
                    <li><i>{{ method }}{{ info.signature }}[endpoint: {{info.endpoint}}]</i> : {{ info.doc }}
                    <ul class="nobull">{% for param in info.params %}<li><i>{{ param }}</i>{% endfor %}</ul>
                {% endfor %}</li></ul></li>
            {% endfor %}</ul>"""
        )
