import typing as t

from flask import request as flask_request

from .wrappers import GreetingsRequest

request: "GreetingsRequest" = t.cast("GreetingsRequest", flask_request)
