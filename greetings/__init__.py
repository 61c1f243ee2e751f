from .app import HelloWorldMicroService
from .app import create_app
from .greeting import Greeting
from .greeting import GreetingService
from .globals import request
from .microservice import Blueprint
from .microservice import TechMicroService
from .microservice import entry
from .version import __version__

__all__ = (
    'Greeting', 'GreetingService',
    'TechMicroService', 'HelloWorldMicroService', 'Blueprint', 'entry', 'create_app',
    'request',
    '__version__',
)
