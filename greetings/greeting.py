import dataclasses
import threading
import typing as t
from dataclasses import dataclass

DEFAULT_NAME = "Stranger"
TEMPLATE = "Hello, {name}!"


@dataclass(frozen=True)
class Greeting:
    """Greeting returned by the hello world entry."""

    id: int
    content: str

    def asdict(self) -> t.Dict[str, t.Any]:
        return dataclasses.asdict(self)


class GreetingService:
    """Issues greetings with a strictly increasing identifier.

    The service may be shared between request threads: the counter increment and its read are done
    under the same lock, so no identifier is ever issued twice or skipped.
    """

    def __init__(self, template: str = TEMPLATE, default_name: str = DEFAULT_NAME):
        self.template = template
        self.default_name = default_name
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        """Number of greetings issued so far."""
        with self._lock:
            return self._counter

    def greet(self, name: t.Optional[str] = None) -> Greeting:
        """Returns a new greeting.

        :param name: the name to greet, the default name is used only if not given (an empty name is kept).
        """
        with self._lock:
            self._counter += 1
            greeting_id = self._counter

        if name is None:
            name = self.default_name
        return Greeting(id=greeting_id, content=self.template.format(name=name))
