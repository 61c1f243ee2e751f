import dataclasses
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from greetings.greeting import Greeting
from greetings.greeting import GreetingService


class TestClass:

    def test_default_name(self, greeting_service):
        greeting = greeting_service.greet()
        assert greeting.id == 1
        assert greeting.content == "Hello, Stranger!"

    def test_explicit_name(self, greeting_service):
        assert greeting_service.greet("World").content == "Hello, World!"

    def test_empty_name_not_defaulted(self, greeting_service):
        assert greeting_service.greet("").content == "Hello, !"
        assert greeting_service.greet(None).content == "Hello, Stranger!"

    def test_name_kept_verbatim(self, greeting_service):
        assert greeting_service.greet("世界").content == "Hello, 世界!"
        assert greeting_service.greet("  ").content == "Hello,   !"
        assert greeting_service.greet("<b>{name}</b>").content == "Hello, <b>{name}</b>!"

    def test_same_content_new_id(self, greeting_service):
        first = greeting_service.greet("World")
        second = greeting_service.greet("World")
        assert first.content == second.content == "Hello, World!"
        assert (first.id, second.id) == (1, 2)
        assert first != second

    def test_sequential_ids(self, greeting_service):
        ids = [greeting_service.greet(str(i)).id for i in range(100)]
        assert ids == list(range(1, 101))
        assert greeting_service.count == 100

    def test_services_are_independent(self):
        service1 = GreetingService()
        service2 = GreetingService()
        service1.greet()
        service1.greet()
        assert service2.greet().id == 1
        assert service1.count == 2

    def test_greeting_immutable(self, greeting_service):
        greeting = greeting_service.greet("World")
        with pytest.raises(dataclasses.FrozenInstanceError):
            greeting.id = 10
        assert greeting.asdict() == {'id': 1, 'content': "Hello, World!"}
        assert list(greeting.asdict()) == ['id', 'content']

    def test_greeting_value(self):
        assert Greeting(1, "Hello, World!") == Greeting(id=1, content="Hello, World!")

    def test_concurrent_ids(self, greeting_service):
        with ThreadPoolExecutor(max_workers=16) as executor:
            greetings = list(executor.map(lambda i: greeting_service.greet(f"user{i}"), range(1000)))
        ids = [greeting.id for greeting in greetings]
        assert len(set(ids)) == 1000
        assert set(ids) == set(range(1, 1001))
        assert greeting_service.count == 1000

    def test_concurrent_ids_increasing_per_thread(self, greeting_service):
        results = {}
        barrier = threading.Barrier(8)

        def greet_many(index):
            barrier.wait()
            results[index] = [greeting_service.greet().id for _ in range(250)]

        threads = [threading.Thread(target=greet_many, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        all_ids = [i for ids in results.values() for i in ids]
        assert sorted(all_ids) == list(range(1, 2001))
        for ids in results.values():
            assert ids == sorted(ids)

    def test_custom_template(self):
        service = GreetingService(template="Bonjour, {name} !", default_name="Inconnu")
        assert service.greet().content == "Bonjour, Inconnu !"
