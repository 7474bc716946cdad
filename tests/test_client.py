import threading

import requests

from housecheck.portal.client import DataAccessClient


def test_each_thread_gets_its_own_requests_session():
    client = DataAccessClient(base_url="http://api.invalid")
    main_session = client.session
    seen = []

    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert isinstance(main_session, requests.Session)
    assert client.session is main_session
    assert seen[0] is not main_session


def test_token_is_shared_across_threads():
    client = DataAccessClient(base_url="http://api.invalid")
    client.set_token("abc")
    assert client.has_token
    assert client.headers["Authorization"] == "Bearer abc"
    client.set_token(None)
    assert not client.has_token


def test_injected_session_is_used_everywhere():
    shared = requests.Session()
    client = DataAccessClient(base_url="http://api.invalid", session=shared)
    seen = []
    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()
    assert client.session is shared
    assert seen == [shared]
