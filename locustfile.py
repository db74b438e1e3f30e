# locustfile.py
from locust import HttpUser, task, between


class WorkloadServiceUser(HttpUser):
    """
    User class that mixes the service's trivial, CPU-bound and I/O-bound routes.
    """
    # Simulate user think time between requests.
    # Each "user" waits between 1 and 2 seconds after a request completes.
    wait_time = between(1, 2)

    # The host should be set when running locust, e.g.:
    # locust -H http://localhost:3000

    @task(4)
    def index(self):
        self._get("/")

    @task(1)
    def about(self):
        self._get("/about")

    @task(2)
    def compute(self):
        """
        Hits the recursive Fibonacci route, which blocks the server's event loop.
        """
        self._get("/compute")

    @task(2)
    def external(self):
        self._get("/external")

    def _get(self, path):
        with self.client.get(path, catch_response=True) as response:
            if response.status_code != 200:
                response.failure(f"Request failed with status code: {response.status_code}, response: {response.text}")
