"""Stand-ins for the query server and for a DB-API driver

FakeSession answers the posts of ProtocolTransport from per-request
scripts and records every request it gets. FakeDriver behaves like a
pyodbc module.
"""
import json
import time


class FakeResponse:

    def __init__(self, body, status_code=200):
        self.text = body if isinstance(body, str) else json.dumps(body)
        self.status_code = status_code
        self.encoding = None

    @property
    def ok(self):
        return self.status_code < 400


def result_set(columns, rows, update_count=-1):
    """Avatica shaped prepareAndExecute response"""
    return {
        "response": "executeResults",
        "missingStatement": False,
        "results": [{
            "response": "resultSet",
            "connectionId": "conn",
            "statementId": 1,
            "ownStatement": True,
            "signature": {"columns": columns, "sql": None},
            "firstFrame": {"offset": 0, "done": True, "rows": rows},
            "updateCount": update_count,
        }],
    }


def avatica_column(name, type_name):
    return {"columnName": name, "label": name, "type": {"type": "scalar", "name": type_name}}


def update_result(update_count):
    return {"response": "executeResults", "results": [{"response": "resultSet", "updateCount": update_count}]}


def remote_error(message, code=1012, state="42M03"):
    return {
        "response": "error",
        "exceptions": [f"org.apache.phoenix.schema.TableNotFoundException: {message}\n\tat ..."],
        "errorMessage": message,
        "errorCode": code,
        "sqlState": state,
        "severity": "ERROR",
    }


class FakeSession:
    """requests.Session stand-in

    Replies are scripted per request name with on(). Each post takes the
    next reply of its script; the last reply of a script repeats. A reply
    is a dict (200 JSON body), a FakeResponse, an exception to raise, or
    a callable getting the request body.
    """

    def __init__(self):
        self.headers = {}
        self.requests = []
        self.timestamps = []
        self.urls = []
        self.closed = False
        self._scripts = {}

    def on(self, request_name, *replies):
        self._scripts[request_name] = list(replies)
        return self

    def sent(self, request_name):
        return [body for body in self.requests if body["request"] == request_name]

    def post(self, url, data=None, timeout=None):
        body = json.loads(data.decode('utf8'))
        self.urls.append(url)
        self.requests.append(body)
        self.timestamps.append(time.monotonic())

        reply = self._next_reply(body)
        if callable(reply) and not isinstance(reply, type):
            reply = reply(body)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, FakeResponse):
            return reply
        return FakeResponse(reply)

    def _next_reply(self, body):
        script = self._scripts.get(body["request"])
        if script:
            return script.pop(0) if len(script) > 1 else script[0]
        if body["request"] == "openConnection":
            return {"response": "openConnection", "rpcMetadata": {"serverAddress": "phoenix:8765"}}
        if body["request"] == "closeConnection":
            return {"response": "closeConnection"}
        return {"response": "executeResults", "results": []}

    def close(self):
        self.closed = True


class FakeDriverError(Exception):
    pass


class FakeDriverInterfaceError(FakeDriverError):
    pass


class FakeDriverDatabaseError(FakeDriverError):
    pass


class FakeDriverOperationalError(FakeDriverDatabaseError):
    pass


class FakeDriverProgrammingError(FakeDriverDatabaseError):
    pass


class FakeCursor:

    def __init__(self, driver):
        self.driver = driver
        self.description = None
        self.rowcount = -1
        self.closed = False
        self._rows = []

    def execute(self, sql):
        self.driver.executed.append(sql)
        if self.driver.execute_error is not None:
            raise self.driver.execute_error
        self.description = self.driver.description
        self.rowcount = self.driver.rowcount
        self._rows = list(self.driver.rows)

    def fetchmany(self, size):
        rows, self._rows = self._rows[:size], self._rows[size:]
        return rows

    def close(self):
        self.closed = True
        self.driver.closed_cursors += 1


class FakeConnection:

    def __init__(self, driver):
        self.driver = driver
        self.closed = False

    def cursor(self):
        return FakeCursor(self.driver)

    def close(self):
        self.closed = True


class FakeDriver:
    """DB-API module stand-in, shaped like pyodbc"""

    Error = FakeDriverError
    InterfaceError = FakeDriverInterfaceError
    DatabaseError = FakeDriverDatabaseError
    OperationalError = FakeDriverOperationalError
    ProgrammingError = FakeDriverProgrammingError

    def __init__(self, connect_error=None):
        self.__name__ = 'fakeodbc'
        self.connect_error = connect_error
        self.connect_calls = []
        self.connections = []
        self.executed = []
        self.execute_error = None
        self.description = None
        self.rows = []
        self.rowcount = -1
        self.closed_cursors = 0

    def connect(self, connection_string, **kwargs):
        self.connect_calls.append((connection_string, kwargs))
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection(self)
        self.connections.append(connection)
        return connection


def open_intervals(timestamps):
    return [later - earlier for earlier, later in zip(timestamps, timestamps[1:])]
