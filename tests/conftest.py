"""
In-memory stand-ins for an Oracle session.

FakeDatabase understands just enough of the statements the benchmark issues
(catalog lookup, CREATE/DROP TABLE, DBMS_ERRLOG, INSERT, SELECT COUNT(*))
to let the whole CONNECT -> SETUP -> RUN -> TEARDOWN path run without a
database.
"""

import logging
import re

import pytest

import oracle_commit_benchmark as ocb


class FakeDatabaseError(Exception):
    pass


class FakeDatabase:
    def __init__(self, bad_ids=(), fail_on=None):
        self.tables = {}
        self.statements = []
        self.batches = []
        self.commit_log = []
        self.rollbacks = 0
        self.purges = 0
        self.bad_ids = set(bad_ids)
        # 이 문자열을 포함한 문장은 실패시킴
        self.fail_on = fail_on

    def rows(self, table_name):
        return self.tables[table_name]


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self._result = []
        self.closed = False

    def execute(self, sql, params=None):
        db = self.db
        db.statements.append(sql)
        text = ' '.join(sql.split())
        if db.fail_on and db.fail_on in text:
            raise FakeDatabaseError(f"ORA-00604: error occurred at recursive SQL level 1 ({text})")

        match = re.match(r"SELECT COUNT\(\*\) FROM USER_TABLES WHERE TABLE_NAME = '(\S+)'", text)
        if match:
            self._result = [(1 if match.group(1) in db.tables else 0,)]
            return

        match = re.match(r"SELECT COUNT\(\*\) FROM (\S+)", text)
        if match:
            name = match.group(1)
            if name not in db.tables:
                raise FakeDatabaseError("ORA-00942: table or view does not exist")
            self._result = [(len(db.tables[name]),)]
            return

        match = re.match(r"CREATE TABLE (\S+)", text)
        if match:
            self._create(match.group(1))
            return

        match = re.search(r"DBMS_ERRLOG\.CREATE_ERROR_LOG\('(\S+)', '(\S+)'\)", text)
        if match:
            if match.group(1) not in db.tables:
                raise FakeDatabaseError("ORA-00942: table or view does not exist")
            self._create(match.group(2))
            return

        match = re.match(r"DROP TABLE (\S+)", text)
        if match:
            if match.group(1) not in db.tables:
                raise FakeDatabaseError("ORA-00942: table or view does not exist")
            del db.tables[match.group(1)]
            return

        if text == "PURGE USER_RECYCLEBIN":
            db.purges += 1
            return

        if text.startswith("INSERT"):
            self._insert(text, [params])
            return

        raise AssertionError(f"unexpected statement: {text}")

    def executemany(self, sql, seq_of_params):
        self.db.statements.append(sql)
        self.db.batches.append(len(seq_of_params))
        self._insert(' '.join(sql.split()), seq_of_params)

    def _create(self, name):
        if name in self.db.tables:
            raise FakeDatabaseError("ORA-00955: name is already used by an existing object")
        self.db.tables[name] = []

    def _insert(self, text, rows):
        target = re.search(r"\bINTO (\S+)", text).group(1)
        log = re.search(r"LOG ERRORS INTO (\S+) REJECT LIMIT UNLIMITED", text)
        for row in rows:
            if row[0] in self.db.bad_ids:
                if log:
                    self.db.tables[log.group(1)].append(tuple(row))
                    continue
                raise FakeDatabaseError(f"ORA-01722: invalid number (ID={row[0]})")
            self.db.tables[target].append(tuple(row))

    def fetchone(self):
        return self._result[0] if self._result else None

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.autocommit = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self.db)

    def commit(self):
        self.db.commit_log.append(sum(len(rows) for rows in self.db.tables.values()))

    def rollback(self):
        self.db.rollbacks += 1

    def close(self):
        self.closed = True


class FakeAdapter(ocb.DatabaseAdapter):
    driver_name = 'fake'

    def __init__(self, db=None, fail_connect=False):
        super().__init__()
        self.db = db if db is not None else FakeDatabase()
        self.fail_connect = fail_connect
        self.open_calls = 0
        self.last_connection = None

    def open(self, config):
        self.open_calls += 1
        if self.fail_connect:
            raise ocb.DatabaseConnectionError("Failed to connect to Oracle: ORA-12541: TNS:no listener")
        self.connection = FakeConnection(self.db)
        self.last_connection = self.connection
        return self.connection

    @property
    def error_types(self):
        return (FakeDatabaseError,)

    def placeholders(self):
        return ':1', ':2'


def make_config(**overrides):
    settings = dict(
        host='dbhost', port=1521, service_name='FREEPDB1',
        user='bench', password='secret',
        strategy=ocb.StrategyType.COMMIT_AT_END,
        iterations=10,
    )
    settings.update(overrides)
    return ocb.BenchmarkConfig(**settings)


class StepClock:
    """호출될 때마다 step 초씩 증가하는 시계"""

    def __init__(self, start=1000.0, step=0.25):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def adapter(fake_db):
    a = FakeAdapter(fake_db)
    a.open(make_config())
    return a


@pytest.fixture(autouse=True)
def restore_logging():
    """main()이 바꾼 root 핸들러를 테스트 후 원복"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    ocb.logger.setLevel(logging.NOTSET)
