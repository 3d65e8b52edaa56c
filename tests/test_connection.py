import pytest

import oracle_commit_benchmark as ocb
from conftest import FakeAdapter, make_config


class RecordingConnection:
    def __init__(self):
        self.autocommit = True
        self.closed = False

    def close(self):
        self.closed = True


class TestOpenSession:

    def test_session_closed_on_success(self):
        adapter = FakeAdapter()
        with ocb.open_session(adapter, make_config()) as connection:
            assert adapter.connection is connection
        assert connection.closed
        assert adapter.connection is None

    def test_session_closed_on_error(self):
        adapter = FakeAdapter()
        with pytest.raises(ocb.InsertError):
            with ocb.open_session(adapter, make_config()):
                raise ocb.InsertError("boom")
        assert adapter.last_connection.closed

    def test_connect_failure_propagates(self):
        adapter = FakeAdapter(fail_connect=True)
        with pytest.raises(ocb.DatabaseConnectionError):
            with ocb.open_session(adapter, make_config()):
                pass
        assert adapter.connection is None


class TestOracleThinAdapter:

    def test_connect_disables_autocommit(self, monkeypatch):
        oracledb = pytest.importorskip("oracledb")
        calls = {}

        def fake_connect(**kwargs):
            calls.update(kwargs)
            return RecordingConnection()

        monkeypatch.setattr(oracledb, "connect", fake_connect)
        adapter = ocb.OracleThinAdapter()
        connection = adapter.open(make_config())

        assert calls == dict(user='bench', password='secret', host='dbhost',
                             port=1521, service_name='FREEPDB1')
        assert connection.autocommit is False
        assert adapter.placeholders() == (':1', ':2')

        adapter.close()
        assert connection.closed

    def test_connect_error_is_fatal(self, monkeypatch):
        oracledb = pytest.importorskip("oracledb")

        def refuse(**kwargs):
            raise oracledb.DatabaseError("DPY-6005: cannot connect to database")

        monkeypatch.setattr(oracledb, "connect", refuse)
        with pytest.raises(ocb.DatabaseConnectionError, match="DPY-6005"):
            ocb.OracleThinAdapter().open(make_config())


class TestOracleJDBCAdapter:

    def test_find_jar_prefers_newest_in_oracle_subdir(self, tmp_path):
        (tmp_path / "oracle").mkdir()
        (tmp_path / "oracle" / "ojdbc8.jar").write_bytes(b"")
        (tmp_path / "oracle" / "ojdbc11.jar").write_bytes(b"")
        (tmp_path / "ojdbc6.jar").write_bytes(b"")

        assert ocb.find_jdbc_jar(str(tmp_path)) == str(tmp_path / "oracle" / "ojdbc11.jar")

    def test_find_jar_compares_versions_numerically(self, tmp_path):
        for name in ("ojdbc6.jar", "ojdbc10.jar", "ojdbc8.jar"):
            (tmp_path / name).write_bytes(b"")

        assert ocb.find_jdbc_jar(str(tmp_path)) == str(tmp_path / "ojdbc10.jar")

    def test_find_jar_recursive(self, tmp_path):
        nested = tmp_path / "lib" / "drivers"
        nested.mkdir(parents=True)
        (nested / "ojdbc11.jar").write_bytes(b"")

        assert ocb.find_jdbc_jar(str(tmp_path)) == str(nested / "ojdbc11.jar")

    def test_find_jar_missing(self, tmp_path):
        assert ocb.find_jdbc_jar(str(tmp_path)) is None

    def test_missing_driver_jar_is_fatal(self, tmp_path):
        if not ocb.JAYDEBEAPI_AVAILABLE:
            pytest.skip("jaydebeapi not installed")
        config = make_config(driver='jdbc', jre_dir=str(tmp_path))
        with pytest.raises(ocb.DatabaseConnectionError, match="JDBC driver not found"):
            ocb.OracleJDBCAdapter().open(config)

    def test_connect_uses_service_url(self, tmp_path, monkeypatch):
        if not ocb.JAYDEBEAPI_AVAILABLE:
            pytest.skip("jaydebeapi not installed")
        jar = tmp_path / "ojdbc11.jar"
        jar.write_bytes(b"")
        calls = []

        class JavaConnection:
            def __init__(self):
                self.autocommit = True

            def setAutoCommit(self, flag):
                self.autocommit = flag

        class Connection:
            def __init__(self):
                self.jconn = JavaConnection()

        def fake_connect(*args):
            calls.append(args)
            return Connection()

        monkeypatch.setattr(ocb, "initialize_jvm", lambda jre_dir: None)
        monkeypatch.setattr(ocb.jaydebeapi, "connect", fake_connect)

        adapter = ocb.OracleJDBCAdapter()
        connection = adapter.open(make_config(driver='jdbc', jre_dir=str(tmp_path)))

        assert calls == [('oracle.jdbc.OracleDriver', 'jdbc:oracle:thin:@//dbhost:1521/FREEPDB1',
                          ['bench', 'secret'], str(jar))]
        assert connection.jconn.autocommit is False
        assert adapter.placeholders() == ('?', '?')
