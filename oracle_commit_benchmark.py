#!/usr/bin/env python3
"""
Oracle 커밋 전략별 대량 적재 성능 측정 프로그램

특징:
- 스크래치 테이블(COMMITDATA) 생성 -> 적재 -> 삭제
- 4가지 커밋 전략 지원
  * commit-every-row      : 매 행마다 COMMIT
  * commit-at-end         : 전체 적재 후 1회 COMMIT
  * batch-commit          : 배치 단위 전송, 마지막에 1회 COMMIT
  * batch-commit-with-log : 배치 전송 + DML 에러 로깅 (LOG ERRORS INTO ...)
- Direct-path 힌트(/*+ APPEND */) 옵션
  (INSERT ... VALUES 에서는 Oracle이 힌트를 무시하므로 문장만 달라지고 적재 방식은 동일)
- python-oracledb(thin) 또는 JDBC(JayDeBeApi) 드라이버 선택
- 결과 내보내기 (CSV/JSON)

사용 예시:
  # 매 행 COMMIT
  python oracle_commit_benchmark.py -host localhost -port 1521 -srvn FREEPDB1 \\
      -user test -pass test -commitEveryRow

  # 1000건 배치 + 에러 로깅 + direct-path 힌트
  python oracle_commit_benchmark.py -host localhost -port 1521 -srvn FREEPDB1 \\
      -user test -pass test -batchCommit 1000 -saveExceptions -directPath

  # JDBC 드라이버 사용, 결과 JSON 내보내기
  python oracle_commit_benchmark.py -host localhost -port 1521 -srvn FREEPDB1 \\
      -user test -pass test -commitAtEnd --driver jdbc --jre-dir ./jre \\
      --output-format json --output-file result.json
"""

import sys
import time
import logging
import argparse
import os
import glob
import json
import csv
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, field, asdict
from abc import ABC, abstractmethod

# 버전 정보 (로그 및 CLI 배너에 사용)
VERSION = "1.2"

# 데이터베이스 드라이버 임포트 (조건부)
try:
    import oracledb
    ORACLE_AVAILABLE = True
except ImportError:
    ORACLE_AVAILABLE = False

try:
    import jaydebeapi
    import jpype
    JAYDEBEAPI_AVAILABLE = True
except ImportError:
    JAYDEBEAPI_AVAILABLE = False

logger = logging.getLogger(__name__)

# 테스트 대상 객체
TEST_TABLE = 'COMMITDATA'
ERROR_LOG_TABLE = 'ERR$_COMMITDATA'

DEFAULT_ITERATIONS = 100000
DIRECT_PATH_HINT = '/*+ APPEND */'

# 모든 행에 동일하게 사용되는 고정 페이로드
FILLER_TEXT = (
    ";ajskfj[wig[ajdfkjaw[oeimakldjalksva;djfashdfjksahdf;lkjasdfoiwejaflkf;"
    "smvwlknvoaweijfasdfjasldf;kwlvma;dfjlaksjfowemowaivnoawn"
)

LOG_FILE = 'commit_benchmark.log'
ERROR_LOG_FILE = 'commit_benchmark_error.log'


# ============================================================================
# 로깅 설정
# ============================================================================
class BelowWarningFilter(logging.Filter):
    """WARNING 레벨 미만의 로그만 통과시키는 필터

    INFO, DEBUG 로그는 콘솔과 일반 로그 파일로,
    WARNING 이상은 별도 에러 로그 파일로 분리하기 위해 사용
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def configure_logging(log_level: str = 'INFO', log_dir: str = '.'):
    """로깅 핸들러 구성

    Args:
        log_level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR)
        log_dir: 로그 파일을 저장할 디렉터리
    """
    log_formatter = logging.Formatter('%(asctime)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    console_formatter = logging.Formatter('%(asctime)s - %(message)s', datefmt='%H:%M:%S')

    file_handler = logging.FileHandler(os.path.join(log_dir, LOG_FILE))
    file_handler.setFormatter(log_formatter)
    file_handler.addFilter(BelowWarningFilter())

    error_handler = logging.FileHandler(os.path.join(log_dir, ERROR_LOG_FILE))
    error_handler.setLevel(logging.WARNING)
    error_handler.setFormatter(log_formatter)

    # 콘솔은 모든 레벨 출력
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)

    logging.basicConfig(
        level=logging.INFO,
        handlers=[file_handler, error_handler, console_handler],
        force=True
    )
    logger.setLevel(getattr(logging, log_level))


# ============================================================================
# 예외 정의
# ============================================================================
class BenchmarkError(Exception):
    """벤치마크 실행 중 발생하는 모든 치명적 오류의 기반 클래스"""


class DatabaseConnectionError(BenchmarkError):
    """DB 접속 실패 (재시도 없음)"""


class SchemaError(BenchmarkError):
    """DDL 실패 (테이블 생성/삭제)"""


class InsertError(BenchmarkError):
    """적재 중 INSERT/COMMIT 실패"""


class ArgumentError(BenchmarkError):
    """잘못된 명령행 인자"""


# ============================================================================
# 커밋 전략 정의
# ============================================================================
class StrategyType:
    """커밋 전략 상수 (우선순위 순)"""
    COMMIT_EVERY_ROW = 'commit-every-row'
    COMMIT_AT_END = 'commit-at-end'
    BATCH_COMMIT_WITH_LOG = 'batch-commit-with-log'
    BATCH_COMMIT = 'batch-commit'

    BATCHED = (BATCH_COMMIT, BATCH_COMMIT_WITH_LOG)


# ============================================================================
# 설정 클래스
# ============================================================================
@dataclass(frozen=True)
class BenchmarkConfig:
    """벤치마크 설정 (파서가 한 번 생성한 뒤 변경하지 않음)

    Attributes:
        host: 데이터베이스 호스트
        port: 리스너 포트
        service_name: 서비스 이름
        user: 데이터베이스 사용자
        password: 데이터베이스 비밀번호
        strategy: 커밋 전략 (StrategyType)
        batch_size: 배치 크기 (배치 전략에서만 사용)
        save_exceptions: 에러 로그 테이블 생성 여부
        direct_path: INSERT에 APPEND 힌트 추가 여부
        iterations: 적재할 행 수
        driver: 'thin' (python-oracledb) 또는 'jdbc' (JayDeBeApi)
        jre_dir: JDBC 드라이버 JAR 디렉터리
    """
    host: str
    port: int
    service_name: str
    user: str
    password: str
    strategy: str
    batch_size: int = 0
    save_exceptions: bool = False
    direct_path: bool = False
    iterations: int = DEFAULT_ITERATIONS
    driver: str = 'thin'
    jre_dir: str = './jre'
    output_format: Optional[str] = None
    output_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """비밀번호를 제외한 설정 딕셔너리 (로그/결과 내보내기용)"""
        settings = asdict(self)
        settings.pop('password')
        return settings


# ============================================================================
# 측정 결과
# ============================================================================
@dataclass
class TimingSample:
    """적재 루프를 감싸는 시작/종료 시각 (초 단위 epoch)"""
    start_time: float
    end_time: float

    @property
    def elapsed_ms(self) -> int:
        return max(0, int((self.end_time - self.start_time) * 1000))


@dataclass
class BenchmarkResult:
    """단일 전략 실행 결과"""
    strategy: str
    iterations: int
    batch_size: int = 0
    direct_path: bool = False
    rows_executed: int = 0
    commits: int = 0
    batches_sent: int = 0
    flush_points: List[int] = field(default_factory=list)
    final_flush: bool = False
    rejected_rows: int = 0
    timing: Optional[TimingSample] = None

    @property
    def elapsed_ms(self) -> int:
        return self.timing.elapsed_ms if self.timing else 0

    @property
    def rows_loaded(self) -> int:
        return self.rows_executed - self.rejected_rows

    @property
    def rows_per_second(self) -> float:
        if self.elapsed_ms <= 0:
            return 0.0
        return round(self.rows_loaded / (self.elapsed_ms / 1000.0), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy,
            'iterations': self.iterations,
            'batch_size': self.batch_size,
            'direct_path': self.direct_path,
            'rows_executed': self.rows_executed,
            'rows_loaded': self.rows_loaded,
            'rejected_rows': self.rejected_rows,
            'commits': self.commits,
            'batches_sent': self.batches_sent,
            'flush_count': len(self.flush_points) + (1 if self.final_flush else 0),
            'elapsed_ms': self.elapsed_ms,
            'rows_per_second': self.rows_per_second,
        }


# ============================================================================
# 결과 내보내기
# ============================================================================
class ResultExporter:
    """벤치마크 결과 내보내기 유틸리티"""

    @staticmethod
    def export_csv(filepath: str, result: BenchmarkResult, config: Dict[str, Any]):
        """결과를 CSV 형식으로 내보내기

        Args:
            filepath: 저장할 파일 경로
            result: 전략 실행 결과
            config: 설정 딕셔너리
        """
        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)

            writer.writerow(['# Configuration'])
            for key, value in config.items():
                writer.writerow([f'# {key}', value])
            writer.writerow([])

            stats = result.to_dict()
            writer.writerow(list(stats.keys()))
            writer.writerow(list(stats.values()))

        logger.info(f"Results exported to CSV: {filepath}")

    @staticmethod
    def export_json(filepath: str, result: BenchmarkResult, config: Dict[str, Any]):
        """결과를 JSON 형식으로 내보내기"""
        document = {
            'test_info': {
                'timestamp': datetime.now().isoformat(),
                'version': VERSION
            },
            'configuration': config,
            'result': result.to_dict()
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

        logger.info(f"Results exported to JSON: {filepath}")


# ============================================================================
# JDBC 드라이버 정보
# ============================================================================
@dataclass
class JDBCDriverInfo:
    """JDBC 드라이버 정보"""
    driver_class: str
    jar_pattern: str
    url_template: str


ORACLE_JDBC_DRIVER = JDBCDriverInfo(
    driver_class='oracle.jdbc.OracleDriver',
    jar_pattern='ojdbc*.jar',
    url_template='jdbc:oracle:thin:@//{host}:{port}/{service_name}'
)


def _jar_version(jar_file: str) -> Tuple[Tuple[int, ...], str]:
    """ojdbc11.jar > ojdbc8.jar 가 되도록 파일명의 숫자로 비교"""
    name = os.path.basename(jar_file)
    return tuple(int(n) for n in re.findall(r"\d+", name)), name


def find_jdbc_jar(jre_dir: str = './jre') -> Optional[str]:
    """Oracle JDBC JAR 파일 찾기

    ./jre/oracle/ 서브디렉터리를 먼저 검색하고,
    없으면 전체 디렉터리를 재귀 검색합니다.
    여러 개가 있으면 버전 번호가 가장 높은 JAR를 선택합니다.

    Returns:
        JDBC JAR 파일 경로, 찾지 못한 경우 None
    """
    db_subdir = os.path.join(jre_dir, 'oracle')
    if os.path.exists(db_subdir):
        jar_files = glob.glob(os.path.join(db_subdir, ORACLE_JDBC_DRIVER.jar_pattern))
        if jar_files:
            jar_file = max(jar_files, key=_jar_version)
            logger.info(f"Found JDBC driver: {jar_file}")
            return jar_file

    pattern = os.path.join(jre_dir, '**', ORACLE_JDBC_DRIVER.jar_pattern)
    jar_files = glob.glob(pattern, recursive=True)

    if not jar_files:
        logger.error(f"JDBC driver not found: {ORACLE_JDBC_DRIVER.jar_pattern} in {jre_dir}")
        return None

    jar_file = max(jar_files, key=_jar_version)
    logger.info(f"Found JDBC driver: {jar_file}")
    return jar_file


def initialize_jvm(jre_dir: str = './jre'):
    """JVM 초기화 (이미 시작된 경우 아무 동작도 하지 않음)

    Raises:
        DatabaseConnectionError: JVM 시작 실패
    """
    if jpype.isJVMStarted():
        return

    jvm_path = jpype.getDefaultJVMPath()
    logger.info(f"Initializing JVM using: {jvm_path}")

    jars = []
    for root, dirs, files in os.walk(jre_dir):
        for file in files:
            if file.endswith('.jar'):
                jars.append(os.path.join(root, file))

    classpath = os.pathsep.join(jars) or "."
    logger.debug(f"JVM Classpath: {classpath}")

    try:
        jpype.startJVM(jvm_path, f"-Djava.class.path={classpath}", "-Dfile.encoding=UTF-8")
        logger.info("JVM initialized successfully")
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to initialize JVM: {e}") from e


# ============================================================================
# 데이터베이스 어댑터 인터페이스 (Connection Manager)
# ============================================================================
class DatabaseAdapter(ABC):
    """단일 세션 데이터베이스 어댑터

    open()으로 auto-commit이 꺼진 세션 하나를 열고, close()로 닫습니다.
    모든 커밋 시점은 전략이 직접 제어합니다.
    """

    driver_name = ''

    def __init__(self):
        self.connection = None

    @abstractmethod
    def open(self, config: BenchmarkConfig):
        """세션 생성 (auto-commit 비활성화)

        Raises:
            DatabaseConnectionError: 접속 실패
        """
        pass

    @property
    @abstractmethod
    def error_types(self) -> Tuple[type, ...]:
        """드라이버가 던지는 DB 예외 타입"""
        pass

    @abstractmethod
    def placeholders(self) -> Tuple[str, str]:
        """INSERT 바인드 변수 표기 (ID, TXT)"""
        pass

    def cursor(self):
        return self.connection.cursor()

    def commit(self):
        self.connection.commit()

    def rollback(self):
        try:
            self.connection.rollback()
        except self.error_types as e:
            logger.warning(f"Rollback failed: {e}")

    def close(self):
        if self.connection is None:
            return
        try:
            self.connection.close()
        except self.error_types as e:
            logger.debug(f"Error closing {self.driver_name} connection: {e}")
        finally:
            self.connection = None
        logger.info("Database session closed")


class OracleThinAdapter(DatabaseAdapter):
    """python-oracledb thin 모드 어댑터"""

    driver_name = 'thin'

    def open(self, config: BenchmarkConfig):
        if not ORACLE_AVAILABLE:
            raise DatabaseConnectionError("oracledb module not available. Install with: pip install oracledb")

        logger.info(f"Connecting to Oracle {config.host}:{config.port}/{config.service_name} "
                    f"as {config.user} (python-oracledb thin)")
        try:
            connection = oracledb.connect(
                user=config.user,
                password=config.password,
                host=config.host,
                port=config.port,
                service_name=config.service_name
            )
        except oracledb.Error as e:
            raise DatabaseConnectionError(f"Failed to connect to Oracle: {e}") from e

        connection.autocommit = False
        self.connection = connection
        return connection

    @property
    def error_types(self) -> Tuple[type, ...]:
        return (oracledb.Error,)

    def placeholders(self) -> Tuple[str, str]:
        return ':1', ':2'


class OracleJDBCAdapter(DatabaseAdapter):
    """Oracle JDBC thin 드라이버 어댑터 (JayDeBeApi + JPype)

    executemany()는 JDBC addBatch/executeBatch로 실행됩니다.
    """

    driver_name = 'jdbc'

    def open(self, config: BenchmarkConfig):
        if not JAYDEBEAPI_AVAILABLE:
            raise DatabaseConnectionError(
                "jaydebeapi or jpype1 not installed. Install with: pip install jaydebeapi JPype1")

        jar_file = find_jdbc_jar(config.jre_dir)
        if not jar_file:
            raise DatabaseConnectionError(f"Oracle JDBC driver not found in {config.jre_dir}")

        initialize_jvm(config.jre_dir)

        jdbc_url = ORACLE_JDBC_DRIVER.url_template.format(
            host=config.host,
            port=config.port,
            service_name=config.service_name
        )
        logger.info(f"Connecting to {jdbc_url} as {config.user} (JDBC)")

        try:
            connection = jaydebeapi.connect(
                ORACLE_JDBC_DRIVER.driver_class,
                jdbc_url,
                [config.user, config.password],
                jar_file
            )
            connection.jconn.setAutoCommit(False)
        except self.error_types as e:
            raise DatabaseConnectionError(f"Failed to connect to Oracle: {e}") from e

        self.connection = connection
        return connection

    @property
    def error_types(self) -> Tuple[type, ...]:
        return (jaydebeapi.Error, jpype.JException)

    def placeholders(self) -> Tuple[str, str]:
        return '?', '?'


@contextmanager
def open_session(adapter: DatabaseAdapter, config: BenchmarkConfig):
    """세션을 열고, 어떤 경로로 빠져나가든 반드시 닫는다"""
    connection = adapter.open(config)
    try:
        yield connection
    finally:
        adapter.close()


# ============================================================================
# 스키마 관리
# ============================================================================
class SchemaManager:
    """스크래치 테이블과 에러 로그 테이블의 생성/삭제"""

    def __init__(self, config: BenchmarkConfig):
        self.config = config
        self.table_created = False
        self.error_log_created = False

    def get_ddl(self) -> str:
        ddl = f"""
-- Oracle DDL
CREATE TABLE {TEST_TABLE} (ID NUMBER, TXT VARCHAR2(255));
"""
        if self.config.save_exceptions:
            ddl += f"EXEC DBMS_ERRLOG.CREATE_ERROR_LOG('{TEST_TABLE}', '{ERROR_LOG_TABLE}');\n"
        ddl += f"""
-- Teardown
DROP TABLE {TEST_TABLE};
"""
        if self.config.save_exceptions:
            ddl += f"DROP TABLE {ERROR_LOG_TABLE};\n"
        ddl += "PURGE USER_RECYCLEBIN;\n"
        return ddl

    @staticmethod
    def _table_exists(cursor, table_name: str) -> bool:
        cursor.execute(f"SELECT COUNT(*) FROM USER_TABLES WHERE TABLE_NAME = '{table_name}'")
        result = cursor.fetchone()
        return bool(result and result[0] > 0)

    def setup(self, adapter: DatabaseAdapter):
        """테스트 테이블 생성 (이전 실행의 잔여 테이블은 삭제 후 재생성)

        Raises:
            SchemaError: DDL 실패
        """
        cursor = adapter.cursor()
        try:
            for table_name in (TEST_TABLE, ERROR_LOG_TABLE):
                if self._table_exists(cursor, table_name):
                    logger.warning(f"Leftover table {table_name} found - dropping it")
                    cursor.execute(f"DROP TABLE {table_name} PURGE")

            cursor.execute(f"CREATE TABLE {TEST_TABLE} (ID NUMBER, TXT VARCHAR2(255))")
            self.table_created = True

            if self.config.save_exceptions:
                cursor.execute(
                    f"BEGIN DBMS_ERRLOG.CREATE_ERROR_LOG('{TEST_TABLE}', '{ERROR_LOG_TABLE}'); END;")
                self.error_log_created = True
                logger.info(f"Table {TEST_TABLE} and error log {ERROR_LOG_TABLE} created")
            else:
                logger.info(f"Table {TEST_TABLE} created")
        except adapter.error_types as e:
            raise SchemaError(f"Failed to setup benchmark schema: {e}") from e
        finally:
            cursor.close()

    def teardown(self, adapter: DatabaseAdapter):
        """생성한 테이블 삭제 및 휴지통 비우기

        Raises:
            SchemaError: DDL 실패
        """
        cursor = adapter.cursor()
        try:
            if self.table_created:
                cursor.execute(f"DROP TABLE {TEST_TABLE}")
                self.table_created = False
            if self.error_log_created:
                cursor.execute(f"DROP TABLE {ERROR_LOG_TABLE}")
                self.error_log_created = False
            cursor.execute("PURGE USER_RECYCLEBIN")
            logger.info("Benchmark tables dropped and recycle bin purged")
        except adapter.error_types as e:
            raise SchemaError(f"Failed to teardown benchmark schema: {e}") from e
        finally:
            cursor.close()


def count_rows(adapter: DatabaseAdapter, table_name: str) -> int:
    cursor = adapter.cursor()
    try:
        cursor.execute(f"SELECT COUNT(*) FROM {table_name}")
        result = cursor.fetchone()
        return int(result[0]) if result else 0
    finally:
        cursor.close()


# ============================================================================
# 적재 전략
# ============================================================================
class LoadStrategy(ABC):
    """커밋 전략 공통 구조

    하위 클래스는 행 단위 동작(_load)과 INSERT 문장 템플릿만 정의합니다.
    시작 배너, 시간 측정, 에러 변환, 결과 출력은 run()이 담당합니다.
    """

    strategy_type = ''
    description = ''

    def __init__(self, config: BenchmarkConfig, clock=time.time):
        self.config = config
        self.clock = clock

    @staticmethod
    def generate_row(index: int) -> Tuple[int, str]:
        return index, FILLER_TEXT

    def build_insert_sql(self, placeholders: Tuple[str, str]) -> str:
        hint = f" {DIRECT_PATH_HINT}" if self.config.direct_path else ""
        return f"INSERT{hint} INTO {TEST_TABLE} VALUES ({placeholders[0]}, {placeholders[1]})"

    def banner(self) -> str:
        return f"Loading data with {self.description} - {self.config.iterations} iterations"

    def run(self, adapter: DatabaseAdapter) -> BenchmarkResult:
        """전략 실행

        Raises:
            InsertError: INSERT 또는 COMMIT 실패 (롤백 후 전파)
        """
        logger.info(self.banner())

        sql = self.build_insert_sql(adapter.placeholders())
        logger.debug(f"Insert statement: {sql}")

        result = BenchmarkResult(
            strategy=self.strategy_type,
            iterations=self.config.iterations,
            batch_size=self.config.batch_size if self.strategy_type in StrategyType.BATCHED else 0,
            direct_path=self.config.direct_path
        )

        cursor = adapter.cursor()
        try:
            start_time = self.clock()
            self._load(adapter, cursor, sql, result)
            end_time = self.clock()
        except adapter.error_types as e:
            adapter.rollback()
            raise InsertError(
                f"{self.strategy_type} failed after {result.rows_executed} rows: {e}") from e
        finally:
            cursor.close()

        result.timing = TimingSample(start_time, end_time)
        self._after_load(adapter, result)

        logger.info(f"Data loaded in: {result.elapsed_ms} ms")
        return result

    @abstractmethod
    def _load(self, adapter: DatabaseAdapter, cursor, sql: str, result: BenchmarkResult):
        """타이머 구간 안에서 실행되는 적재 + 커밋"""
        pass

    def _after_load(self, adapter: DatabaseAdapter, result: BenchmarkResult):
        pass

    @staticmethod
    def _commit(adapter: DatabaseAdapter, result: BenchmarkResult):
        adapter.commit()
        result.commits += 1


class RowByRowStrategy(LoadStrategy):
    """행 단위 INSERT. commit_every_row로 커밋 시점만 달라진다"""

    commit_every_row = False

    def _load(self, adapter, cursor, sql, result):
        for index in range(self.config.iterations):
            cursor.execute(sql, self.generate_row(index))
            result.rows_executed += 1
            if self.commit_every_row:
                self._commit(adapter, result)

        if not self.commit_every_row:
            self._commit(adapter, result)


class CommitEveryRowStrategy(RowByRowStrategy):
    strategy_type = StrategyType.COMMIT_EVERY_ROW
    description = "committing after every row"
    commit_every_row = True


class CommitAtEndStrategy(RowByRowStrategy):
    strategy_type = StrategyType.COMMIT_AT_END
    description = "committing after the entire set is loaded"


class BatchCommitStrategy(LoadStrategy):
    """배치 전송 후 마지막에 1회 COMMIT

    행을 배치에 쌓은 뒤 루프 인덱스가 batch_size의 배수이면 전송합니다.
    따라서 인덱스 0에서 1건짜리 배치가 먼저 전송되고, 이후 batch_size건씩
    전송됩니다. 루프 종료 후 남은 행은 최종 flush로 전송합니다.
    """

    strategy_type = StrategyType.BATCH_COMMIT

    @property
    def description(self) -> str:
        return f"committing in batches of {self.config.batch_size} rows"

    def should_flush(self, index: int) -> bool:
        return index % self.config.batch_size == 0

    def _load(self, adapter, cursor, sql, result):
        batch: List[Tuple[int, str]] = []

        for index in range(self.config.iterations):
            batch.append(self.generate_row(index))
            if self.should_flush(index):
                self._flush(cursor, sql, batch, result)
                result.flush_points.append(index)

        self._flush(cursor, sql, batch, result)
        result.final_flush = True

        self._commit(adapter, result)

    @staticmethod
    def _flush(cursor, sql: str, batch: List[Tuple[int, str]], result: BenchmarkResult):
        # 빈 배치는 DB 호출 없이 넘어감
        if not batch:
            return
        cursor.executemany(sql, batch)
        result.rows_executed += len(batch)
        result.batches_sent += 1
        batch.clear()


class BatchCommitWithErrorLogStrategy(BatchCommitStrategy):
    """배치 전송 + DML 에러 로깅

    실패한 행은 ERR$_COMMITDATA로 보내지고 배치는 계속 진행됩니다.
    """

    strategy_type = StrategyType.BATCH_COMMIT_WITH_LOG

    @property
    def description(self) -> str:
        return (f"committing in batches of {self.config.batch_size} rows, "
                f"saving exceptions to {ERROR_LOG_TABLE}")

    def build_insert_sql(self, placeholders: Tuple[str, str]) -> str:
        return (super().build_insert_sql(placeholders)
                + f" LOG ERRORS INTO {ERROR_LOG_TABLE} REJECT LIMIT UNLIMITED")

    def _after_load(self, adapter, result):
        # 측정 구간 밖에서 거부된 행 수 집계
        try:
            result.rejected_rows = count_rows(adapter, ERROR_LOG_TABLE)
        except adapter.error_types as e:
            raise InsertError(f"Failed to count rows in {ERROR_LOG_TABLE}: {e}") from e
        if result.rejected_rows:
            logger.warning(f"{result.rejected_rows:,} rows diverted to {ERROR_LOG_TABLE}")


STRATEGIES = {
    StrategyType.COMMIT_EVERY_ROW: CommitEveryRowStrategy,
    StrategyType.COMMIT_AT_END: CommitAtEndStrategy,
    StrategyType.BATCH_COMMIT: BatchCommitStrategy,
    StrategyType.BATCH_COMMIT_WITH_LOG: BatchCommitWithErrorLogStrategy,
}


def create_strategy(config: BenchmarkConfig, clock=time.time) -> LoadStrategy:
    if config.strategy not in STRATEGIES:
        raise ValueError(f"Unsupported strategy: {config.strategy}")
    return STRATEGIES[config.strategy](config, clock=clock)


# ============================================================================
# 벤치마크 메인 클래스
# ============================================================================
class CommitBenchmark:
    """CONNECT -> SETUP -> RUN_STRATEGY -> TEARDOWN 실행기"""

    def __init__(self, config: BenchmarkConfig, adapter: Optional[DatabaseAdapter] = None,
                 clock=time.time):
        self.config = config
        self.db_adapter = adapter or self._create_adapter()
        self.schema = SchemaManager(config)
        self.clock = clock

    def _create_adapter(self) -> DatabaseAdapter:
        adapters = {
            'thin': OracleThinAdapter,
            'jdbc': OracleJDBCAdapter,
        }
        if self.config.driver not in adapters:
            raise ValueError(f"Unsupported driver: {self.config.driver}")
        return adapters[self.config.driver]()

    def print_ddl(self):
        print("\n" + "=" * 80)
        print(f"DDL for {self.config.strategy}")
        print("=" * 80)
        print(self.schema.get_ddl())
        print("=" * 80 + "\n")

    def run(self) -> BenchmarkResult:
        """벤치마크 1회 실행

        setup이 시작된 이후에는 실패하더라도 teardown을 시도합니다.

        Raises:
            BenchmarkError: 접속, DDL, 적재 중 치명적 오류
        """
        strategy = create_strategy(self.config, clock=self.clock)

        with open_session(self.db_adapter, self.config):
            try:
                self.schema.setup(self.db_adapter)
                result = strategy.run(self.db_adapter)
            except BaseException:
                # Ctrl+C 포함, 어떤 이유로 중단되어도 테이블은 남기지 않음
                self.db_adapter.rollback()
                self._cleanup_after_failure()
                raise
            self.schema.teardown(self.db_adapter)

        self._print_final_stats(result)
        self._export(result)
        return result

    def _cleanup_after_failure(self):
        try:
            self.schema.teardown(self.db_adapter)
        except SchemaError as e:
            logger.error(f"Cleanup after failed run also failed: {e}")

    def _export(self, result: BenchmarkResult):
        if not self.config.output_format:
            return
        if self.config.output_format == 'csv':
            ResultExporter.export_csv(self.config.output_file, result, self.config.to_dict())
        elif self.config.output_format == 'json':
            ResultExporter.export_json(self.config.output_file, result, self.config.to_dict())

    def _print_final_stats(self, result: BenchmarkResult):
        logger.info("=" * 80)
        logger.info("BENCHMARK COMPLETED - FINAL STATISTICS")
        logger.info("=" * 80)
        logger.info(f"Strategy: {result.strategy}")
        logger.info(f"Iterations: {result.iterations:,}")
        if result.batch_size:
            logger.info(f"Batch Size: {result.batch_size:,} | Batches Sent: {result.batches_sent:,}")
        logger.info(f"Direct Path: {'yes' if result.direct_path else 'no'}")
        logger.info("-" * 80)
        logger.info(f"Rows Loaded: {result.rows_loaded:,}")
        if result.strategy == StrategyType.BATCH_COMMIT_WITH_LOG:
            logger.info(f"Rows Rejected: {result.rejected_rows:,}")
        logger.info(f"Commits: {result.commits:,}")
        logger.info(f"Elapsed: {result.elapsed_ms:,} ms")
        logger.info(f"Rows/sec: {result.rows_per_second:,.2f}")
        logger.info("=" * 80)


# ============================================================================
# 명령행 인자 파싱
# ============================================================================
class BenchmarkArgumentParser(argparse.ArgumentParser):
    """argparse 오류를 sys.exit 대신 ArgumentError로 전달"""

    def error(self, message):
        raise ArgumentError(message)


def build_parser() -> BenchmarkArgumentParser:
    parser = BenchmarkArgumentParser(
        prog='oracle_commit_benchmark.py',
        description=f'Committing data to the Oracle Database - Commit Strategy Benchmark v{VERSION}',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Strategies (precedence when several are given):
  -commitEveryRow          : commit after every row
  -commitAtEnd             : commit only once at the end of the load
  -batchCommit N -saveExceptions
                           : batches of N rows, failing rows go to ERR$_COMMITDATA
  -batchCommit N           : batches of N rows, commit once at the end

Examples:
  python oracle_commit_benchmark.py -host localhost -port 1521 -srvn FREEPDB1 \\
      -user test -pass test -batchCommit 1000 -directPath
        """
    )

    # 연결 정보 (필수)
    parser.add_argument('-host', dest='host', help='The database host name')
    parser.add_argument('-port', dest='port', type=int, help='The database listener port')
    parser.add_argument('-srvn', dest='service_name', help='The database service name')
    parser.add_argument('-user', dest='user', help='The database username')
    parser.add_argument('-pass', dest='password', help='The database user password')

    # 커밋 전략
    parser.add_argument('-commitEveryRow', dest='commit_every_row', action='store_true',
                        help='Commit data after every row')
    parser.add_argument('-commitAtEnd', dest='commit_at_end', action='store_true',
                        help='Commit data only once at the end of a load')
    parser.add_argument('-batchCommit', dest='batch_commit', type=int, metavar='SIZE',
                        help='Send rows in batches of SIZE, commit once at the end')
    parser.add_argument('-saveExceptions', dest='save_exceptions', action='store_true',
                        help='Log failing rows into an error log table instead of aborting')
    parser.add_argument('-directPath', dest='direct_path', action='store_true',
                        help=f"Add the {DIRECT_PATH_HINT} hint to the insert statement "
                             "(Oracle applies APPEND to INSERT ... SELECT only; "
                             "INSERT ... VALUES loads stay conventional)")
    parser.add_argument('-iterations', dest='iterations', type=int, default=DEFAULT_ITERATIONS,
                        help=f'Number of rows to load (default: {DEFAULT_ITERATIONS})')

    # 드라이버
    parser.add_argument('--driver', choices=['thin', 'jdbc'], default='thin',
                        help='python-oracledb thin mode or the Oracle JDBC driver (default: thin)')
    parser.add_argument('--jre-dir', default='./jre', help='Directory holding ojdbc*.jar (JDBC driver)')

    # 결과 내보내기
    parser.add_argument('--output-format', choices=['csv', 'json'])
    parser.add_argument('--output-file')

    # 기타
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO')
    parser.add_argument('--log-dir', default='.', help='Directory for log files')
    parser.add_argument('--print-ddl', action='store_true', help='Print DDL and exit')
    parser.add_argument('--version', action='store_true', help='Show version and exit')

    return parser


def resolve_strategy(args: argparse.Namespace) -> Optional[str]:
    """전달된 플래그 중 우선순위가 가장 높은 전략 하나를 선택"""
    if args.commit_every_row:
        return StrategyType.COMMIT_EVERY_ROW
    if args.commit_at_end:
        return StrategyType.COMMIT_AT_END
    if args.batch_commit is not None and args.save_exceptions:
        return StrategyType.BATCH_COMMIT_WITH_LOG
    if args.batch_commit is not None:
        return StrategyType.BATCH_COMMIT
    return None


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    """파싱된 인자를 검증하여 BenchmarkConfig 생성

    Raises:
        ArgumentError: 필수 인자 누락 또는 잘못된 값
    """
    strategy = resolve_strategy(args)
    if strategy is None:
        raise ArgumentError("one of -commitEveryRow, -commitAtEnd, -batchCommit is required")

    if not args.print_ddl:
        required = [('-host', args.host), ('-port', args.port), ('-srvn', args.service_name),
                    ('-user', args.user), ('-pass', args.password)]
        missing = [flag for flag, value in required if value in (None, '')]
        if missing:
            raise ArgumentError(f"the following arguments are required: {', '.join(missing)}")

    if args.batch_commit is not None and args.batch_commit <= 0:
        raise ArgumentError(f"-batchCommit must be a positive number: {args.batch_commit}")
    if args.iterations <= 0:
        raise ArgumentError(f"-iterations must be a positive number: {args.iterations}")
    if args.output_format and not args.output_file:
        raise ArgumentError("--output-file is required with --output-format")

    return BenchmarkConfig(
        host=args.host, port=args.port, service_name=args.service_name,
        user=args.user, password=args.password,
        strategy=strategy,
        batch_size=args.batch_commit or 0,
        save_exceptions=args.save_exceptions,
        direct_path=args.direct_path,
        iterations=args.iterations,
        driver=args.driver,
        jre_dir=args.jre_dir,
        output_format=args.output_format,
        output_file=args.output_file
    )


# ============================================================================
# 메인 함수
# ============================================================================
def main(argv: Optional[List[str]] = None, adapter: Optional[DatabaseAdapter] = None):
    """프로그램 진입점

    인자 없음: 도움말 출력 후 정상 종료(0)
    잘못된 인자: 사용법과 오류 출력 후 종료(2), DB 접속 없음
    DB 오류: 로그 출력 후 종료(1)
    """
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv:
        parser.print_help()
        return

    if '--version' in argv:
        print(f"Oracle Commit Strategy Benchmark v{VERSION}")
        return

    try:
        args = parser.parse_args(argv)
        config = build_config(args)
    except ArgumentError as e:
        parser.print_usage()
        print(f"{parser.prog}: error: {e}")
        sys.exit(2)

    configure_logging(args.log_level, args.log_dir)

    try:
        benchmark = CommitBenchmark(config, adapter=adapter)
    except ValueError as e:
        logger.error(f"Failed to create benchmark: {e}")
        sys.exit(1)

    if args.print_ddl:
        benchmark.print_ddl()
        return

    selected = sum([args.commit_every_row, args.commit_at_end, args.batch_commit is not None])
    if selected > 1:
        logger.warning(f"Multiple strategies given - running {config.strategy} only")
    if args.save_exceptions and config.strategy not in StrategyType.BATCHED:
        logger.warning(f"-saveExceptions has no effect on {config.strategy} inserts")

    # 설정 출력
    logger.info("=" * 80)
    logger.info(f"ORACLE COMMIT STRATEGY BENCHMARK v{VERSION}")
    logger.info("=" * 80)
    logger.info(f"Database: {config.host}:{config.port}/{config.service_name} | "
                f"User: {config.user} | Driver: {config.driver}")
    logger.info(f"Strategy: {config.strategy} | Iterations: {config.iterations:,}")
    if config.strategy in StrategyType.BATCHED:
        logger.info(f"Batch Size: {config.batch_size:,}")
    if config.direct_path:
        logger.info(f"Direct Path: {DIRECT_PATH_HINT}")
    logger.info("=" * 80)

    try:
        benchmark.run()
    except KeyboardInterrupt:
        logger.info("Benchmark interrupted by user")
        sys.exit(1)
    except BenchmarkError as e:
        logger.error(f"Benchmark failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
