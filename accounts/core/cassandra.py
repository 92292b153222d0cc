"""Cassandra cluster connection for the authoritative profile store."""

import logging
from dataclasses import dataclass
from typing import Any

from cassandra.cluster import Cluster, NoHostAvailable, Session
from cassandra.query import dict_factory
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from accounts.core.config import Settings

logger = logging.getLogger(__name__)

MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 10

KEYSPACE_DDL = (
    "CREATE KEYSPACE IF NOT EXISTS {keyspace} "
    "WITH REPLICATION = {{ 'class' : 'SimpleStrategy', 'replication_factor' : 1 }}"
)

TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.users ("
    " vanity text, email_hash text, email_ciphertext text, username text, avatar text,"
    " bio text, verified boolean, flags int, phone text, password_hash text,"
    " birthdate text, deleted boolean, mfa_code text, oauth list<text>,"
    " PRIMARY KEY (vanity)"
    ") WITH compression = {{'chunk_length_in_kb': '64', 'class': 'org.apache.cassandra.io.compress.ZstdCompressor'}}"
    " AND gc_grace_seconds = 864000",
    "CREATE TABLE IF NOT EXISTS {keyspace}.bots ("
    " id text, user_id text, client_secret text, ip text, username text, avatar text,"
    " bio text, flags int, deleted boolean,"
    " PRIMARY KEY (id)"
    ") WITH compression = {{'chunk_length_in_kb': '64', 'class': 'org.apache.cassandra.io.compress.ZstdCompressor'}}"
    " AND gc_grace_seconds = 864000",
)


@dataclass
class CassandraConnection:
    """A connected cluster and its session.

    Owned by the application lifespan; close() must be called on shutdown.
    """

    cluster: Cluster
    session: Session

    def close(self) -> None:
        """Shut down the cluster and every session attached to it."""
        self.cluster.shutdown()
        logger.info("Cassandra cluster shut down")


def connect(settings: Settings) -> CassandraConnection:
    """Connect to Cassandra, retrying while no host is reachable.

    Rows are returned as dicts so the row decoder can report missing
    columns by name.

    Args:
        settings: Application settings.

    Returns:
        CassandraConnection: Connected cluster and session.

    Raises:
        NoHostAvailable: If every attempt failed.
    """

    @retry(
        retry=retry_if_exception_type(NoHostAvailable),
        stop=stop_after_attempt(settings.cassandra_connect_retries),
        wait=wait_exponential(multiplier=1, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _connect() -> CassandraConnection:
        cluster = Cluster(contact_points=settings.cassandra_hosts, port=settings.cassandra_port)
        try:
            session = cluster.connect()
        except NoHostAvailable:
            cluster.shutdown()
            raise
        session.row_factory = dict_factory
        return CassandraConnection(cluster=cluster, session=session)

    connection = _connect()
    logger.info(
        "Connected to Cassandra at %s:%d",
        ",".join(settings.cassandra_hosts),
        settings.cassandra_port,
    )
    return connection


def create_schema(session: Session, keyspace: str) -> None:
    """Create the keyspace and profile tables if they do not exist."""
    session.execute(KEYSPACE_DDL.format(keyspace=keyspace))
    for statement in TABLE_DDL:
        session.execute(statement.format(keyspace=keyspace))
    logger.info("Ensured schema for keyspace %s", keyspace)


async def check_database_connection(session: Session) -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        session.execute("SELECT release_version FROM system.local")
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
