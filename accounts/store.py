"""
accounts/store.py -- SQLAlchemy Core persistence layer for roles and users.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_role / _row_to_user are the mappers. Route and service code never
touches SQL directly.

AccountStore is also the credential store the auth service consumes:
find_user_by_name() and find_user_by_id() satisfy auth.service.CredentialStore
structurally, so auth/ never imports this module.

Security:
  All queries use bound parameters. No f-strings in SQL.

Timeouts:
  Every lookup is bounded. SQLite gets a busy timeout through connect_args;
  server databases get a driver connect_timeout plus a pool checkout timeout,
  so a dead database surfaces as an OperationalError instead of a hung request.

Schema:
  create_all() runs on construction. It creates missing tables and never
  alters existing ones -- there is no migration layer.

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from accounts.models import Role, User

logger = logging.getLogger("rolekeeper.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_private_memory_db(db_url: str) -> bool:
    """True for sqlite:// and sqlite:///:memory:, whose data lives in one connection."""
    url = make_url(db_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _engine_options(db_url: str, timeout: float) -> dict:
    if db_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        if _is_private_memory_db(db_url):
            # Every worker thread must see the same in-memory database, so all
            # checkouts share one connection.
            options["poolclass"] = StaticPool
        return options
    return {
        "connect_args": {"connect_timeout": max(1, int(timeout))},
        "pool_timeout": timeout,
        "pool_pre_ping": True,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Role and User entities.

    Usage:
        store = AccountStore("sqlite:///rolekeeper.db")
        role = store.create_role("admin")
        user = store.create_user("alice", hasher.hash("correct-horse"))
        store.find_user_by_name("alice")
        store.close()

    create_* and update_* raise sqlalchemy.exc.IntegrityError when the name is
    already taken. Callers translate that into a conflict response.
    """

    def __init__(self, db_url: str, timeout: float = 5.0) -> None:
        self.engine: Engine = create_engine(db_url, **_engine_options(db_url, timeout))
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        # Connects immediately: an unreachable database fails here, at startup.
        _metadata.create_all(self.engine)
        logger.info("Account store ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except Exception:
            logger.exception("Store health check failed")
            return False
        return True

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def list_roles(self) -> list[Role]:
        """Return all roles ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_roles.select().order_by(_roles.c.id)).fetchall()
        return [_row_to_role(r) for r in rows]

    def create_role(self, name: str) -> Role:
        with self.engine.connect() as conn:
            result = conn.execute(_roles.insert().values(name=name))
            conn.commit()
            role_id = result.inserted_primary_key[0]
        return Role(id=role_id, name=name)

    def get_role(self, role_id: int) -> Role | None:
        """Look up a role by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_roles.select().where(_roles.c.id == role_id)).fetchone()
        return _row_to_role(row) if row is not None else None

    def update_role(self, role_id: int, name: str) -> Role | None:
        """Rename a role. Returns the updated Role, or None if role_id does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(_roles.update().where(_roles.c.id == role_id).values(name=name))
            conn.commit()
        if result.rowcount == 0:
            return None
        return Role(id=role_id, name=name)

    def delete_role(self, role_id: int) -> bool:
        """Delete a role. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_roles.delete().where(_roles.c.id == role_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def create_user(self, name: str, hashed_password: str) -> User:
        """Insert a new user. The caller hashes the password first."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.insert().values(name=name, hashed_password=hashed_password))
            conn.commit()
            user_id = result.inserted_primary_key[0]
        return User(id=user_id, name=name, hashed_password=hashed_password)

    def find_user_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_user_by_name(self, name: str) -> User | None:
        """Look up a user by exact name (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.name == name)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user_id: int, name: str, hashed_password: str) -> User | None:
        """Replace name and password hash. Returns None if user_id does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(name=name, hashed_password=hashed_password)
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return User(id=user_id, name=name, hashed_password=hashed_password)

    def delete_user(self, user_id: int) -> bool:
        """Delete a user. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_role(row) -> Role:
    return Role(id=row.id, name=row.name)


def _row_to_user(row) -> User:
    return User(id=row.id, name=row.name, hashed_password=row.hashed_password)
