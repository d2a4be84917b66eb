"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as favorites/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and dependency
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) and UNIQUE(email) are declared in the schema. Routes run
  a friendly pre-check first, but the constraint is the authoritative guard:
  create_user() and update_user() let IntegrityError propagate so a
  concurrent duplicate is rejected even when both pre-checks passed.

Layer rule: no imports from api/ or favorites/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, or_, text
from sqlalchemy.engine import Engine

from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

# Shared with favorites/store.py so favorites.user_id can reference users.id.
metadata = MetaData()

# SQLite INTEGER is a signed 64-bit value. Larger numbers can never match a row
# and make the driver raise OverflowError, so they are rejected before any query.
INTEGER_MAX = 2**63 - 1
INTEGER_MIN = -(2**63)

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("age", Integer, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("profile_image_url", String(512)),
    Column("profile_visibility", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns update_user() accepts. Anything else is a programming error.
_MUTABLE_FIELDS = {
    "username",
    "email",
    "hashed_password",
    "age",
    "description",
    "profile_image_url",
    "profile_visibility",
}


# ---------------------------------------------------------------------------
# SQLite pragmas
# ---------------------------------------------------------------------------


def set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. Without foreign_keys=ON the favorites
    ON DELETE CASCADE is declared but never applied.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def make_engine(db_url: str) -> Engine:
    """Create an Engine with the SQLite tweaks both stores need."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", set_sqlite_pragmas)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def fits_integer(value: int) -> bool:
    """Return True if value can be stored in (or compared against) an INTEGER column."""
    return INTEGER_MIN <= value <= INTEGER_MAX


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///modernhn.db")
        uid = store.create_user(User(username="alice", email="a@x.com", age=20,
                                     hashed_password=hash_password("password123")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username or email is taken.
        """
        stamp = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    age=user.age,
                    description=user.description or "",
                    profile_image_url=user.profile_image_url,
                    profile_visibility=1 if user.profile_visibility else 0,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        profile_visibility must be passed as bool; it is stored as 0/1.
        Raises ValueError for unknown fields and IntegrityError on a
        username/email collision. Returns True if a row was updated.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if "profile_visibility" in fields:
            fields["profile_visibility"] = 1 if fields["profile_visibility"] else 0
        fields["updated_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        """Return any user holding either identifier, in a single query.

        Registration uses this to reject both kinds of collision at once.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(or_(_users.c.username == username, _users.c.email == email)).limit(1)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_visible(self, user_id: int) -> User | None:
        """Return the user only if their profile is public."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where((_users.c.id == user_id) & (_users.c.profile_visibility == 1))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_visible(self) -> list[User]:
        """Return every user with a public profile, oldest account first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _users.select().where(_users.c.profile_visibility == 1).order_by(_users.c.id)
            ).fetchall()
        return [_row_to_user(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        age=row.age,
        description=row.description or "",
        profile_image_url=row.profile_image_url,
        profile_visibility=bool(row.profile_visibility),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
