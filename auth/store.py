"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as portfolio/store.py).
UserStore is the repository; _row_to_user is the mapper. Route, policy and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email is the account key for both login paths. Google sign-in matches on
  the verified email and then records google_id, so one Google subject
  always resolves to the account that owns that email.

Layer rule: no imports from api/ or portfolio/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Table, Text, case, func, or_, select

from auth.models import User
from core.database import Database, metadata, now_iso
from core.models import ROLE_ADMIN, ROLE_USER, UserFilters

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text),  # NULL for Google-only users
    Column("role", String(10), nullable=False, server_default=ROLE_USER),
    Column("avatar", Text),
    Column("google_id", String(255)),
    Column("email_verified", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Fields an update_user() caller may change. Checked before any SQL write so a
# stray key (e.g. "id" or "email") can never reach the UPDATE statement.
_MUTABLE_FIELDS = {"name", "avatar", "role", "hashed_password", "google_id", "email_verified"}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities (the credential store).

    Usage:
        store = UserStore(db)
        uid = store.create_user(User(name="Ada", email="ada@example.com", hashed_password=hash_password("secret")))
        user = store.get_by_email("ada@example.com")
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        db.create_tables()

    @property
    def engine(self):
        return self.db.engine

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        stamp = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                users.insert().values(
                    name=user.name,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    role=user.role,
                    avatar=user.avatar,
                    google_id=user.google_id,
                    email_verified=1 if user.email_verified else 0,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Returns True if a row was updated, False if user_id was not found.
        Raises ValueError for fields outside _MUTABLE_FIELDS.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if "email_verified" in fields:
            fields["email_verified"] = 1 if fields["email_verified"] else 0
        fields["updated_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(users.update().where(users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def link_google(self, user_id: int, google_id: str, avatar: str | None = None) -> None:
        """Attach a Google subject to an existing account (first Google sign-in).

        The avatar is only replaced when Google supplied one.
        """
        values: dict = {"google_id": google_id, "email_verified": True}
        if avatar:
            values["avatar"] = avatar
        self.update_user(user_id, **values)

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user. Owned content goes with it (ON DELETE CASCADE).

        Self-deletion and authorization checks are the caller's job.
        """
        with self.engine.connect() as conn:
            result = conn.execute(users.delete().where(users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive)."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(func.lower(users.c.email) == email.lower())).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, filters: UserFilters, page: int, limit: int) -> tuple[list[User], int]:
        """Return one page of users (newest first) and the total match count."""
        conditions = []
        if filters.search:
            conditions.append(
                or_(
                    users.c.name.icontains(filters.search, autoescape=True),
                    users.c.email.icontains(filters.search, autoescape=True),
                )
            )
        if filters.role:
            conditions.append(users.c.role == filters.role)

        query = users.select().where(*conditions)
        count_query = select(func.count()).select_from(users).where(*conditions)
        with self.engine.connect() as conn:
            rows = conn.execute(
                query.order_by(users.c.created_at.desc(), users.c.id.desc()).offset((page - 1) * limit).limit(limit)
            ).fetchall()
            total = conn.execute(count_query).scalar() or 0
        return [_row_to_user(r) for r in rows], total

    def get_overview(self, recent: int = 10) -> dict:
        """Aggregate account counts plus the most recent sign-ups (admin analytics)."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(
                    func.count().label("total"),
                    func.count(case((users.c.role == ROLE_ADMIN, 1))).label("admins"),
                    func.count(case((users.c.email_verified == 1, 1))).label("verified"),
                ).select_from(users)
            ).one()
            total, admins, verified = row.total, row.admins, row.verified
            rows = conn.execute(
                users.select().order_by(users.c.created_at.desc(), users.c.id.desc()).limit(recent)
            ).fetchall()
        return {
            "total_users": total,
            "admin_users": admins,
            "regular_users": total - admins,
            "verified_users": verified,
            "unverified_users": total - verified,
            "recent_users": [_row_to_user(r) for r in rows],
        }


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        avatar=row.avatar,
        google_id=row.google_id,
        email_verified=bool(row.email_verified),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
