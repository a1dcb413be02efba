"""Reputation tables.

Creates users, user_stats, tutor_profiles, scores, score_reasons, badges,
badge_awards, notifications and audit_logs.

Revision ID: 001_reputation_tables
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_reputation_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(36) PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            role VARCHAR(16) NOT NULL DEFAULT 'STUDENT'
                CHECK (role IN ('STUDENT', 'TUTOR', 'ADMIN')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_stats (
            user_id VARCHAR(36) PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_study_hours DOUBLE PRECISION NOT NULL DEFAULT 0,
            materials_uploaded INTEGER NOT NULL DEFAULT 0,
            avg_likes DOUBLE PRECISION NOT NULL DEFAULT 0,
            sessions_completed INTEGER NOT NULL DEFAULT 0,
            goals_completed INTEGER NOT NULL DEFAULT 0,
            last_updated TIMESTAMPTZ
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS tutor_profiles (
            user_id VARCHAR(36) PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            avg_rating DOUBLE PRECISION DEFAULT 0 CHECK (avg_rating BETWEEN 0 AND 5),
            total_ratings INTEGER NOT NULL DEFAULT 0,
            response_time_seconds INTEGER,
            sessions_last_month INTEGER NOT NULL DEFAULT 0,
            subjects JSONB NOT NULL DEFAULT '[]',
            availability_score DOUBLE PRECISION DEFAULT 0
                CHECK (availability_score BETWEEN 0 AND 1),
            updated_at TIMESTAMPTZ
        )
    """)

    # --- Score ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS scores (
            user_id VARCHAR(36) PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            points INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_scores_points ON scores(points DESC, user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS score_reasons (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES scores(user_id) ON DELETE CASCADE,
            reason VARCHAR(256) NOT NULL,
            amount INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_score_reasons_user_time
        ON score_reasons(user_id, created_at DESC, id DESC)
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            criteria JSONB NOT NULL DEFAULT '{}',
            icon_url VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS badge_awards (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id VARCHAR(36) NOT NULL REFERENCES badges(id),
            awarded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            reason TEXT,
            CONSTRAINT badge_awards_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_badge_awards_badge ON badge_awards(badge_id)")

    # --- Collaborators ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            channel VARCHAR(16) NOT NULL CHECK (channel IN ('EMAIL', 'PUSH', 'SMS', 'WEBHOOK')),
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'SENT', 'FAILED')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            sent_at TIMESTAMPTZ
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_notifications_user_id ON notifications(user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS audit_logs (
            id VARCHAR(36) PRIMARY KEY,
            action VARCHAR(64) NOT NULL,
            actor_user_id VARCHAR(36),
            resource_type VARCHAR(64) NOT NULL,
            resource_id VARCHAR(64) NOT NULL,
            metadata JSONB NOT NULL DEFAULT '{}',
            ip_address VARCHAR(45),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_action ON audit_logs(action)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_actor_user_id ON audit_logs(actor_user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_logs_created_at ON audit_logs(created_at DESC)")


def downgrade() -> None:
    for table in [
        "audit_logs",
        "notifications",
        "badge_awards",
        "badges",
        "score_reasons",
        "scores",
        "tutor_profiles",
        "user_stats",
        "users",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")  # noqa: S608
