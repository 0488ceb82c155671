"""Initial schema.

Creates users and the activity ledger, admins and app settings, the catalog
(roles, characters, quizzes, interactives, marathons, shop items, channel
posts, achievements), per-user progress tables, moderation tables and
notifications.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Catalog: roles and characters ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS roles (
            id SERIAL PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon VARCHAR(16) NOT NULL DEFAULT '🎨',
            display_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            available_buttons JSONB NOT NULL DEFAULT '[]',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS characters (
            id SERIAL PRIMARY KEY,
            role_id INTEGER NOT NULL REFERENCES roles(id),
            name VARCHAR(100) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            bonus_type VARCHAR(32) NOT NULL,
            bonus_value VARCHAR(32) NOT NULL DEFAULT '0',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_characters_role ON characters(role_id)")

    # --- Users and ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id BIGINT PRIMARY KEY,
            first_name VARCHAR(128),
            username VARCHAR(64),
            role_id INTEGER REFERENCES roles(id),
            role_name VARCHAR(100),
            character_id INTEGER REFERENCES characters(id),
            sparks DOUBLE PRECISION NOT NULL DEFAULT 0 CHECK (sparks >= 0),
            level VARCHAR(32) NOT NULL DEFAULT 'Ученик',
            is_registered BOOLEAN NOT NULL DEFAULT false,
            registration_date TIMESTAMPTZ,
            last_active TIMESTAMPTZ,
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS activities (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            activity_type VARCHAR(32) NOT NULL,
            sparks_earned DOUBLE PRECISION NOT NULL DEFAULT 0,
            description TEXT NOT NULL DEFAULT '',
            details JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_user_created
        ON activities(user_id, created_at)
    """)

    # --- Admin ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS admins (
            id SERIAL PRIMARY KEY,
            user_id BIGINT UNIQUE NOT NULL,
            username VARCHAR(64),
            role VARCHAR(16) NOT NULL DEFAULT 'moderator',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_login TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS app_settings (
            key VARCHAR(64) PRIMARY KEY,
            value TEXT NOT NULL,
            description TEXT,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Quizzes and interactives ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS quizzes (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            questions JSONB NOT NULL DEFAULT '[]',
            sparks_per_correct DOUBLE PRECISION NOT NULL DEFAULT 2,
            sparks_perfect_bonus DOUBLE PRECISION NOT NULL DEFAULT 10,
            cooldown_hours INTEGER NOT NULL DEFAULT 24,
            allow_retake BOOLEAN NOT NULL DEFAULT true,
            max_attempts_per_day INTEGER,
            difficulty VARCHAR(16) NOT NULL DEFAULT 'beginner',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS quiz_completions (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            quiz_id INTEGER NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
            score INTEGER NOT NULL DEFAULT 0,
            total_questions INTEGER NOT NULL DEFAULT 0,
            sparks_earned DOUBLE PRECISION NOT NULL DEFAULT 0,
            perfect_score BOOLEAN NOT NULL DEFAULT false,
            answers JSONB NOT NULL DEFAULT '[]',
            results JSONB NOT NULL DEFAULT '[]',
            attempts_today INTEGER NOT NULL DEFAULT 1,
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_quiz_completion_user_quiz UNIQUE (user_id, quiz_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS interactives (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            question TEXT NOT NULL,
            options JSONB NOT NULL DEFAULT '[]',
            correct_answer INTEGER NOT NULL,
            explanation TEXT NOT NULL DEFAULT '',
            sparks_reward DOUBLE PRECISION NOT NULL DEFAULT 5,
            allow_retake BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS interactive_completions (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            interactive_id INTEGER NOT NULL REFERENCES interactives(id) ON DELETE CASCADE,
            answer INTEGER,
            correct BOOLEAN NOT NULL DEFAULT false,
            score INTEGER NOT NULL DEFAULT 0,
            sparks_earned DOUBLE PRECISION NOT NULL DEFAULT 0,
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_interactive_completion UNIQUE (user_id, interactive_id)
        )
    """)

    # --- Marathons ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS marathons (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            duration_days INTEGER NOT NULL DEFAULT 1,
            tasks JSONB NOT NULL DEFAULT '[]',
            sparks_per_day DOUBLE PRECISION NOT NULL DEFAULT 7,
            sparks_completion_bonus DOUBLE PRECISION NOT NULL DEFAULT 50,
            difficulty VARCHAR(16) NOT NULL DEFAULT 'beginner',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS marathon_progress (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            marathon_id INTEGER NOT NULL REFERENCES marathons(id) ON DELETE CASCADE,
            current_day INTEGER NOT NULL DEFAULT 1,
            progress INTEGER NOT NULL DEFAULT 0,
            completed BOOLEAN NOT NULL DEFAULT false,
            total_sparks_earned DOUBLE PRECISION NOT NULL DEFAULT 0,
            started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_activity TIMESTAMPTZ,
            completed_at TIMESTAMPTZ,
            CONSTRAINT uq_marathon_progress UNIQUE (user_id, marathon_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS marathon_submissions (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            marathon_id INTEGER NOT NULL REFERENCES marathons(id) ON DELETE CASCADE,
            day INTEGER NOT NULL,
            submission_text TEXT,
            submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_marathon_submission_day UNIQUE (user_id, marathon_id, day)
        )
    """)

    # --- User content and moderation ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_works (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            image_url TEXT NOT NULL,
            category VARCHAR(32) NOT NULL DEFAULT 'other',
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            moderator_id BIGINT,
            admin_comment TEXT,
            moderated_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_works_status_created
        ON user_works(status, created_at)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS channel_posts (
            id SERIAL PRIMARY KEY,
            post_id VARCHAR(64) UNIQUE NOT NULL,
            title VARCHAR(200) NOT NULL,
            content TEXT NOT NULL DEFAULT '',
            image_url TEXT,
            admin_id BIGINT,
            featured BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS post_reviews (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            post_id VARCHAR(64) NOT NULL REFERENCES channel_posts(post_id) ON DELETE CASCADE,
            review_text TEXT NOT NULL,
            rating INTEGER NOT NULL DEFAULT 5 CHECK (rating BETWEEN 1 AND 5),
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            moderator_id BIGINT,
            admin_comment TEXT,
            moderated_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_post_review_user_post UNIQUE (user_id, post_id)
        )
    """)

    # --- Shop ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS shop_items (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            type VARCHAR(16) NOT NULL DEFAULT 'material',
            price DOUBLE PRECISION NOT NULL,
            discount_percent INTEGER NOT NULL DEFAULT 0,
            file_url TEXT,
            preview_url TEXT,
            content_text TEXT,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS purchases (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            item_id INTEGER NOT NULL REFERENCES shop_items(id),
            price_paid DOUBLE PRECISION NOT NULL,
            original_price DOUBLE PRECISION NOT NULL,
            discount_percent INTEGER NOT NULL DEFAULT 0,
            content_delivered BOOLEAN NOT NULL DEFAULT false,
            download_count INTEGER NOT NULL DEFAULT 0,
            purchased_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_purchases_user ON purchases(user_id, purchased_at)")

    # --- Gamification ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon VARCHAR(16) NOT NULL DEFAULT '🏆',
            condition_type VARCHAR(32) NOT NULL,
            condition_value VARCHAR(32) NOT NULL DEFAULT '1',
            sparks_reward DOUBLE PRECISION NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            achievement_id INTEGER NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            sparks_claimed BOOLEAN NOT NULL DEFAULT false,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_achievement UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id SERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(user_id),
            type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL DEFAULT '',
            action_url VARCHAR(256),
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user_unread
        ON notifications(user_id, is_read)
    """)


def downgrade() -> None:
    for table in (
        "notifications",
        "user_achievements",
        "achievements",
        "purchases",
        "shop_items",
        "post_reviews",
        "channel_posts",
        "user_works",
        "marathon_submissions",
        "marathon_progress",
        "marathons",
        "interactive_completions",
        "interactives",
        "quiz_completions",
        "quizzes",
        "app_settings",
        "admins",
        "activities",
        "users",
        "characters",
        "roles",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
