"""Create sessions table with owner-scoped RLS.

A session is one aggregate row: messages, the current component, and the
component history all live in JSONB columns so a turn is a single write.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE TABLE sessions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_id UUID NOT NULL,
            name TEXT NOT NULL DEFAULT 'Untitled Session',
            messages JSONB NOT NULL DEFAULT '[]'::jsonb,
            current_component JSONB NOT NULL DEFAULT '{"jsx": "", "css": ""}'::jsonb,
            component_history JSONB NOT NULL DEFAULT '[]'::jsonb,
            created TIMESTAMPTZ NOT NULL DEFAULT now(),
            last_accessed TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("""
        CREATE INDEX idx_sessions_owner_last_accessed ON sessions(owner_id, last_accessed DESC);
    """)

    op.execute("ALTER TABLE sessions ENABLE ROW LEVEL SECURITY")
    # Policies apply to the table owner too
    op.execute("ALTER TABLE sessions FORCE ROW LEVEL SECURITY")

    op.execute("""
        CREATE POLICY sessions_owner_all
        ON sessions
        FOR ALL
        USING (owner_id = NULLIF(current_setting('app.user_id', true), '')::uuid)
        WITH CHECK (owner_id = NULLIF(current_setting('app.user_id', true), '')::uuid);
    """)


def downgrade():
    op.execute("DROP POLICY IF EXISTS sessions_owner_all ON sessions")
    op.execute("DROP TABLE IF EXISTS sessions")
