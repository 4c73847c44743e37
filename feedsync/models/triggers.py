"""
Store-side maintenance of posts.likes_count.

The counter is owned by the database: triggers on the likes table keep it equal
to the number of like rows per post. They are attached to the likes table's
CREATE so ``metadata.create_all`` installs them for either dialect.
"""
from sqlalchemy import DDL, event

from feedsync.models.like import Like

SQLITE_TRIGGERS = [
    DDL(
        "CREATE TRIGGER IF NOT EXISTS likes_count_after_insert AFTER INSERT ON likes "
        "BEGIN UPDATE posts SET likes_count = likes_count + 1 WHERE id = NEW.post_id; END"
    ),
    DDL(
        "CREATE TRIGGER IF NOT EXISTS likes_count_after_delete AFTER DELETE ON likes "
        "BEGIN UPDATE posts SET likes_count = MAX(likes_count - 1, 0) WHERE id = OLD.post_id; END"
    ),
]

POSTGRES_TRIGGERS = [
    DDL(
        """
        CREATE OR REPLACE FUNCTION sync_post_likes_count() RETURNS trigger AS $$
        BEGIN
            IF TG_OP = 'INSERT' THEN
                UPDATE posts SET likes_count = likes_count + 1 WHERE id = NEW.post_id;
                RETURN NEW;
            ELSIF TG_OP = 'DELETE' THEN
                UPDATE posts SET likes_count = GREATEST(likes_count - 1, 0) WHERE id = OLD.post_id;
                RETURN OLD;
            END IF;
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql
        """
    ),
    DDL(
        "CREATE TRIGGER likes_count_sync AFTER INSERT OR DELETE ON likes "
        "FOR EACH ROW EXECUTE FUNCTION sync_post_likes_count()"
    ),
]

for ddl in SQLITE_TRIGGERS:
    event.listen(Like.__table__, "after_create", ddl.execute_if(dialect="sqlite"))

for ddl in POSTGRES_TRIGGERS:
    event.listen(Like.__table__, "after_create", ddl.execute_if(dialect="postgresql"))
