# tests/test_migrations.py
from sqlalchemy import create_engine, inspect, text

from ozark_collab.core.settings import settings
from ozark_collab.db.session import Base
from ozark_collab.scripts import migrate


def test_baseline_matches_models(monkeypatch, tmp_path) -> None:
    """Upgrading an empty database creates every mapped table."""
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.delenv("ALEMBIC_URL", raising=False)
    monkeypatch.setattr(settings, "database_url", url)

    migrate.main(["head"])

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert set(Base.metadata.tables) <= tables
    assert "alembic_version" in tables


def test_private_chat_pairs_are_merged_on_upgrade(monkeypatch, tmp_path) -> None:
    """Unordered and duplicate pairs collapse into one chat keeping every message."""
    url = f"sqlite:///{tmp_path / 'pairs.db'}"
    monkeypatch.delenv("ALEMBIC_URL", raising=False)
    monkeypatch.setattr(settings, "database_url", url)
    migrate.main(["3c1a9e7d2b40"])

    engine = create_engine(url)
    try:
        with engine.begin() as conn:
            conn.execute(text("INSERT INTO user_account (id, username, role) VALUES (1, 'alice', 'student'), (2, 'bob', 'student')"))
            conn.execute(text("INSERT INTO private_chat (id, user1_id, user2_id) VALUES (1, 1, 2), (2, 2, 1)"))
            conn.execute(
                text(
                    "INSERT INTO private_message (private_chat_id, sender_id, message, is_deleted) "
                    "VALUES (1, 1, 'hi', 0), (2, 2, 'hello', 0)"
                )
            )

        migrate.main(["head"])

        with engine.connect() as conn:
            chats = conn.execute(text("SELECT id, user1_id, user2_id FROM private_chat")).all()
            message_chats = conn.execute(text("SELECT private_chat_id FROM private_message")).scalars().all()
        constraints = {c["name"] for c in inspect(engine).get_unique_constraints("private_chat")}
    finally:
        engine.dispose()

    assert [tuple(row) for row in chats] == [(1, 1, 2)]
    assert message_chats == [1, 1]
    assert "uq_private_chat_pair" in constraints
