from sqlalchemy import select

from horizon_scan.config import TopicConfig
from horizon_scan.store import Feed, Topic, seed_database


def test_seeds_empty_tables(store, app_config):
    with store.session_scope() as session:
        assert seed_database(session, app_config) == (1, 1)
        feed = session.scalars(select(Feed)).one()
        assert feed.extractor_config == {"body_selector": "article", "json_ld": False, "metadata_selectors": None}
        assert feed.enabled is True
        assert session.scalars(select(Topic)).one().name == "AI"


def test_existing_rows_are_left_alone(store, app_config):
    with store.session_scope() as session:
        seed_database(session, app_config)
    app_config.topics.append(TopicConfig(name="Biotech", description="Biotechnology"))

    with store.session_scope() as session:
        assert seed_database(session, app_config) == (0, 0)
        assert len(session.scalars(select(Topic)).all()) == 1
