"""Seed script for an administrator, site settings and a demo poll."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from politirate.core.config import get_settings
from politirate.db.session import engine, get_session
from politirate.models import Base, ElectionType, Gender, Leader, LeaderStatus, Poll, PollQuestionType, User, UserRole
from politirate.services.polls import PollDraft, QuestionDraft, upsert_poll
from politirate.services.site_settings import get_site_settings
from politirate.services.users import register_user

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_LEADER = {
    "name": "Demo Leader",
    "party_name": "Independent",
    "gender": Gender.FEMALE,
    "age": 52,
    "constituency": "Central",
    "election_type": ElectionType.STATE,
    "location": {"state": "Kerala", "district": "Ernakulam"},
    "previous_elections": [],
}
DEMO_POLL_TITLE = "Should the city add more bus routes?"


def seed(session: Session) -> None:
    """Seed the admin account, the settings row, one leader and one poll."""

    settings = get_settings()

    admin = session.scalars(select(User).where(User.email == settings.seed_admin_email)).one_or_none()
    if admin is None:
        admin = register_user(
            session,
            email=settings.seed_admin_email,
            password=settings.seed_admin_password,
            role=UserRole.ADMIN,
            name="Administrator",
        )
        logger.info("Created admin %s", admin.email)
    else:
        logger.info("Admin %s already exists", admin.email)

    get_site_settings(session, settings=settings)

    if session.scalars(select(Leader).where(Leader.name == DEMO_LEADER["name"])).first() is None:
        session.add(Leader(**DEMO_LEADER, added_by_user_id=admin.id, status=LeaderStatus.APPROVED))
        session.commit()
        logger.info("Added leader %s", DEMO_LEADER["name"])

    if session.scalars(select(Poll).where(Poll.title == DEMO_POLL_TITLE)).first() is None:
        poll = upsert_poll(
            session,
            PollDraft(
                title=DEMO_POLL_TITLE,
                is_active=True,
                questions=(QuestionDraft(text=DEMO_POLL_TITLE, question_type=PollQuestionType.YES_NO),),
            ),
        )
        logger.info("Added poll %s", poll.id)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session)


if __name__ == "__main__":
    main()
