"""Seed the sample clubs on first start."""
from sqlalchemy.orm import Session
from clubhub.models.club import Club


def seed_clubs(db: Session) -> None:
    if db.query(Club).count() > 0:
        return
    clubs = [
        Club(club_name="Coding Club", club_code="CODE", description="For programming enthusiasts", category="Technical"),
        Club(club_name="Robotics Club", club_code="ROBO", description="Building the future", category="Technical"),
        Club(club_name="Music Club", club_code="MUSIC", description="For the love of music", category="Cultural"),
    ]
    db.add_all(clubs)
    db.commit()
