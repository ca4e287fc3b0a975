#!/usr/bin/env python3
"""
Seed the database with demo owners, friends and pups.

Users, pups and friendships are managed outside the scheduling API; this
script creates a small circle so the API can be tried locally. It prints
the user ids to pass in the X-Acting-User header.

Usage:
    python scripts/seed_demo.py [--reset]

Options:
    --reset    Delete all existing data before seeding
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete
from sqlmodel import Session

from dogcal.core.database import create_db_and_tables, engine
from dogcal.models import (
    Friendship,
    Hangout,
    HangoutNote,
    HangoutResponse,
    HangoutSuggestion,
    Pup,
    User,
    UserRole,
)

OWNERS = {
    "Annabella": ("07476 238512", ["Biscuit"]),
    "Autumn": (None, ["Mochi", "Pepper"]),
}

FRIENDS = {
    "Edi": ("+44 7700 900123", ["Biscuit", "Mochi"]),
    "Jacqui": ("(415) 555-0100", ["Biscuit"]),
    "Beth": (None, ["Pepper"]),
}


def reset(session: Session):
    # Children first
    for model in (HangoutNote, HangoutResponse, HangoutSuggestion, Hangout, Friendship, Pup, User):
        session.execute(delete(model))
    session.commit()
    print("Cleaned existing data")


def main(reset_first: bool = False):
    create_db_and_tables()

    with Session(engine) as session:
        if reset_first:
            reset(session)

        pups: dict[str, Pup] = {}
        print("Owners:")
        for name, (phone, pup_names) in OWNERS.items():
            owner = User(name=name, role=UserRole.OWNER, phone_number=phone)
            session.add(owner)
            session.flush()
            for pup_name in pup_names:
                pups[pup_name] = Pup(name=pup_name, owner_user_id=owner.id)
                session.add(pups[pup_name])
            print(f"  {owner.name:<10} {owner.id}  pups: {', '.join(pup_names)}")

        session.flush()
        print("Friends:")
        for name, (phone, pup_names) in FRIENDS.items():
            friend = User(name=name, role=UserRole.FRIEND, phone_number=phone)
            session.add(friend)
            session.flush()
            for pup_name in pup_names:
                session.add(Friendship(pup_id=pups[pup_name].id, friend_user_id=friend.id))
            print(f"  {friend.name:<10} {friend.id}  helps: {', '.join(pup_names)}")

        session.commit()
        print("\nPups:")
        for pup in pups.values():
            print(f"  {pup.name:<10} {pup.id}")


if __name__ == "__main__":
    main(reset_first="--reset" in sys.argv)
